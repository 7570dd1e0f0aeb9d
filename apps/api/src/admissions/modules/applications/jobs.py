"""
Applications Background Jobs

Scheduled maintenance for the applications trash:
- purge_trashed_applications: deletes trash entries older than
  TRASH_RETENTION_DAYS (30). Runs once at startup, then every
  TRASH_PURGE_INTERVAL_HOURS (24).

The job opens its own database session and is idempotent; with several
server instances a double purge is harmless.
"""

import logging
from typing import Any

from apscheduler.triggers.interval import IntervalTrigger

from admissions.core.config import settings
from admissions.core.database import async_session_maker
from admissions.core.scheduler import register_job
from admissions.modules.applications import admin_service

logger = logging.getLogger(__name__)

# Job IDs for registration and manual triggering
JOB_ID_PURGE_TRASH = "applications_purge_trash"


async def purge_trashed_applications() -> dict[str, Any]:
    """Remove expired trash entries."""
    logger.info("Starting trash purge job...")

    async with async_session_maker() as db:
        removed = await admin_service.purge_expired(db)

    logger.info(f"Trash purge job completed. Removed: {removed}")
    return {"removed": removed}


def register_application_jobs() -> None:
    """
    Register application background jobs with the scheduler.

    Call during application startup, before the scheduler is started.
    """
    interval_hours = settings.trash_purge_interval_hours

    register_job(
        job_id=JOB_ID_PURGE_TRASH,
        func=purge_trashed_applications,
        trigger=IntervalTrigger(hours=interval_hours),
        run_at_startup=True,
    )
    logger.info(f"Registered job: {JOB_ID_PURGE_TRASH} (interval: {interval_hours} hours)")
