"""
Applications Admin Service

Review, document verification and trash/recovery for administrators.

Status side effects run in the same transaction as the status change:
- Accepted: every uploaded document gets a verified_files row
- Rejected: all verified_files rows are removed
- Pending: each supported `<document>_status` column is reset to "pending",
  each in its own savepoint; failures are counted, not raised

Every state change is recorded in the activity log.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.auth import CurrentUser
from admissions.core.config import settings
from admissions.modules.activity_logs.service import log_activity
from admissions.modules.applications import repository
from admissions.modules.applications.helpers import (
    DOCUMENT_KEYS,
    DOCUMENT_STATUS_VALUES,
    application_to_dict,
    is_document_key,
    normalize_review_status,
    uploaded_document_keys,
    verified_flags,
)
from admissions.modules.applications.models import ApplicationStatus, TrashedApplication
from admissions.modules.applications.service import (
    ApplicationNotFoundError,
    ApplicationServiceError,
    ApplicationValidationError,
    DuplicateApplicationError,
    InvalidApplicationStateError,
)

logger = logging.getLogger(__name__)


class TrashEntryNotFoundError(ApplicationServiceError):
    """Raised when a trash entry is not found."""

    def __init__(self, trash_id: int):
        super().__init__(
            message=f"Trashed item {trash_id} not found",
            error_code="TRASH_ENTRY_NOT_FOUND",
            status_code=404,
        )


def _require_document_key(document_name: str) -> None:
    if not is_document_key(document_name):
        raise ApplicationValidationError(
            f"Invalid document name: {document_name}", error_code="INVALID_DOCUMENT"
        )


async def _row_with_flags(db: AsyncSession, application_id: int) -> dict[str, Any]:
    row = await repository.get_application_row(db, application_id)
    if row is None:
        raise ApplicationNotFoundError(application_id)
    verified = await repository.get_verified_keys(db, application_id)
    return {**row, **verified_flags(verified)}


# ============================================
# Listing
# ============================================


async def list_applications(
    db: AsyncSession, status: ApplicationStatus | None = None
) -> list[dict[str, Any]]:
    """All applications, newest first, with per-document verified flags."""
    applications = await repository.list_all(db, status)
    verified = await repository.get_verified_keys_by_application(
        db, [application.id for application in applications]
    )

    logger.info(f"Admin listing applications: status={status}, found={len(applications)}")
    return [
        {**application_to_dict(application), **verified_flags(verified.get(application.id, ()))}
        for application in applications
    ]


async def get_dashboard_stats(db: AsyncSession) -> dict:
    stats = await repository.get_dashboard_stats(db)
    logger.info(f"Dashboard stats: {stats}")
    return stats


# ============================================
# Review
# ============================================


async def get_supported_document_status_keys(db: AsyncSession) -> list[str]:
    """Document keys that have a `<document>_status` column in the database."""
    columns = await repository.get_application_columns(db)
    return [key for key in DOCUMENT_KEYS if f"{key}_status" in columns]


async def _reset_document_statuses(db: AsyncSession, application_id: int) -> tuple[int, int]:
    """Best-effort reset of every supported document status to "pending"."""
    reset = failed = 0
    for key in await get_supported_document_status_keys(db):
        try:
            async with db.begin_nested():
                await repository.update_document_status(
                    db, application_id, key, "pending", update_remark=False
                )
            reset += 1
        except SQLAlchemyError as e:
            failed += 1
            logger.warning(f"Could not reset {key}_status on application {application_id}: {e}")
    return reset, failed


async def set_application_status(
    db: AsyncSession,
    admin: CurrentUser,
    application_id: int,
    status_value: str,
) -> dict[str, Any]:
    """
    Set Pending / Accepted / Rejected and apply the verification side effects.

    Returns:
        The application row with verified flags and a `side_effects` summary

    Raises:
        ApplicationValidationError: status is not pending, accepted or rejected
        ApplicationNotFoundError: application does not exist
        InvalidApplicationStateError: application is still a Draft
    """
    new_status = normalize_review_status(status_value)
    if new_status is None:
        raise ApplicationValidationError(
            "Invalid status value. Use pending, accepted or rejected.",
            error_code="INVALID_STATUS",
        )

    application = await repository.get_by_id(db, application_id)
    if application is None:
        logger.warning(f"Application not found: {application_id}")
        raise ApplicationNotFoundError(application_id)

    if application.status == ApplicationStatus.DRAFT:
        raise InvalidApplicationStateError("Drafts cannot be reviewed until they are submitted.")

    try:
        await repository.update_status(db, application, new_status)
    except repository.InvalidStatusTransitionError as e:
        logger.error(f"Status transition error: {e}")
        raise InvalidApplicationStateError(str(e)) from e

    side_effects = {
        "verified_added": 0,
        "verified_removed": 0,
        "document_status_reset": 0,
        "document_status_reset_failed": 0,
    }

    if new_status == ApplicationStatus.ACCEPTED:
        side_effects["verified_added"] = await repository.verify_files(
            db, application.id, uploaded_document_keys(application), admin.id
        )
    elif new_status == ApplicationStatus.REJECTED:
        side_effects["verified_removed"] = await repository.remove_all_verified_files(
            db, application.id
        )
    else:
        reset, failed = await _reset_document_statuses(db, application.id)
        side_effects["document_status_reset"] = reset
        side_effects["document_status_reset_failed"] = failed

    await log_activity(
        db,
        admin.id,
        admin.role,
        "update_application_status",
        f"Set application {application_id} status to {new_status.value}",
    )
    await db.commit()

    logger.info(
        f"Admin {admin.id} set application {application_id} to {new_status.value}: {side_effects}"
    )
    return {**(await _row_with_flags(db, application_id)), "side_effects": side_effects}


async def set_document_status(
    db: AsyncSession,
    admin: CurrentUser,
    application_id: int,
    document_name: str,
    status_value: str,
    remark: str | None = None,
) -> dict[str, Any]:
    """
    Record an admin's status for one document.

    Documents without a `<document>_status` column are left untouched and
    the current row is returned.
    """
    _require_document_key(document_name)

    status_value = status_value.strip().lower()
    if status_value not in DOCUMENT_STATUS_VALUES:
        raise ApplicationValidationError(
            "Invalid status value. Use pending, approved or rejected.",
            error_code="INVALID_STATUS",
        )

    row = await repository.get_application_row(db, application_id)
    if row is None:
        raise ApplicationNotFoundError(application_id)

    columns = await repository.get_application_columns(db)
    if f"{document_name}_status" not in columns:
        logger.info(f"No {document_name}_status column; document status update skipped")
        return row

    await repository.update_document_status(
        db,
        application_id,
        document_name,
        status_value,
        remark or None,
        update_remark=f"{document_name}_remark" in columns,
    )
    await log_activity(
        db,
        admin.id,
        admin.role,
        "update_document_status",
        f"Updated document '{document_name}' status to '{status_value}' on application {application_id}",
    )
    await db.commit()

    return await repository.get_application_row(db, application_id)


async def toggle_file_verification(
    db: AsyncSession,
    admin: CurrentUser,
    application_id: int,
    file_key: str,
    verified: int | None = None,
) -> dict[str, Any]:
    """
    Verify (1 or None) or unverify (0) one document. Repeating a call is a no-op.

    Returns:
        The application row with verified flags
    """
    _require_document_key(file_key)

    if not await repository.exists(db, application_id):
        raise ApplicationNotFoundError(application_id)

    if verified is None or verified == 1:
        changed = await repository.add_verified_file(db, application_id, file_key, admin.id)
        action, verb = "verify_file", "Verified"
    else:
        changed = await repository.remove_verified_file(db, application_id, file_key)
        action, verb = "unverify_file", "Un-verified"

    if changed:
        await log_activity(
            db,
            admin.id,
            admin.role,
            action,
            f"{verb} file '{file_key}' for application {application_id}",
        )
    await db.commit()

    return await _row_with_flags(db, application_id)


async def add_document_remark(
    db: AsyncSession,
    admin: CurrentUser,
    application_id: int,
    document_name: str,
    remark: str,
) -> dict[str, Any]:
    _require_document_key(document_name)

    if not await repository.exists(db, application_id):
        raise ApplicationNotFoundError(application_id)

    entry = await repository.add_document_remark(
        db,
        application_id=application_id,
        document_name=document_name,
        remark=remark,
        created_by=admin.id,
    )
    await log_activity(
        db,
        admin.id,
        admin.role,
        "add_document_remark",
        f"Added remark for document '{document_name}' on application {application_id}: {remark}",
    )
    await db.commit()

    return {"remark": entry.remark or "", "created_at": entry.created_at}


async def get_document_remark(
    db: AsyncSession, application_id: int, document_name: str
) -> dict[str, Any]:
    """Most recent remark, or an empty remark when there is none."""
    entry = await repository.get_latest_document_remark(db, application_id, document_name)
    if entry is None:
        return {"remark": "", "created_at": None}
    return {"remark": entry.remark or "", "created_at": entry.created_at}


# ============================================
# Trash / Recovery
# ============================================


async def trash_application(
    db: AsyncSession, admin: CurrentUser, application_id: int
) -> dict[str, Any]:
    """
    Move an application to the trash.

    The snapshot is written before the original is deleted, in the same
    transaction; if the snapshot fails nothing is deleted.
    """
    application = await repository.get_by_id(db, application_id)
    if application is None:
        raise ApplicationNotFoundError(application_id)

    # Raw row, so document status columns the model does not map are kept too
    row = await repository.get_application_row(db, application_id)
    verified_files = await repository.get_verified_files(db, application_id)
    snapshot = jsonable_encoder(
        {
            **(row or application_to_dict(application)),
            "verified_files": [
                {"file_key": vf.file_key, "verified_by": vf.verified_by} for vf in verified_files
            ],
        }
    )

    entry = await repository.create_trash_entry(db, application, snapshot)
    await repository.delete_application(db, application)
    await log_activity(
        db,
        admin.id,
        admin.role,
        "trash_application",
        f"Moved application {application_id} to trash ({application.email or 'no-email'})",
    )
    await db.commit()

    logger.info(f"Application {application_id} moved to trash as {entry.id}")
    return {"message": "Application moved to trash", "trash_id": entry.id, "trashed": snapshot}


async def list_trash(db: AsyncSession) -> list[TrashedApplication]:
    return await repository.list_trash(db)


async def _restore_document_statuses(
    db: AsyncSession, application_id: int, data: dict[str, Any]
) -> int:
    """Write back snapshotted `<document>_status` / `_remark` values whose columns still exist."""
    keys = [key for key in DOCUMENT_KEYS if data.get(f"{key}_status") is not None]
    if not keys:
        return 0

    columns = await repository.get_application_columns(db)
    restored = 0
    for key in keys:
        if f"{key}_status" not in columns:
            continue
        await repository.update_document_status(
            db,
            application_id,
            key,
            data[f"{key}_status"],
            data.get(f"{key}_remark"),
            update_remark=f"{key}_remark" in columns,
        )
        restored += 1
    return restored


async def restore_application(
    db: AsyncSession, admin: CurrentUser, trash_id: int
) -> dict[str, Any]:
    """
    Reinstate a trashed application, under its original id when that id is free.

    Raises:
        TrashEntryNotFoundError: trash entry does not exist
        DuplicateApplicationError: the owner has since submitted another
            application, or drafted the same program again
    """
    entry = await repository.get_trash_entry(db, trash_id)
    if entry is None:
        raise TrashEntryNotFoundError(trash_id)

    is_draft = entry.status == ApplicationStatus.DRAFT.value
    if entry.user_id is not None:
        if is_draft and entry.program_name:
            if await repository.get_draft_for_program(db, entry.user_id, entry.program_name):
                raise DuplicateApplicationError(
                    f"User {entry.user_id} already has a draft for {entry.program_name}."
                )
        elif not is_draft and await repository.has_submitted_application(db, entry.user_id):
            raise DuplicateApplicationError(
                f"User {entry.user_id} already has a submitted application."
            )

    reuse_id = entry.original_id is not None and not await repository.exists(db, entry.original_id)
    application = await repository.restore_from_trash(
        db, entry, entry.original_id if reuse_id else None
    )

    await _restore_document_statuses(db, application.id, entry.data or {})

    for verified_file in (entry.data or {}).get("verified_files", []):
        file_key = verified_file.get("file_key")
        if is_document_key(file_key or ""):
            await repository.add_verified_file(
                db, application.id, file_key, verified_file.get("verified_by")
            )

    await repository.delete_trash_entry(db, entry)
    await log_activity(
        db,
        admin.id,
        admin.role,
        "restore_application",
        f"Restored trashed application {trash_id} (orig:{entry.original_id})",
    )
    await db.commit()

    logger.info(f"Trash entry {trash_id} restored as application {application.id}")
    return {
        "message": "Application restored",
        "application_id": application.id,
        "restored_with_original_id": reuse_id,
    }


async def delete_trashed_application(db: AsyncSession, admin: CurrentUser, trash_id: int) -> None:
    entry = await repository.get_trash_entry(db, trash_id)
    if entry is None:
        raise TrashEntryNotFoundError(trash_id)

    await repository.delete_trash_entry(db, entry)
    await log_activity(
        db,
        admin.id,
        admin.role,
        "permanently_delete_application",
        f"Permanently deleted trashed application {trash_id}",
    )
    await db.commit()
    logger.info(f"Trash entry {trash_id} permanently deleted")


async def purge_expired(db: AsyncSession, now: datetime | None = None) -> int:
    """
    Delete trash entries older than TRASH_RETENTION_DAYS.

    Returns:
        Number of entries removed (0 on a repeated run)
    """
    cutoff = (now or datetime.now(UTC)) - timedelta(days=settings.trash_retention_days)
    removed = await repository.purge_trash_before(db, cutoff)
    await db.commit()

    logger.info(f"Purged {removed} trashed application(s) deleted before {cutoff.isoformat()}")
    return removed
