"""
Activity Log Service

Records administrative actions. Only admins are logged: entries claiming
any other role, or made for a user id that is not an admin in the users
table, are dropped with a warning. Entries join the caller's transaction
and are written when the caller commits.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.modules.activity_logs import repository
from admissions.modules.users.models import UserRole
from admissions.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)


async def log_activity(
    db: AsyncSession,
    user_id: int | None,
    role: str | None,
    action: str,
    details: str | None = None,
) -> bool:
    """
    Record an admin action.

    Args:
        db: Database session of the calling operation
        user_id: Acting user
        role: Role claimed by the caller
        action: Short action name, e.g. "trash_application"
        details: Free-text description

    Returns:
        True if the entry was staged, False if it was skipped
    """
    if str(role).lower() != UserRole.ADMIN.value:
        logger.debug(f"Skipping activity log for non-admin role {role!r}: {action}")
        return False

    if not user_id:
        logger.warning(f"Admin action {action!r} logged without user_id; skipping")
        return False

    if not await UserRepository.is_admin(db, user_id):
        logger.warning(f"User {user_id} is not an admin; skipping activity log {action!r}")
        return False

    try:
        async with db.begin_nested():
            repository.add_entry(
                db,
                user_id=user_id,
                role=UserRole.ADMIN.value,
                action=action,
                details=details,
            )
    except SQLAlchemyError as e:
        logger.error(f"Failed to record activity {action!r} for user {user_id}: {e}")
        return False

    return True


async def list_activity_logs(db: AsyncSession) -> list[dict]:
    return await repository.list_with_users(db)
