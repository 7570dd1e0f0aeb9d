"""
Activity Log Repository
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.modules.activity_logs.models import ActivityLogEntry
from admissions.modules.users.models import User


def add_entry(
    db: AsyncSession,
    *,
    user_id: int,
    role: str,
    action: str,
    details: str | None,
) -> ActivityLogEntry:
    """Stage a log row in the current session. The caller commits."""
    entry = ActivityLogEntry(user_id=user_id, role=role, action=action, details=details)
    db.add(entry)
    return entry


async def list_with_users(db: AsyncSession, limit: int = 500) -> list[dict]:
    """Newest entries first, joined with the acting user's name and role."""
    query = (
        select(
            ActivityLogEntry.id,
            ActivityLogEntry.created_at,
            ActivityLogEntry.user_id,
            User.fullname.label("user"),
            User.role.label("user_role"),
            ActivityLogEntry.role,
            ActivityLogEntry.action,
            ActivityLogEntry.details,
        )
        .outerjoin(User, User.id == ActivityLogEntry.user_id)
        .order_by(ActivityLogEntry.created_at.desc(), ActivityLogEntry.id.desc())
        .limit(limit)
    )
    result = await db.execute(query)
    return [dict(row) for row in result.mappings().all()]
