"""
Auth Repository

Database operations for the session registry and password reset tokens.
"""

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.modules.auth.models import PasswordReset, UserSession

# ============================================
# Session Registry
# ============================================


async def get_registered_session_id(db: AsyncSession, user_id: int) -> str | None:
    result = await db.execute(select(UserSession.session_id).where(UserSession.user_id == user_id))
    return result.scalar_one_or_none()


async def register_session(db: AsyncSession, user_id: int, session_id: str) -> UserSession:
    """Insert or replace the user's current session id."""
    registered = await db.get(UserSession, user_id)
    if registered is None:
        registered = UserSession(user_id=user_id, session_id=session_id)
        db.add(registered)
    else:
        registered.session_id = session_id

    await db.flush()
    return registered


async def clear_session(db: AsyncSession, user_id: int) -> None:
    await db.execute(delete(UserSession).where(UserSession.user_id == user_id))


# ============================================
# Password Resets
# ============================================


async def create_password_reset(
    db: AsyncSession,
    *,
    user_id: int,
    token_hash: str,
    expires_at: datetime,
) -> PasswordReset:
    reset = PasswordReset(user_id=user_id, token=token_hash, expires_at=expires_at)
    db.add(reset)
    await db.flush()
    return reset


async def get_password_reset(db: AsyncSession, token_hash: str) -> PasswordReset | None:
    result = await db.execute(select(PasswordReset).where(PasswordReset.token == token_hash))
    return result.scalar_one_or_none()


async def delete_password_resets_for_user(db: AsyncSession, user_id: int) -> None:
    await db.execute(delete(PasswordReset).where(PasswordReset.user_id == user_id))
