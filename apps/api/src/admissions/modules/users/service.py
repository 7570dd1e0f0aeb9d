"""
Admin Profile Service

Reads and updates the signed-in admin's own account.
"""

import logging

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.security import hash_password
from admissions.core.storage import save_upload
from admissions.modules.activity_logs.service import log_activity
from admissions.modules.users.models import User
from admissions.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

PROFILE_UPLOAD_SUBDIR = "profile"


class ProfileServiceError(Exception):
    """Base exception for profile service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


async def get_profile(db: AsyncSession, user_id: int) -> User:
    user = await UserRepository.get_by_id(db, user_id)
    if user is None:
        raise ProfileServiceError("Admin not found.", "USER_NOT_FOUND", 404)
    return user


async def update_profile(
    db: AsyncSession,
    user_id: int,
    *,
    fullname: str | None,
    email: str | None,
    password: str | None = None,
    profile_picture: UploadFile | None = None,
) -> User:
    """
    Update name, email, and optionally password and picture.

    Raises:
        ProfileServiceError 400: fullname or email missing
        ProfileServiceError 404: user not found
        ProfileServiceError 409: email belongs to another account
    """
    fullname = (fullname or "").strip()
    email = (email or "").strip()
    if not fullname or not email:
        raise ProfileServiceError("Fullname and email required.", "VALIDATION_ERROR", 400)

    user = await get_profile(db, user_id)

    if await UserRepository.email_exists(db, email, exclude_user_id=user.id):
        raise ProfileServiceError("Email already in use.", "EMAIL_EXISTS", 409)

    user.fullname = fullname
    user.email = email.lower()

    if password and password.strip():
        user.password_hash = hash_password(password)

    if profile_picture is not None and profile_picture.filename:
        user.profile_picture = save_upload(profile_picture, subdir=PROFILE_UPLOAD_SUBDIR)

    await log_activity(db, user.id, user.role.value, "update_profile", "Admin updated profile settings")
    await db.commit()
    await db.refresh(user)

    logger.info(f"Admin {user.id} updated profile")
    return user
