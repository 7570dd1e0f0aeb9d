"""
User Repository

Database operations for user accounts.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.modules.users.models import User, UserRole

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        password_hash: str | None,
        fullname: str | None = None,
        role: UserRole = UserRole.USER,
    ) -> User:
        """
        Create a new user record.

        Args:
            db: Database session
            email: User's email address (unique, stored lowercase)
            password_hash: Hashed password, or None for external sign-in
            fullname: Display name
            role: User's role

        Returns:
            Created User instance
        """
        user = User(
            email=email.lower(),
            password_hash=password_hash,
            fullname=fullname,
            role=role,
        )

        db.add(user)
        await db.flush()
        await db.refresh(user)

        logger.info(f"Created user: {user.id} - {user.email} ({user.role.value})")
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: int) -> User | None:
        return await db.get(User, user_id)

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> User | None:
        """Case-insensitive lookup by email address."""
        result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
        return result.scalar_one_or_none()

    @staticmethod
    async def email_exists(db: AsyncSession, email: str, exclude_user_id: int | None = None) -> bool:
        """
        Check if an email address is already registered.

        Args:
            db: Database session
            email: Email address to check
            exclude_user_id: Ignore this user (for profile updates)
        """
        user = await UserRepository.get_by_email(db, email)
        if user is None:
            return False
        return user.id != exclude_user_id

    @staticmethod
    async def is_admin(db: AsyncSession, user_id: int) -> bool:
        """True if the user exists and holds the admin role."""
        result = await db.execute(select(User.role).where(User.id == user_id))
        role = result.scalar_one_or_none()
        return role == UserRole.ADMIN
