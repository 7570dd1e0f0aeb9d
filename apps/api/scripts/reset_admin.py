"""
Reset Built-in Admin User

Creates the admin account from ADMIN_EMAIL / ADMIN_PASSWORD, or resets the
password and role of an existing account with that email.

Usage:
    cd apps/api
    python scripts/reset_admin.py
"""

import asyncio
import sys
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from admissions.core.config import settings
from admissions.core.database import async_session_maker, close_db
from admissions.core.security import hash_password
from admissions.modules.users.models import UserRole
from admissions.modules.users.repository import UserRepository


async def reset_admin() -> None:
    """Create or reset the built-in admin user."""
    email = settings.admin_email.lower()

    async with async_session_maker() as db:
        user = await UserRepository.get_by_email(db, email)

        if user is None:
            user = await UserRepository.create(
                db,
                email=email,
                password_hash=hash_password(settings.admin_password),
                fullname="Administrator",
                role=UserRole.ADMIN,
            )
            await db.commit()
            print("Admin created successfully!")
        else:
            user.password_hash = hash_password(settings.admin_password)
            user.role = UserRole.ADMIN
            await db.commit()
            print("Admin password reset.")

        print(f"  Email: {user.email}")
        print(f"  ID: {user.id}")

    await close_db()


if __name__ == "__main__":
    asyncio.run(reset_admin())
