"""
Authentication and Authorization Module

FastAPI dependencies resolving the calling user.

Identity comes from the server-side session resolved by the session
middleware (`request.state.user_id`). When no session is present and
ALLOW_USER_ID_HEADER is enabled, the `x-user-id` request header is accepted
as the user id.

SECURITY NOTE:
- The `x-user-id` fallback trusts the client. Disable it (ALLOW_USER_ID_HEADER=false)
  on any deployment reachable by untrusted clients.
- The user row is always re-read from the database, so role changes take
  effect on the next request.
"""

import logging
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.config import settings
from admissions.core.database import get_db
from admissions.modules.users.models import UserRole
from admissions.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

USER_ID_HEADER = "x-user-id"


@dataclass
class CurrentUser:
    """
    The authenticated caller, populated from the users table.

    Attributes:
        id: User id
        email: User's email address
        role: "admin" or "user"
        fullname: Display name (optional)
    """

    id: int
    email: str
    role: str
    fullname: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def __str__(self) -> str:
        return f"CurrentUser(id={self.id}, email={self.email}, role={self.role})"


def _unauthorized(message: str = "Authentication required.") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={
            "error": "NOT_AUTHENTICATED",
            "message": message,
        },
    )


def resolve_user_id(request: Request) -> int | None:
    """
    Pick the caller's user id: session first, then the `x-user-id` header.

    Raises:
        HTTPException 401: If the header is present but not an integer id
    """
    session_user_id = getattr(request.state, "user_id", None)
    if session_user_id is not None:
        return session_user_id

    if not settings.allow_user_id_header:
        return None

    header_value = request.headers.get(USER_ID_HEADER)
    if not header_value:
        return None

    try:
        return int(header_value)
    except ValueError:
        logger.warning(f"Rejected malformed {USER_ID_HEADER} header: {header_value!r}")
        raise _unauthorized("Invalid user id.") from None


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """
    FastAPI dependency returning the authenticated user.

    Raises:
        HTTPException 401: If no identity is present or the user does not exist
    """
    user_id = resolve_user_id(request)
    if user_id is None:
        raise _unauthorized()

    user = await UserRepository.get_by_id(db, user_id)
    if user is None:
        logger.warning(f"Request identified as unknown user {user_id}")
        raise _unauthorized("Unknown user.")

    return CurrentUser(
        id=user.id,
        email=user.email,
        role=user.role.value,
        fullname=user.fullname,
    )


async def get_current_admin_user(
    user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """
    FastAPI dependency requiring the admin role.

    Raises:
        HTTPException 401: If not authenticated
        HTTPException 403: If the user is not an admin
    """
    if not user.is_admin:
        logger.warning(
            f"Access denied: User {user.id} ({user.email}) has role '{user.role}', "
            "but 'admin' is required"
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "ADMIN_ACCESS_REQUIRED",
                "message": "Admin access is required for this endpoint.",
            },
        )

    logger.debug(f"Authenticated admin: {user.id} ({user.email})")
    return user


__all__ = [
    "CurrentUser",
    "get_current_admin_user",
    "get_current_user",
    "resolve_user_id",
]
