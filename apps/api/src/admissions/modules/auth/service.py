"""
Auth Service Layer

Account creation, password login, single-session enforcement and password
resets.

Single active session:
- Every successful login or signup creates a fresh session id.
- The previous session registered for that user is destroyed server-side
  and the registry row is replaced, so only the newest login stays valid.
- Requests still carrying an older session id are rejected by
  SingleSessionMiddleware.

Password resets:
- Tokens are generated with secrets.token_urlsafe and emailed to the user
- Only the SHA-256 hash is stored; tokens expire after
  PASSWORD_RESET_EXPIRY_MINUTES (60)
- A successful reset deletes every outstanding token for the user and ends
  the user's current session
"""

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.config import settings
from admissions.core.email import send_password_reset
from admissions.core.security import generate_token, hash_password, hash_token, verify_password
from admissions.core.sessions import session_store
from admissions.modules.activity_logs.service import log_activity
from admissions.modules.auth import repository
from admissions.modules.users.models import User, UserRole
from admissions.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)


class AuthServiceError(Exception):
    """Base exception for auth service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class InvalidCredentialsError(AuthServiceError):
    def __init__(self):
        super().__init__(
            message="Invalid email or password.",
            error_code="INVALID_CREDENTIALS",
            status_code=401,
        )


class EmailAlreadyExistsError(AuthServiceError):
    def __init__(self):
        super().__init__(
            message="Email already exists.",
            error_code="EMAIL_EXISTS",
            status_code=409,
        )


class InvalidResetTokenError(AuthServiceError):
    def __init__(self, message: str = "Invalid or expired token."):
        super().__init__(
            message=message,
            error_code="INVALID_RESET_TOKEN",
            status_code=400,
        )


# ============================================
# Accounts
# ============================================


async def signup(db: AsyncSession, fullname: str, email: str, password: str) -> User:
    """
    Create an applicant account.

    Raises:
        EmailAlreadyExistsError: If the email is already registered
    """
    if await UserRepository.email_exists(db, email):
        logger.warning(f"Signup attempt with existing email: {email}")
        raise EmailAlreadyExistsError()

    return await UserRepository.create(
        db,
        email=email,
        password_hash=hash_password(password),
        fullname=fullname,
        role=UserRole.USER,
    )


async def authenticate(db: AsyncSession, email: str, password: str) -> User:
    """
    Check email and password.

    Raises:
        InvalidCredentialsError: Unknown email, wrong password, or an account
            without a password (external sign-in only)
    """
    user = await UserRepository.get_by_email(db, email)

    if not user:
        logger.warning(f"Login attempt for non-existent email: {email}")
        raise InvalidCredentialsError()

    if not verify_password(password, user.password_hash):
        logger.warning(f"Invalid password for user: {email}")
        raise InvalidCredentialsError()

    return user


# ============================================
# Sessions
# ============================================


async def establish_session(
    db: AsyncSession,
    user: User,
    current_session_id: str | None = None,
) -> str:
    """
    Start a new session for `user` and make it the only valid one.

    Any session previously registered for the user, and the session the
    request arrived with, are destroyed. The caller commits and sets the
    cookie.

    Returns:
        The new session id
    """
    new_session_id = await session_store.create({"user_id": user.id, "role": user.role.value})

    registered_session_id = await repository.get_registered_session_id(db, user.id)
    if registered_session_id and registered_session_id != new_session_id:
        await session_store.destroy(registered_session_id)
        logger.info(f"Ended previous session for user {user.id}")

    if current_session_id and current_session_id not in (registered_session_id, new_session_id):
        await session_store.destroy(current_session_id)

    await repository.register_session(db, user.id, new_session_id)
    return new_session_id


async def login(
    db: AsyncSession,
    email: str,
    password: str,
    current_session_id: str | None = None,
) -> tuple[User, str]:
    """
    Authenticate and start the user's single active session.

    Returns:
        Tuple of (user, new session id)
    """
    user = await authenticate(db, email, password)
    session_id = await establish_session(db, user, current_session_id)
    await log_activity(db, user.id, user.role.value, "login", "User logged in")
    await db.commit()

    logger.info(f"User logged in: {user.email} (role: {user.role.value})")
    return user, session_id


async def signup_and_login(
    db: AsyncSession,
    fullname: str,
    email: str,
    password: str,
    current_session_id: str | None = None,
) -> tuple[User, str]:
    user = await signup(db, fullname, email, password)
    session_id = await establish_session(db, user, current_session_id)
    await db.commit()

    logger.info(f"User signed up: {user.email}")
    return user, session_id


async def logout(db: AsyncSession, user_id: int | None, session_id: str | None) -> None:
    """Clear the user's registry row and destroy the session."""
    if user_id is not None:
        await repository.clear_session(db, user_id)
        await db.commit()

    if session_id:
        await session_store.destroy(session_id)

    logger.info(f"User {user_id} logged out")


# ============================================
# Password Reset
# ============================================


async def request_password_reset(db: AsyncSession, email: str) -> bool:
    """
    Create a reset token and email it.

    Unknown emails are ignored so the endpoint cannot be used to discover
    accounts.

    Returns:
        True if a reset email was sent
    """
    user = await UserRepository.get_by_email(db, email)
    if not user:
        logger.info(f"Password reset requested for unknown email: {email}")
        return False

    token = generate_token()
    expires_at = datetime.now(UTC) + timedelta(minutes=settings.password_reset_expiry_minutes)

    await repository.create_password_reset(
        db,
        user_id=user.id,
        token_hash=hash_token(token),
        expires_at=expires_at,
    )
    await log_activity(
        db, user.id, user.role.value, "forgot_password_email_sent", "Sent password reset email"
    )
    await db.commit()

    sent = await send_password_reset(user.email, user.fullname, token)
    if not sent:
        logger.error(f"Failed to send password reset email to user {user.id}")
    return sent


async def reset_password(db: AsyncSession, token: str, new_password: str) -> None:
    """
    Set a new password using an emailed reset token.

    Raises:
        InvalidResetTokenError: Unknown or expired token
    """
    reset = await repository.get_password_reset(db, hash_token(token))
    if reset is None:
        logger.warning("Password reset attempted with unknown token")
        raise InvalidResetTokenError()

    if reset.expires_at < datetime.now(UTC):
        logger.warning(f"Password reset attempted with expired token for user {reset.user_id}")
        await repository.delete_password_resets_for_user(db, reset.user_id)
        await db.commit()
        raise InvalidResetTokenError("Token has expired.")

    user = await UserRepository.get_by_id(db, reset.user_id)
    if user is None:
        raise InvalidResetTokenError()

    user.password_hash = hash_password(new_password)
    await repository.delete_password_resets_for_user(db, user.id)

    registered_session_id = await repository.get_registered_session_id(db, user.id)
    await repository.clear_session(db, user.id)
    await log_activity(db, user.id, user.role.value, "reset_password", "User reset password via token")
    await db.commit()

    if registered_session_id:
        await session_store.destroy(registered_session_id)

    logger.info(f"Password reset for user {user.id}")
