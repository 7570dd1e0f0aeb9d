"""
Authentication Router

Endpoints:
- POST /auth/signup - Create an applicant account and sign in
- POST /auth/login - Sign in (ends any other session of the same user)
- POST /auth/logout - Sign out
- GET /auth/me - Current user
- POST /auth/forgot-password - Email a password reset link
- POST /auth/reset-password - Set a new password with a reset token
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.auth import CurrentUser, get_current_user
from admissions.core.database import get_db
from admissions.core.rate_limit import enforce_rate_limit
from admissions.core.sessions import clear_session_cookie, set_session_cookie
from admissions.modules.auth import service
from admissions.modules.auth.schemas import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    ResetPasswordRequest,
    SignupRequest,
    UserResponse,
)
from admissions.modules.auth.service import AuthServiceError

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_LOGIN = (10, 60)  # 10 attempts per minute per IP
RATE_LIMIT_FORGOT_PASSWORD = (5, 60 * 15)  # 5 requests per 15 minutes per IP


def _handle_service_error(e: AuthServiceError) -> None:
    """Convert service errors to HTTPExceptions."""
    raise HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": e.message,
        },
    )


def _internal_error(e: Exception, message: str) -> HTTPException:
    logger.exception(f"{message}: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    payload: SignupRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    """Create an applicant account and sign the new user in."""
    try:
        user, session_id = await service.signup_and_login(
            db,
            payload.fullname,
            payload.email,
            payload.password,
            current_session_id=getattr(request.state, "session_id", None),
        )
    except AuthServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "Error during signup") from e

    set_session_cookie(response, session_id)
    return AuthResponse(
        message="Signup successful!",
        user=UserResponse(
            id=user.id,
            fullname=user.fullname,
            email=user.email,
            role=user.role.value,
            profile_picture=user.profile_picture,
        ),
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: LoginRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    """
    Authenticate with email and password.

    Raises:
        HTTPException 401: Invalid credentials
        HTTPException 429: Too many attempts
    """
    await enforce_rate_limit(request, "login", *RATE_LIMIT_LOGIN)

    try:
        user, session_id = await service.login(
            db,
            credentials.email,
            credentials.password,
            current_session_id=getattr(request.state, "session_id", None),
        )
    except AuthServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "Error during login") from e

    set_session_cookie(response, session_id)
    return AuthResponse(
        message="Login successful",
        user=UserResponse(
            id=user.id,
            fullname=user.fullname,
            email=user.email,
            role=user.role.value,
            profile_picture=user.profile_picture,
        ),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    try:
        await service.logout(
            db,
            getattr(request.state, "user_id", None),
            getattr(request.state, "session_id", None),
        )
    except Exception as e:
        raise _internal_error(e, "Error during logout") from e

    clear_session_cookie(response)
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserResponse)
async def me(user: CurrentUser = Depends(get_current_user)) -> UserResponse:
    return UserResponse(id=user.id, fullname=user.fullname, email=user.email, role=user.role)


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    payload: ForgotPasswordRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Always answers the same way whether or not the email is registered."""
    await enforce_rate_limit(request, "forgot_password", *RATE_LIMIT_FORGOT_PASSWORD)

    try:
        await service.request_password_reset(db, payload.email)
    except Exception as e:
        raise _internal_error(e, "Error during forgot-password") from e

    return MessageResponse(
        message="If that email is registered, a password reset link has been sent."
    )


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    payload: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    try:
        await service.reset_password(db, payload.token, payload.new_password)
    except AuthServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "Error during password reset") from e

    return MessageResponse(message="Password successfully updated!")
