"""
Admin Profile Router

Endpoints:
- GET /admin/profile - The signed-in admin's profile
- PUT /admin/profile - Update name, email, password and picture (multipart)
"""

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.auth import CurrentUser, get_current_admin_user
from admissions.core.config import settings
from admissions.core.database import get_db
from admissions.modules.users import service
from admissions.modules.users.models import User
from admissions.modules.users.schemas import AdminProfileResponse, AdminProfileUpdateResponse
from admissions.modules.users.service import ProfileServiceError

logger = logging.getLogger(__name__)

router = APIRouter()


def _handle_service_error(e: ProfileServiceError) -> None:
    raise HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": e.message,
        },
    )


def _to_response(request: Request, user: User) -> AdminProfileResponse:
    picture = user.profile_picture or f"{settings.upload_dir}/profile/default.png"
    return AdminProfileResponse(
        id=user.id,
        fullname=user.fullname,
        email=user.email,
        profile_picture=f"{str(request.base_url).rstrip('/')}/{picture}",
    )


@router.get("/profile", response_model=AdminProfileResponse)
async def get_profile(
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> AdminProfileResponse:
    try:
        user = await service.get_profile(db, admin.id)
    except ProfileServiceError as e:
        _handle_service_error(e)

    return _to_response(request, user)


@router.put("/profile", response_model=AdminProfileUpdateResponse)
async def update_profile(
    request: Request,
    fullname: str | None = Form(None),
    email: str | None = Form(None),
    password: str | None = Form(None),
    profile_picture: UploadFile | None = File(None),
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> AdminProfileUpdateResponse:
    try:
        user = await service.update_profile(
            db,
            admin.id,
            fullname=fullname,
            email=email,
            password=password,
            profile_picture=profile_picture,
        )
    except ProfileServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error updating admin profile: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "INTERNAL_ERROR",
                "message": "An unexpected error occurred.",
            },
        ) from e

    return AdminProfileUpdateResponse(
        message="Profile updated successfully!",
        user=_to_response(request, user),
    )
