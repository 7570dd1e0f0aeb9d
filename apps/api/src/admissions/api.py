from fastapi import APIRouter

from admissions.modules.activity_logs import router as activity_logs_router
from admissions.modules.applications import admin_router as admin_applications_router
from admissions.modules.applications import profile_router as applicant_profile_router
from admissions.modules.applications import router as applications_router
from admissions.modules.auth import router as auth_router
from admissions.modules.users.router import router as admin_profile_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(
    applications_router, prefix="/submit_application", tags=["Applications"]
)

api_router.include_router(
    applicant_profile_router, prefix="/profile", tags=["Applicant Profile"]
)

api_router.include_router(
    admin_applications_router,
    prefix="/admin",
    tags=["Admin - Applications"],
)

api_router.include_router(
    activity_logs_router,
    prefix="/admin",
    tags=["Admin - Activity Logs"],
)

api_router.include_router(
    admin_profile_router,
    prefix="/admin",
    tags=["Admin - Profile"],
)
