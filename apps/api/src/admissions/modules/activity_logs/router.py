"""
Activity Log Router

Endpoints:
- GET /admin/activity-logs - Admin actions, newest first
- POST /admin/log - Record an action reported by the admin UI
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.auth import CurrentUser, get_current_admin_user
from admissions.core.database import get_db
from admissions.modules.activity_logs import service
from admissions.modules.activity_logs.schemas import (
    ActivityLogItem,
    ClientLogRequest,
    ClientLogResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/activity-logs", response_model=list[ActivityLogItem])
async def list_activity_logs(
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> list[ActivityLogItem]:
    try:
        rows = await service.list_activity_logs(db)
    except Exception as e:
        logger.exception(f"Error fetching activity logs: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "INTERNAL_ERROR",
                "message": "Server error fetching activity logs.",
            },
        ) from e

    return [
        ActivityLogItem(
            id=row["id"],
            created_at=row["created_at"],
            user_id=row["user_id"],
            user=row["user"],
            role=row["user_role"].value if row["user_role"] is not None else row["role"],
            action=row["action"],
            details=row["details"],
        )
        for row in rows
    ]


@router.post("/log", response_model=ClientLogResponse)
async def log_client_action(
    request: ClientLogRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> ClientLogResponse:
    try:
        logged = await service.log_activity(db, admin.id, admin.role, request.action, request.details)
        await db.commit()
    except Exception as e:
        logger.exception(f"Error logging client activity: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "INTERNAL_ERROR",
                "message": "Failed to log activity.",
            },
        ) from e

    return ClientLogResponse(message="Logged", logged=logged)
