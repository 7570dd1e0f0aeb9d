"""
Applications Admin Router

API endpoints for administrators to review applications.
All endpoints require a signed-in user with the admin role.

Endpoints:
- GET /admin/applications - List applications with verified flags
- GET /admin/dashboard-stats - Counts per status
- PUT /admin/applications/{id}/status - Set pending / accepted / rejected
- PUT /admin/applications/{id}/documents - Set a document's review status
- PUT /admin/applications/{id}/documents/{fileKey}/verify - Verify / unverify a document
- GET /admin/applications/{id}/documents/{documentName}/remark - Latest remark
- POST /admin/applications/{id}/documents/{documentName}/remark - Add a remark
- GET /admin/document-status-supported - Documents with a status column
- DELETE /admin/applications/{id} - Move to trash
- GET /admin/applications/trash - Trashed applications
- POST /admin/applications/trash/{id}/restore - Restore from trash
- DELETE /admin/applications/trash/{id} - Delete permanently

Security:
- Admin role checked on every request against the users table
- Document names are validated against the fixed whitelist
- Every state change is written to the activity log
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.auth import CurrentUser, get_current_admin_user
from admissions.core.database import get_db
from admissions.modules.applications import admin_service
from admissions.modules.applications.models import ApplicationStatus
from admissions.modules.applications.schemas import (
    ApplicationRecord,
    ApplicationWithVerification,
    DashboardStats,
    DocumentRemarkRequest,
    DocumentRemarkResponse,
    DocumentStatusUpdateRequest,
    MessageResponse,
    RestoreResponse,
    StatusUpdateRequest,
    StatusUpdateResponse,
    SupportedDocumentStatusResponse,
    TrashItem,
    TrashResponse,
    VerifyFileRequest,
)
from admissions.modules.applications.service import ApplicationServiceError

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Helper Functions
# ============================================


def _handle_service_error(e: ApplicationServiceError) -> None:
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


# ============================================
# List & Stats Endpoints
# ============================================


@router.get(
    "/applications",
    response_model=list[ApplicationWithVerification],
    summary="List Applications",
    description="""
All applications, newest first. Each row carries `<document>_verified`
flags for the 14 document keys.

**Access:** Admin only
""",
)
async def list_applications(
    status_filter: ApplicationStatus | None = Query(
        None, alias="status", description="Filter by application status"
    ),
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> list[ApplicationWithVerification]:
    try:
        rows = await admin_service.list_applications(db, status_filter)
    except Exception as e:
        raise _internal_error(e, "Error listing applications") from e

    logger.info(f"Admin {admin.id} listed applications: returned={len(rows)}")
    return [ApplicationWithVerification.model_validate(row) for row in rows]


@router.get("/dashboard-stats", response_model=DashboardStats, summary="Get Dashboard Statistics")
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> DashboardStats:
    try:
        stats = await admin_service.get_dashboard_stats(db)
    except Exception as e:
        raise _internal_error(e, "Error getting dashboard stats") from e

    return DashboardStats(**stats)


@router.get("/document-status-supported", response_model=SupportedDocumentStatusResponse)
async def get_supported_document_status_keys(
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> SupportedDocumentStatusResponse:
    try:
        supported = await admin_service.get_supported_document_status_keys(db)
    except Exception as e:
        raise _internal_error(e, "Error checking supported document status keys") from e

    return SupportedDocumentStatusResponse(supported=supported)


# ============================================
# Trash Endpoints
# ============================================
# Registered before /applications/{application_id} routes so "trash" is
# never parsed as an id.


@router.get("/applications/trash", response_model=list[TrashItem])
async def list_trash(
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> list[TrashItem]:
    try:
        entries = await admin_service.list_trash(db)
    except Exception as e:
        raise _internal_error(e, "Error fetching trashed applications") from e

    return [TrashItem.model_validate(entry) for entry in entries]


@router.post("/applications/trash/{trash_id}/restore", response_model=RestoreResponse)
async def restore_application(
    trash_id: int,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> RestoreResponse:
    try:
        result = await admin_service.restore_application(db, admin, trash_id)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, f"Error restoring trashed application {trash_id}") from e

    return RestoreResponse(**result)


@router.delete("/applications/trash/{trash_id}", response_model=MessageResponse)
async def delete_trashed_application(
    trash_id: int,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> MessageResponse:
    try:
        await admin_service.delete_trashed_application(db, admin, trash_id)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, f"Error permanently deleting trashed application {trash_id}") from e

    return MessageResponse(message="Trashed application permanently deleted")


@router.delete("/applications/{application_id}", response_model=TrashResponse)
async def trash_application(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> TrashResponse:
    try:
        result = await admin_service.trash_application(db, admin, application_id)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, f"Error moving application {application_id} to trash") from e

    return TrashResponse(**result)


# ============================================
# Review Endpoints
# ============================================


@router.put("/applications/{application_id}/status", response_model=StatusUpdateResponse)
async def update_application_status(
    application_id: int,
    request: StatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> StatusUpdateResponse:
    """
    Set the review status.

    Accepting verifies every uploaded document; rejecting removes all
    verifications; returning to pending resets per-document statuses.
    """
    try:
        row = await admin_service.set_application_status(db, admin, application_id, request.status)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, f"Error updating status of application {application_id}") from e

    return StatusUpdateResponse.model_validate(row)


@router.put("/applications/{application_id}/documents", response_model=ApplicationRecord)
async def update_document_status(
    application_id: int,
    request: DocumentStatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> ApplicationRecord:
    try:
        row = await admin_service.set_document_status(
            db,
            admin,
            application_id,
            request.document_name,
            request.status,
            request.remark,
        )
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, f"Error updating document status on {application_id}") from e

    return ApplicationRecord.model_validate(row)


@router.put(
    "/applications/{application_id}/documents/{file_key}/verify",
    response_model=ApplicationWithVerification,
)
async def verify_file(
    application_id: int,
    file_key: str,
    request: VerifyFileRequest | None = None,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> ApplicationWithVerification:
    """Verify (`verified: 1`, or no body) or unverify (`verified: 0`) one document."""
    verified = request.verified if request is not None else None

    try:
        row = await admin_service.toggle_file_verification(
            db, admin, application_id, file_key, verified
        )
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, f"Error verifying {file_key} on {application_id}") from e

    return ApplicationWithVerification.model_validate(row)


@router.get(
    "/applications/{application_id}/documents/{document_name}/remark",
    response_model=DocumentRemarkResponse,
)
async def get_document_remark(
    application_id: int,
    document_name: str,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> DocumentRemarkResponse:
    try:
        remark: dict[str, Any] = await admin_service.get_document_remark(
            db, application_id, document_name
        )
    except Exception as e:
        raise _internal_error(e, "Error fetching document remark") from e

    return DocumentRemarkResponse(**remark)


@router.post(
    "/applications/{application_id}/documents/{document_name}/remark",
    response_model=DocumentRemarkResponse,
)
async def add_document_remark(
    application_id: int,
    document_name: str,
    request: DocumentRemarkRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> DocumentRemarkResponse:
    try:
        remark = await admin_service.add_document_remark(
            db, admin, application_id, document_name, request.remark
        )
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "Error adding document remark") from e

    return DocumentRemarkResponse(**remark)
