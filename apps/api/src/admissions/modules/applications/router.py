"""
Applications Router

Applicant endpoints. All require a signed-in user (session cookie, or the
`x-user-id` header when enabled).

Endpoints:
- POST /submit_application - Submit an application (multipart)
- POST /submit_application/draft - Save progress as a draft (multipart)
- POST /submit_application/submit-draft - Submit a stored draft (JSON)
- GET /submit_application/drafts - The caller's drafts
- GET /submit_application/drafts/{id} - One draft
- DELETE /submit_application/drafts/{id} - Delete a draft
- GET /profile/applications - The caller's submitted applications
- GET /profile/applications/{id} - One submitted application

Multipart requests carry the applicant fields, an optional `draft_id` and
one file per document key; extra files under the same key are ignored.
"""

import logging
from dataclasses import dataclass

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from admissions.core.auth import CurrentUser, get_current_user
from admissions.core.database import get_db
from admissions.modules.applications import service
from admissions.modules.applications.helpers import (
    APPLICANT_FIELDS,
    DOCUMENT_KEYS,
    application_to_dict,
)
from admissions.modules.applications.schemas import (
    ApplicationFields,
    ApplicationRecord,
    ApplicationSubmittedResponse,
    ApplicationWithVerification,
    DraftSavedResponse,
    MessageResponse,
    SubmitDraftRequest,
)
from admissions.modules.applications.service import ApplicationServiceError

logger = logging.getLogger(__name__)

router = APIRouter()
profile_router = APIRouter()


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


def _bad_request(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": "VALIDATION_ERROR", "message": message},
    )


@dataclass
class ApplicationForm:
    fields: ApplicationFields
    files: dict[str, UploadFile]
    draft_id: int | None


async def parse_application_form(request: Request) -> ApplicationForm:
    """Read applicant fields, `draft_id` and the first file per document key."""
    form = await request.form()

    raw_fields = {}
    for name in APPLICANT_FIELDS:
        value = form.get(name)
        if isinstance(value, str):
            raw_fields[name] = value

    try:
        fields = ApplicationFields.model_validate(raw_fields)
    except ValidationError as e:
        raise _bad_request(f"Invalid application fields: {e.errors()[0]['msg']}") from e

    files: dict[str, UploadFile] = {}
    for key in DOCUMENT_KEYS:
        uploads = [item for item in form.getlist(key) if isinstance(item, UploadFile)]
        if uploads and uploads[0].filename:
            files[key] = uploads[0]

    draft_id = None
    raw_draft_id = form.get("draft_id")
    if isinstance(raw_draft_id, str) and raw_draft_id.strip():
        try:
            draft_id = int(raw_draft_id)
        except ValueError:
            raise _bad_request("draft_id must be an integer.") from None

    return ApplicationForm(fields=fields, files=files, draft_id=draft_id)


# ============================================
# Submission Endpoints
# ============================================


@router.post(
    "",
    response_model=ApplicationSubmittedResponse,
    summary="Submit Application",
    responses={
        400: {"description": "Missing required fields or documents"},
        401: {"description": "Not signed in"},
        403: {"description": "Admins cannot submit applications"},
        404: {"description": "Draft not found or not owned by user"},
        409: {"description": "User already has a submitted application"},
    },
)
async def submit_application(
    form: ApplicationForm = Depends(parse_application_form),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ApplicationSubmittedResponse:
    try:
        application_id = await service.submit_application(
            db, user, form.fields, form.files, draft_id=form.draft_id
        )
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "Error submitting application") from e

    message = (
        "Draft submitted successfully" if form.draft_id else "Application submitted successfully!"
    )
    return ApplicationSubmittedResponse(message=message, application_id=application_id)


@router.post(
    "/draft",
    response_model=DraftSavedResponse,
    summary="Save Draft",
    responses={
        400: {"description": "No draft data, or no program for a new draft"},
        401: {"description": "Not signed in"},
        403: {"description": "Admins cannot submit applications"},
        404: {"description": "Draft not found or not owned by user"},
        409: {"description": "User already has a submitted application"},
    },
)
async def save_draft(
    form: ApplicationForm = Depends(parse_application_form),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> DraftSavedResponse:
    try:
        draft_id = await service.save_draft(
            db, user, form.fields, form.files, draft_id=form.draft_id
        )
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "Error saving draft") from e

    message = "Draft updated" if form.draft_id else "Draft saved"
    return DraftSavedResponse(message=message, draft_id=draft_id)


@router.post("/submit-draft", response_model=ApplicationSubmittedResponse)
async def submit_draft(
    request: SubmitDraftRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ApplicationSubmittedResponse:
    try:
        application_id = await service.submit_draft(db, user, request.draft_id)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "Error submitting draft") from e

    return ApplicationSubmittedResponse(
        message="Draft submitted successfully", application_id=application_id
    )


# ============================================
# Draft Endpoints
# ============================================


@router.get("/drafts", response_model=list[ApplicationRecord])
async def list_drafts(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[ApplicationRecord]:
    drafts = await service.list_drafts(db, user)
    return [ApplicationRecord.model_validate(application_to_dict(draft)) for draft in drafts]


@router.get("/drafts/{draft_id}", response_model=ApplicationRecord)
async def get_draft(
    draft_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ApplicationRecord:
    try:
        draft = await service.get_draft(db, user, draft_id)
    except ApplicationServiceError as e:
        _handle_service_error(e)

    return ApplicationRecord.model_validate(application_to_dict(draft))


@router.delete("/drafts/{draft_id}", response_model=MessageResponse)
async def delete_draft(
    draft_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> MessageResponse:
    try:
        await service.delete_draft(db, user, draft_id)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "Error deleting draft") from e

    return MessageResponse(message="Draft deleted")


# ============================================
# Applicant Profile Endpoints
# ============================================


@profile_router.get("/applications", response_model=list[ApplicationWithVerification])
async def list_my_applications(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[ApplicationWithVerification]:
    rows = await service.list_my_applications(db, user)
    return [ApplicationWithVerification.model_validate(row) for row in rows]


@profile_router.get("/applications/{application_id}", response_model=ApplicationWithVerification)
async def get_my_application(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ApplicationWithVerification:
    try:
        row = await service.get_my_application(db, user, application_id)
    except ApplicationServiceError as e:
        _handle_service_error(e)

    return ApplicationWithVerification.model_validate(row)
