"""
Applications Service Layer

Business logic for applicants: saving drafts, submitting applications and
reading their own records.

This module implements:
1. Draft Flow:
   - One Draft per (user, program); saving again for the same program
     updates it in place
   - Only the fields the client sent overwrite stored values; a new upload
     always replaces the stored file path

2. Submission Flow:
   - One non-Draft application per user (second submission -> Conflict)
   - A draft id converts that Draft to Pending, merging new fields and files
   - Required fields and documents are checked on the merged record before
     anything is written

3. Applicant Views:
   - Drafts and submitted applications, scoped to the caller

Admins cannot hold applications. Uploaded files are stored only after all
checks pass. The partial unique indexes on `applications` back the
one-application rules if two requests race.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from fastapi import UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.auth import CurrentUser
from admissions.core.storage import remove_upload, save_upload
from admissions.modules.applications import repository
from admissions.modules.applications.helpers import (
    application_to_dict,
    is_document_key,
    missing_requirements,
    verified_flags,
)
from admissions.modules.applications.models import Application, ApplicationStatus
from admissions.modules.applications.schemas import ApplicationFields

logger = logging.getLogger(__name__)


class ApplicationServiceError(Exception):
    """Base exception for application service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class ApplicationValidationError(ApplicationServiceError):
    """Raised when required input is missing or a value is not allowed."""

    def __init__(self, message: str, error_code: str = "VALIDATION_ERROR"):
        super().__init__(message=message, error_code=error_code, status_code=400)


class AdminCannotApplyError(ApplicationServiceError):
    """Raised when an admin account tries to draft or submit an application."""

    def __init__(self):
        super().__init__(
            message="Admins cannot submit applications.",
            error_code="ADMIN_CANNOT_APPLY",
            status_code=403,
        )


class ApplicationNotFoundError(ApplicationServiceError):
    """Raised when an application is not found."""

    def __init__(self, application_id: int | None = None):
        message = (
            f"Application {application_id} not found" if application_id else "Application not found"
        )
        super().__init__(
            message=message,
            error_code="APPLICATION_NOT_FOUND",
            status_code=404,
        )


class DraftNotFoundError(ApplicationServiceError):
    """Raised when a draft id does not resolve to a Draft owned by the caller."""

    def __init__(self, draft_id: int):
        super().__init__(
            message=f"Draft {draft_id} not found or not owned by user.",
            error_code="DRAFT_NOT_FOUND",
            status_code=404,
        )


class DuplicateApplicationError(ApplicationServiceError):
    """Raised when an operation would break the one-application rules."""

    def __init__(self, message: str = "Only one submitted application allowed per account."):
        super().__init__(
            message=message,
            error_code="DUPLICATE_APPLICATION",
            status_code=409,
        )


class InvalidApplicationStateError(ApplicationServiceError):
    """Raised when an application is in the wrong status for an operation."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="INVALID_APPLICATION_STATE",
            status_code=409,
        )


# ============================================
# Helpers
# ============================================


def _ensure_applicant(user: CurrentUser) -> None:
    if user.is_admin:
        logger.warning(f"Admin {user.id} attempted to draft or submit an application")
        raise AdminCannotApplyError()


def _store_files(files: Mapping[str, UploadFile]) -> dict[str, str]:
    """Save uploads for known document keys and return their stored paths."""
    paths: dict[str, str] = {}
    for key, upload in files.items():
        if not is_document_key(key) or upload is None or not upload.filename:
            continue
        paths[key] = save_upload(upload)
    return paths


def _validate_submission(values: Mapping[str, Any]) -> None:
    missing_fields, missing_documents = missing_requirements(values)
    if not missing_fields and not missing_documents:
        return

    parts = []
    if missing_fields:
        parts.append(f"missing fields: {', '.join(missing_fields)}")
    if missing_documents:
        parts.append(f"missing documents: {', '.join(missing_documents)}")
    raise ApplicationValidationError(
        f"Application is incomplete ({'; '.join(parts)}).",
        error_code="INCOMPLETE_APPLICATION",
    )


async def _commit_or_conflict(
    db: AsyncSession, message: str, stored_paths: Iterable[str] = ()
) -> None:
    """
    Commit; a unique-index violation means a concurrent request won.

    Uploads written for the losing request are removed, since no row refers to them.
    """
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"Uniqueness violation on commit: {e.orig}")
        for path in stored_paths:
            remove_upload(path)
        raise DuplicateApplicationError(message) from e


# ============================================
# Drafts
# ============================================


async def save_draft(
    db: AsyncSession,
    user: CurrentUser,
    fields: ApplicationFields,
    files: Mapping[str, UploadFile],
    draft_id: int | None = None,
) -> int:
    """
    Create or update a Draft.

    With `draft_id`, updates that draft. Otherwise updates the caller's
    draft for the same program, or creates one.

    Returns:
        The draft id

    Raises:
        AdminCannotApplyError: Caller is an admin
        DraftNotFoundError: draft_id is not a Draft owned by the caller
        ApplicationValidationError: Nothing to save, or no program for a new draft
        DuplicateApplicationError: A new draft while the user already has a
            submitted application, or a program already drafted
    """
    _ensure_applicant(user)
    values = fields.provided()

    if draft_id is not None:
        draft = await repository.get_owned(db, draft_id, user.id, ApplicationStatus.DRAFT)
        if draft is None:
            raise DraftNotFoundError(draft_id)

        if not values and not any(upload and upload.filename for upload in files.values()):
            raise ApplicationValidationError("No draft data provided.")

        new_program = values.get("program_name")
        if new_program and new_program != draft.program_name:
            other = await repository.get_draft_for_program(db, user.id, new_program)
            if other is not None and other.id != draft.id:
                raise DuplicateApplicationError(f"A draft for {new_program} already exists.")

        paths = _store_files(files)
        repository.apply_values(draft, {**values, **paths})
        await _commit_or_conflict(db, "A draft for this program already exists.", paths.values())
        logger.info(f"Updated draft {draft.id} for user {user.id}")
        return draft.id

    program_name = values.get("program_name")
    if not program_name:
        raise ApplicationValidationError("program_name is required to start a draft.")

    existing = await repository.get_draft_for_program(db, user.id, program_name)
    if existing is not None:
        paths = _store_files(files)
        repository.apply_values(existing, {**values, **paths})
        await _commit_or_conflict(db, "A draft for this program already exists.", paths.values())
        logger.info(f"Updated draft {existing.id} for user {user.id} ({program_name})")
        return existing.id

    if await repository.has_submitted_application(db, user.id):
        logger.warning(f"User {user.id} tried to start a draft after submitting")
        raise DuplicateApplicationError("Only one application allowed per account.")

    paths = _store_files(files)
    draft = await repository.create(
        db,
        user_id=user.id,
        status=ApplicationStatus.DRAFT,
        values={**values, **paths},
    )
    await _commit_or_conflict(db, "A draft for this program already exists.", paths.values())
    logger.info(f"Created draft {draft.id} for user {user.id} ({program_name})")
    return draft.id


async def list_drafts(db: AsyncSession, user: CurrentUser) -> list[Application]:
    return await repository.list_drafts(db, user.id)


async def get_draft(db: AsyncSession, user: CurrentUser, draft_id: int) -> Application:
    draft = await repository.get_owned(db, draft_id, user.id, ApplicationStatus.DRAFT)
    if draft is None:
        raise DraftNotFoundError(draft_id)
    return draft


async def delete_draft(db: AsyncSession, user: CurrentUser, draft_id: int) -> None:
    draft = await get_draft(db, user, draft_id)
    await repository.delete_application(db, draft)
    await db.commit()
    logger.info(f"Deleted draft {draft_id} for user {user.id}")


# ============================================
# Submission
# ============================================


async def submit_application(
    db: AsyncSession,
    user: CurrentUser,
    fields: ApplicationFields,
    files: Mapping[str, UploadFile],
    draft_id: int | None = None,
) -> int:
    """
    Submit an application for review (status Pending).

    Returns:
        The application id

    Raises:
        AdminCannotApplyError: Caller is an admin
        DraftNotFoundError: draft_id is not a Draft owned by the caller
        DuplicateApplicationError: The user already has a submitted application
        ApplicationValidationError: Required fields or documents missing
    """
    _ensure_applicant(user)
    values = fields.provided()
    uploaded_keys = {
        key: True for key, upload in files.items() if is_document_key(key) and upload and upload.filename
    }

    draft = None
    if draft_id is not None:
        draft = await repository.get_owned(db, draft_id, user.id, ApplicationStatus.DRAFT)
        if draft is None:
            raise DraftNotFoundError(draft_id)

    if await repository.has_submitted_application(db, user.id):
        logger.warning(f"Duplicate submission attempt by user {user.id}")
        raise DuplicateApplicationError()

    merged = {**(application_to_dict(draft) if draft else {}), **values, **uploaded_keys}
    _validate_submission(merged)

    paths = _store_files(files)

    if draft is not None:
        repository.apply_values(draft, {**values, **paths})
        await repository.update_status(db, draft, ApplicationStatus.PENDING)
        application = draft
    else:
        application = await repository.create(
            db,
            user_id=user.id,
            status=ApplicationStatus.PENDING,
            values={**values, **paths},
        )

    await _commit_or_conflict(
        db, "Only one submitted application allowed per account.", paths.values()
    )
    logger.info(f"User {user.id} submitted application {application.id} ({application.program_name})")
    return application.id


async def submit_draft(db: AsyncSession, user: CurrentUser, draft_id: int) -> int:
    """Submit a stored draft as-is."""
    return await submit_application(db, user, ApplicationFields(), {}, draft_id=draft_id)


# ============================================
# Applicant Views
# ============================================


async def list_my_applications(db: AsyncSession, user: CurrentUser) -> list[dict[str, Any]]:
    """The caller's submitted applications with per-document verified flags."""
    applications = await repository.list_submitted_for_user(db, user.id)
    verified = await repository.get_verified_keys_by_application(
        db, [application.id for application in applications]
    )
    return [
        {**application_to_dict(application), **verified_flags(verified.get(application.id, ()))}
        for application in applications
    ]


async def get_my_application(
    db: AsyncSession, user: CurrentUser, application_id: int
) -> dict[str, Any]:
    application = await repository.get_owned(db, application_id, user.id)
    if application is None or application.status == ApplicationStatus.DRAFT:
        raise ApplicationNotFoundError(application_id)

    verified = await repository.get_verified_keys(db, application.id)
    return {**application_to_dict(application), **verified_flags(verified)}
