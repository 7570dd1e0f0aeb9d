"""
Applications Repository

Database operations for applications, verified files, document remarks and
the trash table. Functions stage changes with `flush`; the service layer
owns the transaction and commits.

Design Principles:
- All queries are parameterized; dynamic `<document>_status` column names
  are only built from the fixed document whitelist
- Single responsibility - only database operations, no business logic
- Timezone-aware datetime handling (UTC)
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from sqlalchemy import case, column, delete, func, inspect, select, table, text, update
from sqlalchemy.ext.asyncio import AsyncSession

from .helpers import APPLICANT_FIELDS, DOCUMENT_KEYS, is_document_key
from .models import (
    Application,
    ApplicationStatus,
    DocumentRemark,
    TrashedApplication,
    VerifiedFile,
)

# ============================================
# Applications
# ============================================


async def get_by_id(db: AsyncSession, id: int) -> Application | None:
    """Get application by ID."""
    return await db.get(Application, id)


async def exists(db: AsyncSession, id: int) -> bool:
    result = await db.execute(select(Application.id).where(Application.id == id))
    return result.scalar_one_or_none() is not None


async def get_owned(
    db: AsyncSession,
    id: int,
    user_id: int,
    status: ApplicationStatus | None = None,
) -> Application | None:
    """Get an application only if it belongs to `user_id` (and has `status`, if given)."""
    query = select(Application).where(Application.id == id, Application.user_id == user_id)
    if status is not None:
        query = query.where(Application.status == status)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_draft_for_program(
    db: AsyncSession, user_id: int, program_name: str
) -> Application | None:
    result = await db.execute(
        select(Application)
        .where(
            Application.user_id == user_id,
            Application.program_name == program_name,
            Application.status == ApplicationStatus.DRAFT,
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def has_submitted_application(db: AsyncSession, user_id: int) -> bool:
    """True if the user holds any non-Draft application."""
    result = await db.execute(
        select(Application.id)
        .where(
            Application.user_id == user_id,
            Application.status != ApplicationStatus.DRAFT,
        )
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


def apply_values(application: Application, values: dict[str, Any]) -> None:
    """Copy applicant fields and document paths onto an application."""
    for key, value in values.items():
        if key in APPLICANT_FIELDS or is_document_key(key):
            setattr(application, key, value)


async def create(
    db: AsyncSession,
    *,
    user_id: int,
    status: ApplicationStatus,
    values: dict[str, Any],
) -> Application:
    """Create a new application."""
    application = Application(user_id=user_id, status=status)
    apply_values(application, values)

    db.add(application)
    await db.flush()
    await db.refresh(application)
    return application


async def delete_application(db: AsyncSession, application: Application) -> None:
    await db.delete(application)
    await db.flush()


async def list_drafts(db: AsyncSession, user_id: int) -> list[Application]:
    result = await db.execute(
        select(Application)
        .where(Application.user_id == user_id, Application.status == ApplicationStatus.DRAFT)
        .order_by(Application.updated_at.desc())
    )
    return list(result.scalars().all())


async def list_submitted_for_user(db: AsyncSession, user_id: int) -> list[Application]:
    result = await db.execute(
        select(Application)
        .where(Application.user_id == user_id, Application.status != ApplicationStatus.DRAFT)
        .order_by(Application.created_at.desc())
    )
    return list(result.scalars().all())


async def list_all(
    db: AsyncSession, status: ApplicationStatus | None = None
) -> list[Application]:
    """All applications, newest first."""
    query = select(Application)
    if status is not None:
        query = query.where(Application.status == status)
    query = query.order_by(Application.created_at.desc(), Application.id.desc())

    result = await db.execute(query)
    return list(result.scalars().all())


# ============================================
# Status State Machine
# ============================================

# Drafts leave Draft only through submission. Reviewed applications can be
# moved between the three review states.
VALID_STATUS_TRANSITIONS: dict[ApplicationStatus, set[ApplicationStatus]] = {
    ApplicationStatus.DRAFT: {ApplicationStatus.PENDING},
    ApplicationStatus.PENDING: {ApplicationStatus.ACCEPTED, ApplicationStatus.REJECTED},
    ApplicationStatus.ACCEPTED: {ApplicationStatus.PENDING, ApplicationStatus.REJECTED},
    ApplicationStatus.REJECTED: {ApplicationStatus.PENDING, ApplicationStatus.ACCEPTED},
}


class InvalidStatusTransitionError(ValueError):
    """Raised when an invalid status transition is attempted."""

    def __init__(
        self,
        current_status: ApplicationStatus,
        new_status: ApplicationStatus,
    ):
        self.current_status = current_status
        self.new_status = new_status
        valid_transitions = VALID_STATUS_TRANSITIONS.get(current_status, set())
        super().__init__(
            f"Invalid status transition: {current_status.value} -> {new_status.value}. "
            f"Valid transitions: {sorted(s.value for s in valid_transitions)}"
        )


def is_valid_transition(current: ApplicationStatus, new: ApplicationStatus) -> bool:
    return new == current or new in VALID_STATUS_TRANSITIONS.get(current, set())


async def update_status(
    db: AsyncSession,
    application: Application,
    status: ApplicationStatus,
) -> Application:
    """
    Set an application's status.

    Raises:
        InvalidStatusTransitionError: If the state machine forbids the change
    """
    if not is_valid_transition(application.status, status):
        raise InvalidStatusTransitionError(application.status, status)

    application.status = status
    await db.flush()
    return application


async def get_dashboard_stats(db: AsyncSession) -> dict:
    """Counts per status, overall total and trash size."""
    status_counts_query = select(
        func.count(case((Application.status == ApplicationStatus.DRAFT, 1))).label("draft"),
        func.count(case((Application.status == ApplicationStatus.PENDING, 1))).label("pending"),
        func.count(case((Application.status == ApplicationStatus.ACCEPTED, 1))).label("accepted"),
        func.count(case((Application.status == ApplicationStatus.REJECTED, 1))).label("rejected"),
        func.count(Application.id).label("total"),
    )
    status_row = (await db.execute(status_counts_query)).one()

    trashed = (await db.execute(select(func.count(TrashedApplication.id)))).scalar() or 0

    return {
        "draft": status_row.draft,
        "pending": status_row.pending,
        "accepted": status_row.accepted,
        "rejected": status_row.rejected,
        # Drafts are not applications yet
        "total": status_row.total - status_row.draft,
        "trashed": trashed,
    }


# ============================================
# Per-Document Status Columns
# ============================================

_applications_table_name = Application.__tablename__


async def get_application_columns(db: AsyncSession) -> set[str]:
    """Column names currently present on the applications table."""

    def _columns(sync_session) -> set[str]:
        inspector = inspect(sync_session.connection())
        return {col["name"] for col in inspector.get_columns(_applications_table_name)}

    return await db.run_sync(_columns)


async def get_application_row(db: AsyncSession, id: int) -> dict[str, Any] | None:
    """
    Raw applications row, including columns the ORM model does not map
    (e.g. `<document>_status` columns added by later migrations).
    """
    result = await db.execute(
        text(f"SELECT * FROM {_applications_table_name} WHERE id = :id"), {"id": id}
    )
    row = result.mappings().first()
    return dict(row) if row is not None else None


async def update_document_status(
    db: AsyncSession,
    id: int,
    document_name: str,
    status: str,
    remark: str | None = None,
    *,
    update_remark: bool = True,
) -> int:
    """
    Write `<document>_status` (and `<document>_remark`) for one application.

    Returns:
        Number of rows updated

    Raises:
        ValueError: If document_name is not a known document key
    """
    if not is_document_key(document_name):
        raise ValueError(f"Unknown document key: {document_name}")

    status_column = f"{document_name}_status"
    remark_column = f"{document_name}_remark"

    values: dict[str, Any] = {status_column: status}
    columns = [column("id"), column(status_column)]
    if update_remark:
        values[remark_column] = remark
        columns.append(column(remark_column))

    applications = table(_applications_table_name, *columns)
    result = await db.execute(update(applications).where(applications.c.id == id).values(**values))
    return result.rowcount


# ============================================
# Verified Files
# ============================================


async def get_verified_files(db: AsyncSession, application_id: int) -> list[VerifiedFile]:
    result = await db.execute(
        select(VerifiedFile)
        .where(VerifiedFile.application_id == application_id)
        .order_by(VerifiedFile.file_key)
    )
    return list(result.scalars().all())


async def get_verified_keys(db: AsyncSession, application_id: int) -> set[str]:
    result = await db.execute(
        select(VerifiedFile.file_key).where(VerifiedFile.application_id == application_id)
    )
    return set(result.scalars().all())


async def get_verified_keys_by_application(
    db: AsyncSession, application_ids: Iterable[int]
) -> dict[int, set[str]]:
    ids = list(application_ids)
    if not ids:
        return {}

    result = await db.execute(
        select(VerifiedFile.application_id, VerifiedFile.file_key).where(
            VerifiedFile.application_id.in_(ids)
        )
    )
    verified: dict[int, set[str]] = {}
    for application_id, file_key in result.all():
        verified.setdefault(application_id, set()).add(file_key)
    return verified


async def add_verified_file(
    db: AsyncSession, application_id: int, file_key: str, verified_by: int | None
) -> bool:
    """
    Mark a document verified.

    Returns:
        True if a row was inserted, False if it was already verified
    """
    existing = await db.execute(
        select(VerifiedFile.id).where(
            VerifiedFile.application_id == application_id,
            VerifiedFile.file_key == file_key,
        )
    )
    if existing.scalar_one_or_none() is not None:
        return False

    db.add(VerifiedFile(application_id=application_id, file_key=file_key, verified_by=verified_by))
    await db.flush()
    return True


async def remove_verified_file(db: AsyncSession, application_id: int, file_key: str) -> bool:
    """Returns True if a verification row was removed."""
    result = await db.execute(
        delete(VerifiedFile).where(
            VerifiedFile.application_id == application_id,
            VerifiedFile.file_key == file_key,
        )
    )
    return result.rowcount > 0


async def remove_all_verified_files(db: AsyncSession, application_id: int) -> int:
    result = await db.execute(
        delete(VerifiedFile).where(VerifiedFile.application_id == application_id)
    )
    return result.rowcount


async def verify_files(
    db: AsyncSession,
    application_id: int,
    file_keys: Iterable[str],
    verified_by: int | None,
) -> int:
    """Verify every key in `file_keys`. Returns how many were newly verified."""
    already_verified = await get_verified_keys(db, application_id)
    added = 0
    for file_key in file_keys:
        if file_key in already_verified or not is_document_key(file_key):
            continue
        db.add(
            VerifiedFile(application_id=application_id, file_key=file_key, verified_by=verified_by)
        )
        already_verified.add(file_key)
        added += 1

    if added:
        await db.flush()
    return added


# ============================================
# Document Remarks
# ============================================


async def add_document_remark(
    db: AsyncSession,
    *,
    application_id: int,
    document_name: str,
    remark: str,
    created_by: int | None,
) -> DocumentRemark:
    entry = DocumentRemark(
        application_id=application_id,
        document_name=document_name,
        remark=remark,
        created_by=created_by,
    )
    db.add(entry)
    await db.flush()
    await db.refresh(entry)
    return entry


async def get_latest_document_remark(
    db: AsyncSession, application_id: int, document_name: str
) -> DocumentRemark | None:
    result = await db.execute(
        select(DocumentRemark)
        .where(
            DocumentRemark.application_id == application_id,
            DocumentRemark.document_name == document_name,
        )
        .order_by(DocumentRemark.created_at.desc(), DocumentRemark.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


# ============================================
# Trash
# ============================================

_SNAPSHOT_COLUMNS = (*APPLICANT_FIELDS, *DOCUMENT_KEYS, "resume_status", "resume_remark")


async def create_trash_entry(
    db: AsyncSession,
    application: Application,
    snapshot: dict[str, Any],
) -> TrashedApplication:
    """Copy an application into the trash table. The original is left in place."""
    entry = TrashedApplication(
        original_id=application.id,
        user_id=application.user_id,
        status=application.status.value,
        created_at=application.created_at,
        updated_at=application.updated_at,
        data=snapshot,
    )
    for name in _SNAPSHOT_COLUMNS:
        setattr(entry, name, getattr(application, name))

    db.add(entry)
    await db.flush()
    return entry


async def list_trash(db: AsyncSession) -> list[TrashedApplication]:
    result = await db.execute(
        select(TrashedApplication).order_by(
            TrashedApplication.deleted_at.desc(), TrashedApplication.id.desc()
        )
    )
    return list(result.scalars().all())


async def get_trash_entry(db: AsyncSession, trash_id: int) -> TrashedApplication | None:
    return await db.get(TrashedApplication, trash_id)


async def delete_trash_entry(db: AsyncSession, entry: TrashedApplication) -> None:
    await db.delete(entry)
    await db.flush()


async def restore_from_trash(
    db: AsyncSession,
    entry: TrashedApplication,
    application_id: int | None,
) -> Application:
    """
    Re-create an application from a trash entry.

    Args:
        application_id: Id to restore under, or None to let the database assign one
    """
    application = Application(
        user_id=entry.user_id,
        status=ApplicationStatus(entry.status or ApplicationStatus.PENDING.value),
    )
    if application_id is not None:
        application.id = application_id
    if entry.created_at is not None:
        application.created_at = entry.created_at
    for name in _SNAPSHOT_COLUMNS:
        setattr(application, name, getattr(entry, name))

    db.add(application)
    await db.flush()
    await db.refresh(application)
    return application


async def purge_trash_before(db: AsyncSession, cutoff: datetime) -> int:
    """Delete trash entries deleted before `cutoff`. Returns the number removed."""
    result = await db.execute(
        delete(TrashedApplication).where(TrashedApplication.deleted_at < cutoff)
    )
    return result.rowcount
