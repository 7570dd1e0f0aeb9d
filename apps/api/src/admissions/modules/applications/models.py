"""
Applications Models

Enrollment applications, per-document verification, document remarks and
the trash table used for 30-day recovery of deleted applications.
"""

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSON
from sqlalchemy.orm import Mapped, mapped_column

from admissions.core.database import Base


class ApplicationStatus(str, enum.Enum):
    """Lifecycle status of an application."""

    DRAFT = "Draft"
    PENDING = "Pending"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"


class ApplicationFieldsMixin:
    """Applicant-provided columns shared by live and trashed applications."""

    program_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Personal information
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    marital_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_business_owner: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    business_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Uploaded documents (relative paths under the upload directory)
    letter_of_intent: Mapped[str | None] = mapped_column(Text, nullable=True)
    resume: Mapped[str | None] = mapped_column(Text, nullable=True)
    picture: Mapped[str | None] = mapped_column(Text, nullable=True)
    application_form: Mapped[str | None] = mapped_column(Text, nullable=True)
    recommendation_letter: Mapped[str | None] = mapped_column(Text, nullable=True)
    school_credentials: Mapped[str | None] = mapped_column(Text, nullable=True)
    high_school_diploma: Mapped[str | None] = mapped_column(Text, nullable=True)
    transcript: Mapped[str | None] = mapped_column(Text, nullable=True)
    birth_certificate: Mapped[str | None] = mapped_column(Text, nullable=True)
    employment_certificate: Mapped[str | None] = mapped_column(Text, nullable=True)
    nbi_clearance: Mapped[str | None] = mapped_column(Text, nullable=True)
    marriage_certificate: Mapped[str | None] = mapped_column(Text, nullable=True)
    business_registration: Mapped[str | None] = mapped_column(Text, nullable=True)
    certificates: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Per-document review. Only the resume has status columns in the base
    # schema; other `<document>_status` columns may be added by migration.
    resume_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    resume_remark: Mapped[str | None] = mapped_column(Text, nullable=True)


class Application(ApplicationFieldsMixin, Base):
    """
    An applicant's enrollment application.

    Invariants (enforced by partial unique indexes):
    - at most one non-Draft application per user
    - at most one Draft per (user, program_name)
    """

    __tablename__ = "applications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )

    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(
            ApplicationStatus,
            name="application_status",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=ApplicationStatus.DRAFT,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_applications_status", "status"),
        Index("ix_applications_created_at", "created_at"),
        Index(
            "uq_applications_one_submitted_per_user",
            "user_id",
            unique=True,
            postgresql_where=text("status <> 'Draft'"),
        ),
        Index(
            "uq_applications_one_draft_per_program",
            "user_id",
            "program_name",
            unique=True,
            postgresql_where=text("status = 'Draft'"),
        ),
    )

    def __repr__(self) -> str:
        return f"<Application(id={self.id}, user_id={self.user_id}, status={self.status.value})>"


class VerifiedFile(Base):
    """A document key an admin has verified. No row means unverified."""

    __tablename__ = "verified_files"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    application_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False
    )
    file_key: Mapped[str] = mapped_column(String(50), nullable=False)
    verified_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("application_id", "file_key", name="uq_verified_files_application_key"),
    )


class DocumentRemark(Base):
    """Append-only remark history per (application, document)."""

    __tablename__ = "document_remarks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    application_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False
    )
    document_name: Mapped[str] = mapped_column(String(50), nullable=False)
    remark: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_document_remarks_application_document", "application_id", "document_name"),
    )


class TrashedApplication(ApplicationFieldsMixin, Base):
    """
    Snapshot of a deleted application, kept for TRASH_RETENTION_DAYS.

    `data` holds the whole record as JSON, including its verified files.
    """

    __tablename__ = "applications_trash"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    original_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    data: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    deleted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (Index("ix_applications_trash_deleted_at", "deleted_at"),)
