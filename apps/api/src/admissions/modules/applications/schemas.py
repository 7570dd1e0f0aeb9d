"""
Applications Schemas

Pydantic models for applicant and admin endpoints.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .helpers import parse_bool

# ============================================
# Applicant Input
# ============================================


class ApplicationFields(BaseModel):
    """
    Applicant-provided fields from a multipart form.

    Blank strings are treated as "not provided".
    """

    program_name: str | None = Field(None, max_length=255)
    full_name: str | None = Field(None, max_length=255)
    email: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=50)
    marital_status: str | None = Field(None, max_length=50)
    is_business_owner: bool | None = None
    business_name: str | None = Field(None, max_length=255)

    @field_validator(
        "program_name",
        "full_name",
        "email",
        "phone",
        "marital_status",
        "business_name",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("is_business_owner", mode="before")
    @classmethod
    def parse_business_owner(cls, v: Any) -> bool | None:
        return parse_bool(v)

    def provided(self) -> dict[str, Any]:
        """Only the fields the client actually sent."""
        return self.model_dump(exclude_none=True)


class SubmitDraftRequest(BaseModel):
    draft_id: int = Field(..., gt=0)


# ============================================
# Applicant Responses
# ============================================


class DraftSavedResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    draft_id: int = Field(..., serialization_alias="draftId")


class ApplicationSubmittedResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    application_id: int = Field(..., serialization_alias="applicationId")


class MessageResponse(BaseModel):
    message: str


class ApplicationRecord(BaseModel):
    """
    One applications row.

    Extra keys are kept: `<document>_status` / `<document>_remark` columns
    that exist in the database but not in the base schema pass through.
    """

    model_config = ConfigDict(from_attributes=True, extra="allow")

    id: int
    user_id: int | None = None
    program_name: str | None = None
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    marital_status: str | None = None
    is_business_owner: bool | None = None
    business_name: str | None = None

    letter_of_intent: str | None = None
    resume: str | None = None
    picture: str | None = None
    application_form: str | None = None
    recommendation_letter: str | None = None
    school_credentials: str | None = None
    high_school_diploma: str | None = None
    transcript: str | None = None
    birth_certificate: str | None = None
    employment_certificate: str | None = None
    nbi_clearance: str | None = None
    marriage_certificate: str | None = None
    business_registration: str | None = None
    certificates: str | None = None

    resume_status: str | None = None
    resume_remark: str | None = None

    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ApplicationWithVerification(ApplicationRecord):
    """Application row merged with a verified flag per document key."""

    letter_of_intent_verified: bool = False
    resume_verified: bool = False
    picture_verified: bool = False
    application_form_verified: bool = False
    recommendation_letter_verified: bool = False
    school_credentials_verified: bool = False
    high_school_diploma_verified: bool = False
    transcript_verified: bool = False
    birth_certificate_verified: bool = False
    employment_certificate_verified: bool = False
    nbi_clearance_verified: bool = False
    marriage_certificate_verified: bool = False
    business_registration_verified: bool = False
    certificates_verified: bool = False


# ============================================
# Admin Input
# ============================================


class StatusUpdateRequest(BaseModel):
    status: str = Field(..., min_length=1, description="pending, accepted or rejected")


class DocumentStatusUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    document_name: str = Field(..., min_length=1, alias="documentName")
    status: str = Field(..., min_length=1, description="pending, approved or rejected")
    remark: str | None = None


class VerifyFileRequest(BaseModel):
    verified: Literal[0, 1] | None = Field(
        None, description="1 to verify, 0 to unverify; omitted means verify"
    )

    @field_validator("verified", mode="before")
    @classmethod
    def coerce_flag(cls, v: Any) -> Any:
        if isinstance(v, bool):
            return int(v)
        if isinstance(v, str) and v.strip() in {"0", "1"}:
            return int(v.strip())
        return v


class DocumentRemarkRequest(BaseModel):
    remark: str = Field(..., min_length=1, max_length=5000)


# ============================================
# Admin Responses
# ============================================


class StatusSideEffects(BaseModel):
    """What a status change did to document verification."""

    verified_added: int = 0
    verified_removed: int = 0
    document_status_reset: int = 0
    document_status_reset_failed: int = 0


class StatusUpdateResponse(ApplicationWithVerification):
    side_effects: StatusSideEffects


class DashboardStats(BaseModel):
    draft: int
    pending: int
    accepted: int
    rejected: int
    total: int = Field(..., description="Submitted applications (excludes drafts)")
    trashed: int


class SupportedDocumentStatusResponse(BaseModel):
    supported: list[str]


class DocumentRemarkResponse(BaseModel):
    remark: str = ""
    created_at: datetime | None = None


class TrashItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    original_id: int | None = None
    user_id: int | None = None
    program_name: str | None = None
    full_name: str | None = None
    email: str | None = None
    status: str | None = None
    deleted_at: datetime
    data: dict[str, Any] | None = None


class TrashResponse(BaseModel):
    message: str
    trash_id: int
    trashed: dict[str, Any]


class RestoreResponse(BaseModel):
    message: str
    application_id: int
    restored_with_original_id: bool
