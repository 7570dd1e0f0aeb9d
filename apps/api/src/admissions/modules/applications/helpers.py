"""
Applications Shared Helpers

Document-key rules and row conversion used by the applicant service, the
admin service and the routers.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from admissions.modules.applications.models import Application, ApplicationStatus

# Every document an application can carry, in display order.
DOCUMENT_KEYS: tuple[str, ...] = (
    "letter_of_intent",
    "resume",
    "picture",
    "application_form",
    "recommendation_letter",
    "school_credentials",
    "high_school_diploma",
    "transcript",
    "birth_certificate",
    "employment_certificate",
    "nbi_clearance",
    "marriage_certificate",
    "business_registration",
    "certificates",
)

# Required for every submission; marriage_certificate and
# business_registration are added conditionally, certificates never.
BASE_REQUIRED_DOCUMENTS: tuple[str, ...] = (
    "letter_of_intent",
    "resume",
    "picture",
    "application_form",
    "recommendation_letter",
    "school_credentials",
    "high_school_diploma",
    "transcript",
    "birth_certificate",
    "employment_certificate",
    "nbi_clearance",
)

APPLICANT_FIELDS: tuple[str, ...] = (
    "program_name",
    "full_name",
    "email",
    "phone",
    "marital_status",
    "is_business_owner",
    "business_name",
)

REQUIRED_SUBMISSION_FIELDS: tuple[str, ...] = ("program_name", "full_name", "email")

DOCUMENT_STATUS_VALUES = frozenset({"pending", "approved", "rejected"})

# Lowercase admin input -> stored status
REVIEW_STATUSES: dict[str, ApplicationStatus] = {
    "pending": ApplicationStatus.PENDING,
    "accepted": ApplicationStatus.ACCEPTED,
    "rejected": ApplicationStatus.REJECTED,
}

_TRUE_VALUES = frozenset({"1", "true", "yes", "y", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "n", "off"})


def is_document_key(key: str) -> bool:
    return key in DOCUMENT_KEYS


def parse_bool(value: Any) -> bool | None:
    """
    Parse a form value such as "Yes", "no", "1" or "true".

    Returns None for empty or unrecognised input.
    """
    if value is None or isinstance(value, bool):
        return value
    text_value = str(value).strip().lower()
    if text_value in _TRUE_VALUES:
        return True
    if text_value in _FALSE_VALUES:
        return False
    return None


def normalize_review_status(value: str | None) -> ApplicationStatus | None:
    """Map "pending" / "ACCEPTED" / " Rejected " to a status, or None if not allowed."""
    if value is None:
        return None
    return REVIEW_STATUSES.get(str(value).strip().lower())


def required_documents(marital_status: str | None, is_business_owner: bool | None) -> list[str]:
    """Document keys an application must carry before it can be submitted."""
    required = list(BASE_REQUIRED_DOCUMENTS)
    if (marital_status or "").strip().lower() == "married":
        required.append("marriage_certificate")
    if is_business_owner:
        required.append("business_registration")
    return required


def missing_requirements(values: Mapping[str, Any]) -> tuple[list[str], list[str]]:
    """
    Check merged application values against the submission rules.

    Args:
        values: Field values and document paths (any truthy value counts as
            an uploaded document)

    Returns:
        Tuple of (missing field names, missing document keys)
    """
    missing_fields = [name for name in REQUIRED_SUBMISSION_FIELDS if not values.get(name)]
    required = required_documents(
        values.get("marital_status"),
        parse_bool(values.get("is_business_owner")),
    )
    missing_documents = [key for key in required if not values.get(key)]
    return missing_fields, missing_documents


def uploaded_document_keys(application: Application) -> list[str]:
    """Document keys with a stored file path."""
    return [key for key in DOCUMENT_KEYS if getattr(application, key, None)]


def verified_flags(verified_keys: Iterable[str]) -> dict[str, bool]:
    """`<key>_verified` for all 14 document keys, False unless verified."""
    verified = set(verified_keys)
    return {f"{key}_verified": key in verified for key in DOCUMENT_KEYS}


def application_to_dict(application: Application) -> dict[str, Any]:
    """Column values of an application, with status as its stored string."""
    data = {
        column.key: getattr(application, column.key)
        for column in Application.__table__.columns
    }
    if isinstance(data.get("status"), ApplicationStatus):
        data["status"] = data["status"].value
    return data
