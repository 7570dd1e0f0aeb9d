"""
Fixtures for applications tests.
"""

from datetime import UTC, datetime
from io import BytesIO

import pytest
from fastapi import UploadFile

from admissions.modules.applications.helpers import BASE_REQUIRED_DOCUMENTS
from admissions.modules.applications.models import (
    Application,
    ApplicationStatus,
    TrashedApplication,
)
from admissions.modules.applications.schemas import ApplicationFields


def make_upload(filename: str = "file.pdf", content: bytes = b"%PDF-1.4") -> UploadFile:
    return UploadFile(file=BytesIO(content), filename=filename)


def make_application(**overrides) -> Application:
    values = {
        "id": 10,
        "user_id": 7,
        "program_name": "BSBA",
        "full_name": "Juan Dela Cruz",
        "email": "juan@example.com",
        "phone": "09171234567",
        "marital_status": "single",
        "is_business_owner": False,
        "status": ApplicationStatus.PENDING,
        "created_at": datetime(2026, 1, 5, tzinfo=UTC),
        "updated_at": datetime(2026, 1, 6, tzinfo=UTC),
    }
    values.update({key: f"uploads/1700000000000-1-{key}.pdf" for key in BASE_REQUIRED_DOCUMENTS})
    values.update(overrides)
    return Application(**values)


@pytest.fixture
def complete_fields():
    """Applicant fields that satisfy the submission rules."""
    return ApplicationFields(
        program_name="BSBA",
        full_name="Juan Dela Cruz",
        email="juan@example.com",
        marital_status="single",
        is_business_owner="no",
    )


@pytest.fixture
def required_files():
    """One upload for every always-required document."""
    return {key: make_upload(f"{key}.pdf") for key in BASE_REQUIRED_DOCUMENTS}


@pytest.fixture
def pending_application():
    return make_application()


@pytest.fixture
def draft_application():
    return make_application(
        id=20,
        status=ApplicationStatus.DRAFT,
        **{key: None for key in BASE_REQUIRED_DOCUMENTS},
    )


@pytest.fixture
def trash_entry():
    return TrashedApplication(
        id=3,
        original_id=10,
        user_id=7,
        program_name="BSBA",
        full_name="Juan Dela Cruz",
        email="juan@example.com",
        status="Accepted",
        created_at=datetime(2026, 1, 5, tzinfo=UTC),
        deleted_at=datetime(2026, 2, 1, tzinfo=UTC),
        data={
            "id": 10,
            "status": "Accepted",
            "verified_files": [
                {"file_key": "resume", "verified_by": 1},
                {"file_key": "picture", "verified_by": 1},
            ],
        },
    )


@pytest.fixture
def application_factory():
    return make_application


@pytest.fixture
def upload_factory():
    return make_upload
