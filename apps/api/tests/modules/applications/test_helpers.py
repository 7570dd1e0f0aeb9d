"""
Unit tests for applications helpers module.
"""

from admissions.modules.applications.helpers import (
    BASE_REQUIRED_DOCUMENTS,
    DOCUMENT_KEYS,
    application_to_dict,
    is_document_key,
    missing_requirements,
    normalize_review_status,
    parse_bool,
    required_documents,
    uploaded_document_keys,
    verified_flags,
)
from admissions.modules.applications.models import ApplicationStatus


class TestDocumentKeys:
    def test_fourteen_document_keys(self):
        assert len(DOCUMENT_KEYS) == 14
        assert len(set(DOCUMENT_KEYS)) == 14

    def test_is_document_key(self):
        assert is_document_key("resume")
        assert is_document_key("nbi_clearance")
        assert not is_document_key("password_hash")
        assert not is_document_key("resume; DROP TABLE applications")


class TestParseBool:
    def test_true_values(self):
        for value in ("1", "true", "Yes", " y ", "ON", True):
            assert parse_bool(value) is True

    def test_false_values(self):
        for value in ("0", "false", "No", "n", "off", False):
            assert parse_bool(value) is False

    def test_unrecognised_is_none(self):
        assert parse_bool(None) is None
        assert parse_bool("") is None
        assert parse_bool("maybe") is None


class TestNormalizeReviewStatus:
    def test_case_insensitive(self):
        assert normalize_review_status("ACCEPTED") == ApplicationStatus.ACCEPTED
        assert normalize_review_status(" Rejected ") == ApplicationStatus.REJECTED
        assert normalize_review_status("pending") == ApplicationStatus.PENDING

    def test_draft_is_not_a_review_status(self):
        assert normalize_review_status("draft") is None

    def test_unknown_values(self):
        assert normalize_review_status("approved") is None
        assert normalize_review_status(None) is None


class TestRequiredDocuments:
    def test_single_non_owner_needs_base_documents(self):
        assert required_documents("single", False) == list(BASE_REQUIRED_DOCUMENTS)

    def test_married_needs_marriage_certificate(self):
        required = required_documents("Married", False)
        assert "marriage_certificate" in required
        assert "business_registration" not in required

    def test_business_owner_needs_business_registration(self):
        required = required_documents(None, True)
        assert "business_registration" in required
        assert "marriage_certificate" not in required

    def test_certificates_never_required(self):
        assert "certificates" not in required_documents("married", True)


class TestMissingRequirements:
    def test_complete_values(self):
        values = {
            "program_name": "BSBA",
            "full_name": "Juan Dela Cruz",
            "email": "juan@example.com",
            **{key: "uploads/x.pdf" for key in BASE_REQUIRED_DOCUMENTS},
        }
        assert missing_requirements(values) == ([], [])

    def test_reports_fields_and_documents(self):
        missing_fields, missing_documents = missing_requirements({"program_name": "BSBA"})
        assert missing_fields == ["full_name", "email"]
        assert missing_documents == list(BASE_REQUIRED_DOCUMENTS)

    def test_business_owner_flag_parsed_from_form_text(self):
        values = {
            "program_name": "BSBA",
            "full_name": "Juan Dela Cruz",
            "email": "juan@example.com",
            "is_business_owner": "yes",
            **{key: "uploads/x.pdf" for key in BASE_REQUIRED_DOCUMENTS},
        }
        assert missing_requirements(values) == ([], ["business_registration"])


class TestRowConversion:
    def test_uploaded_document_keys(self, application_factory):
        application = application_factory(resume=None, certificates="uploads/c.pdf")
        keys = uploaded_document_keys(application)
        assert "resume" not in keys
        assert "certificates" in keys
        assert "picture" in keys

    def test_verified_flags_cover_all_keys(self):
        flags = verified_flags({"resume"})
        assert len(flags) == 14
        assert flags["resume_verified"] is True
        assert flags["picture_verified"] is False

    def test_application_to_dict_uses_status_string(self, application_factory):
        data = application_to_dict(application_factory(status=ApplicationStatus.ACCEPTED))
        assert data["status"] == "Accepted"
        assert data["id"] == 10
        assert data["program_name"] == "BSBA"
        assert "resume_status" in data
