"""
Unit tests for applications repository layer.

These tests focus on the state machine transitions and the helpers that
need no database round trip.
"""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest
from sqlalchemy.sql import operators

from admissions.modules.applications import repository
from admissions.modules.applications.models import ApplicationStatus
from admissions.modules.applications.repository import (
    VALID_STATUS_TRANSITIONS,
    InvalidStatusTransitionError,
    is_valid_transition,
)


class TestStatusTransitions:
    """Tests for status transition state machine."""

    def test_draft_only_moves_to_pending(self):
        assert VALID_STATUS_TRANSITIONS[ApplicationStatus.DRAFT] == {ApplicationStatus.PENDING}

    def test_pending_can_be_decided(self):
        valid = VALID_STATUS_TRANSITIONS[ApplicationStatus.PENDING]
        assert ApplicationStatus.ACCEPTED in valid
        assert ApplicationStatus.REJECTED in valid
        assert ApplicationStatus.DRAFT not in valid

    def test_decisions_can_be_revised(self):
        assert ApplicationStatus.REJECTED in VALID_STATUS_TRANSITIONS[ApplicationStatus.ACCEPTED]
        assert ApplicationStatus.PENDING in VALID_STATUS_TRANSITIONS[ApplicationStatus.ACCEPTED]
        assert ApplicationStatus.ACCEPTED in VALID_STATUS_TRANSITIONS[ApplicationStatus.REJECTED]
        assert ApplicationStatus.PENDING in VALID_STATUS_TRANSITIONS[ApplicationStatus.REJECTED]

    def test_nothing_returns_to_draft(self):
        for status, targets in VALID_STATUS_TRANSITIONS.items():
            if status != ApplicationStatus.DRAFT:
                assert ApplicationStatus.DRAFT not in targets

    def test_same_status_is_allowed(self):
        for status in ApplicationStatus:
            assert is_valid_transition(status, status)

    def test_all_statuses_are_in_transition_map(self):
        for status in ApplicationStatus:
            assert status in VALID_STATUS_TRANSITIONS


class TestInvalidStatusTransitionError:
    def test_error_message_contains_both_statuses(self):
        error = InvalidStatusTransitionError(ApplicationStatus.PENDING, ApplicationStatus.DRAFT)
        assert "Pending" in str(error)
        assert "Draft" in str(error)
        assert error.current_status == ApplicationStatus.PENDING
        assert error.new_status == ApplicationStatus.DRAFT


class TestUpdateStatus:
    @pytest.mark.asyncio
    async def test_valid_transition_flushes(self, mock_db, application_factory):
        application = application_factory(status=ApplicationStatus.PENDING)

        await repository.update_status(mock_db, application, ApplicationStatus.ACCEPTED)

        assert application.status == ApplicationStatus.ACCEPTED
        mock_db.flush.assert_called_once()

    @pytest.mark.asyncio
    async def test_invalid_transition_raises(self, mock_db, application_factory):
        application = application_factory(status=ApplicationStatus.ACCEPTED)

        with pytest.raises(InvalidStatusTransitionError):
            await repository.update_status(mock_db, application, ApplicationStatus.DRAFT)

        assert application.status == ApplicationStatus.ACCEPTED
        mock_db.flush.assert_not_called()


class TestApplyValues:
    def test_only_known_columns_are_copied(self, application_factory):
        application = application_factory()

        repository.apply_values(
            application,
            {
                "full_name": "Maria Clara",
                "resume": "uploads/new-resume.pdf",
                "status": "Accepted",
                "user_id": 99,
            },
        )

        assert application.full_name == "Maria Clara"
        assert application.resume == "uploads/new-resume.pdf"
        assert application.status == ApplicationStatus.PENDING
        assert application.user_id == 7


class TestTrashSnapshot:
    """create_trash_entry and restore_from_trash against a mocked session."""

    @staticmethod
    def _content(record) -> dict:
        names = (*repository._SNAPSHOT_COLUMNS, "user_id", "created_at")
        return {name: getattr(record, name) for name in names}

    @pytest.mark.asyncio
    async def test_restore_retrash_restore_keeps_content(self, mock_db, application_factory):
        application = application_factory(
            status=ApplicationStatus.ACCEPTED,
            business_name="Sari-sari Store",
            certificates="uploads/1700000000000-1-certificates.pdf",
            resume_status="approved",
            resume_remark="Complete",
        )

        entry = await repository.create_trash_entry(mock_db, application, {"id": 10})
        restored = await repository.restore_from_trash(mock_db, entry, entry.original_id)
        entry_again = await repository.create_trash_entry(mock_db, restored, {"id": 10})
        restored_again = await repository.restore_from_trash(mock_db, entry_again, None)

        assert entry.original_id == 10
        assert entry.status == "Accepted"
        assert restored.id == 10
        assert restored.status == ApplicationStatus.ACCEPTED
        assert restored_again.status == ApplicationStatus.ACCEPTED
        assert self._content(restored) == self._content(application)
        assert self._content(restored_again) == self._content(application)
        assert mock_db.add.call_count == 4

    @pytest.mark.asyncio
    async def test_snapshot_blob_is_stored_as_given(self, mock_db, application_factory):
        snapshot = {"id": 10, "picture_status": "rejected", "verified_files": []}

        entry = await repository.create_trash_entry(mock_db, application_factory(), snapshot)

        assert entry.data == snapshot
        mock_db.flush.assert_called_once()


class TestPurgeTrashBefore:
    @pytest.mark.asyncio
    async def test_deletes_only_rows_older_than_cutoff(self, mock_db):
        cutoff = datetime(2026, 5, 31, 12, 0, tzinfo=UTC)
        mock_db.execute.return_value = MagicMock(rowcount=2)

        removed = await repository.purge_trash_before(mock_db, cutoff)

        assert removed == 2
        statement = mock_db.execute.call_args.args[0]
        assert statement.table.name == "applications_trash"
        clause = statement.whereclause
        assert clause.left.name == "deleted_at"
        assert clause.operator is operators.lt
        assert clause.right.value == cutoff
