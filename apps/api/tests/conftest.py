"""
Shared test fixtures.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from admissions.core.auth import CurrentUser


def make_savepoint() -> MagicMock:
    """A stand-in for `AsyncSession.begin_nested()` usable with `async with`."""
    savepoint = MagicMock()
    savepoint.__aenter__ = AsyncMock(return_value=savepoint)
    savepoint.__aexit__ = AsyncMock(return_value=False)
    return savepoint


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.flush = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.delete = AsyncMock()
    db.add = MagicMock()
    db.begin_nested = MagicMock(side_effect=lambda: make_savepoint())
    return db


@pytest.fixture
def applicant():
    """A signed-in applicant."""
    return CurrentUser(id=7, email="juan@example.com", role="user", fullname="Juan Dela Cruz")


@pytest.fixture
def admin():
    """A signed-in administrator."""
    return CurrentUser(id=1, email="admin@eteeap.com", role="admin", fullname="Administrator")
