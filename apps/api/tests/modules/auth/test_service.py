"""
Unit tests for auth service layer.

These tests cover:
- Signup and login
- Single active session per user
- Logout
- Password reset request and completion
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest

from admissions.core.security import hash_token
from admissions.modules.auth.models import PasswordReset
from admissions.modules.auth.service import (
    EmailAlreadyExistsError,
    InvalidCredentialsError,
    InvalidResetTokenError,
    establish_session,
    login,
    logout,
    request_password_reset,
    reset_password,
    signup,
)
from admissions.modules.users.models import User, UserRole

AUTH_SERVICE = "admissions.modules.auth.service"


# ============================================
# Fixtures
# ============================================


@pytest.fixture
def user():
    return User(
        id=7,
        email="juan@example.com",
        fullname="Juan Dela Cruz",
        password_hash="$2b$12$stored",
        role=UserRole.USER,
    )


@pytest.fixture
def mock_repo():
    with patch(f"{AUTH_SERVICE}.repository") as repo:
        repo.get_registered_session_id = AsyncMock(return_value=None)
        repo.register_session = AsyncMock()
        repo.clear_session = AsyncMock()
        repo.create_password_reset = AsyncMock()
        repo.get_password_reset = AsyncMock(return_value=None)
        repo.delete_password_resets_for_user = AsyncMock()
        yield repo


@pytest.fixture
def mock_users():
    with patch(f"{AUTH_SERVICE}.UserRepository") as users:
        users.email_exists = AsyncMock(return_value=False)
        users.get_by_email = AsyncMock(return_value=None)
        users.get_by_id = AsyncMock(return_value=None)
        users.create = AsyncMock()
        yield users


@pytest.fixture
def mock_sessions():
    with patch(f"{AUTH_SERVICE}.session_store") as store:
        store.create = AsyncMock(return_value="new-session")
        store.destroy = AsyncMock()
        yield store


@pytest.fixture
def mock_log_activity():
    with patch(f"{AUTH_SERVICE}.log_activity", new_callable=AsyncMock) as log:
        yield log


# ============================================
# Accounts
# ============================================


class TestSignup:
    @pytest.mark.asyncio
    async def test_existing_email_conflicts(self, mock_db, mock_users):
        mock_users.email_exists.return_value = True

        with pytest.raises(EmailAlreadyExistsError) as exc_info:
            await signup(mock_db, "Juan", "juan@example.com", "secret123")

        assert exc_info.value.status_code == 409
        mock_users.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_creates_applicant_account(self, mock_db, mock_users, user):
        mock_users.create.return_value = user

        with patch(f"{AUTH_SERVICE}.hash_password", return_value="hashed"):
            result = await signup(mock_db, "Juan", "juan@example.com", "secret123")

        assert result is user
        kwargs = mock_users.create.call_args.kwargs
        assert kwargs["password_hash"] == "hashed"
        assert kwargs["role"] == UserRole.USER


class TestLogin:
    @pytest.mark.asyncio
    async def test_unknown_email(self, mock_db, mock_users):
        with pytest.raises(InvalidCredentialsError) as exc_info:
            await login(mock_db, "nobody@example.com", "secret123")

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_wrong_password(self, mock_db, mock_users, user):
        mock_users.get_by_email.return_value = user

        with (
            patch(f"{AUTH_SERVICE}.verify_password", return_value=False),
            pytest.raises(InvalidCredentialsError),
        ):
            await login(mock_db, user.email, "wrong")

    @pytest.mark.asyncio
    async def test_success_starts_session_and_commits(
        self, mock_db, mock_users, mock_repo, mock_sessions, mock_log_activity, user
    ):
        mock_users.get_by_email.return_value = user

        with patch(f"{AUTH_SERVICE}.verify_password", return_value=True):
            result_user, session_id = await login(mock_db, user.email, "secret123")

        assert result_user is user
        assert session_id == "new-session"
        mock_sessions.create.assert_called_once_with({"user_id": 7, "role": "user"})
        mock_repo.register_session.assert_called_once_with(mock_db, 7, "new-session")
        mock_log_activity.assert_called_once_with(mock_db, 7, "user", "login", "User logged in")
        mock_db.commit.assert_called_once()


class TestEstablishSession:
    @pytest.mark.asyncio
    async def test_previous_session_is_destroyed(
        self, mock_db, mock_repo, mock_sessions, user
    ):
        mock_repo.get_registered_session_id.return_value = "old-session"

        session_id = await establish_session(mock_db, user)

        assert session_id == "new-session"
        mock_sessions.destroy.assert_called_once_with("old-session")
        mock_repo.register_session.assert_called_once_with(mock_db, 7, "new-session")

    @pytest.mark.asyncio
    async def test_first_login_destroys_nothing(self, mock_db, mock_repo, mock_sessions, user):
        await establish_session(mock_db, user)

        mock_sessions.destroy.assert_not_called()

    @pytest.mark.asyncio
    async def test_session_the_request_arrived_with_is_replaced(
        self, mock_db, mock_repo, mock_sessions, user
    ):
        mock_repo.get_registered_session_id.return_value = "old-session"

        await establish_session(mock_db, user, current_session_id="stale-cookie")

        destroyed = {call.args[0] for call in mock_sessions.destroy.call_args_list}
        assert destroyed == {"old-session", "stale-cookie"}


class TestLogout:
    @pytest.mark.asyncio
    async def test_clears_registry_and_session(self, mock_db, mock_repo, mock_sessions):
        await logout(mock_db, 7, "sess-1")

        mock_repo.clear_session.assert_called_once_with(mock_db, 7)
        mock_sessions.destroy.assert_called_once_with("sess-1")
        mock_db.commit.assert_called_once()

    @pytest.mark.asyncio
    async def test_anonymous_logout_is_harmless(self, mock_db, mock_repo, mock_sessions):
        await logout(mock_db, None, None)

        mock_repo.clear_session.assert_not_called()
        mock_sessions.destroy.assert_not_called()


# ============================================
# Password Reset
# ============================================


class TestRequestPasswordReset:
    @pytest.mark.asyncio
    async def test_unknown_email_sends_nothing(self, mock_db, mock_users, mock_repo):
        with patch(f"{AUTH_SERVICE}.send_password_reset", new_callable=AsyncMock) as mock_send:
            sent = await request_password_reset(mock_db, "nobody@example.com")

        assert sent is False
        mock_send.assert_not_called()
        mock_repo.create_password_reset.assert_not_called()

    @pytest.mark.asyncio
    async def test_stores_only_token_hash(
        self, mock_db, mock_users, mock_repo, mock_log_activity, user
    ):
        mock_users.get_by_email.return_value = user

        with (
            patch(f"{AUTH_SERVICE}.generate_token", return_value="plain-token"),
            patch(f"{AUTH_SERVICE}.send_password_reset", new_callable=AsyncMock) as mock_send,
        ):
            mock_send.return_value = True
            sent = await request_password_reset(mock_db, user.email)

        assert sent is True
        kwargs = mock_repo.create_password_reset.call_args.kwargs
        assert kwargs["token_hash"] == hash_token("plain-token")
        assert kwargs["token_hash"] != "plain-token"
        remaining = kwargs["expires_at"] - datetime.now(UTC)
        assert timedelta(minutes=59) < remaining <= timedelta(minutes=60)
        mock_send.assert_called_once_with(user.email, user.fullname, "plain-token")
        mock_db.commit.assert_called_once()


class TestResetPassword:
    @pytest.mark.asyncio
    async def test_unknown_token(self, mock_db, mock_repo):
        with pytest.raises(InvalidResetTokenError) as exc_info:
            await reset_password(mock_db, "bogus", "newsecret")

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_expired_token_is_removed(self, mock_db, mock_repo):
        mock_repo.get_password_reset.return_value = PasswordReset(
            user_id=7,
            token=hash_token("tok"),
            expires_at=datetime.now(UTC) - timedelta(minutes=1),
        )

        with pytest.raises(InvalidResetTokenError) as exc_info:
            await reset_password(mock_db, "tok", "newsecret")

        assert exc_info.value.message == "Token has expired."
        mock_repo.delete_password_resets_for_user.assert_called_once_with(mock_db, 7)
        mock_db.commit.assert_called_once()

    @pytest.mark.asyncio
    async def test_success_updates_hash_and_ends_session(
        self, mock_db, mock_repo, mock_users, mock_sessions, mock_log_activity, user
    ):
        mock_repo.get_password_reset.return_value = PasswordReset(
            user_id=7,
            token=hash_token("tok"),
            expires_at=datetime.now(UTC) + timedelta(minutes=30),
        )
        mock_repo.get_registered_session_id.return_value = "active-session"
        mock_users.get_by_id.return_value = user

        with patch(f"{AUTH_SERVICE}.hash_password", return_value="new-hash"):
            await reset_password(mock_db, "tok", "newsecret")

        mock_repo.get_password_reset.assert_called_once_with(mock_db, hash_token("tok"))
        assert user.password_hash == "new-hash"
        mock_repo.delete_password_resets_for_user.assert_called_once_with(mock_db, 7)
        mock_repo.clear_session.assert_called_once_with(mock_db, 7)
        mock_sessions.destroy.assert_called_once_with("active-session")
        mock_db.commit.assert_called_once()


def test_reset_token_hash_is_sha256_hex():
    digest = hash_token("abc")
    assert len(digest) == 64
    assert digest == hash_token("abc")
    assert digest != hash_token("abd")
