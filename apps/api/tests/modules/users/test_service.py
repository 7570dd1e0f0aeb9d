"""
Unit tests for the admin profile service.
"""

from io import BytesIO
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import UploadFile

from admissions.modules.users.models import User, UserRole
from admissions.modules.users.service import ProfileServiceError, update_profile

USERS_SERVICE = "admissions.modules.users.service"


@pytest.fixture
def admin_user():
    return User(
        id=1,
        email="admin@eteeap.com",
        fullname="Administrator",
        password_hash="old-hash",
        role=UserRole.ADMIN,
    )


@pytest.fixture
def mock_users(admin_user):
    with patch(f"{USERS_SERVICE}.UserRepository") as users:
        users.get_by_id = AsyncMock(return_value=admin_user)
        users.email_exists = AsyncMock(return_value=False)
        yield users


@pytest.fixture
def mock_log_activity():
    with patch(f"{USERS_SERVICE}.log_activity", new_callable=AsyncMock) as log:
        yield log


class TestUpdateProfile:
    @pytest.mark.asyncio
    async def test_requires_name_and_email(self, mock_db, mock_users):
        with pytest.raises(ProfileServiceError) as exc_info:
            await update_profile(mock_db, 1, fullname=" ", email="admin@eteeap.com")

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_email_taken_by_another_account(self, mock_db, mock_users):
        mock_users.email_exists.return_value = True

        with pytest.raises(ProfileServiceError) as exc_info:
            await update_profile(mock_db, 1, fullname="Admin", email="taken@example.com")

        assert exc_info.value.status_code == 409
        mock_users.email_exists.assert_called_once_with(
            mock_db, "taken@example.com", exclude_user_id=1
        )

    @pytest.mark.asyncio
    async def test_unknown_user(self, mock_db, mock_users):
        mock_users.get_by_id.return_value = None

        with pytest.raises(ProfileServiceError) as exc_info:
            await update_profile(mock_db, 1, fullname="Admin", email="admin@eteeap.com")

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_updates_fields_password_and_picture(
        self, mock_db, mock_users, mock_log_activity, admin_user
    ):
        picture = UploadFile(file=BytesIO(b"img"), filename="me.png")

        with (
            patch(f"{USERS_SERVICE}.hash_password", return_value="new-hash"),
            patch(f"{USERS_SERVICE}.save_upload", return_value="uploads/profile/1-me.png") as save,
        ):
            user = await update_profile(
                mock_db,
                1,
                fullname="Head Admin",
                email="Head@Eteeap.com",
                password="n3w-secret",
                profile_picture=picture,
            )

        assert user.fullname == "Head Admin"
        assert user.email == "head@eteeap.com"
        assert user.password_hash == "new-hash"
        assert user.profile_picture == "uploads/profile/1-me.png"
        save.assert_called_once_with(picture, subdir="profile")
        assert mock_log_activity.call_args.args[3] == "update_profile"
        mock_db.commit.assert_called_once()

    @pytest.mark.asyncio
    async def test_blank_password_keeps_hash(
        self, mock_db, mock_users, mock_log_activity, admin_user
    ):
        user = await update_profile(
            mock_db, 1, fullname="Admin", email="admin@eteeap.com", password="   "
        )

        assert user.password_hash == "old-hash"
