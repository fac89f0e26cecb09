"""
Unit tests for the profiles service.

These tests cover:
- Who may read, update and delete a profile
- Email normalization and collisions with other accounts
- Which request fields reach the account and which reach the profile
"""

from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from admissions.core.authorization import REASON_NOT_OWNER
from admissions.core.exceptions import (
    AuthzError,
    ConflictError,
    NotFoundError,
    TransientError,
)
from admissions.modules.profiles.schemas import ProfileUpdate
from admissions.modules.profiles.service import (
    EMAIL_IN_USE_MESSAGE,
    delete_profile,
    get_profile,
    update_profile,
)

SERVICE = "admissions.modules.profiles.service"


# ============================================
# Test get_profile
# ============================================


class TestGetProfile:
    """Tests for get_profile."""

    @pytest.mark.asyncio
    async def test_student_reads_own_profile(
        self, mock_db, student, student_user, student_profile
    ):
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_users.get_by_id = AsyncMock(return_value=student_user)
            mock_repo.get_by_user_id = AsyncMock(return_value=student_profile)

            user, profile = await get_profile(mock_db, student, student.id)

        assert user == student_user
        assert profile == student_profile

    @pytest.mark.asyncio
    async def test_profile_is_none_until_saved(self, mock_db, student, student_user):
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_users.get_by_id = AsyncMock(return_value=student_user)
            mock_repo.get_by_user_id = AsyncMock(return_value=None)

            _, profile = await get_profile(mock_db, student, student.id)

        assert profile is None

    @pytest.mark.asyncio
    async def test_admin_reads_any_profile(self, mock_db, admin, student, student_user):
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_users.get_by_id = AsyncMock(return_value=student_user)
            mock_repo.get_by_user_id = AsyncMock(return_value=None)

            user, _ = await get_profile(mock_db, admin, student.id)

        assert user == student_user

    @pytest.mark.asyncio
    async def test_other_student_forbidden(self, mock_db, other_student, student):
        with patch(f"{SERVICE}.UserRepository") as mock_users:
            mock_users.get_by_id = AsyncMock()

            with pytest.raises(AuthzError) as exc_info:
                await get_profile(mock_db, other_student, student.id)

        assert exc_info.value.reason == REASON_NOT_OWNER
        mock_users.get_by_id.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_user(self, mock_db, admin):
        with patch(f"{SERVICE}.UserRepository") as mock_users:
            mock_users.get_by_id = AsyncMock(return_value=None)

            with pytest.raises(NotFoundError) as exc_info:
                await get_profile(mock_db, admin, uuid4())

        assert exc_info.value.error_code == "USER_NOT_FOUND"


# ============================================
# Test update_profile
# ============================================


class TestUpdateProfile:
    """Tests for update_profile."""

    @pytest.mark.asyncio
    async def test_email_is_lowercased(self, mock_db, student, student_user, student_profile):
        data = ProfileUpdate(email="New.Address@Example.com", phone="+1 555 0199")

        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_users.get_by_id = AsyncMock(return_value=student_user)
            mock_repo.email_taken_by_other = AsyncMock(return_value=False)
            mock_repo.save = AsyncMock(return_value=student_profile)

            user, profile = await update_profile(mock_db, student, student.id, data)

        assert user == student_user
        assert profile == student_profile
        mock_repo.email_taken_by_other.assert_called_once_with(
            mock_db, "new.address@example.com", student.id
        )
        mock_repo.save.assert_called_once_with(
            mock_db,
            student_user,
            {"email": "new.address@example.com"},
            {"phone": "+1 555 0199"},
        )

    @pytest.mark.asyncio
    async def test_email_used_by_other_account(self, mock_db, student, student_user):
        data = ProfileUpdate(email="taken@example.com")

        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_users.get_by_id = AsyncMock(return_value=student_user)
            mock_repo.email_taken_by_other = AsyncMock(return_value=True)
            mock_repo.save = AsyncMock()

            with pytest.raises(ConflictError) as exc_info:
                await update_profile(mock_db, student, student.id, data)

        assert exc_info.value.message == EMAIL_IN_USE_MESSAGE
        assert exc_info.value.error_code == "EMAIL_ALREADY_REGISTERED"
        mock_repo.save.assert_not_called()

    @pytest.mark.asyncio
    async def test_null_clears_profile_fields_but_not_names(
        self, mock_db, student, student_user
    ):
        """An explicit null empties a profile field; names are only replaced by values."""
        data = ProfileUpdate.model_validate(
            {"first_name": None, "last_name": "Byron", "address": None}
        )

        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_users.get_by_id = AsyncMock(return_value=student_user)
            mock_repo.email_taken_by_other = AsyncMock()
            mock_repo.save = AsyncMock(return_value=None)

            await update_profile(mock_db, student, student.id, data)

        mock_repo.email_taken_by_other.assert_not_called()
        mock_repo.save.assert_called_once_with(
            mock_db, student_user, {"last_name": "Byron"}, {"address": None}
        )

    @pytest.mark.asyncio
    async def test_admin_updates_any_profile(self, mock_db, admin, student, student_user):
        data = ProfileUpdate(nationality="Kenyan")

        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_users.get_by_id = AsyncMock(return_value=student_user)
            mock_repo.save = AsyncMock(return_value=None)

            await update_profile(mock_db, admin, student.id, data)

        mock_repo.save.assert_called_once_with(
            mock_db, student_user, {}, {"nationality": "Kenyan"}
        )

    @pytest.mark.asyncio
    async def test_other_student_forbidden(self, mock_db, other_student, student):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.save = AsyncMock()

            with pytest.raises(AuthzError):
                await update_profile(mock_db, other_student, student.id, ProfileUpdate())

        mock_repo.save.assert_not_called()

    @pytest.mark.asyncio
    async def test_email_race_becomes_conflict(self, mock_db, student, student_user):
        """A unique violation at commit means another account took the email."""
        data = ProfileUpdate(email="race@example.com")

        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_users.get_by_id = AsyncMock(return_value=student_user)
            mock_repo.email_taken_by_other = AsyncMock(return_value=False)
            mock_repo.save = AsyncMock(
                side_effect=IntegrityError("INSERT", {}, Exception("ix_users_email"))
            )

            with pytest.raises(ConflictError) as exc_info:
                await update_profile(mock_db, student, student.id, data)

        assert exc_info.value.error_code == "EMAIL_ALREADY_REGISTERED"
        mock_db.rollback.assert_called_once()

    @pytest.mark.asyncio
    async def test_database_failure_is_transient(self, mock_db, student, student_user):
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_users.get_by_id = AsyncMock(return_value=student_user)
            mock_repo.save = AsyncMock(
                side_effect=OperationalError("UPDATE", {}, Exception("connection lost"))
            )

            with pytest.raises(TransientError):
                await update_profile(mock_db, student, student.id, ProfileUpdate(phone="1"))

        mock_db.rollback.assert_called_once()


# ============================================
# Test delete_profile
# ============================================


class TestDeleteProfile:
    """Tests for delete_profile."""

    @pytest.mark.asyncio
    async def test_delete_own_profile(self, mock_db, student):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.delete_for_user = AsyncMock(return_value=True)

            await delete_profile(mock_db, student, student.id)

        mock_repo.delete_for_user.assert_called_once_with(mock_db, student.id)

    @pytest.mark.asyncio
    async def test_delete_missing_profile_succeeds(self, mock_db, admin, student):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.delete_for_user = AsyncMock(return_value=False)

            await delete_profile(mock_db, admin, student.id)

    @pytest.mark.asyncio
    async def test_other_student_forbidden(self, mock_db, other_student, student):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.delete_for_user = AsyncMock()

            with pytest.raises(AuthzError):
                await delete_profile(mock_db, other_student, student.id)

        mock_repo.delete_for_user.assert_not_called()
