"""
Unit tests for the student side of the application lifecycle.

These tests cover:
- Submission (field bounds, one pending application per owner)
- Listing and reading own applications
- Partial updates while the application is submitted
"""

from datetime import UTC, datetime
from decimal import Decimal
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
    ValidationError,
)
from admissions.modules.applications.schemas import ApplicationUpdate
from admissions.modules.applications.service import (
    REASON_NOT_EDITABLE,
    get_application,
    list_own_applications,
    submit_application,
    update_application,
)

SERVICE = "admissions.modules.applications.service"


class TestSubmitApplication:
    """Tests for submit_application."""

    @pytest.mark.asyncio
    async def test_submit_success(self, mock_db, student, application_create, sample_application):
        """A valid application is created for the caller."""
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_pending_for_user = AsyncMock(return_value=None)
            mock_repo.create = AsyncMock(return_value=sample_application)

            result = await submit_application(mock_db, student, application_create)

            assert result == sample_application
            mock_repo.get_pending_for_user.assert_awaited_once_with(mock_db, student.id)
            owner_id, fields = mock_repo.create.call_args.args[1:]
            assert owner_id == student.id
            assert fields["email"] == "ada@example.com"
            assert "status" not in fields

    @pytest.mark.asyncio
    async def test_gpa_above_four_rejected(self, mock_db, student, build_application_create):
        """GPA 4.5 is rejected before anything is persisted."""
        data = build_application_create(high_school_gpa=Decimal("4.5"))

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.create = AsyncMock()

            with pytest.raises(ValidationError) as exc_info:
                await submit_application(mock_db, student, data)

            assert exc_info.value.field == "high_school_gpa"
            assert exc_info.value.status_code == 400
            mock_repo.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_negative_gpa_rejected(self, mock_db, student, build_application_create):
        data = build_application_create(high_school_gpa=Decimal("-0.1"))

        with patch(f"{SERVICE}.repository"):
            with pytest.raises(ValidationError):
                await submit_application(mock_db, student, data)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("gpa", [Decimal("0"), Decimal("4.0"), None])
    async def test_gpa_boundaries_accepted(
        self, mock_db, student, sample_application, build_application_create, gpa
    ):
        """GPA 0 and 4.0 are valid, and GPA is optional."""
        data = build_application_create(high_school_gpa=gpa)

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_pending_for_user = AsyncMock(return_value=None)
            mock_repo.create = AsyncMock(return_value=sample_application)

            await submit_application(mock_db, student, data)

            mock_repo.create.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("offset", [-11, 6])
    async def test_graduation_year_out_of_range(
        self, mock_db, student, build_application_create, offset
    ):
        data = build_application_create(graduation_year=datetime.now(UTC).year + offset)

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.create = AsyncMock()

            with pytest.raises(ValidationError) as exc_info:
                await submit_application(mock_db, student, data)

            assert exc_info.value.field == "graduation_year"
            mock_repo.create.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("offset", [-10, 0, 5])
    async def test_graduation_year_boundaries(
        self, mock_db, student, sample_application, build_application_create, offset
    ):
        data = build_application_create(graduation_year=datetime.now(UTC).year + offset)

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_pending_for_user = AsyncMock(return_value=None)
            mock_repo.create = AsyncMock(return_value=sample_application)

            await submit_application(mock_db, student, data)

    @pytest.mark.asyncio
    async def test_second_pending_application_conflicts(
        self, mock_db, student, application_create, sample_application
    ):
        """A second submission while one is pending fails and creates no row."""
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_pending_for_user = AsyncMock(return_value=sample_application)
            mock_repo.create = AsyncMock()

            with pytest.raises(ConflictError) as exc_info:
                await submit_application(mock_db, student, application_create)

            assert exc_info.value.error_code == "PENDING_APPLICATION_EXISTS"
            assert exc_info.value.status_code == 409
            mock_repo.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_concurrent_submission_hits_unique_index(
        self, mock_db, student, application_create
    ):
        """The partial unique index catches a race the pre-check missed."""
        error = IntegrityError(
            "INSERT INTO applications",
            {},
            Exception(
                'duplicate key value violates unique constraint '
                '"ix_applications_one_pending_per_user"'
            ),
        )

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_pending_for_user = AsyncMock(return_value=None)
            mock_repo.create = AsyncMock(side_effect=error)

            with pytest.raises(ConflictError):
                await submit_application(mock_db, student, application_create)

            mock_db.rollback.assert_awaited()

    @pytest.mark.asyncio
    async def test_persistence_failure_is_transient(self, mock_db, student, application_create):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_pending_for_user = AsyncMock(return_value=None)
            mock_repo.create = AsyncMock(
                side_effect=OperationalError("INSERT", {}, Exception("connection lost"))
            )

            with pytest.raises(TransientError):
                await submit_application(mock_db, student, application_create)

    @pytest.mark.asyncio
    async def test_admin_cannot_submit(self, mock_db, admin, application_create):
        """Applications are only ever created by the owning student."""
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_pending_for_user = AsyncMock()
            mock_repo.create = AsyncMock()

            with pytest.raises(AuthzError) as exc_info:
                await submit_application(mock_db, admin, application_create)

            assert exc_info.value.reason == REASON_NOT_OWNER
            mock_repo.get_pending_for_user.assert_not_called()
            mock_repo.create.assert_not_called()


class TestReadApplications:
    """Tests for list_own_applications and get_application."""

    @pytest.mark.asyncio
    async def test_list_own(self, mock_db, student, sample_application):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.list_for_user = AsyncMock(return_value=[sample_application])

            result = await list_own_applications(mock_db, student)

            assert result == [sample_application]
            mock_repo.list_for_user.assert_awaited_once_with(mock_db, student.id)

    @pytest.mark.asyncio
    async def test_admin_has_no_own_applications_to_list(self, mock_db, admin):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.list_for_user = AsyncMock()

            with pytest.raises(AuthzError):
                await list_own_applications(mock_db, admin)

            mock_repo.list_for_user.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_application_with_documents(self, mock_db, student, sample_application):
        documents = [object(), object()]

        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.document_repository") as mock_doc_repo,
        ):
            mock_repo.get_by_id = AsyncMock(return_value=sample_application)
            mock_doc_repo.list_for_application = AsyncMock(return_value=documents)

            application, docs = await get_application(mock_db, student, sample_application.id)

            assert application == sample_application
            assert docs == documents

    @pytest.mark.asyncio
    async def test_get_application_not_found(self, mock_db, student):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=None)

            with pytest.raises(NotFoundError) as exc_info:
                await get_application(mock_db, student, uuid4())

            assert exc_info.value.error_code == "APPLICATION_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_get_application_of_other_owner_forbidden(
        self, mock_db, other_student, sample_application
    ):
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.document_repository") as mock_doc_repo,
        ):
            mock_repo.get_by_id = AsyncMock(return_value=sample_application)
            mock_doc_repo.list_for_application = AsyncMock()

            with pytest.raises(AuthzError) as exc_info:
                await get_application(mock_db, other_student, sample_application.id)

            assert exc_info.value.reason == REASON_NOT_OWNER
            mock_doc_repo.list_for_application.assert_not_called()

    @pytest.mark.asyncio
    async def test_admin_reads_any_application(self, mock_db, admin, sample_application):
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.document_repository") as mock_doc_repo,
        ):
            mock_repo.get_by_id = AsyncMock(return_value=sample_application)
            mock_doc_repo.list_for_application = AsyncMock(return_value=[])

            application, docs = await get_application(mock_db, admin, sample_application.id)

            assert application == sample_application
            assert docs == []


class TestUpdateApplication:
    """Tests for update_application."""

    @pytest.mark.asyncio
    async def test_partial_update_lowercases_email(self, mock_db, student, sample_application):
        """Only fields present in the request are written."""
        data = ApplicationUpdate(email="New.Address@Example.COM")

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=sample_application)
            mock_repo.update_fields = AsyncMock(return_value=sample_application)

            await update_application(mock_db, student, sample_application.id, data)

            mock_repo.update_fields.assert_awaited_once_with(
                mock_db, sample_application, {"email": "new.address@example.com"}
            )

    @pytest.mark.asyncio
    async def test_empty_update_is_noop(self, mock_db, student, sample_application):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=sample_application)
            mock_repo.update_fields = AsyncMock()

            result = await update_application(
                mock_db, student, sample_application.id, ApplicationUpdate()
            )

            assert result == sample_application
            mock_repo.update_fields.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_rejects_gpa_out_of_range(self, mock_db, student, sample_application):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=sample_application)
            mock_repo.update_fields = AsyncMock()

            with pytest.raises(ValidationError):
                await update_application(
                    mock_db,
                    student,
                    sample_application.id,
                    ApplicationUpdate(high_school_gpa=Decimal("4.01")),
                )

            mock_repo.update_fields.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_rejects_null_required_field(self, mock_db, student, sample_application):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=sample_application)
            mock_repo.update_fields = AsyncMock()

            with pytest.raises(ValidationError) as exc_info:
                await update_application(
                    mock_db, student, sample_application.id, ApplicationUpdate(full_name=None)
                )

            assert exc_info.value.field == "full_name"

    @pytest.mark.asyncio
    async def test_student_cannot_update_after_review_started(
        self, mock_db, student, under_review_application
    ):
        """Once the application leaves submitted the owner can no longer edit it."""
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=under_review_application)
            mock_repo.update_fields = AsyncMock()

            with pytest.raises(AuthzError) as exc_info:
                await update_application(
                    mock_db,
                    student,
                    under_review_application.id,
                    ApplicationUpdate(full_name="Changed"),
                )

            assert exc_info.value.reason == REASON_NOT_EDITABLE
            assert exc_info.value.status_code == 403
            mock_repo.update_fields.assert_not_called()

    @pytest.mark.asyncio
    async def test_non_owner_cannot_update(self, mock_db, other_student, sample_application):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=sample_application)
            mock_repo.update_fields = AsyncMock()

            with pytest.raises(AuthzError) as exc_info:
                await update_application(
                    mock_db,
                    other_student,
                    sample_application.id,
                    ApplicationUpdate(full_name="Hijack"),
                )

            assert exc_info.value.reason == REASON_NOT_OWNER
            mock_repo.update_fields.assert_not_called()

    @pytest.mark.asyncio
    async def test_admin_can_update_in_any_status(
        self, mock_db, admin, under_review_application
    ):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=under_review_application)
            mock_repo.update_fields = AsyncMock(return_value=under_review_application)

            await update_application(
                mock_db,
                admin,
                under_review_application.id,
                ApplicationUpdate(phone="+1 555 0199"),
            )

            mock_repo.update_fields.assert_awaited_once()
