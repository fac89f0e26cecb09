"""
Applications Service Layer

Business logic for the admission application lifecycle.
Orchestrates authorization, validation, repository operations, the document
cascade and the admin audit trail.

This module implements:
1. Student Flow:
   - Submit an application (at most one pending per owner)
   - List and read own applications
   - Edit applicant fields while the application is still submitted

2. Admin Flow:
   - Filtered, sorted listing with document counts
   - Dashboard statistics
   - Status transitions (any status reachable from any other)
   - Evaluation writes (score and ranking together)
   - Deletion with explicit document cascade

Every admin mutation appends an AdminAction after it succeeds.

Concurrency:
- The one-pending check is backed by the partial unique index
  ix_applications_one_pending_per_user, so two simultaneous submissions
  from the same owner cannot both be inserted.
"""

import logging
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.authorization import Action, AuthContext, enforce
from admissions.core.database import transient_on_failure
from admissions.core.exceptions import (
    AuthzError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from admissions.core.storage import LocalBlobStorage
from admissions.modules.applications import repository
from admissions.modules.applications.models import Application, ApplicationStatus
from admissions.modules.applications.schemas import ApplicationCreate, ApplicationUpdate
from admissions.modules.audit import service as audit_service
from admissions.modules.audit.models import AdminActionType
from admissions.modules.documents import repository as document_repository
from admissions.modules.documents import service as document_service
from admissions.modules.documents.models import Document
from admissions.modules.profiles import service as profile_service
from admissions.modules.profiles.models import StudentProfile

logger = logging.getLogger(__name__)

# Field bounds
GPA_MIN = Decimal("0")
GPA_MAX = Decimal("4")
GRADUATION_YEARS_BACK = 10
GRADUATION_YEARS_AHEAD = 5
SCORE_MIN = Decimal("0")
SCORE_MAX = Decimal("100")

PENDING_INDEX_NAME = "ix_applications_one_pending_per_user"

# Admin list pagination
ADMIN_LIST_MAX_LIMIT = 100

TARGET_TYPE_APPLICATION = "application"

REASON_NOT_EDITABLE = "forbidden: application can only be edited while submitted"

REQUIRED_FIELDS = frozenset(
    name for name, field in ApplicationCreate.model_fields.items() if field.is_required()
)


# ============================================
# Validation Helpers
# ============================================


def _validate_gpa(gpa: Decimal | None) -> None:
    if gpa is None:
        return
    if gpa < GPA_MIN or gpa > GPA_MAX:
        raise ValidationError("GPA must be between 0 and 4.0.", field="high_school_gpa")


def _validate_graduation_year(year: int | None) -> None:
    if year is None:
        return
    current = datetime.now(UTC).year
    low, high = current - GRADUATION_YEARS_BACK, current + GRADUATION_YEARS_AHEAD
    if year < low or year > high:
        raise ValidationError(
            f"Graduation year must be between {low} and {high}.",
            field="graduation_year",
        )


def _validate_applicant_fields(fields: dict[str, Any]) -> None:
    """Check range rules on whichever applicant fields are present."""
    if "high_school_gpa" in fields:
        _validate_gpa(fields["high_school_gpa"])
    if "graduation_year" in fields:
        _validate_graduation_year(fields["graduation_year"])


def _normalise_fields(fields: dict[str, Any]) -> dict[str, Any]:
    if fields.get("email"):
        fields["email"] = fields["email"].strip().lower()
    return fields


def _pending_conflict() -> ConflictError:
    return ConflictError(
        "You already have a pending application. "
        "Please wait for it to be reviewed before submitting another.",
        error_code="PENDING_APPLICATION_EXISTS",
    )


def _is_pending_conflict(error: IntegrityError) -> bool:
    return PENDING_INDEX_NAME in str(error.orig if error.orig is not None else error)


def parse_status(value: str | ApplicationStatus) -> ApplicationStatus:
    """
    Coerce a raw status value into ApplicationStatus.

    Raises:
        ValidationError: If the value is not one of the five statuses
    """
    try:
        return ApplicationStatus(value)
    except ValueError as e:
        valid = ", ".join(s.value for s in ApplicationStatus)
        raise ValidationError(
            f"Invalid status. Must be one of: {valid}", field="status"
        ) from e


def parse_score(value: Any) -> Decimal:
    """
    Coerce and range-check an evaluation score.

    Raises:
        ValidationError: If missing, not numeric, or outside [0, 100]
    """
    if value is None or value == "":
        raise ValidationError("AI score and ranking are required.", field="ai_score")
    try:
        score = Decimal(str(value))
    except InvalidOperation as e:
        raise ValidationError("AI score must be a number.", field="ai_score") from e
    if not score.is_finite() or score < SCORE_MIN or score > SCORE_MAX:
        raise ValidationError("AI score must be between 0 and 100.", field="ai_score")
    return score


async def _get_or_404(db: AsyncSession, application_id: UUID) -> Application:
    async with transient_on_failure(db, f"loading application {application_id}"):
        application = await repository.get_by_id(db, application_id)
    if not application:
        logger.warning(f"Application not found: {application_id}")
        raise NotFoundError("Application", application_id)
    return application


# ============================================
# Student Operations
# ============================================


async def submit_application(
    db: AsyncSession,
    principal: AuthContext,
    data: ApplicationCreate,
) -> Application:
    """
    Create a new application owned by the principal.

    Args:
        db: Database session
        principal: Authenticated caller; becomes the owner
        data: Applicant fields

    Returns:
        The created Application with status SUBMITTED

    Raises:
        ValidationError: GPA or graduation year out of range
        ConflictError: Owner already has a submitted or under_review application
        TransientError: Persistence failure
    """
    enforce(principal, Action.CREATE_APPLICATION, principal.id)

    fields = _normalise_fields(data.model_dump())
    _validate_applicant_fields(fields)

    async with transient_on_failure(db, f"checking pending applications for {principal.id}"):
        existing = await repository.get_pending_for_user(db, principal.id)
    if existing:
        logger.warning(
            f"User {principal.id} already has pending application {existing.id}"
        )
        raise _pending_conflict()

    try:
        async with transient_on_failure(db, f"creating application for {principal.id}"):
            application = await repository.create(db, principal.id, fields)
    except IntegrityError as e:
        if _is_pending_conflict(e):
            logger.warning(f"Concurrent submission rejected for user {principal.id}")
            raise _pending_conflict() from e
        logger.exception(f"Integrity error creating application for {principal.id}: {e}")
        raise ValidationError("Application references an unknown user.") from e

    logger.info(f"Application {application.id} submitted by user {principal.id}")
    return application


async def list_own_applications(db: AsyncSession, principal: AuthContext) -> list[Application]:
    """All of the principal's applications, newest first."""
    enforce(principal, Action.LIST_OWN_APPLICATIONS, principal.id)

    async with transient_on_failure(db, f"listing applications for {principal.id}"):
        return await repository.list_for_user(db, principal.id)


async def get_application(
    db: AsyncSession,
    principal: AuthContext,
    application_id: UUID,
) -> tuple[Application, list[Document]]:
    """
    Read an application together with its documents.

    Raises:
        NotFoundError: Application does not exist
        AuthzError: Caller is neither the owner nor an admin
    """
    application = await _get_or_404(db, application_id)
    enforce(principal, Action.READ_APPLICATION, application.user_id)

    async with transient_on_failure(db, f"listing documents for application {application_id}"):
        documents = await document_repository.list_for_application(db, application_id)

    return application, documents


async def update_application(
    db: AsyncSession,
    principal: AuthContext,
    application_id: UUID,
    data: ApplicationUpdate,
) -> Application:
    """
    Apply a partial update of applicant fields.

    Students may only edit their own application while it is SUBMITTED.
    Unset fields are left unchanged.

    Raises:
        NotFoundError: Application does not exist
        AuthzError: Not the owner, or the application has left SUBMITTED
        ValidationError: GPA or graduation year out of range
    """
    application = await _get_or_404(db, application_id)
    enforce(principal, Action.UPDATE_APPLICATION, application.user_id)

    if not principal.is_admin and application.status != ApplicationStatus.SUBMITTED:
        logger.warning(
            f"User {principal.id} tried to edit application {application_id} "
            f"in status {application.status.value}"
        )
        raise AuthzError(REASON_NOT_EDITABLE)

    updates = _normalise_fields(data.model_dump(exclude_unset=True))
    _validate_applicant_fields(updates)

    # Explicit nulls are only meaningful for optional columns
    for name in sorted(REQUIRED_FIELDS & updates.keys()):
        if updates[name] is None:
            raise ValidationError(f"{name} cannot be empty.", field=name)

    if not updates:
        return application

    async with transient_on_failure(db, f"updating application {application_id}"):
        updated = await repository.update_fields(db, application, updates)

    logger.info(
        f"Application {application_id} updated by {principal.id}: fields={sorted(updates)}"
    )
    return updated


# ============================================
# Admin Operations
# ============================================


async def admin_list_applications(
    db: AsyncSession,
    principal: AuthContext,
    *,
    status: str | ApplicationStatus | None = None,
    sort_by: str = repository.DEFAULT_SORT_COLUMN,
    sort_order: str = "desc",
    skip: int = 0,
    limit: int = 20,
) -> dict:
    """
    Filtered, sorted list of all applications with document counts.

    Returns:
        Dict with applications [(application, document_count)], total, skip, limit
    """
    enforce(principal, Action.LIST_ALL_APPLICATIONS)

    status_filter = parse_status(status) if status else None
    limit = min(max(1, limit), ADMIN_LIST_MAX_LIMIT)
    skip = max(0, skip)

    logger.info(
        f"Admin listing applications: status={status_filter}, "
        f"sort={sort_by}:{sort_order}, skip={skip}, limit={limit}"
    )

    async with transient_on_failure(db, "listing applications for admin"):
        rows, total = await repository.get_applications_for_admin(
            db,
            status=status_filter,
            sort_by=sort_by,
            sort_order=sort_order,
            skip=skip,
            limit=limit,
        )

    return {
        "applications": rows,
        "total": total,
        "skip": skip,
        "limit": limit,
    }


async def admin_get_application(
    db: AsyncSession,
    principal: AuthContext,
    application_id: UUID,
) -> tuple[Application, list[Document], StudentProfile | None]:
    """Read an application with its documents and the owner's profile, if any."""
    application, documents = await get_application(db, principal, application_id)
    profile = await profile_service.find_profile(db, application.user_id)
    return application, documents, profile


async def admin_get_statistics(db: AsyncSession, principal: AuthContext) -> dict:
    """Aggregated dashboard statistics."""
    enforce(principal, Action.READ_STATISTICS)

    async with transient_on_failure(db, "computing application statistics"):
        stats = await repository.get_statistics(db)

    logger.info(f"Dashboard stats: {stats}")
    return stats


async def admin_update_status(
    db: AsyncSession,
    principal: AuthContext,
    application_id: UUID,
    new_status: str | ApplicationStatus,
) -> Application:
    """
    Set an application's status.

    Any status is reachable from any other. The reviewer and review time are
    stamped, and a status_update AdminAction records old and new status.

    Raises:
        ValidationError: Unknown status value
        NotFoundError: Application does not exist
        ConflictError: Moving back to a pending status while the owner already
            has another pending application
    """
    enforce(principal, Action.SET_STATUS)
    target_status = parse_status(new_status)

    application = await _get_or_404(db, application_id)
    old_status = application.status

    try:
        async with transient_on_failure(db, f"updating status of application {application_id}"):
            updated = await repository.update_status(
                db, application, target_status, reviewed_by=principal.id
            )
    except IntegrityError as e:
        if not _is_pending_conflict(e):
            logger.exception(
                f"Integrity error updating status of application {application_id}: {e}"
            )
            raise
        logger.warning(
            f"Status change of application {application_id} to {target_status.value} "
            f"conflicts with another pending application"
        )
        raise ConflictError(
            "The applicant already has another pending application.",
            error_code="PENDING_APPLICATION_EXISTS",
        ) from e

    await audit_service.record(
        db,
        actor_id=principal.id,
        action_type=AdminActionType.STATUS_UPDATE,
        target_type=TARGET_TYPE_APPLICATION,
        target_id=application_id,
        details={"old_status": old_status.value, "new_status": target_status.value},
    )

    logger.info(
        f"Admin {principal.id} changed application {application_id} status: "
        f"{old_status.value} -> {target_status.value}"
    )
    return updated


async def admin_update_evaluation(
    db: AsyncSession,
    principal: AuthContext,
    application_id: UUID,
    ai_score: Any,
    ai_ranking: str | None,
) -> Application:
    """
    Write the evaluation score and ranking together.

    Raises:
        ValidationError: Either field missing, or score outside [0, 100]
        NotFoundError: Application does not exist
    """
    enforce(principal, Action.SET_EVALUATION)

    if ai_ranking is None or not str(ai_ranking).strip():
        raise ValidationError("AI score and ranking are required.", field="ai_ranking")
    score = parse_score(ai_score)
    ranking = str(ai_ranking).strip()

    application = await _get_or_404(db, application_id)

    async with transient_on_failure(db, f"updating evaluation of application {application_id}"):
        updated = await repository.update_evaluation(db, application, score, ranking)

    await audit_service.record(
        db,
        actor_id=principal.id,
        action_type=AdminActionType.AI_EVALUATION,
        target_type=TARGET_TYPE_APPLICATION,
        target_id=application_id,
        details={"ai_score": float(score), "ai_ranking": ranking},
    )

    logger.info(f"Admin {principal.id} evaluated application {application_id}: score={score}")
    return updated


async def admin_delete_application(
    db: AsyncSession,
    storage: LocalBlobStorage,
    principal: AuthContext,
    application_id: UUID,
) -> int:
    """
    Delete an application and every document it owns.

    Documents (rows and blobs) are detached one by one before the
    application row is removed. The applicant's name is captured for the
    audit entry before anything is deleted.

    Returns:
        Number of documents removed
    """
    enforce(principal, Action.DELETE_APPLICATION)

    application = await _get_or_404(db, application_id)
    applicant_name = application.full_name

    removed = await document_service.detach_all_for_application(db, storage, application_id)

    async with transient_on_failure(db, f"deleting application {application_id}"):
        await repository.delete(db, application)

    await audit_service.record(
        db,
        actor_id=principal.id,
        action_type=AdminActionType.DELETE_APPLICATION,
        target_type=TARGET_TYPE_APPLICATION,
        target_id=application_id,
        details={"application_name": applicant_name, "documents_removed": removed},
    )

    logger.info(
        f"Admin {principal.id} deleted application {application_id} "
        f"with {removed} document(s)"
    )
    return removed
