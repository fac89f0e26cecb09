"""
Applications Repository

Database operations for admission applications. Only data access lives here;
validation and authorization belong to the service layer.
"""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import asc, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.modules.documents.models import Document

from .models import PENDING_STATUSES, Application, ApplicationStatus

# Columns the admin list may be sorted by
SORTABLE_COLUMNS = {
    "submitted_at",
    "full_name",
    "status",
    "ai_score",
    "graduation_year",
    "high_school_gpa",
}
DEFAULT_SORT_COLUMN = "submitted_at"


async def create(db: AsyncSession, owner_id: UUID, fields: dict[str, Any]) -> Application:
    """Insert a new application with status SUBMITTED."""
    application = Application(
        user_id=owner_id,
        status=ApplicationStatus.SUBMITTED,
        **fields,
    )

    db.add(application)
    await db.commit()
    await db.refresh(application)

    return application


async def get_by_id(db: AsyncSession, id: UUID) -> Application | None:
    """Get application by ID."""
    return await db.get(Application, id)


async def get_pending_for_user(db: AsyncSession, user_id: UUID) -> Application | None:
    """Get the owner's application in a pending status, if any."""
    result = await db.execute(
        select(Application)
        .where(
            Application.user_id == user_id,
            Application.status.in_(PENDING_STATUSES),
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def list_for_user(db: AsyncSession, user_id: UUID) -> list[Application]:
    """Get all applications owned by a user, newest first."""
    result = await db.execute(
        select(Application)
        .where(Application.user_id == user_id)
        .order_by(Application.submitted_at.desc())
    )
    return list(result.scalars().all())


async def update_fields(
    db: AsyncSession,
    application: Application,
    updates: dict[str, Any],
) -> Application:
    """Apply a partial update of applicant fields."""
    for key, value in updates.items():
        setattr(application, key, value)

    await db.commit()
    await db.refresh(application)

    return application


async def update_status(
    db: AsyncSession,
    application: Application,
    status: ApplicationStatus,
    reviewed_by: UUID,
) -> Application:
    """Set status and stamp reviewer id and time."""
    application.status = status
    application.reviewed_by = reviewed_by
    application.reviewed_at = datetime.now(UTC)

    await db.commit()
    await db.refresh(application)

    return application


async def update_evaluation(
    db: AsyncSession,
    application: Application,
    score: Decimal,
    ranking: str,
) -> Application:
    """Write score and ranking together and stamp the evaluation time."""
    application.ai_score = score
    application.ai_ranking = ranking
    application.ai_evaluation_date = datetime.now(UTC)

    await db.commit()
    await db.refresh(application)

    return application


async def delete(db: AsyncSession, application: Application) -> None:
    """Delete the application row. Documents must already be gone."""
    await db.delete(application)
    await db.commit()


# ============================================
# Admin Repository Methods
# ============================================


async def get_applications_for_admin(
    db: AsyncSession,
    *,
    status: ApplicationStatus | None = None,
    sort_by: str = DEFAULT_SORT_COLUMN,
    sort_order: str = "desc",
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[tuple[Application, int]], int]:
    """
    Get applications with their document counts for the admin dashboard.

    Args:
        db: Database session
        status: Filter by application status (optional)
        sort_by: Column to sort by; unknown columns fall back to submitted_at
        sort_order: "asc" or "desc" (default desc, newest first)
        skip: Records to skip
        limit: Maximum records to return

    Returns:
        Tuple of ([(application, document_count), ...], total matching filters)
    """
    filters = []
    if status:
        filters.append(Application.status == status)

    count_query = select(func.count()).select_from(Application).where(*filters)
    total = (await db.execute(count_query)).scalar() or 0

    document_counts = (
        select(Document.application_id, func.count(Document.id).label("document_count"))
        .group_by(Document.application_id)
        .subquery()
    )

    if sort_by not in SORTABLE_COLUMNS:
        sort_by = DEFAULT_SORT_COLUMN
    sort_column = getattr(Application, sort_by)
    ordering = asc(sort_column) if sort_order.lower() == "asc" else desc(sort_column)

    query = (
        select(Application, func.coalesce(document_counts.c.document_count, 0))
        .outerjoin(document_counts, document_counts.c.application_id == Application.id)
        .where(*filters)
        .order_by(ordering, Application.id)
        .offset(skip)
        .limit(limit)
    )

    result = await db.execute(query)
    rows = [(row[0], int(row[1])) for row in result.all()]

    return rows, total


async def get_statistics(db: AsyncSession) -> dict:
    """
    Aggregate counts for the admin dashboard.

    Returns:
        Dict with total_applications, status_counts, average_ai_score
        and recent_applications (submitted in the last 7 days)
    """
    total = (await db.execute(select(func.count(Application.id)))).scalar() or 0

    status_rows = await db.execute(
        select(Application.status, func.count(Application.id)).group_by(Application.status)
    )
    counts = {row[0]: row[1] for row in status_rows.all()}
    status_counts = {status.value: counts.get(status, 0) for status in ApplicationStatus}

    average = (
        await db.execute(
            select(func.avg(Application.ai_score)).where(Application.ai_score.is_not(None))
        )
    ).scalar()

    week_ago = datetime.now(UTC) - timedelta(days=7)
    recent = (
        await db.execute(
            select(func.count(Application.id)).where(Application.submitted_at >= week_ago)
        )
    ).scalar() or 0

    return {
        "total_applications": total,
        "status_counts": status_counts,
        "average_ai_score": round(float(average), 2) if average is not None else 0.0,
        "recent_applications": recent,
    }
