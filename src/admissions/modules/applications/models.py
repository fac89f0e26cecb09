"""
Application Models

Database model for admission applications submitted by students.
"""

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from admissions.core.database import Base


class ApplicationStatus(str, enum.Enum):
    """Status of an admission application."""

    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    EVALUATED = "evaluated"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


# At most one application per owner may be in one of these states
PENDING_STATUSES: frozenset[ApplicationStatus] = frozenset(
    {ApplicationStatus.SUBMITTED, ApplicationStatus.UNDER_REVIEW}
)


class Application(Base):
    """
    Admission application.

    Owned exclusively by the student who created it. Documents hang off it
    through documents.application_id.
    """

    __tablename__ = "applications"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Owner
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )

    # Applicant information
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(30), nullable=False)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False)

    # Academic information
    high_school_name: Mapped[str] = mapped_column(String(200), nullable=False)
    high_school_gpa: Mapped[Decimal | None] = mapped_column(Numeric(3, 2), nullable=True)
    graduation_year: Mapped[int] = mapped_column(Integer, nullable=False)
    intended_major: Mapped[str] = mapped_column(String(200), nullable=False)
    extracurricular_activities: Mapped[str | None] = mapped_column(Text, nullable=True)
    personal_statement: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Status tracking
    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(
            ApplicationStatus,
            name="application_status",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=ApplicationStatus.SUBMITTED,
    )

    # Evaluation slots written by the external evaluator
    ai_score: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    ai_ranking: Mapped[str | None] = mapped_column(String(100), nullable=True)
    ai_evaluation_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Review metadata
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(
            "high_school_gpa IS NULL OR (high_school_gpa >= 0 AND high_school_gpa <= 4)",
            name="ck_applications_gpa_range",
        ),
        CheckConstraint(
            "ai_score IS NULL OR (ai_score >= 0 AND ai_score <= 100)",
            name="ck_applications_ai_score_range",
        ),
        Index("ix_applications_user_id", "user_id"),
        Index("ix_applications_status", "status"),
        Index("ix_applications_submitted_at", "submitted_at"),
        # Serialises concurrent submissions from the same owner
        Index(
            "ix_applications_one_pending_per_user",
            "user_id",
            unique=True,
            postgresql_where=text("status IN ('submitted', 'under_review')"),
        ),
    )

    @property
    def is_pending(self) -> bool:
        return self.status in PENDING_STATUSES
