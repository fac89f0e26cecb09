"""
Audit Models

Append-only record of privileged mutations. Rows are never updated or deleted.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from admissions.core.database import Base
from admissions.modules.users.models import User


class AdminActionType:
    """Known action kinds."""

    STATUS_UPDATE = "status_update"
    AI_EVALUATION = "ai_evaluation"
    DELETE_APPLICATION = "delete_application"


class AdminAction(Base):
    """A single privileged mutation performed by an admin."""

    __tablename__ = "admin_actions"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # References but does not own the actor; audit rows outlive nothing else
    admin_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )
    action_type: Mapped[str] = mapped_column(String(50), nullable=False)

    # Generic target reference (no FK: the target may since have been deleted)
    target_type: Mapped[str] = mapped_column(String(50), nullable=False)
    target_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)

    details: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    admin: Mapped[User] = relationship(User, lazy="joined")

    __table_args__ = (
        Index("ix_admin_actions_created_at", "created_at"),
        Index("ix_admin_actions_target", "target_type", "target_id"),
    )
