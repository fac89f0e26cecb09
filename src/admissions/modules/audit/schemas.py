"""Audit log schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel


class AdminActionResponse(BaseModel):
    """One audit log entry."""

    id: UUID
    admin_id: UUID
    admin_email: str | None = None
    action_type: str
    target_type: str
    target_id: UUID
    details: dict[str, Any]
    created_at: datetime


class AdminLogListResponse(BaseModel):
    """Paginated audit log."""

    logs: list[AdminActionResponse]
    limit: int
    offset: int
