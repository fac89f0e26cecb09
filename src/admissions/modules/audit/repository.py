"""
Audit Repository

Insert and read operations for the admin action log. There are deliberately
no update or delete functions.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import AdminAction


async def create(
    db: AsyncSession,
    *,
    admin_id: UUID,
    action_type: str,
    target_type: str,
    target_id: UUID,
    details: dict,
) -> AdminAction:
    """Insert a new audit entry."""
    action = AdminAction(
        admin_id=admin_id,
        action_type=action_type,
        target_type=target_type,
        target_id=target_id,
        details=details,
    )

    db.add(action)
    await db.commit()
    await db.refresh(action)

    return action


async def list_recent(db: AsyncSession, *, limit: int, offset: int) -> list[AdminAction]:
    """Get audit entries newest first."""
    result = await db.execute(
        select(AdminAction)
        .order_by(AdminAction.created_at.desc(), AdminAction.id.desc())
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all())
