"""
Admin Audit Log Service

record() is invoked synchronously after an admin-only mutation has succeeded.
If the insert fails the error is surfaced as a TransientError so the caller
never reports success while audit coverage is silently lost.
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.authorization import Action, AuthContext, enforce
from admissions.core.exceptions import TransientError
from admissions.modules.audit import repository
from admissions.modules.audit.models import AdminAction

logger = logging.getLogger(__name__)

DEFAULT_LOG_LIMIT = 50
MAX_LOG_LIMIT = 200


def _to_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def clamp_pagination(limit: Any, offset: Any) -> tuple[int, int]:
    """
    Normalise pagination parameters to non-negative integers.

    Unparseable values fall back to the defaults and limit is capped.
    """
    limit_value = min(max(0, _to_int(limit, DEFAULT_LOG_LIMIT)), MAX_LOG_LIMIT)
    offset_value = max(0, _to_int(offset, 0))
    return limit_value, offset_value


async def record(
    db: AsyncSession,
    *,
    actor_id: UUID,
    action_type: str,
    target_type: str,
    target_id: UUID,
    details: dict[str, Any] | None = None,
) -> AdminAction:
    """
    Append an audit entry.

    Raises:
        TransientError: If the entry could not be persisted
    """
    try:
        action = await repository.create(
            db,
            admin_id=actor_id,
            action_type=action_type,
            target_type=target_type,
            target_id=target_id,
            details=details or {},
        )
    except SQLAlchemyError as e:
        logger.exception(
            f"Failed to record admin action {action_type} on {target_type} {target_id}: {e}"
        )
        await db.rollback()
        raise TransientError("Failed to record admin action.") from e

    logger.info(f"Admin {actor_id} performed {action_type} on {target_type} {target_id}")
    return action


async def list_actions(
    db: AsyncSession,
    principal: AuthContext,
    limit: Any = DEFAULT_LOG_LIMIT,
    offset: Any = 0,
) -> dict:
    """
    Get audit entries ordered newest first.

    Returns:
        Dict with logs, limit and offset (after clamping)
    """
    enforce(principal, Action.READ_AUDIT_LOG)
    limit_value, offset_value = clamp_pagination(limit, offset)

    if limit_value == 0:
        return {"logs": [], "limit": 0, "offset": offset_value}

    try:
        logs = await repository.list_recent(db, limit=limit_value, offset=offset_value)
    except SQLAlchemyError as e:
        logger.exception(f"Failed to fetch admin logs: {e}")
        raise TransientError() from e

    return {"logs": logs, "limit": limit_value, "offset": offset_value}
