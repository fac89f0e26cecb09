"""
Admin Audit Log Router

Endpoints:
- GET /admin/logs - Newest-first admin action log
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.auth import require_admin
from admissions.core.authorization import AuthContext
from admissions.core.database import get_db
from admissions.core.exceptions import ServiceError, raise_http_error, raise_internal_error
from admissions.modules.audit import service
from admissions.modules.audit.models import AdminAction
from admissions.modules.audit.schemas import AdminActionResponse, AdminLogListResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _action_to_response(action: AdminAction) -> AdminActionResponse:
    return AdminActionResponse(
        id=action.id,
        admin_id=action.admin_id,
        admin_email=action.admin.email if action.admin else None,
        action_type=action.action_type,
        target_type=action.target_type,
        target_id=action.target_id,
        details=action.details or {},
        created_at=action.created_at,
    )


@router.get("", response_model=AdminLogListResponse, summary="List Admin Actions")
async def list_admin_logs(
    limit: int = Query(service.DEFAULT_LOG_LIMIT, description="Maximum entries to return"),
    offset: int = Query(0, description="Entries to skip"),
    db: AsyncSession = Depends(get_db),
    admin: AuthContext = Depends(require_admin),
) -> AdminLogListResponse:
    """Return the admin action log, newest first. Out-of-range values are clamped."""
    try:
        result = await service.list_actions(db, admin, limit=limit, offset=offset)
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "listing admin actions")

    logger.info(f"Admin {admin.id} read {len(result['logs'])} audit entries")

    return AdminLogListResponse(
        logs=[_action_to_response(action) for action in result["logs"]],
        limit=result["limit"],
        offset=result["offset"],
    )
