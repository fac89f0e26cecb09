"""
Applications Admin Router

API endpoints for administrators reviewing admission applications.
All endpoints require a valid JWT with the admin role.

Endpoints:
- GET /admin/applications - List applications with filters and sorting
- GET /admin/applications/stats - Dashboard statistics
- GET /admin/applications/{id} - Application details with documents
- PUT /admin/applications/{id}/status - Set application status
- PUT /admin/applications/{id}/ai-evaluation - Record evaluation score and ranking
- DELETE /admin/applications/{id} - Delete application and its documents

Security:
- All endpoints require a valid JWT token with admin role
- Every mutation is recorded in the admin action log
- Rate limiting on mutation endpoints
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.auth import require_admin
from admissions.core.authorization import AuthContext
from admissions.core.database import get_db
from admissions.core.exceptions import ServiceError, raise_http_error, raise_internal_error
from admissions.core.rate_limit import enforce_admin_rate_limit
from admissions.core.storage import LocalBlobStorage, get_storage
from admissions.modules.applications import service
from admissions.modules.applications.models import Application
from admissions.modules.applications.schemas import (
    AdminApplicationListItem,
    AdminApplicationListResponse,
    ApplicationDetailResponse,
    ApplicationResponse,
    DashboardStats,
    EvaluationUpdateRequest,
    MessageResponse,
    StatusUpdateRequest,
)
from admissions.modules.documents.schemas import DocumentResponse
from admissions.modules.profiles.schemas import StudentProfileResponse

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Rate Limiting Configuration
# ============================================

RATE_LIMIT_STATUS = (30, 60)  # 30 status changes per minute
RATE_LIMIT_EVALUATION = (30, 60)  # 30 evaluations per minute
RATE_LIMIT_DELETE = (10, 60)  # 10 deletions per minute


def _to_list_item(application: Application, document_count: int) -> AdminApplicationListItem:
    item = AdminApplicationListItem.model_validate(application)
    item.document_count = document_count
    return item


# ============================================
# Read Endpoints
# ============================================


@router.get(
    "",
    response_model=AdminApplicationListResponse,
    summary="List Applications",
    description="""
Get a filtered, sorted list of applications with their document counts.

**Filters:**
- `status`: submitted, under_review, evaluated, accepted or rejected

**Sorting:**
- `sort_by`: submitted_at, full_name, status, ai_score, graduation_year,
  high_school_gpa. Default: submitted_at
- `order`: asc or desc. Default: desc (newest first)

**Pagination:**
- `skip`: Records to skip. Default: 0
- `limit`: Maximum records to return (1-100). Default: 20

**Access:** Admin only
""",
)
async def list_applications(
    status: str | None = Query(None, description="Filter by application status"),
    sort_by: str = Query("submitted_at", alias="sortBy", description="Column to sort by"),
    order: str = Query("desc", description="Sort direction (asc/desc)"),
    skip: int = Query(0, description="Records to skip"),
    limit: int = Query(20, description="Maximum records to return"),
    db: AsyncSession = Depends(get_db),
    admin: AuthContext = Depends(require_admin),
) -> AdminApplicationListResponse:
    """List all applications for the admin dashboard."""
    try:
        result = await service.admin_list_applications(
            db,
            admin,
            status=status,
            sort_by=sort_by,
            sort_order=order,
            skip=skip,
            limit=limit,
        )
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "listing applications")

    logger.info(
        f"Admin {admin.id} listed applications: "
        f"total={result['total']}, returned={len(result['applications'])}"
    )

    return AdminApplicationListResponse(
        applications=[_to_list_item(app, count) for app, count in result["applications"]],
        total=result["total"],
        skip=result["skip"],
        limit=result["limit"],
    )


@router.get(
    "/stats",
    response_model=DashboardStats,
    summary="Get Dashboard Statistics",
    description="""
Aggregated statistics for the admin dashboard:
- `total_applications`
- `status_counts`: count per status
- `average_ai_score`: over evaluated applications, two decimals
- `recent_applications`: submitted in the last 7 days

**Access:** Admin only
""",
)
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_db),
    admin: AuthContext = Depends(require_admin),
) -> DashboardStats:
    """Get dashboard statistics."""
    try:
        stats = await service.admin_get_statistics(db, admin)
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "getting dashboard stats")

    return DashboardStats(**stats)


@router.get(
    "/{application_id}",
    response_model=ApplicationDetailResponse,
    summary="Get Application Details",
    responses={404: {"description": "Application not found"}},
)
async def get_application_detail(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: AuthContext = Depends(require_admin),
) -> ApplicationDetailResponse:
    """Get an application with its documents and the applicant's profile."""
    try:
        application, documents, profile = await service.admin_get_application(
            db, admin, application_id
        )
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "getting application detail")

    return ApplicationDetailResponse(
        application=ApplicationResponse.model_validate(application),
        documents=[DocumentResponse.model_validate(d) for d in documents],
        profile=StudentProfileResponse.model_validate(profile) if profile else None,
    )


# ============================================
# Mutation Endpoints
# ============================================


@router.put(
    "/{application_id}/status",
    response_model=ApplicationResponse,
    summary="Update Application Status",
    description="""
Set the application's status to any of the five statuses. The reviewer and
review time are recorded, and the change is written to the admin action log.

**Access:** Admin only
""",
    responses={
        400: {"description": "Invalid status value"},
        404: {"description": "Application not found"},
        409: {"description": "Applicant already has another pending application"},
        429: {"description": "Rate limit exceeded"},
    },
)
async def update_status(
    application_id: UUID,
    data: StatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
    admin: AuthContext = Depends(require_admin),
) -> ApplicationResponse:
    """Set application status."""
    await enforce_admin_rate_limit(admin, "update_status", *RATE_LIMIT_STATUS)

    try:
        application = await service.admin_update_status(db, admin, application_id, data.status)
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "updating application status")

    return ApplicationResponse.model_validate(application)


@router.put(
    "/{application_id}/ai-evaluation",
    response_model=ApplicationResponse,
    summary="Record Evaluation",
    description="""
Record the external evaluator's score (0-100) and ranking. Both are required.

**Access:** Admin only
""",
    responses={
        400: {"description": "Missing field or score out of range"},
        404: {"description": "Application not found"},
        429: {"description": "Rate limit exceeded"},
    },
)
async def update_evaluation(
    application_id: UUID,
    data: EvaluationUpdateRequest,
    db: AsyncSession = Depends(get_db),
    admin: AuthContext = Depends(require_admin),
) -> ApplicationResponse:
    """Write evaluation score and ranking."""
    await enforce_admin_rate_limit(admin, "update_evaluation", *RATE_LIMIT_EVALUATION)

    try:
        application = await service.admin_update_evaluation(
            db, admin, application_id, data.ai_score, data.ai_ranking
        )
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "updating evaluation")

    return ApplicationResponse.model_validate(application)


@router.delete(
    "/{application_id}",
    response_model=MessageResponse,
    summary="Delete Application",
    description="""
Delete an application together with all of its documents and their stored files.

**Access:** Admin only
""",
    responses={
        404: {"description": "Application not found"},
        429: {"description": "Rate limit exceeded"},
    },
)
async def delete_application(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    storage: LocalBlobStorage = Depends(get_storage),
    admin: AuthContext = Depends(require_admin),
) -> MessageResponse:
    """Delete an application."""
    await enforce_admin_rate_limit(admin, "delete_application", *RATE_LIMIT_DELETE)

    try:
        removed = await service.admin_delete_application(db, storage, admin, application_id)
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "deleting application")

    return MessageResponse(
        message=f"Application deleted successfully ({removed} document(s) removed)."
    )
