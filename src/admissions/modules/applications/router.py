"""
Applications Router

API endpoints for students managing their own admission application.
All endpoints require a valid JWT; ownership is checked in the service layer.

Endpoints:
- POST /applications - Submit a new application
- GET /applications - List own applications
- GET /applications/{id} - Get an application with its documents
- PUT /applications/{id} - Edit an application while it is still submitted
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.auth import get_auth_context
from admissions.core.authorization import AuthContext
from admissions.core.database import get_db
from admissions.core.exceptions import ServiceError, raise_http_error, raise_internal_error
from admissions.modules.applications import service
from admissions.modules.applications.schemas import (
    ApplicationCreate,
    ApplicationDetailResponse,
    ApplicationListResponse,
    ApplicationResponse,
    ApplicationUpdate,
)
from admissions.modules.documents.schemas import DocumentResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Application",
    description="""
Submit a new admission application.

**Rules:**
- Only one application may be pending (`submitted` or `under_review`) at a time
- GPA must be between 0 and 4.0
- Graduation year must be within ten years back and five years ahead

The new application starts in `submitted` status.
""",
    responses={
        400: {"description": "Validation error - a field is missing or out of range"},
        409: {
            "description": "A pending application already exists",
            "content": {
                "application/json": {
                    "example": {
                        "detail": {
                            "error": "PENDING_APPLICATION_EXISTS",
                            "message": "You already have a pending application.",
                        }
                    }
                }
            },
        },
    },
)
async def submit_application(
    data: ApplicationCreate,
    db: AsyncSession = Depends(get_db),
    principal: AuthContext = Depends(get_auth_context),
) -> ApplicationResponse:
    """Submit a new application owned by the caller."""
    try:
        application = await service.submit_application(db, principal, data)
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "submitting application")

    return ApplicationResponse.model_validate(application)


@router.get(
    "",
    response_model=ApplicationListResponse,
    summary="List My Applications",
)
async def list_my_applications(
    db: AsyncSession = Depends(get_db),
    principal: AuthContext = Depends(get_auth_context),
) -> ApplicationListResponse:
    """List the caller's applications, newest first."""
    try:
        applications = await service.list_own_applications(db, principal)
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "listing applications")

    return ApplicationListResponse(
        applications=[ApplicationResponse.model_validate(a) for a in applications]
    )


@router.get(
    "/{application_id}",
    response_model=ApplicationDetailResponse,
    summary="Get Application",
    responses={
        403: {"description": "Not the owner of the application"},
        404: {"description": "Application not found"},
    },
)
async def get_application(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    principal: AuthContext = Depends(get_auth_context),
) -> ApplicationDetailResponse:
    """Get an application together with its documents."""
    try:
        application, documents = await service.get_application(db, principal, application_id)
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "fetching application")

    return ApplicationDetailResponse(
        application=ApplicationResponse.model_validate(application),
        documents=[DocumentResponse.model_validate(d) for d in documents],
    )


@router.put(
    "/{application_id}",
    response_model=ApplicationResponse,
    summary="Update Application",
    description="""
Edit applicant fields. Fields left out of the body are unchanged.

Students may only edit their own application while its status is `submitted`.
""",
    responses={
        400: {"description": "Validation error"},
        403: {"description": "Not the owner, or the application is no longer editable"},
        404: {"description": "Application not found"},
    },
)
async def update_application(
    application_id: UUID,
    data: ApplicationUpdate,
    db: AsyncSession = Depends(get_db),
    principal: AuthContext = Depends(get_auth_context),
) -> ApplicationResponse:
    """Apply a partial update to an application."""
    try:
        application = await service.update_application(db, principal, application_id, data)
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "updating application")

    return ApplicationResponse.model_validate(application)
