"""
Profiles Router

Endpoints:
- GET /profile/{user_id} - Account plus profile
- PUT /profile/{user_id} - Update account names/email and the profile
- DELETE /profile/{user_id} - Delete the profile
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.auth import get_auth_context
from admissions.core.authorization import AuthContext
from admissions.core.database import get_db
from admissions.core.exceptions import ServiceError, raise_http_error, raise_internal_error
from admissions.modules.applications.schemas import MessageResponse
from admissions.modules.auth.schemas import UserResponse
from admissions.modules.profiles import service
from admissions.modules.profiles.models import StudentProfile
from admissions.modules.profiles.schemas import (
    ProfileResponse,
    ProfileUpdate,
    StudentProfileResponse,
)
from admissions.modules.users.models import User

router = APIRouter()


def _to_response(user: User, profile: StudentProfile | None) -> ProfileResponse:
    return ProfileResponse(
        user=UserResponse.model_validate(user),
        profile=StudentProfileResponse.model_validate(profile) if profile else None,
    )


@router.get(
    "/{user_id}",
    response_model=ProfileResponse,
    summary="Get Profile",
    responses={
        403: {"description": "Not your profile"},
        404: {"description": "User not found"},
    },
)
async def get_profile(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
) -> ProfileResponse:
    """Get a user and their profile. `profile` is null until one is saved."""
    try:
        user, profile = await service.get_profile(db, auth, user_id)
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "getting profile")

    return _to_response(user, profile)


@router.put(
    "/{user_id}",
    response_model=ProfileResponse,
    summary="Update Profile",
    description="""
Update account details and the personal profile.

- `email`, `first_name` and `last_name` change only when a value is given
- Profile fields that are sent are saved as given; `null` clears a field
- The profile is created on first update
""",
    responses={
        403: {"description": "Not your profile"},
        404: {"description": "User not found"},
        409: {"description": "Email already in use by another account"},
    },
)
async def update_profile(
    user_id: UUID,
    data: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
) -> ProfileResponse:
    try:
        user, profile = await service.update_profile(db, auth, user_id, data)
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "updating profile")

    return _to_response(user, profile)


@router.delete(
    "/{user_id}",
    response_model=MessageResponse,
    summary="Delete Profile",
    responses={403: {"description": "Not your profile"}},
)
async def delete_profile(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
) -> MessageResponse:
    try:
        await service.delete_profile(db, auth, user_id)
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "deleting profile")

    return MessageResponse(message="Profile deleted successfully.")
