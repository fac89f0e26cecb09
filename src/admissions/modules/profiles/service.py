"""
Profiles Service Layer

Reading and editing a user's account details and personal profile.
A student may act on their own profile only; admins may act on any.
"""

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.authorization import Action, AuthContext, enforce
from admissions.core.database import transient_on_failure
from admissions.core.exceptions import ConflictError, NotFoundError
from admissions.modules.profiles import repository
from admissions.modules.profiles.models import StudentProfile
from admissions.modules.profiles.schemas import ProfileUpdate
from admissions.modules.users.models import User
from admissions.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

USER_FIELDS = frozenset({"email", "first_name", "last_name"})

EMAIL_IN_USE_MESSAGE = "Email already in use by another account."


async def _get_user_or_404(db: AsyncSession, user_id: UUID) -> User:
    async with transient_on_failure(db, f"loading user {user_id}"):
        user = await UserRepository.get_by_id(db, user_id)
    if not user:
        raise NotFoundError("User", user_id)
    return user


async def get_profile(
    db: AsyncSession,
    principal: AuthContext,
    user_id: UUID,
) -> tuple[User, StudentProfile | None]:
    """
    Read a user together with their profile.

    The profile is None until one has been saved.

    Raises:
        AuthzError: Caller is neither the user nor an admin
        NotFoundError: User does not exist
    """
    enforce(principal, Action.READ_PROFILE, user_id)
    user = await _get_user_or_404(db, user_id)

    async with transient_on_failure(db, f"loading profile for user {user_id}"):
        profile = await repository.get_by_user_id(db, user_id)

    return user, profile


async def update_profile(
    db: AsyncSession,
    principal: AuthContext,
    user_id: UUID,
    data: ProfileUpdate,
) -> tuple[User, StudentProfile | None]:
    """
    Update account fields and create or update the profile.

    Account fields are changed only when given a non-null value. Profile
    fields present in the request are written as given, so null clears one.

    Raises:
        AuthzError: Caller is neither the user nor an admin
        NotFoundError: User does not exist
        ConflictError: The new email belongs to another account
    """
    enforce(principal, Action.UPDATE_PROFILE, user_id)
    user = await _get_user_or_404(db, user_id)

    submitted = data.model_dump(exclude_unset=True)
    user_fields = {
        field: value
        for field, value in submitted.items()
        if field in USER_FIELDS and value is not None
    }
    profile_fields = {
        field: value for field, value in submitted.items() if field not in USER_FIELDS
    }

    if "email" in user_fields:
        user_fields["email"] = user_fields["email"].lower()
        async with transient_on_failure(db, f"checking email for user {user_id}"):
            taken = await repository.email_taken_by_other(db, user_fields["email"], user_id)
        if taken:
            raise ConflictError(EMAIL_IN_USE_MESSAGE, error_code="EMAIL_ALREADY_REGISTERED")

    try:
        async with transient_on_failure(db, f"saving profile for user {user_id}"):
            profile = await repository.save(db, user, user_fields, profile_fields)
    except IntegrityError as e:
        # Another account took the email between the check and the commit
        logger.warning(f"Email conflict saving profile for user {user_id}: {e}")
        raise ConflictError(EMAIL_IN_USE_MESSAGE, error_code="EMAIL_ALREADY_REGISTERED") from e

    logger.info(f"Profile updated for user {user_id} by {principal.id}")
    return user, profile


async def delete_profile(db: AsyncSession, principal: AuthContext, user_id: UUID) -> None:
    """
    Delete a user's profile. The account itself is kept.

    Deleting a profile that does not exist succeeds.

    Raises:
        AuthzError: Caller is neither the user nor an admin
    """
    enforce(principal, Action.DELETE_PROFILE, user_id)

    async with transient_on_failure(db, f"deleting profile for user {user_id}"):
        deleted = await repository.delete_for_user(db, user_id)

    if deleted:
        logger.info(f"Profile deleted for user {user_id} by {principal.id}")


async def find_profile(db: AsyncSession, user_id: UUID) -> StudentProfile | None:
    """Profile lookup for callers that have already authorized the read."""
    async with transient_on_failure(db, f"loading profile for user {user_id}"):
        return await repository.get_by_user_id(db, user_id)
