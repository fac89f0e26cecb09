"""
Profiles Repository

Database operations for student profiles and the account fields edited
through the profile endpoints.
"""

from typing import Any
from uuid import UUID

from sqlalchemy import delete as sql_delete
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.modules.profiles.models import StudentProfile
from admissions.modules.users.models import User


async def get_by_user_id(db: AsyncSession, user_id: UUID) -> StudentProfile | None:
    result = await db.execute(select(StudentProfile).where(StudentProfile.user_id == user_id))
    return result.scalar_one_or_none()


async def email_taken_by_other(db: AsyncSession, email: str, user_id: UUID) -> bool:
    """True if another account already uses this (lower-cased) email."""
    result = await db.execute(
        select(User.id).where(User.email == email.lower(), User.id != user_id)
    )
    return result.first() is not None


async def save(
    db: AsyncSession,
    user: User,
    user_fields: dict[str, Any],
    profile_fields: dict[str, Any],
) -> StudentProfile | None:
    """
    Apply account and profile changes in one commit.

    The profile row is created on first write. Returns None when there were
    no profile fields to write and no profile exists yet.
    """
    for field, value in user_fields.items():
        setattr(user, field, value)

    profile = await get_by_user_id(db, user.id)
    if profile is None and profile_fields:
        profile = StudentProfile(user_id=user.id)
        db.add(profile)
    if profile is not None:
        for field, value in profile_fields.items():
            setattr(profile, field, value)

    await db.commit()
    await db.refresh(user)
    if profile is not None:
        await db.refresh(profile)

    return profile


async def delete_for_user(db: AsyncSession, user_id: UUID) -> bool:
    """Delete a user's profile. Returns False if there was none."""
    result = await db.execute(
        sql_delete(StudentProfile).where(StudentProfile.user_id == user_id)
    )
    await db.commit()
    return result.rowcount > 0
