"""Profile schemas."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from admissions.modules.auth.schemas import UserResponse


class StudentProfileResponse(BaseModel):
    """Profile details."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    phone: str | None
    address: str | None
    date_of_birth: date | None
    gender: str | None
    nationality: str | None
    profile_picture_url: str | None
    created_at: datetime
    updated_at: datetime


class ProfileResponse(BaseModel):
    """Account together with its profile, if one exists."""

    user: UserResponse
    profile: StudentProfileResponse | None = None


class ProfileUpdate(BaseModel):
    """
    Request body for PUT /profile/{user_id}.

    Account fields (email, names) are only changed when given a value.
    Profile fields left out are unchanged; an explicit null clears them.
    """

    email: EmailStr | None = None
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)

    phone: str | None = Field(None, max_length=30)
    address: str | None = Field(None, max_length=500)
    date_of_birth: date | None = None
    gender: str | None = Field(None, max_length=30)
    nationality: str | None = Field(None, max_length=100)
    profile_picture_url: str | None = Field(None, max_length=500)
