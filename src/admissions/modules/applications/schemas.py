"""
Application Schemas

Pydantic schemas for request parsing and response serialization.
Range rules (GPA, graduation year, score) are enforced in the service layer
so that every entry point reports the same violated constraint.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from admissions.modules.applications.models import ApplicationStatus
from admissions.modules.documents.schemas import DocumentResponse
from admissions.modules.profiles.schemas import StudentProfileResponse


class ApplicationCreate(BaseModel):
    """Request body for POST /applications."""

    full_name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone: str = Field(..., min_length=1, max_length=30)
    date_of_birth: date
    address: str = Field(..., min_length=1, max_length=500)
    high_school_name: str = Field(..., min_length=1, max_length=200)
    high_school_gpa: Decimal | None = None
    graduation_year: int
    intended_major: str = Field(..., min_length=1, max_length=200)
    extracurricular_activities: str | None = None
    personal_statement: str | None = None


class ApplicationUpdate(BaseModel):
    """Request body for PUT /applications/{id}. Unset fields are left unchanged."""

    full_name: str | None = Field(None, min_length=1, max_length=200)
    email: EmailStr | None = None
    phone: str | None = Field(None, min_length=1, max_length=30)
    date_of_birth: date | None = None
    address: str | None = Field(None, min_length=1, max_length=500)
    high_school_name: str | None = Field(None, min_length=1, max_length=200)
    high_school_gpa: Decimal | None = None
    graduation_year: int | None = None
    intended_major: str | None = Field(None, min_length=1, max_length=200)
    extracurricular_activities: str | None = None
    personal_statement: str | None = None


class ApplicationResponse(BaseModel):
    """Full application record."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    full_name: str
    email: str
    phone: str
    date_of_birth: date
    address: str
    high_school_name: str
    high_school_gpa: Decimal | None = None
    graduation_year: int
    intended_major: str
    extracurricular_activities: str | None = None
    personal_statement: str | None = None
    status: ApplicationStatus
    ai_score: Decimal | None = None
    ai_ranking: str | None = None
    ai_evaluation_date: datetime | None = None
    reviewed_by: UUID | None = None
    reviewed_at: datetime | None = None
    submitted_at: datetime
    updated_at: datetime


class ApplicationListResponse(BaseModel):
    """Student's own applications."""

    applications: list[ApplicationResponse]


class ApplicationDetailResponse(BaseModel):
    """Application plus its documents. Admin views also carry the owner's profile."""

    application: ApplicationResponse
    documents: list[DocumentResponse]
    profile: StudentProfileResponse | None = None


# ============================================
# Admin Schemas
# ============================================


class StatusUpdateRequest(BaseModel):
    """Request body for PUT /admin/applications/{id}/status."""

    status: ApplicationStatus


class EvaluationUpdateRequest(BaseModel):
    """Request body for PUT /admin/applications/{id}/ai-evaluation."""

    ai_score: Decimal
    ai_ranking: str = Field(..., min_length=1, max_length=100)


class AdminApplicationListItem(ApplicationResponse):
    """Application row in the admin list, with its document count."""

    document_count: int = 0


class AdminApplicationListResponse(BaseModel):
    """Filtered, sorted admin list."""

    applications: list[AdminApplicationListItem]
    total: int
    skip: int
    limit: int


class DashboardStats(BaseModel):
    """Aggregated statistics for the admin dashboard."""

    total_applications: int
    status_counts: dict[str, int]
    average_ai_score: float
    recent_applications: int


class MessageResponse(BaseModel):
    message: str
