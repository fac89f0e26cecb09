"""
Fixtures for application lifecycle tests.
"""

from datetime import UTC, date, datetime
from decimal import Decimal
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from admissions.modules.applications.models import Application, ApplicationStatus
from admissions.modules.applications.schemas import ApplicationCreate


def make_application_create(**overrides) -> ApplicationCreate:
    """Build a valid create request, overriding any field."""
    fields = {
        "full_name": "Ada Student",
        "email": "Ada@Example.com",
        "phone": "+1 555 0100",
        "date_of_birth": date(2007, 5, 17),
        "address": "1 College Road",
        "high_school_name": "Central High",
        "high_school_gpa": Decimal("3.5"),
        "graduation_year": datetime.now(UTC).year + 1,
        "intended_major": "Computer Science",
        "extracurricular_activities": "Chess club",
        "personal_statement": "I like building things.",
    }
    fields.update(overrides)
    return ApplicationCreate(**fields)


@pytest.fixture
def application_create():
    return make_application_create()


@pytest.fixture
def build_application_create():
    """Factory fixture for create requests with overridden fields."""
    return make_application_create


@pytest.fixture
def sample_application(student):
    """A submitted application owned by the student fixture."""
    app = MagicMock(spec=Application)
    app.id = uuid4()
    app.user_id = student.id
    app.full_name = "Ada Student"
    app.email = "ada@example.com"
    app.high_school_gpa = Decimal("3.5")
    app.graduation_year = datetime.now(UTC).year + 1
    app.status = ApplicationStatus.SUBMITTED
    app.ai_score = None
    app.ai_ranking = None
    app.reviewed_by = None
    app.reviewed_at = None
    return app


@pytest.fixture
def under_review_application(sample_application):
    sample_application.status = ApplicationStatus.UNDER_REVIEW
    return sample_application
