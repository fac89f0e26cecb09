"""
Fixtures for profile tests.
"""

from datetime import UTC, date, datetime
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from admissions.modules.profiles.models import StudentProfile
from admissions.modules.users.models import User, UserRole


@pytest.fixture
def student_user(student):
    """The account behind the student principal."""
    user = MagicMock(spec=User)
    user.id = student.id
    user.email = "student@example.com"
    user.first_name = "Ada"
    user.last_name = "Lovelace"
    user.role = UserRole.STUDENT
    user.created_at = datetime.now(UTC)
    return user


@pytest.fixture
def student_profile(student):
    profile = MagicMock(spec=StudentProfile)
    profile.id = uuid4()
    profile.user_id = student.id
    profile.phone = "+1 555 0100"
    profile.address = "1 College Road"
    profile.date_of_birth = date(2007, 5, 17)
    profile.gender = None
    profile.nationality = "Ghanaian"
    profile.profile_picture_url = None
    return profile
