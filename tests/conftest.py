"""
Shared fixtures: mocked database session and principals.
"""

from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest

from admissions.core.authorization import AuthContext, Role


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.rollback = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.delete = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def student():
    """Student principal that owns the sample application."""
    return AuthContext(id=uuid4(), role=Role.STUDENT, email="student@example.com")


@pytest.fixture
def other_student():
    """Student principal that owns nothing."""
    return AuthContext(id=uuid4(), role=Role.STUDENT, email="other@example.com")


@pytest.fixture
def admin():
    """Admin principal."""
    return AuthContext(
        id=UUID("00000000-0000-0000-0000-000000000001"),
        role=Role.ADMIN,
        email="admin@example.com",
    )
