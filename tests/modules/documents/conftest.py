"""
Fixtures for document custody tests.

Storage is a real LocalBlobStorage rooted in tmp_path; only the database
side is mocked.
"""

from datetime import UTC, datetime
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from admissions.core.storage import LocalBlobStorage
from admissions.modules.applications.models import Application, ApplicationStatus
from admissions.modules.documents.models import Document, DocumentType

MIB = 1024 * 1024


@pytest.fixture
def storage(tmp_path):
    return LocalBlobStorage(tmp_path / "uploads")


@pytest.fixture
def sample_application(student):
    app = MagicMock(spec=Application)
    app.id = uuid4()
    app.user_id = student.id
    app.full_name = "Ada Student"
    app.status = ApplicationStatus.SUBMITTED
    return app


@pytest.fixture
def make_document(sample_application):
    """Factory building Document mocks for the sample application."""

    def _make(locator: str, **overrides) -> MagicMock:
        doc = MagicMock(spec=Document)
        doc.id = overrides.get("id", uuid4())
        doc.application_id = overrides.get("application_id", sample_application.id)
        doc.document_type = overrides.get("document_type", DocumentType.TRANSCRIPT)
        doc.original_filename = overrides.get("original_filename", "transcript.pdf")
        doc.stored_filename = locator
        doc.file_size = overrides.get("file_size", 4)
        doc.mime_type = overrides.get("mime_type", "application/pdf")
        doc.uploaded_at = datetime.now(UTC)
        return doc

    return _make


@pytest.fixture
def record_document(make_document):
    """side_effect for repository.create that echoes the stored row."""

    async def _create(db, **fields):
        return make_document(
            fields["stored_filename"],
            application_id=fields["application_id"],
            document_type=fields["document_type"],
            original_filename=fields["original_filename"],
            file_size=fields["file_size"],
            mime_type=fields["mime_type"],
        )

    return _create


@pytest.fixture
def pdf_bytes():
    """A 2 MiB payload."""
    return b"%PDF-1.4\n" + b"0" * (2 * MIB - 9)
