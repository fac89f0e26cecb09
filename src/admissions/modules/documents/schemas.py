"""Document schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from admissions.modules.documents.models import DocumentType


class DocumentResponse(BaseModel):
    """Document metadata as returned to clients. The storage locator is never exposed."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_id: UUID
    document_type: DocumentType
    original_filename: str
    file_size: int
    mime_type: str
    uploaded_at: datetime


class DocumentUploadResponse(BaseModel):
    message: str = "Document uploaded successfully."
    document: DocumentResponse


class DocumentListResponse(BaseModel):
    documents: list[DocumentResponse]
