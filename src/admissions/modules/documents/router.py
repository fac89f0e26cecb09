"""
Documents Router

API endpoints for document custody. Every endpoint requires authentication;
ownership of the parent application is checked in the service layer.

Endpoints:
- POST /documents/upload - Attach a file to an application (multipart)
- GET /documents/{application_id} - List an application's documents
- GET /documents/download/{document_id} - Download a document's file
- DELETE /documents/{document_id} - Detach a document
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.auth import get_auth_context
from admissions.core.authorization import AuthContext
from admissions.core.database import get_db
from admissions.core.exceptions import ServiceError, raise_http_error, raise_internal_error
from admissions.core.storage import LocalBlobStorage, get_storage
from admissions.modules.applications.schemas import MessageResponse
from admissions.modules.documents import service
from admissions.modules.documents.schemas import (
    DocumentListResponse,
    DocumentResponse,
    DocumentUploadResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/upload",
    response_model=DocumentUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload Document",
    description="""
Attach a file to an application.

**Form fields:**
- `file`: The file (PDF, DOC, DOCX, JPG, JPEG or PNG, at most 5MB)
- `applicationId`: Target application
- `documentType`: transcript, recommendation, id, certificate or other

**Access:** Owner of the application, or admin
""",
    responses={
        400: {"description": "Invalid type, MIME type or size"},
        403: {"description": "Not the owner of the application"},
        404: {"description": "Application not found"},
    },
)
async def upload_document(
    file: UploadFile = File(...),
    application_id: UUID = Form(..., alias="applicationId"),
    document_type: str = Form(..., alias="documentType"),
    db: AsyncSession = Depends(get_db),
    storage: LocalBlobStorage = Depends(get_storage),
    principal: AuthContext = Depends(get_auth_context),
) -> DocumentUploadResponse:
    """Upload a document for an application."""
    # Read one byte past the limit so oversize uploads are detected without buffering them whole
    data = await file.read(service.MAX_FILE_SIZE + 1)
    declared_size = file.size if file.size is not None else len(data)

    try:
        document = await service.upload_document(
            db,
            storage,
            principal,
            application_id=application_id,
            data=data,
            original_filename=file.filename,
            declared_type=document_type,
            declared_mime_type=file.content_type,
            declared_size=declared_size,
        )
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "uploading document")
    finally:
        await file.close()

    return DocumentUploadResponse(document=DocumentResponse.model_validate(document))


@router.get(
    "/download/{document_id}",
    summary="Download Document",
    response_class=FileResponse,
    responses={
        403: {"description": "Not the owner of the application"},
        404: {"description": "Document not found"},
    },
)
async def download_document(
    document_id: UUID,
    db: AsyncSession = Depends(get_db),
    storage: LocalBlobStorage = Depends(get_storage),
    principal: AuthContext = Depends(get_auth_context),
) -> FileResponse:
    """Stream a document's file under its original name."""
    try:
        document, path = await service.get_document_file(db, storage, principal, document_id)
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "downloading document")

    return FileResponse(
        path,
        media_type=document.mime_type,
        filename=document.original_filename,
    )


@router.get(
    "/{application_id}",
    response_model=DocumentListResponse,
    summary="List Application Documents",
)
async def list_documents(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    principal: AuthContext = Depends(get_auth_context),
) -> DocumentListResponse:
    """List an application's documents, newest first."""
    try:
        documents = await service.list_documents(db, principal, application_id)
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "listing documents")

    return DocumentListResponse(
        documents=[DocumentResponse.model_validate(d) for d in documents]
    )


@router.delete(
    "/{document_id}",
    response_model=MessageResponse,
    summary="Delete Document",
)
async def delete_document(
    document_id: UUID,
    db: AsyncSession = Depends(get_db),
    storage: LocalBlobStorage = Depends(get_storage),
    principal: AuthContext = Depends(get_auth_context),
) -> MessageResponse:
    """Remove a document and its stored file."""
    try:
        await service.delete_document(db, storage, principal, document_id)
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "deleting document")

    logger.info(f"User {principal.id} deleted document {document_id}")
    return MessageResponse(message="Document deleted successfully.")
