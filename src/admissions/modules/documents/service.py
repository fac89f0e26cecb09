"""
Document Custody Service

Keeps binary blobs and their metadata rows in lock-step.

Attach pipeline (strictly sequential within one call):
1. Validate declared metadata before touching storage
2. Write the blob under a collision-resistant locator
3. Insert the metadata row referencing the blob
4. If step 3 fails, delete the blob written in step 2 before surfacing the error

Detach pipeline:
1. Resolve the document and authorize against the parent application's owner
2. Delete the blob (idempotent - absence is not an error)
3. Delete the metadata row

The invariant protected here is that a Document row exists if and only if
its blob exists.
"""

import logging
import re
import secrets
import time
from pathlib import Path, PurePosixPath
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.authorization import Action, AuthContext, enforce
from admissions.core.config import settings
from admissions.core.database import transient_on_failure
from admissions.core.exceptions import (
    NotFoundError,
    StorageConsistencyError,
    TransientError,
    ValidationError,
)
from admissions.core.storage import LocalBlobStorage
from admissions.modules.applications import repository as application_repository
from admissions.modules.applications.models import Application
from admissions.modules.documents import repository
from admissions.modules.documents.models import Document, DocumentType

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = settings.max_upload_bytes

ALLOWED_MIME_TYPES: frozenset[str] = frozenset(
    {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "image/jpeg",
        "image/jpg",
        "image/png",
    }
)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_MAX_STEM_LENGTH = 100


# ============================================
# Validation & Naming
# ============================================


def validate_upload(
    *,
    data: bytes,
    original_filename: str | None,
    declared_type: str | DocumentType | None,
    declared_mime_type: str | None,
    declared_size: int | None,
) -> DocumentType:
    """
    Validate declared upload metadata. Runs before any storage side effect.

    Returns:
        The parsed DocumentType

    Raises:
        ValidationError: Naming the violated constraint
    """
    if not original_filename:
        raise ValidationError("No file uploaded.", field="file")

    if declared_type is None or declared_type == "":
        raise ValidationError("Document type is required.", field="documentType")
    try:
        document_type = DocumentType(declared_type)
    except ValueError as e:
        valid = ", ".join(t.value for t in DocumentType)
        raise ValidationError(
            f"Invalid document type. Must be one of: {valid}", field="documentType"
        ) from e

    if declared_mime_type not in ALLOWED_MIME_TYPES:
        raise ValidationError(
            "Invalid file type. Only PDF, DOC, DOCX, JPG, JPEG, and PNG files are allowed.",
            field="file",
        )

    size = declared_size if declared_size is not None else len(data)
    if size > MAX_FILE_SIZE or len(data) > MAX_FILE_SIZE:
        raise ValidationError(
            f"File too large. Maximum size is {MAX_FILE_SIZE // (1024 * 1024)}MB.",
            field="file",
        )
    if size != len(data):
        raise ValidationError(
            "Declared file size does not match the uploaded content.", field="file"
        )
    if len(data) == 0:
        raise ValidationError("Uploaded file is empty.", field="file")

    return document_type


def build_locator(application_id: UUID, original_filename: str) -> str:
    """
    Derive a collision-resistant storage locator.

    Format: "<application_id>/<stem>-<millis>-<random><ext>"
    """
    name = PurePosixPath(original_filename.replace("\\", "/")).name
    suffix = Path(name).suffix.lower()
    stem = _UNSAFE_CHARS.sub("_", Path(name).stem).strip("._")[:_MAX_STEM_LENGTH] or "document"
    ext = _UNSAFE_CHARS.sub("", suffix)
    millis = int(time.time() * 1000)
    random_suffix = secrets.randbelow(10**9)
    return f"{application_id}/{stem}-{millis}-{random_suffix}{ext}"


# ============================================
# Core Custody Operations
# ============================================


async def _rollback_quietly(db: AsyncSession, context: str) -> None:
    """Roll back a failed write, logging instead of raising if the rollback also fails."""
    try:
        await db.rollback()
    except SQLAlchemyError as e:
        logger.error(f"Rollback failed while {context}: {e}")


async def _compensate_blob(storage: LocalBlobStorage, locator: str) -> None:
    """
    Remove a blob whose metadata row could not be written.

    Raises:
        StorageConsistencyError: If the blob could not be removed even after
            a second cleanup attempt
    """
    try:
        await storage.delete(locator)
        logger.info(f"Compensating delete removed blob {locator}")
        return
    except OSError as e:
        logger.critical(f"Compensating delete failed for blob {locator}: {e}")

    try:
        await storage.delete(locator)
        logger.warning(f"Second cleanup attempt removed blob {locator}")
    except OSError as e:
        logger.critical(f"Blob {locator} is orphaned: cleanup retry failed: {e}")
        raise StorageConsistencyError(
            "Document could not be saved and its stored file could not be removed."
        ) from e


async def attach(
    db: AsyncSession,
    storage: LocalBlobStorage,
    *,
    application_id: UUID,
    data: bytes,
    original_filename: str,
    document_type: DocumentType,
    mime_type: str,
) -> Document:
    """
    Store a blob and its metadata row as one unit of work.

    Preconditions: the caller is authorized and application_id exists.

    Raises:
        TransientError: Storage or database unavailable (no blob left behind)
        StorageConsistencyError: Record failed and the blob could not be removed
    """
    locator = build_locator(application_id, original_filename)

    try:
        await storage.write(locator, data)
    except OSError as e:
        logger.exception(f"Failed to write blob for application {application_id}: {e}")
        raise TransientError("Failed to store document.") from e

    try:
        document = await repository.create(
            db,
            application_id=application_id,
            document_type=document_type,
            original_filename=original_filename,
            stored_filename=locator,
            file_size=len(data),
            mime_type=mime_type,
        )
    except Exception as e:
        logger.error(f"Failed to record document for application {application_id}: {e}")
        try:
            await _compensate_blob(storage, locator)
        finally:
            await _rollback_quietly(db, f"recording document for application {application_id}")
        raise TransientError("Failed to save document information.") from e

    logger.info(
        f"Attached document {document.id} ({document_type.value}, {len(data)} bytes) "
        f"to application {application_id}"
    )
    return document


async def detach(db: AsyncSession, storage: LocalBlobStorage, document: Document) -> bool:
    """
    Delete a document's blob and then its metadata row.

    Returns:
        True if a blob was removed, False if it was already missing

    Raises:
        TransientError: Blob could not be deleted (row left intact) or the
            row delete failed after the blob was removed
    """
    locator = document.stored_filename

    try:
        removed = await storage.delete(locator)
    except OSError as e:
        logger.exception(f"Failed to delete blob for document {document.id}: {e}")
        raise TransientError("Failed to delete stored file.") from e

    if not removed:
        logger.warning(f"Blob for document {document.id} was already missing")

    try:
        await repository.delete(db, document)
    except Exception as e:
        logger.critical(
            f"Blob for document {document.id} deleted but its row could not be removed: {e}"
        )
        await _rollback_quietly(db, f"deleting document {document.id}")
        raise TransientError("Failed to delete document record.") from e

    logger.info(f"Detached document {document.id}")
    return removed


async def detach_all_for_application(
    db: AsyncSession,
    storage: LocalBlobStorage,
    application_id: UUID,
) -> int:
    """
    Detach every document owned by an application.

    Runs once per document. Missing blobs do not stop the cascade.

    Returns:
        Number of documents removed
    """
    async with transient_on_failure(db, f"listing documents for application {application_id}"):
        documents = await repository.list_for_application(db, application_id)

    for document in documents:
        await detach(db, storage, document)

    if documents:
        logger.info(f"Detached {len(documents)} document(s) from application {application_id}")
    return len(documents)


# ============================================
# Request-Level Operations
# ============================================


async def _get_application_or_404(db: AsyncSession, application_id: UUID) -> Application:
    async with transient_on_failure(db, f"loading application {application_id}"):
        application = await application_repository.get_by_id(db, application_id)
    if not application:
        logger.warning(f"Application not found: {application_id}")
        raise NotFoundError("Application", application_id)
    return application


async def _get_document_with_owner(
    db: AsyncSession, document_id: UUID
) -> tuple[Document, Application]:
    async with transient_on_failure(db, f"loading document {document_id}"):
        document = await repository.get_by_id(db, document_id)
    if not document:
        logger.warning(f"Document not found: {document_id}")
        raise NotFoundError("Document", document_id)
    application = await _get_application_or_404(db, document.application_id)
    return document, application


async def upload_document(
    db: AsyncSession,
    storage: LocalBlobStorage,
    principal: AuthContext,
    *,
    application_id: UUID,
    data: bytes,
    original_filename: str | None,
    declared_type: str | None,
    declared_mime_type: str | None,
    declared_size: int | None,
) -> Document:
    """
    Validate, authorize and attach an uploaded file.

    Raises:
        ValidationError: Bad type, MIME type or size (nothing stored)
        NotFoundError: Application does not exist
        AuthzError: Principal does not own the application
    """
    document_type = validate_upload(
        data=data,
        original_filename=original_filename,
        declared_type=declared_type,
        declared_mime_type=declared_mime_type,
        declared_size=declared_size,
    )

    application = await _get_application_or_404(db, application_id)
    enforce(principal, Action.ATTACH_DOCUMENT, application.user_id)

    return await attach(
        db,
        storage,
        application_id=application.id,
        data=data,
        original_filename=original_filename or "document",
        document_type=document_type,
        mime_type=declared_mime_type or "application/octet-stream",
    )


async def list_documents(
    db: AsyncSession,
    principal: AuthContext,
    application_id: UUID,
) -> list[Document]:
    """List an application's documents, newest first."""
    application = await _get_application_or_404(db, application_id)
    enforce(principal, Action.READ_DOCUMENT, application.user_id)

    async with transient_on_failure(db, f"listing documents for application {application_id}"):
        return await repository.list_for_application(db, application_id)


async def get_document_file(
    db: AsyncSession,
    storage: LocalBlobStorage,
    principal: AuthContext,
    document_id: UUID,
) -> tuple[Document, Path]:
    """
    Resolve a document for download.

    Returns:
        (document, absolute path of its blob)

    Raises:
        NotFoundError: Document row missing, or the row exists but its blob
            is gone (logged as CRITICAL)
    """
    document, application = await _get_document_with_owner(db, document_id)
    enforce(principal, Action.READ_DOCUMENT, application.user_id)

    if not await storage.exists(document.stored_filename):
        logger.critical(f"Document {document.id} has no blob in storage")
        raise NotFoundError("File", document.id)

    return document, storage.path_for(document.stored_filename)


async def delete_document(
    db: AsyncSession,
    storage: LocalBlobStorage,
    principal: AuthContext,
    document_id: UUID,
) -> None:
    """Authorize and detach a single document."""
    document, application = await _get_document_with_owner(db, document_id)
    enforce(principal, Action.DELETE_DOCUMENT, application.user_id)

    await detach(db, storage, document)
