"""
Documents Repository

Database operations for document metadata rows.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Document, DocumentType


async def create(
    db: AsyncSession,
    *,
    application_id: UUID,
    document_type: DocumentType,
    original_filename: str,
    stored_filename: str,
    file_size: int,
    mime_type: str,
) -> Document:
    """Insert a document metadata row."""
    document = Document(
        application_id=application_id,
        document_type=document_type,
        original_filename=original_filename,
        stored_filename=stored_filename,
        file_size=file_size,
        mime_type=mime_type,
    )

    db.add(document)
    await db.commit()
    await db.refresh(document)

    return document


async def get_by_id(db: AsyncSession, id: UUID) -> Document | None:
    return await db.get(Document, id)


async def list_for_application(db: AsyncSession, application_id: UUID) -> list[Document]:
    """Get an application's documents, newest first."""
    result = await db.execute(
        select(Document)
        .where(Document.application_id == application_id)
        .order_by(Document.uploaded_at.desc())
    )
    return list(result.scalars().all())


async def delete(db: AsyncSession, document: Document) -> None:
    await db.delete(document)
    await db.commit()


async def get_all_locators_with_ids(db: AsyncSession) -> list[tuple[UUID, str]]:
    """(document id, stored_filename) for every row."""
    result = await db.execute(select(Document.id, Document.stored_filename))
    return [(row[0], row[1]) for row in result.all()]
