"""CRUD operations for document pointers."""

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import ApplicationDocument, DocumentType


async def get_document(
    db: AsyncSession, application_id: UUID, doc_type: DocumentType
) -> ApplicationDocument | None:
    """Get one document slot."""
    result = await db.execute(
        select(ApplicationDocument).where(
            ApplicationDocument.application_id == application_id,
            ApplicationDocument.doc_type == doc_type,
        )
    )
    return result.scalar_one_or_none()


async def get_documents(
    db: AsyncSession, application_id: UUID
) -> list[ApplicationDocument]:
    """Get every filled slot of an application."""
    result = await db.execute(
        select(ApplicationDocument).where(
            ApplicationDocument.application_id == application_id
        )
    )
    return list(result.scalars().all())


async def upsert_document(
    db: AsyncSession,
    application_id: UUID,
    doc_type: DocumentType,
    blob_ref: str,
    owner_id: str,
    **kwargs,
) -> ApplicationDocument:
    """Insert the slot or overwrite its pointer."""
    document = await get_document(db, application_id, doc_type)
    if document is None:
        document = ApplicationDocument(
            application_id=application_id,
            doc_type=doc_type,
            blob_ref=blob_ref,
            owner_id=owner_id,
            **kwargs,
        )
        db.add(document)
    else:
        document.blob_ref = blob_ref
        document.owner_id = owner_id
        for key, value in kwargs.items():
            setattr(document, key, value)
    await db.flush()
    return document


async def delete_documents(db: AsyncSession, application_id: UUID) -> None:
    """Remove every document pointer of an application."""
    await db.execute(
        delete(ApplicationDocument).where(
            ApplicationDocument.application_id == application_id
        )
    )
