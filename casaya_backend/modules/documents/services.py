"""Document store business logic.

Tracks the three document slots of an application. Pointers are upserted
idempotently, so a tenant may upload the documents in any order and
replace any of them while the application is pending.
"""

import mimetypes
import posixpath
import re
import uuid
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ...config import settings
from ...core.exceptions import (
    DocumentNotFoundError,
    ForbiddenError,
    StorageError,
    ValidationError,
)
from ...core.logging import get_logger
from ...core.utils import utc_now
from . import crud
from .models import REQUIRED_DOCUMENTS, ApplicationDocument, DocumentType
from .schemas import DocumentSlot, IncomingFile
from .storage import ObjectStore

logger = get_logger(__name__)

ALLOWED_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/vnd.ms-excel": "xls",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
    "text/plain": "txt",
}

_UNSAFE_KEY_CHARS = re.compile(r"[^a-zA-Z0-9\-_./]")


def validate_file(file: IncomingFile) -> str:
    """Check type and size of an uploaded file; returns its content type."""
    content_type = file.content_type
    if not content_type or content_type == "application/octet-stream":
        content_type = mimetypes.guess_type(file.file_name or "")[0]
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise ValidationError(
            f"Invalid file type: {content_type}. Allowed types are: "
            f"{', '.join(ALLOWED_CONTENT_TYPES)}",
            field=file.field_name,
            value=content_type,
        )
    if len(file.data) > settings.max_upload_bytes:
        raise ValidationError(
            f"File too large. Maximum size is "
            f"{settings.max_upload_bytes // (1024 * 1024)}MB",
            field=file.field_name,
            value=len(file.data),
        )
    return content_type


def build_object_key(
    owner_id: str, application_id: UUID, doc_type: DocumentType, extension: str
) -> str:
    """Key layout: ``<owner>/<application>/<doc-type>-<timestamp>.<ext>``."""
    timestamp = int(utc_now().timestamp() * 1000)
    key = f"{owner_id}/{application_id}/{doc_type.value}-{timestamp}.{extension}"
    return _UNSAFE_KEY_CHARS.sub("", key)


def _extension(file: IncomingFile, content_type: str) -> str:
    if file.file_name and "." in file.file_name:
        return file.file_name.rsplit(".", 1)[-1].lower()
    return ALLOWED_CONTENT_TYPES[content_type]


def owns_blob(owner_id: str, blob_ref: str) -> bool:
    """Whether the key lies under the owner's ``<owner>/`` prefix."""
    prefix = _UNSAFE_KEY_CHARS.sub("", owner_id) + "/"
    return (
        posixpath.normpath(blob_ref) == blob_ref
        and blob_ref.startswith(prefix)
        and len(blob_ref) > len(prefix)
    )


async def put(
    db: AsyncSession,
    application_id: UUID,
    doc_type: DocumentType,
    blob_ref: str,
    owner_id: str,
    file_name: str | None = None,
    content_type: str | None = None,
    size_bytes: int | None = None,
) -> ApplicationDocument:
    """Record or overwrite the pointer of one slot (flushes, does not commit).

    The pointer must name an object under the owner's key prefix.
    """
    if not owns_blob(owner_id, blob_ref):
        logger.warning(
            f"Principal {owner_id} tried to attach object {blob_ref!r} to "
            f"application {application_id}",
            extra={"security_event": "principal_mismatch"},
        )
        raise ForbiddenError("attach", "document", {"doc_type": doc_type.wire_name})
    return await crud.upsert_document(
        db,
        application_id,
        doc_type,
        blob_ref,
        owner_id,
        file_name=file_name,
        content_type=content_type,
        size_bytes=size_bytes,
    )


async def get(
    db: AsyncSession, application_id: UUID, doc_type: DocumentType
) -> ApplicationDocument:
    """Get a slot or raise DocumentNotFoundError."""
    document = await crud.get_document(db, application_id, doc_type)
    if document is None:
        raise DocumentNotFoundError(application_id, doc_type.wire_name)
    return document


async def missing_documents(db: AsyncSession, application_id: UUID) -> list[str]:
    """Wire names of the slots still empty, in canonical order."""
    present = {d.doc_type for d in await crud.get_documents(db, application_id)}
    return [t.wire_name for t in REQUIRED_DOCUMENTS if t not in present]


async def status(
    db: AsyncSession, store: ObjectStore, application_id: UUID
) -> dict[str, DocumentSlot]:
    """Report all three slots; a URL that cannot be resolved is left empty."""
    documents = {d.doc_type: d for d in await crud.get_documents(db, application_id)}
    slots: dict[str, DocumentSlot] = {}
    for doc_type in REQUIRED_DOCUMENTS:
        document = documents.get(doc_type)
        if document is None:
            slots[doc_type.wire_name] = DocumentSlot(exists=False)
            continue
        try:
            url = await store.url_for(document.blob_ref)
        except StorageError as e:
            logger.warning(
                f"Could not resolve URL for {doc_type.value} of "
                f"application {application_id}: {e.message}"
            )
            url = None
        slots[doc_type.wire_name] = DocumentSlot(exists=True, url=url)
    return slots


async def upload(
    db: AsyncSession,
    store: ObjectStore,
    owner_id: str,
    files: list[IncomingFile],
    application_id: UUID | None = None,
) -> UUID:
    """Validate, store and record uploaded documents.

    Without an application id a new one is reserved; the tenant submits the
    application against it later. Returns the application id.
    """
    if not files:
        raise ValidationError("No documents provided")

    typed: list[tuple[DocumentType, IncomingFile, str]] = []
    for file in files:
        try:
            doc_type = DocumentType.from_wire(file.field_name)
        except ValueError:
            raise ValidationError(
                f"Unknown document type '{file.field_name}'", field=file.field_name
            )
        typed.append((doc_type, file, validate_file(file)))

    if application_id is None:
        application_id = uuid.uuid4()

    for doc_type, file, content_type in typed:
        key = build_object_key(
            owner_id, application_id, doc_type, _extension(file, content_type)
        )
        blob_ref = await store.put_object(key, file.data, content_type)
        await put(
            db,
            application_id,
            doc_type,
            blob_ref,
            owner_id,
            file_name=file.file_name,
            content_type=content_type,
            size_bytes=len(file.data),
        )

    await db.commit()
    logger.info(
        f"Stored {len(typed)} document(s) for application {application_id}",
        extra={"application_id": str(application_id), "owner_id": owner_id},
    )
    return application_id


async def download(
    db: AsyncSession,
    store: ObjectStore,
    application_id: UUID,
    doc_type: DocumentType,
) -> tuple[ApplicationDocument, bytes]:
    """Read the bytes of one slot from the object store."""
    document = await get(db, application_id, doc_type)
    data = await store.get_object(document.blob_ref)
    return document, data


async def owner_of(db: AsyncSession, application_id: UUID) -> str | None:
    """Principal who uploaded documents for an application id, if any."""
    documents = await crud.get_documents(db, application_id)
    return documents[0].owner_id if documents else None


async def delete_all(db: AsyncSession, application_id: UUID) -> list[str]:
    """Drop every pointer of an application (flushes, does not commit).

    Returns the blob references the pointers named.
    """
    blob_refs = [d.blob_ref for d in await crud.get_documents(db, application_id)]
    await crud.delete_documents(db, application_id)
    return blob_refs


async def purge_objects(store: ObjectStore, blob_refs: list[str]) -> None:
    """Remove the bytes of deleted documents, after their pointers are committed.

    A blob that cannot be removed is logged and left behind.
    """
    for blob_ref in blob_refs:
        try:
            await store.delete_object(blob_ref)
        except StorageError as e:
            logger.warning(f"Could not remove object {blob_ref}: {e.message}")
