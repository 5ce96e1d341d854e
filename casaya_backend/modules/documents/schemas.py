"""Document schemas."""

from dataclasses import dataclass
from uuid import UUID

from ..commons import ApiModel


@dataclass
class IncomingFile:
    """A file received from a client, already read into memory."""

    field_name: str
    file_name: str | None
    content_type: str | None
    data: bytes


class DocumentSlot(ApiModel):
    """Presence and retrieval URL of one document slot."""

    exists: bool
    url: str | None = None


class DocumentUploadResponse(ApiModel):
    """Result of an upload: the application the files belong to and the slots."""

    application_id: UUID
    documents: dict[str, DocumentSlot]
