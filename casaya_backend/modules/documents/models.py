"""Application document pointers.

Bytes live in the object store; each row records where one of the three
required documents of an application is stored.
"""

import enum
import uuid

from sqlalchemy import Enum, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ...core.database_types import UUIDString
from ...database import Base, TimestampMixin


class DocumentType(str, enum.Enum):
    """The document slots every application must fill."""

    ID = "id"
    BANK_STATEMENT = "bank_statement"
    FORM410 = "form410"

    @property
    def wire_name(self) -> str:
        """Name used by HTTP clients (form fields and JSON keys)."""
        return _WIRE_NAMES[self]

    @classmethod
    def from_wire(cls, name: str) -> "DocumentType":
        for doc_type, wire in _WIRE_NAMES.items():
            if name in (wire, doc_type.value):
                return doc_type
        raise ValueError(f"Unknown document type '{name}'")


_WIRE_NAMES = {
    DocumentType.ID: "id",
    DocumentType.BANK_STATEMENT: "bankStatement",
    DocumentType.FORM410: "form410",
}

REQUIRED_DOCUMENTS = (
    DocumentType.ID,
    DocumentType.BANK_STATEMENT,
    DocumentType.FORM410,
)


class ApplicationDocument(TimestampMixin, Base):
    """Pointer to one uploaded document of an application."""

    __tablename__ = "application_documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    application_id: Mapped[uuid.UUID] = mapped_column(UUIDString(), nullable=False)
    doc_type: Mapped[DocumentType] = mapped_column(Enum(DocumentType), nullable=False)
    blob_ref: Mapped[str] = mapped_column(String(1024), nullable=False)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    content_type: Mapped[str | None] = mapped_column(String(255), nullable=True)
    size_bytes: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint("application_id", "doc_type", name="uq_application_doc"),
        Index("ix_application_documents_owner", "owner_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<ApplicationDocument(application_id={self.application_id}, "
            f"doc_type={self.doc_type.value})>"
        )
