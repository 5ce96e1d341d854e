"""Rental application models.

An application moves from ``Pending`` to exactly one of ``Approved`` or
``Rejected``; both are terminal. ``landlord_id`` is copied from the property
when the application is created and is not revalidated afterwards, so a
later change of property ownership does not move existing applications.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ...core.database_types import UUIDString
from ...database import Base, TimestampMixin


class ApplicationStatus(str, enum.Enum):
    """Application lifecycle states."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"

    @property
    def is_terminal(self) -> bool:
        return self != ApplicationStatus.PENDING


class NoteCreatorType(str, enum.Enum):
    TENANT = "tenant"
    LANDLORD = "landlord"


def pending_key(tenant_id: str, property_id: uuid.UUID) -> str:
    """Unique while pending: at most one open application per tenant and property."""
    return f"{tenant_id}:{property_id}"


class Application(TimestampMixin, Base):
    """A tenant's application to rent a property."""

    __tablename__ = "applications"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDString(), primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    property_id: Mapped[uuid.UUID] = mapped_column(
        UUIDString(), ForeignKey("properties.id"), nullable=False
    )
    landlord_id: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(ApplicationStatus), default=ApplicationStatus.PENDING, nullable=False
    )
    decided_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    pending_key: Mapped[str | None] = mapped_column(
        String(128), unique=True, nullable=True
    )

    notes: Mapped[list["ApplicationNote"]] = relationship(
        "ApplicationNote",
        back_populates="application",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_applications_tenant_status", "tenant_id", "status"),
        Index("ix_applications_landlord_status", "landlord_id", "status"),
        Index("ix_applications_property", "property_id"),
    )

    def __repr__(self) -> str:
        return f"<Application(id={self.id}, status={self.status.value})>"


class ApplicationNote(TimestampMixin, Base):
    """Free-text note left on an application by the tenant or the landlord."""

    __tablename__ = "application_notes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    application_id: Mapped[uuid.UUID] = mapped_column(
        UUIDString(),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
    )
    creator_type: Mapped[NoteCreatorType] = mapped_column(
        Enum(NoteCreatorType), nullable=False
    )
    creator_id: Mapped[str] = mapped_column(String(64), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    application: Mapped["Application"] = relationship(
        "Application", back_populates="notes"
    )

    __table_args__ = (Index("ix_application_notes_application", "application_id"),)
