"""CRUD operations for applications and their notes."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import (
    Application,
    ApplicationNote,
    ApplicationStatus,
    NoteCreatorType,
    pending_key,
)

# ----- Application CRUD -----


async def get_application_by_id(
    db: AsyncSession, application_id: UUID, refresh: bool = False
) -> Application | None:
    """Get an application; ``refresh`` bypasses the identity map."""
    query = select(Application).where(Application.id == application_id)
    if refresh:
        query = query.execution_options(populate_existing=True)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_applications_by_ids(
    db: AsyncSession, application_ids: list[UUID]
) -> list[Application]:
    result = await db.execute(
        select(Application).where(Application.id.in_(application_ids))
    )
    return list(result.scalars().all())


async def get_pending_application(
    db: AsyncSession, tenant_id: str, property_id: UUID
) -> Application | None:
    """The tenant's open application for a property, if any."""
    result = await db.execute(
        select(Application).where(
            Application.pending_key == pending_key(tenant_id, property_id)
        )
    )
    return result.scalar_one_or_none()


async def get_applications(
    db: AsyncSession,
    tenant_id: str | None = None,
    landlord_id: str | None = None,
    property_id: UUID | None = None,
    status: ApplicationStatus | None = None,
) -> list[Application]:
    """Get applications with filtering, newest first."""
    query = select(Application)
    if tenant_id is not None:
        query = query.where(Application.tenant_id == tenant_id)
    if landlord_id is not None:
        query = query.where(Application.landlord_id == landlord_id)
    if property_id is not None:
        query = query.where(Application.property_id == property_id)
    if status is not None:
        query = query.where(Application.status == status)
    result = await db.execute(query.order_by(Application.created_at.desc()))
    return list(result.scalars().all())


async def create_application(
    db: AsyncSession,
    application_id: UUID,
    tenant_id: str,
    property_id: UUID,
    landlord_id: str,
) -> Application:
    """Create a new pending application."""
    application = Application(
        id=application_id,
        tenant_id=tenant_id,
        property_id=property_id,
        landlord_id=landlord_id,
        status=ApplicationStatus.PENDING,
        pending_key=pending_key(tenant_id, property_id),
    )
    db.add(application)
    await db.flush()
    return application


async def transition_from_pending(
    db: AsyncSession,
    application_id: UUID,
    status: ApplicationStatus,
    decided_at: datetime,
) -> bool:
    """Compare-and-set ``Pending -> status``; False if the row was not pending."""
    result = await db.execute(
        update(Application)
        .where(
            Application.id == application_id,
            Application.status == ApplicationStatus.PENDING,
        )
        .values(status=status, decided_at=decided_at, pending_key=None)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def delete_pending_applications(
    db: AsyncSession, application_ids: list[UUID]
) -> int:
    """Delete applications that are still pending; returns how many went."""
    await db.execute(
        delete(ApplicationNote).where(
            ApplicationNote.application_id.in_(application_ids)
        )
    )
    result = await db.execute(
        delete(Application)
        .where(
            Application.id.in_(application_ids),
            Application.status == ApplicationStatus.PENDING,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


# ----- Application Note CRUD -----


async def create_note(
    db: AsyncSession,
    application_id: UUID,
    creator_type: NoteCreatorType,
    creator_id: str,
    content: str,
) -> ApplicationNote:
    """Create a new note."""
    note = ApplicationNote(
        application_id=application_id,
        creator_type=creator_type,
        creator_id=creator_id,
        content=content,
    )
    db.add(note)
    await db.flush()
    return note


async def get_notes(db: AsyncSession, application_id: UUID) -> list[ApplicationNote]:
    """Get notes of an application, newest first."""
    result = await db.execute(
        select(ApplicationNote)
        .where(ApplicationNote.application_id == application_id)
        .order_by(ApplicationNote.created_at.desc(), ApplicationNote.id.desc())
    )
    return list(result.scalars().all())
