"""Property business logic services."""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ...core.exceptions import ResourceNotFoundError
from . import crud
from .models import Property
from .schemas import PropertyCreate


async def create_property(
    db: AsyncSession, landlord_id: str, data: PropertyCreate
) -> Property:
    """List a new property for the landlord."""
    prop = await crud.create_property(db, landlord_id, **data.model_dump())
    await db.commit()
    await db.refresh(prop)
    return prop


async def get_property(db: AsyncSession, property_id: UUID) -> Property:
    """Get a property or raise ResourceNotFoundError."""
    prop = await crud.get_property_by_id(db, property_id)
    if not prop:
        raise ResourceNotFoundError("Property", property_id)
    return prop
