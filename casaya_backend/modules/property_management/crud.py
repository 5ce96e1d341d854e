"""CRUD operations for properties."""

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Property


async def get_property_by_id(db: AsyncSession, property_id: UUID) -> Property | None:
    """Get a property by ID."""
    result = await db.execute(select(Property).where(Property.id == property_id))
    return result.scalar_one_or_none()


async def get_property_for_landlord(
    db: AsyncSession, property_id: UUID, landlord_id: str
) -> Property | None:
    """Get a property only if it is owned by the landlord."""
    result = await db.execute(
        select(Property).where(
            Property.id == property_id, Property.landlord_id == landlord_id
        )
    )
    return result.scalar_one_or_none()


async def create_property(db: AsyncSession, landlord_id: str, **kwargs) -> Property:
    """Create a new property."""
    prop = Property(landlord_id=landlord_id, **kwargs)
    db.add(prop)
    await db.flush()
    return prop


async def increment_applicants(db: AsyncSession, property_id: UUID) -> None:
    """Atomically bump the applicant counter."""
    await db.execute(
        update(Property)
        .where(Property.id == property_id)
        .values(num_applicants=Property.num_applicants + 1)
    )


async def decrement_applicants(
    db: AsyncSession, property_id: UUID, count: int = 1
) -> None:
    """Atomically lower the applicant counter, never below zero."""
    await db.execute(
        update(Property)
        .where(Property.id == property_id, Property.num_applicants >= count)
        .values(num_applicants=Property.num_applicants - count)
    )


async def mark_leased(db: AsyncSession, property_id: UUID) -> None:
    """Flag the property as leased after an approval."""
    await db.execute(
        update(Property).where(Property.id == property_id).values(is_leased=True)
    )
