"""Tenant profile business logic services."""

from sqlalchemy.ext.asyncio import AsyncSession

from ...core.exceptions import ResourceNotFoundError
from ..auth import AuthenticatedUser
from . import crud
from .models import Tenant
from .schemas import TenantUpdate


async def get_tenant(db: AsyncSession, tenant_id: str) -> Tenant:
    """Get a tenant or raise ResourceNotFoundError."""
    tenant = await crud.get_tenant_by_id(db, tenant_id)
    if not tenant:
        raise ResourceNotFoundError("Tenant", tenant_id)
    return tenant


async def get_or_create_profile(db: AsyncSession, user: AuthenticatedUser) -> Tenant:
    """Return the caller's profile, creating an empty one on first access."""
    tenant = await crud.get_tenant_by_id(db, user.id)
    if tenant:
        return tenant
    tenant = await crud.create_tenant(db, user.id, email=user.email)
    await db.commit()
    await db.refresh(tenant)
    return tenant


async def update_profile(
    db: AsyncSession, user: AuthenticatedUser, data: TenantUpdate
) -> Tenant:
    """Update the caller's profile."""
    tenant = await get_or_create_profile(db, user)
    await crud.update_tenant(db, tenant, **data.model_dump(exclude_unset=True))
    await db.commit()
    await db.refresh(tenant)
    return tenant
