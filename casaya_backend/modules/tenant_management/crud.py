"""CRUD operations for tenant profiles."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Tenant


async def get_tenant_by_id(db: AsyncSession, tenant_id: str) -> Tenant | None:
    """Get a tenant by principal id."""
    result = await db.execute(select(Tenant).where(Tenant.id == tenant_id))
    return result.scalar_one_or_none()


async def create_tenant(db: AsyncSession, tenant_id: str, **kwargs) -> Tenant:
    """Create a new tenant profile."""
    tenant = Tenant(id=tenant_id, **kwargs)
    db.add(tenant)
    await db.flush()
    return tenant


async def update_tenant(db: AsyncSession, tenant: Tenant, **kwargs) -> Tenant:
    """Update a tenant."""
    for key, value in kwargs.items():
        if value is not None and hasattr(tenant, key):
            setattr(tenant, key, value)
    await db.flush()
    return tenant
