"""Scoring services: load a tenant's verified attributes and score them."""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ...config import settings
from ..property_management import services as property_services
from ..tenant_management import crud as tenant_crud
from ..verification import crud as verification_crud
from . import engine


async def check_compatibility(
    db: AsyncSession, tenant_id: str, property_id: UUID
) -> engine.CompatibilityResult:
    """Score the tenant's current verified state against a property's rent."""
    prop = await property_services.get_property(db, property_id)
    snapshot = await verification_crud.get_snapshot(db, tenant_id)
    tenant = await tenant_crud.get_tenant_by_id(db, tenant_id)

    income = float(snapshot.verified_income) if snapshot else 0.0
    credit_score = snapshot.credit_score if snapshot else None
    years = tenant.employment_history_years if tenant else 0.0

    return engine.compatibility(
        income, credit_score, years, float(prop.monthly_rent), settings.scoring
    )
