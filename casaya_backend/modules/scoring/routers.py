"""Scoring API routes."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ...config import settings
from ...core.exceptions import ForbiddenError, ValidationError
from ...core.logging import get_logger
from ...database import get_db
from ..auth import CurrentUser
from ..commons import BaseResponse
from ..property_management import services as property_services
from . import engine, services
from .schemas import (
    CompatibilityRequest,
    CompatibilityResponse,
    ScoreRequest,
    ScoreResponse,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/scoring", tags=["Scoring"])


@router.post("/calculate-score", response_model=BaseResponse[ScoreResponse])
async def calculate_score(data: ScoreRequest, current_user: CurrentUser):
    """Score income, credit score and employment history."""
    result = engine.score(
        data.income, data.credit_score, data.employment_history, settings.scoring
    )
    return BaseResponse(success=True, data=ScoreResponse.from_result(result))


@router.post(
    "/check-compatibility", response_model=BaseResponse[CompatibilityResponse]
)
async def check_compatibility(
    data: CompatibilityRequest,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Score a tenant against a property.

    Tenants may only check themselves; landlords may check any tenant
    against their own properties.
    """
    if current_user.is_tenant:
        tenant_id = data.tenant_id or current_user.id
        if tenant_id != current_user.id:
            logger.warning(
                f"Tenant {current_user.id} requested compatibility of tenant {tenant_id}"
            )
            raise ForbiddenError("check compatibility of", "tenant")
    else:
        if not data.tenant_id:
            raise ValidationError("is required", field="tenantId")
        tenant_id = data.tenant_id
        prop = await property_services.get_property(db, data.property_id)
        if prop.landlord_id != current_user.id:
            logger.warning(
                f"Landlord {current_user.id} requested compatibility for property "
                f"{data.property_id} owned by {prop.landlord_id}"
            )
            raise ForbiddenError("check compatibility for", "property")

    result = await services.check_compatibility(db, tenant_id, data.property_id)
    return BaseResponse(
        success=True,
        data=CompatibilityResponse.from_result(tenant_id, data.property_id, result),
    )
