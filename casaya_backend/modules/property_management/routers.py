"""Property API routes."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ...database import get_db
from ..auth import CurrentUser, LandlordUser
from ..commons import BaseResponse
from . import services
from .schemas import PropertyCreate, PropertyResponse

router = APIRouter(prefix="/properties", tags=["Properties"])


@router.post("", response_model=BaseResponse[PropertyResponse])
async def create_property(
    data: PropertyCreate,
    current_user: LandlordUser,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """List a new property (landlord only)."""
    prop = await services.create_property(db, current_user.id, data)
    return BaseResponse(
        success=True,
        message="Property created successfully",
        data=PropertyResponse.model_validate(prop),
    )


@router.get("/{property_id}", response_model=BaseResponse[PropertyResponse])
async def get_property(
    property_id: UUID,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Get a property by ID."""
    prop = await services.get_property(db, property_id)
    return BaseResponse(success=True, data=PropertyResponse.model_validate(prop))
