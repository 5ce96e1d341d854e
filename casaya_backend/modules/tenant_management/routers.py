"""Tenant profile API routes."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ...database import get_db
from ..auth import TenantUser
from ..commons import BaseResponse
from . import services
from .schemas import TenantResponse, TenantUpdate

router = APIRouter(prefix="/tenants", tags=["Tenants"])


@router.get("/me", response_model=BaseResponse[TenantResponse])
async def get_my_profile(
    current_user: TenantUser,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Get the calling tenant's profile."""
    tenant = await services.get_or_create_profile(db, current_user)
    return BaseResponse(success=True, data=TenantResponse.from_tenant(tenant))


@router.put("/me", response_model=BaseResponse[TenantResponse])
async def update_my_profile(
    data: TenantUpdate,
    current_user: TenantUser,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Update the calling tenant's profile."""
    tenant = await services.update_profile(db, current_user, data)
    return BaseResponse(
        success=True,
        message="Profile updated successfully",
        data=TenantResponse.from_tenant(tenant),
    )
