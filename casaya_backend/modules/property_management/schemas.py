"""Property schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import Field

from ..commons import ApiModel


class PropertyCreate(ApiModel):
    """Schema for listing a property."""

    address: str = Field(..., min_length=1, max_length=500)
    monthly_rent: Decimal = Field(..., gt=0)
    bedrooms: int | None = Field(None, ge=0)
    bathrooms: int | None = Field(None, ge=0)


class PropertyResponse(ApiModel):
    """Schema for property response."""

    id: UUID
    landlord_id: str
    address: str
    monthly_rent: Decimal
    bedrooms: int | None = None
    bathrooms: int | None = None
    is_leased: bool
    num_applicants: int
    created_at: datetime
