"""Authenticated principal schemas."""

import enum

from pydantic import BaseModel


class UserRole(str, enum.Enum):
    """Marketplace roles carried in the identity provider's token."""

    TENANT = "tenant"
    LANDLORD = "landlord"


class AuthenticatedUser(BaseModel):
    """Principal verified from the bearer token on every request."""

    id: str
    email: str | None = None
    role: UserRole

    @property
    def is_tenant(self) -> bool:
        return self.role == UserRole.TENANT

    @property
    def is_landlord(self) -> bool:
        return self.role == UserRole.LANDLORD
