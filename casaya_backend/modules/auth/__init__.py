"""Principal verification for tenant and landlord requests."""

from .dependencies import CurrentUser, LandlordUser, TenantUser, get_current_user
from .schemas import AuthenticatedUser, UserRole

__all__ = [
    "AuthenticatedUser",
    "UserRole",
    "CurrentUser",
    "TenantUser",
    "LandlordUser",
    "get_current_user",
]
