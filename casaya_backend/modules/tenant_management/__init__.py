"""Tenant profile module."""

from .models import Tenant
from .routers import router

__all__ = [
    "Tenant",
    "router",
]
