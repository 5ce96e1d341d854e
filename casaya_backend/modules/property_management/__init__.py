"""Property module: the listing fields the application pipeline depends on."""

from .models import Property
from .routers import router

__all__ = [
    "Property",
    "router",
]
