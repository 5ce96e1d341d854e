"""Application module: submission and the landlord decision state machine."""

from .models import Application, ApplicationNote, ApplicationStatus
from .routers import landlord_router, router

__all__ = [
    "Application",
    "ApplicationNote",
    "ApplicationStatus",
    "landlord_router",
    "router",
]
