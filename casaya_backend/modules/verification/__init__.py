"""Verification module: provider adapters and the merged tenant snapshot."""

from .aggregator import VerificationAggregator
from .models import (
    BackgroundCheckStatus,
    Provider,
    ProviderSession,
    VerificationSnapshot,
    VerificationState,
)
from .routers import router

__all__ = [
    "BackgroundCheckStatus",
    "Provider",
    "ProviderSession",
    "VerificationAggregator",
    "VerificationSnapshot",
    "VerificationState",
    "router",
]
