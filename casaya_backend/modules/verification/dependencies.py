"""Verification dependencies for FastAPI."""

from typing import Annotated

from fastapi import Depends

from ...config import settings
from ...database import AsyncSessionLocal
from .aggregator import VerificationAggregator
from .providers import Adapters, get_adapters


def get_aggregator(
    adapters: Annotated[Adapters, Depends(get_adapters)],
) -> VerificationAggregator:
    return VerificationAggregator(adapters, AsyncSessionLocal, settings.verification)


AdaptersDep = Annotated[Adapters, Depends(get_adapters)]
AggregatorDep = Annotated[VerificationAggregator, Depends(get_aggregator)]
