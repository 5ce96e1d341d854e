"""Verification business logic services."""

from typing import Any

from ...core.logging import get_logger
from .aggregator import VerificationAggregator
from .models import Provider, VerificationSnapshot
from .providers import Adapters, ProviderToken, VerificationResult

logger = get_logger(__name__)


async def initiate(adapters: Adapters, provider: Provider, tenant_id: str) -> ProviderToken:
    """Open a provider session for the tenant."""
    return await adapters[provider].initiate(tenant_id)


async def complete(
    adapters: Adapters,
    aggregator: VerificationAggregator,
    provider: Provider,
    tenant_id: str,
    payload: dict[str, Any],
) -> VerificationResult:
    """Complete a provider flow and fold the outcome into the snapshot."""
    result = await adapters[provider].complete(tenant_id, payload)
    await aggregator.refresh(tenant_id)
    return result


async def get_status(
    adapters: Adapters, provider: Provider, tenant_id: str
) -> VerificationResult:
    return await adapters[provider].status(tenant_id)


async def get_snapshot(
    aggregator: VerificationAggregator, tenant_id: str
) -> VerificationSnapshot:
    return await aggregator.get_snapshot(tenant_id)


async def refresh(
    aggregator: VerificationAggregator, tenant_id: str
) -> VerificationSnapshot:
    return await aggregator.refresh(tenant_id)
