"""Merges provider results into the tenant's verification snapshot.

Each snapshot field is written with its own compare-and-set on the field's
version, so refreshes running in parallel for the same tenant never
overwrite each other's work. Results are only applied when their session
revision is ahead of the one the field last absorbed, which makes a refresh
idempotent and independent of clock precision.
"""

import asyncio
from decimal import Decimal

from sqlalchemy.ext.asyncio import async_sessionmaker

from ...config import VerificationPolicy
from ...core.logging import get_logger
from . import crud
from .models import Provider, VerificationSnapshot, VerificationState
from .providers import Adapters, VerificationProviderAdapter, VerificationResult

logger = get_logger(__name__)

# Results that must never demote a verified field
_TRANSIENT_STATES = {
    VerificationState.NOT_STARTED,
    VerificationState.IN_PROGRESS,
    VerificationState.PENDING,
}


def field_update(
    snapshot: VerificationSnapshot, result: VerificationResult
) -> dict:
    """Column values for the snapshot field the result belongs to."""
    name = result.provider.value
    current = snapshot.state_of(result.provider)
    values: dict = {
        f"{name}_checked_at": result.observed_at,
        f"{name}_revision": result.sequence,
    }

    if result.state == VerificationState.VERIFIED:
        values[f"{name}_state"] = VerificationState.VERIFIED
        values[f"{name}_verified_at"] = result.completed_at
        if result.provider == Provider.INCOME:
            values["verified_income"] = Decimal(str(result.value or 0)).quantize(
                Decimal("0.01")
            )
        elif result.provider == Provider.BACKGROUND:
            values["credit_score"] = int(result.value) if result.value else None
    elif result.state == VerificationState.FAILED:
        values[f"{name}_state"] = VerificationState.FAILED
        if result.provider == Provider.INCOME:
            values["verified_income"] = Decimal("0")
        elif result.provider == Provider.BACKGROUND:
            values["credit_score"] = None
    elif current != VerificationState.VERIFIED:
        values[f"{name}_state"] = result.state

    return values


class VerificationAggregator:
    """Fans out over the provider adapters and folds their results."""

    def __init__(
        self,
        adapters: Adapters,
        session_factory: async_sessionmaker,
        policy: VerificationPolicy,
    ):
        self.adapters = adapters
        self.session_factory = session_factory
        self.policy = policy

    async def _status(
        self, tenant_id: str, adapter: VerificationProviderAdapter
    ) -> VerificationResult | None:
        try:
            return await asyncio.wait_for(
                adapter.status(tenant_id), self.policy.provider_timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"{adapter.provider.value} status timed out for tenant {tenant_id}"
            )
        except Exception:
            logger.exception(
                f"{adapter.provider.value} status failed for tenant {tenant_id}"
            )
        return None

    async def _retry_pending(self, tenant_id: str) -> None:
        """Retry pending provider sessions with exponential backoff.

        A provider whose retry raises is logged and skipped; the others
        are still retried.
        """
        for adapter in self.adapters.values():
            try:
                await self._retry_adapter(tenant_id, adapter)
            except Exception:
                logger.exception(
                    f"{adapter.provider.value} retry failed for tenant {tenant_id}"
                )

    async def _retry_adapter(
        self, tenant_id: str, adapter: VerificationProviderAdapter
    ) -> None:
        for attempt in range(1, self.policy.max_retries + 1):
            try:
                result = await asyncio.wait_for(
                    adapter.retry(tenant_id), self.policy.provider_timeout_seconds
                )
            except asyncio.TimeoutError:
                logger.warning(
                    f"{adapter.provider.value} retry {attempt} timed out "
                    f"for tenant {tenant_id}"
                )
            else:
                if result is None or result.state != VerificationState.PENDING:
                    return
            if attempt < self.policy.max_retries:
                await asyncio.sleep(self.policy.retry_backoff**attempt)

    async def _apply(self, tenant_id: str, result: VerificationResult) -> bool:
        """Apply one result with a bounded compare-and-set loop."""
        field = result.provider.value
        for _ in range(self.policy.cas_max_attempts):
            async with self.session_factory() as db:
                snapshot = await crud.get_snapshot(db, tenant_id)
                if result.sequence <= getattr(snapshot, f"{field}_revision"):
                    return False

                expected = getattr(snapshot, f"{field}_version")
                values = field_update(snapshot, result)
                if await crud.compare_and_set_field(
                    db, tenant_id, result.provider, expected, values
                ):
                    await db.commit()
                    logger.debug(
                        f"Applied {field} result to snapshot of tenant {tenant_id}"
                    )
                    return True
                await db.rollback()
        logger.warning(
            f"Gave up applying {field} result for tenant {tenant_id} after "
            f"{self.policy.cas_max_attempts} conflicting updates"
        )
        return False

    async def refresh(
        self, tenant_id: str, background: bool = False
    ) -> VerificationSnapshot:
        """Pull every adapter's status and merge what changed.

        With ``background`` set, pending provider sessions are retried first.
        """
        async with self.session_factory() as db:
            await crud.get_or_create_snapshot(db, tenant_id)

        if background:
            await self._retry_pending(tenant_id)

        results = await asyncio.gather(
            *(self._status(tenant_id, adapter) for adapter in self.adapters.values())
        )
        for result in results:
            if result is None or result.sequence is None:
                continue
            await self._apply(tenant_id, result)

        return await self.get_snapshot(tenant_id)

    async def get_snapshot(self, tenant_id: str) -> VerificationSnapshot:
        async with self.session_factory() as db:
            return await crud.get_or_create_snapshot(db, tenant_id)

    async def is_ready_for_scoring(self, tenant_id: str) -> bool:
        """Identity and bank account are both verified."""
        snapshot = await self.get_snapshot(tenant_id)
        return snapshot.is_ready_for_scoring
