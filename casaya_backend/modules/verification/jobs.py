"""Background refresh of pending verifications.

Provider sessions left ``pending`` by a transient provider failure are
retried with exponential backoff, then folded into the snapshot. Run once
or on an interval:

    CONFIG=resources/config/local.yaml python -m casaya_backend.modules.verification.jobs
"""

import argparse
import asyncio

from ...config import settings
from ...core.logging import get_logger, setup_logging, shutdown_logging
from ...database import AsyncSessionLocal, engine
from . import crud
from .aggregator import VerificationAggregator
from .providers import build_adapters

logger = get_logger(__name__)


async def refresh_pending(aggregator: VerificationAggregator) -> int:
    """Retry every tenant with a pending session; returns tenants refreshed.

    A tenant whose refresh raises is logged and skipped so the rest of the
    batch still runs.
    """
    async with aggregator.session_factory() as db:
        tenant_ids = await crud.get_tenants_with_pending_sessions(db)

    refreshed = 0
    for tenant_id in tenant_ids:
        try:
            snapshot = await aggregator.refresh(tenant_id, background=True)
        except Exception:
            logger.exception(
                f"Background refresh failed for tenant {tenant_id}",
                extra={"tenant_id": tenant_id},
            )
            continue
        refreshed += 1
        logger.info(
            f"Background refresh for tenant {tenant_id}: "
            f"identity={snapshot.identity_state.value} "
            f"bank_account={snapshot.bank_account_state.value} "
            f"income={snapshot.income_state.value} "
            f"background={snapshot.background_state.value}",
            extra={"tenant_id": tenant_id},
        )
    return refreshed


async def run(interval: float | None = None) -> None:
    aggregator = VerificationAggregator(
        build_adapters(AsyncSessionLocal), AsyncSessionLocal, settings.verification
    )
    try:
        while True:
            processed = await refresh_pending(aggregator)
            logger.info(f"Refreshed {processed} tenant(s) with pending verifications")
            if not interval:
                break
            await asyncio.sleep(interval)
    finally:
        await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between runs; run once when omitted",
    )
    args = parser.parse_args()

    setup_logging()
    try:
        asyncio.run(run(args.interval))
    finally:
        shutdown_logging()


if __name__ == "__main__":
    main()
