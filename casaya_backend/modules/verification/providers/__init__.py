"""Verification provider adapters and their construction."""

from functools import lru_cache

from sqlalchemy.ext.asyncio import async_sessionmaker

from ....config import settings
from ....database import AsyncSessionLocal
from ..models import Provider
from .background import BackgroundCheckAdapter
from .bank import BankLinkAdapter
from .base import (
    ProviderOutcome,
    ProviderToken,
    VerificationProviderAdapter,
    VerificationResult,
)
from .equifax_client import EquifaxClient, mock_credit_score
from .identity import IdentityAdapter
from .income import IncomeAdapter, estimate_income
from .plaid_client import PlaidClient

Adapters = dict[Provider, VerificationProviderAdapter]


def build_adapters(
    session_factory: async_sessionmaker = AsyncSessionLocal,
    plaid: PlaidClient | None = None,
    equifax: EquifaxClient | None = None,
) -> Adapters:
    """Create one adapter per provider sharing the given clients."""
    plaid = plaid or PlaidClient()
    equifax = equifax or EquifaxClient()
    policy = settings.verification
    return {
        Provider.IDENTITY: IdentityAdapter(session_factory, policy, plaid),
        Provider.BANK_ACCOUNT: BankLinkAdapter(session_factory, policy, plaid),
        Provider.INCOME: IncomeAdapter(session_factory, policy, plaid),
        Provider.BACKGROUND: BackgroundCheckAdapter(session_factory, policy, equifax),
    }


@lru_cache
def default_clients() -> tuple[PlaidClient, EquifaxClient]:
    """Process-wide clients; the Equifax client caches its OAuth token."""
    return PlaidClient(), EquifaxClient()


def get_adapters() -> Adapters:
    """FastAPI dependency returning the configured adapters."""
    plaid, equifax = default_clients()
    return build_adapters(plaid=plaid, equifax=equifax)


__all__ = [
    "Adapters",
    "BackgroundCheckAdapter",
    "BankLinkAdapter",
    "EquifaxClient",
    "IdentityAdapter",
    "IncomeAdapter",
    "PlaidClient",
    "ProviderOutcome",
    "ProviderToken",
    "VerificationProviderAdapter",
    "VerificationResult",
    "build_adapters",
    "estimate_income",
    "get_adapters",
    "mock_credit_score",
]
