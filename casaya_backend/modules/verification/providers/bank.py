"""Bank account verification through the bank link."""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Provider, ProviderSession
from .base import ProviderOutcome
from .plaid_linked import PlaidLinkedAdapter


class BankLinkAdapter(PlaidLinkedAdapter):
    """Succeeds when the linked item exposes at least one account."""

    provider = Provider.BANK_ACCOUNT

    async def verify(
        self,
        db: AsyncSession,
        tenant_id: str,
        session: ProviderSession,
        payload: dict[str, Any],
    ) -> ProviderOutcome:
        access_token = await self.resolve_access_token(db, tenant_id, session, payload)
        auth = await self.client.get_auth(access_token)
        balance = await self.client.get_balance(access_token)

        ach = {
            n.get("account_id"): n
            for n in (auth.get("numbers") or {}).get("ach") or []
        }
        accounts = []
        for account in balance.get("accounts") or []:
            numbers = ach.get(account.get("account_id")) or {}
            balances = account.get("balances") or {}
            accounts.append(
                {
                    "accountId": account.get("account_id"),
                    "name": account.get("name"),
                    "mask": account.get("mask"),
                    "type": account.get("type"),
                    "subtype": account.get("subtype"),
                    "accountNumberMask": (numbers.get("account") or "")[-4:] or None,
                    "balances": {
                        "available": balances.get("available"),
                        "current": balances.get("current"),
                        "currency": balances.get("iso_currency_code"),
                    },
                }
            )

        if not accounts:
            return ProviderOutcome(success=False, error="No bank accounts found")
        return ProviderOutcome(
            success=True,
            details={
                "accounts": accounts,
                "itemId": (balance.get("item") or {}).get("item_id"),
            },
        )
