"""Identity verification through the bank link's identity product."""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Provider, ProviderSession
from .base import ProviderOutcome
from .plaid_linked import PlaidLinkedAdapter


def _primary(entries: list[dict[str, Any]]) -> Any:
    if not entries:
        return None
    for entry in entries:
        if entry.get("primary"):
            return entry.get("data")
    return entries[0].get("data")


def _format_address(address: dict[str, Any] | None) -> str | None:
    if not address:
        return None
    return (
        f"{address.get('street')}, {address.get('city')}, "
        f"{address.get('region')} {address.get('postal_code')}"
    )


class IdentityAdapter(PlaidLinkedAdapter):
    """Succeeds when the linked item has an owner with a name."""

    provider = Provider.IDENTITY

    async def verify(
        self,
        db: AsyncSession,
        tenant_id: str,
        session: ProviderSession,
        payload: dict[str, Any],
    ) -> ProviderOutcome:
        access_token = await self.resolve_access_token(db, tenant_id, session, payload)
        data = await self.client.get_identity(access_token)

        accounts = data.get("accounts") or []
        owners = (accounts[0].get("owners") or []) if accounts else []
        owner = owners[0] if owners else None
        if not owner or not owner.get("names"):
            return ProviderOutcome(
                success=False, error="No identity information found"
            )

        first_name, _, last_name = owner["names"][0].partition(" ")
        return ProviderOutcome(
            success=True,
            details={
                "firstName": first_name,
                "lastName": last_name,
                "email": _primary(owner.get("emails") or []),
                "phone": _primary(owner.get("phone_numbers") or []),
                "address": _format_address(_primary(owner.get("addresses") or [])),
                "itemId": (data.get("item") or {}).get("item_id"),
            },
        )
