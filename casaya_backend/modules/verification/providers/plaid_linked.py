"""Shared behaviour of the adapters backed by the Plaid bank link."""

import re
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ....config import VerificationPolicy
from ....core.exceptions import ValidationError
from ...tenant_management import crud as tenant_crud
from .. import crud
from ..models import Provider, ProviderSession
from .base import VerificationProviderAdapter
from .plaid_client import PlaidClient

PLAID_PROVIDERS = (Provider.IDENTITY, Provider.BANK_ACCOUNT, Provider.INCOME)


def format_phone_number(phone: str) -> str:
    """E.164 for US numbers, as Plaid Link expects."""
    digits = re.sub(r"\D", "", phone)
    return f"+{digits}" if digits.startswith("1") else f"+1{digits}"


class PlaidLinkedAdapter(VerificationProviderAdapter):
    """Adapter whose session is a Plaid Link flow over one bank item."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        policy: VerificationPolicy,
        client: PlaidClient,
    ):
        super().__init__(session_factory, policy)
        self.client = client

    async def open_session(self, db: AsyncSession, tenant_id: str) -> str:
        tenant = await tenant_crud.get_tenant_by_id(db, tenant_id)
        phone = format_phone_number(tenant.phone) if tenant and tenant.phone else None
        data = await self.client.create_link_token(tenant_id, phone)
        return data["link_token"]

    async def resolve_access_token(
        self,
        db: AsyncSession,
        tenant_id: str,
        session: ProviderSession,
        payload: dict[str, Any],
    ) -> str:
        """Access token for the tenant's linked item.

        A new ``publicToken`` is exchanged once and kept on the session;
        otherwise the token stored by any of the tenant's bank-link sessions
        is reused.
        """
        public_token = payload.get("publicToken")
        previous = (session.payload or {}).get("publicToken")
        if public_token and (public_token != previous or not session.access_token):
            session.access_token = await self.client.exchange_public_token(public_token)
            return session.access_token

        if session.access_token:
            return session.access_token

        access_token = await crud.find_access_token(db, tenant_id, PLAID_PROVIDERS)
        if access_token is None:
            raise ValidationError(
                "A bank link is required before this verification",
                field="publicToken",
            )
        session.access_token = access_token
        return access_token
