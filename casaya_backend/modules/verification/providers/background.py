"""Background and credit check through Equifax."""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ....config import VerificationPolicy
from ....core.exceptions import ValidationError
from ...tenant_management import crud as tenant_crud
from ..models import Provider, ProviderSession
from .base import ProviderOutcome, VerificationProviderAdapter, new_session_token
from .equifax_client import EquifaxClient

REQUIRED_FIELDS = ("first_name", "last_name", "ssn", "date_of_birth", "current_address")


class BackgroundCheckAdapter(VerificationProviderAdapter):
    """Pulls the tenant's credit score; the score is the result value."""

    provider = Provider.BACKGROUND

    def __init__(
        self,
        session_factory: async_sessionmaker,
        policy: VerificationPolicy,
        client: EquifaxClient,
    ):
        super().__init__(session_factory, policy)
        self.client = client

    async def open_session(self, db: AsyncSession, tenant_id: str) -> str:
        return new_session_token()

    async def verify(
        self,
        db: AsyncSession,
        tenant_id: str,
        session: ProviderSession,
        payload: dict[str, Any],
    ) -> ProviderOutcome:
        tenant = await tenant_crud.get_tenant_by_id(db, tenant_id)
        missing = [
            name
            for name in REQUIRED_FIELDS
            if tenant is None or not getattr(tenant, name)
        ]
        if missing:
            raise ValidationError(
                f"Missing required information for credit check: {', '.join(missing)}",
                details={"missing": missing},
            )

        report = await self.client.get_credit_score(
            tenant.first_name,
            tenant.last_name,
            tenant.ssn,
            tenant.date_of_birth,
            tenant.current_address,
        )
        score = report.get("score")
        if not score:
            return ProviderOutcome(
                success=False, details=report, error="No credit score returned"
            )
        return ProviderOutcome(success=True, value=float(score), details=report)
