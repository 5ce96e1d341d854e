"""Minimal async client for the Plaid endpoints used by verification."""

from datetime import date
from typing import Any

from ....config import settings
from .http import post_json

PLAID_ENVIRONMENTS = {
    "sandbox": "https://sandbox.plaid.com",
    "development": "https://development.plaid.com",
    "production": "https://production.plaid.com",
}

LINK_PRODUCTS = ["auth", "identity", "transactions"]


class PlaidClient:
    """Client for the Plaid bank-link API."""

    def __init__(
        self,
        client_id: str | None = None,
        secret: str | None = None,
        environment: str | None = None,
        timeout: float | None = None,
    ):
        self.client_id = client_id if client_id is not None else settings.plaid_client_id
        self.secret = secret if secret is not None else settings.plaid_secret
        env = environment or settings.plaid_env
        self.base_url = PLAID_ENVIRONMENTS.get(env, PLAID_ENVIRONMENTS["sandbox"])
        self.timeout = timeout or settings.verification.provider_timeout_seconds

    async def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        return await post_json(
            "plaid",
            path.strip("/"),
            f"{self.base_url}{path}",
            self.timeout,
            json={"client_id": self.client_id, "secret": self.secret, **body},
        )

    async def create_link_token(
        self, user_id: str, phone_number: str | None = None
    ) -> dict[str, Any]:
        user: dict[str, Any] = {"client_user_id": user_id}
        if phone_number:
            user["phone_number"] = phone_number
        return await self._post(
            "/link/token/create",
            {
                "user": user,
                "client_name": settings.plaid_client_name,
                "products": LINK_PRODUCTS,
                "country_codes": settings.plaid_country_codes,
                "language": "en",
            },
        )

    async def exchange_public_token(self, public_token: str) -> str:
        data = await self._post(
            "/item/public_token/exchange", {"public_token": public_token}
        )
        return data["access_token"]

    async def get_identity(self, access_token: str) -> dict[str, Any]:
        return await self._post("/identity/get", {"access_token": access_token})

    async def get_auth(self, access_token: str) -> dict[str, Any]:
        return await self._post("/auth/get", {"access_token": access_token})

    async def get_balance(self, access_token: str) -> dict[str, Any]:
        return await self._post("/accounts/balance/get", {"access_token": access_token})

    async def get_transactions(
        self, access_token: str, start_date: date, end_date: date
    ) -> list[dict[str, Any]]:
        """Fetch every transaction in the window, following Plaid's paging."""
        transactions: list[dict[str, Any]] = []
        while True:
            data = await self._post(
                "/transactions/get",
                {
                    "access_token": access_token,
                    "start_date": start_date.isoformat(),
                    "end_date": end_date.isoformat(),
                    "options": {
                        "count": 500,
                        "offset": len(transactions),
                        "include_personal_finance_category": True,
                    },
                },
            )
            page = data.get("transactions", [])
            transactions.extend(page)
            if not page or len(transactions) >= data.get("total_transactions", 0):
                return transactions
