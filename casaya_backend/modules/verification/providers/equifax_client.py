"""Async client for the Equifax consumer credit score API."""

from datetime import date, timedelta
from typing import Any

from ....config import settings
from ....core.logging import get_logger
from ....core.utils import utc_now
from .http import post_json

logger = get_logger(__name__)

CREDIT_SCORE_SCOPE = (
    "@https://api.equifax.com/personal/consumer-data-suite/v1/creditScore"
)


def mock_credit_score(ssn: str) -> int:
    """Deterministic test score in [500, 850) driven by the SSN's last four."""
    return 500 + int(ssn[-4:]) % 350


class EquifaxClient:
    """Client for the Equifax credit score endpoint (OAuth client credentials)."""

    def __init__(
        self,
        api_url: str | None = None,
        token_url: str | None = None,
        client_id: str | None = None,
        client_secret: str | None = None,
        use_mock: bool | None = None,
        timeout: float | None = None,
    ):
        self.api_url = (api_url or settings.equifax_api_url).rstrip("/")
        self.token_url = token_url or settings.equifax_token_url
        self.client_id = client_id if client_id is not None else settings.equifax_client_id
        self.client_secret = (
            client_secret if client_secret is not None else settings.equifax_client_secret
        )
        self.use_mock = settings.equifax_use_mock if use_mock is None else use_mock
        self.timeout = timeout or settings.verification.provider_timeout_seconds
        self._access_token: str | None = None
        self._token_expires_at = None

    async def _get_access_token(self) -> str:
        if (
            self._access_token
            and self._token_expires_at
            and self._token_expires_at > utc_now()
        ):
            return self._access_token

        logger.info("Requesting new Equifax access token")
        data = await post_json(
            "equifax",
            "token",
            self.token_url,
            self.timeout,
            data={"grant_type": "client_credentials", "scope": CREDIT_SCORE_SCOPE},
            auth=(self.client_id, self.client_secret),
        )
        self._access_token = data["access_token"]
        # Refresh a minute early
        expires_in = int(data.get("expires_in", 3600))
        self._token_expires_at = utc_now() + timedelta(seconds=max(expires_in - 60, 0))
        return self._access_token

    async def get_credit_score(
        self,
        first_name: str,
        last_name: str,
        ssn: str,
        date_of_birth: date,
        address: str,
    ) -> dict[str, Any]:
        """Return ``{"score", "status", "reportDate"}`` for the consumer."""
        if self.use_mock:
            logger.info("Using mock credit score")
            return {
                "score": mock_credit_score(ssn),
                "status": "Success",
                "reportDate": utc_now().isoformat(),
            }

        token = await self._get_access_token()
        data = await post_json(
            "equifax",
            "creditScore",
            f"{self.api_url}/creditScore",
            self.timeout,
            json={
                "consumer": {
                    "firstName": first_name,
                    "lastName": last_name,
                    "ssn": ssn,
                    "dateOfBirth": date_of_birth.isoformat(),
                    "currentAddress": {"streetAddress": address},
                }
            },
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
            },
        )
        return {
            "score": data.get("creditScore") or data.get("score"),
            "status": data.get("status", "Success"),
            "reportDate": utc_now().isoformat(),
        }
