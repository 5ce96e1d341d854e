"""
Shared fixtures for the Casaya backend tests.

Settings are loaded from the CONFIG file at import time, so a throwaway
config pointing at a SQLite file database is written before anything from
``casaya_backend`` is imported.
"""
import os
import tempfile
from datetime import timedelta

import pytest

_TMP_DIR = tempfile.mkdtemp(prefix="casaya-tests-")
_CONFIG_PATH = os.path.join(_TMP_DIR, "test.yaml")

with open(_CONFIG_PATH, "w") as f:
    f.write(
        f"""
APP_ENV: test
APP_DEBUG: false
LOG_TO_FILE: false
LOG_FORMAT: text
DATABASE_URL: sqlite+aiosqlite:///{_TMP_DIR}/test.db
JWT_SECRET_KEY: test-secret
JWT_AUDIENCE: authenticated
STORAGE_ROOT: {_TMP_DIR}/storage
STORAGE_PUBLIC_BASE_URL: http://files.test
EQUIFAX_USE_MOCK: true
verification:
  provider_timeout_seconds: 5
  max_retries: 2
  retry_backoff: 0
"""
    )

os.environ["CONFIG"] = _CONFIG_PATH

import httpx  # noqa: E402
import jwt  # noqa: E402

from casaya_backend.config import settings  # noqa: E402
from casaya_backend.core.exceptions import ProviderUnavailableError  # noqa: E402
from casaya_backend.core.utils import utc_now  # noqa: E402
from casaya_backend.database import AsyncSessionLocal, Base, engine, init_db  # noqa: E402
from casaya_backend.main import app  # noqa: E402
from casaya_backend.modules.documents.storage import (  # noqa: E402
    LocalObjectStore,
    get_object_store,
)
from casaya_backend.modules.verification.aggregator import (  # noqa: E402
    VerificationAggregator,
)
from casaya_backend.modules.verification.providers import (  # noqa: E402
    EquifaxClient,
    build_adapters,
    get_adapters,
)

TENANT_ID = "tenant-1"
OTHER_TENANT_ID = "tenant-2"
LANDLORD_ID = "landlord-1"
OTHER_LANDLORD_ID = "landlord-2"


# ============================================================================
# Fake bank-link client
# ============================================================================


def paycheque(amount: float, date: str) -> dict:
    """A payroll deposit as the bank link reports it (inflows are negative)."""
    return {
        "amount": -amount,
        "date": date,
        "category": ["Transfer", "Payroll"],
        "personal_finance_category": {"primary": "INCOME"},
    }


class FakePlaidClient:
    """In-memory stand-in for the bank-link API with switchable failures."""

    def __init__(self):
        self.unavailable: set[str] = set()
        self.exchanged: list[str] = []
        self.identity = {
            "item": {"item_id": "item-1"},
            "accounts": [
                {
                    "account_id": "acc-1",
                    "owners": [
                        {
                            "names": ["Jane Doe"],
                            "emails": [{"data": "jane@example.com", "primary": True}],
                            "phone_numbers": [{"data": "5551234567", "primary": True}],
                            "addresses": [
                                {
                                    "data": {
                                        "street": "1 Main St",
                                        "city": "Springfield",
                                        "region": "IL",
                                        "postal_code": "62701",
                                    },
                                    "primary": True,
                                }
                            ],
                        }
                    ],
                }
            ],
        }
        self.accounts = [
            {
                "account_id": "acc-1",
                "name": "Checking",
                "mask": "0000",
                "type": "depository",
                "subtype": "checking",
                "balances": {
                    "available": 1200.0,
                    "current": 1300.0,
                    "iso_currency_code": "USD",
                },
            }
        ]
        self.transactions = [
            paycheque(3000.0, "2026-07-01"),
            paycheque(3000.0, "2026-08-01"),
            paycheque(3050.0, "2026-09-01"),
        ]

    def _check(self, operation: str) -> None:
        if operation in self.unavailable:
            raise ProviderUnavailableError("plaid", operation, {"error": "timeout"})

    async def create_link_token(self, user_id, phone_number=None):
        self._check("link/token/create")
        return {"link_token": f"link-sandbox-{user_id}"}

    async def exchange_public_token(self, public_token):
        self._check("item/public_token/exchange")
        self.exchanged.append(public_token)
        return f"access-{public_token}"

    async def get_identity(self, access_token):
        self._check("identity/get")
        return self.identity

    async def get_auth(self, access_token):
        self._check("auth/get")
        return {
            "numbers": {
                "ach": [{"account_id": "acc-1", "account": "9900112233", "routing": "011"}]
            }
        }

    async def get_balance(self, access_token):
        self._check("accounts/balance/get")
        return {"item": {"item_id": "item-1"}, "accounts": self.accounts}

    async def get_transactions(self, access_token, start_date, end_date):
        self._check("transactions/get")
        return list(self.transactions)


# ============================================================================
# Database and application fixtures
# ============================================================================


@pytest.fixture
async def database():
    """Fresh schema for every test."""
    await init_db()
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db(database):
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
def plaid():
    return FakePlaidClient()


@pytest.fixture
def adapters(database, plaid):
    return build_adapters(
        AsyncSessionLocal, plaid=plaid, equifax=EquifaxClient(use_mock=True)
    )


@pytest.fixture
def aggregator(adapters):
    return VerificationAggregator(adapters, AsyncSessionLocal, settings.verification)


@pytest.fixture
def store(tmp_path):
    return LocalObjectStore(str(tmp_path / "objects"), "http://files.test")


@pytest.fixture
async def client(adapters, store):
    app.dependency_overrides[get_adapters] = lambda: adapters
    app.dependency_overrides[get_object_store] = lambda: store
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


# ============================================================================
# Principals
# ============================================================================


def make_token(user_id: str, role: str, **claims) -> str:
    """Access token shaped like the identity provider's."""
    payload = {
        "sub": user_id,
        "aud": "authenticated",
        "exp": utc_now() + timedelta(hours=1),
        "email": f"{user_id}@example.com",
        "user_metadata": {"user_type": role},
        **claims,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def auth(user_id: str, role: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id, role)}"}


@pytest.fixture
def tenant_headers():
    return auth(TENANT_ID, "tenant")


@pytest.fixture
def other_tenant_headers():
    return auth(OTHER_TENANT_ID, "tenant")


@pytest.fixture
def landlord_headers():
    return auth(LANDLORD_ID, "landlord")


@pytest.fixture
def other_landlord_headers():
    return auth(OTHER_LANDLORD_ID, "landlord")


# ============================================================================
# API helpers
# ============================================================================

PDF = ("document.pdf", b"%PDF-1.4\n%%EOF", "application/pdf")
PNG = ("id.png", b"\x89PNG\r\n\x1a\n", "image/png")


async def create_property(client, headers, monthly_rent: float = 2000) -> str:
    response = await client.post(
        "/api/properties",
        json={"address": "1 Main St", "monthlyRent": monthly_rent, "bedrooms": 2},
        headers=headers,
    )
    assert response.status_code == 200, response.text
    return response.json()["data"]["id"]


async def upload_documents(client, headers, application_id=None, slots=None) -> dict:
    """Upload the given slots (all three by default); returns the response data."""
    slots = slots or ("id", "bankStatement", "form410")
    files = {slot: PNG if slot == "id" else PDF for slot in slots}
    data = {"applicationId": application_id} if application_id else {}
    response = await client.post(
        "/api/applications/documents", files=files, data=data, headers=headers
    )
    assert response.status_code == 200, response.text
    return response.json()["data"]


async def submit_application(client, headers, property_id, application_id=None):
    if application_id is None:
        application_id = (await upload_documents(client, headers))["applicationId"]
    return await client.post(
        "/api/applications",
        json={"propertyId": property_id, "applicationId": application_id},
        headers=headers,
    )
