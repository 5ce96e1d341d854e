"""
Tests for the API surface: envelope, authentication and tenant profiles.
"""
import uuid
from datetime import timedelta

from casaya_backend.core.utils import utc_now

from conftest import TENANT_ID, make_token


class TestEnvelope:
    """Tests for the response envelope and error mapping."""

    async def test_health(self, client):
        response = await client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_success_envelope(self, client, landlord_headers):
        response = await client.post(
            "/api/properties",
            json={"address": "2 Elm St", "monthlyRent": 1500},
            headers=landlord_headers,
        )
        body = response.json()
        assert body["success"] is True
        assert body["error"] is None
        assert body["timestamp"]
        assert body["data"]["landlordId"] == "landlord-1"
        assert body["data"]["isLeased"] is False

    async def test_not_found_envelope(self, client, tenant_headers):
        missing = uuid.uuid4()
        response = await client.get(f"/api/properties/{missing}", headers=tenant_headers)
        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["data"] is None
        assert body["error"]["code"] == "not_found"
        assert str(missing) in body["message"]

    async def test_request_validation_envelope(self, client, landlord_headers):
        response = await client.post(
            "/api/properties",
            json={"address": "2 Elm St", "monthlyRent": -10},
            headers=landlord_headers,
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "validation_error"

    async def test_transaction_id_is_echoed(self, client):
        response = await client.get(
            "/api/health", headers={"x-transaction-id": "abc12345"}
        )
        assert response.headers["x-transaction-id"] == "abc12345"


class TestAuthentication:
    """Tests for bearer token verification."""

    async def test_invalid_token(self, client):
        response = await client.get(
            "/api/tenants/me", headers={"Authorization": "Bearer not-a-token"}
        )
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"
        assert response.json()["success"] is False

    async def test_expired_token(self, client):
        token = make_token(TENANT_ID, "tenant", exp=utc_now() - timedelta(minutes=1))
        response = await client.get(
            "/api/tenants/me", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401

    async def test_wrong_audience(self, client):
        token = make_token(TENANT_ID, "tenant", aud="someone-else")
        response = await client.get(
            "/api/tenants/me", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401

    async def test_unknown_role(self, client):
        token = make_token(TENANT_ID, "admin")
        response = await client.get(
            "/api/tenants/me", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401

    async def test_top_level_role_claim(self, client):
        token = make_token(TENANT_ID, "tenant", user_metadata={}, user_type="tenant")
        response = await client.get(
            "/api/tenants/me", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 200

    async def test_tenants_cannot_list_properties(self, client, tenant_headers):
        response = await client.post(
            "/api/properties",
            json={"address": "2 Elm St", "monthlyRent": 1500},
            headers=tenant_headers,
        )
        assert response.status_code == 403


class TestTenantProfile:
    """Tests for the caller's tenant profile."""

    async def test_profile_created_on_first_access(self, client, tenant_headers):
        response = await client.get("/api/tenants/me", headers=tenant_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == TENANT_ID
        assert data["email"] == f"{TENANT_ID}@example.com"
        assert data["ssnLastFour"] is None

    async def test_update_profile(self, client, tenant_headers):
        response = await client.put(
            "/api/tenants/me",
            json={
                "firstName": "Jane",
                "lastName": "Doe",
                "ssn": "123-45-6789",
                "dateOfBirth": "1990-01-01",
                "currentAddress": "1 Main St",
                "employmentHistoryYears": 4,
            },
            headers=tenant_headers,
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["firstName"] == "Jane"
        assert data["ssnLastFour"] == "6789"
        assert "ssn" not in data
        assert data["employmentHistoryYears"] == 4

    async def test_invalid_ssn(self, client, tenant_headers):
        response = await client.put(
            "/api/tenants/me", json={"ssn": "12-34"}, headers=tenant_headers
        )
        assert response.status_code == 422

    async def test_landlords_have_no_tenant_profile(self, client, landlord_headers):
        response = await client.get("/api/tenants/me", headers=landlord_headers)
        assert response.status_code == 403
