"""
Tests for the verification adapters, the snapshot aggregator and the
verification API.
"""
import asyncio
from datetime import date, timedelta
from decimal import Decimal

import pytest

from casaya_backend.core.exceptions import ProviderUnavailableError, ValidationError
from casaya_backend.core.utils import as_utc, utc_now
from casaya_backend.modules.verification.providers import base as provider_base
from casaya_backend.modules.tenant_management import crud as tenant_crud
from casaya_backend.modules.verification import crud as verification_crud
from casaya_backend.modules.verification.jobs import refresh_pending
from casaya_backend.modules.verification.models import (
    BackgroundCheckStatus,
    Provider,
    VerificationState,
)

from conftest import OTHER_TENANT_ID, TENANT_ID

LINK = {"publicToken": "public-sandbox-1"}


async def _create_tenant(db, tenant_id=TENANT_ID):
    await tenant_crud.create_tenant(
        db,
        tenant_id,
        first_name="Jane",
        last_name="Doe",
        ssn="123456789",
        date_of_birth=date(1990, 1, 1),
        current_address="1 Main St",
        employment_history_years=3,
    )
    await db.commit()


# ============================================================================
# Adapters
# ============================================================================


class TestAdapters:
    """Tests for the provider adapters."""

    async def test_identity_verified(self, adapters):
        result = await adapters[Provider.IDENTITY].complete(TENANT_ID, LINK)
        assert result.state == VerificationState.VERIFIED
        assert result.success is True
        assert result.details["firstName"] == "Jane"
        assert result.details["lastName"] == "Doe"
        assert result.details["email"] == "jane@example.com"
        assert result.details["address"] == "1 Main St, Springfield, IL 62701"

    async def test_identity_without_owner_fails(self, adapters, plaid):
        plaid.identity = {"accounts": [{"owners": []}]}
        result = await adapters[Provider.IDENTITY].complete(TENANT_ID, LINK)
        assert result.state == VerificationState.FAILED
        assert result.error == "No identity information found"

    async def test_bank_link_reused_across_adapters(self, adapters, plaid):
        await adapters[Provider.IDENTITY].complete(TENANT_ID, LINK)
        result = await adapters[Provider.BANK_ACCOUNT].complete(TENANT_ID, {})
        assert result.state == VerificationState.VERIFIED
        assert result.details["accounts"][0]["accountNumberMask"] == "2233"
        assert plaid.exchanged == ["public-sandbox-1"]

    async def test_bank_requires_link(self, adapters):
        with pytest.raises(ValidationError) as exc:
            await adapters[Provider.BANK_ACCOUNT].complete(TENANT_ID, {})
        assert exc.value.field == "publicToken"

    async def test_income_estimated_from_deposits(self, adapters):
        result = await adapters[Provider.INCOME].complete(TENANT_ID, LINK)
        assert result.state == VerificationState.VERIFIED
        assert result.value == 36200.0
        assert result.details["frequency"] == "monthly"

    async def test_income_without_deposits_fails(self, adapters, plaid):
        plaid.transactions = []
        result = await adapters[Provider.INCOME].complete(TENANT_ID, LINK)
        assert result.state == VerificationState.FAILED
        assert result.value is None

    async def test_background_requires_profile(self, adapters):
        with pytest.raises(ValidationError) as exc:
            await adapters[Provider.BACKGROUND].complete(TENANT_ID)
        assert exc.value.details["missing"] == [
            "first_name",
            "last_name",
            "ssn",
            "date_of_birth",
            "current_address",
        ]

    async def test_background_scores_tenant(self, adapters, db):
        await _create_tenant(db)
        result = await adapters[Provider.BACKGROUND].complete(TENANT_ID)
        assert result.state == VerificationState.VERIFIED
        assert result.value == 639

    async def test_unavailable_provider_leaves_session_pending(self, adapters, plaid):
        plaid.unavailable.add("identity/get")
        result = await adapters[Provider.IDENTITY].complete(TENANT_ID, LINK)
        assert result.state == VerificationState.PENDING

    async def test_status_without_session(self, adapters):
        result = await adapters[Provider.INCOME].status(TENANT_ID)
        assert result.state == VerificationState.NOT_STARTED
        assert result.observed_at is None

    async def test_initiate_opens_session(self, adapters):
        token = await adapters[Provider.IDENTITY].initiate(TENANT_ID)
        assert token.token == f"link-sandbox-{TENANT_ID}"
        result = await adapters[Provider.IDENTITY].status(TENANT_ID)
        assert result.state == VerificationState.IN_PROGRESS

    async def test_expired_session_reads_not_started(self, adapters, db):
        await adapters[Provider.IDENTITY].initiate(TENANT_ID)
        session = await verification_crud.get_session(db, TENANT_ID, Provider.IDENTITY)
        session.expires_at = as_utc(session.changed_at) - timedelta(seconds=1)
        await db.commit()

        result = await adapters[Provider.IDENTITY].status(TENANT_ID)
        assert result.state == VerificationState.NOT_STARTED


# ============================================================================
# Aggregator
# ============================================================================


class TestAggregator:
    """Tests for merging adapter results into the snapshot."""

    async def test_new_tenant_has_empty_snapshot(self, aggregator):
        snapshot = await aggregator.refresh(TENANT_ID)
        for provider in Provider:
            assert snapshot.state_of(provider) == VerificationState.NOT_STARTED
        assert snapshot.verified_income == Decimal("0")
        assert snapshot.credit_score is None
        assert snapshot.is_ready_for_scoring is False

    async def test_verified_results_are_merged(self, adapters, aggregator, db):
        await _create_tenant(db)
        await adapters[Provider.IDENTITY].complete(TENANT_ID, LINK)
        await adapters[Provider.BANK_ACCOUNT].complete(TENANT_ID)
        await adapters[Provider.INCOME].complete(TENANT_ID)
        await adapters[Provider.BACKGROUND].complete(TENANT_ID)

        snapshot = await aggregator.refresh(TENANT_ID)
        assert snapshot.identity_verified
        assert snapshot.bank_account_verified
        assert snapshot.verified_income == Decimal("36200.00")
        assert snapshot.credit_score == 639
        assert snapshot.background_check_status == BackgroundCheckStatus.COMPLETED
        assert snapshot.is_ready_for_scoring is True
        assert await aggregator.is_ready_for_scoring(TENANT_ID) is True

    async def test_refresh_is_idempotent(self, adapters, aggregator):
        await adapters[Provider.IDENTITY].complete(TENANT_ID, LINK)
        first = await aggregator.refresh(TENANT_ID)
        second = await aggregator.refresh(TENANT_ID)

        assert first.identity_version == 1
        assert second.identity_version == 1
        assert second.identity_state == VerificationState.VERIFIED
        assert as_utc(second.identity_checked_at) == as_utc(first.identity_checked_at)

    async def test_concurrent_refreshes_apply_once(self, adapters, aggregator):
        await adapters[Provider.IDENTITY].complete(TENANT_ID, LINK)
        results = await asyncio.gather(
            aggregator.refresh(TENANT_ID), aggregator.refresh(TENANT_ID)
        )
        assert all(s.identity_state == VerificationState.VERIFIED for s in results)
        snapshot = await aggregator.get_snapshot(TENANT_ID)
        assert snapshot.identity_version == 1

    async def test_one_failing_adapter_does_not_block_others(
        self, adapters, aggregator, monkeypatch
    ):
        await adapters[Provider.IDENTITY].complete(TENANT_ID, LINK)

        async def broken(tenant_id):
            raise RuntimeError("bank link down")

        monkeypatch.setattr(adapters[Provider.BANK_ACCOUNT], "status", broken)
        snapshot = await aggregator.refresh(TENANT_ID)
        assert snapshot.identity_state == VerificationState.VERIFIED
        assert snapshot.bank_account_state == VerificationState.NOT_STARTED

    async def test_transient_failure_keeps_verified_field(
        self, adapters, aggregator, plaid
    ):
        await adapters[Provider.IDENTITY].complete(TENANT_ID, LINK)
        before = await aggregator.refresh(TENANT_ID)

        plaid.unavailable.add("identity/get")
        result = await adapters[Provider.IDENTITY].complete(TENANT_ID, LINK)
        assert result.state == VerificationState.PENDING

        after = await aggregator.refresh(TENANT_ID)
        assert after.identity_state == VerificationState.VERIFIED
        assert as_utc(after.identity_verified_at) == as_utc(before.identity_verified_at)

    async def test_failure_clears_verified_income(self, adapters, aggregator, plaid):
        await adapters[Provider.INCOME].complete(TENANT_ID, LINK)
        assert (await aggregator.refresh(TENANT_ID)).verified_income > 0

        plaid.transactions = []
        await adapters[Provider.INCOME].complete(TENANT_ID, LINK)
        snapshot = await aggregator.refresh(TENANT_ID)
        assert snapshot.income_state == VerificationState.FAILED
        assert snapshot.verified_income == Decimal("0")

    async def test_expired_session_resets_field(self, adapters, aggregator, db):
        await adapters[Provider.IDENTITY].initiate(TENANT_ID)
        snapshot = await aggregator.refresh(TENANT_ID)
        assert snapshot.identity_state == VerificationState.IN_PROGRESS

        session = await verification_crud.get_session(db, TENANT_ID, Provider.IDENTITY)
        session.expires_at = as_utc(session.changed_at) + timedelta(milliseconds=1)
        await db.commit()
        await asyncio.sleep(0.01)

        snapshot = await aggregator.refresh(TENANT_ID)
        assert snapshot.identity_state == VerificationState.NOT_STARTED

    async def test_background_refresh_retries_pending(self, adapters, aggregator, plaid):
        plaid.unavailable.add("identity/get")
        await adapters[Provider.IDENTITY].complete(TENANT_ID, LINK)

        plaid.unavailable.clear()
        snapshot = await aggregator.refresh(TENANT_ID, background=True)
        assert snapshot.identity_state == VerificationState.VERIFIED

    async def test_retries_are_bounded(self, adapters, aggregator, plaid, db):
        plaid.unavailable.add("identity/get")
        await adapters[Provider.IDENTITY].complete(TENANT_ID, LINK)

        snapshot = await aggregator.refresh(TENANT_ID, background=True)
        assert snapshot.identity_state == VerificationState.PENDING
        session = await verification_crud.get_session(db, TENANT_ID, Provider.IDENTITY)
        # first attempt plus max_retries
        assert session.attempts == 3

    async def test_same_instant_results_apply_in_order(
        self, adapters, aggregator, plaid, monkeypatch
    ):
        """Later results win even when the clock cannot tell them apart."""
        frozen = utc_now()
        monkeypatch.setattr(provider_base, "utc_now", lambda: frozen)

        await adapters[Provider.INCOME].complete(TENANT_ID, LINK)
        assert (await aggregator.refresh(TENANT_ID)).verified_income > 0

        plaid.transactions = []
        result = await adapters[Provider.INCOME].complete(TENANT_ID, LINK)
        assert result.observed_at == frozen
        snapshot = await aggregator.refresh(TENANT_ID)
        assert snapshot.income_state == VerificationState.FAILED
        assert snapshot.verified_income == Decimal("0")
        assert snapshot.income_revision == result.sequence

    async def test_session_revision_counts_state_changes(self, adapters, db):
        await adapters[Provider.IDENTITY].initiate(TENANT_ID)
        await adapters[Provider.IDENTITY].complete(TENANT_ID, LINK)
        result = await adapters[Provider.IDENTITY].complete(TENANT_ID, LINK)
        session = await verification_crud.get_session(db, TENANT_ID, Provider.IDENTITY)
        assert session.revision == 3
        assert result.sequence == 6

    async def test_retry_error_does_not_block_other_providers(
        self, adapters, aggregator, plaid, monkeypatch
    ):
        plaid.unavailable.add("transactions/get")
        await adapters[Provider.INCOME].complete(TENANT_ID, LINK)
        plaid.unavailable.clear()

        async def broken(tenant_id):
            raise KeyError("owners")

        # Identity is retried first
        monkeypatch.setattr(adapters[Provider.IDENTITY], "retry", broken)
        snapshot = await aggregator.refresh(TENANT_ID, background=True)
        assert snapshot.income_state == VerificationState.VERIFIED
        assert snapshot.verified_income == Decimal("36200.00")

    async def test_snapshots_are_per_tenant(self, adapters, aggregator):
        await adapters[Provider.IDENTITY].complete(TENANT_ID, LINK)
        await aggregator.refresh(TENANT_ID)
        other = await aggregator.refresh(OTHER_TENANT_ID)
        assert other.identity_state == VerificationState.NOT_STARTED


class TestPendingJob:
    """Tests for the background refresh job."""

    async def test_refreshes_only_pending_tenants(self, adapters, aggregator, plaid):
        await adapters[Provider.IDENTITY].complete(OTHER_TENANT_ID, LINK)
        plaid.unavailable.add("identity/get")
        await adapters[Provider.IDENTITY].complete(TENANT_ID, LINK)
        plaid.unavailable.clear()

        assert await refresh_pending(aggregator) == 1
        snapshot = await aggregator.get_snapshot(TENANT_ID)
        assert snapshot.identity_state == VerificationState.VERIFIED
        assert await refresh_pending(aggregator) == 0

    async def test_invalid_pending_session_is_failed_not_fatal(
        self, adapters, aggregator, plaid, db, monkeypatch
    ):
        """A retry whose input no longer validates fails the session and the
        remaining providers of the tenant are still merged."""
        await _create_tenant(db)
        background = adapters[Provider.BACKGROUND]

        async def unavailable(*args):
            raise ProviderUnavailableError("equifax", "credit-score")

        with monkeypatch.context() as patch:
            patch.setattr(background.client, "get_credit_score", unavailable)
            result = await background.complete(TENANT_ID)
        assert result.state == VerificationState.PENDING

        plaid.unavailable.add("identity/get")
        await adapters[Provider.IDENTITY].complete(TENANT_ID, LINK)
        plaid.unavailable.clear()

        tenant = await tenant_crud.get_tenant_by_id(db, TENANT_ID)
        tenant.ssn = None
        await db.commit()

        assert await refresh_pending(aggregator) == 1
        snapshot = await aggregator.get_snapshot(TENANT_ID)
        assert snapshot.identity_state == VerificationState.VERIFIED
        assert snapshot.background_state == VerificationState.FAILED

        session = await verification_crud.get_session(db, TENANT_ID, Provider.BACKGROUND)
        await db.refresh(session)
        assert session.state == VerificationState.FAILED
        assert session.details == {"missing": ["ssn"]}
        assert await refresh_pending(aggregator) == 0

    async def test_failing_tenant_does_not_stop_batch(
        self, adapters, aggregator, plaid, monkeypatch
    ):
        plaid.unavailable.add("identity/get")
        await adapters[Provider.IDENTITY].complete(TENANT_ID, LINK)
        await adapters[Provider.IDENTITY].complete(OTHER_TENANT_ID, LINK)
        plaid.unavailable.clear()

        refresh = aggregator.refresh

        async def flaky(tenant_id, background=False):
            if tenant_id == TENANT_ID:
                raise RuntimeError("database went away")
            return await refresh(tenant_id, background=background)

        monkeypatch.setattr(aggregator, "refresh", flaky)
        assert await refresh_pending(aggregator) == 1
        snapshot = await aggregator.get_snapshot(OTHER_TENANT_ID)
        assert snapshot.identity_state == VerificationState.VERIFIED


# ============================================================================
# API
# ============================================================================


class TestVerificationApi:
    """Tests for the verification endpoints."""

    async def test_link_flow(self, client, tenant_headers):
        response = await client.post(
            "/api/verification/identity/initiate", headers=tenant_headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["token"] == f"link-sandbox-{TENANT_ID}"

        response = await client.post(
            "/api/verification/identity/complete",
            json={"publicToken": "public-sandbox-1"},
            headers=tenant_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["data"]["state"] == "verified"
        assert body["message"] == "Verification verified"

        response = await client.get("/api/verification/snapshot", headers=tenant_headers)
        data = response.json()["data"]
        assert data["identity"]["state"] == "verified"
        assert data["identityVerified"] is True
        assert data["readyForScoring"] is False
        assert data["backgroundCheckStatus"] == "NotStarted"

    async def test_status(self, client, tenant_headers):
        response = await client.get(
            "/api/verification/bank_account/status", headers=tenant_headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["state"] == "not_started"

    async def test_complete_without_link_is_rejected(self, client, tenant_headers):
        response = await client.post(
            "/api/verification/income/complete", json={}, headers=tenant_headers
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "validation_error"

    async def test_unknown_provider(self, client, tenant_headers):
        response = await client.post(
            "/api/verification/horoscope/initiate", headers=tenant_headers
        )
        assert response.status_code == 422

    async def test_landlords_cannot_verify(self, client, landlord_headers):
        response = await client.post(
            "/api/verification/identity/initiate", headers=landlord_headers
        )
        assert response.status_code == 403
        assert response.json()["success"] is False

    async def test_refresh(self, client, tenant_headers):
        response = await client.post("/api/verification/refresh", headers=tenant_headers)
        assert response.status_code == 200
        assert response.json()["data"]["tenantId"] == TENANT_ID
