"""
Tests for tenant scoring and property compatibility.
"""
import uuid
from decimal import Decimal

import pytest

from casaya_backend.config import ScoringPolicy
from casaya_backend.core.exceptions import ValidationError
from casaya_backend.modules.property_management import crud as property_crud
from casaya_backend.modules.scoring import Recommendation, RiskLevel, compatibility, score
from casaya_backend.modules.verification.models import VerificationSnapshot

from conftest import LANDLORD_ID, OTHER_TENANT_ID, TENANT_ID

POLICY = ScoringPolicy()


# ============================================================================
# Score
# ============================================================================


class TestScore:
    """Tests for the 0-100 tenant score."""

    def test_reference_tenant(self):
        """Income above the ceiling, good credit, three years employed."""
        result = score(90000, 720, 3, POLICY)
        assert result.breakdown.income == 40.0
        assert result.breakdown.credit_score == 30.55
        assert result.breakdown.employment_history == 12.0
        assert result.score == 82.55
        assert result.recommendation == Recommendation.STRONG

    def test_empty_profile_is_weak(self):
        result = score(0, None, 0, POLICY)
        assert result.score == 0
        assert result.recommendation == Recommendation.WEAK

    def test_moderate_tier(self):
        result = score(40000, 575, 1, POLICY)
        # 20 + 20 + 4
        assert result.score == 44.0
        assert result.recommendation == Recommendation.MODERATE

    def test_credit_score_is_clamped(self):
        assert score(0, 200, 0, POLICY).breakdown.credit_score == 0.0
        assert score(0, 900, 0, POLICY).breakdown.credit_score == 40.0

    def test_employment_is_capped(self):
        assert score(0, None, 12, POLICY).breakdown.employment_history == 20.0

    def test_score_is_bounded(self):
        result = score(10**9, 850, 50, POLICY)
        assert result.score == 100.0

    @pytest.mark.parametrize("field", ["income", "credit", "years"])
    def test_monotonic_in_each_input(self, field):
        base = {"income": 30000.0, "credit": 600.0, "years": 2.0}
        previous = None
        for step in range(10):
            args = dict(base)
            args[field] = base[field] * (1 + step * 0.5)
            current = score(args["income"], args["credit"], args["years"], POLICY).score
            if previous is not None:
                assert current >= previous
            previous = current

    def test_identical_inputs_identical_results(self):
        assert score(55000, 680, 4, POLICY) == score(55000, 680, 4, POLICY)

    def test_negative_income_rejected(self):
        with pytest.raises(ValidationError) as exc:
            score(-1, 700, 1, POLICY)
        assert exc.value.field == "income"

    def test_negative_employment_rejected(self):
        with pytest.raises(ValidationError) as exc:
            score(1000, 700, -2, POLICY)
        assert exc.value.field == "employmentHistory"

    def test_policy_thresholds_apply(self):
        strict = ScoringPolicy(strong_threshold=90.0)
        assert score(90000, 720, 3, strict).recommendation == Recommendation.MODERATE


# ============================================================================
# Compatibility
# ============================================================================


class TestCompatibility:
    """Tests for scoring against a property's rent."""

    def test_affordable_rent_keeps_full_score(self):
        result = compatibility(90000, 720, 3, 2000, POLICY)
        assert result.affordability_ratio == 3.75
        assert result.score == 82.55
        assert result.max_recommended_rent == 3000.0
        assert result.risk_level == RiskLevel.LOW
        assert result.compatible is True

    def test_stretched_rent_scales_score(self):
        result = compatibility(90000, 720, 3, 3000, POLICY)
        assert result.affordability_ratio == 2.5
        assert result.score == 68.79
        assert result.recommendation == Recommendation.MODERATE
        assert result.risk_level == RiskLevel.MEDIUM
        assert result.compatible is True

    def test_unaffordable_rent(self):
        result = compatibility(90000, 720, 3, 4000, POLICY)
        assert result.risk_level == RiskLevel.HIGH
        assert result.compatible is False

    def test_factors_mention_missing_data(self):
        result = compatibility(0, None, 0, 1500, POLICY)
        assert "No verified credit score" in result.factors
        assert "No verified income" in result.factors

    def test_rent_must_be_positive(self):
        with pytest.raises(ValidationError):
            compatibility(50000, 700, 2, 0, POLICY)


# ============================================================================
# API
# ============================================================================


class TestScoringApi:
    """Tests for the scoring endpoints."""

    async def test_calculate_score(self, client, landlord_headers):
        response = await client.post(
            "/api/scoring/calculate-score",
            json={"income": 90000, "creditScore": 720, "employmentHistory": 3},
            headers=landlord_headers,
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["score"] == 82.55
        assert data["recommendation"] == "Strong"
        assert data["breakdown"]["creditScore"] == 30.55

    async def test_calculate_score_rejects_negative_income(self, client, tenant_headers):
        response = await client.post(
            "/api/scoring/calculate-score",
            json={"income": -5, "creditScore": 720, "employmentHistory": 3},
            headers=tenant_headers,
        )
        assert response.status_code == 422
        assert response.json()["success"] is False

    async def _seed(self, db, landlord_id=LANDLORD_ID):
        prop = await property_crud.create_property(
            db, landlord_id, address="1 Main St", monthly_rent=Decimal("2000")
        )
        db.add(
            VerificationSnapshot(
                tenant_id=TENANT_ID, verified_income=Decimal("90000"), credit_score=720
            )
        )
        await db.commit()
        return prop

    async def test_tenant_checks_own_compatibility(self, client, db, tenant_headers):
        prop = await self._seed(db)
        response = await client.post(
            "/api/scoring/check-compatibility",
            json={"propertyId": str(prop.id)},
            headers=tenant_headers,
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["tenantId"] == TENANT_ID
        assert data["affordabilityRatio"] == 3.75
        assert data["compatible"] is True

    async def test_tenant_cannot_check_someone_else(self, client, db, tenant_headers):
        prop = await self._seed(db)
        response = await client.post(
            "/api/scoring/check-compatibility",
            json={"propertyId": str(prop.id), "tenantId": OTHER_TENANT_ID},
            headers=tenant_headers,
        )
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "forbidden"

    async def test_landlord_must_own_property(
        self, client, db, landlord_headers, other_landlord_headers
    ):
        prop = await self._seed(db)
        body = {"propertyId": str(prop.id), "tenantId": TENANT_ID}

        response = await client.post(
            "/api/scoring/check-compatibility", json=body, headers=landlord_headers
        )
        assert response.status_code == 200

        response = await client.post(
            "/api/scoring/check-compatibility", json=body, headers=other_landlord_headers
        )
        assert response.status_code == 403

    async def test_unknown_property(self, client, tenant_headers):
        response = await client.post(
            "/api/scoring/check-compatibility",
            json={"propertyId": str(uuid.uuid4())},
            headers=tenant_headers,
        )
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "not_found"

