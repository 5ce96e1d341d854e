"""Scoring schemas."""

from uuid import UUID

from pydantic import Field

from ..commons import ApiModel
from .engine import CompatibilityResult, Recommendation, RiskLevel, ScoreResult


class ScoreRequest(ApiModel):
    income: float = Field(..., ge=0)
    credit_score: float | None = None
    employment_history: float = Field(..., ge=0)


class ScoreBreakdownResponse(ApiModel):
    income: float
    credit_score: float
    employment_history: float


class ScoreResponse(ApiModel):
    score: float
    breakdown: ScoreBreakdownResponse
    recommendation: Recommendation

    @classmethod
    def from_result(cls, result: ScoreResult) -> "ScoreResponse":
        return cls(
            score=result.score,
            breakdown=ScoreBreakdownResponse(
                income=result.breakdown.income,
                credit_score=result.breakdown.credit_score,
                employment_history=result.breakdown.employment_history,
            ),
            recommendation=result.recommendation,
        )


class CompatibilityRequest(ApiModel):
    tenant_id: str | None = Field(
        None, description="Defaults to the calling tenant"
    )
    property_id: UUID


class CompatibilityResponse(ApiModel):
    tenant_id: str
    property_id: UUID
    score: float
    recommendation: Recommendation
    factors: list[str]
    affordability_ratio: float
    max_recommended_rent: float
    risk_level: RiskLevel
    compatible: bool

    @classmethod
    def from_result(
        cls, tenant_id: str, property_id: UUID, result: CompatibilityResult
    ) -> "CompatibilityResponse":
        return cls(
            tenant_id=tenant_id,
            property_id=property_id,
            score=result.score,
            recommendation=result.recommendation,
            factors=result.factors,
            affordability_ratio=result.affordability_ratio,
            max_recommended_rent=result.max_recommended_rent,
            risk_level=result.risk_level,
            compatible=result.compatible,
        )
