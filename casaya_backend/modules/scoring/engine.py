"""Tenant scoring.

Pure functions of verified tenant attributes and a ``ScoringPolicy``; nothing
here touches the database, so identical inputs always give identical results.
"""

from dataclasses import dataclass, field
from enum import Enum

from ...config import ScoringPolicy
from ...core.exceptions import ValidationError


class Recommendation(str, Enum):
    STRONG = "Strong"
    MODERATE = "Moderate"
    WEAK = "Weak"


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


@dataclass(frozen=True)
class ScoreBreakdown:
    income: float
    credit_score: float
    employment_history: float


@dataclass(frozen=True)
class ScoreResult:
    score: float
    breakdown: ScoreBreakdown
    recommendation: Recommendation


@dataclass(frozen=True)
class CompatibilityResult:
    score: float
    recommendation: Recommendation
    affordability_ratio: float
    max_recommended_rent: float
    risk_level: RiskLevel
    compatible: bool
    factors: list[str] = field(default_factory=list)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def recommend(score: float, policy: ScoringPolicy) -> Recommendation:
    """Tier a 0-100 score."""
    if score >= policy.strong_threshold:
        return Recommendation.STRONG
    if score >= policy.moderate_threshold:
        return Recommendation.MODERATE
    return Recommendation.WEAK


def income_component(income: float, policy: ScoringPolicy) -> float:
    return policy.income_weight * min(income, policy.income_ceiling) / policy.income_ceiling


def credit_component(credit_score: float | None, policy: ScoringPolicy) -> float:
    """Linear over the valid credit range, clamped; no score counts as zero."""
    if credit_score is None:
        return 0.0
    span = policy.credit_score_max - policy.credit_score_min
    fraction = (credit_score - policy.credit_score_min) / span
    return policy.credit_weight * _clamp(fraction, 0.0, 1.0)


def employment_component(years: float, policy: ScoringPolicy) -> float:
    capped = min(years, policy.employment_cap_years)
    return policy.employment_weight * capped / policy.employment_cap_years


def score(
    income: float,
    credit_score: float | None,
    employment_history_years: float,
    policy: ScoringPolicy,
) -> ScoreResult:
    """Score a tenant from annual income, credit score and years employed."""
    if income < 0:
        raise ValidationError("must not be negative", field="income", value=income)
    if employment_history_years < 0:
        raise ValidationError(
            "must not be negative",
            field="employmentHistory",
            value=employment_history_years,
        )

    breakdown = ScoreBreakdown(
        income=round(income_component(income, policy), 2),
        credit_score=round(credit_component(credit_score, policy), 2),
        employment_history=round(
            employment_component(employment_history_years, policy), 2
        ),
    )
    total = round(
        breakdown.income + breakdown.credit_score + breakdown.employment_history, 2
    )
    return ScoreResult(
        score=total, breakdown=breakdown, recommendation=recommend(total, policy)
    )


def risk_level(ratio: float, policy: ScoringPolicy) -> RiskLevel:
    if ratio >= policy.low_risk_ratio:
        return RiskLevel.LOW
    if ratio >= policy.medium_risk_ratio:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def compatibility(
    income: float,
    credit_score: float | None,
    employment_history_years: float,
    monthly_rent: float,
    policy: ScoringPolicy,
) -> CompatibilityResult:
    """Score a tenant against one property's rent.

    The base score is scaled down when monthly income covers less than the
    target multiple of the rent, then tiered with the same thresholds.
    """
    if monthly_rent <= 0:
        raise ValidationError(
            "must be positive", field="monthlyRent", value=monthly_rent
        )

    base = score(income, credit_score, employment_history_years, policy)
    monthly_income = income / 12
    ratio = monthly_income / monthly_rent
    scaled = round(base.score * min(ratio / policy.target_rent_ratio, 1.0), 2)
    max_rent = round(monthly_income * policy.max_rent_share, 2)
    risk = risk_level(ratio, policy)

    factors = [
        f"Monthly income covers rent {ratio:.2f}x "
        f"(target {policy.target_rent_ratio:g}x)",
        f"Maximum recommended rent is {max_rent:.2f}",
        f"{risk.value} affordability risk",
    ]
    if credit_score is None:
        factors.append("No verified credit score")
    else:
        factors.append(f"Credit score {int(credit_score)}")
    if income <= 0:
        factors.append("No verified income")
    factors.append(f"{employment_history_years:g} years of employment history")

    return CompatibilityResult(
        score=scaled,
        recommendation=recommend(scaled, policy),
        affordability_ratio=round(ratio, 2),
        max_recommended_rent=max_rent,
        risk_level=risk,
        compatible=ratio >= policy.medium_risk_ratio,
        factors=factors,
    )
