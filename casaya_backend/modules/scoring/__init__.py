"""Scoring module: tenant score and property compatibility."""

from .engine import Recommendation, RiskLevel, ScoreResult, compatibility, score
from .routers import router

__all__ = [
    "Recommendation",
    "RiskLevel",
    "ScoreResult",
    "compatibility",
    "score",
    "router",
]
