"""Scores derived from the aggregated history."""

from .authors import AuthorMetrics, AuthorProfiler
from .engine import EngineState, ScoringEngine, ScoringResult, health_rating, health_score
from .governance import GovernanceAssessment, GovernanceScorer, GovernanceSummary
from .ownership import OwnershipSummary, bus_factor, summarize_ownership
from .risk import RiskAssessment, RiskScorer, RiskSummary
from .team import TeamScore, TeamScorer
from .trends import DailyTrends, daily_trends

__all__ = [
    "AuthorMetrics",
    "AuthorProfiler",
    "DailyTrends",
    "EngineState",
    "GovernanceAssessment",
    "GovernanceScorer",
    "GovernanceSummary",
    "OwnershipSummary",
    "RiskAssessment",
    "RiskScorer",
    "RiskSummary",
    "ScoringEngine",
    "ScoringResult",
    "TeamScore",
    "TeamScorer",
    "bus_factor",
    "daily_trends",
    "health_rating",
    "health_score",
    "summarize_ownership",
]
