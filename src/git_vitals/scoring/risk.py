"""Per-file risk scoring.

Each file gets five sub-scores normalized to [0, 1]:

- churn: log-scaled churn relative to the repository median, capped at
  ``churn_cap_ratio`` times the median
- recency: exponential decay since the file was last touched
- ownership: 1 - normalized entropy of the file's author distribution
- entropy: 1 - 2^(-H) of the same distribution
- coupling: share of the file's commits that also touched another file

The risk score is their weighted sum, so it lies in [0, 1] whenever the
weights are non-negative and sum to 1.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

from ..aggregate.stats import FileStats
from ..config import DEFAULT_THRESHOLDS, RiskWeights, ThresholdConfig
from ..math.entropy import Entropy
from ..math.statistics import Statistics

HIGH_CHURN_LINES = 1000
MANY_AUTHORS = 5
RECENT_CHANGE_DAYS = 7


@dataclass(frozen=True)
class RiskAssessment:
    """Risk of one file. Derived from FileStats, never stored on it."""

    path: str
    churn: float
    recency: float
    ownership: float
    entropy: float
    coupling: float
    score: float
    hotspot: bool
    commits: int
    lines_changed: int
    authors: int
    days_since_change: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "score": round(self.score, 6),
            "hotspot": self.hotspot,
            "components": {
                "churn": round(self.churn, 6),
                "recency": round(self.recency, 6),
                "ownership": round(self.ownership, 6),
                "entropy": round(self.entropy, 6),
                "coupling": round(self.coupling, 6),
            },
            "commits": self.commits,
            "lines_changed": self.lines_changed,
            "authors": self.authors,
            "days_since_change": round(self.days_since_change, 3),
        }


@dataclass
class RiskSummary:
    """Repository-level view over all file assessments."""

    files_scored: int = 0
    hotspots: list[RiskAssessment] = field(default_factory=list)
    average_score: float = 0.0
    high_churn_files: int = 0
    many_author_files: int = 0
    large_commits: int = 0
    recent_changes: int = 0
    overall: str = "low"
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "files_scored": self.files_scored,
            "average_score": round(self.average_score, 6),
            "overall": self.overall,
            "hotspots": [h.path for h in self.hotspots],
            "factors": {
                "high_churn_files": self.high_churn_files,
                "many_author_files": self.many_author_files,
                "large_commits": self.large_commits,
                "recent_changes": self.recent_changes,
            },
            "recommendations": list(self.recommendations),
        }


class RiskScorer:
    """Scores files against the repository-wide churn median."""

    def __init__(
        self,
        weights: Optional[RiskWeights] = None,
        thresholds: ThresholdConfig = DEFAULT_THRESHOLDS,
    ):
        self.weights = weights or RiskWeights()
        self.thresholds = thresholds

    def score_files(
        self, files: Iterable[FileStats], reference_time: Optional[datetime]
    ) -> list[RiskAssessment]:
        """Assess every file; order is by score descending, then path."""
        files = list(files)
        if not files:
            return []
        median = Statistics.median([f.churn for f in files])
        assessments = [self.score_file(f, median, reference_time) for f in files]
        assessments.sort(key=lambda a: (-a.score, a.path))
        return assessments

    def score_file(
        self, stats: FileStats, median_churn: float, reference_time: Optional[datetime]
    ) -> RiskAssessment:
        w = self.weights
        churn = self.churn_score(stats.churn, median_churn)
        days = _days_between(stats.last_touched, reference_time)
        recency = self.recency_score(days)
        ownership = ownership_concentration(stats.authors)
        entropy = Entropy.spread(stats.authors)
        coupling = stats.coupled_commits / stats.commits if stats.commits else 0.0

        score = (
            w.churn * churn
            + w.recency * recency
            + w.ownership * ownership
            + w.entropy * entropy
            + w.coupling * coupling
        )
        score = min(1.0, max(0.0, score))
        return RiskAssessment(
            path=stats.path,
            churn=churn,
            recency=recency,
            ownership=ownership,
            entropy=entropy,
            coupling=coupling,
            score=score,
            hotspot=score >= self.thresholds.hotspot_threshold,
            commits=stats.commits,
            lines_changed=stats.churn,
            authors=stats.author_count,
            days_since_change=days,
        )

    def churn_score(self, churn: int, median_churn: float) -> float:
        if churn <= 0:
            return 0.0
        cap = self.thresholds.churn_cap_ratio
        ratio = churn / max(median_churn, 1.0)
        return min(1.0, math.log1p(ratio) / math.log1p(cap))

    def recency_score(self, days_since_change: float) -> float:
        half_life = self.thresholds.recency_half_life_days
        return math.exp(-math.log(2) * max(days_since_change, 0.0) / half_life)

    def summarize(
        self,
        assessments: list[RiskAssessment],
        large_commits: int = 0,
        limit: int = 20,
    ) -> RiskSummary:
        """Hotspots, risk factors and recommendations.

        Empty input gives zero counts, average 0.0 and overall "low".
        """
        if not assessments:
            return RiskSummary(large_commits=large_commits)

        hotspots = [a for a in assessments if a.hotspot][:limit]
        summary = RiskSummary(
            files_scored=len(assessments),
            hotspots=hotspots,
            average_score=sum(a.score for a in assessments) / len(assessments),
            high_churn_files=sum(1 for a in assessments if a.lines_changed > HIGH_CHURN_LINES),
            many_author_files=sum(1 for a in assessments if a.authors > MANY_AUTHORS),
            large_commits=large_commits,
            recent_changes=sum(
                1 for a in assessments if a.days_since_change < RECENT_CHANGE_DAYS
            ),
        )
        summary.overall = overall_risk(summary)
        summary.recommendations = risk_recommendations(summary)
        return summary


def ownership_concentration(authors: Mapping[str, int]) -> float:
    """1 for a single owner, 0 for a perfectly even split; 0 with no authors."""
    if not authors:
        return 0.0
    return 1.0 - Entropy.normalized(authors)


def overall_risk(summary: RiskSummary) -> str:
    points = (
        len(summary.hotspots)
        + summary.high_churn_files * 0.5
        + summary.many_author_files * 0.3
        + summary.large_commits * 0.2
    )
    if points > 15:
        return "high"
    if points > 5:
        return "medium"
    return "low"


def risk_recommendations(summary: RiskSummary) -> list[str]:
    recommendations = []
    if len(summary.hotspots) > 10:
        recommendations.append("Consider refactoring high-churn files to reduce complexity")
    if summary.many_author_files > 5:
        recommendations.append("Establish code ownership guidelines for frequently modified files")
    if summary.large_commits > 10:
        recommendations.append("Encourage smaller, more focused commits")
    return recommendations


def _days_between(earlier: Optional[datetime], later: Optional[datetime]) -> float:
    if earlier is None or later is None:
        return 0.0
    return max(0.0, (later.timestamp() - earlier.timestamp()) / 86400.0)
