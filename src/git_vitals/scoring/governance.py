"""Commit message governance.

A commit's governance score is the weighted sum of six 0/1 signals, so it
lies in [0, 1]. The repository score is the mean of commit scores over the
commits that were scored. Because the per-commit score is linear in the
signals, that mean equals the weighted sum of the signal rates, which is
how it is computed here from the aggregated tallies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from ..aggregate.stats import MessageTally
from ..classifiers import CommitClassifier, MessageSignals, RegexCommitClassifier
from ..config import GovernanceWeights
from ..models import Commit


@dataclass(frozen=True)
class GovernanceAssessment:
    """Governance of a single commit."""

    conventional: bool
    traceable: bool
    adequate_length: bool
    wip: bool
    revert: bool
    short: bool
    score: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "conventional": self.conventional,
            "traceable": self.traceable,
            "adequate_length": self.adequate_length,
            "wip": self.wip,
            "revert": self.revert,
            "short": self.short,
            "score": round(self.score, 6),
        }


@dataclass
class GovernanceSummary:
    """Aggregate governance over the commits in scope.

    With no scored commits every rate and the score are 0.0.
    """

    scored_commits: int = 0
    score: float = 0.0
    conventional_rate: float = 0.0
    traceability_rate: float = 0.0
    adequate_length_rate: float = 0.0
    wip_rate: float = 0.0
    revert_rate: float = 0.0
    short_rate: float = 0.0
    conventional_commits: int = 0
    traceable_commits: int = 0
    wip_commits: int = 0
    revert_commits: int = 0
    short_messages: int = 0
    average_message_length: float = 0.0
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "scored_commits": self.scored_commits,
            "score": round(self.score, 6),
            "rates": {
                "conventional": round(self.conventional_rate, 6),
                "traceability": round(self.traceability_rate, 6),
                "adequate_length": round(self.adequate_length_rate, 6),
                "wip": round(self.wip_rate, 6),
                "revert": round(self.revert_rate, 6),
                "short": round(self.short_rate, 6),
            },
            "counts": {
                "conventional": self.conventional_commits,
                "traceable": self.traceable_commits,
                "wip": self.wip_commits,
                "revert": self.revert_commits,
                "short": self.short_messages,
            },
            "average_message_length": round(self.average_message_length, 3),
            "recommendations": list(self.recommendations),
        }


class GovernanceScorer:
    def __init__(
        self,
        weights: Optional[GovernanceWeights] = None,
        classifier: Optional[CommitClassifier] = None,
    ):
        self.weights = weights or GovernanceWeights()
        self.classifier = classifier or RegexCommitClassifier()

    def score_commit(self, commit: Commit) -> GovernanceAssessment:
        return self.score_signals(self.classifier.analyze_message(commit.subject, commit.body))

    def score_signals(self, signals: MessageSignals) -> GovernanceAssessment:
        w = self.weights
        score = (
            w.conventional * signals.conventional
            + w.traceability * signals.traceable
            + w.length * signals.adequate_length
            + w.no_wip * (not signals.wip)
            + w.no_revert * (not signals.revert)
            + w.not_short * (not signals.short)
        )
        return GovernanceAssessment(
            conventional=signals.conventional,
            traceable=signals.traceable,
            adequate_length=signals.adequate_length,
            wip=signals.wip,
            revert=signals.revert,
            short=signals.short,
            score=min(1.0, max(0.0, score)),
        )

    def summarize(self, tally: MessageTally) -> GovernanceSummary:
        """Mean governance over ``tally.scored`` commits."""
        if tally.scored == 0:
            return GovernanceSummary()

        w = self.weights
        conventional = tally.rate("conventional")
        traceable = tally.rate("traceable")
        adequate = tally.rate("adequate_length")
        wip = tally.rate("wip")
        revert = tally.rate("revert")
        short = tally.rate("short")
        score = (
            w.conventional * conventional
            + w.traceability * traceable
            + w.length * adequate
            + w.no_wip * (1.0 - wip)
            + w.no_revert * (1.0 - revert)
            + w.not_short * (1.0 - short)
        )
        summary = GovernanceSummary(
            scored_commits=tally.scored,
            score=min(1.0, max(0.0, score)),
            conventional_rate=conventional,
            traceability_rate=traceable,
            adequate_length_rate=adequate,
            wip_rate=wip,
            revert_rate=revert,
            short_rate=short,
            conventional_commits=tally.conventional,
            traceable_commits=tally.traceable,
            wip_commits=tally.wip,
            revert_commits=tally.revert,
            short_messages=tally.short,
            average_message_length=tally.average_length,
        )
        summary.recommendations = governance_recommendations(summary)
        return summary


def governance_recommendations(summary: GovernanceSummary) -> list[str]:
    recommendations = []
    if summary.conventional_rate < 0.5:
        recommendations.append("Adopt conventional commit message format")
    if summary.traceability_rate < 0.3:
        recommendations.append("Link commits to issues for better traceability")
    if summary.short_rate > 0.2:
        recommendations.append("Write more descriptive commit messages")
    return recommendations
