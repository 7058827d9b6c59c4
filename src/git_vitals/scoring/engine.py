"""Scoring engine: owns the aggregator during the fold, then scores the snapshot.

States::

    IDLE --begin()--> AGGREGATING --score()--> SCORING --> COMPLETE

Scoring starts only once aggregation has ended; any other transition
raises EngineStateError.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Optional

from ..aggregate.aggregator import AggregateSnapshot, IncrementalAggregator
from ..aggregate.coupling import CoupledPair
from ..classifiers import CommitClassifier, RegexCommitClassifier
from ..config import AnalysisOptions
from ..diagnostics import DiagnosticsCollector
from ..exceptions import EngineStateError, InvalidConfigError
from ..logging_config import get_logger
from ..models import Commit
from .authors import AuthorMetrics, AuthorProfiler
from .governance import GovernanceScorer, GovernanceSummary
from .ownership import OwnershipSummary, summarize_ownership
from .risk import RiskAssessment, RiskScorer, RiskSummary
from .team import TeamScore, TeamScorer
from .trends import DailyTrends, daily_trends

logger = get_logger(__name__)


class EngineState(Enum):
    IDLE = "idle"
    AGGREGATING = "aggregating"
    SCORING = "scoring"
    COMPLETE = "complete"


_TRANSITIONS = {
    EngineState.IDLE: {EngineState.AGGREGATING},
    EngineState.AGGREGATING: {EngineState.SCORING},
    EngineState.SCORING: {EngineState.COMPLETE},
    EngineState.COMPLETE: set(),
}


def health_rating(score: float) -> str:
    if score >= 0.8:
        return "excellent"
    if score >= 0.6:
        return "good"
    if score >= 0.4:
        return "fair"
    return "poor"


@dataclass
class ScoringResult:
    """Every derived section of the report."""

    snapshot: AggregateSnapshot
    reference_time: Optional[datetime]
    files: list[RiskAssessment] = field(default_factory=list)
    risk: RiskSummary = field(default_factory=RiskSummary)
    governance: GovernanceSummary = field(default_factory=GovernanceSummary)
    ownership: Optional[OwnershipSummary] = None
    team: TeamScore = field(default_factory=TeamScore)
    authors: list[AuthorMetrics] = field(default_factory=list)
    trends: DailyTrends = field(default_factory=DailyTrends)
    coupled_pairs: list[CoupledPair] = field(default_factory=list)
    health_score: float = 0.0
    health_rating: str = "poor"
    insights: list[str] = field(default_factory=list)
    action_items: list[str] = field(default_factory=list)


class ScoringEngine:
    """Drives one analysis run from the first folded commit to the scores."""

    def __init__(
        self,
        options: Optional[AnalysisOptions] = None,
        diagnostics: Optional[DiagnosticsCollector] = None,
        classifier: Optional[CommitClassifier] = None,
    ):
        self.options = options or AnalysisOptions()
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticsCollector()
        self.classifier = classifier or RegexCommitClassifier(self.options.thresholds)
        self.state = EngineState.IDLE
        self._aggregator: Optional[IncrementalAggregator] = None
        self.result: Optional[ScoringResult] = None

        # Fail fast on bad weights before any git work starts.
        o = self.options
        for weights in (
            o.risk_weights,
            o.governance_weights,
            o.team_weights,
            o.collaboration_weights,
            o.consistency_weights,
            o.quality_weights,
            o.work_life_weights,
        ):
            weights._validate()

        self.risk_scorer = RiskScorer(o.risk_weights, o.thresholds)
        self.governance_scorer = GovernanceScorer(o.governance_weights, self.classifier)
        self.team_scorer = TeamScorer(
            o.team_weights,
            o.collaboration_weights,
            o.consistency_weights,
            o.quality_weights,
            o.work_life_weights,
            o.thresholds,
        )
        self.profiler = AuthorProfiler(o.thresholds)

    def _transition(self, target: EngineState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise EngineStateError(self.state.value, target.value)
        logger.debug("Scoring engine: %s -> %s", self.state.value, target.value)
        self.state = target

    def begin(self) -> IncrementalAggregator:
        self._transition(EngineState.AGGREGATING)
        self._aggregator = IncrementalAggregator(
            self.options, classifier=self.classifier, diagnostics=self.diagnostics
        )
        return self._aggregator

    def fold(self, commit: Commit) -> bool:
        if self.state is not EngineState.AGGREGATING or self._aggregator is None:
            raise EngineStateError(self.state.value, "fold")
        return self._aggregator.fold(commit)

    @property
    def folded(self) -> int:
        return self._aggregator.folded if self._aggregator is not None else 0

    def score(self) -> ScoringResult:
        """Freeze the aggregator and compute every score."""
        if self._aggregator is None:
            raise EngineStateError(self.state.value, EngineState.SCORING.value)
        self._transition(EngineState.SCORING)
        snapshot = self._aggregator.freeze()
        result = self._score_snapshot(snapshot)
        self._transition(EngineState.COMPLETE)
        self.result = result
        return result

    def run(self, commits: Iterable[Commit]) -> ScoringResult:
        """begin(), fold every commit, score()."""
        self.begin()
        for commit in commits:
            self.fold(commit)
        return self.score()

    def _reference_time(self, snapshot: AggregateSnapshot) -> Optional[datetime]:
        raw = self.options.reference_time
        if raw:
            try:
                when = datetime.fromisoformat(raw)
            except ValueError:
                raise InvalidConfigError("reference_time", raw, "not an ISO 8601 timestamp")
            if when.tzinfo is None:
                when = when.replace(tzinfo=timezone.utc)
            return when
        return snapshot.totals.last_commit

    def _score_snapshot(self, snapshot: AggregateSnapshot) -> ScoringResult:
        thresholds = self.options.thresholds
        reference = self._reference_time(snapshot)
        result = ScoringResult(snapshot=snapshot, reference_time=reference)

        commit_counts = {email: a.commits for email, a in snapshot.authors.items()}
        result.ownership = summarize_ownership(commit_counts, thresholds.bus_factor_share)
        result.governance = self.governance_scorer.summarize(snapshot.totals.messages)

        result.files = self.risk_scorer.score_files(snapshot.files.values(), reference)
        large_commits = sum(a.size_buckets["very_large"] for a in snapshot.authors.values())
        result.risk = self.risk_scorer.summarize(result.files, large_commits=large_commits)

        result.team = self.team_scorer.score(snapshot, result.governance, result.ownership)
        result.authors = self.profiler.profile_all(snapshot)
        result.trends = daily_trends(
            snapshot.timeline, thresholds.high_velocity_factor, snapshot.files.values()
        )

        if snapshot.coupling is not None:
            result.coupled_pairs = snapshot.coupling.top_pairs(
                snapshot.file_index, min_support=thresholds.coupling_min_support
            )

        result.health_score = health_score(snapshot)
        result.health_rating = health_rating(result.health_score)
        result.insights = repository_insights(result)
        result.action_items = result.risk.recommendations + result.governance.recommendations

        logger.debug(
            "Scored %d commits: health=%.3f governance=%.3f team=%.1f",
            snapshot.totals.commits,
            result.health_score,
            result.governance.score,
            result.team.overall,
        )
        return result


def health_score(snapshot: AggregateSnapshot) -> float:
    """Mean of commit frequency, author diversity and commit size scores, in [0, 1].

    0.0 for an empty snapshot.
    """
    totals = snapshot.totals
    if totals.commits == 0:
        return 0.0
    active_days = len(snapshot.timeline)
    frequency = min(totals.commits / active_days / 2.0, 1.0) if active_days else 0.0
    diversity = min(len(snapshot.authors) / max(totals.commits / 10.0, 1.0), 1.0)
    average_size = totals.churn / totals.commits
    size = max(1.0 - average_size / 1000.0, 0.1) if average_size > 0 else 0.5
    return (frequency + diversity + size) / 3.0


def repository_insights(result: ScoringResult) -> list[str]:
    insights = []
    ownership = result.ownership
    if ownership is None or ownership.contributors == 0:
        return insights
    if ownership.bus_factor <= 2:
        insights.append("Low bus factor - knowledge is concentrated in few developers")
    if ownership.top_contributor_share > 0.5:
        insights.append("Single developer dominates the codebase")
    if result.governance.score < 0.5:
        insights.append("Commit message quality needs improvement")
    return insights

