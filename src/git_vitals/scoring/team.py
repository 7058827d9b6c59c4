"""Team effectiveness score.

Four dimensions on a 0-100 scale, each a weighted mean of signals that can
be measured from commit metadata alone:

    collaboration      merge workflow, co-authorship, file overlap,
                       knowledge distribution
    consistency        bus factor, active contributors, velocity, cadence
    quality            governance, refactoring, documentation,
                       merge workflow, test files
    work-life balance  time patterns, after-hours, weekend, day coverage

Review approvals, test coverage and real working hours are not visible
in git history. The signals that stand in for them are estimates and are
reported with their limitations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Optional

from ..config import (
    CollaborationWeights,
    ConsistencyWeights,
    QualityWeights,
    TeamWeights,
    ThresholdConfig,
    WorkLifeWeights,
)
from ..math.statistics import Statistics

if TYPE_CHECKING:
    from ..aggregate.aggregator import AggregateSnapshot
    from .governance import GovernanceSummary
    from .ownership import OwnershipSummary

COLLABORATION_LIMITATIONS = (
    "Cannot identify actual code reviewers or approvers",
    "Merge commits may not represent code reviews",
    "Direct commits may still have been reviewed via other means",
    "Cross-team interaction based on file co-authorship only",
)
QUALITY_LIMITATIONS = (
    "Cannot measure actual test execution coverage",
    "Merge workflow usage is not code review coverage",
    "Quality patterns based on commit message analysis only",
    "Refactoring detection based on keywords only",
)
WORK_LIFE_LIMITATIONS = (
    "Commit times affected by timezones and CI/CD systems",
    "Weekend/after-hours commits may be maintenance or urgent fixes",
    "Does not account for flexible work schedules",
    "Cannot distinguish between work and personal commits",
    "Team coverage estimates collaboration, not vacation planning",
)


def _pct(part: float, whole: float) -> float:
    return part / whole * 100.0 if whole else 0.0


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return min(high, max(low, value))


def _rounded(data: dict[str, Any]) -> dict[str, Any]:
    return {k: round(v, 4) if isinstance(v, float) else v for k, v in data.items()}


@dataclass(frozen=True)
class PlatformPatterns:
    detected: str = "generic-git"
    accuracy: str = "low"
    notes: str = "No platform-specific patterns detected"

    def to_dict(self) -> dict[str, str]:
        return {"detected": self.detected, "accuracy": self.accuracy, "notes": self.notes}


@dataclass
class CollaborationMetrics:
    score: float = 0.0
    merge_workflow: float = 0.0
    co_authorship_rate: float = 0.0
    file_overlap: float = 0.0
    knowledge_distribution: float = 0.0
    exclusive_files: float = 0.0
    shared_files: float = 0.0
    collaborative_files: float = 0.0
    platform: PlatformPatterns = field(default_factory=PlatformPatterns)

    def to_dict(self) -> dict[str, Any]:
        data = _rounded(
            {
                "score": self.score,
                "merge_workflow": self.merge_workflow,
                "co_authorship_rate": self.co_authorship_rate,
                "file_overlap": self.file_overlap,
                "knowledge_distribution": self.knowledge_distribution,
            }
        )
        data["file_ownership"] = _rounded(
            {
                "exclusive": self.exclusive_files,
                "shared": self.shared_files,
                "collaborative": self.collaborative_files,
            }
        )
        data["platform"] = self.platform.to_dict()
        data["estimation_method"] = "merge-commit-analysis"
        data["limitations"] = list(COLLABORATION_LIMITATIONS)
        return data


@dataclass
class ConsistencyMetrics:
    score: float = 0.0
    bus_factor: int = 0
    active_contributor_ratio: float = 0.0
    velocity_consistency: float = 0.0
    delivery_cadence: float = 0.0
    gini: float = 0.0
    top_contributor_dominance: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return _rounded(
            {
                "score": self.score,
                "bus_factor": self.bus_factor,
                "active_contributor_ratio": self.active_contributor_ratio,
                "velocity_consistency": self.velocity_consistency,
                "delivery_cadence": self.delivery_cadence,
                "gini": self.gini,
                "top_contributor_dominance": self.top_contributor_dominance,
            }
        )


@dataclass
class QualityMetrics:
    score: float = 0.0
    team_governance: float = 0.0
    refactoring_activity: float = 0.0
    bug_fix_ratio: float = 0.0
    documentation_contribution: float = 0.0
    merge_workflow: float = 0.0
    test_files: int = 0
    test_file_ratio: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        data = _rounded(
            {
                "score": self.score,
                "team_governance": self.team_governance,
                "refactoring_activity": self.refactoring_activity,
                "bug_fix_ratio": self.bug_fix_ratio,
                "documentation_contribution": self.documentation_contribution,
                "merge_workflow": self.merge_workflow,
                "test_files": self.test_files,
                "test_file_ratio": self.test_file_ratio,
            }
        )
        data["limitations"] = list(QUALITY_LIMITATIONS)
        return data


@dataclass
class WorkLifeMetrics:
    score: float = 0.0
    time_patterns: float = 0.0
    after_hours_frequency: float = 0.0
    weekend_activity: float = 0.0
    after_hours_commits: int = 0
    multi_contributor_days: int = 0
    solo_contributor_days: int = 0
    coverage: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        data = _rounded(
            {
                "score": self.score,
                "time_patterns": self.time_patterns,
                "after_hours_frequency": self.after_hours_frequency,
                "weekend_activity": self.weekend_activity,
                "after_hours_commits": self.after_hours_commits,
                "multi_contributor_days": self.multi_contributor_days,
                "solo_contributor_days": self.solo_contributor_days,
                "coverage": self.coverage,
            }
        )
        data["estimate"] = True
        data["limitations"] = list(WORK_LIFE_LIMITATIONS)
        return data


@dataclass
class TeamInsights:
    strengths: list[str] = field(default_factory=list)
    improvements: list[str] = field(default_factory=list)
    risks: list[str] = field(default_factory=list)
    team_dynamics: str = "fragmented"
    maturity_level: str = "nascent"
    sustainability: str = "critical"

    def to_dict(self) -> dict[str, Any]:
        return {
            "strengths": list(self.strengths),
            "improvements": list(self.improvements),
            "risks": list(self.risks),
            "team_dynamics": self.team_dynamics,
            "maturity_level": self.maturity_level,
            "sustainability": self.sustainability,
        }


@dataclass
class TeamScore:
    """Composite team score. Pure function of the aggregates."""

    overall: float = 0.0
    collaboration: CollaborationMetrics = field(default_factory=CollaborationMetrics)
    consistency: ConsistencyMetrics = field(default_factory=ConsistencyMetrics)
    quality: QualityMetrics = field(default_factory=QualityMetrics)
    work_life_balance: WorkLifeMetrics = field(default_factory=WorkLifeMetrics)
    insights: TeamInsights = field(default_factory=TeamInsights)
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "overall": round(self.overall, 4),
            "collaboration": self.collaboration.to_dict(),
            "consistency": self.consistency.to_dict(),
            "quality": self.quality.to_dict(),
            "work_life_balance": self.work_life_balance.to_dict(),
            "insights": self.insights.to_dict(),
            "recommendations": list(self.recommendations),
        }


class TeamScorer:
    """Computes TeamScore from an aggregate snapshot."""

    def __init__(
        self,
        team_weights: Optional[TeamWeights] = None,
        collaboration_weights: Optional[CollaborationWeights] = None,
        consistency_weights: Optional[ConsistencyWeights] = None,
        quality_weights: Optional[QualityWeights] = None,
        work_life_weights: Optional[WorkLifeWeights] = None,
        thresholds: Optional[ThresholdConfig] = None,
    ):
        self.team_weights = team_weights or TeamWeights()
        self.collaboration_weights = collaboration_weights or CollaborationWeights()
        self.consistency_weights = consistency_weights or ConsistencyWeights()
        self.quality_weights = quality_weights or QualityWeights()
        self.work_life_weights = work_life_weights or WorkLifeWeights()
        self.thresholds = thresholds or ThresholdConfig()

    def score(
        self,
        snapshot: "AggregateSnapshot",
        governance: "GovernanceSummary",
        ownership: "OwnershipSummary",
    ) -> TeamScore:
        """All-zero TeamScore for an empty snapshot."""
        if snapshot.is_empty:
            return TeamScore()

        collaboration = self.collaboration(snapshot)
        consistency = self.consistency(snapshot, ownership)
        quality = self.quality(snapshot, governance)
        work_life = self.work_life_balance(snapshot)

        w = self.team_weights
        overall = _clamp(
            collaboration.score * w.collaboration
            + consistency.score * w.consistency
            + quality.score * w.quality
            + work_life.score * w.work_life_balance
        )
        return TeamScore(
            overall=overall,
            collaboration=collaboration,
            consistency=consistency,
            quality=quality,
            work_life_balance=work_life,
            insights=team_insights(overall, collaboration, consistency, quality, work_life),
            recommendations=team_recommendations(collaboration, consistency, quality, work_life),
        )

    def collaboration(self, snapshot: "AggregateSnapshot") -> CollaborationMetrics:
        totals = snapshot.totals
        files = snapshot.files.values()
        file_count = len(snapshot.files)

        merge_workflow = _pct(totals.merges, totals.commits)
        co_authorship = _pct(totals.co_authored, totals.commits)
        exclusive = sum(1 for f in files if f.author_count == 1)
        shared = sum(1 for f in files if 2 <= f.author_count <= 3)
        collaborative = sum(1 for f in files if f.author_count > 3)
        overlap = _pct(shared + collaborative, file_count)
        exclusive_pct = _pct(exclusive, file_count)
        knowledge = 100.0 - exclusive_pct if file_count else 0.0

        w = self.collaboration_weights
        score = _clamp(
            min(merge_workflow, 80.0) * w.merge_workflow
            + min(co_authorship * 2, 40.0) * w.co_authorship
            + overlap * w.file_overlap
            + knowledge * w.knowledge_distribution
        )
        return CollaborationMetrics(
            score=score,
            merge_workflow=merge_workflow,
            co_authorship_rate=co_authorship,
            file_overlap=overlap,
            knowledge_distribution=knowledge,
            exclusive_files=exclusive_pct,
            shared_files=_pct(shared, file_count),
            collaborative_files=_pct(collaborative, file_count),
            platform=detect_platform(snapshot),
        )

    def consistency(
        self, snapshot: "AggregateSnapshot", ownership: "OwnershipSummary"
    ) -> ConsistencyMetrics:
        totals = snapshot.totals
        authors = snapshot.authors.values()

        active = 0
        if totals.last_commit is not None:
            cutoff = totals.last_commit.timestamp() - timedelta(
                days=self.thresholds.active_window_days
            ).total_seconds()
            active = sum(
                1
                for a in authors
                if a.last_commit is not None and a.last_commit.timestamp() >= cutoff
            )
        active_ratio = _pct(active, len(snapshot.authors))

        daily = [entry.commits for entry in snapshot.timeline.values()]
        velocity = max(0.0, 100.0 - Statistics.coefficient_of_variation(daily) * 100.0)
        cadence = delivery_cadence(totals.commit_gaps)

        w = self.consistency_weights
        score = _clamp(
            min(ownership.bus_factor * 20.0, 100.0) * w.bus_factor
            + active_ratio * w.active_contributors
            + velocity * w.velocity
            + cadence * w.cadence
        )
        return ConsistencyMetrics(
            score=score,
            bus_factor=ownership.bus_factor,
            active_contributor_ratio=active_ratio,
            velocity_consistency=velocity,
            delivery_cadence=cadence,
            gini=ownership.gini,
            top_contributor_dominance=ownership.top_contributor_share * 100.0,
        )

    def quality(
        self, snapshot: "AggregateSnapshot", governance: "GovernanceSummary"
    ) -> QualityMetrics:
        totals = snapshot.totals
        team_governance = governance.score * 100.0
        refactoring = _pct(totals.refactors, totals.commits)
        documentation = _pct(totals.docs, totals.commits)
        merge_workflow = _pct(totals.merges, totals.commits)
        test_ratio = _pct(len(snapshot.test_files), len(snapshot.files))

        w = self.quality_weights
        score = _clamp(
            team_governance * w.governance
            + min(refactoring * 5, 100.0) * w.refactoring
            + min(documentation * 2, 100.0) * w.documentation
            + merge_workflow * w.merge_workflow
            + min(test_ratio * 2, 100.0) * w.tests
        )
        return QualityMetrics(
            score=score,
            team_governance=team_governance,
            refactoring_activity=refactoring,
            bug_fix_ratio=_pct(totals.bug_fixes, totals.commits),
            documentation_contribution=documentation,
            merge_workflow=merge_workflow,
            test_files=len(snapshot.test_files),
            test_file_ratio=test_ratio,
        )

    def work_life_balance(self, snapshot: "AggregateSnapshot") -> WorkLifeMetrics:
        totals = snapshot.totals
        after_hours = _pct(totals.after_hours, totals.commits)
        weekend = _pct(totals.weekend, totals.commits)
        time_patterns = max(0.0, 100.0 - after_hours - weekend)

        multi = sum(1 for entry in snapshot.timeline.values() if entry.author_count > 1)
        days = len(snapshot.timeline)
        coverage = _pct(multi, days)

        w = self.work_life_weights
        score = _clamp(
            time_patterns * w.time_patterns
            + max(0.0, 100.0 - after_hours) * w.after_hours
            + max(0.0, 100.0 - weekend) * w.weekend
            + coverage * w.coverage
        )
        return WorkLifeMetrics(
            score=score,
            time_patterns=time_patterns,
            after_hours_frequency=after_hours,
            weekend_activity=weekend,
            after_hours_commits=totals.after_hours,
            multi_contributor_days=multi,
            solo_contributor_days=days - multi,
            coverage=coverage,
        )


def delivery_cadence(gaps) -> float:
    """100 - 100 * CV of the gaps between commits; 100 for fewer than two commits."""
    if gaps.count < 1 or gaps.mean <= 0:
        return 100.0
    return _clamp(100.0 - gaps.coefficient_of_variation * 100.0)


def detect_platform(snapshot: "AggregateSnapshot") -> PlatformPatterns:
    """Hosting platform inferred from merge message conventions."""
    platforms = snapshot.totals.merge_platforms
    if not platforms:
        return PlatformPatterns()
    # Fixed precedence when several conventions appear.
    for name, label in (("github", "GitHub"), ("gitlab", "GitLab"), ("azure-devops", "Azure DevOps")):
        count = platforms.get(name, 0)
        if count:
            accuracy = "high" if count > snapshot.totals.merges * 0.7 else "medium"
            return PlatformPatterns(name, accuracy, f"{count} {label}-style merge commits detected")
    return PlatformPatterns()


def team_insights(
    overall: float,
    collaboration: CollaborationMetrics,
    consistency: ConsistencyMetrics,
    quality: QualityMetrics,
    work_life: WorkLifeMetrics,
) -> TeamInsights:
    insights = TeamInsights()

    if collaboration.merge_workflow > 60:
        insights.strengths.append("Strong review workflow adoption")
    elif collaboration.merge_workflow < 30:
        insights.improvements.append("Increase review workflow participation")

    if collaboration.knowledge_distribution > 70:
        insights.strengths.append("Excellent knowledge distribution")
    elif collaboration.knowledge_distribution < 40:
        insights.risks.append("Knowledge concentration detected")

    if consistency.bus_factor >= 3:
        insights.strengths.append("Good knowledge distribution")
    elif consistency.bus_factor <= 1:
        insights.risks.append("Critical bus factor - knowledge concentration risk")

    if quality.team_governance > 80:
        insights.strengths.append("Excellent commit message quality")
    elif quality.team_governance < 50:
        insights.improvements.append("Improve commit message standards")

    if work_life.after_hours_frequency > 30:
        insights.risks.append("High after-hours commit activity detected")
    if work_life.weekend_activity > 20:
        insights.risks.append("Significant weekend commit activity detected")

    if collaboration.score > 80:
        insights.team_dynamics = "highly-collaborative"
    elif collaboration.score > 60:
        insights.team_dynamics = "balanced"
    elif collaboration.score > 40:
        insights.team_dynamics = "siloed"

    if overall > 85:
        insights.maturity_level = "optimized"
    elif overall > 70:
        insights.maturity_level = "mature"
    elif overall > 55:
        insights.maturity_level = "developing"

    if work_life.score > 80:
        insights.sustainability = "excellent"
    elif work_life.score > 65:
        insights.sustainability = "good"
    elif work_life.score > 45:
        insights.sustainability = "concerning"

    return insights


def team_recommendations(
    collaboration: CollaborationMetrics,
    consistency: ConsistencyMetrics,
    quality: QualityMetrics,
    work_life: WorkLifeMetrics,
) -> list[str]:
    recommendations = []
    if collaboration.merge_workflow < 50:
        recommendations.append("Implement consistent review workflow for all changes")
    if collaboration.knowledge_distribution < 60:
        recommendations.append("Encourage cross-team collaboration and knowledge sharing")
    if collaboration.co_authorship_rate < 5:
        recommendations.append("Consider pair programming or mob programming sessions")
    if consistency.bus_factor <= 2:
        recommendations.append("Start knowledge sharing initiatives to reduce bus factor risk")
    if consistency.active_contributor_ratio < 70:
        recommendations.append("Engage inactive team members or review team composition")
    if quality.team_governance < 60:
        recommendations.append("Establish and enforce commit message conventions")
    if quality.test_file_ratio < 20:
        recommendations.append("Invest in automated testing infrastructure and practices")
    if quality.documentation_contribution < 10:
        recommendations.append("Encourage documentation contributions alongside code changes")
    if work_life.after_hours_frequency > 25:
        recommendations.append("Review commit timing patterns and consider workflow changes")
    if work_life.weekend_activity > 15:
        recommendations.append("Set clear boundaries for weekend commits and emergency procedures")
    return recommendations
