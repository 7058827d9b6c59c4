"""Detailed per-author metrics derived from AuthorStats.

Everything here is computed from the author's accumulators. Gaps,
streaks and velocity are measured at day granularity from the per-day
commit counts, since individual commit timestamps are not retained.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Any, Mapping, Optional

from ..aggregate.stats import AuthorStats, FileStats
from ..config import DEFAULT_THRESHOLDS, ThresholdConfig

if TYPE_CHECKING:
    from ..aggregate.aggregator import AggregateSnapshot

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
TIME_RANGES = (
    ("Early Morning (6-9am)", 6, 9),
    ("Morning (9am-12pm)", 9, 12),
    ("Afternoon (12-3pm)", 12, 15),
    ("Late Afternoon (3-6pm)", 15, 18),
    ("Evening (6-9pm)", 18, 21),
    ("Night (9pm-12am)", 21, 24),
)
HIGH_TRAFFIC_AUTHORS = 5
TOP_FILES = 5


def _pct(part: float, whole: float) -> float:
    return part / whole * 100.0 if whole else 0.0


def _r(value: float) -> float:
    return round(value, 4)


@dataclass(frozen=True)
class Gap:
    start: date
    end: date
    days: int

    def to_dict(self) -> dict[str, Any]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat(), "days": self.days}


@dataclass
class AuthorMetrics:
    """One author's profile. Rates are percentages (0-100)."""

    email: str
    name: str
    commits: int
    insertions: int
    deletions: int
    files: int
    active_days: int
    first_commit: Optional[str]
    last_commit: Optional[str]

    # contribution
    commit_frequency: float = 0.0
    longest_streak: int = 0
    size_distribution: dict[str, int] = field(default_factory=dict)
    largest_commit: Optional[dict[str, Any]] = None
    average_commit_size: float = 0.0
    average_files_per_commit: float = 0.0
    file_diversity: float = 0.0
    most_modified_files: list[dict[str, Any]] = field(default_factory=list)
    directory_focus: list[dict[str, Any]] = field(default_factory=list)

    # collaboration
    co_authorship_rate: float = 0.0
    co_authors: list[dict[str, Any]] = field(default_factory=list)
    merge_rate: float = 0.0
    merge_commits: int = 0
    squash_merges: int = 0
    direct_commits: int = 0
    exclusive_files: int = 0
    shared_files: int = 0
    high_traffic_files: int = 0
    ownership_style: str = "balanced"
    knowledge_sharing_index: float = 0.0

    # work pattern
    most_active_day: Optional[str] = None
    most_active_day_share: float = 0.0
    most_active_time: Optional[str] = None
    most_active_time_share: float = 0.0
    work_pattern: str = "distributed"
    after_hours_rate: float = 0.0
    weekend_rate: float = 0.0
    late_night_commits: int = 0
    bursts: int = 0
    largest_burst: int = 0
    longest_gap: Optional[Gap] = None
    average_gap: float = 0.0
    consistency_score: float = 0.0
    velocity_trend: str = "stable"
    vacation_breaks: list[Gap] = field(default_factory=list)

    # quality
    message_quality: float = 0.0
    conventional_rate: float = 0.0
    traceability_rate: float = 0.0
    average_message_length: float = 0.0
    revert_rate: float = 0.0
    wip_rate: float = 0.0
    fix_to_feature_ratio: float = 0.0
    refactor_commits: int = 0
    refactor_lines: int = 0
    doc_commits: int = 0
    doc_lines: int = 0

    # comparative
    relative_contribution: float = 0.0
    commit_rank: int = 0
    lines_rank: int = 0
    files_rank: int = 0
    focus_index: float = 0.0
    specialization: str = "moderate"

    positive_patterns: list[str] = field(default_factory=list)
    growth_areas: list[str] = field(default_factory=list)
    labels: dict[str, str] = field(default_factory=dict)

    @property
    def churn(self) -> int:
        return self.insertions + self.deletions

    def to_dict(self) -> dict[str, Any]:
        return {
            "email": self.email,
            "name": self.name,
            "commits": self.commits,
            "insertions": self.insertions,
            "deletions": self.deletions,
            "churn": self.churn,
            "files": self.files,
            "active_days": self.active_days,
            "first_commit": self.first_commit,
            "last_commit": self.last_commit,
            "contribution": {
                "commit_frequency": _r(self.commit_frequency),
                "longest_streak": self.longest_streak,
                "size_distribution": dict(self.size_distribution),
                "largest_commit": self.largest_commit,
                "average_commit_size": _r(self.average_commit_size),
                "average_files_per_commit": _r(self.average_files_per_commit),
                "file_diversity": _r(self.file_diversity),
                "most_modified_files": self.most_modified_files,
                "directory_focus": self.directory_focus,
            },
            "collaboration": {
                "co_authorship_rate": _r(self.co_authorship_rate),
                "co_authors": self.co_authors,
                "merge_rate": _r(self.merge_rate),
                "merge_commits": self.merge_commits,
                "squash_merges": self.squash_merges,
                "direct_commits": self.direct_commits,
                "exclusive_files": self.exclusive_files,
                "shared_files": self.shared_files,
                "high_traffic_files": self.high_traffic_files,
                "ownership_style": self.ownership_style,
                "knowledge_sharing_index": _r(self.knowledge_sharing_index),
            },
            "work_pattern": {
                "most_active_day": self.most_active_day,
                "most_active_day_share": _r(self.most_active_day_share),
                "most_active_time": self.most_active_time,
                "most_active_time_share": _r(self.most_active_time_share),
                "pattern": self.work_pattern,
                "after_hours_rate": _r(self.after_hours_rate),
                "weekend_rate": _r(self.weekend_rate),
                "late_night_commits": self.late_night_commits,
                "bursts": self.bursts,
                "largest_burst": self.largest_burst,
                "longest_gap": self.longest_gap.to_dict() if self.longest_gap else None,
                "average_gap": _r(self.average_gap),
                "consistency_score": _r(self.consistency_score),
                "velocity_trend": self.velocity_trend,
                "vacation_breaks": [g.to_dict() for g in self.vacation_breaks],
            },
            "quality": {
                "message_quality": _r(self.message_quality),
                "conventional_rate": _r(self.conventional_rate),
                "traceability_rate": _r(self.traceability_rate),
                "average_message_length": _r(self.average_message_length),
                "revert_rate": _r(self.revert_rate),
                "wip_rate": _r(self.wip_rate),
                "fix_to_feature_ratio": _r(self.fix_to_feature_ratio),
                "refactor_commits": self.refactor_commits,
                "refactor_lines": self.refactor_lines,
                "doc_commits": self.doc_commits,
                "doc_lines": self.doc_lines,
            },
            "comparative": {
                "relative_contribution": _r(self.relative_contribution),
                "commit_rank": self.commit_rank,
                "lines_rank": self.lines_rank,
                "files_rank": self.files_rank,
                "focus_index": _r(self.focus_index),
                "specialization": self.specialization,
            },
            "insights": {
                "positive_patterns": list(self.positive_patterns),
                "growth_areas": list(self.growth_areas),
                "labels": dict(self.labels),
            },
        }


class AuthorProfiler:
    def __init__(self, thresholds: ThresholdConfig = DEFAULT_THRESHOLDS):
        self.thresholds = thresholds

    def profile_all(self, snapshot: "AggregateSnapshot") -> list[AuthorMetrics]:
        """Profiles ordered by commits descending, then email."""
        authors = sorted(snapshot.authors.values(), key=lambda a: (-a.commits, a.email))
        total_commits = snapshot.totals.commits
        total_files = len(snapshot.files)

        lines_order = sorted(authors, key=lambda a: (-a.churn, a.email))
        files_order = sorted(authors, key=lambda a: (-len(a.file_commits), a.email))
        lines_rank = {a.email: i + 1 for i, a in enumerate(lines_order)}
        files_rank = {a.email: i + 1 for i, a in enumerate(files_order)}

        profiles = []
        for rank, author in enumerate(authors, start=1):
            metrics = self.profile(author, snapshot.files, total_files)
            metrics.relative_contribution = _pct(author.commits, total_commits)
            metrics.commit_rank = rank
            metrics.lines_rank = lines_rank[author.email]
            metrics.files_rank = files_rank[author.email]
            profiles.append(metrics)
        return profiles

    def profile(
        self,
        author: AuthorStats,
        files: Mapping[str, FileStats],
        total_files: int = 0,
    ) -> AuthorMetrics:
        n = author.commits
        m = AuthorMetrics(
            email=author.email,
            name=author.name,
            commits=n,
            insertions=author.insertions,
            deletions=author.deletions,
            files=len(author.file_commits),
            active_days=author.active_days,
            first_commit=author.first_commit.isoformat() if author.first_commit else None,
            last_commit=author.last_commit.isoformat() if author.last_commit else None,
        )
        if n == 0:
            return m

        self._contribution(m, author, total_files)
        self._collaboration(m, author, files)
        self._work_pattern(m, author)
        self._quality(m, author)
        self._insights(m, author)
        return m

    def _contribution(self, m: AuthorMetrics, author: AuthorStats, total_files: int) -> None:
        n = author.commits
        m.commit_frequency = n / author.active_days if author.active_days else 0.0
        m.longest_streak = longest_streak(author.day_counts, self.thresholds.streak_gap_days)
        m.size_distribution = dict(author.size_buckets)
        m.largest_commit = author.largest_commit.to_dict() if author.largest_commit else None
        m.average_commit_size = author.average_commit_size
        m.average_files_per_commit = author.file_changes / n
        m.file_diversity = _pct(len(author.file_commits), total_files)
        top = sorted(author.file_commits.items(), key=lambda kv: (-kv[1], kv[0]))[:TOP_FILES]
        m.most_modified_files = [
            {"path": path, "commits": count, "percentage": round(_pct(count, n), 4)}
            for path, count in top
        ]
        m.directory_focus = [
            {"directory": d, "percentage": round(_pct(count, n), 4)}
            for d, count in sorted(author.directory_commits.items(), key=lambda kv: (-kv[1], kv[0]))
        ]
        if total_files:
            m.focus_index = 1.0 - len(author.file_commits) / total_files
        if m.focus_index > 0.8:
            m.specialization = "highly-specialized"
        elif m.focus_index < 0.4:
            m.specialization = "generalist"

    def _collaboration(
        self, m: AuthorMetrics, author: AuthorStats, files: Mapping[str, FileStats]
    ) -> None:
        n = author.commits
        m.co_authorship_rate = _pct(author.co_authored, n)
        m.co_authors = [
            {"email": email, "name": author.co_author_names.get(email, ""), "count": count}
            for email, count in sorted(author.co_authors.items(), key=lambda kv: (-kv[1], kv[0]))
        ]
        m.merge_commits = author.merges
        m.merge_rate = _pct(author.merges, n)
        m.squash_merges = author.squash_merges
        m.direct_commits = n - author.merges

        for path in author.file_commits:
            stats = files.get(path)
            count = stats.author_count if stats is not None else 1
            if count <= 1:
                m.exclusive_files += 1
            elif count >= HIGH_TRAFFIC_AUTHORS:
                m.high_traffic_files += 1
            else:
                m.shared_files += 1
        touched = m.exclusive_files + m.shared_files + m.high_traffic_files
        if touched:
            exclusive_ratio = m.exclusive_files / touched
            if exclusive_ratio > 0.7:
                m.ownership_style = "specialized"
            elif exclusive_ratio < 0.3:
                m.ownership_style = "collaborative"
            m.knowledge_sharing_index = _pct(m.shared_files + m.high_traffic_files, touched)

    def _work_pattern(self, m: AuthorMetrics, author: AuthorStats) -> None:
        n = author.commits
        days = author.weekday_histogram
        best_day = max(range(7), key=lambda i: (days[i], -i))
        m.most_active_day = DAY_NAMES[best_day]
        m.most_active_day_share = _pct(days[best_day], n)

        hours = author.hour_histogram
        best_share = 0.0
        for label, start, end in TIME_RANGES:
            share = _pct(sum(hours[start:end]), n)
            if share > best_share:
                m.most_active_time, best_share = label, share
        m.most_active_time_share = best_share

        weekday = sum(days[:5])
        weekend = sum(days[5:])
        if weekend > weekday * 0.3:
            m.work_pattern = "weekend-warrior"
        elif weekday > n * 0.8:
            m.work_pattern = "weekday-focused"

        m.after_hours_rate = _pct(author.after_hours, n)
        m.weekend_rate = _pct(author.weekend, n)
        m.late_night_commits = author.late_night
        m.bursts = author.bursts
        m.largest_burst = author.largest_burst

        gaps = day_gaps(author.day_counts)
        if gaps:
            m.longest_gap = max(gaps, key=lambda g: (g.days, -g.start.toordinal()))
            m.average_gap = sum(g.days for g in gaps) / len(gaps)
        m.vacation_breaks = [g for g in gaps if g.days >= self.thresholds.vacation_gap_days]
        m.consistency_score = consistency_score(author.day_counts)
        m.velocity_trend = velocity_trend(author.day_counts)

    def _quality(self, m: AuthorMetrics, author: AuthorStats) -> None:
        n = author.commits
        t = author.messages
        m.message_quality = message_quality(author)
        m.conventional_rate = _pct(t.conventional, n)
        m.traceability_rate = _pct(t.traceable, n)
        m.average_message_length = t.average_length
        m.revert_rate = _pct(t.revert, n)
        m.wip_rate = _pct(t.wip, n)
        m.fix_to_feature_ratio = author.fixes / author.features if author.features else 0.0
        m.refactor_commits = author.refactors
        m.refactor_lines = author.refactor_lines
        m.doc_commits = author.docs
        m.doc_lines = author.doc_lines

    def _insights(self, m: AuthorMetrics, author: AuthorStats) -> None:
        if m.message_quality > 80:
            m.positive_patterns.append("Excellent commit message quality")
        if m.after_hours_rate < 20:
            m.positive_patterns.append("Good work-life balance")
        if m.knowledge_sharing_index > 70:
            m.positive_patterns.append("Strong knowledge sharing")
        if author.size_buckets.get("very_large", 0) > author.commits * 0.2:
            m.growth_areas.append("Consider smaller, more focused commits")
        if m.co_authorship_rate < 5:
            m.growth_areas.append("Opportunity for more pair programming")

        m.labels = author_labels(m, author.average_commit_size)


def author_labels(m: AuthorMetrics, average_commit_size: float) -> dict[str, str]:
    if m.after_hours_rate > 30:
        work_life = "concerning"
    elif m.after_hours_rate < 15:
        work_life = "excellent"
    else:
        work_life = "healthy"

    if m.co_authorship_rate > 20:
        collaboration = "highly-collaborative"
    elif m.co_authorship_rate < 5:
        collaboration = "isolated"
    else:
        collaboration = "moderate"

    if m.message_quality > 80:
        quality = "excellent"
    elif m.message_quality > 60:
        quality = "good"
    else:
        quality = "needs-improvement"

    if m.consistency_score > 80:
        consistency = "very-consistent"
    elif m.consistency_score > 60:
        consistency = "consistent"
    else:
        consistency = "irregular"

    if average_commit_size > 200:
        expertise = "senior"
    elif average_commit_size > 100:
        expertise = "mid-level"
    else:
        expertise = "junior"

    return {
        "work_life_balance": work_life,
        "collaboration": collaboration,
        "code_quality": quality,
        "consistency": consistency,
        "expertise": expertise,
    }


def message_quality(author: AuthorStats) -> float:
    """Weighted message hygiene score, 0-100."""
    n = author.commits
    if not n:
        return 0.0
    t = author.messages
    score = (
        t.conventional * 0.4
        + t.traceable * 0.25
        + t.adequate_length * 0.15
        + t.descriptive * 0.1
        + t.capitalized * 0.05
        + (t.scored - t.wip) * 0.05
    ) / n
    return min(100.0, max(0.0, score * 100.0))


def day_gaps(day_counts: Mapping[date, int]) -> list[Gap]:
    """Gaps of more than one day between consecutive active days."""
    days = sorted(day_counts)
    return [
        Gap(prev, cur, (cur - prev).days)
        for prev, cur in zip(days, days[1:])
        if (cur - prev).days > 1
    ]


def longest_streak(day_counts: Mapping[date, int], max_gap_days: int = 2) -> int:
    """Longest run of active days where consecutive days are at most max_gap_days apart."""
    days = sorted(day_counts)
    if not days:
        return 0
    best = current = 1
    for prev, cur in zip(days, days[1:]):
        if (cur - prev).days <= max_gap_days:
            current += 1
            best = max(best, current)
        else:
            current = 1
    return best


def consistency_score(day_counts: Mapping[date, int]) -> float:
    """Share of calendar days that are active, blended with commits per active day."""
    if not day_counts:
        return 0.0
    days = sorted(day_counts)
    span = (days[-1] - days[0]).days + 1
    ratio = len(days) / span
    per_day = sum(day_counts.values()) / len(days)
    return min((ratio * 0.6 + min(per_day / 5.0, 1.0) * 0.4) * 100.0, 100.0)


def velocity_trend(day_counts: Mapping[date, int], min_commits: int = 10) -> str:
    """Compare the commit rate of the older half of the history with the newer half."""
    total = sum(day_counts.values())
    if total < min_commits:
        return "stable"
    days = sorted(day_counts)
    midpoint = total // 2
    cumulative = 0
    split = days[0]
    for day in days:
        cumulative += day_counts[day]
        split = day
        if cumulative >= midpoint:
            break
    first_span = (split - days[0]).days
    second_span = (days[-1] - split).days
    first_rate = cumulative / first_span if first_span > 0 else 0.0
    second_rate = (total - cumulative) / second_span if second_span > 0 else 0.0
    change = (second_rate - first_rate) / max(first_rate, 0.1)
    if change > 0.2:
        return "increasing"
    if change < -0.2:
        return "decreasing"
    return "stable"
