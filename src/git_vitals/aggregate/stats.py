"""Accumulators owned by the incremental aggregator.

Each accumulator grows with distinct keys (authors, files, days), never
with the number of commits. They are mutated only by
IncrementalAggregator.fold() and handed to the scoring engine, read-only,
once the stream ends.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from ..math.statistics import RunningStats, Statistics

SIZE_BUCKETS = ("micro", "small", "medium", "large", "very_large")


def size_bucket(lines_changed: int) -> str:
    """micro <20, small <50, medium <200, large <500, very_large otherwise."""
    if lines_changed < 20:
        return "micro"
    if lines_changed < 50:
        return "small"
    if lines_changed < 200:
        return "medium"
    if lines_changed < 500:
        return "large"
    return "very_large"


def top_level_directory(path: str) -> str:
    head, sep, _ = path.partition("/")
    return head if sep else "(root)"


@dataclass
class MessageTally:
    """Counts of message signals over a set of commits."""

    scored: int = 0
    conventional: int = 0
    traceable: int = 0
    adequate_length: int = 0
    wip: int = 0
    revert: int = 0
    short: int = 0
    descriptive: int = 0
    capitalized: int = 0
    total_length: int = 0

    def add(self, signals: Any) -> None:
        self.scored += 1
        self.conventional += signals.conventional
        self.traceable += signals.traceable
        self.adequate_length += signals.adequate_length
        self.wip += signals.wip
        self.revert += signals.revert
        self.short += signals.short
        self.descriptive += signals.descriptive
        self.capitalized += signals.capitalized
        self.total_length += signals.message_length

    def rate(self, name: str) -> float:
        if self.scored == 0:
            return 0.0
        return getattr(self, name) / self.scored

    @property
    def average_length(self) -> float:
        return self.total_length / self.scored if self.scored else 0.0


@dataclass
class LargestCommit:
    hash: str
    size: int
    subject: str
    authored_at: datetime
    files: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "hash": self.hash,
            "size": self.size,
            "subject": self.subject,
            "date": self.authored_at.isoformat(),
            "files": self.files,
        }


@dataclass
class AuthorStats:
    email: str
    name: str
    display_email: str = ""
    commits: int = 0
    insertions: int = 0
    deletions: int = 0
    file_changes: int = 0
    merges: int = 0
    squash_merges: int = 0
    co_authored: int = 0
    first_commit: Optional[datetime] = None
    last_commit: Optional[datetime] = None
    largest_commit: Optional[LargestCommit] = None

    day_counts: Counter = field(default_factory=Counter)  # UTC date -> commits
    weekday_histogram: list[int] = field(default_factory=lambda: [0] * 7)  # Monday = 0
    hour_histogram: list[int] = field(default_factory=lambda: [0] * 24)  # author local time
    after_hours: int = 0
    weekend: int = 0
    late_night: int = 0
    size_buckets: dict[str, int] = field(default_factory=lambda: dict.fromkeys(SIZE_BUCKETS, 0))

    file_commits: Counter = field(default_factory=Counter)
    directory_commits: Counter = field(default_factory=Counter)
    co_authors: Counter = field(default_factory=Counter)  # email -> commits together
    co_author_names: dict[str, str] = field(default_factory=dict)

    messages: MessageTally = field(default_factory=MessageTally)
    features: int = 0
    fixes: int = 0
    refactors: int = 0
    docs: int = 0
    refactor_lines: int = 0
    doc_lines: int = 0

    bursts: int = 0
    largest_burst: int = 0
    _burst_last: Optional[int] = field(default=None, repr=False)
    _burst_run: int = field(default=0, repr=False)

    @property
    def churn(self) -> int:
        return self.insertions + self.deletions

    @property
    def files(self) -> set[str]:
        return set(self.file_commits)

    @property
    def active_days(self) -> int:
        return len(self.day_counts)

    @property
    def average_commit_size(self) -> float:
        return self.churn / self.commits if self.commits else 0.0

    def track_burst(self, timestamp: int, window_seconds: int = 300, min_run: int = 4) -> None:
        """Runs of min_run+ commits each within window_seconds of the previous one."""
        if self._burst_last is not None and abs(timestamp - self._burst_last) <= window_seconds:
            self._burst_run += 1
        else:
            self._close_burst(min_run)
            self._burst_run = 1
        self._burst_last = timestamp

    def close(self, min_run: int = 4) -> None:
        self._close_burst(min_run)
        self._burst_run = 0

    def _close_burst(self, min_run: int) -> None:
        if self._burst_run >= min_run:
            self.bursts += 1
            self.largest_burst = max(self.largest_burst, self._burst_run)


@dataclass
class FileStats:
    path: str
    index: int
    language: str = "unknown"
    commits: int = 0
    insertions: int = 0
    deletions: int = 0
    coupled_commits: int = 0
    bug_fix_commits: int = 0
    authors: Counter = field(default_factory=Counter)  # email -> commits
    first_touched: Optional[datetime] = None
    last_touched: Optional[datetime] = None
    is_binary: bool = False
    previous_paths: set[str] = field(default_factory=set)

    @property
    def churn(self) -> int:
        return self.insertions + self.deletions

    @property
    def author_count(self) -> int:
        return len(self.authors)


@dataclass
class DailyTimelineEntry:
    """One UTC day of activity.

    ``file_authors`` maps each file index touched that day to the authors who
    touched it, so files_touched counts distinct files and the trends pass can
    look back over neighbouring days. Sizes and message lengths are kept as
    value -> count histograms for the nearest-rank percentiles.
    """

    day: date  # UTC
    commits: int = 0
    insertions: int = 0
    deletions: int = 0
    file_changes: int = 0
    merges: int = 0
    reverts: int = 0
    renames: int = 0
    out_of_hours: int = 0
    multi_file_commits: int = 0
    co_change_pairs: int = 0
    conventional: int = 0
    short_messages: int = 0
    authors: set[str] = field(default_factory=set)
    file_authors: dict[int, set[str]] = field(default_factory=dict)
    commit_sizes: Counter = field(default_factory=Counter)
    message_lengths: Counter = field(default_factory=Counter)

    @property
    def churn(self) -> int:
        return self.insertions + self.deletions

    @property
    def author_count(self) -> int:
        return len(self.authors)

    @property
    def files_touched(self) -> int:
        return len(self.file_authors)

    def _share(self, count: int) -> float:
        return count / self.commits if self.commits else 0.0

    @property
    def merge_ratio(self) -> float:
        return self._share(self.merges)

    @property
    def out_of_hours_share(self) -> float:
        return self._share(self.out_of_hours)

    @property
    def co_change_density(self) -> float:
        return self._share(self.co_change_pairs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.day.isoformat(),
            "commits": self.commits,
            "insertions": self.insertions,
            "deletions": self.deletions,
            "churn": self.churn,
            "files_touched": self.files_touched,
            "file_changes": self.file_changes,
            "authors": self.author_count,
            "commit_size_p50": Statistics.nearest_rank(self.commit_sizes, 50),
            "commit_size_p90": Statistics.nearest_rank(self.commit_sizes, 90),
            "merges": self.merges,
            "merge_ratio": round(self.merge_ratio, 4),
            "reverts": self.reverts,
            "renames": self.renames,
            "out_of_hours": self.out_of_hours,
            "out_of_hours_share": round(self.out_of_hours_share, 4),
            "multi_file_commits": self.multi_file_commits,
            "co_change_pairs": self.co_change_pairs,
            "co_change_density": round(self.co_change_density, 4),
            "median_message_length": Statistics.nearest_rank(self.message_lengths, 50),
            "short_messages": self.short_messages,
            "conventional_commits": self.conventional,
        }


@dataclass
class RepositoryTotals:
    commits: int = 0
    duplicates_skipped: int = 0
    merges: int = 0
    roots: int = 0
    co_authored: int = 0
    squash_merges: int = 0
    insertions: int = 0
    deletions: int = 0
    file_changes: int = 0
    binary_changes: int = 0
    renames: int = 0
    first_commit: Optional[datetime] = None
    last_commit: Optional[datetime] = None
    after_hours: int = 0
    weekend: int = 0
    late_night: int = 0
    features: int = 0
    bug_fixes: int = 0
    refactors: int = 0
    docs: int = 0
    merge_platforms: Counter = field(default_factory=Counter)
    messages: MessageTally = field(default_factory=MessageTally)
    commit_gaps: RunningStats = field(default_factory=RunningStats)  # days between commits

    @property
    def churn(self) -> int:
        return self.insertions + self.deletions
