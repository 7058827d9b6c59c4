"""Strict, single-pass fold of the commit stream into accumulators.

The aggregator sees each commit once, in stream order (newest first for
``git log``), and never revisits it. Its resident state is bounded by the
number of distinct authors, files, days and (day, file) pairs, plus one
compact digest per commit hash for de-duplication.

Renames: when a commit renames ``old`` to ``new``, older commits that
still touch ``old`` are credited to the canonical path of ``new``. If
``old`` already carries newer history (the path was reused for a
different file), the two histories stay separate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from ..classifiers import CommitClassifier, Confidence, RegexCommitClassifier, detect_language
from ..config import AnalysisOptions
from ..diagnostics import DiagnosticsCollector
from ..exceptions.taxonomy import ErrorCode
from ..logging_config import get_logger
from ..models import ChangeType, Commit, CommitBatch
from .coupling import CouplingMatrix, FileIndex
from .stats import (
    AuthorStats,
    DailyTimelineEntry,
    FileStats,
    LargestCommit,
    RepositoryTotals,
    size_bucket,
    top_level_directory,
)

logger = get_logger(__name__)

LATE_NIGHT_START = 22
LATE_NIGHT_END = 6


@dataclass
class AggregateSnapshot:
    """Everything the scoring engine needs, handed over at end of stream."""

    authors: dict[str, AuthorStats]
    files: dict[str, FileStats]
    timeline: dict[date, DailyTimelineEntry]
    totals: RepositoryTotals
    file_index: FileIndex
    coupling: Optional[CouplingMatrix] = None
    commits: Optional[CommitBatch] = None
    test_files: set[str] = field(default_factory=set)
    doc_files: set[str] = field(default_factory=set)
    heuristics: dict[str, Confidence] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return self.totals.commits == 0

    @property
    def unique_commits(self) -> int:
        return self.totals.commits


class IncrementalAggregator:
    """Folds Commit values into per-author, per-file and per-day statistics."""

    def __init__(
        self,
        options: Optional[AnalysisOptions] = None,
        classifier: Optional[CommitClassifier] = None,
        diagnostics: Optional[DiagnosticsCollector] = None,
    ):
        self.options = options or AnalysisOptions()
        self.thresholds = self.options.thresholds
        self.classifier = classifier or RegexCommitClassifier(self.thresholds)
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticsCollector()

        self.authors: dict[str, AuthorStats] = {}
        self.files: dict[str, FileStats] = {}
        self.timeline: dict[date, DailyTimelineEntry] = {}
        self.totals = RepositoryTotals()
        self.file_index = FileIndex()
        self.coupling: Optional[CouplingMatrix] = None
        if self.options.heavy:
            self.coupling = CouplingMatrix(
                max_files_per_commit=self.thresholds.coupling_max_files,
                max_pairs=self.thresholds.coupling_max_pairs,
                diagnostics=self.diagnostics,
            )
        self.commits: Optional[CommitBatch] = CommitBatch() if self.options.keep_commits else None

        self._seen: set[bytes] = set()
        self._aliases: dict[str, str] = {}
        self._test_files: set[str] = set()
        self._doc_files: set[str] = set()
        self._previous_timestamp: Optional[int] = None
        self._frozen = False

    @property
    def folded(self) -> int:
        return self.totals.commits

    def fold_all(self, commits: Iterable[Commit]) -> "IncrementalAggregator":
        for commit in commits:
            self.fold(commit)
        return self

    def fold(self, commit: Commit) -> bool:
        """Fold one commit. Returns False if it was a duplicate."""
        if self._frozen:
            raise RuntimeError("Aggregator is frozen")

        digest = bytes.fromhex(commit.hash)
        if digest in self._seen:
            self.totals.duplicates_skipped += 1
            self.diagnostics.add(
                ErrorCode.GV400, "duplicate commit skipped", commit_hash=commit.hash
            )
            return False
        self._seen.add(digest)

        classification = self.classifier.classify(commit)
        signals = classification.message
        count_churn = not (commit.is_merge and self.options.exclude_merge_churn)

        changes = self._canonical_changes(commit)
        insertions = sum(c[1] for c in changes.values()) if count_churn else 0
        deletions = sum(c[2] for c in changes.values()) if count_churn else 0
        lines = insertions + deletions
        when = commit.authored_at
        ts = commit.timestamp
        day = commit.utc_date
        hour = when.hour
        weekday = when.weekday()
        after_hours = hour < self.thresholds.work_day_start or hour > self.thresholds.work_day_end
        weekend = weekday >= 5
        late_night = hour >= LATE_NIGHT_START or hour <= LATE_NIGHT_END

        # Repository totals
        t = self.totals
        t.commits += 1
        t.merges += commit.is_merge
        t.roots += commit.is_root
        t.co_authored += commit.is_co_authored
        t.squash_merges += classification.squash_merge
        t.insertions += insertions
        t.deletions += deletions
        t.file_changes += len(changes)
        t.after_hours += after_hours
        t.weekend += weekend
        t.late_night += late_night
        t.features += classification.feature
        t.bug_fixes += classification.bug_fix
        t.refactors += classification.refactor
        t.docs += classification.documentation
        if classification.merge_platform:
            t.merge_platforms[classification.merge_platform] += 1
        t.messages.add(signals)
        if t.first_commit is None or ts < t.first_commit.timestamp():
            t.first_commit = when
        if t.last_commit is None or ts > t.last_commit.timestamp():
            t.last_commit = when
        if self._previous_timestamp is not None:
            t.commit_gaps.push(abs(ts - self._previous_timestamp) / 86400.0)
        self._previous_timestamp = ts

        # Author
        author = self.authors.get(commit.author_email)
        if author is None:
            author = AuthorStats(
                email=commit.author_email,
                name=commit.author_name,
                display_email=commit.author_email_display or commit.author_email,
            )
            self.authors[commit.author_email] = author
        author.commits += 1
        author.insertions += insertions
        author.deletions += deletions
        author.file_changes += len(changes)
        author.merges += commit.is_merge
        author.squash_merges += classification.squash_merge
        author.co_authored += commit.is_co_authored
        if author.first_commit is None or ts < author.first_commit.timestamp():
            author.first_commit = when
        if author.last_commit is None or ts > author.last_commit.timestamp():
            author.last_commit = when
        if author.largest_commit is None or lines > author.largest_commit.size:
            author.largest_commit = LargestCommit(
                hash=commit.hash,
                size=lines,
                subject=commit.subject,
                authored_at=when,
                files=len(changes),
            )
        author.day_counts[day] += 1
        author.weekday_histogram[weekday] += 1
        author.hour_histogram[hour] += 1
        author.after_hours += after_hours
        author.weekend += weekend
        author.late_night += late_night
        author.size_buckets[size_bucket(lines)] += 1
        author.messages.add(signals)
        author.features += signals.commit_type == "feat"
        author.fixes += signals.commit_type == "fix"
        if classification.refactor:
            author.refactors += 1
            author.refactor_lines += lines
        if classification.documentation:
            author.docs += 1
            author.doc_lines += lines
        for co_author in commit.co_authors:
            if co_author.email == commit.author_email:
                continue
            author.co_authors[co_author.email] += 1
            author.co_author_names.setdefault(co_author.email, co_author.name)
        author.track_burst(ts)

        # Files
        coupled = len(changes) > 1
        indices = []
        renamed = 0
        for path, (change, ins, dels) in changes.items():
            stats = self.files.get(path)
            if stats is None:
                stats = FileStats(
                    path=path, index=self.file_index.intern(path), language=detect_language(path)
                )
                self.files[path] = stats
                if self.classifier.is_test_path(path):
                    self._test_files.add(path)
                if self.classifier.is_doc_path(path):
                    self._doc_files.add(path)
            indices.append(stats.index)
            stats.commits += 1
            if count_churn:
                stats.insertions += ins
                stats.deletions += dels
            stats.coupled_commits += coupled
            stats.bug_fix_commits += classification.bug_fix
            stats.authors[commit.author_email] += 1
            stats.is_binary = stats.is_binary or change.is_binary
            if stats.first_touched is None or ts < stats.first_touched.timestamp():
                stats.first_touched = when
            if stats.last_touched is None or ts > stats.last_touched.timestamp():
                stats.last_touched = when
            if change.change_type is ChangeType.RENAMED and change.old_path:
                t.renames += 1
                renamed += 1
                self._record_rename(change.old_path, path, stats)
            t.binary_changes += change.is_binary

            author.file_commits[path] += 1
            author.directory_commits[top_level_directory(path)] += 1

        # Day
        entry = self.timeline.get(day)
        if entry is None:
            entry = DailyTimelineEntry(day=day)
            self.timeline[day] = entry
        entry.commits += 1
        entry.insertions += insertions
        entry.deletions += deletions
        entry.file_changes += len(changes)
        entry.merges += commit.is_merge
        entry.reverts += signals.revert
        entry.renames += renamed
        entry.out_of_hours += after_hours or weekend
        entry.conventional += signals.conventional
        entry.short_messages += signals.subject_length < self.thresholds.min_subject_length
        entry.commit_sizes[lines] += 1
        entry.message_lengths[signals.message_length] += 1
        if coupled:
            entry.multi_file_commits += 1
            entry.co_change_pairs += len(changes) * (len(changes) - 1) // 2
        entry.authors.add(commit.author_email)
        for index in indices:
            entry.file_authors.setdefault(index, set()).add(commit.author_email)

        if self.coupling is not None and coupled:
            self.coupling.add_commit(indices, commit.hash)
        if self.commits is not None:
            self.commits.commits.append(commit)
        return True

    def _canonical_changes(self, commit: Commit):
        """Map each file change to its canonical path, merging duplicates."""
        changes: dict = {}
        for change in commit.files:
            path = self.resolve(change.path)
            if path in changes:
                first, ins, dels = changes[path]
                changes[path] = (first, ins + change.insertions, dels + change.deletions)
            else:
                changes[path] = (change, change.insertions, change.deletions)
        return changes

    def resolve(self, path: str) -> str:
        """Canonical path for a path seen in an older commit."""
        seen = []
        while path in self._aliases:
            seen.append(path)
            path = self._aliases[path]
        for alias in seen[:-1]:
            self._aliases[alias] = path
        return path

    def _record_rename(self, old_path: str, canonical: str, stats: FileStats) -> None:
        if old_path == canonical or old_path in self.files or old_path in self._aliases:
            return
        self._aliases[old_path] = canonical
        stats.previous_paths.add(old_path)

    def freeze(self) -> AggregateSnapshot:
        """End the fold and hand the accumulators over."""
        if not self._frozen:
            self._frozen = True
            for author in self.authors.values():
                author.close()
            logger.debug(
                "Aggregated %d commits: %d authors, %d files, %d days",
                self.totals.commits,
                len(self.authors),
                len(self.files),
                len(self.timeline),
            )
        return AggregateSnapshot(
            authors=self.authors,
            files=self.files,
            timeline=self.timeline,
            totals=self.totals,
            file_index=self.file_index,
            coupling=self.coupling,
            commits=self.commits,
            test_files=set(self._test_files),
            doc_files=set(self._doc_files),
            heuristics={
                name: h.confidence for name, h in self.classifier.heuristics.items()
            },
        )


def aggregate(
    commits: Iterable[Commit],
    options: Optional[AnalysisOptions] = None,
    diagnostics: Optional[DiagnosticsCollector] = None,
) -> AggregateSnapshot:
    """Fold an iterable of commits and return the frozen snapshot."""
    aggregator = IncrementalAggregator(options, diagnostics=diagnostics)
    aggregator.fold_all(commits)
    return aggregator.freeze()
