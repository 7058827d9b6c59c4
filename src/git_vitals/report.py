"""The AnalysisReport handed to renderers.

The report is a plain value: to_dict() yields a fresh copy made of nested
dicts, lists, strings and numbers only, with a fixed ordering (authors by
commits then email, files by risk then path, timeline by date). Runtime
fields such as the generation time and duration can be left out, in which
case two runs over the same history with the same options serialize to
identical bytes.
"""

from __future__ import annotations

import copy
import json
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from . import __version__
from .config import AnalysisOptions
from .diagnostics import DiagnosticsCollector
from .ingest.source import RepositoryInfo
from .models import Commit
from .scoring.engine import ScoringResult


def _iso(when: Optional[datetime]) -> Optional[str]:
    return when.isoformat() if when is not None else None


def commit_record(commit: Commit) -> dict[str, Any]:
    """Join keys exposed to external correlation consumers."""
    return {
        "hash": commit.hash,
        "parents": list(commit.parents),
        "author_email": commit.author_email,
        "author_name": commit.author_name,
        "timestamp": commit.timestamp,
        "date": commit.authored_at.isoformat(),
        "subject": commit.subject,
        "insertions": commit.insertions,
        "deletions": commit.deletions,
        "files": [f.path for f in commit.files],
    }


@dataclass(frozen=True)
class AnalysisReport:
    """Root output of one analysis run. Immutable once built."""

    repository: dict[str, Any]
    authors: list[dict[str, Any]]
    files: list[dict[str, Any]]
    timeline: list[dict[str, Any]]
    risk: dict[str, Any]
    governance: dict[str, Any]
    ownership: dict[str, Any]
    team: dict[str, Any]
    trends: dict[str, Any]
    coupling: list[dict[str, Any]]
    insights: list[str]
    action_items: list[str]
    heuristics: dict[str, str]
    warnings: list[dict[str, Any]]
    metadata: dict[str, Any]
    runtime: dict[str, Any] = field(default_factory=dict)
    canceled: bool = False
    partial: bool = False
    timed_out: bool = False
    commits: Optional[list[dict[str, Any]]] = None

    @property
    def is_clean(self) -> bool:
        return not self.warnings

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    @property
    def total_commits(self) -> int:
        return self.repository["total_commits"]

    def to_dict(self, include_runtime: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {
            "metadata": self.metadata,
            "status": {
                "canceled": self.canceled,
                "partial": self.partial,
                "timed_out": self.timed_out,
                "clean": self.is_clean,
                "warning_count": self.warning_count,
            },
            "repository": self.repository,
            "authors": self.authors,
            "files": self.files,
            "timeline": self.timeline,
            "risk": self.risk,
            "governance": self.governance,
            "ownership": self.ownership,
            "team": self.team,
            "trends": self.trends,
            "coupling": self.coupling,
            "insights": self.insights,
            "action_items": self.action_items,
            "heuristics": self.heuristics,
            "warnings": self.warnings,
        }
        if self.commits is not None:
            data["commits"] = self.commits
        # Callers may edit the result; the report itself stays unchanged.
        data = copy.deepcopy(data)
        if include_runtime:
            data["metadata"].update(self.runtime)
        return data

    def to_json(self, include_runtime: bool = True, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(include_runtime), indent=indent, ensure_ascii=False)


def build_report(
    result: ScoringResult,
    options: AnalysisOptions,
    diagnostics: DiagnosticsCollector,
    repository: Optional[RepositoryInfo] = None,
    canceled: bool = False,
    partial: bool = False,
    timed_out: bool = False,
    started_at: Optional[datetime] = None,
    duration_seconds: float = 0.0,
) -> AnalysisReport:
    snapshot = result.snapshot
    totals = snapshot.totals
    ownership = result.ownership

    files = []
    for assessment in result.files:
        stats = snapshot.files[assessment.path]
        entry = {
            "path": stats.path,
            "language": stats.language,
            "commits": stats.commits,
            "insertions": stats.insertions,
            "deletions": stats.deletions,
            "churn": stats.churn,
            "authors": stats.author_count,
            "bug_fix_commits": stats.bug_fix_commits,
            "first_touched": _iso(stats.first_touched),
            "last_touched": _iso(stats.last_touched),
            "binary": stats.is_binary,
            "test_file": stats.path in snapshot.test_files,
            "previous_paths": sorted(stats.previous_paths),
        }
        entry["risk"] = assessment.to_dict()
        files.append(entry)

    summary = {
        "path": repository.path if repository else options.repo_path,
        "branch": repository.branch if repository else None,
        "head": repository.head if repository else None,
        "total_commits": totals.commits,
        "duplicates_skipped": totals.duplicates_skipped,
        "total_authors": len(snapshot.authors),
        "total_files": len(snapshot.files),
        "languages": dict(sorted(Counter(s.language for s in snapshot.files.values()).items())),
        "insertions": totals.insertions,
        "deletions": totals.deletions,
        "churn": totals.churn,
        "merges": totals.merges,
        "root_commits": totals.roots,
        "co_authored": totals.co_authored,
        "squash_merges": totals.squash_merges,
        "renames": totals.renames,
        "binary_changes": totals.binary_changes,
        "first_commit": _iso(totals.first_commit),
        "last_commit": _iso(totals.last_commit),
        "active_days": len(snapshot.timeline),
        "bus_factor": ownership.bus_factor if ownership else 0,
        "health_score": round(result.health_score, 6),
        "health_rating": result.health_rating,
        "governance_score": round(result.governance.score, 6),
        "team_score": round(result.team.overall, 4),
    }

    metadata = {
        "tool": "git-vitals",
        "version": __version__,
        "git_version": repository.git_version if repository else None,
        "reference_time": _iso(result.reference_time),
        "options": options.echo(),
    }
    runtime = {
        "generated_at": _iso(started_at),
        "duration_seconds": round(duration_seconds, 3),
    }

    commits = None
    if snapshot.commits is not None:
        commits = [commit_record(c) for c in snapshot.commits.commits]

    return AnalysisReport(
        repository=summary,
        authors=[a.to_dict() for a in result.authors],
        files=files,
        timeline=[snapshot.timeline[d].to_dict() for d in sorted(snapshot.timeline)],
        risk=result.risk.to_dict(),
        governance=result.governance.to_dict(),
        ownership=ownership.to_dict() if ownership else {},
        team=result.team.to_dict(),
        trends=result.trends.to_dict(),
        coupling=[p.to_dict() for p in result.coupled_pairs],
        insights=list(result.insights),
        action_items=list(result.action_items),
        heuristics={name: c.value for name, c in sorted(snapshot.heuristics.items())},
        warnings=diagnostics.to_list(),
        metadata=metadata,
        runtime=runtime,
        canceled=canceled,
        partial=partial,
        timed_out=timed_out,
        commits=commits,
    )
