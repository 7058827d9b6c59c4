"""Pattern-based commit classification.

Everything here is a heuristic over message text and file paths, so every
rule carries a Confidence level that travels into the report. Callers
depend on the CommitClassifier protocol only; a platform-specific
classifier can replace RegexCommitClassifier without touching the
aggregator.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from typing import Mapping, Optional, Protocol

from .config import DEFAULT_THRESHOLDS, ThresholdConfig
from .models import Commit


class Confidence(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class Heuristic:
    name: str
    confidence: Confidence
    description: str

    def to_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "confidence": self.confidence.value,
            "description": self.description,
        }


@dataclass(frozen=True)
class MessageSignals:
    """Governance-relevant facts about one commit message."""

    conventional: bool
    traceable: bool
    adequate_length: bool
    wip: bool
    revert: bool
    short: bool
    descriptive: bool
    capitalized: bool
    subject_length: int
    message_length: int
    commit_type: Optional[str] = None


@dataclass(frozen=True)
class Classification:
    message: MessageSignals
    feature: bool
    bug_fix: bool
    refactor: bool
    documentation: bool
    merge_platform: Optional[str]
    squash_merge: bool


class CommitClassifier(Protocol):
    """Capability interface for commit heuristics."""

    heuristics: Mapping[str, Heuristic]

    def classify(self, commit: Commit) -> Classification: ...

    def analyze_message(self, subject: str, body: str = "") -> MessageSignals: ...

    def is_test_path(self, path: str) -> bool: ...

    def is_doc_path(self, path: str) -> bool: ...


CONVENTIONAL_RE = re.compile(
    r"^(?P<type>feat|fix|docs|style|refactor|perf|test|chore|ci|build|revert)"
    r"(?:\([^()]+\))?!?: \S"
)
ISSUE_REF_RE = re.compile(r"#\d+|\b(?:close[sd]|fixe[sd]|resolve[sd])\b", re.IGNORECASE)
# Ticket keys (ABC-123) are case sensitive, so they get their own pattern.
TICKET_RE = re.compile(r"\b[A-Z][A-Z0-9]+-\d+\b")
WIP_RE = re.compile(r"\bwip\b|work in progress", re.IGNORECASE)
REVERT_RE = re.compile(r"^revert\b", re.IGNORECASE)
REVERT_HASH_RE = re.compile(r"This reverts commit [0-9a-f]{7,64}", re.IGNORECASE)

BUG_RE = re.compile(r"\b(?:fix|bug|hotfix|patch|resolv)", re.IGNORECASE)
REFACTOR_RE = re.compile(
    r"\b(?:refactor|clean[ -]?up|restructur|reorganis|reorganiz)", re.IGNORECASE
)
DOC_RE = re.compile(r"\b(?:docs?|documentation|readme|comments?)\b", re.IGNORECASE)
FEATURE_RE = re.compile(r"^(?:add|implement|introduce|support)\b", re.IGNORECASE)

MERGE_PATTERNS: tuple[tuple[str, re.Pattern], ...] = (
    ("github", re.compile(r"^Merge pull request #\d+", re.IGNORECASE)),
    ("gitlab", re.compile(r"^Merge branch '.*' into", re.IGNORECASE)),
    ("azure-devops", re.compile(r"^Merged PR \d+:", re.IGNORECASE)),
)
SQUASH_RE = re.compile(r"\(#\d+\)\s*$")

TEST_PATH_RE = re.compile(
    r"(?:^|/)(?:tests?|specs?|__tests__|testing)/"
    r"|(?:^|/)test_[^/]*$"
    r"|_test\.[^/]+$"
    r"|\.(?:test|spec)\.[^/]+$",
    re.IGNORECASE,
)
DOC_PATH_RE = re.compile(
    r"\.(?:md|rst|adoc|txt)$|(?:^|/)readme[^/]*$|(?:^|/)docs?/", re.IGNORECASE
)

_EXTENSION_TO_LANGUAGE: dict[str, str] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".py": "python",
    ".java": "java",
    ".cs": "csharp",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".hpp": "cpp",
    ".c": "c",
    ".h": "c",
    ".php": "php",
    ".rb": "ruby",
    ".go": "go",
    ".rs": "rust",
}


def detect_language(path: str) -> str:
    """Language name from the file extension, or "unknown"."""
    return _EXTENSION_TO_LANGUAGE.get(PurePosixPath(path).suffix.lower(), "unknown")


_GENERIC_SUBJECTS = frozenset(
    {"fix", "update", "change", "changes", "updates", "wip", "misc", "stuff", "tweak", "."}
)

HEURISTICS: dict[str, Heuristic] = {
    h.name: h
    for h in (
        Heuristic("conventional", Confidence.HIGH, "subject matches type(scope): description"),
        Heuristic("traceability", Confidence.MEDIUM, "issue number, ticket key or closing keyword"),
        Heuristic("wip", Confidence.MEDIUM, "'wip' or 'work in progress' in the message"),
        Heuristic("revert", Confidence.HIGH, "subject starts with 'revert' or git revert trailer"),
        Heuristic("bug_fix", Confidence.LOW, "fix/bug/hotfix/patch/resolve keyword"),
        Heuristic("refactor", Confidence.LOW, "refactor/cleanup/restructure keyword"),
        Heuristic("documentation", Confidence.MEDIUM, "doc keyword or documentation paths"),
        Heuristic("feature", Confidence.LOW, "feat type or add/implement subject"),
        Heuristic("merge_platform", Confidence.MEDIUM, "hosting platform merge message"),
        Heuristic(
            "squash_merge",
            Confidence.LOW,
            "single-parent commit whose subject ends in (#N); may be a plain reference",
        ),
        Heuristic("test_path", Confidence.MEDIUM, "path looks like a test file or directory"),
        Heuristic(
            "working_hours",
            Confidence.LOW,
            "author-local timestamps; committer time zones and schedules are unknown",
        ),
    )
}


class RegexCommitClassifier:
    """Default classifier built from regular expressions."""

    heuristics: Mapping[str, Heuristic] = HEURISTICS

    def __init__(self, thresholds: ThresholdConfig = DEFAULT_THRESHOLDS):
        self.thresholds = thresholds

    def analyze_message(self, subject: str, body: str = "") -> MessageSignals:
        subject = subject.strip()
        message = f"{subject}\n\n{body}".strip() if body else subject
        conventional = CONVENTIONAL_RE.match(subject)
        subject_length = len(subject)
        t = self.thresholds
        return MessageSignals(
            conventional=conventional is not None,
            traceable=bool(ISSUE_REF_RE.search(message) or TICKET_RE.search(message)),
            adequate_length=t.min_subject_length <= subject_length <= t.max_subject_length,
            wip=bool(WIP_RE.search(message)),
            revert=bool(REVERT_RE.match(subject) or REVERT_HASH_RE.search(body)),
            short=len(message) < t.short_message_length,
            descriptive=subject.lower() not in _GENERIC_SUBJECTS,
            capitalized=bool(subject) and subject[0] == subject[0].upper(),
            subject_length=subject_length,
            message_length=len(message),
            commit_type=conventional.group("type") if conventional else None,
        )

    def classify(self, commit: Commit) -> Classification:
        signals = self.analyze_message(commit.subject, commit.body)
        message = commit.message
        paths = [f.path for f in commit.files]

        documentation = bool(DOC_RE.search(message)) or any(self.is_doc_path(p) for p in paths)
        merge_platform = None
        for platform, pattern in MERGE_PATTERNS:
            if pattern.search(commit.subject):
                merge_platform = platform
                break

        return Classification(
            message=signals,
            feature=signals.commit_type == "feat"
            or (signals.commit_type is None and bool(FEATURE_RE.search(commit.subject))),
            bug_fix=signals.commit_type == "fix" or bool(BUG_RE.search(message)),
            refactor=signals.commit_type == "refactor" or bool(REFACTOR_RE.search(message)),
            documentation=signals.commit_type == "docs" or documentation,
            merge_platform=merge_platform,
            squash_merge=not commit.is_merge and bool(SQUASH_RE.search(commit.subject)),
        )

    def is_test_path(self, path: str) -> bool:
        return bool(TEST_PATH_RE.search(path))

    def is_doc_path(self, path: str) -> bool:
        return bool(DOC_PATH_RE.search(path))
