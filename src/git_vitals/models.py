"""Data models for parsed commit history.

Records are closed, frozen dataclasses built only by the commit parser
(or by tests). Anything that does not fit the shape is rejected at parse
time instead of flowing downstream with missing fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum


class ChangeType(Enum):
    MODIFIED = "modified"
    RENAMED = "renamed"
    BINARY = "binary"


@dataclass(frozen=True)
class Identity:
    """A name/email pair from a Co-authored-by trailer."""

    name: str
    email: str  # lower-cased


@dataclass(frozen=True)
class FileChange:
    path: str  # path after the commit
    insertions: int = 0
    deletions: int = 0
    change_type: ChangeType = ChangeType.MODIFIED
    old_path: str | None = None  # renames only
    is_binary: bool = False

    @property
    def churn(self) -> int:
        return self.insertions + self.deletions


@dataclass(frozen=True)
class Commit:
    hash: str
    parents: tuple[str, ...]
    author_name: str
    author_email: str  # identity key, lower-cased
    authored_at: datetime  # timezone-aware, author's own offset
    subject: str
    body: str = ""
    files: tuple[FileChange, ...] = ()
    co_authors: tuple[Identity, ...] = ()
    author_email_display: str = ""  # original casing

    @property
    def message(self) -> str:
        if self.body:
            return f"{self.subject}\n\n{self.body}"
        return self.subject

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    @property
    def is_root(self) -> bool:
        return not self.parents

    @property
    def is_co_authored(self) -> bool:
        return bool(self.co_authors)

    @property
    def insertions(self) -> int:
        return sum(f.insertions for f in self.files)

    @property
    def deletions(self) -> int:
        return sum(f.deletions for f in self.files)

    @property
    def churn(self) -> int:
        return self.insertions + self.deletions

    @property
    def timestamp(self) -> int:
        """Unix seconds."""
        return int(self.authored_at.timestamp())

    @property
    def utc_date(self) -> date:
        return self.authored_at.astimezone(timezone.utc).date()

    @property
    def short_hash(self) -> str:
        return self.hash[:7]


@dataclass
class CommitBatch:
    """Commits in stream order (newest first), for correlation consumers."""

    commits: list[Commit] = field(default_factory=list)

    def by_hash(self) -> dict[str, Commit]:
        return {c.hash: c for c in self.commits}

    def __len__(self) -> int:
        return len(self.commits)
