"""Append-only collector for recoverable anomalies.

Stages report anything they skipped or repaired here instead of raising.
The collector never throws: a diagnostic that cannot be formatted is still
recorded with a fallback message. Its contents become the report's
warnings verbatim, in the order they were added, so the warning list is
deterministic for a given input.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Any, Optional

from .exceptions.taxonomy import ErrorCode, Stage


@dataclass(frozen=True)
class Diagnostic:
    stage: Stage
    code: ErrorCode
    message: str
    record_index: Optional[int] = None
    commit_hash: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage.value,
            "code": self.code.value,
            "message": self.message,
            "record_index": self.record_index,
            "commit_hash": self.commit_hash,
        }

    def __str__(self) -> str:
        where = ""
        if self.commit_hash:
            where = f" commit {self.commit_hash[:12]}"
        elif self.record_index is not None:
            where = f" record #{self.record_index}"
        return f"[{self.code.value}] {self.stage.value}{where}: {self.message}"


class DiagnosticsCollector:
    """Append-only list of Diagnostic entries."""

    def __init__(self) -> None:
        self._entries: list[Diagnostic] = []

    def add(
        self,
        code: ErrorCode,
        message: Any,
        record_index: Optional[int] = None,
        commit_hash: Optional[str] = None,
        stage: Optional[Stage] = None,
    ) -> Diagnostic:
        try:
            text = str(message)
        except Exception:  # noqa: BLE001 - a diagnostic must never raise
            text = f"<unprintable {type(message).__name__}>"
        entry = Diagnostic(
            stage=stage or code.stage,
            code=code,
            message=text,
            record_index=record_index,
            commit_hash=commit_hash,
        )
        self._entries.append(entry)
        return entry

    def extend(self, entries: list[Diagnostic]) -> None:
        self._entries.extend(entries)

    @property
    def entries(self) -> tuple[Diagnostic, ...]:
        return tuple(self._entries)

    @property
    def count(self) -> int:
        return len(self._entries)

    @property
    def is_clean(self) -> bool:
        return not self._entries

    def by_stage(self) -> dict[str, int]:
        counts = Counter(d.stage.value for d in self._entries)
        return dict(sorted(counts.items()))

    def by_code(self) -> dict[str, int]:
        counts = Counter(d.code.value for d in self._entries)
        return dict(sorted(counts.items()))

    def to_list(self) -> list[dict[str, Any]]:
        return [d.to_dict() for d in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)
