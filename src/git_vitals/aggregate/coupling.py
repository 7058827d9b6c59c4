"""Pairwise co-change counts for heavy mode.

Files are identified by the integer index the aggregator assigns when it
first sees a path, and each unordered pair is packed into one int key
(low index in the high bits). The pair map has a fixed budget: when it is
exceeded, the least-supported pairs are dropped, so memory stays bounded
no matter how long the history is.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from ..diagnostics import DiagnosticsCollector
from ..exceptions.taxonomy import ErrorCode
from ..logging_config import get_logger

logger = get_logger(__name__)

_SHIFT = 32
_MASK = (1 << _SHIFT) - 1


def pack_pair(a: int, b: int) -> int:
    if a > b:
        a, b = b, a
    return (a << _SHIFT) | b


def unpack_pair(key: int) -> tuple[int, int]:
    return key >> _SHIFT, key & _MASK


class FileIndex:
    """Arena of file paths: path -> dense int index."""

    def __init__(self) -> None:
        self._ids: dict[str, int] = {}
        self._paths: list[str] = []

    def intern(self, path: str) -> int:
        idx = self._ids.get(path)
        if idx is None:
            idx = len(self._paths)
            self._ids[path] = idx
            self._paths.append(path)
        return idx

    def get(self, path: str) -> Optional[int]:
        return self._ids.get(path)

    def path(self, idx: int) -> str:
        return self._paths[idx]

    def __len__(self) -> int:
        return len(self._paths)


@dataclass(frozen=True)
class CoupledPair:
    file_a: str
    file_b: str
    support: int  # commits touching both
    confidence_a_b: float  # P(B changed | A changed)
    confidence_b_a: float  # P(A changed | B changed)
    lift: float  # observed / expected under independence

    def to_dict(self) -> dict:
        return {
            "file_a": self.file_a,
            "file_b": self.file_b,
            "support": self.support,
            "confidence_a_b": round(self.confidence_a_b, 6),
            "confidence_b_a": round(self.confidence_b_a, 6),
            "lift": round(self.lift, 6),
        }


class CouplingMatrix:
    """Sparse co-change matrix keyed by packed file-index pairs."""

    def __init__(
        self,
        max_files_per_commit: int = 50,
        max_pairs: int = 200_000,
        diagnostics: Optional[DiagnosticsCollector] = None,
    ):
        self.max_files_per_commit = max_files_per_commit
        self.max_pairs = max_pairs
        self._diagnostics = diagnostics
        self.pairs: dict[int, int] = {}
        self.file_counts: Counter = Counter()  # index -> commits counted
        self.commits = 0
        self.skipped_wide_commits = 0
        self.pruned_pairs = 0
        self._prune_floor = 0

    def add_commit(self, indices: Iterable[int], commit_hash: Optional[str] = None) -> bool:
        """Count every pair of files in one commit. Returns False if skipped."""
        unique = sorted(set(indices))
        if len(unique) > self.max_files_per_commit:
            self.skipped_wide_commits += 1
            if self._diagnostics is not None and self.skipped_wide_commits == 1:
                self._diagnostics.add(
                    ErrorCode.GV402,
                    f"commits touching more than {self.max_files_per_commit} files "
                    "are left out of the coupling matrix",
                    commit_hash=commit_hash,
                )
            return False

        self.commits += 1
        for idx in unique:
            self.file_counts[idx] += 1

        pairs = self.pairs
        for i, a in enumerate(unique):
            high = a << _SHIFT
            for b in unique[i + 1 :]:
                key = high | b
                pairs[key] = pairs.get(key, 0) + 1

        if len(pairs) > self.max_pairs:
            self._prune()
        return True

    def _prune(self) -> None:
        """Drop the weakest pairs until the map is back to 3/4 of its budget."""
        target = (self.max_pairs * 3) // 4
        before = len(self.pairs)
        floor = self._prune_floor
        while len(self.pairs) > target:
            floor += 1
            self.pairs = {k: v for k, v in self.pairs.items() if v > floor}
        self._prune_floor = floor - 1
        removed = before - len(self.pairs)
        self.pruned_pairs += removed
        logger.debug("Coupling matrix pruned %d pairs (support <= %d)", removed, floor)
        if self._diagnostics is not None and self.pruned_pairs == removed:
            self._diagnostics.add(
                ErrorCode.GV401,
                f"coupling matrix exceeded {self.max_pairs} pairs; weakest pairs dropped",
            )

    def top_pairs(
        self, paths: Sequence[str] | FileIndex, limit: int = 20, min_support: int = 2
    ) -> list[CoupledPair]:
        """Strongest pairs by support, then lift; ties broken by path."""
        if self.commits == 0:
            return []
        resolve = paths.path if isinstance(paths, FileIndex) else paths.__getitem__
        candidates = []
        for key, support in self.pairs.items():
            if support < min_support:
                continue
            a, b = unpack_pair(key)
            count_a = self.file_counts[a]
            count_b = self.file_counts[b]
            lift = (support * self.commits) / (count_a * count_b) if count_a and count_b else 0.0
            path_a, path_b = sorted((resolve(a), resolve(b)))
            if path_a != resolve(a):
                count_a, count_b = count_b, count_a
            candidates.append(
                CoupledPair(
                    file_a=path_a,
                    file_b=path_b,
                    support=support,
                    confidence_a_b=support / count_a if count_a else 0.0,
                    confidence_b_a=support / count_b if count_b else 0.0,
                    lift=lift,
                )
            )
        candidates.sort(key=lambda p: (-p.support, -p.lift, p.file_a, p.file_b))
        return candidates[:limit]

    def __len__(self) -> int:
        return len(self.pairs)
