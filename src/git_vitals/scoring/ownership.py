"""Bus factor and contribution inequality."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..math.gini import Gini


def rank_contributors(commit_counts: Mapping[str, int]) -> list[tuple[str, int]]:
    """Authors by commit count descending, ties broken by email."""
    return sorted(commit_counts.items(), key=lambda item: (-item[1], item[0]))


def bus_factor(commit_counts: Mapping[str, int], share: float = 0.5) -> int:
    """
    Smallest number of top contributors whose commits make up more than
    ``share`` of the total. An even two-way split therefore needs both authors.

    Returns 0 when there are no commits.
    """
    total = sum(commit_counts.values())
    if total <= 0:
        return 0
    cumulative = 0
    needed = 0
    for _, count in rank_contributors(commit_counts):
        cumulative += count
        needed += 1
        if cumulative > total * share:
            break
    return needed


@dataclass(frozen=True)
class OwnershipSummary:
    """Repository-wide ownership concentration.

    Neutral values on empty input: bus_factor 0, gini 0.0, top share 0.0,
    top contributor None.
    """

    bus_factor: int
    gini: float
    top_contributor: Optional[str]
    top_contributor_share: float
    contributors: int
    core_contributors: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "bus_factor": self.bus_factor,
            "gini": round(self.gini, 6),
            "top_contributor": self.top_contributor,
            "top_contributor_share": round(self.top_contributor_share, 6),
            "contributors": self.contributors,
            "core_contributors": list(self.core_contributors),
        }


def summarize_ownership(commit_counts: Mapping[str, int], share: float = 0.5) -> OwnershipSummary:
    ranked = rank_contributors(commit_counts)
    counts = [count for _, count in ranked]
    factor = bus_factor(commit_counts, share)
    return OwnershipSummary(
        bus_factor=factor,
        gini=Gini.gini_coefficient(counts) if counts else 0.0,
        top_contributor=ranked[0][0] if ranked else None,
        top_contributor_share=Gini.top_share(counts),
        contributors=len(ranked),
        core_contributors=tuple(email for email, _ in ranked[:factor]),
    )
