"""Incremental aggregation of the commit stream."""

from .aggregator import AggregateSnapshot, IncrementalAggregator, aggregate
from .coupling import CoupledPair, CouplingMatrix, FileIndex
from .stats import AuthorStats, DailyTimelineEntry, FileStats, RepositoryTotals

__all__ = [
    "AggregateSnapshot",
    "IncrementalAggregator",
    "aggregate",
    "CoupledPair",
    "CouplingMatrix",
    "FileIndex",
    "AuthorStats",
    "DailyTimelineEntry",
    "FileStats",
    "RepositoryTotals",
]
