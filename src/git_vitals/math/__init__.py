"""Mathematical primitives for contribution analysis."""

from .entropy import Entropy
from .gini import Gini
from .statistics import RunningStats, Statistics

__all__ = ["Entropy", "Gini", "RunningStats", "Statistics"]
