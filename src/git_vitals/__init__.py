"""
git-vitals - Streaming git history analytics

Reads a repository's history through a single git log stream and folds it
into per-file risk, commit governance, ownership concentration and team
health scores, in memory bounded by the number of distinct files, authors
and days rather than the number of commits.
"""

__version__ = "0.1.0"
__author__ = "Naman Agarwal"

from .api import analyze
from .config import AnalysisOptions, ThresholdConfig, load_config
from .exceptions import GitVitalsError
from .pipeline import AnalysisPipeline
from .report import AnalysisReport
from .runtime import CancellationToken, RunContext
from .scoring import ScoringEngine, ScoringResult

__all__ = [
    "analyze",  # Main entry point
    "AnalysisPipeline",  # Advanced usage (custom sources, progress)
    "AnalysisReport",
    "AnalysisOptions",
    "ThresholdConfig",
    "load_config",
    "RunContext",
    "CancellationToken",
    "ScoringEngine",
    "ScoringResult",
    "GitVitalsError",
]
