"""Exception hierarchy for git-vitals."""

from .analysis import AnalysisError, EngineStateError, RecordParseError
from .base import GitVitalsError
from .config import (
    ConfigurationError,
    InvalidConfigError,
    InvalidWeightsError,
)
from .source import SourceError, SourceTimeoutError, SourceUnavailableError
from .taxonomy import ErrorCode, Stage

__all__ = [
    "GitVitalsError",
    "AnalysisError",
    "RecordParseError",
    "EngineStateError",
    "ConfigurationError",
    "InvalidConfigError",
    "InvalidWeightsError",
    "SourceError",
    "SourceUnavailableError",
    "SourceTimeoutError",
    "ErrorCode",
    "Stage",
]
