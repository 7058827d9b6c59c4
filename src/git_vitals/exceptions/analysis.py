"""Pipeline exceptions: record parsing and scoring engine state."""

from typing import Optional

from .base import GitVitalsError
from .taxonomy import ErrorCode


class AnalysisError(GitVitalsError):
    """Base class for errors raised inside the ingestion pipeline."""

    pass


class RecordParseError(AnalysisError):
    """Raised when a raw record cannot be turned into a Commit.

    Always caught by the pipeline and recorded as a warning.
    """

    def __init__(
        self,
        reason: str,
        code: ErrorCode = ErrorCode.GV300,
        record_index: Optional[int] = None,
        commit_hash: Optional[str] = None,
    ):
        details = {"code": code.value}
        if record_index is not None:
            details["record"] = str(record_index)
        if commit_hash:
            details["commit"] = commit_hash
        super().__init__(f"Cannot parse record: {reason}", details=details)
        self.reason = reason
        self.code = code
        self.record_index = record_index
        self.commit_hash = commit_hash


class EngineStateError(AnalysisError):
    """Raised on an illegal scoring engine state transition."""

    def __init__(self, current: str, requested: str):
        super().__init__(
            f"Cannot move scoring engine from {current} to {requested}",
            details={"current": current, "requested": requested},
        )
        self.current = current
        self.requested = requested
