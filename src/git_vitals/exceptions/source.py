"""Log source exceptions: missing tool, bad repository, timeouts."""

from pathlib import Path
from typing import Optional, Union

from .base import GitVitalsError


class SourceError(GitVitalsError):
    """Base class for errors raised while reading commit history."""

    pass


class SourceUnavailableError(SourceError):
    """Raised when the log command cannot be started against the path."""

    def __init__(self, path: Union[str, Path], reason: str):
        super().__init__(
            f"Log source unavailable: {path}",
            details={"path": str(path), "reason": reason},
        )
        self.path = path
        self.reason = reason


class SourceTimeoutError(SourceError):
    """Raised when the wall-clock budget expires before any commit was read."""

    def __init__(self, timeout_seconds: float, path: Optional[Union[str, Path]] = None):
        details = {"timeout_seconds": f"{timeout_seconds:g}"}
        if path is not None:
            details["path"] = str(path)
        super().__init__("git log timed out with zero commits recovered", details=details)
        self.timeout_seconds = timeout_seconds
        self.path = path
