"""Run context threaded through one analysis.

The RunContext replaces process-wide state: it carries the logger the
pipeline writes to, the cancellation token a caller (or a signal handler)
can trip, and the sink that receives progress updates. Every stage takes
the context explicitly, so two analyses in one process never interfere.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

from .logging_config import get_logger


class CancellationToken:
    """Thread-safe, one-shot cancellation flag.

    Callbacks registered with on_cancel() run exactly once, either when
    cancel() is called or immediately if the token is already canceled.
    The log source uses this to kill its child process from whatever
    thread trips the token.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []
        self.reason: Optional[str] = None

    @property
    def canceled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "canceled") -> None:
        with self._lock:
            if self._event.is_set():
                return
            self.reason = reason
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a callback; returns a function that unregisters it."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)

                def _remove() -> None:
                    with self._lock:
                        if callback in self._callbacks:
                            self._callbacks.remove(callback)

                return _remove
        callback()
        return lambda: None

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)


class ProgressSink(Protocol):
    """Receives pipeline progress. Implementations must be cheap."""

    def start(self, description: str) -> None: ...

    def advance(self, commits: int, bytes_read: int) -> None: ...

    def finish(self, commits: int) -> None: ...


class NullProgress:
    """No-op sink for tests, the library API and --quiet mode."""

    def start(self, description: str) -> None:
        pass

    def advance(self, commits: int, bytes_read: int) -> None:
        pass

    def finish(self, commits: int) -> None:
        pass


@dataclass
class RunContext:
    """Logger, cancellation token and progress sink for one run."""

    logger: logging.Logger = field(default_factory=lambda: get_logger("pipeline"))
    cancel_token: CancellationToken = field(default_factory=CancellationToken)
    progress: ProgressSink = field(default_factory=NullProgress)

    @property
    def canceled(self) -> bool:
        return self.cancel_token.canceled
