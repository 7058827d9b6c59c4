"""Stream raw git log output from a child process.

The child's stdout is read in bounded chunks with read1(), which is the only
place the pipeline blocks. Nothing is buffered beyond the chunk handed to
the caller, so the consumer's pace is the reader's pace.

Two things can stop the child early: the wall-clock timer and the run's
cancellation token. Both kill the process, after which read1() returns the
bytes already in the pipe and then EOF, so the reader can never deadlock
on an unread pipe.
"""

from __future__ import annotations

import collections
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Iterator, Optional, Sequence

from ..config import AnalysisOptions
from ..exceptions import SourceUnavailableError
from ..logging_config import get_logger
from ..runtime import RunContext
from .log_format import build_log_args

logger = get_logger(__name__)

_STDERR_TAIL_BYTES = 16 * 1024
_QUERY_TIMEOUT = 15


@dataclass
class SourceStatus:
    """What happened to the child process, filled in as the stream ends."""

    started: bool = False
    returncode: Optional[int] = None
    stderr: str = ""
    bytes_read: int = 0
    chunks_read: int = 0
    timed_out: bool = False
    canceled: bool = False
    stopped_early: bool = False

    @property
    def completed(self) -> bool:
        return self.returncode == 0 and not (self.timed_out or self.canceled or self.stopped_early)

    @property
    def failed(self) -> bool:
        """Exited non-zero on its own (not killed by us)."""
        return (
            self.returncode not in (None, 0)
            and not (self.timed_out or self.canceled or self.stopped_early)
        )


class ProcessLogSource:
    """Iterate over the stdout of one child process in raw byte chunks."""

    def __init__(
        self,
        argv: Sequence[str],
        cwd: Optional[str] = None,
        timeout_seconds: float = 300.0,
        chunk_size: int = 64 * 1024,
        context: Optional[RunContext] = None,
    ):
        self.argv = list(argv)
        self.cwd = cwd
        self.timeout_seconds = timeout_seconds
        self.chunk_size = chunk_size
        self.context = context or RunContext()
        self.status = SourceStatus()
        self._lock = threading.RLock()

    def __iter__(self) -> Iterator[bytes]:
        try:
            proc = subprocess.Popen(
                self.argv,
                cwd=self.cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except FileNotFoundError:
            raise SourceUnavailableError(self.cwd or ".", f"executable not found: {self.argv[0]}")
        except OSError as e:
            raise SourceUnavailableError(self.cwd or ".", f"cannot start {self.argv[0]}: {e}")

        self.status.started = True
        logger.debug("Started %s (pid %d)", " ".join(self.argv[:8]), proc.pid)

        stderr_tail: collections.deque[bytes] = collections.deque()
        stderr_thread = threading.Thread(
            target=_drain, args=(proc.stderr, stderr_tail), daemon=True
        )
        stderr_thread.start()

        timer = threading.Timer(self.timeout_seconds, self._expire, args=(proc,))
        timer.daemon = True
        timer.start()
        token = self.context.cancel_token
        unregister = token.on_cancel(lambda: self._kill(proc, canceled=True))

        stdout = proc.stdout
        assert stdout is not None
        eof = False
        try:
            while not token.canceled:
                chunk = stdout.read1(self.chunk_size)
                if not chunk:
                    eof = True
                    break
                self.status.bytes_read += len(chunk)
                self.status.chunks_read += 1
                yield chunk
        finally:
            timer.cancel()
            unregister()
            if not eof and proc.poll() is None:
                if not (self.status.timed_out or self.status.canceled):
                    # Consumer stopped pulling before EOF.
                    self.status.stopped_early = True
                self._kill(proc)
            stdout.close()
            proc.wait()
            stderr_thread.join(timeout=5)
            self.status.returncode = proc.returncode
            self.status.stderr = b"".join(stderr_tail).decode("utf-8", errors="replace").strip()
            logger.debug(
                "Log source finished: rc=%s bytes=%d timed_out=%s canceled=%s",
                proc.returncode,
                self.status.bytes_read,
                self.status.timed_out,
                self.status.canceled,
            )

    def _expire(self, proc: subprocess.Popen) -> None:
        with self._lock:
            if proc.poll() is not None:
                return
            self.status.timed_out = True
        logger.warning("git log exceeded %.1fs, killing it", self.timeout_seconds)
        self._kill(proc)

    def _kill(self, proc: subprocess.Popen, canceled: bool = False) -> None:
        with self._lock:
            if canceled and proc.poll() is None:
                self.status.canceled = True
            try:
                proc.kill()
            except ProcessLookupError:
                pass


def _drain(stream: Optional[IO[bytes]], tail: collections.deque) -> None:
    """Read stderr to EOF so the child never blocks on it, keeping the tail."""
    if stream is None:
        return
    size = 0
    try:
        for line in iter(lambda: stream.read(4096), b""):
            tail.append(line)
            size += len(line)
            while size > _STDERR_TAIL_BYTES and len(tail) > 1:
                size -= len(tail.popleft())
    finally:
        stream.close()


@dataclass(frozen=True)
class RepositoryInfo:
    path: str
    git_version: str
    head: Optional[str]
    branch: Optional[str]

    @property
    def is_empty(self) -> bool:
        return self.head is None


class GitLogSource:
    """The single read-only ``git log`` query for one analysis run."""

    def __init__(
        self,
        options: AnalysisOptions,
        context: Optional[RunContext] = None,
        git_binary: str = "git",
    ):
        self.options = options
        self.context = context or RunContext()
        self.git_binary = git_binary
        self.repo_path = Path(options.repo_path).expanduser().resolve()
        self.info: Optional[RepositoryInfo] = None
        self._process: Optional[ProcessLogSource] = None

    @property
    def status(self) -> SourceStatus:
        if self._process is None:
            return SourceStatus()
        return self._process.status

    def argv(self) -> list[str]:
        return [self.git_binary, "-C", str(self.repo_path), *build_log_args(self.options)]

    def preflight(self) -> RepositoryInfo:
        """Validate the path, the git binary and the repository.

        Raises:
            SourceUnavailableError: If any check fails
        """
        if self.info is not None:
            return self.info

        path = self.repo_path
        if not path.exists():
            raise SourceUnavailableError(path, "path does not exist")
        if not path.is_dir():
            raise SourceUnavailableError(path, "path is not a directory")

        version = self._query(["--version"], "git executable not usable")
        if version is None:
            raise SourceUnavailableError(path, "git executable not usable")

        if self._query(["-C", str(path), "rev-parse", "--git-dir"], None) is None:
            raise SourceUnavailableError(path, "not a git repository")

        head = self._query(["-C", str(path), "rev-parse", "--verify", "--quiet", "HEAD"], None)
        branch = self._query(["-C", str(path), "symbolic-ref", "--short", "-q", "HEAD"], None)

        self.info = RepositoryInfo(
            path=str(path),
            git_version=version,
            head=head or None,
            branch=branch or None,
        )
        logger.debug("Repository %s: head=%s branch=%s", path, self.info.head, self.info.branch)
        return self.info

    def __iter__(self) -> Iterator[bytes]:
        info = self.preflight()
        if info.is_empty and not self.options.branches:
            logger.info("Repository has no commits yet")
            return

        self._process = ProcessLogSource(
            self.argv(),
            cwd=str(self.repo_path),
            timeout_seconds=self.options.timeout_seconds,
            chunk_size=self.options.chunk_size,
            context=self.context,
        )
        yield from self._process

    def _query(self, args: list[str], failure: Optional[str]) -> Optional[str]:
        """Run a short read-only git command; None when it exits non-zero."""
        try:
            result = subprocess.run(
                [self.git_binary, *args],
                capture_output=True,
                text=True,
                timeout=_QUERY_TIMEOUT,
                stdin=subprocess.DEVNULL,
            )
        except FileNotFoundError:
            raise SourceUnavailableError(self.repo_path, f"executable not found: {self.git_binary}")
        except subprocess.TimeoutExpired:
            raise SourceUnavailableError(self.repo_path, f"git {args[-1]} did not respond")
        except OSError as e:
            raise SourceUnavailableError(self.repo_path, failure or str(e))
        if result.returncode != 0:
            return None
        return result.stdout.strip()
