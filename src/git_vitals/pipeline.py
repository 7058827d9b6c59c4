"""One analysis run, as a pull-driven chain of generators.

    git log stdout -> records -> commits -> ScoringEngine.fold()

Each stage asks the previous one for the next item, so at most one chunk,
one pending record and one commit are in flight at a time. The only place
that blocks is the read from the child's stdout.

A run ends in one of four ways:

- the stream is exhausted: full report
- the cancellation token trips (or Ctrl-C): partial report, ``canceled``
- the time budget expires: partial report, ``timed_out``; fatal if no
  commit was recovered
- too many unparsable records: reading stops, partial report
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Iterable, Iterator, Optional, Union

from .config import AnalysisOptions
from .diagnostics import DiagnosticsCollector
from .exceptions import SourceTimeoutError, SourceUnavailableError
from .exceptions.taxonomy import ErrorCode
from .ingest.parser import CommitParser
from .ingest.reconstruct import RecordReconstructor
from .ingest.source import GitLogSource, ProcessLogSource, RepositoryInfo, SourceStatus
from .models import Commit
from .report import AnalysisReport, build_report
from .runtime import RunContext
from .scoring.engine import ScoringEngine

PROGRESS_EVERY = 500

LogSource = Union[GitLogSource, ProcessLogSource]


class AnalysisPipeline:
    """Runs the source, reconstructor, parser and engine for one repository."""

    def __init__(
        self,
        options: Optional[AnalysisOptions] = None,
        context: Optional[RunContext] = None,
        source: Optional[LogSource] = None,
    ):
        self.options = options or AnalysisOptions()
        self.context = context or RunContext()
        self.diagnostics = DiagnosticsCollector()
        # Weights are validated here, before git is started.
        self.engine = ScoringEngine(self.options, self.diagnostics)
        self.source = source or GitLogSource(self.options, self.context)
        self.reconstructor = RecordReconstructor(self.diagnostics)
        self.parser = CommitParser(self.diagnostics)
        self.repository: Optional[RepositoryInfo] = None
        self.error_limit_reached = False

    @property
    def status(self) -> SourceStatus:
        return self.source.status

    def iter_records(self) -> Iterator[bytes]:
        for chunk in self.source:
            yield from self.reconstructor.feed(chunk)
        for record in self.reconstructor.finish():
            if self.status.completed:
                yield record
            else:
                # Only the next boundary or a clean exit proves a record is whole;
                # after a kill or failure the numstat block may stop at any line.
                self.diagnostics.add(
                    ErrorCode.GV105,
                    f"dropped a {len(record)}-byte trailing record that git did not finish",
                    record_index=self.reconstructor.records_emitted - 1,
                )

    def iter_commits(self, records: Optional[Iterable[bytes]] = None) -> Iterator[Commit]:
        """Parse records into commits, skipping (and recording) bad ones."""
        limit = self.options.max_parse_errors
        for index, record in enumerate(records if records is not None else self.iter_records()):
            commit = self.parser.parse_or_warn(record, index)
            if commit is not None:
                yield commit
            elif limit is not None and self.parser.rejected > limit:
                self.error_limit_reached = True
                self.diagnostics.add(
                    ErrorCode.GV305,
                    f"more than {limit} unparsable records, stopped reading",
                    record_index=index,
                )
                return

    def run(self) -> AnalysisReport:
        """Execute the run and build the report.

        Raises:
            SourceUnavailableError: If git cannot be run against the path, or
                git log fails before producing a single commit
            SourceTimeoutError: If the time budget expires with zero commits
            InvalidWeightsError: If any weight set is invalid
        """
        started_at = datetime.now(timezone.utc)
        t0 = time.monotonic()
        ctx = self.context

        if isinstance(self.source, GitLogSource):
            self.repository = self.source.preflight()
            ctx.logger.info("Analyzing %s", self.repository.path)

        self.engine.begin()
        ctx.progress.start("Reading history")
        interrupted = False
        commits = self.iter_commits()
        try:
            for commit in commits:
                self.engine.fold(commit)
                folded = self.engine.folded
                if folded % PROGRESS_EVERY == 0:
                    ctx.progress.advance(folded, self.status.bytes_read)
        except KeyboardInterrupt:
            interrupted = True
            ctx.cancel_token.cancel("interrupted")
        finally:
            commits.close()
            ctx.progress.finish(self.engine.folded)

        canceled = interrupted or ctx.canceled or self.status.canceled
        self._record_source_status(canceled)

        result = self.engine.score()
        status = self.status
        partial = canceled or status.timed_out or status.failed or self.error_limit_reached

        duration = time.monotonic() - t0
        ctx.logger.info(
            "Analyzed %d commits in %.2fs (%d warnings)",
            self.engine.folded,
            duration,
            self.diagnostics.count,
        )
        return build_report(
            result,
            self.options,
            self.diagnostics,
            repository=self.repository,
            canceled=canceled,
            partial=partial,
            timed_out=status.timed_out,
            started_at=started_at,
            duration_seconds=duration,
        )

    def _record_source_status(self, canceled: bool) -> None:
        """Turn how the child process ended into warnings or a fatal error."""
        status = self.status
        folded = self.engine.folded
        where = self.repository.path if self.repository else self.options.repo_path

        if status.timed_out:
            if folded == 0:
                raise SourceTimeoutError(self.options.timeout_seconds, where)
            self.diagnostics.add(
                ErrorCode.GV103,
                f"git log killed after {self.options.timeout_seconds:g}s; "
                f"{folded} commits recovered",
            )
        elif canceled:
            reason = self.context.cancel_token.reason or "canceled"
            self.diagnostics.add(
                ErrorCode.GV104, f"{reason}; {folded} commits recovered before stopping"
            )
        elif status.failed:
            detail = status.stderr.splitlines()[-1] if status.stderr else ""
            if self.parser.parsed == 0:
                raise SourceUnavailableError(
                    where, detail or f"git log exited with code {status.returncode}"
                )
            self.diagnostics.add(
                ErrorCode.GV102,
                f"git log exited with code {status.returncode} after {folded} commits"
                + (f": {detail}" if detail else ""),
            )
