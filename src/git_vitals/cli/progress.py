"""Live progress display while the history streams in."""

from __future__ import annotations

from rich.console import Console
from rich.progress import (
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)


def _format_bytes(size: int) -> str:
    value = float(size)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if value < 1024 or unit == "GiB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"


class RichProgress:
    """Spinner with commit and byte counters, drawn on stderr.

    Implements the ProgressSink protocol. The total is unknown until git
    finishes, so there is no bar.
    """

    def __init__(self, console: Console | None = None):
        self.console = console or Console(stderr=True)
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None

    def start(self, description: str) -> None:
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold]{task.description}"),
            TextColumn("[cyan]{task.fields[commits]}[/] commits"),
            TextColumn("[dim]{task.fields[size]}[/]"),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        )
        self._progress.start()
        self._task_id = self._progress.add_task(description, total=None, commits=0, size="0 B")

    def advance(self, commits: int, bytes_read: int) -> None:
        if self._progress is None or self._task_id is None:
            return
        self._progress.update(self._task_id, commits=commits, size=_format_bytes(bytes_read))

    def finish(self, commits: int) -> None:
        if self._progress is None:
            return
        if self._task_id is not None:
            self._progress.update(self._task_id, commits=commits)
        self._progress.stop()
        self._progress = None
        self._task_id = None
