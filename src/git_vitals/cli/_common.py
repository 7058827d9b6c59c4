"""Shared CLI helpers."""

from pathlib import Path
from typing import Any, Optional

from rich.console import Console

from ..config import AnalysisOptions, load_config

console = Console()
err_console = Console(stderr=True)


class ExitCode:
    """Process exit codes."""

    SUCCESS = 0
    ERROR = 1
    INTERRUPTED = 130


def score_color(score: float) -> str:
    """Color for a [0, 1] score where higher is better."""
    if score >= 0.7:
        return "green"
    if score >= 0.4:
        return "yellow"
    return "red"


def resolve_options(
    path: Path,
    config: Optional[Path] = None,
    since: Optional[str] = None,
    until: Optional[str] = None,
    days: Optional[int] = None,
    branch: Optional[list[str]] = None,
    author: Optional[str] = None,
    paths: Optional[list[str]] = None,
    max_count: Optional[int] = None,
    no_merges: bool = False,
    heavy: bool = False,
    timeout: Optional[float] = None,
    include_commits: bool = False,
) -> AnalysisOptions:
    """Build AnalysisOptions from CLI flags; unset flags leave config values alone."""
    overrides: dict[str, Any] = {
        "repo_path": str(path),
        "since": since,
        "until": until,
        "days": days,
        "author": author,
        "max_count": max_count,
        "timeout_seconds": timeout,
    }
    if branch:
        overrides["branches"] = list(branch)
    if paths:
        overrides["paths"] = list(paths)
    if no_merges:
        overrides["include_merges"] = False
    if heavy:
        overrides["heavy"] = True
    if include_commits:
        overrides["keep_commits"] = True
    return load_config(config_file=config, **overrides)
