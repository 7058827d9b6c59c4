"""Public API for git-vitals.

Example:
    >>> from git_vitals import analyze
    >>>
    >>> report = analyze("/path/to/repo")
    >>> report.repository["bus_factor"]
    2
    >>>
    >>> # Last 90 days on main, with co-change coupling
    >>> report = analyze("/path/to/repo", days=90, branches=["main"], heavy=True)
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from .config import load_config
from .logging_config import get_logger
from .pipeline import AnalysisPipeline
from .report import AnalysisReport
from .runtime import RunContext

logger = get_logger(__name__)


def analyze(
    path: str = ".",
    config_file: Optional[Path] = None,
    context: Optional[RunContext] = None,
    **overrides,
) -> AnalysisReport:
    """Analyze the history of one repository and return the report.

    Configuration is resolved the same way as for the CLI: defaults, then
    ~/.git-vitals.toml, <path>/.git-vitals.toml, the explicit config file,
    GIT_VITALS_* environment variables and finally ``overrides``.

    Args:
        path: Repository working tree (default: current directory)
        config_file: Optional explicit config file path
        context: Run context carrying the cancellation token and progress
            sink; a fresh one is created when omitted
        **overrides: AnalysisOptions fields (since=..., heavy=True, ...)

    Returns:
        AnalysisReport; check ``report.partial`` for runs that stopped early

    Raises:
        InvalidConfigError: If configuration is invalid
        InvalidWeightsError: If a weight set does not sum to 1.0
        SourceUnavailableError: If the repository cannot be read
        SourceTimeoutError: If git produced no commit within the time budget
    """
    overrides["repo_path"] = str(path)
    options = load_config(config_file=config_file, **overrides)
    logger.debug("Configuration loaded for %s", options.repo_path)
    return AnalysisPipeline(options, context).run()
