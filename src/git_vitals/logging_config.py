"""
Logging configuration for git-vitals.

Library modules only call get_logger(). Handlers are installed once, by the
CLI, on the ``git_vitals`` logger rather than the root logger, so embedding
applications keep control of their own logging.

Log records go to the same stderr console as the progress spinner; rich
then redraws the spinner below each message instead of tearing it.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "git_vitals"

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    log_file: Optional[str] = None,
    console: Optional[Console] = None,
) -> logging.Logger:
    """
    Install handlers for one CLI run.

    Args:
        verbose: DEBUG level, source paths and locals in tracebacks
        quiet: ERROR level only (wins over verbose)
        log_file: Also append plain-text records to this file
        console: Console to log to (default: a new stderr console)

    Returns:
        The git_vitals logger
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    logger = logging.getLogger(ROOT_LOGGER)
    # Calling twice (tests, embedding) must not stack handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(
        RichHandler(
            console=console or Console(stderr=True),
            rich_tracebacks=True,
            tracebacks_show_locals=verbose,
            # Paths and refs contain brackets.
            markup=False,
            show_time=True,
            show_path=verbose,
            log_time_format="[%X]",
        )
    )

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)

    logger.setLevel(level)
    logger.propagate = False
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Logger namespaced under git_vitals.

    ``get_logger("pipeline")`` and ``get_logger("git_vitals.pipeline")`` are
    the same logger; None returns the package logger.
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER)
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
