"""Tests for logging setup."""

import io
import logging

import pytest
from rich.console import Console
from rich.logging import RichHandler

from git_vitals.logging_config import ROOT_LOGGER, get_logger, setup_logging


@pytest.fixture(autouse=True)
def restore_package_logger():
    logger = logging.getLogger(ROOT_LOGGER)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate


class TestSetupLogging:
    @pytest.mark.parametrize(
        "verbose,quiet,level",
        [
            (False, False, logging.WARNING),
            (True, False, logging.DEBUG),
            (False, True, logging.ERROR),
            (True, True, logging.ERROR),
        ],
    )
    def test_levels(self, verbose, quiet, level):
        logger = setup_logging(verbose=verbose, quiet=quiet)
        assert logger.name == ROOT_LOGGER
        assert logger.level == level

    def test_repeated_calls_do_not_stack_handlers(self):
        setup_logging()
        logger = setup_logging(verbose=True)
        assert sum(isinstance(h, RichHandler) for h in logger.handlers) == 1

    def test_records_reach_given_console(self):
        console = Console(file=io.StringIO(), record=True, width=200)
        setup_logging(console=console)
        get_logger("pipeline").warning("git log exceeded [10s]")
        assert "git log exceeded [10s]" in console.export_text()

    def test_log_file(self, tmp_path):
        target = tmp_path / "run.log"
        setup_logging(verbose=True, log_file=str(target), console=Console(file=io.StringIO()))
        get_logger("ingest.source").debug("Started git log")
        for handler in logging.getLogger(ROOT_LOGGER).handlers:
            handler.flush()
        text = target.read_text(encoding="utf-8")
        assert "git_vitals.ingest.source - DEBUG - Started git log" in text


class TestGetLogger:
    def test_namespaced(self):
        assert get_logger("ingest.parser").name == "git_vitals.ingest.parser"

    def test_already_namespaced(self):
        assert get_logger("git_vitals.report").name == "git_vitals.report"

    def test_root(self):
        assert get_logger().name == ROOT_LOGGER
