"""Tests for logging setup."""

from __future__ import annotations

import logging

import pytest
from rich.console import Console
from rich.logging import RichHandler

from opsboard.observability import configure_logging


@pytest.fixture(autouse=True)
def _reset_logger():
    logger = logging.getLogger("opsboard")
    saved = (list(logger.handlers), logger.level)
    yield
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])


class TestConfigureLogging:
    def test_installs_rich_handler(self):
        configure_logging("DEBUG")
        logger = logging.getLogger("opsboard")
        assert logger.level == logging.DEBUG
        assert sum(isinstance(h, RichHandler) for h in logger.handlers) == 1

    def test_repeat_calls_do_not_stack(self):
        configure_logging("INFO")
        configure_logging("WARNING")
        logger = logging.getLogger("opsboard")
        assert logger.level == logging.WARNING
        assert sum(isinstance(h, RichHandler) for h in logger.handlers) == 1

    def test_case_insensitive(self):
        configure_logging("error")
        assert logging.getLogger("opsboard").level == logging.ERROR

    def test_unknown_level(self):
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging("LOUD")

    def test_module_loggers_routed(self):
        console = Console(width=200, force_terminal=False, color_system=None)
        configure_logging("INFO", console=console)
        with console.capture() as capture:
            logging.getLogger("opsboard.core.archival").info("archived %s", "p1")
        assert "archived p1" in capture.get()
