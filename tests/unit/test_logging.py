"""Unit tests for logging setup."""

import io
import logging

import pytest
from rich.console import Console

from simctl.config.settings import LoggingConfig
from simctl.core.errors import ConfigurationError
from simctl.utils.logging import console_level, setup_logging

pytestmark = pytest.mark.unit


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=200)


@pytest.fixture(autouse=True)
def reset_simctl_logger():
    yield
    logger = logging.getLogger("simctl")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


class TestConsoleLevel:
    def test_config_level(self):
        assert console_level("warning") == logging.WARNING

    def test_verbose(self):
        assert console_level("ERROR", verbose=True) == logging.DEBUG

    def test_quiet_wins_over_verbose(self):
        assert console_level("DEBUG", verbose=True, quiet=True) == logging.ERROR

    def test_unknown_level(self):
        with pytest.raises(ConfigurationError, match="unknown log level 'LOUD'"):
            console_level("LOUD")


class TestSetupLogging:
    def test_console_respects_level(self, console):
        logger = setup_logging(LoggingConfig(level="WARNING"), console=console)

        logging.getLogger("simctl.core.rundir").info("allocated output-0000")
        logger.warning("run directory exists")

        output = console.file.getvalue()
        assert "run directory exists" in output
        assert "allocated output-0000" not in output

    def test_file_records_debug_while_console_is_quiet(self, console, tmp_path):
        log_file = tmp_path / "logs" / "simctl.log"

        setup_logging(LoggingConfig(file=str(log_file)), quiet=True, console=console)
        logging.getLogger("simctl.core.sync").debug("rsync -avz src/ dst/")

        assert "rsync -avz src/ dst/" in log_file.read_text()
        assert "DEBUG" in log_file.read_text()
        assert console.file.getvalue() == ""

    def test_repeated_setup_does_not_stack_handlers(self, console):
        setup_logging(console=console)
        logger = setup_logging(console=console)

        assert len(logger.handlers) == 1

    def test_unwritable_log_file(self, console, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")

        with pytest.raises(ConfigurationError, match="cannot open log file"):
            setup_logging(LoggingConfig(file=str(blocker / "simctl.log")), console=console)
