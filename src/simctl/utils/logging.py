"""Logging setup shared by simrun, simsync and simctl.

Every module logs through ``logging.getLogger(__name__)`` below the
``simctl`` logger configured here. The console shows messages at the level
picked by ``-v``/``-q`` or the config file; the optional log file always
records everything down to DEBUG, so a quiet run still leaves a full trace.
"""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from ..config.settings import LoggingConfig
from ..core.errors import ConfigurationError

LOGGER_NAME = "simctl"

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def console_level(level: str = "INFO", verbose: bool = False, quiet: bool = False) -> int:
    """Return the console log level for the configured level and CLI flags.

    ``--quiet`` wins over ``--verbose``, and both win over the config file.

    Raises:
        ConfigurationError: If ``level`` is not a logging level name
    """
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG

    numeric = logging.getLevelName(str(level).upper())
    if not isinstance(numeric, int):
        raise ConfigurationError(f"unknown log level '{level}'")
    return numeric


def setup_logging(
    config: Optional[LoggingConfig] = None,
    verbose: bool = False,
    quiet: bool = False,
    console: Optional[Console] = None,
) -> logging.Logger:
    """Configure the ``simctl`` logger for one command invocation.

    Args:
        config: The ``logging`` section of simctl.yaml (defaults if None)
        verbose: ``-v`` was given
        quiet: ``-q`` was given
        console: Rich console for terminal output (stderr if None)

    Returns:
        The configured ``simctl`` logger

    Raises:
        ConfigurationError: If the configured level is unknown or the log file
            cannot be opened
    """
    config = config or LoggingConfig()
    level = console_level(config.level, verbose=verbose, quiet=quiet)

    logger = logging.getLogger(LOGGER_NAME)

    # Repeated CLI invocations in one process must not stack handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    rich_handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    rich_handler.setLevel(level)
    rich_handler.setFormatter(logging.Formatter(fmt="%(message)s", datefmt="[%X]"))
    logger.addHandler(rich_handler)

    if config.file:
        log_file = Path(config.file).expanduser()
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
        except OSError as e:
            raise ConfigurationError(f"cannot open log file {log_file}: {e}") from e
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=FILE_DATE_FORMAT))
        logger.addHandler(file_handler)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(level)

    return logger
