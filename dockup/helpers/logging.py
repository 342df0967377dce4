"""
Logging setup for dockup.

Modules obtain loggers through get_logger(__name__); the CLI calls
setup_logging() once per invocation.
"""

import logging
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler

from .constants import LOG_FORMAT, LOG_DATE_FORMAT

ROOT_LOGGER = 'dockup'


def get_logger(name: str) -> logging.Logger:
    """Return a module logger below the dockup root logger."""
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def setup_logging(level: str = 'INFO', log_file: Optional[Path] = None) -> logging.Logger:
    """
    Configure the dockup root logger.

    Console output goes through rich; a plain-text file handler is added
    when log_file is given.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ...)
        log_file: Optional path of a log file

    Returns:
        The configured root logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Re-running setup (e.g. in tests) must not stack handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        show_path=False,
        rich_tracebacks=False,
        markup=False,
    )
    console_handler.setFormatter(logging.Formatter('%(message)s'))
    logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file).expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
        logger.addHandler(file_handler)

    return logger
