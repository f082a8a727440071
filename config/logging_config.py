"""
Logging configuration for Filter Sync.

All project loggers live under the ``filtersync`` namespace so one call to
``setup_logging`` routes every module's output. Level and log file default
to ``config.app`` (``LOG_LEVEL`` / ``LOG_FILE`` in the environment).
Console output goes to stderr because the replay tool writes its records
to stdout.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

from .settings import config

ROOT_LOGGER = "filtersync"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _resolve_level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def setup_logging(
    log_level: Optional[Union[str, int]] = None,
    log_file: Optional[Path] = None,
    log_to_console: bool = True,
) -> logging.Logger:
    """
    Configure the ``filtersync`` logger tree.

    Args:
        log_level: Level name or number; defaults to ``config.app.log_level``
        log_file: Optional log file; defaults to ``config.app.log_file``
        log_to_console: Whether to also log to stderr

    Returns:
        The configured ``filtersync`` logger

    Raises:
        ValueError: If ``log_level`` is not a known level name
    """
    level = _resolve_level(log_level if log_level is not None else config.app.log_level)
    log_file = log_file if log_file is not None else config.app.log_file

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)

    # Re-running setup replaces handlers rather than stacking them
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = []
    if log_to_console:
        handlers.append(logging.StreamHandler(sys.stderr))
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.debug(f"{config.app.name} {config.app.version} logging at {logging.getLevelName(level)}")
    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (will be prefixed with 'filtersync.')

    Returns:
        Logger instance
    """
    if name == ROOT_LOGGER:
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
