"""Console logging for the stateless session service.

Every module logs through ``logging.getLogger(__name__)``; this module only
attaches one stdout handler to the package logger and applies the level
from ``LOG_LEVEL``.
"""
import logging
import sys
from typing import Tuple, Union

from stateless_session.config import SessionConfig

PACKAGE_LOGGER = "stateless_session"
HANDLER_NAME = "stateless_session.console"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_level(level: Union[str, int]) -> Tuple[int, bool]:
    """Turn a configured level into a logging constant.

    Args:
        level: Level name such as "debug" or "WARNING", or a numeric level

    Returns:
        Tuple of (level, recognized); unknown names resolve to INFO
    """
    if isinstance(level, int):
        return level, True
    resolved = logging.getLevelNamesMapping().get(level.strip().upper())
    if resolved is None:
        return logging.INFO, False
    return resolved, True


def configure_logging(config: SessionConfig) -> logging.Logger:
    """Send the package's log records to stdout at the configured level.

    Safe to call on every application startup: the console handler is
    installed once and later calls only change its level.

    Args:
        config: Session configuration carrying ``log_level``

    Returns:
        The package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    level, recognized = resolve_level(config.log_level)

    handler = next((h for h in logger.handlers if h.name == HANDLER_NAME), None)
    if handler is None:
        handler = logging.StreamHandler(sys.stdout)
        handler.name = HANDLER_NAME
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False

    logger.setLevel(level)
    handler.setLevel(level)

    if not recognized:
        logger.warning(f"Unknown LOG_LEVEL {config.log_level!r}, logging at INFO")
    return logger
