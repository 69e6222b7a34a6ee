"""
ReliefWatch - Logging Configuration

Application records go to stdout. Report image verification runs detached
from any request, so its logger has its own level and, when
`verification_log_file` is set, its own file as well.
"""

import logging
import sys
from functools import lru_cache
from typing import Optional

from reliefwatch.core.config import Settings, settings as default_settings
from reliefwatch.core.constants import APP_LOGGER_NAME, VERIFICATION_LOGGER_NAME

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Chatty at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine")

# Marks handlers installed here, so a second setup replaces them
_HANDLER_MARK = "_reliefwatch_handler"


def _parse_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level


def _install_handler(logger: logging.Logger, handler: Optional[logging.Handler]) -> None:
    for existing in list(logger.handlers):
        if getattr(existing, _HANDLER_MARK, False):
            logger.removeHandler(existing)
            existing.close()

    if handler is not None:
        setattr(handler, _HANDLER_MARK, True)
        logger.addHandler(handler)


def setup_verification_logging(
    config: Optional[Settings] = None,
    formatter: Optional[logging.Formatter] = None,
) -> logging.Logger:
    """
    Configure the background verification logger.

    Records still propagate to the application logger; the optional file
    handler only receives verification records.
    """
    config = config or default_settings
    logger = logging.getLogger(VERIFICATION_LOGGER_NAME)
    logger.setLevel(_parse_level(config.verification_log_level))

    handler = None
    if config.verification_log_file:
        handler = logging.FileHandler(config.verification_log_file, encoding="utf-8")
        handler.setFormatter(formatter or logging.Formatter(DEFAULT_FORMAT, datefmt=DATE_FORMAT))
    _install_handler(logger, handler)

    return logger


def setup_logging(
    level: Optional[str] = None,
    format_string: Optional[str] = None,
    config: Optional[Settings] = None,
) -> logging.Logger:
    """
    Configure and return the application logger.

    Safe to call more than once: handlers from an earlier call are replaced.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL); defaults to settings
        format_string: Custom format string for log messages
        config: Settings to read levels and the verification log file from

    Returns:
        The "reliefwatch" logger
    """
    config = config or default_settings
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT, datefmt=DATE_FORMAT)

    logger = logging.getLogger(APP_LOGGER_NAME)
    logger.setLevel(_parse_level(level or config.log_level))
    stream = logging.StreamHandler(sys.stdout)
    stream.setFormatter(formatter)
    _install_handler(logger, stream)

    setup_verification_logging(config, formatter)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


@lru_cache()
def get_logger(name: str = APP_LOGGER_NAME) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)
