"""
Logging for flashcard_srs.

Module loggers are children of the "flashcard_srs" package logger and
propagate to it. The package logger owns one stream handler, which stays
silent once the application configures the root logger, so a record is
never written twice.

Environment variables:
    FLASHCARD_SRS_LOG_LEVEL  package log level (default WARNING)
"""

from __future__ import annotations

import logging
import os

PACKAGE_LOGGER = "flashcard_srs"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _root_unconfigured(record: logging.LogRecord) -> bool:
    return not logging.getLogger().handlers


def _env_level() -> int:
    level = logging.getLevelName(os.getenv("FLASHCARD_SRS_LOG_LEVEL", "WARNING").upper())
    return level if isinstance(level, int) else logging.WARNING


def _package_logger() -> logging.Logger:
    package = logging.getLogger(PACKAGE_LOGGER)
    if not package.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
        handler.addFilter(_root_unconfigured)
        package.addHandler(handler)
        package.setLevel(_env_level())
    return package


def get_logger(name: str, level: int | None = None) -> logging.Logger:
    """Module logger under the package logger.

    Args:
        name: Usually __name__
        level: Optional level for this logger only; otherwise the package
            level applies
    """
    _package_logger()
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger


__all__ = ["get_logger", "PACKAGE_LOGGER"]
