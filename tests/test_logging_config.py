"""Tests for the package logging setup."""

import logging

from flashcard_srs.logging_config import PACKAGE_LOGGER, _root_unconfigured, get_logger


def _record():
    return logging.LogRecord(PACKAGE_LOGGER, logging.WARNING, __file__, 1, "msg", None, None)


def test_module_loggers_share_one_package_handler():
    first = get_logger("flashcard_srs.fsrs.one")
    second = get_logger("flashcard_srs.fsrs.two")
    get_logger("flashcard_srs.fsrs.one")

    assert first.handlers == [] and second.handlers == []
    assert first.propagate and second.propagate
    assert len(logging.getLogger(PACKAGE_LOGGER).handlers) == 1


def test_package_handler_yields_to_configured_root(monkeypatch):
    root = logging.getLogger()

    monkeypatch.setattr(root, "handlers", [])
    assert _root_unconfigured(_record())

    monkeypatch.setattr(root, "handlers", [logging.NullHandler()])
    assert not _root_unconfigured(_record())


def test_explicit_level():
    logger = get_logger("flashcard_srs.fsrs.verbose", level=logging.DEBUG)
    assert logger.level == logging.DEBUG
    assert get_logger("flashcard_srs.fsrs.quiet").level == logging.NOTSET
