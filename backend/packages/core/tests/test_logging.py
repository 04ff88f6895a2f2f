"""Tests for logging setup."""

import io
import sys

from ferry_core import get_logger, init_logging


def test_extra_fields_rendered(monkeypatch):
    stream = io.StringIO()
    monkeypatch.setattr(sys, "stderr", stream)
    init_logging("INFO")

    get_logger("ferry_core.tests").info("Object saved", extra={"id": 7, "type": "documents"})

    line = stream.getvalue()
    assert "INFO ferry.core.tests Object saved | id=7 type='documents'" in line


def test_follows_replaced_stderr(monkeypatch):
    first = io.StringIO()
    monkeypatch.setattr(sys, "stderr", first)
    logger = init_logging("INFO")
    first.close()

    second = io.StringIO()
    monkeypatch.setattr(sys, "stderr", second)
    init_logging("DEBUG")
    logger.debug("Second run")

    assert "Second run" in second.getvalue()
    assert sum(getattr(h, "_ferry_handler", False) for h in logger.handlers) == 1


def test_get_logger_names():
    assert get_logger("ferry_sources.csv_reader").name == "ferry.sources.csv_reader"
    assert get_logger("ferry.cli").name == "ferry.cli"
    assert get_logger("ferry").name == "ferry"
    assert get_logger("thirdparty").name == "ferry.thirdparty"
