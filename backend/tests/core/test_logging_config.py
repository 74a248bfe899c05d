"""Unit tests for app.core.logging_config. No database required."""

from __future__ import annotations

import json
import logging
import sys

import pytest

from app.core.logging_config import JSONFormatter, configure_logging


def _record(msg="Created dynamic table %s", args=(7,), **extra):
    record = logging.LogRecord(
        name="app.services.dynamic_table_service",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=args,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_basic_fields(self):
        entry = json.loads(JSONFormatter().format(_record()))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "app.services.dynamic_table_service"
        assert entry["message"] == "Created dynamic table 7"
        assert "timestamp" in entry

    def test_known_extra_fields_included(self):
        entry = json.loads(JSONFormatter().format(_record(table_id=7, detail_page_id=3)))
        assert entry["table_id"] == 7
        assert entry["detail_page_id"] == 3
        assert "card_id" not in entry

    def test_unknown_extras_ignored(self):
        entry = json.loads(JSONFormatter().format(_record(password="secret")))
        assert "password" not in entry

    def test_exception_serialised(self):
        try:
            raise RuntimeError("db down")
        except RuntimeError:
            record = _record(msg="boom", args=())
            record.exc_info = sys.exc_info()
        entry = json.loads(JSONFormatter().format(record))
        assert "RuntimeError: db down" in entry["exception"]


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def _restore_root(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_json_outside_development(self):
        configure_logging("production", "warning")
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_plain_text_in_development(self):
        configure_logging("development", "DEBUG")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert not isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_unknown_level_falls_back_to_info(self):
        configure_logging("production", "chatty")
        assert logging.getLogger().level == logging.INFO
