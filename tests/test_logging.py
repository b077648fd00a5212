"""Tests for structured logging configuration."""

import json
import logging
import sys
from unittest.mock import patch

from bridge.app.core.logging import (
    ContextFilter,
    JSONFormatter,
    get_log_context,
    get_logger,
    get_logging_config,
)


def make_record(msg="Test message", **attrs) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Test JSON formatter for structured logging."""

    def test_basic_json_format(self):
        data = json.loads(JSONFormatter().format(make_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "test"
        assert data["message"] == "Test message"
        assert "timestamp" in data
        assert data["source"]["file"] == "test.py"
        assert data["source"]["line"] == 1

    def test_context_fields_promoted(self):
        record = make_record(
            "Rate limit exceeded",
            request_id="req-1",
            client_id="203.0.113.7",
            status_code=429,
        )

        data = json.loads(JSONFormatter().format(record))

        assert data["request_id"] == "req-1"
        assert data["client_id"] == "203.0.113.7"
        assert data["status_code"] == 429
        assert "extra" not in data

    def test_unknown_fields_go_under_extra(self):
        data = json.loads(JSONFormatter().format(make_record(error_kind="timeout")))

        assert data["extra"] == {"error_kind": "timeout"}

    def test_exception_info_included(self):
        try:
            raise ValueError("bad")
        except ValueError:
            record = make_record()
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))

        assert any("ValueError: bad" in line for line in data["exception"])


class TestContextFilter:
    def test_adds_missing_defaults(self):
        record = make_record()

        assert ContextFilter().filter(record) is True
        assert record.request_id is None
        assert record.client_id is None

    def test_keeps_existing_values(self):
        record = make_record(request_id="req-9")

        ContextFilter().filter(record)

        assert record.request_id == "req-9"


class TestLoggingConfig:
    def test_json_format_selected(self):
        with patch("bridge.app.core.logging.settings") as mock_settings:
            mock_settings.log_format = "json"
            mock_settings.log_level = "debug"
            config = get_logging_config()

        assert config["handlers"]["console"]["formatter"] == "json"
        assert config["loggers"]["bridge"]["level"] == "DEBUG"

    def test_text_format_by_default(self):
        with patch("bridge.app.core.logging.settings") as mock_settings:
            mock_settings.log_format = "text"
            mock_settings.log_level = "INFO"
            config = get_logging_config()

        assert config["handlers"]["console"]["formatter"] == "standard"


def test_get_log_context_drops_none():
    assert get_log_context(request_id="r", client_id=None, path="/x", status_code=None) == {
        "request_id": "r",
        "path": "/x",
    }


def test_get_logger_default_namespace():
    assert get_logger().name == "bridge"
