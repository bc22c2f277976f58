"""
Tests for logging configuration.
"""

import json
import logging
import logging.handlers
import sys

import pytest

from markdown_ai_backend.utils.logging_config import (
    JSONFormatter,
    LogFormat,
    LoggingManager,
    LogLevel,
    parse_size,
)


pytestmark = pytest.mark.usefixtures("restore_root_logger")


def _record(message="hello", **extra):
    record = logging.LogRecord("markdown_ai_backend.test", logging.INFO, __file__, 10, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLogLevel:

    def test_from_name(self):
        assert LogLevel.from_name(" debug ") is LogLevel.DEBUG
        with pytest.raises(ValueError):
            LogLevel.from_name("verbose")

    @pytest.mark.parametrize("size,expected", [
        ("512", 512),
        ("2KB", 2048),
        ("10MB", 10 * 1024 ** 2),
        ("1gb", 1024 ** 3),
    ])
    def test_parse_size(self, size, expected):
        assert parse_size(size) == expected


class TestJSONFormatter:

    def test_one_json_object_with_extras(self):
        line = JSONFormatter().format(_record(request_id="abc", extra_data={"chunk": 2}))
        data = json.loads(line)

        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["logger"] == "markdown_ai_backend.test"
        assert data["request_id"] == "abc"
        assert data["chunk"] == 2
        assert "\n" not in line

    def test_exception_is_included(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", None, sys.exc_info())
        assert "RuntimeError: boom" in json.loads(JSONFormatter().format(record))["exception"]


class TestLoggingManager:
    """Tests for LoggingManager handler setup."""

    def test_console_handler_replaces_existing_handlers(self):
        LoggingManager(LogLevel.DEBUG)
        LoggingManager(LogLevel.ERROR)

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.ERROR

    def test_json_file_logging(self, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        manager = LoggingManager(LogLevel.INFO, LogFormat.JSON, log_file=log_file, enable_console=False)

        manager.get_logger("markdown_ai_backend.test").info("written")
        for handler in logging.getLogger().handlers:
            handler.flush()

        root_handlers = logging.getLogger().handlers
        assert isinstance(root_handlers[0], logging.handlers.RotatingFileHandler)
        assert json.loads(log_file.read_text(encoding="utf-8").strip())["message"] == "written"

    def test_custom_console_handler_keeps_its_formatter(self):
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(message)s")
        handler.setFormatter(formatter)

        LoggingManager(LogLevel.INFO, LogFormat.STANDARD, console_handler=handler)
        assert handler.formatter is formatter

        LoggingManager(LogLevel.INFO, LogFormat.JSON, console_handler=handler)
        assert isinstance(handler.formatter, JSONFormatter)

    def test_from_config_with_overrides(self):
        manager = LoggingManager.from_config({"level": "info", "format": "detailed", "file": None})
        assert (manager.log_level, manager.log_format) == (LogLevel.INFO, LogFormat.DETAILED)

        manager = LoggingManager.from_config({"level": "info"}, log_level=LogLevel.DEBUG, log_format=None)
        assert manager.log_level is LogLevel.DEBUG
        assert manager.log_format is LogFormat.STANDARD

    def test_from_config_defaults(self):
        manager = LoggingManager.from_config({})
        assert manager.log_level is LogLevel.WARNING
        assert manager.log_file is None
