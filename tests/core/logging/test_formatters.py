"""Tests for JSON and console log formatters."""

import json
import logging
import sys

import pytest

from core.logging.context import clear_log_context, set_log_context
from core.logging.formatters import ConsoleFormatter, JSONFormatter


def _make_record(
    msg="test message",
    level=logging.INFO,
    name="test.logger",
    exc_info=None,
    **extras,
):
    record = logging.LogRecord(
        name=name,
        level=level,
        pathname="test.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )
    for key, value in extras.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:

    @pytest.fixture(autouse=True)
    def clear_context(self):
        clear_log_context()
        yield
        clear_log_context()

    def test_formats_basic_json_with_required_fields(self):
        output = json.loads(JSONFormatter().format(_make_record()))

        assert output["level"] == "INFO"
        assert output["logger"] == "test.logger"
        assert output["message"] == "test message"
        assert output["ts"].endswith("Z")

    def test_includes_context_vars(self):
        set_log_context(worker_id="host-brave-tiger", eventhub_name="orders")
        output = json.loads(JSONFormatter().format(_make_record()))

        assert output["worker_id"] == "host-brave-tiger"
        assert output["eventhub_name"] == "orders"

    def test_empty_context_values_omitted(self):
        output = json.loads(JSONFormatter().format(_make_record()))
        assert "trace_id" not in output
        assert "consumer_group" not in output

    def test_extras_override_context(self):
        set_log_context(eventhub_name="from-context")
        record = _make_record(eventhub_name="from-extra")
        output = json.loads(JSONFormatter().format(record))

        assert output["eventhub_name"] == "from-extra"

    def test_includes_whitelisted_extras_only(self):
        record = _make_record(store_name="store1", context="/foo/", not_listed="x")
        output = json.loads(JSONFormatter().format(record))

        assert output["store_name"] == "store1"
        assert output["context"] == "/foo/"
        assert "not_listed" not in output

    def test_coerces_numeric_fields(self):
        record = _make_record(message_count="12", duration_ms="3.5", key_count="bad")
        output = json.loads(JSONFormatter().format(record))

        assert output["message_count"] == 12
        assert output["duration_ms"] == 3.5
        assert output["key_count"] is None

    def test_source_location_for_errors_only(self):
        info = json.loads(JSONFormatter().format(_make_record()))
        error = json.loads(JSONFormatter().format(_make_record(level=logging.ERROR)))

        assert "file" not in info
        assert error["file"] == "test.py:42"

    def test_includes_exception(self):
        try:
            raise RuntimeError("link detached")
        except RuntimeError:
            record = _make_record(level=logging.ERROR, exc_info=sys.exc_info())

        output = json.loads(JSONFormatter().format(record))
        assert output["exception"]["type"] == "RuntimeError"
        assert output["exception"]["message"] == "link detached"
        assert "Traceback" in output["exception"]["stacktrace"]


class TestConsoleFormatter:

    @pytest.fixture(autouse=True)
    def clear_context(self):
        clear_log_context()
        yield
        clear_log_context()

    def _formatter(self):
        formatter = ConsoleFormatter()
        formatter._use_colors = False
        return formatter

    def test_plain_message(self):
        output = self._formatter().format(_make_record())
        assert output.endswith(" - INFO - test.logger - test message")

    def test_tags_from_extras(self):
        record = _make_record(eventhub_name="orders", consumer_group="billing")
        output = self._formatter().format(record)
        assert "[orders] [group:billing] test message" in output

    def test_trace_id_truncated(self):
        set_log_context(trace_id="abcdef1234567890")
        output = self._formatter().format(_make_record())
        assert "[abcdef12]" in output

    def test_colors_applied_when_enabled(self):
        formatter = ConsoleFormatter()
        formatter._use_colors = True
        output = formatter.format(_make_record(level=logging.WARNING))
        assert "\033[33mWARNING\033[0m" in output
