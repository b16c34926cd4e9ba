"""
Unit tests for structured JSON logging.
"""

import json
import logging
import sys

import pytest

from config.settings import Settings
from security.state import CSRFState, RequestSecurityState, security_state_var
from telemetry.service import (
    JSONFormatter,
    TelemetryService,
    get_telemetry_service,
    initialize_telemetry,
)


def make_record(message: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="security.gate",
        level=logging.INFO,
        pathname=__file__,
        lineno=42,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for the JSONFormatter class."""

    def test_basic_fields(self):
        entry = json.loads(JSONFormatter().format(make_record()))

        assert entry["message"] == "hello"
        assert entry["level"] == "INFO"
        assert entry["logger"] == "security.gate"
        assert entry["line"] == 42
        assert entry["timestamp"].endswith("Z")

    def test_extra_data_is_merged(self):
        record = make_record(extra_data={"path": "/a", "method": "POST"})

        entry = json.loads(JSONFormatter().format(record))

        assert entry["path"] == "/a"
        assert entry["method"] == "POST"

    def test_no_exclusion_flag_outside_a_request(self):
        entry = json.loads(JSONFormatter().format(make_record()))

        assert "csrf_exclude" not in entry

    @pytest.mark.parametrize("excluded", [True, False])
    def test_exclusion_flag_inside_a_request(self, excluded):
        reset = security_state_var.set(RequestSecurityState(csrf=CSRFState(exclude=excluded)))
        try:
            entry = json.loads(JSONFormatter().format(make_record()))
        finally:
            security_state_var.reset(reset)

        assert entry["csrf_exclude"] is excluded

    def test_exception_is_formatted(self):
        try:
            raise ValueError("bad")
        except ValueError:
            record = make_record(exc_info=sys.exc_info())

        entry = json.loads(JSONFormatter().format(record))

        assert "ValueError: bad" in entry["exception"]


class TestTelemetryService:
    """Tests for TelemetryService logging setup."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_installs_single_json_handler(self):
        settings = Settings(session_secret="x" * 32, log_level="DEBUG")

        TelemetryService(settings)

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_initialize_sets_global_service(self):
        service = initialize_telemetry()

        assert get_telemetry_service() is service
        assert logging.getLogger().level == logging.INFO
