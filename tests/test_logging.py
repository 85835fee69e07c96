"""Tests for structlog configuration."""

from __future__ import annotations

import io
import json

import pytest
import structlog

from ambient_proxy.observability.logging import configure_logging, parse_level


def emit(log_format: str, level: str = "info") -> str:
    stream = io.StringIO()
    configure_logging(log_format, level, stream=stream)
    logger = structlog.get_logger()
    logger.debug("hidden", detail=1)
    logger.info("Proxy request", country="US")
    return stream.getvalue()


class TestConfigureLogging:
    """Tests for configure_logging sinks."""

    def test_stackdriver(self):
        lines = emit("stackdriver").splitlines()
        assert len(lines) == 1

        entry = json.loads(lines[0])
        assert entry["message"] == "Proxy request"
        assert entry["severity"] == "INFO"
        assert entry["country"] == "US"
        assert "time" in entry
        assert "event" not in entry

    def test_bunyan(self):
        entry = json.loads(emit("bunyan").splitlines()[0])
        assert entry["msg"] == "Proxy request"
        assert entry["level"] == 30
        assert entry["name"] == "ambient_proxy_manager"
        assert entry["v"] == 0
        assert "hostname" in entry
        assert "pid" in entry

    def test_json_alias(self):
        entry = json.loads(emit("json").splitlines()[0])
        assert entry["msg"] == "Proxy request"

    def test_console(self):
        output = emit("console")
        assert "Proxy request" in output
        assert "hidden" not in output

    def test_debug_level(self):
        lines = emit("stackdriver", level="debug").splitlines()
        assert len(lines) == 2
        assert json.loads(lines[0])["severity"] == "DEBUG"

    def test_warning_level_filters_info(self):
        assert emit("stackdriver", level="warning") == ""


class TestParseLevel:
    """Tests for parse_level."""

    def test_known_levels(self):
        assert parse_level("debug") == 10
        assert parse_level("INFO") == 20
        assert parse_level("warning") == 30
        assert parse_level("error") == 40

    def test_unknown_level(self):
        with pytest.raises(ValueError, match="Unknown log level"):
            parse_level("chatty")
