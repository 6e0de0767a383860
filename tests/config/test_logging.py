"""Tests for the loguru setup and component loggers."""

import io
import json

import pytest

from competitive_intel.config.logging import configure_logging, get_logger


@pytest.fixture
def stream():
    buffer = io.StringIO()
    yield buffer
    configure_logging()


def _lines(buffer: io.StringIO):
    return [json.loads(line) for line in buffer.getvalue().splitlines()]


class TestConfigureLogging:
    def test_json_lines_carry_monitoring_context(self, stream):
        configure_logging(level="INFO", log_format="json", stream=stream)

        get_logger("RSSFeedCollector", competitor="acme", collector="rss-1").info("Fetched 3 entries")

        [line] = _lines(stream)
        extra = line["record"]["extra"]
        assert line["record"]["message"] == "Fetched 3 entries"
        assert extra["component"] == "RSSFeedCollector"
        assert extra["collector"] == "rss-1"
        assert extra["scope"] == " [acme/rss-1]"

    def test_empty_context_is_dropped(self, stream):
        configure_logging(level="INFO", log_format="json", stream=stream)

        get_logger("cli", competitor="", collector=None).info("status")

        extra = _lines(stream)[0]["record"]["extra"]
        assert "collector" not in extra
        assert extra["scope"] == ""

    def test_level_override_filters(self, stream):
        configure_logging(level="warning", log_format="json", stream=stream)

        log = get_logger("cli")
        log.info("hidden")
        log.warning("shown")

        assert [line["record"]["message"] for line in _lines(stream)] == ["shown"]

    def test_console_format_falls_back_to_json_off_tty(self, stream):
        configure_logging(level="INFO", log_format="console", stream=stream)

        get_logger("cli").info("not a terminal")

        assert _lines(stream)[0]["record"]["extra"]["component"] == "cli"

    def test_unknown_level_keeps_current_sink(self, stream):
        configure_logging(level="INFO", log_format="json", stream=stream)

        with pytest.raises(ValueError):
            configure_logging(level="LOUD")
        get_logger("cli").info("still here")

        assert _lines(stream)[0]["record"]["message"] == "still here"
