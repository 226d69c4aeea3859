"""Tests for klara/logging_config.py

Logging is configured once per process; these tests restore the root
logger and structlog defaults afterwards.
"""

import logging
import sys

import pytest
import structlog

from klara.logging_config import DEFAULT_COMPONENT, add_component, setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


class TestAddComponent:
    @pytest.mark.parametrize(
        "logger_name,component",
        [
            ("klara.suggestions.orchestrator", "suggestions"),
            ("klara.nudges.detector", "nudges"),
            ("klara.cli", DEFAULT_COMPONENT),
            ("httpx", DEFAULT_COMPONENT),
        ],
    )
    def test_component_from_logger_name(self, logger_name, component):
        event = add_component(None, "info", {"event": "x", "logger": logger_name})
        assert event["component"] == component

    def test_missing_logger_name(self):
        assert add_component(None, "info", {"event": "x"})["component"] == DEFAULT_COMPONENT

    def test_explicit_component_kept(self):
        event = add_component(
            None, "info", {"event": "x", "logger": "klara.nudges.detector", "component": "cli"}
        )
        assert event["component"] == "cli"


class TestSetupLogging:
    def test_single_stderr_handler(self, restore_logging):
        setup_logging(level="DEBUG")

        assert len(restore_logging.handlers) == 1
        assert restore_logging.handlers[0].stream is sys.stderr
        assert restore_logging.level == logging.DEBUG

    def test_level_from_environment(self, restore_logging, monkeypatch):
        monkeypatch.setenv("KLARA_LOG_LEVEL", "warning")

        setup_logging()

        assert restore_logging.level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self, restore_logging):
        setup_logging(level="chatty")
        assert restore_logging.level == logging.INFO

    def test_json_events_carry_component(self, restore_logging, capsys):
        setup_logging(level="INFO", json_output=True)

        structlog.get_logger("klara.suggestions.cache").info("suggestions_cached", count=2)

        captured = capsys.readouterr()
        assert captured.out == ""
        assert '"component": "suggestions"' in captured.err
        assert '"event": "suggestions_cached"' in captured.err
