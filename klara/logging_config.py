"""
Structured logging configuration for Klara using structlog wrapping stdlib.

Provides JSON-formatted structured log output in production and
human-readable console output in development. Every event carries a
``component`` field (``suggestions``, ``nudges``, ``inference``, ...)
taken from the emitting module, so one filter isolates a subsystem.

Environment:
    KLARA_LOG_LEVEL   - DEBUG, INFO (default), WARNING, ERROR
    KLARA_LOG_FORMAT  - "json" for JSON lines, anything else for console

Logs always go to stderr. stdout belongs to the ``klara`` CLI, whose
commands print JSON that callers parse.

Usage:
    from klara.logging_config import get_logger, setup_logging
    setup_logging()
    logger = get_logger(__name__)
    logger.info("suggestions_cached", task_id=task_id, count=3)
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

DEFAULT_COMPONENT = "core"


def add_component(_logger: Any, _method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Derive ``component`` from a ``klara.<component>.<module>`` logger name."""
    if "component" not in event_dict:
        parts = (event_dict.get("logger") or "").split(".")
        if len(parts) > 2 and parts[0] == "klara":
            event_dict["component"] = parts[1]
        else:
            event_dict["component"] = DEFAULT_COMPONENT
    return event_dict


def setup_logging(level: str | None = None, json_output: bool | None = None) -> None:
    if level is None:
        level = os.environ.get("KLARA_LOG_LEVEL", "INFO")

    if json_output is None:
        json_output = os.environ.get("KLARA_LOG_FORMAT", "").lower() == "json"

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_component,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


__all__ = ["DEFAULT_COMPONENT", "add_component", "get_logger", "setup_logging"]
