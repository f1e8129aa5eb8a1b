"""Structured logging for schema-spine.

Loggers are built per run and handed to the components that need them,
instead of reconfiguring structlog process-wide. ``make_logger`` wraps a
``PrintLogger`` with its own processor chain, so two runs in one process
(or a test and the code under test) never fight over global state.

Example:
    >>> log = make_logger("DEBUG", json_format=True)
    >>> log.info("migration_applied", migration="0001_init.sql")
"""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

SERVICE_NAME = "schema-spine"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service.name", SERVICE_NAME)
    return event_dict


def _elasticsearch_compatible(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Make field names Elasticsearch/ECS compatible."""
    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")

    if "level" in event_dict:
        event_dict["log.level"] = event_dict.pop("level")

    return event_dict


def resolve_level(level: str | int) -> int:
    """Translate ``"info"`` / ``"WARNING"`` / ``20`` into a stdlib level number."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"unknown log level: {level!r}")
    return value


def make_logger(
    level: str | int = "INFO",
    *,
    json_format: bool = False,
    stream: TextIO | None = None,
    **initial_values: Any,
) -> Any:
    """Build a structured logger handle for one run.

    Args:
        level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: True for JSON lines, False for the console renderer
        stream: Where log lines go; defaults to stderr so stdout stays
            free for status output
        **initial_values: Context bound to every event

    Example:
        log = make_logger("INFO", json_format=True, database="app")
        log.info("reconcile_started")
    """
    stream = stream or sys.stderr

    processors: list[Processor] = [
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]

    if json_format:
        processors.append(structlog.processors.format_exc_info)
        processors.append(_elasticsearch_compatible)
        processors.append(structlog.processors.JSONRenderer())
    else:
        isatty = getattr(stream, "isatty", None)
        processors.append(structlog.dev.ConsoleRenderer(colors=bool(isatty and isatty())))

    return structlog.wrap_logger(
        structlog.PrintLogger(file=stream),
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(resolve_level(level)),
        context_class=dict,
        **initial_values,
    )


def get_logger(name: str | None = None) -> Any:
    """Fallback logger for components constructed without an explicit handle."""
    return structlog.get_logger(name)


__all__ = [
    "SERVICE_NAME",
    "get_logger",
    "make_logger",
    "resolve_level",
]
