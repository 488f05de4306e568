"""
Structured JSON logging: timestamp, event_type, url, verdict fields.

structlog with ISO timestamps, log level, and consistent keys for
aggregation. All modules use get_logger() and log a snake_case event_type
as the first argument with keyword fields (url, level, score, ...).

Uses only Python stdlib logging and structlog; no blinkguard imports to avoid circular imports.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL_VALUE = getattr(logging, LOG_LEVEL, logging.INFO)

# JSON output for production (LOG_FORMAT=json); human-readable for local
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()

# Long URLs are cut in log lines; full values stay in the registry.
URL_LOG_MAX_LEN = 64


def _add_timestamp(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Ensure timestamp is always present (ISO 8601)."""
    if "timestamp" not in event_dict:
        event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _normalize_event(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Rename structlog 'event' to event_type; keep message if present."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    if "message" not in event_dict and "event_type" in event_dict:
        event_dict["message"] = str(event_dict["event_type"])
    return event_dict


def configure_structlog(
    level: str | None = None,
    fmt: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """Configure structlog: JSON or console renderer, timestamp, level, event_type. Logs go to stdout unless stream is given."""
    level_value = getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO)
    log_format = (fmt or LOG_FORMAT).strip().lower()
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _add_timestamp,
        _normalize_event,
    ]
    if log_format == "json":
        shared_processors.append(structlog.processors.JSONRenderer())
    else:
        shared_processors.append(
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
        )
    structlog.configure(
        processors=shared_processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_value),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stdout),
        # module loggers are created at import; resolve config on each call so
        # a later configure_structlog (e.g. the CLI switching to stderr) applies
        cache_logger_on_first_use=False,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Return a structured logger for the given module name.

    Log with event_type (first arg) and keyword fields:
        logger = get_logger(__name__)
        logger.info("analysis_completed", level="caution", score=70, flag_count=2)
    Output (JSON): {"event_type": "analysis_completed", "level": "info", "score": 70, ..., "logger": "module.name"}
    """
    return structlog.get_logger(name, logger_name=name)


def short_url(url: str | None) -> str:
    """Truncate a URL for log output."""
    url = url or ""
    if len(url) <= URL_LOG_MAX_LEN:
        return url
    return url[:URL_LOG_MAX_LEN] + "..."
