"""
Structured logging for BlinkGuard.

JSON logs with timestamp, event_type and verdict fields.
"""

from blinkguard.guard_logging.logger import configure_structlog, get_logger, short_url

__all__ = ["configure_structlog", "get_logger", "short_url"]
