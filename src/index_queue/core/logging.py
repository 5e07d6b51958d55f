"""
Logging utilities for the index queue administration package.

Provides structured logging with correlation support so every log line
emitted while serving one administrative request carries the request id
and the site it operates on.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional


CORRELATION_FIELDS = ["request_id", "site_id", "operation", "configuration"]


class StructuredFormatter(logging.Formatter):
    """
    Formatter that outputs JSON-structured log lines.

    Each log line includes:
    - Standard log fields (timestamp, level, message, logger)
    - Correlation fields if present (request_id, site_id, operation)
    """

    def __init__(self, include_timestamp: bool = True):
        super().__init__()
        self.include_timestamp = include_timestamp

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as JSON."""
        log_entry = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_timestamp:
            log_entry["timestamp"] = datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat()

        for field in CORRELATION_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Formatter that outputs human-readable log lines with correlation context.

    Format: TIMESTAMP [LEVEL] LOGGER - MESSAGE [request_id=X site_id=Y operation=Z configuration=C]
    """

    def __init__(self, include_timestamp: bool = True):
        if include_timestamp:
            fmt = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
        else:
            fmt = "[%(levelname)s] %(name)s - %(message)s"
        super().__init__(fmt, datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)

        context_parts = []
        for field in CORRELATION_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                context_parts.append(f"{field}={value}")

        if context_parts:
            return f"{base} [{' '.join(context_parts)}]"
        return base


def configure_logging(
    level: int = logging.INFO,
    structured: bool = False,
    include_timestamp: bool = True,
) -> None:
    """
    Configure logging for the index_queue package.

    Args:
        level: Logging level (default: INFO)
        structured: If True, output JSON-structured logs; if False, human-readable
        include_timestamp: Whether to include timestamp in log messages

    Example:
        >>> from index_queue.core.logging import configure_logging
        >>> configure_logging(level=logging.DEBUG, structured=True)
    """
    package_logger = logging.getLogger("index_queue")
    package_logger.setLevel(level)

    # Only add handler if none exist (avoid duplicate handlers)
    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(level)

        if structured:
            formatter = StructuredFormatter(include_timestamp=include_timestamp)
        else:
            formatter = HumanReadableFormatter(include_timestamp=include_timestamp)

        handler.setFormatter(formatter)
        package_logger.addHandler(handler)


class CorrelationContext:
    """
    Context manager for adding correlation fields to log records.

    Nested contexts add to the fields of the enclosing one.

    Example:
        >>> with CorrelationContext(request_id="abc", site_id=1, operation="initialize"):
        ...     with CorrelationContext(configuration="pages"):
        ...         log_with_context(logger, logging.INFO, "Initialized")
    """

    _current: Optional["CorrelationContext"] = None

    def __init__(
        self,
        request_id: Optional[str] = None,
        site_id: Optional[int] = None,
        **extra: Any,
    ):
        fields = {"request_id": request_id, "site_id": site_id, **extra}
        self.fields = {k: v for k, v in fields.items() if v is not None}
        self.context = dict(self.fields)
        self._previous: Optional["CorrelationContext"] = None

    def __enter__(self) -> "CorrelationContext":
        # Inner contexts inherit the fields they do not set themselves.
        self.context = {**CorrelationContext.get_current(), **self.fields}
        self._previous = CorrelationContext._current
        CorrelationContext._current = self
        return self

    def __exit__(self, *args) -> None:
        CorrelationContext._current = self._previous

    @classmethod
    def get_current(cls) -> Dict[str, Any]:
        """Get the current correlation context."""
        if cls._current is None:
            return {}
        return cls._current.context.copy()


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **extra: Any,
) -> None:
    """
    Log a message with correlation context.

    Merges the current CorrelationContext with any extra fields provided.
    """
    context = CorrelationContext.get_current()
    context.update(extra)
    logger.log(level, message, extra=context)
