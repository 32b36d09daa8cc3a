"""
Logging - Logging configuration for the linear-agent CLI.

Supports human-readable text logs and JSON lines for log aggregation.

Example:
    >>> setup_logging(level=logging.DEBUG, log_format="json")
    >>> logging.getLogger("ExtractionClient").info("Extracted record")
    {"timestamp": "2025-01-01T00:00:00+00:00", "level": "INFO", ...}
"""

from __future__ import annotations

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, TextIO


# Attributes every LogRecord carries; anything else came in through ``extra``
_RESERVED_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)

NOISY_LOGGERS = ("urllib3", "aiohttp", "anthropic", "httpx", "httpcore", "asyncio")

TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
TEXT_DATE_FORMAT = "%H:%M:%S"


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """
    Format log records as single-line JSON objects.

    Output fields: timestamp (ISO-8601, UTC), level, logger, message, plus
    ``context`` for extra fields, ``exception`` when exc_info is set and any
    static fields given at construction.
    """

    def __init__(
        self,
        static_fields: dict[str, Any] | None = None,
        include_location: bool = False,
    ):
        super().__init__()
        self.static_fields = static_fields or {}
        self.include_location = include_location

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(self.static_fields)

        if self.include_location:
            entry["location"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        context = _extra_fields(record)
        if context:
            entry["context"] = context

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, exc_tb = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": "".join(traceback.format_exception(exc_type, exc_value, exc_tb)),
            }

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Plain text formatter that appends extra fields as key=value pairs."""

    def __init__(self, fmt: str = TEXT_FORMAT, datefmt: str = TEXT_DATE_FORMAT):
        super().__init__(fmt=fmt, datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        context = _extra_fields(record)
        if context:
            pairs = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
            text = f"{text} [{pairs}]"
        return text


class ContextLogger(logging.LoggerAdapter):
    """
    Logger adapter that attaches bound context to every record.

    Example:
        >>> log = ContextLogger(logging.getLogger("BatchOrchestrator"), batch="b1")
        >>> log.bind(line=3).info("Created issue")
    """

    def __init__(self, logger: logging.Logger, **context: Any):
        super().__init__(logger, context)

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        extra = dict(self.extra or {})
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs

    def bind(self, **context: Any) -> ContextLogger:
        """Return a new adapter with additional context."""
        merged = dict(self.extra or {})
        merged.update(context)
        return ContextLogger(self.logger, **merged)


def setup_logging(
    level: int = logging.INFO,
    log_format: str = "text",
    log_file: str | None = None,
    static_fields: dict[str, Any] | None = None,
    stream: TextIO | None = None,
) -> logging.Logger:
    """
    Configure root logging for the CLI.

    Args:
        level: Root log level
        log_format: "text" or "json"
        log_file: Also write logs to this file
        static_fields: Fields added to every JSON record
        stream: Console stream, stderr by default

    Returns:
        The configured root logger
    """
    formatter: logging.Formatter
    if log_format == "json":
        formatter = JSONFormatter(static_fields=static_fields)
    else:
        formatter = TextFormatter()

    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return root


def get_logger(name: str, **context: Any) -> ContextLogger:
    """Named logger with bound context."""
    return ContextLogger(logging.getLogger(name), **context)
