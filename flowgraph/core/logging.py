"""Structured logging configuration for flowgraph.

The validation service reports each run through the standard logging
module. This module wires that up:
- JSON lines for log shipping
- ANSI-colored console lines while DEBUG is on
- Optional size-rotated log file
- Scoped context (e.g. the workflow being validated) attached to records

The graph algorithms never log; only the service layer does, through
loggers obtained with get_logger().
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from enum import Enum
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, ClassVar

from flowgraph.core.config import settings

PLAIN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


class LogLevel(str, Enum):
    """Accepted values for LOG_LEVEL."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def _record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Merge scoped LogContext values with a record's own extra context.

    LogContext stores its values under ``log_context`` so that an explicit
    ``extra={"context": ...}`` inside the scope does not collide with it.
    """
    return {
        **getattr(record, "log_context", {}),
        **(getattr(record, "context", None) or {}),
    }


# =============================================================================
# Formatters
# =============================================================================


class JSONFormatter(logging.Formatter):
    """Render each record as one JSON object per line.

    Example output:
        {"timestamp": "2025-01-12T10:30:45.123000Z", "level": "INFO",
         "logger": "flowgraph.services.workflow.validator",
         "message": "Workflow graph validated: 1 error",
         "service": "Flowgraph", "version": "0.1.0",
         "context": {"node_count": 3, "error_codes": ["CYCLE_DETECTED"]}}

    ERROR and CRITICAL records also carry a ``source`` block, and records
    logged with exc_info carry an ``exception`` block.
    """

    def __init__(
        self,
        service_name: str | None = None,
        service_version: str = "0.1.0",
    ) -> None:
        super().__init__()
        self.service_name = service_name or settings.PROJECT_NAME
        self.service_version = service_version

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=UTC)
        payload: dict[str, Any] = {
            "timestamp": timestamp.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
            "version": self.service_version,
        }

        context = _record_context(record)
        if context:
            payload["context"] = context
        if record.exc_info:
            payload["exception"] = self._exception_block(record)
        if record.levelno >= logging.ERROR:
            payload["source"] = self._source_block(record)

        return json.dumps(payload, default=str, ensure_ascii=False)

    def _exception_block(self, record: logging.LogRecord) -> dict[str, Any]:
        exc_type, exc_value, _ = record.exc_info  # type: ignore[misc]
        return {
            "type": exc_type.__name__ if exc_type else None,
            "message": str(exc_value) if exc_value else None,
            "traceback": self.formatException(record.exc_info),  # type: ignore[arg-type]
        }

    @staticmethod
    def _source_block(record: logging.LogRecord) -> dict[str, Any]:
        return {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName,
            "process": record.process,
            "thread": record.thread,
        }


class ColoredConsoleFormatter(logging.Formatter):
    """Human-readable console lines with the level name colored.

    Context, when present, is appended to the message as compact JSON.
    """

    COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": "\033[36m",  # cyan
        "INFO": "\033[32m",  # green
        "WARNING": "\033[33m",  # yellow
        "ERROR": "\033[31m",  # red
        "CRITICAL": "\033[41m",  # red background
    }
    RESET: ClassVar[str] = "\033[0m"

    def __init__(self) -> None:
        super().__init__(fmt=PLAIN_FORMAT, datefmt=DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        # Work on a copy; other handlers must see the plain record
        colored = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(colored.levelname, self.RESET)
        colored.levelname = f"{color}{colored.levelname}{self.RESET}"

        context = _record_context(colored)
        if context:
            colored.msg = f"{colored.msg} | Context: {json.dumps(context, default=str)}"

        return super().format(colored)


# =============================================================================
# Setup
# =============================================================================


def _build_file_handler(
    log_file: str,
    service_name: str,
    enable_json: bool,
) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    # The file keeps everything; the root level still filters first
    handler.setLevel(logging.DEBUG)
    if enable_json:
        handler.setFormatter(JSONFormatter(service_name=service_name))
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _build_console_handler(level: int, service_name: str) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    if settings.DEBUG:
        handler.setFormatter(ColoredConsoleFormatter())
    else:
        handler.setFormatter(JSONFormatter(service_name=service_name))
    return handler


def setup_logging(
    log_level: str | None = None,
    log_file: str | None = None,
    service_name: str | None = None,
    enable_json: bool | None = None,
    enable_console: bool = True,
) -> logging.Logger:
    """Configure the root logger.

    Existing root handlers are replaced, so calling this twice does not
    duplicate output.

    Args:
        log_level: Level name. Defaults to settings.LOG_LEVEL.
        log_file: Rotating log file path. Defaults to settings.LOG_FILE;
            without either, no file handler is installed.
        service_name: Service name stamped on JSON records. Defaults to
            settings.PROJECT_NAME.
        enable_json: JSON lines in the log file instead of plain text.
            Defaults to settings.LOG_JSON_FORMAT.
        enable_console: Also log to stdout (colored when settings.DEBUG
            is on, JSON otherwise).

    Returns:
        The root logger.
    """
    service_name = service_name or settings.PROJECT_NAME
    log_level = log_level or settings.LOG_LEVEL
    log_file = log_file or settings.LOG_FILE
    if enable_json is None:
        enable_json = settings.LOG_JSON_FORMAT

    level = getattr(logging, log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    if log_file:
        root.addHandler(_build_file_handler(log_file, service_name, enable_json))
    if enable_console:
        root.addHandler(_build_console_handler(level, service_name))

    root.debug(
        "Logging configured",
        extra={
            "context": {
                "log_level": log_level,
                "log_file": log_file,
                "service": service_name,
            }
        },
    )
    return root


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module, usually ``get_logger(__name__)``."""
    return logging.getLogger(name)


class LogContext:
    """Attach key-value context to every record created inside the block.

    Examples:
        >>> logger = get_logger(__name__)
        >>> with LogContext(logger, workflow="checkout", level="strict"):
        ...     logger.info("Validating")

    Nested blocks merge their values, the inner block winning on conflicts.
    """

    def __init__(self, logger: logging.Logger, **context: Any) -> None:
        self.logger = logger
        self.context = context
        self._previous_factory = logging.getLogRecordFactory()

    def _make_record(self, *args: Any, **kwargs: Any) -> logging.LogRecord:
        record = self._previous_factory(*args, **kwargs)
        record.log_context = {**getattr(record, "log_context", {}), **self.context}
        return record

    def __enter__(self) -> LogContext:
        self._previous_factory = logging.getLogRecordFactory()
        logging.setLogRecordFactory(self._make_record)
        return self

    def __exit__(self, *args: Any) -> None:
        logging.setLogRecordFactory(self._previous_factory)


__all__ = [
    "ColoredConsoleFormatter",
    "JSONFormatter",
    "LogContext",
    "LogLevel",
    "get_logger",
    "setup_logging",
]
