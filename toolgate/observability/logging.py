"""
Structured Logging

JSON-structured logging with context propagation.

Design decisions:
- Structured JSON output (text for local development)
- Log level filtering per logger and per handler
- Call context (request, user, tool) enriched from a context variable
- Logging failures never affect a tool call
"""

import contextvars
import json
import sys
import traceback
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, TextIO

from toolgate.core.exceptions import ConfigurationError


class LogLevel(IntEnum):
    """Log levels matching Python's logging module."""

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50


@dataclass
class LogRecord:
    """A structured log record."""

    level: LogLevel
    message: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    logger_name: str = "toolgate"

    # Structured data
    data: dict[str, Any] = field(default_factory=dict)

    # Error info
    error: str | None = None
    error_type: str | None = None
    stack_trace: str | None = None

    # Call context
    request_id: str | None = None
    user_id: str | None = None
    tool: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        result = {
            "timestamp": self.timestamp.isoformat(),
            "level": LogLevel(self.level).name,
            "logger": self.logger_name,
            "message": self.message,
        }

        if self.data:
            result["data"] = self.data

        if self.error:
            result["error"] = {
                "message": self.error,
                "type": self.error_type,
                "stack_trace": self.stack_trace,
            }

        if self.request_id:
            result["request_id"] = self.request_id
        if self.user_id:
            result["user_id"] = self.user_id
        if self.tool:
            result["tool"] = self.tool

        return result

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), default=str)


class LogHandler:
    """Base class for log handlers."""

    def __init__(self, level: LogLevel = LogLevel.DEBUG):
        self.level = level

    def should_handle(self, level: LogLevel) -> bool:
        return level >= self.level

    def handle(self, record: LogRecord) -> None:
        pass


class ConsoleHandler(LogHandler):
    """Outputs logs to a stream (stderr by default)."""

    def __init__(
        self,
        level: LogLevel = LogLevel.DEBUG,
        stream: TextIO | None = None,
        json_output: bool = True,
    ):
        super().__init__(level)
        self.stream = stream or sys.stderr
        self.json_output = json_output

    def handle(self, record: LogRecord) -> None:
        if not self.should_handle(record.level):
            return

        if self.json_output:
            output = record.to_json()
        else:
            output = (
                f"[{record.timestamp.strftime('%Y-%m-%d %H:%M:%S')}] "
                f"{LogLevel(record.level).name:8s} {record.logger_name}: {record.message}"
            )
            if record.data:
                output += f" | {record.data}"
            if record.error:
                output += f" | ERROR: {record.error}"

        print(output, file=self.stream)


class BufferHandler(LogHandler):
    """Buffers logs in memory for testing."""

    def __init__(self, level: LogLevel = LogLevel.DEBUG, max_records: int = 1000):
        super().__init__(level)
        self.records: list[LogRecord] = []
        self._max_records = max_records

    def handle(self, record: LogRecord) -> None:
        if not self.should_handle(record.level):
            return

        self.records.append(record)

        if len(self.records) > self._max_records:
            self.records = self.records[-self._max_records :]

    def messages(self, level: LogLevel | None = None) -> list[str]:
        """Messages of buffered records, optionally filtered by exact level."""
        return [r.message for r in self.records if level is None or r.level == level]

    def clear(self) -> None:
        self.records.clear()


# Context variables for log enrichment
_log_context: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar(
    "log_context", default={}
)


class StructuredLogger:
    """
    Main structured logging interface.

    Features:
    - JSON structured output
    - Context propagation
    - Multiple handlers
    - Level filtering
    """

    def __init__(
        self,
        name: str = "toolgate",
        level: LogLevel = LogLevel.INFO,
        handlers: list[LogHandler] | None = None,
    ):
        self.name = name
        self.level = level
        self.handlers = handlers if handlers is not None else [ConsoleHandler()]

    def _log(
        self,
        level: LogLevel,
        message: str,
        data: dict[str, Any] | None = None,
        error: BaseException | None = None,
        **extra: Any,
    ) -> None:
        if level < self.level:
            return

        context = _log_context.get()

        record = LogRecord(
            level=level,
            message=message,
            logger_name=self.name,
            data={**(data or {}), **extra},
            request_id=context.get("request_id"),
            user_id=context.get("user_id"),
            tool=context.get("tool"),
        )

        if error:
            record.error = str(error)
            record.error_type = type(error).__name__
            if error.__traceback__ is not None:
                record.stack_trace = "".join(
                    traceback.format_exception(type(error), error, error.__traceback__)
                )

        for handler in self.handlers:
            try:
                handler.handle(record)
            except Exception:
                pass  # Logging must not break the call being logged

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(LogLevel.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(LogLevel.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(LogLevel.WARNING, message, **kwargs)

    def error(self, message: str, error: BaseException | None = None, **kwargs: Any) -> None:
        self._log(LogLevel.ERROR, message, error=error, **kwargs)

    def critical(self, message: str, error: BaseException | None = None, **kwargs: Any) -> None:
        self._log(LogLevel.CRITICAL, message, error=error, **kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log the exception currently being handled at ERROR level."""
        self.error(message, error=sys.exc_info()[1], **kwargs)

    def child(self, name: str) -> "StructuredLogger":
        """Logger sharing this logger's level and handlers."""
        return StructuredLogger(name=f"{self.name}.{name}", level=self.level, handlers=self.handlers)

    @staticmethod
    @contextmanager
    def context(**kwargs: Any):
        """
        Context manager for adding context to logs.

        Usage:
            with logger.context(request_id="req_1", tool="data_hash"):
                logger.info("Executing tool")
        """
        current = _log_context.get()
        token = _log_context.set({**current, **kwargs})

        try:
            yield
        finally:
            _log_context.reset(token)

    @staticmethod
    def clear_context() -> None:
        _log_context.set({})


_default_level: LogLevel = LogLevel.INFO
_default_handlers: list[LogHandler] | None = None


def get_logger(name: str = "toolgate") -> StructuredLogger:
    """Get a logger using the process-wide configuration."""
    if _default_handlers is None:
        return StructuredLogger(name=name, level=_default_level)
    return StructuredLogger(name=name, level=_default_level, handlers=_default_handlers)


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    json_output: bool = True,
    handlers: list[LogHandler] | None = None,
) -> StructuredLogger:
    """
    Configure the process-wide defaults used by `get_logger`.

    Loggers created earlier keep their own configuration.
    """
    global _default_level, _default_handlers

    if isinstance(level, str):
        try:
            level = LogLevel[level.upper()]
        except KeyError as e:
            raise ConfigurationError(f"Unknown log level: {level}", context={"level": level}) from e

    _default_level = level
    _default_handlers = handlers or [ConsoleHandler(level=level, json_output=json_output)]

    return get_logger()
