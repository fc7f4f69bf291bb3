"""
Structured logging for xhr-python.

Provides request-scoped logging context and masking of credentials that
travel with requests (Authorization headers, URL userinfo, passwords).
"""

from __future__ import annotations

import json
import logging
import re
import sys
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar

_log_context: ContextVar[dict[str, Any] | None] = ContextVar("log_context", default=None)


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    def to_logging_level(self) -> int:
        """Convert to standard logging level."""
        return getattr(logging, self.value)


@dataclass
class LogContext:
    """Request-scoped logging context.

    Attributes:
        request_id: Identifier of the request object
        method: HTTP method of the current send
        url: Target URL of the current send
        extra: Additional context fields
    """

    request_id: str | None = None
    method: str | None = None
    url: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result: dict[str, Any] = {}
        if self.request_id:
            result["request_id"] = self.request_id
        if self.method:
            result["method"] = self.method
        if self.url:
            result["url"] = self.url
        result.update(self.extra)
        return result

    def with_extra(self, **kwargs: Any) -> LogContext:
        """Create new context with additional fields."""
        return LogContext(
            request_id=self.request_id,
            method=self.method,
            url=self.url,
            extra={**self.extra, **kwargs},
        )


def get_log_context() -> LogContext:
    """Get current logging context."""
    data = _log_context.get()
    if not data:
        return LogContext()
    known = {k: data[k] for k in ("request_id", "method", "url") if k in data}
    extra = {k: v for k, v in data.items() if k not in known}
    return LogContext(**known, extra=extra)


def set_log_context(context: LogContext) -> None:
    """Set logging context for current async context."""
    _log_context.set(context.to_dict())


def clear_log_context() -> None:
    """Clear logging context."""
    _log_context.set(None)


class SensitiveDataMasker:
    """Masks credentials in log messages."""

    DEFAULT_PATTERNS: ClassVar[list[tuple[str, str]]] = [
        # user:password@ in URLs
        (r"(://)([^/@\s:]+):([^/@\s]+)@", r"\1\2:***REDACTED***@"),
        # Basic / Bearer credentials
        (r"(Basic\s+)([^\s\"']+)", r"\1***REDACTED***"),
        (r"(Bearer\s+)([^\s\"']+)", r"\1***REDACTED***"),
        # Authorization headers with other schemes
        (r"(Authorization[\"']?\s*[:=]\s*[\"']?)(?!Basic|Bearer)([^\"'\s]+)", r"\1***REDACTED***"),
        # password=... in query strings or form bodies
        (r"(password[\"']?\s*[:=]\s*[\"']?)([^\"'&\s]+)", r"\1***REDACTED***"),
    ]

    SENSITIVE_KEYS: ClassVar[tuple[str, ...]] = (
        "auth",
        "password",
        "token",
        "secret",
        "cookie",
    )

    def __init__(self, patterns: list[tuple[str, str]] | None = None) -> None:
        """Initialize masker with patterns.

        Args:
            patterns: List of (pattern, replacement) tuples
        """
        self._patterns = [
            (re.compile(p, re.IGNORECASE), r)
            for p, r in (patterns or self.DEFAULT_PATTERNS)
        ]

    def mask(self, text: str) -> str:
        """Mask sensitive data in text."""
        result = text
        for pattern, replacement in self._patterns:
            result = pattern.sub(replacement, result)
        return result

    def mask_dict(self, data: dict[str, Any]) -> dict[str, Any]:
        """Mask sensitive data in dictionary.

        Keys that look like credentials are redacted outright; nested
        dictionaries (e.g. header mappings) are walked.
        """
        result: dict[str, Any] = {}
        for key, value in data.items():
            key_lower = str(key).lower()
            if any(sensitive in key_lower for sensitive in self.SENSITIVE_KEYS):
                result[key] = "***REDACTED***"
            elif isinstance(value, str):
                result[key] = self.mask(value)
            elif isinstance(value, dict):
                result[key] = self.mask_dict(value)
            elif isinstance(value, list):
                result[key] = [
                    self.mask_dict(v) if isinstance(v, dict) else v for v in value
                ]
            else:
                result[key] = value
        return result


class JsonFormatter(logging.Formatter):
    """One JSON object per record, credentials masked."""

    def __init__(
        self,
        masker: SensitiveDataMasker | None = None,
        include_timestamp: bool = True,
    ) -> None:
        super().__init__()
        self._masker = masker or SensitiveDataMasker()
        self._include_timestamp = include_timestamp

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "level": record.levelname,
            "logger": record.name,
            "message": self._masker.mask(record.getMessage()),
        }
        if self._include_timestamp:
            created = datetime.fromtimestamp(record.created, tz=timezone.utc)
            payload["timestamp"] = created.isoformat(timespec="milliseconds")

        context = get_log_context().to_dict()
        if context:
            payload["context"] = self._masker.mask_dict(context)
        payload.update(self._masker.mask_dict(getattr(record, "extra_fields", {})))

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    """Single-line text with ``key=value`` fields appended."""

    def __init__(
        self,
        masker: SensitiveDataMasker | None = None,
        include_context: bool = True,
    ) -> None:
        super().__init__(fmt="%(asctime)s %(levelname)s [%(name)s] %(message)s")
        self._masker = masker or SensitiveDataMasker()
        self._include_context = include_context

    def format(self, record: logging.LogRecord) -> str:
        fields: dict[str, Any] = {}
        if self._include_context:
            fields.update(get_log_context().to_dict())
        fields.update(getattr(record, "extra_fields", {}))

        line = self._masker.mask(super().format(record))
        if not fields:
            return line
        pairs = " ".join(f"{k}={v}" for k, v in self._masker.mask_dict(fields).items())
        return f"{line} | {pairs}"


class XhrLogger:
    """Wrapper around ``logging.Logger`` that takes structured fields as kwargs.

    Until ``configure`` is called, records go to whatever handlers the
    application has installed on the root logger.

    Example:
        >>> logger = XhrLogger.get_logger("xhr_python.client")
        >>> logger.debug("Response head", status=200)
    """

    _loggers: ClassVar[dict[str, logging.Logger]] = {}
    _level: ClassVar[LogLevel] = LogLevel.WARNING
    _handler: ClassVar[logging.Handler | None] = None

    @classmethod
    def configure(
        cls,
        level: LogLevel = LogLevel.INFO,
        format: str = "json",
        stream: Any = None,
        masker: SensitiveDataMasker | None = None,
    ) -> None:
        """Route every xhr-python logger to one stream handler.

        Args:
            level: Minimum level to emit
            format: 'json' or 'text'
            stream: Output stream, stderr when omitted
            masker: Masker shared by the formatter
        """
        handler = logging.StreamHandler(stream or sys.stderr)
        if format == "json":
            handler.setFormatter(JsonFormatter(masker=masker))
        else:
            handler.setFormatter(TextFormatter(masker=masker))

        cls._level = level
        cls._handler = handler
        for logger in cls._loggers.values():
            cls._apply(logger)

    @classmethod
    def _apply(cls, logger: logging.Logger) -> None:
        logger.setLevel(cls._level.to_logging_level())
        if cls._handler is not None:
            logger.handlers[:] = [cls._handler]

    @classmethod
    def get_logger(cls, name: str) -> XhrLogger:
        logger = cls._loggers.get(name)
        if logger is None:
            logger = cls._loggers[name] = logging.getLogger(name)
            cls._apply(logger)
        return cls(logger)

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    @property
    def name(self) -> str:
        return self._logger.name

    def log(
        self,
        level: int,
        msg: str,
        *,
        exc_info: bool | BaseException = False,
        **fields: Any,
    ) -> None:
        if not self._logger.isEnabledFor(level):
            return
        extra = {"extra_fields": fields} if fields else None
        self._logger.log(level, msg, exc_info=exc_info, extra=extra)

    def debug(self, msg: str, **fields: Any) -> None:
        self.log(logging.DEBUG, msg, **fields)

    def info(self, msg: str, **fields: Any) -> None:
        self.log(logging.INFO, msg, **fields)

    def warning(self, msg: str, **fields: Any) -> None:
        self.log(logging.WARNING, msg, **fields)

    def error(self, msg: str, exc_info: bool | BaseException = False, **fields: Any) -> None:
        """Log at ERROR; pass an exception as ``exc_info`` to attach its traceback."""
        self.log(logging.ERROR, msg, exc_info=exc_info, **fields)

    def exception(self, msg: str, **fields: Any) -> None:
        """Log at ERROR with the active exception's traceback."""
        self.log(logging.ERROR, msg, exc_info=True, **fields)


def get_logger(name: str) -> XhrLogger:
    """Get a logger instance."""
    return XhrLogger.get_logger(name)
