"""Base error classes for xhr-python.

Provides a layered error hierarchy:
- XhrError: Base class for all library errors
- TypeError / SyntaxError / NotImplementedError: usage errors that also
  derive from the matching builtin, so callers may catch either
- SecurityError / InvalidAccessError: usage errors without a builtin twin
- TransportError: HTTP/network errors with classification
"""

from __future__ import annotations

import builtins
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from xhr_python.errors.classification import ErrorClass


@dataclass
class ErrorContext:
    """Structured error context for diagnostics."""

    details: dict[str, Any] = field(default_factory=dict)
    """Additional details about the error"""

    source: str | None = None
    """Error source (e.g., 'usage', 'transport')"""

    hint: str | None = None
    """Actionable hint for resolving the error"""

    def __str__(self) -> str:
        parts = []
        if self.source:
            parts.append(f"[{self.source}]")
        if self.hint:
            parts.append(f"(hint: {self.hint})")
        return " ".join(parts)


class XhrError(Exception):
    """Base class for all xhr-python errors.

    Attributes:
        message: Human-readable error message
        context: Optional structured error context
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
    ) -> None:
        self.message = message
        self.context = context or ErrorContext()
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the full error message."""
        ctx_str = str(self.context)
        if ctx_str:
            return f"{self.message} {ctx_str}"
        return self.message

    def with_hint(self, hint: str) -> XhrError:
        """Add a hint to this error."""
        self.context.hint = hint
        super().__init__(self._format_message())
        return self


class UsageError(XhrError):
    """A call violated a precondition and was rejected synchronously."""

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        operation: str | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="usage")
        if operation:
            ctx.details["operation"] = operation
        super().__init__(message, ctx)
        self.operation = operation


class TypeError(UsageError, builtins.TypeError):
    """Wrong argument count, or ``send`` called in the wrong ready state."""


class SyntaxError(UsageError, builtins.SyntaxError):
    """Unrecognised HTTP method or malformed URL."""


class SecurityError(UsageError):
    """Method forbidden for this API (CONNECT, TRACE, TRACK)."""


class InvalidAccessError(UsageError):
    """The object cannot be used from the current execution context."""


class NotImplementedError(UsageError, builtins.NotImplementedError):
    """Requested a mode this library deliberately does not support."""


class TransportError(XhrError):
    """Error during HTTP transport.

    Raised when:
    - Network connection failure or reset
    - Timeout
    - SSL/TLS errors
    - Proxy errors
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        url: str | None = None,
        error_class: ErrorClass | None = None,
        cause: BaseException | None = None,
    ) -> None:
        from xhr_python.errors.classification import ErrorClass

        ctx = context or ErrorContext(source="transport")
        if url:
            ctx.details["url"] = url
        self.error_class = error_class or ErrorClass.OTHER
        ctx.details["error_class"] = self.error_class.value
        super().__init__(message, ctx)
        self.url = url
        self.__cause__ = cause

    @property
    def is_timeout(self) -> bool:
        """Whether the transport gave up waiting."""
        from xhr_python.errors.classification import ErrorClass

        return self.error_class is ErrorClass.TIMEOUT
