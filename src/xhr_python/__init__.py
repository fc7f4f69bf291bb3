"""xhr-python: the browser XMLHttpRequest object for asyncio.

Gives non-browser code the familiar open → send → progress → response
lifecycle, backed by pooled keep-alive httpx connections.
"""
from __future__ import annotations

from xhr_python.client import XMLHttpRequest, XMLHttpRequestUpload
from xhr_python.errors import (
    InvalidAccessError,
    SecurityError,
    TransportError,
    XhrError,
    XhrNotImplementedError,
    XhrSyntaxError,
    XhrTypeError,
)
from xhr_python.transport import ConnectionPool, HttpTransport, PoolConfig, Transport
from xhr_python.types import Event, EventType, ProgressEvent, ReadyState, ResponseType

__version__ = "0.3.0"

__all__ = [
    # Client
    "XMLHttpRequest",
    "XMLHttpRequestUpload",
    # Errors
    "InvalidAccessError",
    "SecurityError",
    "TransportError",
    "XhrError",
    "XhrNotImplementedError",
    "XhrSyntaxError",
    "XhrTypeError",
    # Transport
    "ConnectionPool",
    "HttpTransport",
    "PoolConfig",
    "Transport",
    # Types
    "Event",
    "EventType",
    "ProgressEvent",
    "ReadyState",
    "ResponseType",
    # Version
    "__version__",
]
