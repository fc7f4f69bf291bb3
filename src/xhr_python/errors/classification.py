"""Error classification for transport failures.

Maps httpx and OS-level exceptions onto a small set of standard classes so
the request lifecycle can tell a timeout from a broken connection.
"""

from __future__ import annotations

import asyncio
import ssl
from enum import Enum

import httpx


class ErrorClass(str, Enum):
    """Standard transport error classification."""

    CONNECTION = "connection"
    """DNS failure, refused or reset connection, TLS handshake failure."""

    TIMEOUT = "timeout"
    """Connect, read, write or pool timeout."""

    PROTOCOL = "protocol"
    """Peer violated HTTP framing (bad status line, truncated body)."""

    CANCELLED = "cancelled"
    """Request was cancelled locally."""

    OTHER = "other"
    """Anything not recognised above."""


_RETRYABLE_CLASSES: set[ErrorClass] = {
    ErrorClass.CONNECTION,
    ErrorClass.TIMEOUT,
}


def classify_transport_error(exc: BaseException) -> ErrorClass:
    """Classify a transport-level exception.

    Args:
        exc: Exception raised while performing the request

    Returns:
        The matching ErrorClass
    """
    if isinstance(exc, asyncio.CancelledError):
        return ErrorClass.CANCELLED

    # httpx timeouts subclass TransportError, so check them first
    if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
        return ErrorClass.TIMEOUT
    if isinstance(exc, (httpx.ConnectError, httpx.NetworkError, httpx.ProxyError)):
        return ErrorClass.CONNECTION
    if isinstance(exc, (httpx.ProtocolError, httpx.DecodingError)):
        return ErrorClass.PROTOCOL
    if isinstance(exc, (ConnectionError, ssl.SSLError, OSError)):
        return ErrorClass.CONNECTION

    return ErrorClass.OTHER


def is_retryable(error_class: ErrorClass) -> bool:
    """Check if a failure of this class is worth retrying.

    The request object never retries on its own; this is for callers
    building their own retry loops.
    """
    return error_class in _RETRYABLE_CLASSES
