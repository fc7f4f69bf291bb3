"""
Transport contract used by the request lifecycle.

A transport receives a TransportTarget and an optional body, and yields a
TransportResponse whose body is consumed lazily. Cancelling the task that
drives the transport is the only way to stop it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable
    from contextlib import AbstractAsyncContextManager

    import httpx

DEFAULT_PORTS: dict[str, int] = {"http": 80, "https": 443}


@dataclass(frozen=True)
class TransportTarget:
    """Everything the transport needs to issue one request.

    Attributes:
        scheme: 'http' or 'https'
        hostname: Host name or address
        port: TCP port (defaults from the scheme)
        method: Upper-case HTTP method
        path: Request path including query string
        headers: Outbound headers
        auth: ``user`` or ``user:password`` when credentials were supplied
        timeout: Timeout in milliseconds, 0 for the transport default
        keep_alive: Whether pooled connections may be reused
    """

    scheme: str
    hostname: str
    port: int
    method: str
    path: str
    headers: dict[str, str] = field(default_factory=dict)
    auth: str | None = None
    timeout: int = 0
    keep_alive: bool = True

    @classmethod
    def for_request(
        cls,
        url: httpx.URL,
        method: str,
        headers: dict[str, str],
        *,
        user: str | None = None,
        password: str | None = None,
        timeout: int = 0,
    ) -> TransportTarget:
        """Build a target from a parsed URL and request configuration."""
        auth = None
        if user:
            auth = f"{user}:{password}" if password else user

        path = url.raw_path.decode("ascii") or "/"

        return cls(
            scheme=url.scheme,
            hostname=url.host,
            port=url.port or DEFAULT_PORTS[url.scheme],
            method=method,
            path=path,
            headers=dict(headers),
            auth=auth,
            timeout=timeout,
        )

    @property
    def is_tls(self) -> bool:
        return self.scheme == "https"

    @property
    def url(self) -> str:
        """Absolute URL without credentials."""
        host = f"[{self.hostname}]" if ":" in self.hostname else self.hostname
        return f"{self.scheme}://{host}:{self.port}{self.path}"

    @property
    def credentials(self) -> tuple[str, str] | None:
        """Split ``auth`` into (user, password) for basic authentication."""
        if self.auth is None:
            return None
        user, _, password = self.auth.partition(":")
        return user, password


@dataclass
class TransportResponse:
    """Response head plus a lazy body.

    Attributes:
        status: HTTP status code
        reason: Reason phrase
        headers: Header mapping in received order, names as received
        url: Final URL after redirects
        body: Async iterator of decoded body chunks
        downloaded: Bytes read off the wire so far, when that differs from
            the decoded size (compressed bodies)
    """

    status: int
    reason: str
    headers: dict[str, str]
    url: str
    body: AsyncIterator[bytes]
    downloaded: Callable[[], int] | None = None


@runtime_checkable
class Transport(Protocol):
    """Capability that performs the actual socket-level I/O."""

    def stream(
        self,
        target: TransportTarget,
        content: bytes | None = None,
    ) -> AbstractAsyncContextManager[TransportResponse]:
        """Open the request; the context exits once the body is released.

        Raises:
            TransportError: On connection-level failure
        """
        ...
