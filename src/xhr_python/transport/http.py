"""HTTP transport using httpx for async streaming requests.

Provides:
- Pooled keep-alive clients (one per scheme)
- Per-request timeouts
- Basic authentication from the target's credential string
- Translation of httpx failures into classified TransportError
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import httpx

from xhr_python.errors import TransportError, classify_transport_error
from xhr_python.telemetry import get_logger
from xhr_python.transport.base import TransportResponse, TransportTarget
from xhr_python.transport.pool import ConnectionPool, get_connection_pool

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = get_logger(__name__)


def _collect_headers(headers: httpx.Headers) -> dict[str, str]:
    """Flatten response headers, keeping received names and order.

    Repeated fields are joined with ", ".
    """
    collected: dict[str, str] = {}
    index: dict[str, str] = {}
    for raw_name, raw_value in headers.raw:
        name = raw_name.decode(headers.encoding)
        value = raw_value.decode(headers.encoding)
        key = index.setdefault(name.lower(), name)
        if key in collected:
            collected[key] = f"{collected[key]}, {value}"
        else:
            collected[key] = value
    return collected


class HttpTransport:
    """Transport backed by a shared httpx connection pool.

    Example:
        >>> transport = HttpTransport()
        >>> async with transport.stream(target) as response:
        ...     async for chunk in response.body:
        ...         process(chunk)
    """

    def __init__(self, pool: ConnectionPool | None = None) -> None:
        """Initialize HTTP transport.

        Args:
            pool: Connection pool to use (process-wide pool when omitted)
        """
        self._pool = pool

    @property
    def pool(self) -> ConnectionPool:
        return self._pool or get_connection_pool()

    @staticmethod
    def _build_timeout(target: TransportTarget) -> Any:
        if target.timeout > 0:
            return httpx.Timeout(target.timeout / 1000.0)
        return httpx.USE_CLIENT_DEFAULT

    @staticmethod
    def _build_headers(target: TransportTarget) -> dict[str, str]:
        headers = dict(target.headers)
        names = {name.lower() for name in headers}
        # Progress counts wire bytes against Content-Length
        if "accept-encoding" not in names:
            headers["Accept-Encoding"] = "identity"
        if not target.keep_alive and "connection" not in names:
            headers["Connection"] = "close"
        return headers

    @asynccontextmanager
    async def stream(
        self,
        target: TransportTarget,
        content: bytes | None = None,
    ) -> AsyncIterator[TransportResponse]:
        """Issue the request and yield its head with a lazy body.

        Raises:
            TransportError: On network/connection errors
        """
        pool = self.pool
        client = await pool.get_client(target.scheme)
        auth = httpx.BasicAuth(*target.credentials) if target.credentials else None

        headed = False
        try:
            async with client.stream(
                method=target.method,
                url=target.url,
                headers=self._build_headers(target),
                content=content,
                auth=auth,
                timeout=self._build_timeout(target),
            ) as response:
                headed = True
                pool.record_request(target.scheme, success=True)
                logger.debug(
                    "Response head received",
                    status=response.status_code,
                    http_version=response.http_version,
                )
                yield TransportResponse(
                    status=response.status_code,
                    reason=response.reason_phrase,
                    headers=_collect_headers(response.headers),
                    url=str(response.url),
                    body=response.aiter_bytes(),
                    downloaded=lambda: response.num_bytes_downloaded,
                )
        except httpx.HTTPError as e:
            error_class = classify_transport_error(e)
            if not headed:
                pool.record_request(target.scheme, success=False)
            raise TransportError(
                f"{type(e).__name__}: {e}",
                url=target.url,
                error_class=error_class,
                cause=e,
            ) from e
