"""
Keep-alive connection pooling.

Every request object on the same pool shares one ``httpx.AsyncClient`` per
URL scheme, so consecutive requests to a host reuse open sockets.
"""

from __future__ import annotations

import asyncio
import importlib.util
import os
import time
from contextlib import suppress
from dataclasses import dataclass, field
from typing import Any

import httpx

from xhr_python.telemetry import get_logger

logger = get_logger(__name__)

_SETUP_SAMPLES = 100


def _http2_enabled() -> bool:
    """HTTP/2 needs the optional ``h2`` package."""
    return importlib.util.find_spec("h2") is not None


def _trust_env_enabled() -> bool:
    return os.getenv("XHR_HTTP_TRUST_ENV", "0") == "1"


@dataclass
class PoolConfig:
    """Socket limits and default timeouts for pooled clients.

    Timeouts are in seconds and apply whenever a request leaves its own
    ``timeout`` at 0.

    Attributes:
        max_connections: Open sockets allowed per client
        max_keepalive_connections: Idle sockets kept for reuse
        keepalive_expiry: Seconds an idle socket survives
        connect_timeout: TCP and TLS setup
        read_timeout: Gap allowed between received bytes
        write_timeout: Gap allowed while sending the body
        pool_timeout: Wait for a free socket
        proxy: Proxy URL, None to connect directly
        trust_env: Read proxy and CA settings from the environment
    """

    max_connections: int = 100
    max_keepalive_connections: int = 20
    keepalive_expiry: float = 30.0
    connect_timeout: float = 10.0
    read_timeout: float = 60.0
    write_timeout: float = 60.0
    pool_timeout: float = 30.0
    proxy: str | None = None
    trust_env: bool = False

    @classmethod
    def default(cls) -> PoolConfig:
        return cls()

    @classmethod
    def high_throughput(cls) -> PoolConfig:
        """Many concurrent requests: wider limits, longer socket waits."""
        return cls(
            max_connections=200,
            max_keepalive_connections=50,
            keepalive_expiry=60.0,
            pool_timeout=60.0,
        )

    @classmethod
    def low_latency(cls) -> PoolConfig:
        """Few hosts polled often: keep sockets warm, fail connects fast."""
        return cls(
            max_connections=50,
            max_keepalive_connections=30,
            keepalive_expiry=120.0,
            connect_timeout=5.0,
        )

    @classmethod
    def from_env(cls) -> PoolConfig:
        """Defaults adjusted by the environment.

        ``XHR_HTTP_TIMEOUT_SECS`` replaces the read timeout (ignored when
        not a number). ``XHR_HTTP_TRUST_ENV=1`` enables environment proxy
        settings, with ``XHR_PROXY_URL`` as an explicit proxy.
        """
        config = cls()

        raw_timeout = os.getenv("XHR_HTTP_TIMEOUT_SECS")
        if raw_timeout:
            with suppress(ValueError):
                config.read_timeout = float(raw_timeout)

        if _trust_env_enabled():
            config.trust_env = True
            config.proxy = os.getenv("XHR_PROXY_URL")

        return config

    def to_httpx_limits(self) -> httpx.Limits:
        return httpx.Limits(
            max_connections=self.max_connections,
            max_keepalive_connections=self.max_keepalive_connections,
            keepalive_expiry=self.keepalive_expiry,
        )

    def to_httpx_timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self.connect_timeout,
            read=self.read_timeout,
            write=self.write_timeout,
            pool=self.pool_timeout,
        )


@dataclass
class PoolStats:
    """Counters for one scheme.

    Attributes:
        clients_created: Clients opened
        clients_closed: Clients shut down
        requests_total: Requests issued
        requests_successful: Requests that got a response head
        requests_failed: Requests that failed before a response head
        setup_times: Client construction times in seconds, most recent last
    """

    clients_created: int = 0
    clients_closed: int = 0
    requests_total: int = 0
    requests_successful: int = 0
    requests_failed: int = 0
    setup_times: list[float] = field(default_factory=list)

    @property
    def avg_setup_time_ms(self) -> float:
        if not self.setup_times:
            return 0.0
        return 1000 * sum(self.setup_times) / len(self.setup_times)

    def to_dict(self) -> dict[str, Any]:
        return {
            "clients_created": self.clients_created,
            "clients_closed": self.clients_closed,
            "requests_total": self.requests_total,
            "requests_successful": self.requests_successful,
            "requests_failed": self.requests_failed,
            "avg_setup_time_ms": self.avg_setup_time_ms,
        }


class ConnectionPool:
    """One keep-alive ``httpx.AsyncClient`` per scheme.

    Example:
        >>> async with ConnectionPool(PoolConfig.low_latency()) as pool:
        ...     client = await pool.get_client("https")
    """

    def __init__(self, config: PoolConfig | None = None) -> None:
        self._config = config or PoolConfig()
        self._clients: dict[str, httpx.AsyncClient] = {}
        self._stats: dict[str, PoolStats] = {}
        self._lock = asyncio.Lock()
        self._closed = False

    def _stats_for(self, scheme: str) -> PoolStats:
        return self._stats.setdefault(scheme, PoolStats())

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            limits=self._config.to_httpx_limits(),
            timeout=self._config.to_httpx_timeout(),
            proxy=self._config.proxy,
            trust_env=self._config.trust_env,
            http2=_http2_enabled(),
            follow_redirects=True,
        )

    async def get_client(self, scheme: str) -> httpx.AsyncClient:
        """Return the client for ``scheme``, creating it on first use.

        Raises:
            RuntimeError: The pool was closed
        """
        if self._closed:
            raise RuntimeError("Connection pool is closed")

        async with self._lock:
            client = self._clients.get(scheme)
            if client is None:
                started = time.perf_counter()
                client = self._clients[scheme] = self._new_client()

                stats = self._stats_for(scheme)
                stats.clients_created += 1
                stats.setup_times.append(time.perf_counter() - started)
                del stats.setup_times[:-_SETUP_SAMPLES]

                logger.debug("Created pooled client", scheme=scheme)
            return client

    async def close_client(self, scheme: str) -> None:
        """Drop the client for one scheme; the next request builds a new one."""
        async with self._lock:
            client = self._clients.pop(scheme, None)
            if client is not None:
                await client.aclose()
                self._stats_for(scheme).clients_closed += 1

    async def close(self) -> None:
        self._closed = True
        async with self._lock:
            clients, self._clients = self._clients, {}
            for scheme, client in clients.items():
                await client.aclose()
                self._stats_for(scheme).clients_closed += 1

    def record_request(self, scheme: str, success: bool = True) -> None:
        stats = self._stats_for(scheme)
        stats.requests_total += 1
        if success:
            stats.requests_successful += 1
        else:
            stats.requests_failed += 1

    def get_stats(self, scheme: str | None = None) -> dict[str, Any]:
        """Counters keyed by scheme, optionally for one scheme only."""
        if scheme:
            return {scheme: self._stats_for(scheme).to_dict()}
        return {name: stats.to_dict() for name, stats in self._stats.items()}

    @property
    def config(self) -> PoolConfig:
        return self._config

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def __aenter__(self) -> ConnectionPool:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


_default_pool: ConnectionPool | None = None


def get_connection_pool() -> ConnectionPool:
    """Process-wide pool used by transports created without one."""
    global _default_pool
    if _default_pool is None:
        _default_pool = ConnectionPool(PoolConfig.from_env())
    return _default_pool


def set_connection_pool(pool: ConnectionPool) -> None:
    global _default_pool
    _default_pool = pool


async def close_global_pool() -> None:
    """Close the process-wide pool; the next request creates a fresh one."""
    global _default_pool
    pool, _default_pool = _default_pool, None
    if pool is not None:
        await pool.close()
