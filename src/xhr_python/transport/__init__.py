"""
Transport layer - HTTP I/O behind the request lifecycle.

Provides httpx-based transport with:
- Async streaming bodies
- Keep-alive connection pooling per scheme
- Timeout management
- Proxy configuration
"""

from xhr_python.transport.base import (
    DEFAULT_PORTS,
    Transport,
    TransportResponse,
    TransportTarget,
)
from xhr_python.transport.http import HttpTransport
from xhr_python.transport.pool import (
    ConnectionPool,
    PoolConfig,
    PoolStats,
    close_global_pool,
    get_connection_pool,
    set_connection_pool,
)

__all__ = [
    "DEFAULT_PORTS",
    "ConnectionPool",
    "HttpTransport",
    "PoolConfig",
    "PoolStats",
    "Transport",
    "TransportResponse",
    "TransportTarget",
    "close_global_pool",
    "get_connection_pool",
    "set_connection_pool",
]
