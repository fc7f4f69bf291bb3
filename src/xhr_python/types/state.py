"""Lifecycle enums shared by the request object and its collaborators."""

from __future__ import annotations

from enum import Enum, IntEnum


class ReadyState(IntEnum):
    """Stage of a request's lifecycle."""

    UNSET = 0
    OPENED = 1
    HEADERS_RECEIVED = 2
    LOADING = 3
    DONE = 4


class ResponseType(str, Enum):
    """How the response body is exposed once fully received."""

    DEFAULT = ""
    TEXT = "text"
    JSON = "json"
    ARRAYBUFFER = "arraybuffer"
    BLOB = "blob"
    DOCUMENT = "document"

    @property
    def is_supported(self) -> bool:
        return self not in (ResponseType.BLOB, ResponseType.DOCUMENT)


class HttpMethod(str, Enum):
    """HTTP methods known to the request object."""

    OPTIONS = "OPTIONS"
    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    CONNECT = "CONNECT"
    TRACE = "TRACE"
    TRACK = "TRACK"

    @property
    def is_forbidden(self) -> bool:
        """Methods that may be named but never sent."""
        return self in _FORBIDDEN_METHODS


_FORBIDDEN_METHODS = frozenset({HttpMethod.CONNECT, HttpMethod.TRACE, HttpMethod.TRACK})
