"""
Response state for one send, and the body decoding policy.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from xhr_python.encoding import DEFAULT_MIME_TYPE, decode_text, get_mime_type
from xhr_python.errors import XhrNotImplementedError
from xhr_python.types import ResponseType


@dataclass
class ResponseState:
    """What is known about the response so far.

    Attributes:
        status: HTTP status code, 0 until the head arrives
        status_text: Reason phrase
        headers: Response headers, None until the head arrives or after a reset
        url: Final response URL
        length: Declared Content-Length, None when indeterminate
        received: Body bytes received so far
        chunks: Raw body chunks in arrival order
        response: Decoded body
        response_text: Decoded text (text modes only)
        mime_type: MIME type the body was decoded as
        content_type: Content-Type value used to pick the charset
    """

    status: int = 0
    status_text: str = ""
    headers: dict[str, str] | None = None
    url: str = ""
    length: int | None = None
    received: int = 0
    chunks: list[bytes] = field(default_factory=list)
    response: Any = None
    response_text: str | None = None
    mime_type: str = DEFAULT_MIME_TYPE
    content_type: str | None = None

    def reset_head(self) -> None:
        """Forget status and headers after an error or abort."""
        self.status = 0
        self.status_text = ""
        self.headers = None

    def find_header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        if not self.headers:
            return None
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    def accept_head(
        self,
        status: int,
        status_text: str,
        headers: dict[str, str],
        url: str,
        mime_override: str | None = None,
    ) -> None:
        """Record the response head and derive length, MIME type and charset."""
        self.status = status
        self.status_text = status_text
        self.headers = headers
        self.url = url
        self.length = parse_content_length(self.find_header("Content-Length"))

        declared = self.find_header("Content-Type")
        self.mime_type = get_mime_type(mime_override or declared)
        # An override only replaces the charset when it names one
        if mime_override and "charset=" in mime_override.lower():
            self.content_type = mime_override
        else:
            self.content_type = declared

    def append(self, chunk: bytes, downloaded: int | None = None) -> None:
        """Buffer a decoded chunk.

        ``downloaded`` is the wire byte count reported by the transport; it
        replaces the decoded size so progress stays comparable to the
        declared Content-Length.
        """
        self.chunks.append(chunk)
        if downloaded is None:
            self.received += len(chunk)
        else:
            self.received = downloaded

    def body(self) -> bytes:
        return b"".join(self.chunks)

    def serialize_headers(self) -> str | None:
        if not self.headers:
            return None
        return "\r\n".join(f"{name}: {value}" for name, value in self.headers.items())


def parse_content_length(value: str | None) -> int | None:
    """Parse a Content-Length value; None when absent or malformed."""
    if value is None:
        return None
    try:
        length = int(value.strip())
    except ValueError:
        return None
    return length if length >= 0 else None


def decode_body(
    body: bytes,
    response_type: ResponseType,
    content_type: str | None,
) -> tuple[Any, str | None]:
    """Decode a complete body.

    Args:
        body: Raw response bytes
        response_type: Mode captured when the body completed
        content_type: Content-Type (or override) used to pick the charset

    Returns:
        ``(response, response_text)``; ``response_text`` is None outside
        the text modes

    Raises:
        XhrNotImplementedError: For blob and document modes
    """
    if response_type is ResponseType.ARRAYBUFFER:
        return body, None

    if response_type is ResponseType.JSON:
        try:
            return json.loads(body.decode("utf-8")), None
        except (UnicodeDecodeError, json.JSONDecodeError):
            return None, None

    if not response_type.is_supported:
        raise XhrNotImplementedError(
            f"responseType '{response_type.value}' is not supported",
            operation="decode",
        )

    text = decode_text(body, content_type)
    return text, text
