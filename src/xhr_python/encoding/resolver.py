"""Content-type parsing: MIME type extraction and charset selection."""

from __future__ import annotations

import re
from dataclasses import dataclass

DEFAULT_MIME_TYPE = "application/octet-stream"
DEFAULT_CHARSET = "UTF-8"

_CHARSET_RE = re.compile(r"charset=([^()<>@,;:\"/\[\]?.=\s]*)", re.IGNORECASE)


@dataclass(frozen=True)
class CharsetDecoder:
    """A named charset bound to a Python codec.

    Attributes:
        name: Canonical name ('utf-8', 'latin-1' or 'binary')
        codec: Codec passed to bytes.decode / str.encode
        errors: Error handler used when decoding
    """

    name: str
    codec: str
    errors: str = "strict"

    def decode(self, data: bytes) -> str:
        return data.decode(self.codec, self.errors)

    def encode(self, text: str) -> bytes:
        """Encode strictly; unrepresentable characters raise UnicodeEncodeError."""
        return text.encode(self.codec)


UTF8 = CharsetDecoder("utf-8", "utf-8", errors="replace")
LATIN1 = CharsetDecoder("latin-1", "latin-1", errors="replace")
# Every byte maps to the code point of the same value, so nothing is lost
BINARY = CharsetDecoder("binary", "latin-1", errors="replace")

_DECODERS: dict[str, CharsetDecoder] = {
    "UTF-8": UTF8,
    "ISO-8859-1": LATIN1,
}


def get_mime_type(content_type: str | None) -> str:
    """Return the media type of a Content-Type value, without parameters."""
    if not content_type:
        return DEFAULT_MIME_TYPE
    return content_type.split(";", 1)[0].strip()


def get_charset(content_type: str | None) -> str:
    """Return the upper-cased charset parameter, UTF-8 when absent."""
    if not content_type:
        return DEFAULT_CHARSET
    match = _CHARSET_RE.search(content_type)
    return match.group(1).upper() if match else DEFAULT_CHARSET


def get_decoder(content_type: str | None) -> CharsetDecoder:
    """Resolve the decoder for a Content-Type value.

    Unknown charset names fall back to byte-preserving decoding instead of
    failing.
    """
    return _DECODERS.get(get_charset(content_type), BINARY)


def decode_text(data: bytes, content_type: str | None) -> str:
    """Decode a body using the charset declared in ``content_type``."""
    return get_decoder(content_type).decode(data)


def encode_text(text: str, content_type: str | None) -> bytes:
    """Encode an outgoing body using the charset declared in ``content_type``.

    Raises:
        UnicodeEncodeError: ``text`` has characters the charset cannot represent
    """
    return get_decoder(content_type).encode(text)
