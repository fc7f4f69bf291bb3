"""Charset and MIME type resolution for request and response bodies."""

from xhr_python.encoding.resolver import (
    BINARY,
    DEFAULT_CHARSET,
    DEFAULT_MIME_TYPE,
    LATIN1,
    UTF8,
    CharsetDecoder,
    decode_text,
    encode_text,
    get_charset,
    get_decoder,
    get_mime_type,
)

__all__ = [
    "BINARY",
    "DEFAULT_CHARSET",
    "DEFAULT_MIME_TYPE",
    "LATIN1",
    "UTF8",
    "CharsetDecoder",
    "decode_text",
    "encode_text",
    "get_charset",
    "get_decoder",
    "get_mime_type",
]
