"""
Client module - the XMLHttpRequest object and its lifecycle.
"""

from xhr_python.client.core import XMLHttpRequest, XMLHttpRequestUpload
from xhr_python.client.lifecycle import RequestConfig, RequestLifecycle
from xhr_python.client.listeners import EventListeners, Listener
from xhr_python.client.response import ResponseState, decode_body, parse_content_length

__all__ = [
    "EventListeners",
    "Listener",
    "RequestConfig",
    "RequestLifecycle",
    "ResponseState",
    "XMLHttpRequest",
    "XMLHttpRequestUpload",
    "decode_body",
    "parse_content_length",
]
