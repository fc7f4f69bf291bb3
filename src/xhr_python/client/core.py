"""XMLHttpRequest facade.

The browser request object for asyncio code: configure with ``open``, start
with ``send``, observe through ``on<event>`` slots or listeners, and read the
response from properties once ``ready_state`` is DONE.
"""

from __future__ import annotations

import asyncio
import functools
from typing import TYPE_CHECKING, Any

from xhr_python.client.lifecycle import RequestLifecycle
from xhr_python.client.listeners import EventListeners
from xhr_python.errors import XhrNotImplementedError, XhrTypeError
from xhr_python.telemetry import get_logger
from xhr_python.types import EventType, ReadyState, ResponseType

if TYPE_CHECKING:
    from collections.abc import Callable

    import httpx

    from xhr_python.types import Event, ProgressEvent
    from xhr_python.transport import Transport

logger = get_logger(__name__)


class XMLHttpRequestUpload:
    """Upload progress target.

    Present so code written against the browser API finds the attribute;
    upload progress is not reported.
    """

    def __init__(self) -> None:
        self.onloadstart: Callable[[Any], Any] | None = None
        self.onprogress: Callable[[Any], Any] | None = None
        self.onabort: Callable[[Any], Any] | None = None
        self.onerror: Callable[[Any], Any] | None = None
        self.onload: Callable[[Any], Any] | None = None
        self.ontimeout: Callable[[Any], Any] | None = None
        self.onloadend: Callable[[Any], Any] | None = None


class XMLHttpRequest:
    """Browser-compatible HTTP request object.

    Callback slots (``onload``, ``onprogress``, ...) hold one callable each;
    ``add_event_listener`` registers additional ones, invoked after the slot
    in registration order. Callbacks may be coroutine functions, in which
    case they are scheduled on the running loop.

    Example:
        >>> xhr = XMLHttpRequest()
        >>> xhr.open("GET", "https://example.com/data.json")
        >>> xhr.response_type = "json"
        >>> xhr.onload = lambda event: print(xhr.status, xhr.response)
        >>> xhr.send()
        >>> await xhr.wait()
    """

    UNSET = ReadyState.UNSET
    OPENED = ReadyState.OPENED
    HEADERS_RECEIVED = ReadyState.HEADERS_RECEIVED
    LOADING = ReadyState.LOADING
    DONE = ReadyState.DONE

    def __init__(self, transport: Transport | None = None) -> None:
        """Create a request object.

        Args:
            transport: Transport to send through; defaults to an
                HttpTransport on the process-wide connection pool
        """
        self.with_credentials = False
        self.upload = XMLHttpRequestUpload()

        self.onreadystatechange: Callable[[Any], Any] | None = None
        self.onloadstart: Callable[[Any], Any] | None = None
        self.onprogress: Callable[[Any], Any] | None = None
        self.onabort: Callable[[Any], Any] | None = None
        self.onerror: Callable[[Any], Any] | None = None
        self.onload: Callable[[Any], Any] | None = None
        self.ontimeout: Callable[[Any], Any] | None = None
        self.onloadend: Callable[[Any], Any] | None = None

        self._listeners = EventListeners()
        self._pending: set[asyncio.Task[Any]] = set()
        self._lifecycle = RequestLifecycle(transport, self._dispatch)

    # -- configuration ----------------------------------------------------

    def open(
        self,
        method: str | None = None,
        url: str | httpx.URL | None = None,
        is_async: bool = True,
        user: str | None = None,
        password: str | None = None,
    ) -> None:
        """Configure the request and reset it to OPENED.

        Raises:
            XhrTypeError: Method or URL missing
            XhrSyntaxError: Unknown method or unusable URL
            SecurityError: CONNECT, TRACE or TRACK
            XhrNotImplementedError: ``is_async=False``
        """
        self._lifecycle.open(method, url, is_async, user, password)

    def set_request_header(self, name: str, value: str) -> None:
        """Stage an outbound header; a later call for the same name wins."""
        self._lifecycle.set_request_header(name, value)

    def override_mime_type(self, mime_type: str) -> None:
        """Decode the response as ``mime_type`` instead of its Content-Type."""
        self._lifecycle.override_mime_type(mime_type)

    def send(self, body: str | bytes | bytearray | memoryview | None = None) -> None:
        """Start the request on the running event loop.

        Fires ``loadstart`` before returning; everything else arrives
        asynchronously.

        Raises:
            XhrTypeError: Not in OPENED state, already sent, or a body the
                declared charset cannot encode
            InvalidAccessError: No running event loop
        """
        self._lifecycle.send(body)

    def abort(self) -> None:
        """Cancel the in-flight request, or reset an idle one to UNSET."""
        self._lifecycle.abort()

    async def wait(self) -> ReadyState:
        """Wait until the current send has delivered ``loadend``."""
        return await self._lifecycle.wait()

    # -- events -----------------------------------------------------------

    def add_event_listener(
        self,
        event_type: EventType | str,
        callback: Callable[[Any], Any],
        *,
        once: bool = False,
    ) -> None:
        """Register an additional callback for an event."""
        self._listeners.add(event_type, callback, once=once)

    def remove_event_listener(
        self, event_type: EventType | str, callback: Callable[[Any], Any]
    ) -> None:
        """Unregister a callback added with ``add_event_listener``."""
        self._listeners.remove(event_type, callback)

    def _dispatch(self, event: Event | ProgressEvent) -> None:
        slot = getattr(self, event.type.slot)
        callbacks = [slot] if slot is not None else []
        callbacks.extend(listener.callback for listener in self._listeners.take(event.type))

        for callback in callbacks:
            try:
                result = callback(event)
            except Exception:
                logger.exception("Event callback failed", event=event.type.value)
                continue
            if asyncio.iscoroutine(result):
                self._schedule(result, event)

    def _schedule(self, coro: Any, event: Event | ProgressEvent) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.warning(
                "Async callback dropped, no running event loop", event=event.type.value
            )
            return
        task = loop.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(functools.partial(self._on_callback_done, event.type))

    def _on_callback_done(self, event_type: EventType, task: asyncio.Task[Any]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Event callback failed", exc_info=exc, event=event_type.value)

    # -- response ---------------------------------------------------------

    @property
    def ready_state(self) -> ReadyState:
        return self._lifecycle.ready_state

    @property
    def status(self) -> int:
        return self._lifecycle.response.status

    @property
    def status_text(self) -> str:
        return self._lifecycle.response.status_text

    @property
    def response_url(self) -> str:
        return self._lifecycle.response.url

    @property
    def response(self) -> Any:
        return self._lifecycle.response.response

    @property
    def response_text(self) -> str | None:
        return self._lifecycle.response.response_text

    @property
    def response_xml(self) -> None:
        """Always None; document responses are not supported."""
        return None

    @property
    def response_type(self) -> str:
        return self._lifecycle.response_type.value

    @response_type.setter
    def response_type(self, value: str | ResponseType) -> None:
        try:
            response_type = ResponseType(value)
        except ValueError:
            logger.warning("Ignoring unknown response type", response_type=str(value))
            return
        if not response_type.is_supported:
            raise XhrNotImplementedError(
                f"responseType '{response_type.value}' is not supported",
                operation="response_type",
            )
        self._lifecycle.response_type = response_type

    @property
    def timeout(self) -> int:
        """Timeout in milliseconds, 0 for the transport default."""
        return self._lifecycle.timeout

    @timeout.setter
    def timeout(self, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise XhrTypeError(
                "timeout must be a non-negative number of milliseconds",
                operation="timeout",
            )
        self._lifecycle.timeout = value

    def get_all_response_headers(self) -> str | None:
        """All response headers as CRLF-separated ``Name: value`` lines."""
        return self._lifecycle.response.serialize_headers()

    def get_response_header(self, name: str) -> str | None:
        """One response header value, matched case-insensitively."""
        return self._lifecycle.response.find_header(name)

    def __repr__(self) -> str:
        config = self._lifecycle.config
        target = f"{config.method.value} {config.url.host}{config.url.path}" if config else "unopened"
        return f"<XMLHttpRequest {target} state={self.ready_state.name}>"
