"""Request lifecycle state machine.

Owns the request configuration, the ready state, the in-flight transport
task and the response buffer, and turns transport progress into events.

Event order for one send::

    loadstart
    readystatechange (HEADERS_RECEIVED), readystatechange (LOADING)
    progress*
    readystatechange (DONE), load, loadend
      | abort, loadend
      | readystatechange (DONE), error|timeout, loadend

The in-flight task is the transport handle. Anything it delivers after it
stopped being the current handle (reopened, completed, aborted) is dropped.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from xhr_python.client.response import ResponseState, decode_body
from xhr_python.encoding import encode_text
from xhr_python.errors import (
    ErrorClass,
    InvalidAccessError,
    SecurityError,
    TransportError,
    XhrNotImplementedError,
    XhrSyntaxError,
    XhrTypeError,
    classify_transport_error,
)
from xhr_python.telemetry import LogContext, get_logger, set_log_context
from xhr_python.transport import DEFAULT_PORTS, HttpTransport, TransportTarget
from xhr_python.types import (
    EventType,
    HttpMethod,
    ReadyState,
    ResponseType,
    make_event,
    make_progress_event,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from xhr_python.transport import Transport, TransportResponse
    from xhr_python.types import Event, ProgressEvent

logger = get_logger(__name__)

FORM_URLENCODED = "application/x-www-form-urlencoded"


def _find_key(headers: dict[str, str], name: str) -> str | None:
    wanted = name.lower()
    for key in headers:
        if key.lower() == wanted:
            return key
    return None


@dataclass
class RequestConfig:
    """Configuration captured by ``open``.

    Attributes:
        method: HTTP method
        url: Parsed target URL
        user: Basic-auth user name
        password: Basic-auth password
        headers: Outbound headers, last write wins
        mime_type: Override for the response MIME type
    """

    method: HttpMethod
    url: httpx.URL
    user: str | None = None
    password: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    mime_type: str | None = None


class RequestLifecycle:
    """State machine behind XMLHttpRequest.

    Args:
        transport: Transport capability (shared HttpTransport when omitted)
        dispatch: Receives every event, in order
    """

    def __init__(
        self,
        transport: Transport | None,
        dispatch: Callable[[Event | ProgressEvent], None],
    ) -> None:
        self._transport = transport
        self._dispatch = dispatch

        self.ready_state = ReadyState.UNSET
        self.response_type = ResponseType.DEFAULT
        self.timeout = 0
        self.config: RequestConfig | None = None
        self.response = ResponseState()

        self._task: asyncio.Task[None] | None = None
        self._settled: asyncio.Event | None = None
        self._abort_pending = False
        self._request_id = uuid.uuid4().hex[:12]

    @property
    def transport(self) -> Transport:
        if self._transport is None:
            self._transport = HttpTransport()
        return self._transport

    @property
    def in_flight(self) -> bool:
        return self._task is not None

    # -- operations -------------------------------------------------------

    def open(
        self,
        method: str | None,
        url: str | httpx.URL | None,
        is_async: bool = True,
        user: str | None = None,
        password: str | None = None,
    ) -> None:
        if method is None or url is None:
            raise XhrTypeError("open() requires a method and a URL", operation="open")

        try:
            verb = HttpMethod(str(method).upper())
        except ValueError:
            raise XhrSyntaxError(
                f"'{method}' is not a supported HTTP method", operation="open"
            ) from None
        if verb.is_forbidden:
            raise SecurityError(f"'{verb.value}' requests are forbidden", operation="open")

        if is_async is False:
            raise XhrNotImplementedError(
                "Synchronous requests are not supported", operation="open"
            ).with_hint("call open() with is_async=True and await wait()")

        parsed = self._parse_url(url)

        # Reopening drops whatever is still in flight
        if self._task is not None:
            task = self._task
            settled = self._release()
            task.cancel()
            if settled is not None:
                settled.set()

        self.config = RequestConfig(method=verb, url=parsed, user=user, password=password)
        self.response = ResponseState()
        self._change_state(ReadyState.OPENED)

    def set_request_header(self, name: str, value: str) -> None:
        # Before open() there is nothing to configure; open() starts from scratch
        if self.config is None:
            logger.debug("Header set before open() ignored", header=name)
            return
        key = _find_key(self.config.headers, name) or name
        self.config.headers[key] = str(value)

    def override_mime_type(self, mime_type: str) -> None:
        if self.config is None:
            logger.debug("MIME override before open() ignored", mime_type=mime_type)
            return
        self.config.mime_type = mime_type

    def send(self, body: str | bytes | bytearray | memoryview | None = None) -> None:
        if self.ready_state is not ReadyState.OPENED or self._task is not None:
            raise XhrTypeError(
                "send() is only valid once per open()", operation="send"
            )
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            raise InvalidAccessError(
                "send() requires a running asyncio event loop", operation="send"
            ) from None

        config = self.config
        assert config is not None
        content = self._prepare_body(config.headers, body)

        target = TransportTarget.for_request(
            config.url,
            config.method.value,
            config.headers,
            user=config.user,
            password=config.password,
            timeout=self.timeout,
        )

        self.response = ResponseState()
        self._settled = asyncio.Event()
        task = loop.create_task(self._fetch(target, content))
        self._task = task
        task.add_done_callback(self._on_fetch_done)

        self._emit_progress(EventType.LOADSTART)

    def abort(self) -> None:
        task = self._task
        if task is None:
            self._change_state(ReadyState.UNSET)
            return
        if self._abort_pending:
            return

        self._abort_pending = True
        self.response.reset_head()
        self._change_state(ReadyState.DONE)
        task.cancel()

    async def wait(self) -> ReadyState:
        settled = self._settled
        if settled is not None:
            await settled.wait()
        return self.ready_state

    # -- transport task ---------------------------------------------------

    async def _fetch(self, target: TransportTarget, content: bytes | None) -> None:
        set_log_context(
            LogContext(request_id=self._request_id, method=target.method, url=target.url)
        )
        logger.debug("Sending request", bytes=len(content) if content else 0)

        async with self.transport.stream(target, content) as response:
            if not self._is_live():
                return
            self._on_head(response)

            async for chunk in response.body:
                if not self._is_live():
                    return
                if chunk:
                    self._on_data(chunk, response.downloaded)

            # Trailing wire bytes (e.g. a gzip footer) may decode to nothing
            if response.downloaded is not None and self._is_live():
                self.response.received = response.downloaded()

        self._on_end()

    def _is_live(self) -> bool:
        return (
            self._task is not None
            and asyncio.current_task() is self._task
            and not self._abort_pending
        )

    def _on_head(self, response: TransportResponse) -> None:
        assert self.config is not None
        self.response.accept_head(
            response.status,
            response.reason,
            response.headers,
            response.url,
            self.config.mime_type,
        )
        logger.debug(
            "Headers received", status=response.status, length=self.response.length
        )

        self._change_state(ReadyState.HEADERS_RECEIVED)
        if self._is_live():
            self._change_state(ReadyState.LOADING)

    def _on_data(self, chunk: bytes, downloaded: Callable[[], int] | None = None) -> None:
        self.response.append(chunk, downloaded() if downloaded is not None else None)
        self._emit_progress(EventType.PROGRESS)

    def _on_end(self) -> None:
        if not self._is_live() or self.ready_state is not ReadyState.LOADING:
            return

        state = self.response
        state.length = state.received
        state.response, state.response_text = decode_body(
            state.body(), self.response_type, state.content_type
        )
        state.chunks.clear()

        # Callbacks below may open() a new request and replace self.response
        settled = self._release()
        self._change_state(ReadyState.DONE)
        self._emit_progress(EventType.LOAD, state)
        self._emit_progress(EventType.LOADEND, state)
        if settled is not None:
            settled.set()

    def _on_fetch_done(self, task: asyncio.Task[None]) -> None:
        exc = None if task.cancelled() else task.exception()
        if task is not self._task:
            return

        settled = self._release()
        if task.cancelled():
            self._on_abort()
        elif exc is not None:
            self._on_failure(exc)
        if settled is not None:
            settled.set()

    def _on_abort(self) -> None:
        logger.debug("Request aborted", request_id=self._request_id)
        state = self.response
        state.reset_head()
        self._emit_progress(EventType.ABORT, state)
        self._emit_progress(EventType.LOADEND, state)

    def _on_failure(self, exc: BaseException) -> None:
        if isinstance(exc, TransportError):
            error_class = exc.error_class
        else:
            error_class = classify_transport_error(exc)
        logger.warning(
            "Request failed",
            request_id=self._request_id,
            error_class=error_class.value,
            error=str(exc),
        )

        state = self.response
        state.reset_head()
        self._change_state(ReadyState.DONE)
        if error_class is ErrorClass.TIMEOUT:
            self._emit_progress(EventType.TIMEOUT, state)
        else:
            self._emit_progress(EventType.ERROR, state)
        self._emit_progress(EventType.LOADEND, state)

    def _release(self) -> asyncio.Event | None:
        self._task = None
        self._abort_pending = False
        settled, self._settled = self._settled, None
        return settled

    # -- helpers ----------------------------------------------------------

    @staticmethod
    def _parse_url(url: str | httpx.URL) -> httpx.URL:
        raw = str(url)
        if raw.startswith("//"):
            raw = "http:" + raw
        try:
            parsed = httpx.URL(raw)
        except httpx.InvalidURL as e:
            raise XhrSyntaxError(f"Invalid URL: {e}", operation="open") from e
        if parsed.scheme not in DEFAULT_PORTS or not parsed.host:
            raise XhrSyntaxError(
                f"Unsupported URL '{raw}'", operation="open"
            ).with_hint("use an absolute http:// or https:// URL")
        return parsed

    @staticmethod
    def _prepare_body(headers: dict[str, str], body: Any) -> bytes | None:
        if not body:
            return None
        if not isinstance(body, (str, bytes, bytearray, memoryview)):
            raise XhrTypeError(
                f"Unsupported body type {type(body).__name__}", operation="send"
            )

        content_type_key = _find_key(headers, "Content-Type")
        if content_type_key is None:
            content_type_key = "Content-Type"
            headers[content_type_key] = FORM_URLENCODED

        if isinstance(body, str):
            try:
                content = encode_text(body, headers[content_type_key])
            except UnicodeEncodeError as e:
                raise XhrTypeError(
                    f"Body cannot be encoded as {e.encoding}", operation="send"
                ).with_hint("declare a charset that covers the text, or send bytes") from e
        else:
            content = bytes(body)

        length_key = _find_key(headers, "Content-Length") or "Content-Length"
        headers[length_key] = str(len(content))
        return content

    def _change_state(self, state: ReadyState) -> None:
        self.ready_state = state
        self._dispatch(make_event(EventType.READYSTATECHANGE))

    def _emit_progress(self, event_type: EventType, state: ResponseState | None = None) -> None:
        if state is None:
            state = self.response
        self._dispatch(make_progress_event(event_type, state.received, state.length))
