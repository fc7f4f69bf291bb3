"""Tests for XMLHttpRequest configuration: open, headers, body, properties."""

import pytest

from tests.fakes import ScriptedResponse
from xhr_python import (
    InvalidAccessError,
    ReadyState,
    SecurityError,
    XhrNotImplementedError,
    XhrSyntaxError,
    XhrTypeError,
    XMLHttpRequest,
    XMLHttpRequestUpload,
)
from xhr_python.errors import UsageError

URL = "http://example.com/data"


class TestOpen:
    """Tests for open()."""

    def test_open_sets_opened(self) -> None:
        """Test open moves to OPENED with a zero status."""
        xhr = XMLHttpRequest()
        xhr.open("get", URL)
        assert xhr.ready_state == ReadyState.OPENED
        assert xhr.ready_state == XMLHttpRequest.OPENED
        assert xhr.status == 0

    @pytest.mark.parametrize("method", ["GET", "post", "Put", "DELETE", "HEAD", "OPTIONS", "PATCH"])
    def test_allowed_methods(self, method: str) -> None:
        """Test every supported verb is accepted case-insensitively."""
        xhr = XMLHttpRequest()
        xhr.open(method, URL)
        assert xhr.ready_state == ReadyState.OPENED

    def test_missing_url(self) -> None:
        """Test open with one argument fails."""
        xhr = XMLHttpRequest()
        with pytest.raises(XhrTypeError):
            xhr.open("GET")
        with pytest.raises(TypeError):
            xhr.open()
        assert xhr.ready_state == ReadyState.UNSET

    @pytest.mark.parametrize("method", ["CONNECT", "trace", "TRACK"])
    def test_forbidden_methods(self, method: str) -> None:
        """Test forbidden verbs raise SecurityError."""
        xhr = XMLHttpRequest()
        with pytest.raises(SecurityError):
            xhr.open(method, URL)

    def test_unknown_method(self) -> None:
        """Test an unrecognised verb raises SyntaxError."""
        xhr = XMLHttpRequest()
        with pytest.raises(XhrSyntaxError):
            xhr.open("FROB", URL)
        with pytest.raises(SyntaxError):
            xhr.open("FROB", URL)

    def test_synchronous_mode_not_implemented(self) -> None:
        """Test is_async=False is rejected."""
        xhr = XMLHttpRequest()
        with pytest.raises(XhrNotImplementedError) as exc_info:
            xhr.open("GET", URL, False)
        assert isinstance(exc_info.value, NotImplementedError)
        assert exc_info.value.context.hint is not None

    @pytest.mark.parametrize("url", ["ftp://example.com/file", "/relative/path", "http://"])
    def test_unusable_url(self, url: str) -> None:
        """Test non-HTTP or host-less URLs raise SyntaxError."""
        xhr = XMLHttpRequest()
        with pytest.raises(XhrSyntaxError):
            xhr.open("GET", url)

    def test_usage_errors_share_base(self) -> None:
        """Test all usage errors derive from UsageError."""
        xhr = XMLHttpRequest()
        for args in (("GET",), ("FROB", URL), ("CONNECT", URL)):
            with pytest.raises(UsageError) as exc_info:
                xhr.open(*args)
            assert exc_info.value.operation == "open"


class TestTransportTarget:
    """Tests for the target handed to the transport."""

    @pytest.mark.asyncio
    async def test_defaults(self, make_xhr) -> None:
        """Test scheme, port and path defaults."""
        xhr, transport, _ = make_xhr()
        xhr.open("GET", "https://example.com/a/b?x=1&y=2")
        xhr.send()
        await xhr.wait()

        target, content = transport.calls[0]
        assert target.scheme == "https"
        assert target.hostname == "example.com"
        assert target.port == 443
        assert target.method == "GET"
        assert target.path == "/a/b?x=1&y=2"
        assert target.auth is None
        assert target.timeout == 0
        assert target.keep_alive is True
        assert content is None

    @pytest.mark.asyncio
    async def test_protocol_relative_url(self, make_xhr) -> None:
        """Test //host URLs default to plain http."""
        xhr, transport, _ = make_xhr()
        xhr.open("GET", "//example.com/feed")
        xhr.send()
        await xhr.wait()

        target, _ = transport.calls[0]
        assert target.scheme == "http"
        assert target.port == 80
        assert target.path == "/feed"

    @pytest.mark.asyncio
    async def test_explicit_port_and_credentials(self, make_xhr) -> None:
        """Test explicit port and user:password auth string."""
        xhr, transport, _ = make_xhr()
        xhr.open("GET", "http://example.com:8080/", True, "alice", "s3cret")
        xhr.timeout = 2500
        xhr.send()
        await xhr.wait()

        target, _ = transport.calls[0]
        assert target.port == 8080
        assert target.auth == "alice:s3cret"
        assert target.credentials == ("alice", "s3cret")
        assert target.timeout == 2500
        assert target.url == "http://example.com:8080/"

    @pytest.mark.asyncio
    async def test_user_without_password(self, make_xhr) -> None:
        """Test a user alone becomes the auth string."""
        xhr, transport, _ = make_xhr()
        xhr.open("GET", URL, True, "alice")
        xhr.send()
        await xhr.wait()

        assert transport.calls[0][0].auth == "alice"


class TestRequestBody:
    """Tests for outbound headers and body encoding."""

    @pytest.mark.asyncio
    async def test_string_body_defaults(self, make_xhr) -> None:
        """Test a string body gets Content-Length and a form Content-Type."""
        xhr, transport, _ = make_xhr()
        xhr.open("POST", URL)
        xhr.send("a=1&b=é")
        await xhr.wait()

        target, content = transport.calls[0]
        assert content == "a=1&b=é".encode()
        assert target.headers["Content-Length"] == str(len(content))
        assert target.headers["Content-Type"] == "application/x-www-form-urlencoded"

    @pytest.mark.asyncio
    async def test_string_body_uses_declared_charset(self, make_xhr) -> None:
        """Test the request charset decides how text is encoded."""
        xhr, transport, _ = make_xhr()
        xhr.open("POST", URL)
        xhr.set_request_header("content-type", "text/plain; charset=ISO-8859-1")
        xhr.send("é")
        await xhr.wait()

        target, content = transport.calls[0]
        assert content == b"\xe9"
        assert target.headers["Content-Length"] == "1"
        assert target.headers["content-type"] == "text/plain; charset=ISO-8859-1"
        assert "Content-Type" not in target.headers

    @pytest.mark.asyncio
    async def test_unencodable_string_body(self, make_xhr) -> None:
        """Test text outside the declared charset is refused, not mangled."""
        xhr, transport, _ = make_xhr()
        xhr.open("POST", URL)
        xhr.set_request_header("Content-Type", "text/plain; charset=ISO-8859-1")
        with pytest.raises(XhrTypeError) as exc_info:
            xhr.send("price: 5€")
        assert isinstance(exc_info.value.__cause__, UnicodeEncodeError)
        assert transport.calls == []
        assert xhr.ready_state == ReadyState.OPENED

    @pytest.mark.asyncio
    async def test_bytes_body(self, make_xhr) -> None:
        """Test bytes are sent as-is."""
        xhr, transport, _ = make_xhr()
        xhr.open("PUT", URL)
        xhr.set_request_header("Content-Type", "application/octet-stream")
        xhr.send(b"\x00\x01\x02")
        await xhr.wait()

        target, content = transport.calls[0]
        assert content == b"\x00\x01\x02"
        assert target.headers["Content-Length"] == "3"
        assert target.headers["Content-Type"] == "application/octet-stream"

    @pytest.mark.asyncio
    async def test_empty_body_adds_nothing(self, make_xhr) -> None:
        """Test an empty body leaves headers alone."""
        xhr, transport, _ = make_xhr()
        xhr.open("POST", URL)
        xhr.send("")
        await xhr.wait()

        target, content = transport.calls[0]
        assert content is None
        assert target.headers == {}

    @pytest.mark.asyncio
    async def test_unsupported_body_type(self, make_xhr) -> None:
        """Test non text/bytes bodies are rejected."""
        xhr, transport, _ = make_xhr()
        xhr.open("POST", URL)
        with pytest.raises(XhrTypeError):
            xhr.send({"a": 1})
        assert transport.calls == []
        assert xhr.ready_state == ReadyState.OPENED

    @pytest.mark.asyncio
    async def test_last_header_write_wins(self, make_xhr) -> None:
        """Test repeated header names overwrite."""
        xhr, transport, _ = make_xhr()
        xhr.open("GET", URL)
        xhr.set_request_header("X-Token", "one")
        xhr.set_request_header("X-Token", "two")
        xhr.send()
        await xhr.wait()

        assert transport.calls[0][0].headers == {"X-Token": "two"}

    @pytest.mark.asyncio
    async def test_open_resets_headers(self, make_xhr) -> None:
        """Test headers do not survive a new open."""
        xhr, transport, _ = make_xhr()
        xhr.open("GET", URL)
        xhr.set_request_header("X-Token", "one")
        xhr.open("GET", URL)
        xhr.send()
        await xhr.wait()

        assert transport.calls[0][0].headers == {}

    def test_send_without_event_loop(self) -> None:
        """Test send outside a running loop is refused."""
        xhr = XMLHttpRequest()
        xhr.open("GET", URL)
        with pytest.raises(InvalidAccessError):
            xhr.send()
        assert xhr.ready_state == ReadyState.OPENED


class TestResponseHeaders:
    """Tests for response header accessors."""

    @pytest.mark.asyncio
    async def test_headers_lifecycle(self, make_xhr) -> None:
        """Test headers are null before the head and listed after."""
        xhr, _, _ = make_xhr(
            ScriptedResponse(headers={"Content-Type": "text/plain", "X-Request-Id": "abc"})
        )
        assert xhr.get_all_response_headers() is None
        xhr.open("GET", URL)
        assert xhr.get_all_response_headers() is None
        assert xhr.get_response_header("Content-Type") is None
        xhr.send()
        await xhr.wait()

        assert xhr.get_all_response_headers() == (
            "Content-Type: text/plain\r\nX-Request-Id: abc"
        )
        assert xhr.get_response_header("x-request-id") == "abc"
        assert xhr.get_response_header("X-Missing") is None


class TestProperties:
    """Tests for settable properties and API shape."""

    def test_defaults(self) -> None:
        """Test initial property values."""
        xhr = XMLHttpRequest()
        assert xhr.ready_state == ReadyState.UNSET
        assert xhr.status == 0
        assert xhr.status_text == ""
        assert xhr.response_url == ""
        assert xhr.response_type == ""
        assert xhr.response is None
        assert xhr.response_text is None
        assert xhr.response_xml is None
        assert xhr.timeout == 0
        assert xhr.with_credentials is False
        assert isinstance(xhr.upload, XMLHttpRequestUpload)
        assert xhr.onload is None

    @pytest.mark.parametrize("value", ["blob", "document"])
    def test_unsupported_response_types(self, value: str) -> None:
        """Test blob and document modes raise NotImplementedError."""
        xhr = XMLHttpRequest()
        with pytest.raises(XhrNotImplementedError):
            xhr.response_type = value
        assert xhr.response_type == ""

    def test_unknown_response_type_ignored(self) -> None:
        """Test an unknown response type leaves the setting unchanged."""
        xhr = XMLHttpRequest()
        xhr.response_type = "json"
        xhr.response_type = "yaml"
        assert xhr.response_type == "json"

    @pytest.mark.parametrize("value", [-1, 1.5, True, "10"])
    def test_invalid_timeout(self, value: object) -> None:
        """Test timeout accepts only non-negative integers."""
        xhr = XMLHttpRequest()
        with pytest.raises(XhrTypeError):
            xhr.timeout = value

    def test_repr(self) -> None:
        """Test repr shows method, target and state."""
        xhr = XMLHttpRequest()
        assert "unopened" in repr(xhr)
        xhr.open("GET", "https://user:pw@example.com/path")
        text = repr(xhr)
        assert "GET example.com/path" in text
        assert "OPENED" in text
        assert "pw" not in text

    def test_header_before_open_ignored(self) -> None:
        """Test configuration calls before open are harmless."""
        xhr = XMLHttpRequest()
        xhr.set_request_header("X-Test", "1")
        xhr.override_mime_type("text/plain")
        assert xhr.ready_state == ReadyState.UNSET
