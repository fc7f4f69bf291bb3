"""Root pytest fixtures for xhr-python tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tests.fakes import EventRecorder, FakeTransport, ScriptedResponse
from xhr_python import XMLHttpRequest

if TYPE_CHECKING:
    from collections.abc import Callable


@pytest.fixture
def fake_transport() -> FakeTransport:
    """Transport answering 200 with an empty body."""
    return FakeTransport()


@pytest.fixture
def make_xhr() -> Callable[..., tuple[XMLHttpRequest, FakeTransport, EventRecorder]]:
    """Build a request object wired to a FakeTransport and an EventRecorder."""

    def _make(
        *responses: ScriptedResponse,
    ) -> tuple[XMLHttpRequest, FakeTransport, EventRecorder]:
        transport = FakeTransport(*responses)
        xhr = XMLHttpRequest(transport=transport)
        return xhr, transport, EventRecorder(xhr)

    return _make
