"""
Type definitions for xhr-python.

Contains:
- Lifecycle enums (ReadyState, ResponseType, HttpMethod)
- Event models (Event, ProgressEvent)
"""

from xhr_python.types.events import (
    Event,
    EventType,
    ProgressEvent,
    make_event,
    make_progress_event,
)
from xhr_python.types.state import HttpMethod, ReadyState, ResponseType

__all__ = [
    # Events
    "Event",
    "EventType",
    "ProgressEvent",
    "make_event",
    "make_progress_event",
    # State
    "HttpMethod",
    "ReadyState",
    "ResponseType",
]
