"""
Lifecycle events delivered to request callbacks.

A plain Event carries only its type tag; a ProgressEvent adds the byte
counters. Both are built through the factory functions at the bottom of
this module rather than instantiated by callers.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EventType(str, Enum):
    """Event names, each backed by an ``on<name>`` callback slot."""

    READYSTATECHANGE = "readystatechange"
    LOADSTART = "loadstart"
    PROGRESS = "progress"
    ABORT = "abort"
    ERROR = "error"
    LOAD = "load"
    TIMEOUT = "timeout"
    LOADEND = "loadend"

    @property
    def slot(self) -> str:
        """Name of the single-subscriber callback attribute."""
        return f"on{self.value}"


class Event(BaseModel):
    """Notification without payload (``readystatechange``)."""

    model_config = ConfigDict(frozen=True)

    type: EventType = Field(description="Event type discriminator")


class ProgressEvent(BaseModel):
    """Notification carrying cumulative transfer counters.

    Example:
        >>> def on_progress(event):
        ...     if event.length_computable:
        ...         print(f"{event.loaded}/{event.total}")
    """

    model_config = ConfigDict(frozen=True)

    type: EventType = Field(description="Event type discriminator")
    length_computable: bool = Field(
        default=False, description="Whether the total size is known"
    )
    loaded: int = Field(default=0, ge=0, description="Bytes received so far")
    total: int = Field(default=0, ge=0, description="Declared size, 0 if unknown")

    @property
    def ratio(self) -> float | None:
        """Fraction of the body received, or None when the total is unknown."""
        if not self.length_computable or self.total == 0:
            return None
        return self.loaded / self.total


def make_event(event_type: EventType | str) -> Event:
    """Create a plain event."""
    return Event(type=EventType(event_type))


def make_progress_event(
    event_type: EventType | str,
    loaded: int,
    total: int | None,
) -> ProgressEvent:
    """Create a progress event.

    Args:
        event_type: Event name
        loaded: Bytes received so far
        total: Declared length, or None when indeterminate

    Returns:
        ProgressEvent with ``length_computable`` derived from ``total``
    """
    return ProgressEvent(
        type=EventType(event_type),
        length_computable=total is not None,
        loaded=loaded,
        total=total or 0,
    )
