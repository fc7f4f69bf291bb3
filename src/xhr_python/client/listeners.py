"""
Ordered event listeners layered on top of the ``on<event>`` slots.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from xhr_python.types import EventType

if TYPE_CHECKING:
    from collections.abc import Callable


@dataclass
class Listener:
    """A registered listener.

    Attributes:
        event_type: Event the listener receives
        callback: Called with the event object
        once: Remove the listener after its first invocation
    """

    event_type: EventType
    callback: Callable[[Any], Any]
    once: bool = False


class EventListeners:
    """Listeners per event type, invoked in registration order.

    Registering the same callback twice for one event type is a no-op.

    Example:
        >>> listeners = EventListeners()
        >>> listeners.add("load", lambda event: print(event.loaded))
        >>> for listener in listeners.take("load"):
        ...     listener.callback(event)
    """

    def __init__(self) -> None:
        self._listeners: dict[EventType, list[Listener]] = {}

    def add(
        self,
        event_type: EventType | str,
        callback: Callable[[Any], Any],
        *,
        once: bool = False,
    ) -> Listener:
        """Register a listener, returning the existing one if already present."""
        event_type = EventType(event_type)
        registered = self._listeners.setdefault(event_type, [])
        for listener in registered:
            if listener.callback == callback:
                return listener

        listener = Listener(event_type=event_type, callback=callback, once=once)
        registered.append(listener)
        return listener

    def remove(self, event_type: EventType | str, callback: Callable[[Any], Any]) -> bool:
        """Unregister a listener.

        Returns:
            True if a listener was removed
        """
        registered = self._listeners.get(EventType(event_type), [])
        for i, listener in enumerate(registered):
            if listener.callback == callback:
                del registered[i]
                return True
        return False

    def take(self, event_type: EventType) -> list[Listener]:
        """Snapshot the listeners for one dispatch, dropping ``once`` entries."""
        registered = self._listeners.get(event_type, [])
        snapshot = list(registered)
        if any(listener.once for listener in snapshot):
            self._listeners[event_type] = [ln for ln in registered if not ln.once]
        return snapshot

    def count(self, event_type: EventType | str | None = None) -> int:
        """Number of listeners for one event type, or in total."""
        if event_type is None:
            return sum(len(v) for v in self._listeners.values())
        return len(self._listeners.get(EventType(event_type), []))

    def clear(self, event_type: EventType | str | None = None) -> None:
        """Remove listeners for one event type, or all of them."""
        if event_type is None:
            self._listeners.clear()
        else:
            self._listeners.pop(EventType(event_type), None)
