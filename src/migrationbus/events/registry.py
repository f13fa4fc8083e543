"""
Event type names to event classes.

A message received from another service carries ``EventType`` next to the
rest of its payload. ``EventRegistry.decode`` uses that name to rebuild the
event, ``Properties`` bag included, so a republished event keeps its try
count across the wire.
"""

from __future__ import annotations

import json
import threading
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from migrationbus.events.base import IntegrationEvent

TEvent = TypeVar("TEvent", bound="IntegrationEvent")


class EventTypeNotFoundError(KeyError):
    """Raised when no event class is registered under a type name."""

    def __init__(self, event_type: str) -> None:
        self.event_type = event_type
        super().__init__(f"Unknown event type: {event_type!r}")


class EventRegistry:
    """
    Maps type names to event classes.

    Registering the same class twice is a no-op; registering a different
    class under a taken name raises ValueError.
    """

    def __init__(self) -> None:
        self._classes: dict[str, type[IntegrationEvent]] = {}
        self._lock = threading.Lock()

    def register(self, event_class: type[TEvent], event_type: str | None = None) -> type[TEvent]:
        name = event_type or event_class.__name__
        with self._lock:
            existing = self._classes.setdefault(name, event_class)
        if existing is not event_class:
            raise ValueError(
                f"Event type {name!r} is already registered to {existing.__name__}"
            )
        return event_class

    def get_or_none(self, event_type: str) -> type[IntegrationEvent] | None:
        return self._classes.get(event_type)

    def get(self, event_type: str) -> type[IntegrationEvent]:
        event_class = self.get_or_none(event_type)
        if event_class is None:
            raise EventTypeNotFoundError(event_type)
        return event_class

    def decode(self, payload: str | bytes) -> IntegrationEvent:
        """
        Rebuild an event from its JSON wire format.

        Raises:
            EventTypeNotFoundError: If ``EventType`` is missing or unregistered
            ValidationError: If the payload does not match the event class
        """
        data = json.loads(payload)
        return self.get(data.get("EventType", "")).model_validate(data)


default_registry = EventRegistry()


def register_event(event_class: type[TEvent]) -> type[TEvent]:
    """Class decorator adding ``event_class`` to ``default_registry``."""
    return default_registry.register(event_class)


__all__ = [
    "EventRegistry",
    "EventTypeNotFoundError",
    "default_registry",
    "register_event",
]
