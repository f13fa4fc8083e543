"""Event bus interface definitions.

The event bus carries integration events between services. Handlers
subscribe per event type; the retry coordinator republishes failed events
through the same ``publish`` call producers use.

Implementations take an optional ``Tracer`` (composition) and use the span
names ``migrationbus.event_bus.publish``, ``migrationbus.event_bus.dispatch``
and ``migrationbus.event_bus.handle``.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from migrationbus.events.base import IntegrationEvent
from migrationbus.protocols import FlexibleEventHandler, FlexibleEventSubscriber

# Type alias for simple function-based handlers
EventHandlerFunc = Callable[[IntegrationEvent], Awaitable[None] | None]


class EventBus(ABC):
    """
    Abstract event bus for publishing and subscribing to integration events.

    Example:
        >>> event_bus = InMemoryEventBus()
        >>> event_bus.subscribe_all(migration_handler)
        >>> await event_bus.publish([ApplyDatabaseMigrations(database_name="Catalog")])
    """

    @abstractmethod
    async def publish(
        self,
        events: list[IntegrationEvent],
        background: bool = False,
    ) -> None:
        """
        Publish events to all registered subscribers.

        Events are delivered in order. The event objects are delivered as
        given, so metadata written into ``event.properties`` before publishing
        travels with them.

        Args:
            events: List of events to publish
            background: If True, publish without waiting for delivery

        Raises:
            EventBusError: If publishing fails (only in synchronous mode)
        """
        pass

    @abstractmethod
    def subscribe(
        self,
        event_type: type[IntegrationEvent],
        handler: FlexibleEventHandler | EventHandlerFunc,
    ) -> None:
        """
        Subscribe a handler to a specific event type.

        Args:
            event_type: The event class to subscribe to
            handler: Object with handle() method or callable
        """
        pass

    @abstractmethod
    def unsubscribe(
        self,
        event_type: type[IntegrationEvent],
        handler: FlexibleEventHandler | EventHandlerFunc,
    ) -> bool:
        """
        Unsubscribe a handler from a specific event type.

        Returns:
            True if the handler was found and removed, False otherwise
        """
        pass

    @abstractmethod
    def subscribe_all(self, subscriber: FlexibleEventSubscriber) -> None:
        """
        Subscribe a subscriber to every event type it declares.

        Calls subscribe() for each type returned by
        ``subscriber.subscribed_to()``.
        """
        pass


__all__ = [
    "EventBus",
    "EventHandlerFunc",
]
