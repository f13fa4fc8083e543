"""
Handler and subscriber protocols used by the event bus.

Protocols:
- EventHandler: async handler for integration events
- FlexibleEventHandler: handler whose handle() may be sync or async
- EventSubscriber: handler that declares the event types it consumes (ABC)
- FlexibleEventSubscriber: protocol form of EventSubscriber for type hints

Example:
    >>> class AuditSubscriber(EventSubscriber):
    ...     def subscribed_to(self) -> list[type[IntegrationEvent]]:
    ...         return [TenantCreated]
    ...
    ...     async def handle(self, event: IntegrationEvent) -> None:
    ...         await self.audit_log.write(event)
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable
from typing import Protocol, runtime_checkable

from migrationbus.events.base import IntegrationEvent


@runtime_checkable
class EventHandler(Protocol):
    """Protocol for async event handlers."""

    async def handle(self, event: IntegrationEvent) -> None:
        """
        Handle an integration event.

        Raises:
            Exception: If handling fails
        """
        ...


@runtime_checkable
class FlexibleEventHandler(Protocol):
    """
    Protocol for handlers that may be sync or async.

    The event bus accepts either and normalizes them through HandlerAdapter.
    """

    def handle(self, event: IntegrationEvent) -> Awaitable[None] | None:
        """Handle event, returning Awaitable if async."""
        ...


class EventSubscriber(ABC):
    """
    Abstract base class for event subscribers.

    Subscribers declare which event types they handle and provide a
    single handle() entry point; ``EventBus.subscribe_all`` registers the
    subscriber for every declared type.
    """

    @abstractmethod
    def subscribed_to(self) -> list[type[IntegrationEvent]]:
        """
        Return list of event types this subscriber handles.

        Returns:
            List of event type classes
        """
        pass

    @abstractmethod
    async def handle(self, event: IntegrationEvent) -> None:
        """
        Handle an integration event.

        Args:
            event: The event to handle
        """
        pass


@runtime_checkable
class FlexibleEventSubscriber(Protocol):
    """Protocol version of EventSubscriber for flexible typing."""

    def subscribed_to(self) -> list[type[IntegrationEvent]]:
        """Return list of event types this subscriber handles."""
        ...

    def handle(self, event: IntegrationEvent) -> Awaitable[None] | None:
        """Handle event, returning Awaitable if async."""
        ...


__all__ = [
    "EventHandler",
    "FlexibleEventHandler",
    "EventSubscriber",
    "FlexibleEventSubscriber",
]
