"""
In-process event bus.

Handlers subscribed here run in the publishing process, one after another in
subscription order. With ``background=False`` delivery happens inside
``publish``: when the retry coordinator republishes the event a handler is
working on, that handler is re-entered before the outer ``publish`` returns.

Every published event is kept in ``published_events`` so callers can see
what was re-queued or fanned out.
"""

import asyncio
import logging
import threading
from collections import defaultdict
from dataclasses import asdict, dataclass

from migrationbus.bus.adapter import HandlerAdapter
from migrationbus.bus.interface import EventBus, EventHandlerFunc
from migrationbus.events.base import IntegrationEvent
from migrationbus.observability import Tracer, create_tracer
from migrationbus.observability.attributes import (
    ATTR_EVENT_COUNT,
    ATTR_EVENT_ID,
    ATTR_EVENT_TYPE,
    ATTR_HANDLER_COUNT,
    ATTR_HANDLER_NAME,
    ATTR_HANDLER_SUCCESS,
)
from migrationbus.protocols import FlexibleEventHandler, FlexibleEventSubscriber

logger = logging.getLogger(__name__)


@dataclass
class DeliveryStats:
    """Counters for one InMemoryEventBus."""

    events_published: int = 0
    handlers_invoked: int = 0
    handler_errors: int = 0
    background_tasks_created: int = 0
    background_tasks_completed: int = 0


class InMemoryEventBus(EventBus):
    """
    Event bus delivering to handlers in the same process.

    A handler that raises is logged and counted; the remaining handlers still
    receive the event and the publisher never sees the error.

    Example:
        >>> bus = InMemoryEventBus()
        >>> bus.subscribe_all(migration_handler)
        >>> await bus.publish([ApplyDatabaseMigrations(database_name="Catalog")])

    Args:
        tracer: Tracer for publish/dispatch/handle spans
        enable_tracing: Build an OpenTelemetry tracer when no tracer is given
    """

    def __init__(
        self,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        self._routes: defaultdict[type[IntegrationEvent], list[HandlerAdapter]] = defaultdict(
            list
        )
        self._routes_lock = threading.RLock()
        self._pending_tasks: set[asyncio.Task[None]] = set()
        self._published: list[IntegrationEvent] = []
        self._stats = DeliveryStats()
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._enable_tracing = self._tracer.enabled

    async def publish(
        self,
        events: list[IntegrationEvent],
        background: bool = False,
    ) -> None:
        if not events:
            return
        if not background:
            await self._deliver_all(events)
            return

        task = asyncio.create_task(self._deliver_all(list(events)))
        self._pending_tasks.add(task)
        self._stats.background_tasks_created += 1
        task.add_done_callback(self._forget_task)

    def _forget_task(self, task: asyncio.Task[None]) -> None:
        self._pending_tasks.discard(task)
        self._stats.background_tasks_completed += 1
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Background delivery failed: %s", error, exc_info=error)

    async def _deliver_all(self, events: list[IntegrationEvent]) -> None:
        with self._tracer.span(
            "migrationbus.event_bus.publish",
            {ATTR_EVENT_COUNT: len(events)},
        ):
            for event in events:
                self._published.append(event)
                self._stats.events_published += 1
                await self._deliver(event)

    async def _deliver(self, event: IntegrationEvent) -> None:
        with self._routes_lock:
            adapters = list(self._routes.get(type(event), ()))
        if not adapters:
            logger.debug("No subscribers for %s", event)
            return

        with self._tracer.span(
            "migrationbus.event_bus.dispatch",
            {
                ATTR_EVENT_TYPE: event.event_type,
                ATTR_EVENT_ID: str(event.event_id),
                ATTR_HANDLER_COUNT: len(adapters),
            },
        ):
            for adapter in adapters:
                await self._invoke(adapter, event)

    async def _invoke(self, adapter: HandlerAdapter, event: IntegrationEvent) -> None:
        with self._tracer.span(
            "migrationbus.event_bus.handle",
            {
                ATTR_EVENT_TYPE: event.event_type,
                ATTR_EVENT_ID: str(event.event_id),
                ATTR_HANDLER_NAME: adapter.name,
            },
        ) as span:
            try:
                await adapter.handle(event)
            except Exception as e:
                self._stats.handler_errors += 1
                if span:
                    span.set_attribute(ATTR_HANDLER_SUCCESS, False)
                    span.record_exception(e)
                logger.exception(
                    "%s failed on %s: %s",
                    adapter.name,
                    event,
                    e,
                    extra={"handler": adapter.name, "event_id": str(event.event_id)},
                )
                return

            self._stats.handlers_invoked += 1
            if span:
                span.set_attribute(ATTR_HANDLER_SUCCESS, True)

    def subscribe(
        self,
        event_type: type[IntegrationEvent],
        handler: FlexibleEventHandler | EventHandlerFunc,
    ) -> None:
        adapter = HandlerAdapter(handler)
        with self._routes_lock:
            self._routes[event_type].append(adapter)
        logger.debug("Subscribed %s to %s", adapter.name, event_type.__name__)

    def unsubscribe(
        self,
        event_type: type[IntegrationEvent],
        handler: FlexibleEventHandler | EventHandlerFunc,
    ) -> bool:
        target = HandlerAdapter(handler)
        with self._routes_lock:
            adapters = self._routes.get(event_type, [])
            if target not in adapters:
                return False
            adapters.remove(target)
        return True

    def subscribe_all(self, subscriber: FlexibleEventSubscriber) -> None:
        for event_type in subscriber.subscribed_to():
            self.subscribe(event_type, subscriber)

    def clear_subscribers(self) -> None:
        with self._routes_lock:
            self._routes.clear()

    def get_subscriber_count(self, event_type: type[IntegrationEvent] | None = None) -> int:
        with self._routes_lock:
            if event_type is not None:
                return len(self._routes.get(event_type, ()))
            return sum(len(adapters) for adapters in self._routes.values())

    @property
    def published_events(self) -> list[IntegrationEvent]:
        """Every event handed to publish(), in order, including republished ones."""
        return list(self._published)

    def clear_published_events(self) -> None:
        self._published.clear()

    @property
    def pending_tasks(self) -> list[asyncio.Task[None]]:
        return list(self._pending_tasks)

    def get_stats(self) -> dict[str, int]:
        return asdict(self._stats)

    def get_background_task_count(self) -> int:
        return len(self._pending_tasks)

    async def shutdown(self, timeout: float = 30.0) -> None:
        """Wait for background deliveries, cancelling any still running after ``timeout`` seconds."""
        if not self._pending_tasks:
            return
        _, still_running = await asyncio.wait(set(self._pending_tasks), timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            logger.warning(
                "Cancelled %d background deliveries still running after %.1fs",
                len(still_running),
                timeout,
            )


__all__ = ["InMemoryEventBus", "DeliveryStats"]
