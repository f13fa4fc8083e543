"""
Retry coordination for failed event handling.

When handling an event fails, the coordinator bumps the try count stored in
the event itself and, while the budget allows, waits a random delay and
republishes the same event object so that some consumer picks it up again.
Past the budget the failure is logged and the event is dropped.

``run_with_retry`` is the one wrapper every event shape goes through; the
shapes differ only in the context extractor that describes them in logs.

Example:
    >>> coordinator = EventRetryCoordinator(event_bus)
    >>> outcome = await run_with_retry(
    ...     event,
    ...     lambda e: executor.migrate_schema(e.tenant_id),
    ...     coordinator,
    ...     describe_apply_migrations,
    ... )
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

from migrationbus.exceptions import TenantNotFoundError
from migrationbus.observability import Tracer, create_tracer
from migrationbus.observability.attributes import (
    ATTR_EVENT_ID,
    ATTR_EVENT_TYPE,
    ATTR_RETRY_OUTCOME,
    ATTR_TRY_COUNT,
)
from migrationbus.retry.config import EventRetryConfig
from migrationbus.retry.counter import increment_try_count

if TYPE_CHECKING:
    from migrationbus.bus.interface import EventBus
    from migrationbus.events.base import IntegrationEvent
    from migrationbus.events.tenancy import (
        ApplyDatabaseMigrations,
        TenantConnectionStringUpdated,
        TenantCreated,
    )

logger = logging.getLogger(__name__)

TEvent = TypeVar("TEvent", bound="IntegrationEvent")

ContextExtractor = Callable[[Any], dict[str, Any]]
SleepFunc = Callable[[float], Awaitable[Any]]


class RetryOutcome(Enum):
    """What happened to an event after it was handled."""

    SUCCEEDED = "succeeded"
    REQUEUED = "requeued"
    ABANDONED = "abandoned"


def describe_apply_migrations(event: ApplyDatabaseMigrations) -> dict[str, Any]:
    return {
        "operation": "apply database migrations",
        "tenant_id": str(event.tenant_id) if event.tenant_id else None,
        "database_name": event.database_name,
    }


def describe_tenant_created(event: TenantCreated) -> dict[str, Any]:
    return {
        "operation": "perform tenant created event",
        "tenant_id": str(event.id),
        "tenant_name": event.name,
    }


def describe_connection_string_updated(event: TenantConnectionStringUpdated) -> dict[str, Any]:
    return {
        "operation": "perform tenant connection string updated event",
        "tenant_id": str(event.id),
        "tenant_name": event.name,
        "connection_string_name": event.connection_string_name,
    }


def _format_context(context: dict[str, Any]) -> str:
    return ", ".join(f"{key}={value}" for key, value in context.items() if key != "operation")


class EventRetryCoordinator:
    """
    Decides between re-queueing and abandoning a failed event.

    The try count written by ``handle_failure`` is the count *after* the
    failed attempt. With the default ``max_try_count`` of 3 an event is
    handled at most four times: the first delivery plus three republishes.

    Args:
        event_bus: Bus the event is republished on
        config: Retry budget and delay range
        sleep: Awaitable sleep taking seconds (replaceable in tests)
        rng: Random source for the delay
        tracer: Optional custom Tracer instance
        enable_tracing: Ignored if tracer is provided
    """

    def __init__(
        self,
        event_bus: EventBus,
        config: EventRetryConfig | None = None,
        *,
        sleep: SleepFunc = asyncio.sleep,
        rng: random.Random | None = None,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        self._event_bus = event_bus
        self._config = config or EventRetryConfig()
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._tracer = tracer or create_tracer(__name__, enable_tracing)

    @property
    def config(self) -> EventRetryConfig:
        return self._config

    def next_delay_ms(self) -> int:
        """Random whole milliseconds in ``[min_delay_ms, max_delay_ms)``."""
        return self._rng.randint(self._config.min_delay_ms, self._config.max_delay_ms - 1)

    async def handle_failure(
        self,
        event: IntegrationEvent,
        error: BaseException,
        describe: ContextExtractor,
    ) -> RetryOutcome:
        """
        Record a failed attempt and republish or abandon the event.

        Args:
            event: The event whose handling failed; its properties are updated
            error: The failure
            describe: Returns the structured log context for the event

        Returns:
            REQUEUED if the event was republished, ABANDONED otherwise

        Raises:
            TryCountParseError: If the event carries a malformed try count
        """
        context = describe(event)
        operation = context.get("operation", "handle event")

        with self._tracer.span(
            "migrationbus.retry.handle_failure",
            {
                ATTR_EVENT_TYPE: event.event_type,
                ATTR_EVENT_ID: str(event.event_id),
            },
        ) as span:
            try_count = increment_try_count(event)
            extra = {
                **context,
                "event_id": str(event.event_id),
                "event_type": event.event_type,
                "try_count": try_count,
                "max_try_count": self._config.max_try_count,
            }

            if try_count <= self._config.max_try_count:
                logger.warning(
                    f"Could not {operation}. Re-queueing the operation. {_format_context(context)}",
                    exc_info=error,
                    extra=extra,
                )
                delay_ms = self.next_delay_ms()
                await self._sleep(delay_ms / 1000)
                logger.warning(
                    f"Re-publishing {event.event_type} (try {try_count} of "
                    f"{self._config.max_try_count}) after {delay_ms} ms",
                    extra={**extra, "delay_ms": delay_ms},
                )
                await self._event_bus.publish([event])
                outcome = RetryOutcome.REQUEUED
            else:
                logger.error(
                    f"Could not {operation}. Canceling the operation. {_format_context(context)}",
                    exc_info=error,
                    extra=extra,
                )
                outcome = RetryOutcome.ABANDONED

            if span:
                span.set_attribute(ATTR_TRY_COUNT, try_count)
                span.set_attribute(ATTR_RETRY_OUTCOME, outcome.value)

        return outcome


async def run_with_retry(
    event: TEvent,
    operation: Callable[[TEvent], Awaitable[Any]],
    coordinator: EventRetryCoordinator,
    describe: ContextExtractor,
) -> RetryOutcome:
    """
    Run ``operation(event)`` and hand any failure to the coordinator.

    An unknown tenant is not a transient failure: TenantNotFoundError
    propagates to the caller without touching the try count. So does a
    malformed try count, raised by the coordinator itself. Cancellation is
    not caught.

    Returns:
        SUCCEEDED, or whatever the coordinator decided
    """
    try:
        await operation(event)
    except TenantNotFoundError:
        raise
    except Exception as e:
        return await coordinator.handle_failure(event, e, describe)
    return RetryOutcome.SUCCEEDED


__all__ = [
    "RetryOutcome",
    "EventRetryCoordinator",
    "run_with_retry",
    "describe_apply_migrations",
    "describe_tenant_created",
    "describe_connection_string_updated",
    "ContextExtractor",
]
