"""Retry budget carried in event properties, and the coordinator that spends it."""

from migrationbus.retry.config import EventRetryConfig
from migrationbus.retry.coordinator import (
    ContextExtractor,
    EventRetryCoordinator,
    RetryOutcome,
    describe_apply_migrations,
    describe_connection_string_updated,
    describe_tenant_created,
    run_with_retry,
)
from migrationbus.retry.counter import (
    MAX_EVENT_TRY_COUNT,
    TRY_COUNT_PROPERTY,
    get_try_count,
    increment_try_count,
    set_try_count,
)

__all__ = [
    "TRY_COUNT_PROPERTY",
    "MAX_EVENT_TRY_COUNT",
    "get_try_count",
    "set_try_count",
    "increment_try_count",
    "EventRetryConfig",
    "EventRetryCoordinator",
    "RetryOutcome",
    "run_with_retry",
    "describe_apply_migrations",
    "describe_tenant_created",
    "describe_connection_string_updated",
    "ContextExtractor",
]
