"""Integration events and the event type registry."""

from migrationbus.events.base import IntegrationEvent
from migrationbus.events.registry import (
    EventRegistry,
    EventTypeNotFoundError,
    default_registry,
    register_event,
)
from migrationbus.events.tenancy import (
    ApplyDatabaseMigrations,
    TenantConnectionStringUpdated,
    TenantCreated,
)

__all__ = [
    "IntegrationEvent",
    "ApplyDatabaseMigrations",
    "TenantCreated",
    "TenantConnectionStringUpdated",
    "EventRegistry",
    "EventTypeNotFoundError",
    "default_registry",
    "register_event",
]
