"""
Span attribute names.

``db.name`` follows the OpenTelemetry database conventions; everything else
is namespaced under ``migrationbus.``.
"""

# Events and bus delivery
ATTR_EVENT_ID = "migrationbus.event.id"
ATTR_EVENT_TYPE = "migrationbus.event.type"
ATTR_EVENT_COUNT = "migrationbus.event.count"
ATTR_HANDLER_NAME = "migrationbus.handler.name"
ATTR_HANDLER_COUNT = "migrationbus.handler.count"
ATTR_HANDLER_SUCCESS = "migrationbus.handler.success"

# Retry
ATTR_TRY_COUNT = "migrationbus.event.try_count"
"""Try count written to the event by the current failure."""
ATTR_RETRY_OUTCOME = "migrationbus.retry.outcome"
"""'requeued' or 'abandoned'."""

# Migration
ATTR_DB_NAME = "db.name"
ATTR_TENANT_ID = "migrationbus.tenant.id"
"""Tenant id, or empty string for the host."""
ATTR_MIGRATION_PENDING_COUNT = "migrationbus.migration.pending_count"
ATTR_MIGRATION_APPLIED = "migrationbus.migration.applied"

# Locks
ATTR_LOCK_KEY = "migrationbus.lock.key"
ATTR_LOCK_ACQUIRED = "migrationbus.lock.acquired"


__all__ = [
    "ATTR_EVENT_ID",
    "ATTR_EVENT_TYPE",
    "ATTR_EVENT_COUNT",
    "ATTR_HANDLER_NAME",
    "ATTR_HANDLER_COUNT",
    "ATTR_HANDLER_SUCCESS",
    "ATTR_TRY_COUNT",
    "ATTR_RETRY_OUTCOME",
    "ATTR_DB_NAME",
    "ATTR_TENANT_ID",
    "ATTR_MIGRATION_PENDING_COUNT",
    "ATTR_MIGRATION_APPLIED",
    "ATTR_LOCK_KEY",
    "ATTR_LOCK_ACQUIRED",
]
