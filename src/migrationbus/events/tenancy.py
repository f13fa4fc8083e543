"""
Integration events that drive schema migrations.

- ApplyDatabaseMigrations: run pending migrations for one logical database,
  for the host (tenant_id=None) or for a single tenant
- TenantCreated: a tenant was provisioned and needs its schema
- TenantConnectionStringUpdated: a tenant's connection string changed and
  the database behind it may need its schema
"""

from __future__ import annotations

from uuid import UUID

from pydantic import Field

from migrationbus.events.base import IntegrationEvent
from migrationbus.events.registry import register_event


@register_event
class ApplyDatabaseMigrations(IntegrationEvent):
    """Request to apply pending migrations to one logical database."""

    tenant_id: UUID | None = Field(
        default=None,
        description="Tenant to migrate, or None for the host database",
    )
    database_name: str = Field(
        ...,
        min_length=1,
        description="Logical database name (e.g., 'Catalog')",
    )


@register_event
class TenantCreated(IntegrationEvent):
    """Published by the tenant directory after a tenant is created."""

    id: UUID
    name: str


@register_event
class TenantConnectionStringUpdated(IntegrationEvent):
    """Published by the tenant directory when a connection string changes."""

    id: UUID
    name: str
    connection_string_name: str = Field(
        default="Default",
        description="Logical name of the connection string that changed",
    )
    old_value: str | None = None
    new_value: str | None = None


__all__ = [
    "ApplyDatabaseMigrations",
    "TenantCreated",
    "TenantConnectionStringUpdated",
]
