"""
Tenant database presence check.

Tenants that share the host database must not trigger per-tenant migration
work; only tenants with a dedicated database for the logical database (or a
dedicated default database) need their own schema.
"""

from __future__ import annotations

import logging
from uuid import UUID

from migrationbus.tenancy.store import TenantRecord, TenantStore, is_blank

logger = logging.getLogger(__name__)


def has_dedicated_database(tenant: TenantRecord, database_name: str) -> bool:
    """
    True if the tenant has its own default database or its own ``database_name``.

    Args:
        tenant: The tenant record
        database_name: Logical database name (e.g., "Catalog")
    """
    strings = tenant.connection_strings
    return not is_blank(strings.default) or not is_blank(strings.get_or_none(database_name))


class TenantDatabaseResolver:
    """
    Decides whether a tenant owns a database for a named logical database.

    Example:
        >>> resolver = TenantDatabaseResolver(tenant_store, "Catalog")
        >>> if await resolver.has_dedicated_database(tenant_id):
        ...     await migrate(tenant_id)
    """

    def __init__(self, tenant_store: TenantStore, database_name: str) -> None:
        self._tenant_store = tenant_store
        self._database_name = database_name

    @property
    def database_name(self) -> str:
        return self._database_name

    async def has_dedicated_database(self, tenant_id: UUID) -> bool:
        """
        Look up the tenant and check its connection strings.

        Raises:
            TenantNotFoundError: If the tenant does not exist (not caught here)
        """
        tenant = await self._tenant_store.find(tenant_id)
        dedicated = has_dedicated_database(tenant, self._database_name)
        logger.debug(
            "Tenant %s %s a dedicated %s database",
            tenant_id,
            "has" if dedicated else "does not have",
            self._database_name,
            extra={"tenant_id": str(tenant_id), "database_name": self._database_name},
        )
        return dedicated


__all__ = ["TenantDatabaseResolver", "has_dedicated_database"]
