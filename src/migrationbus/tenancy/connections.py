"""
Connection string selection for a tenant scope.

Order of precedence for (scope, database_name):
1. the tenant's connection string for ``database_name``
2. the tenant's ``"Default"`` connection string
3. the host's connection string for ``database_name``
4. the host's ``"Default"`` connection string

Only presence is checked; no pooling, secrets or encryption policy lives
here.
"""

from __future__ import annotations

import logging

from migrationbus.exceptions import ConnectionStringNotFoundError
from migrationbus.tenancy.context import TenantScope
from migrationbus.tenancy.store import ConnectionStrings, TenantStore, is_blank

logger = logging.getLogger(__name__)


class ConnectionStringResolver:
    """
    Picks the connection string a unit of work should open.

    Args:
        host_connection_strings: The host's connection strings
        tenant_store: Tenant directory, consulted for tenant scopes
    """

    def __init__(
        self,
        host_connection_strings: ConnectionStrings,
        tenant_store: TenantStore | None = None,
    ) -> None:
        self._host = host_connection_strings
        self._tenant_store = tenant_store

    async def resolve(self, scope: TenantScope, database_name: str) -> str:
        """
        Return the connection string for ``database_name`` in ``scope``.

        Raises:
            TenantNotFoundError: If the scope names an unknown tenant
            ConnectionStringNotFoundError: If nothing is configured
        """
        if scope.tenant_id is not None and self._tenant_store is not None:
            tenant = await self._tenant_store.find(scope.tenant_id)
            for candidate in (
                tenant.connection_strings.get_or_none(database_name),
                tenant.connection_strings.default,
            ):
                if not is_blank(candidate):
                    return candidate  # type: ignore[return-value]

        for candidate in (self._host.get_or_none(database_name), self._host.default):
            if not is_blank(candidate):
                return candidate  # type: ignore[return-value]

        raise ConnectionStringNotFoundError(scope, database_name)


__all__ = ["ConnectionStringResolver"]
