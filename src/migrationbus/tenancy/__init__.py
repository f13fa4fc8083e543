"""
Multi-tenancy support: tenant scopes, the tenant directory and database
presence checks.
"""

from migrationbus.exceptions import ConnectionStringNotFoundError
from migrationbus.tenancy.connections import ConnectionStringResolver
from migrationbus.tenancy.context import (
    HOST_SCOPE,
    TenantScope,
    get_current_scope,
    get_current_tenant,
    tenant_scope,
    tenant_scope_sync,
)
from migrationbus.tenancy.resolver import TenantDatabaseResolver, has_dedicated_database
from migrationbus.tenancy.store import (
    DEFAULT_CONNECTION_STRING_NAME,
    ConnectionStrings,
    InMemoryTenantStore,
    SQLAlchemyTenantStore,
    TenantRecord,
    TenantStore,
    is_blank,
)

__all__ = [
    "TenantScope",
    "HOST_SCOPE",
    "get_current_scope",
    "get_current_tenant",
    "tenant_scope",
    "tenant_scope_sync",
    "DEFAULT_CONNECTION_STRING_NAME",
    "ConnectionStrings",
    "TenantRecord",
    "TenantStore",
    "InMemoryTenantStore",
    "SQLAlchemyTenantStore",
    "is_blank",
    "TenantDatabaseResolver",
    "has_dedicated_database",
    "ConnectionStringResolver",
    "ConnectionStringNotFoundError",
]
