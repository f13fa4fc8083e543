"""
migrationbus - event-driven schema migrations for multi-tenant services.

This library provides:
- Integration events that request migrations (host, tenant created,
  connection string updated)
- A migration executor that runs pending migrations inside a tenant-scoped,
  non-transactional unit of work
- A retry coordinator that keeps the retry budget in the event itself and
  republishes failed events after a random delay
- An in-process event bus, tenant stores and lock providers
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("migrationbus")
except PackageNotFoundError:
    # Running from source without install
    __version__ = "0.0.0.dev0"

from migrationbus.bus import EventBus, EventHandlerFunc, InMemoryEventBus
from migrationbus.config import MigrationSettings
from migrationbus.events import (
    ApplyDatabaseMigrations,
    EventRegistry,
    IntegrationEvent,
    TenantConnectionStringUpdated,
    TenantCreated,
    default_registry,
    register_event,
)
from migrationbus.exceptions import (
    ConnectionStringNotFoundError,
    EventBusError,
    LockAcquisitionError,
    MigrationBusError,
    SchemaMigrationError,
    TenantNotFoundError,
    TryCountParseError,
    UnitOfWorkError,
)
from migrationbus.handlers import DatabaseMigrationEventHandler
from migrationbus.locks import InMemoryLockProvider, LockHandle, LockProvider, PostgreSQLLockProvider
from migrationbus.migrations import MigrationExecutor
from migrationbus.protocols import EventHandler, EventSubscriber
from migrationbus.retry import (
    MAX_EVENT_TRY_COUNT,
    TRY_COUNT_PROPERTY,
    EventRetryConfig,
    EventRetryCoordinator,
    RetryOutcome,
    describe_apply_migrations,
    describe_connection_string_updated,
    describe_tenant_created,
    get_try_count,
    increment_try_count,
    run_with_retry,
    set_try_count,
)
from migrationbus.schema import InMemorySchemaRunner, Migration, SqlSchemaRunner, load_sql_migrations
from migrationbus.seeding import CompositeDataSeeder, DataSeeder, NullDataSeeder
from migrationbus.tenancy import (
    ConnectionStringResolver,
    ConnectionStrings,
    InMemoryTenantStore,
    SQLAlchemyTenantStore,
    TenantDatabaseResolver,
    TenantRecord,
    TenantScope,
    TenantStore,
    get_current_tenant,
    tenant_scope,
)
from migrationbus.uow import EngineProvider, UnitOfWork, UnitOfWorkManager

__all__ = [
    "__version__",
    # Events
    "IntegrationEvent",
    "ApplyDatabaseMigrations",
    "TenantCreated",
    "TenantConnectionStringUpdated",
    "EventRegistry",
    "default_registry",
    "register_event",
    # Bus
    "EventBus",
    "EventHandlerFunc",
    "InMemoryEventBus",
    "EventHandler",
    "EventSubscriber",
    # Retry
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
    # Tenancy
    "TenantScope",
    "tenant_scope",
    "get_current_tenant",
    "TenantRecord",
    "ConnectionStrings",
    "TenantStore",
    "InMemoryTenantStore",
    "SQLAlchemyTenantStore",
    "TenantDatabaseResolver",
    "ConnectionStringResolver",
    # Unit of work and schema
    "EngineProvider",
    "UnitOfWork",
    "UnitOfWorkManager",
    "Migration",
    "SqlSchemaRunner",
    "InMemorySchemaRunner",
    "load_sql_migrations",
    # Migration handling
    "MigrationExecutor",
    "DatabaseMigrationEventHandler",
    "DataSeeder",
    "NullDataSeeder",
    "CompositeDataSeeder",
    "LockProvider",
    "LockHandle",
    "InMemoryLockProvider",
    "PostgreSQLLockProvider",
    "MigrationSettings",
    # Exceptions
    "MigrationBusError",
    "TenantNotFoundError",
    "ConnectionStringNotFoundError",
    "TryCountParseError",
    "UnitOfWorkError",
    "SchemaMigrationError",
    "EventBusError",
    "LockAcquisitionError",
]
