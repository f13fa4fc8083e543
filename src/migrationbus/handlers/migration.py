"""
Migration event handler.

Each service that owns a database subscribes one of these handlers to the
event bus. It reacts to:

- ApplyDatabaseMigrations for its own database: migrate and seed, and after
  the host database changed, queue the same work for every tenant that has a
  dedicated database
- TenantCreated: migrate and seed the new tenant's database
- TenantConnectionStringUpdated for the default or its own connection
  string: migrate and seed the database the new string points to

Migration failures go to the retry coordinator, which republishes the event
with an incremented try count or gives up on it. An unknown tenant or a
malformed try count propagates to the caller unretried.
"""

from __future__ import annotations

import logging
from uuid import UUID

from migrationbus.bus.interface import EventBus
from migrationbus.config import MigrationSettings
from migrationbus.events.base import IntegrationEvent
from migrationbus.events.tenancy import (
    ApplyDatabaseMigrations,
    TenantConnectionStringUpdated,
    TenantCreated,
)
from migrationbus.locks.interface import LockProvider
from migrationbus.migrations.executor import MigrationExecutor
from migrationbus.protocols import EventSubscriber
from migrationbus.retry.coordinator import (
    EventRetryCoordinator,
    RetryOutcome,
    describe_apply_migrations,
    describe_connection_string_updated,
    describe_tenant_created,
    run_with_retry,
)
from migrationbus.seeding import DataSeeder, NullDataSeeder
from migrationbus.tenancy.resolver import has_dedicated_database
from migrationbus.tenancy.store import DEFAULT_CONNECTION_STRING_NAME, TenantStore, is_blank

logger = logging.getLogger(__name__)


class DatabaseMigrationEventHandler(EventSubscriber):
    """
    Subscriber that keeps one logical database migrated for host and tenants.

    Example:
        >>> handler = DatabaseMigrationEventHandler(
        ...     "Catalog", executor, tenant_store, event_bus, coordinator,
        ...     lock_provider=PostgreSQLLockProvider(session_factory),
        ... )
        >>> event_bus.subscribe_all(handler)

    Args:
        database_name: Logical database this service owns
        executor: Migration executor for that database
        tenant_store: Tenant directory, used for the host fan-out
        event_bus: Bus the fan-out events are published on
        coordinator: Retry coordinator for failed events
        lock_provider: Optional lock guarding ApplyDatabaseMigrations
        data_seeder: Optional seeder run after each migration
        lock_key_prefix: Prefix of the lock key, followed by database_name
        fan_out_tenant_migrations: Queue tenant migrations after a host migration
    """

    def __init__(
        self,
        database_name: str,
        executor: MigrationExecutor,
        tenant_store: TenantStore,
        event_bus: EventBus,
        coordinator: EventRetryCoordinator,
        *,
        lock_provider: LockProvider | None = None,
        data_seeder: DataSeeder | None = None,
        lock_key_prefix: str = "Migration_",
        fan_out_tenant_migrations: bool = True,
    ) -> None:
        self._database_name = database_name
        self._executor = executor
        self._tenant_store = tenant_store
        self._event_bus = event_bus
        self._coordinator = coordinator
        self._lock_provider = lock_provider
        self._data_seeder = data_seeder or NullDataSeeder()
        self._lock_key = f"{lock_key_prefix}{database_name}"
        self._fan_out = fan_out_tenant_migrations

    @classmethod
    def from_settings(
        cls,
        settings: MigrationSettings,
        executor: MigrationExecutor,
        tenant_store: TenantStore,
        event_bus: EventBus,
        coordinator: EventRetryCoordinator,
        *,
        lock_provider: LockProvider | None = None,
        data_seeder: DataSeeder | None = None,
    ) -> DatabaseMigrationEventHandler:
        return cls(
            settings.database_name,
            executor,
            tenant_store,
            event_bus,
            coordinator,
            lock_provider=lock_provider,
            data_seeder=data_seeder,
            lock_key_prefix=settings.lock_key_prefix,
            fan_out_tenant_migrations=settings.fan_out_tenant_migrations,
        )

    @property
    def database_name(self) -> str:
        return self._database_name

    @property
    def lock_key(self) -> str:
        return self._lock_key

    def subscribed_to(self) -> list[type[IntegrationEvent]]:
        return [ApplyDatabaseMigrations, TenantCreated, TenantConnectionStringUpdated]

    async def handle(self, event: IntegrationEvent) -> None:
        if isinstance(event, ApplyDatabaseMigrations):
            await self.handle_apply_migrations(event)
        elif isinstance(event, TenantCreated):
            await self.handle_tenant_created(event)
        elif isinstance(event, TenantConnectionStringUpdated):
            await self.handle_connection_string_updated(event)
        else:
            logger.debug("Ignoring unsupported event %s", event.event_type)

    async def handle_apply_migrations(self, event: ApplyDatabaseMigrations) -> RetryOutcome | None:
        """
        Migrate and seed for the event's tenant.

        Returns:
            None if the event targets another database, else the retry outcome
        """
        if event.database_name != self._database_name:
            return None
        return await run_with_retry(
            event, self._apply_migrations, self._coordinator, describe_apply_migrations
        )

    async def handle_tenant_created(self, event: TenantCreated) -> RetryOutcome:
        return await run_with_retry(
            event,
            lambda e: self._migrate_and_seed(e.id),
            self._coordinator,
            describe_tenant_created,
        )

    async def handle_connection_string_updated(
        self, event: TenantConnectionStringUpdated
    ) -> RetryOutcome | None:
        """
        Migrate and seed if the changed connection string concerns this database.

        Returns:
            None if the update is irrelevant, else the retry outcome
        """
        if event.connection_string_name not in (
            DEFAULT_CONNECTION_STRING_NAME,
            self._database_name,
        ) or is_blank(event.new_value):
            return None
        return await run_with_retry(
            event,
            lambda e: self._migrate_and_seed(e.id),
            self._coordinator,
            describe_connection_string_updated,
        )

    async def _apply_migrations(self, event: ApplyDatabaseMigrations) -> None:
        if self._lock_provider is None:
            migrated = await self._migrate_and_seed(event.tenant_id)
        else:
            async with self._lock_provider.try_acquire(self._lock_key) as handle:
                if handle is None:
                    logger.info(
                        "Could not acquire lock %s; another instance is migrating %s",
                        self._lock_key,
                        self._database_name,
                        extra={"lock_key": self._lock_key, "database_name": self._database_name},
                    )
                    return
                logger.info(
                    "Lock is acquired for db migration and seeding on database named: %s",
                    self._database_name,
                    extra={"lock_key": self._lock_key, "database_name": self._database_name},
                )
                migrated = await self._migrate_and_seed(event.tenant_id)

        # Published after the lock is released so the tenant events can take it
        if event.tenant_id is None and migrated and self._fan_out:
            await self._fan_out_tenant_migrations()

    async def _migrate_and_seed(self, tenant_id: UUID | None) -> bool:
        migrated = await self._executor.migrate_schema(tenant_id)
        await self._data_seeder.seed(tenant_id)
        return migrated

    async def _fan_out_tenant_migrations(self) -> None:
        tenants = [
            tenant
            for tenant in await self._tenant_store.get_list()
            if has_dedicated_database(tenant, self._database_name)
        ]
        if not tenants:
            return

        events: list[IntegrationEvent] = [
            ApplyDatabaseMigrations(tenant_id=tenant.id, database_name=self._database_name)
            for tenant in tenants
        ]
        logger.info(
            "Host %s schema changed; queueing migrations for %d tenant(s)",
            self._database_name,
            len(events),
            extra={"database_name": self._database_name, "tenant_count": len(events)},
        )
        await self._event_bus.publish(events)


__all__ = ["DatabaseMigrationEventHandler"]
