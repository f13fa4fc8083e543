"""
End-to-end migration scenarios against SQLite.

Each test wires the real pieces together: SQL schema runner, unit of work
manager, engine provider, tenant store, in-memory bus, lock provider and
retry coordinator. Every database is a file under tmp_path.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import create_async_engine

from migrationbus import (
    ApplyDatabaseMigrations,
    ConnectionStringResolver,
    ConnectionStrings,
    DatabaseMigrationEventHandler,
    EventRetryConfig,
    EventRetryCoordinator,
    InMemoryEventBus,
    InMemoryLockProvider,
    Migration,
    MigrationExecutor,
    RetryOutcome,
    SqlSchemaRunner,
    SQLAlchemyTenantStore,
    TenantCreated,
    TenantDatabaseResolver,
    TenantRecord,
    TenantStore,
    UnitOfWorkManager,
)
from migrationbus.uow import EngineProvider
from tests.fixtures import RecordingSeeder, RecordingSleep

pytestmark = pytest.mark.integration

CATALOG_MIGRATIONS = [
    Migration(
        "0001_products",
        ("CREATE TABLE products (id TEXT PRIMARY KEY, name TEXT NOT NULL, price NUMERIC)",),
    ),
    Migration(
        "0002_product_images",
        ("CREATE TABLE product_images (id TEXT PRIMARY KEY, product_id TEXT NOT NULL)",),
    ),
]


def sqlite(path: Path) -> str:
    return f"sqlite+aiosqlite:///{path}"


async def table_names(url: str) -> set[str]:
    engine = create_async_engine(url)
    try:
        async with engine.connect() as conn:
            return set(await conn.run_sync(lambda c: inspect(c).get_table_names()))
    finally:
        await engine.dispose()


@dataclass
class Service:
    """One service instance: its handler and everything behind it."""

    handler: DatabaseMigrationEventHandler
    event_bus: InMemoryEventBus
    seeder: RecordingSeeder
    sleep: RecordingSleep


@pytest_asyncio.fixture
async def tenant_store(tmp_path: Path) -> AsyncGenerator[SQLAlchemyTenantStore, None]:
    engine = create_async_engine(sqlite(tmp_path / "saas.db"))
    store = SQLAlchemyTenantStore(engine)
    await store.create_tables()
    yield store
    await engine.dispose()


@pytest_asyncio.fixture
async def engine_provider(
    tmp_path: Path, tenant_store: SQLAlchemyTenantStore
) -> AsyncGenerator[EngineProvider, None]:
    host = ConnectionStrings({"Default": sqlite(tmp_path / "host.db")})
    provider = EngineProvider(ConnectionStringResolver(host, tenant_store))
    yield provider
    await provider.dispose()


def build_service(
    database_name: str,
    migrations: list[Migration],
    tenant_store: TenantStore,
    engine_provider: EngineProvider,
) -> Service:
    event_bus = InMemoryEventBus(enable_tracing=False)
    sleep = RecordingSleep()
    seeder = RecordingSeeder()
    executor = MigrationExecutor(
        UnitOfWorkManager(engine_provider),
        SqlSchemaRunner(migrations),
        TenantDatabaseResolver(tenant_store, database_name),
        database_name,
        enable_tracing=False,
    )
    coordinator = EventRetryCoordinator(
        event_bus, EventRetryConfig(), sleep=sleep, enable_tracing=False
    )
    handler = DatabaseMigrationEventHandler(
        database_name,
        executor,
        tenant_store,
        event_bus,
        coordinator,
        lock_provider=InMemoryLockProvider(),
        data_seeder=seeder,
    )
    event_bus.subscribe_all(handler)
    return Service(handler, event_bus, seeder, sleep)


class TestHostMigration:
    @pytest.mark.asyncio
    async def test_host_and_dedicated_tenants_migrated(
        self,
        tmp_path: Path,
        tenant_store: SQLAlchemyTenantStore,
        engine_provider: EngineProvider,
    ) -> None:
        dedicated = TenantRecord(
            id=uuid4(),
            name="acme",
            connection_strings=ConnectionStrings({"Default": sqlite(tmp_path / "acme.db")}),
        )
        shared = TenantRecord(id=uuid4(), name="globex")
        await tenant_store.save(dedicated)
        await tenant_store.save(shared)
        service = build_service("Catalog", CATALOG_MIGRATIONS, tenant_store, engine_provider)

        await service.event_bus.publish([ApplyDatabaseMigrations(database_name="Catalog")])

        assert {"products", "product_images"} <= await table_names(sqlite(tmp_path / "host.db"))
        assert {"products", "product_images"} <= await table_names(sqlite(tmp_path / "acme.db"))
        assert service.seeder.seeded == [None, dedicated.id]
        assert len(service.event_bus.published_events) == 2
        assert service.sleep.calls == []

    @pytest.mark.asyncio
    async def test_second_run_is_noop(
        self,
        tenant_store: SQLAlchemyTenantStore,
        engine_provider: EngineProvider,
    ) -> None:
        service = build_service("Catalog", CATALOG_MIGRATIONS, tenant_store, engine_provider)
        event = ApplyDatabaseMigrations(database_name="Catalog")

        assert await service.handler.handle_apply_migrations(event) is RetryOutcome.SUCCEEDED
        assert await service.handler.handle_apply_migrations(
            ApplyDatabaseMigrations(database_name="Catalog")
        ) is RetryOutcome.SUCCEEDED


class TestRetryBudget:
    @pytest.mark.asyncio
    async def test_exhausted_event_is_abandoned(
        self,
        tmp_path: Path,
        tenant_store: SQLAlchemyTenantStore,
        engine_provider: EngineProvider,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A tenant event already retried three times is dropped on the next failure."""
        tenant = TenantRecord(
            id=uuid4(),
            name="acme",
            connection_strings=ConnectionStrings({"Basket": sqlite(tmp_path / "acme_basket.db")}),
        )
        await tenant_store.save(tenant)
        broken = [Migration("0001_baskets", ("CREATE TABLE baskets (",))]
        service = build_service("Basket", broken, tenant_store, engine_provider)
        event = ApplyDatabaseMigrations(
            tenant_id=tenant.id,
            database_name="Basket",
            properties={"TryCount": "3"},
        )

        with caplog.at_level(logging.ERROR, logger="migrationbus.retry.coordinator"):
            outcome = await service.handler.handle_apply_migrations(event)

        assert outcome is RetryOutcome.ABANDONED
        assert event.properties["TryCount"] == "4"
        assert service.event_bus.published_events == []
        assert service.sleep.calls == []
        assert service.seeder.seeded == []

        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(errors) == 1
        message = errors[0].getMessage()
        assert "Could not apply database migrations. Canceling the operation." in message
        assert f"tenant_id={tenant.id}" in message
        assert "database_name=Basket" in message

    @pytest.mark.asyncio
    async def test_failure_requeues_with_delay(
        self,
        tmp_path: Path,
        tenant_store: SQLAlchemyTenantStore,
        engine_provider: EngineProvider,
    ) -> None:
        broken = [Migration("0001_baskets", ("CREATE TABLE baskets (",))]
        service = build_service("Basket", broken, tenant_store, engine_provider)
        service.event_bus.clear_subscribers()
        event = ApplyDatabaseMigrations(database_name="Basket")

        outcome = await service.handler.handle_apply_migrations(event)

        assert outcome is RetryOutcome.REQUEUED
        assert event.properties["TryCount"] == "1"
        assert service.event_bus.published_events == [event]
        assert len(service.sleep.calls) == 1
        assert 5.0 <= service.sleep.calls[0] < 15.0


class TestTenantCreated:
    @pytest.mark.asyncio
    async def test_new_tenant_gets_own_database(
        self,
        tmp_path: Path,
        tenant_store: SQLAlchemyTenantStore,
        engine_provider: EngineProvider,
    ) -> None:
        tenant = TenantRecord(
            id=uuid4(),
            name="initech",
            connection_strings=ConnectionStrings(
                {"Catalog": sqlite(tmp_path / "initech_catalog.db")}
            ),
        )
        await tenant_store.save(tenant)
        service = build_service("Catalog", CATALOG_MIGRATIONS, tenant_store, engine_provider)

        await service.event_bus.publish([TenantCreated(id=tenant.id, name=tenant.name)])

        assert {"products", "product_images"} <= await table_names(
            sqlite(tmp_path / "initech_catalog.db")
        )
        assert "products" not in await table_names(sqlite(tmp_path / "host.db"))
        assert service.seeder.seeded == [tenant.id]
