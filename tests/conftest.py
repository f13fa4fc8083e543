"""
Shared pytest fixtures for the migrationbus tests.

This module provides:
- Tenant fixtures (a dedicated-database tenant, a shared-database tenant,
  an in-memory tenant store holding both)
- Unit of work fixtures (engine provider, recording unit-of-work manager)
- Retry fixtures (recording sleep, seeded random source, coordinator)
- Event bus fixture (in-memory bus without tracing)
- SQLite fixtures (file-backed database URLs under tmp_path)
"""

from __future__ import annotations

import random
from collections.abc import AsyncGenerator
from pathlib import Path
from uuid import UUID, uuid4

import pytest
import pytest_asyncio

from migrationbus.bus import InMemoryEventBus
from migrationbus.retry import EventRetryConfig, EventRetryCoordinator
from migrationbus.schema import InMemorySchemaRunner
from migrationbus.tenancy import (
    ConnectionStringResolver,
    ConnectionStrings,
    InMemoryTenantStore,
    TenantDatabaseResolver,
    TenantRecord,
)
from migrationbus.uow import EngineProvider
from tests.fixtures import CATALOG, RecordingSleep, RecordingUnitOfWorkManager

# ============================================================================
# Tenant Fixtures
# ============================================================================


@pytest.fixture
def dedicated_tenant_id() -> UUID:
    return uuid4()


@pytest.fixture
def shared_tenant_id() -> UUID:
    return uuid4()


@pytest.fixture
def dedicated_tenant(dedicated_tenant_id: UUID) -> TenantRecord:
    """A tenant with its own default database."""
    return TenantRecord(
        id=dedicated_tenant_id,
        name="acme",
        connection_strings=ConnectionStrings({"Default": "sqlite+aiosqlite:///acme.db"}),
    )


@pytest.fixture
def shared_tenant(shared_tenant_id: UUID) -> TenantRecord:
    """A tenant living in the host databases."""
    return TenantRecord(id=shared_tenant_id, name="globex")


@pytest.fixture
def tenant_store(
    dedicated_tenant: TenantRecord,
    shared_tenant: TenantRecord,
) -> InMemoryTenantStore:
    return InMemoryTenantStore([dedicated_tenant, shared_tenant])


# ============================================================================
# Unit of Work Fixtures
# ============================================================================


@pytest.fixture
def host_connection_strings() -> ConnectionStrings:
    return ConnectionStrings({"Default": "sqlite+aiosqlite:///host.db"})


@pytest_asyncio.fixture
async def engine_provider(
    host_connection_strings: ConnectionStrings,
    tenant_store: InMemoryTenantStore,
) -> AsyncGenerator[EngineProvider, None]:
    """
    Engine provider over the in-memory tenant store.

    Engines are created lazily, so tests that never open a connection never
    touch the database files.
    """
    provider = EngineProvider(ConnectionStringResolver(host_connection_strings, tenant_store))
    yield provider
    await provider.dispose()


@pytest.fixture
def uow_manager(engine_provider: EngineProvider) -> RecordingUnitOfWorkManager:
    return RecordingUnitOfWorkManager(engine_provider)


@pytest.fixture
def catalog_resolver(tenant_store: InMemoryTenantStore) -> TenantDatabaseResolver:
    return TenantDatabaseResolver(tenant_store, CATALOG)


@pytest.fixture
def schema_runner() -> InMemorySchemaRunner:
    return InMemorySchemaRunner(["0001_products", "0002_product_images"])


# ============================================================================
# Retry and Bus Fixtures
# ============================================================================


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(42)


@pytest.fixture
def event_bus() -> InMemoryEventBus:
    return InMemoryEventBus(enable_tracing=False)


@pytest.fixture
def coordinator(
    event_bus: InMemoryEventBus,
    recording_sleep: RecordingSleep,
    rng: random.Random,
) -> EventRetryCoordinator:
    return EventRetryCoordinator(
        event_bus,
        EventRetryConfig(),
        sleep=recording_sleep,
        rng=rng,
        enable_tracing=False,
    )


# ============================================================================
# SQLite Fixtures
# ============================================================================


@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    """URL of an empty, file-backed SQLite database."""
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
