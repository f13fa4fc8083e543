"""
Tenant directory access.

The tenant directory is owned by another service; this module only reads
it. A tenant record carries the tenant's connection strings: the
``"Default"`` entry is the tenant's own default database, other entries
override the connection string for one logical database (``"Catalog"``,
``"Basket"``...). A tenant with no non-blank entries shares the host
databases.

Implementations:
- InMemoryTenantStore: dictionary-backed, for tests and single-process use
- SQLAlchemyTenantStore: reads ``tenants`` / ``tenant_connection_strings``
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy import Column, ForeignKey, MetaData, String, Table, Uuid, select
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from migrationbus.exceptions import TenantNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_CONNECTION_STRING_NAME = "Default"


class ConnectionStrings(dict[str, str]):
    """
    Mapping of logical database name to connection string.

    Example:
        >>> cs = ConnectionStrings({"Default": "postgresql+asyncpg://..."})
        >>> cs.default
        'postgresql+asyncpg://...'
        >>> cs.get_or_none("Catalog") is None
        True
    """

    @property
    def default(self) -> str | None:
        return self.get(DEFAULT_CONNECTION_STRING_NAME)

    def get_or_none(self, name: str) -> str | None:
        return self.get(name)


def is_blank(value: str | None) -> bool:
    """True for None, empty or whitespace-only strings."""
    return value is None or not value.strip()


@dataclass(frozen=True)
class TenantRecord:
    """
    A tenant as seen by this service.

    Attributes:
        id: Tenant identifier
        name: Human-readable tenant name
        connection_strings: Per-database connection string overrides
    """

    id: UUID
    name: str = ""
    connection_strings: ConnectionStrings = field(default_factory=ConnectionStrings)


@runtime_checkable
class TenantStore(Protocol):
    """Read access to the tenant directory."""

    async def find(self, tenant_id: UUID) -> TenantRecord:
        """
        Look up a tenant.

        Raises:
            TenantNotFoundError: If no tenant has this id
        """
        ...

    async def get_list(self) -> list[TenantRecord]:
        """Return every tenant in the directory."""
        ...


class InMemoryTenantStore:
    """
    Dictionary-backed tenant store.

    Example:
        >>> store = InMemoryTenantStore()
        >>> store.add(TenantRecord(id=tenant_id, name="acme"))
        >>> record = await store.find(tenant_id)
    """

    def __init__(self, tenants: list[TenantRecord] | None = None) -> None:
        self._tenants: dict[UUID, TenantRecord] = {t.id: t for t in tenants or []}

    def add(self, tenant: TenantRecord) -> None:
        """Add or replace a tenant record."""
        self._tenants[tenant.id] = tenant

    def remove(self, tenant_id: UUID) -> bool:
        return self._tenants.pop(tenant_id, None) is not None

    async def find(self, tenant_id: UUID) -> TenantRecord:
        try:
            return self._tenants[tenant_id]
        except KeyError:
            raise TenantNotFoundError(tenant_id) from None

    async def get_list(self) -> list[TenantRecord]:
        return list(self._tenants.values())


metadata = MetaData()

tenants_table = Table(
    "tenants",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("name", String(64), nullable=False),
)

tenant_connection_strings_table = Table(
    "tenant_connection_strings",
    metadata,
    Column("tenant_id", Uuid, ForeignKey("tenants.id"), primary_key=True),
    Column("name", String(64), primary_key=True),
    Column("value", String(1024), nullable=False),
)


class SQLAlchemyTenantStore:
    """
    Tenant store backed by the tenant directory's tables.

    Works against any SQLAlchemy async engine (PostgreSQL via asyncpg,
    SQLite via aiosqlite).

    Example:
        >>> engine = create_async_engine("sqlite+aiosqlite:///tenants.db")
        >>> store = SQLAlchemyTenantStore(engine)
        >>> tenants = await store.get_list()
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def create_tables(self) -> None:
        """Create the directory tables if they do not exist."""
        async with self._engine.begin() as conn:
            await conn.run_sync(metadata.create_all)

    async def save(self, tenant: TenantRecord) -> None:
        """Insert a tenant and its connection strings, replacing existing rows."""
        async with self._engine.begin() as conn:
            await conn.execute(
                tenant_connection_strings_table.delete().where(
                    tenant_connection_strings_table.c.tenant_id == tenant.id
                )
            )
            await conn.execute(tenants_table.delete().where(tenants_table.c.id == tenant.id))
            await conn.execute(tenants_table.insert().values(id=tenant.id, name=tenant.name))
            if tenant.connection_strings:
                await conn.execute(
                    tenant_connection_strings_table.insert(),
                    [
                        {"tenant_id": tenant.id, "name": name, "value": value}
                        for name, value in tenant.connection_strings.items()
                    ],
                )

    async def find(self, tenant_id: UUID) -> TenantRecord:
        async with self._engine.connect() as conn:
            result = await conn.execute(
                select(tenants_table.c.id, tenants_table.c.name).where(
                    tenants_table.c.id == tenant_id
                )
            )
            row = result.first()
            if row is None:
                raise TenantNotFoundError(tenant_id)

            strings = await self._load_connection_strings(conn, [tenant_id])
            return TenantRecord(
                id=row.id,
                name=row.name,
                connection_strings=strings.get(row.id, ConnectionStrings()),
            )

    async def get_list(self) -> list[TenantRecord]:
        async with self._engine.connect() as conn:
            result = await conn.execute(
                select(tenants_table.c.id, tenants_table.c.name).order_by(tenants_table.c.name)
            )
            rows = result.all()
            strings = await self._load_connection_strings(conn, [row.id for row in rows])
            return [
                TenantRecord(
                    id=row.id,
                    name=row.name,
                    connection_strings=strings.get(row.id, ConnectionStrings()),
                )
                for row in rows
            ]

    @staticmethod
    async def _load_connection_strings(
        conn: AsyncConnection,
        tenant_ids: list[UUID],
    ) -> dict[UUID, ConnectionStrings]:
        if not tenant_ids:
            return {}
        result = await conn.execute(
            select(
                tenant_connection_strings_table.c.tenant_id,
                tenant_connection_strings_table.c.name,
                tenant_connection_strings_table.c.value,
            ).where(tenant_connection_strings_table.c.tenant_id.in_(tenant_ids))
        )
        by_tenant: dict[UUID, ConnectionStrings] = {}
        for row in result:
            by_tenant.setdefault(row.tenant_id, ConnectionStrings())[row.name] = row.value
        return by_tenant


__all__ = [
    "DEFAULT_CONNECTION_STRING_NAME",
    "ConnectionStrings",
    "TenantRecord",
    "TenantStore",
    "InMemoryTenantStore",
    "SQLAlchemyTenantStore",
    "is_blank",
    "metadata",
    "tenants_table",
    "tenant_connection_strings_table",
]
