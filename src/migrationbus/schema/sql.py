"""
SQL script schema runner.

Applies an ordered list of ``Migration`` objects through the unit of work's
connection and records each applied id in a history table. Pending
migrations are the declared ids missing from that table. Inspecting
pending migrations never writes: a database without the history table
simply has every migration pending.

Migrations can be declared in code or loaded from a directory of ``.sql``
files named by id (``0001_create_products.sql``), statements separated by
``;``.

Example:
    >>> runner = SqlSchemaRunner([
    ...     Migration("0001_products", ("CREATE TABLE products (id TEXT PRIMARY KEY)",)),
    ... ])
    >>> context = runner.bind(uow)
    >>> if await context.get_pending_migrations():
    ...     await context.apply()
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime, MetaData, String, Table, inspect, select, text
from sqlalchemy.ext.asyncio import AsyncConnection

from migrationbus.exceptions import SchemaMigrationError
from migrationbus.schema.interface import Migration

if TYPE_CHECKING:
    from migrationbus.uow import UnitOfWork

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_TABLE = "__schema_history"


def load_sql_migrations(directory: str | Path) -> list[Migration]:
    """
    Load migrations from ``*.sql`` files in ``directory``.

    The file stem is the migration id; files are applied in sorted order.

    Args:
        directory: Directory holding the migration scripts

    Returns:
        Migrations sorted by id

    Raises:
        FileNotFoundError: If the directory does not exist
    """
    path = Path(directory)
    if not path.is_dir():
        raise FileNotFoundError(f"Migration directory not found: {path}")

    migrations = []
    for script in sorted(path.glob("*.sql")):
        statements = tuple(
            stmt.strip() for stmt in script.read_text(encoding="utf-8").split(";") if stmt.strip()
        )
        migrations.append(Migration(id=script.stem, statements=statements))
    return migrations


class SqlSchemaRunner:
    """
    Schema runner for ordered SQL migrations.

    Args:
        migrations: The migrations this service declares
        history_table: Name of the table recording applied migration ids

    Raises:
        ValueError: If two migrations share an id
    """

    def __init__(
        self,
        migrations: Sequence[Migration],
        *,
        history_table: str = DEFAULT_HISTORY_TABLE,
    ) -> None:
        ids = [m.id for m in migrations]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate migration ids in {ids}")

        self._migrations = sorted(migrations)
        self._history = Table(
            history_table,
            MetaData(),
            Column("migration_id", String(150), primary_key=True),
            Column("applied_at", DateTime(timezone=True), nullable=False),
        )

    @property
    def migrations(self) -> list[Migration]:
        return list(self._migrations)

    @property
    def history_table(self) -> Table:
        return self._history

    def bind(self, uow: UnitOfWork) -> SqlSchemaContext:
        return SqlSchemaContext(self, uow)


class SqlSchemaContext:
    """Schema handle for one unit of work, created by SqlSchemaRunner.bind()."""

    def __init__(self, runner: SqlSchemaRunner, uow: UnitOfWork) -> None:
        self._runner = runner
        self._uow = uow

    async def get_applied_migrations(self) -> list[str]:
        conn = await self._uow.get_connection()
        if not await self._history_exists(conn):
            return []
        history = self._runner.history_table
        result = await conn.execute(
            select(history.c.migration_id).order_by(history.c.migration_id)
        )
        return [row.migration_id for row in result]

    async def get_pending_migrations(self) -> list[str]:
        applied = set(await self.get_applied_migrations())
        return [m.id for m in self._runner.migrations if m.id not in applied]

    async def apply(self) -> list[str]:
        """
        Apply pending migrations in id order.

        Each migration's statements and its history row commit together, so
        a failure leaves the database as it was before that migration and a
        later apply picks it up again. Inside a transactional unit of work
        everything rides on the unit of work's transaction instead.

        Raises:
            SchemaMigrationError: On the first migration that fails
        """
        conn = await self._uow.get_connection()
        history = self._runner.history_table
        async with self._transaction(conn):
            await conn.run_sync(history.metadata.create_all)

        pending = set(await self.get_pending_migrations())
        applied: list[str] = []
        for migration in self._runner.migrations:
            if migration.id not in pending:
                continue
            logger.info(
                "Applying migration %s to %s (%s)",
                migration.id,
                self._uow.database_name,
                self._uow.scope,
                extra={
                    "migration_id": migration.id,
                    "database_name": self._uow.database_name,
                    "scope": str(self._uow.scope),
                },
            )
            try:
                async with self._transaction(conn):
                    for statement in migration.statements:
                        await conn.execute(text(statement))
                    await conn.execute(
                        history.insert().values(
                            migration_id=migration.id,
                            applied_at=datetime.now(UTC),
                        )
                    )
            except Exception as e:
                raise SchemaMigrationError(migration.id, self._uow.database_name, str(e)) from e
            applied.append(migration.id)
        return applied

    @asynccontextmanager
    async def _transaction(self, conn: AsyncConnection) -> AsyncIterator[None]:
        if self._uow.is_transactional:
            yield
            return
        # end the read transaction autobegun by the pending check
        if conn.in_transaction():
            await conn.commit()
        async with conn.begin():
            yield

    async def _history_exists(self, conn: AsyncConnection) -> bool:
        name = self._runner.history_table.name
        return await conn.run_sync(lambda sync_conn: inspect(sync_conn).has_table(name))


__all__ = [
    "DEFAULT_HISTORY_TABLE",
    "SqlSchemaRunner",
    "SqlSchemaContext",
    "load_sql_migrations",
]
