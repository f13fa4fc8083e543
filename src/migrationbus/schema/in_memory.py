"""
In-memory schema runner.

Tracks applied migration ids per (database, tenant) without touching a
database. Used in tests and by services whose schema lives elsewhere.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING
from uuid import UUID

from migrationbus.schema.interface import Migration

if TYPE_CHECKING:
    from migrationbus.uow import UnitOfWork

logger = logging.getLogger(__name__)


class InMemorySchemaRunner:
    """
    Schema runner that records applied migrations in a dictionary.

    Attributes:
        apply_calls: Number of times apply() actually applied something,
            keyed by (database_name, tenant_id)
    """

    def __init__(self, migrations: Sequence[Migration | str]) -> None:
        self._migration_ids = sorted(m.id if isinstance(m, Migration) else m for m in migrations)
        self._applied: dict[tuple[str, UUID | None], list[str]] = {}
        self.apply_calls: dict[tuple[str, UUID | None], int] = {}

    def add_migration(self, migration: Migration | str) -> None:
        migration_id = migration.id if isinstance(migration, Migration) else migration
        self._migration_ids = sorted({*self._migration_ids, migration_id})

    def applied(self, database_name: str, tenant_id: UUID | None = None) -> list[str]:
        return list(self._applied.get((database_name, tenant_id), []))

    def bind(self, uow: UnitOfWork) -> InMemorySchemaContext:
        return InMemorySchemaContext(self, (uow.database_name, uow.scope.tenant_id))


class InMemorySchemaContext:
    def __init__(self, runner: InMemorySchemaRunner, key: tuple[str, UUID | None]) -> None:
        self._runner = runner
        self._key = key

    async def get_pending_migrations(self) -> list[str]:
        done = set(self._runner._applied.get(self._key, []))
        return [mid for mid in self._runner._migration_ids if mid not in done]

    async def apply(self) -> list[str]:
        pending = await self.get_pending_migrations()
        if pending:
            self._runner._applied.setdefault(self._key, []).extend(pending)
            self._runner.apply_calls[self._key] = self._runner.apply_calls.get(self._key, 0) + 1
            logger.debug("Applied %d in-memory migration(s) for %s", len(pending), self._key)
        return pending


__all__ = ["InMemorySchemaRunner", "InMemorySchemaContext"]
