"""
Engine lookup per tenant scope.

Each distinct connection string gets one AsyncEngine, created on first use
and reused afterwards. Engines own their connection pools, so they are
disposed together on shutdown.

SQLite engines are created with the driver's implicit transaction handling
switched off and an explicit ``BEGIN`` emitted instead, so DDL rolls back
with the rest of its transaction like it does on PostgreSQL.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from migrationbus.tenancy.connections import ConnectionStringResolver
from migrationbus.tenancy.context import TenantScope

logger = logging.getLogger(__name__)

EngineFactory = Callable[[str], AsyncEngine]


def create_engine(url: str) -> AsyncEngine:
    """Default engine factory: ``create_async_engine`` with transactional DDL on SQLite."""
    engine = create_async_engine(url)
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _disable_implicit_transactions)
        event.listen(engine.sync_engine, "begin", _emit_begin)
    return engine


def _disable_implicit_transactions(dbapi_connection, connection_record) -> None:
    dbapi_connection.isolation_level = None


def _emit_begin(connection) -> None:
    connection.exec_driver_sql("BEGIN")


class EngineProvider:
    """
    Resolves and caches the AsyncEngine for (scope, database name).

    Args:
        resolver: Picks the connection string for a scope
        engine_factory: Creates an engine from a URL (defaults to create_engine)
    """

    def __init__(
        self,
        resolver: ConnectionStringResolver,
        engine_factory: EngineFactory | None = None,
    ) -> None:
        self._resolver = resolver
        self._engine_factory = engine_factory or create_engine
        self._engines: dict[str, AsyncEngine] = {}
        self._lock = asyncio.Lock()

    async def get_engine(self, scope: TenantScope, database_name: str) -> AsyncEngine:
        url = await self._resolver.resolve(scope, database_name)
        async with self._lock:
            engine = self._engines.get(url)
            if engine is None:
                engine = self._engine_factory(url)
                self._engines[url] = engine
                logger.debug(
                    "Created engine for %s (%s)",
                    database_name,
                    scope,
                    extra={"database_name": database_name, "scope": str(scope)},
                )
            return engine

    @property
    def engine_count(self) -> int:
        return len(self._engines)

    async def dispose(self) -> None:
        """Dispose every cached engine."""
        async with self._lock:
            engines = list(self._engines.values())
            self._engines.clear()
        for engine in engines:
            await engine.dispose()


__all__ = ["EngineProvider", "EngineFactory", "create_engine"]
