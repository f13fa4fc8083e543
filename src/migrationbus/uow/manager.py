"""
Unit of work for schema and data operations.

A unit of work is bound to one tenant scope and one logical database. Its
connection is opened lazily on first use and always released when the
``begin()`` block exits, whether it returns or raises. ``complete()`` commits;
leaving the block without completing rolls back transactional work.

Non-transactional units of work open no ambient transaction. Callers that
write group their statements with ``connection.begin()``; anything run
outside such a block autobegins and is rolled back unless completed.

Example:
    >>> async with uow_manager.begin(scope, "Catalog", requires_new=True,
    ...                              is_transactional=False) as uow:
    ...     conn = await uow.get_connection()
    ...     await conn.execute(text("CREATE TABLE ..."))
    ...     await uow.complete()
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from contextvars import ContextVar

from sqlalchemy.ext.asyncio import AsyncConnection

from migrationbus.exceptions import UnitOfWorkError
from migrationbus.tenancy.context import TenantScope
from migrationbus.uow.engines import EngineProvider

logger = logging.getLogger(__name__)

_current_uow: ContextVar[UnitOfWork | None] = ContextVar("unit_of_work", default=None)


class UnitOfWork:
    """
    One bounded scope of data operations against one database.

    Attributes:
        scope: The tenant scope the unit of work is bound to
        database_name: Logical database name
        is_transactional: Whether work runs inside a transaction
    """

    def __init__(
        self,
        scope: TenantScope,
        database_name: str,
        engine_provider: EngineProvider,
        *,
        is_transactional: bool = True,
    ) -> None:
        self.scope = scope
        self.database_name = database_name
        self.is_transactional = is_transactional
        self._engine_provider = engine_provider
        self._connection: AsyncConnection | None = None
        self._completed = False
        self._released = False

    @property
    def is_completed(self) -> bool:
        return self._completed

    @property
    def is_released(self) -> bool:
        return self._released

    @property
    def has_connection(self) -> bool:
        return self._connection is not None

    async def get_connection(self) -> AsyncConnection:
        """
        Return the unit of work's connection, opening it on first call.

        Raises:
            UnitOfWorkError: If the unit of work was already completed or released
        """
        self._ensure_active()
        if self._connection is None:
            engine = await self._engine_provider.get_engine(self.scope, self.database_name)
            connection = await engine.connect()
            if self.is_transactional:
                await connection.begin()
            self._connection = connection
        return self._connection

    async def complete(self) -> None:
        """
        Commit the unit of work.

        Raises:
            UnitOfWorkError: If called twice or after release
        """
        self._ensure_active()
        if self._connection is not None and self._connection.in_transaction():
            await self._connection.commit()
        self._completed = True
        logger.debug(
            "Unit of work completed for %s (%s)",
            self.database_name,
            self.scope,
        )

    async def release(self) -> None:
        """Close the connection, rolling back anything not completed. Idempotent."""
        if self._released:
            return
        self._released = True
        connection, self._connection = self._connection, None
        if connection is None:
            return
        try:
            if not self._completed and connection.in_transaction():
                await connection.rollback()
        finally:
            await connection.close()

    def _ensure_active(self) -> None:
        if self._released:
            raise UnitOfWorkError(f"Unit of work for {self.database_name} was already released")
        if self._completed:
            raise UnitOfWorkError(f"Unit of work for {self.database_name} was already completed")

    def __repr__(self) -> str:
        return (
            f"UnitOfWork(scope={self.scope}, database_name={self.database_name!r}, "
            f"is_transactional={self.is_transactional}, completed={self._completed})"
        )


class UnitOfWorkManager:
    """
    Starts units of work.

    ``begin(requires_new=False)`` joins the current unit of work when one is
    active for the same scope and database; ``requires_new=True`` always
    starts an independent one. The innermost unit of work is tracked per
    asyncio task.
    """

    def __init__(self, engine_provider: EngineProvider) -> None:
        self._engine_provider = engine_provider

    @property
    def current(self) -> UnitOfWork | None:
        return _current_uow.get()

    @asynccontextmanager
    async def begin(
        self,
        scope: TenantScope,
        database_name: str,
        *,
        requires_new: bool = False,
        is_transactional: bool = True,
    ) -> AsyncIterator[UnitOfWork]:
        """
        Begin (or join) a unit of work.

        Args:
            scope: Tenant scope to bind to
            database_name: Logical database name
            requires_new: Always start an independent unit of work
            is_transactional: Open an ambient transaction for the whole unit of work

        Yields:
            The active UnitOfWork
        """
        outer = _current_uow.get()
        if (
            not requires_new
            and outer is not None
            and not outer.is_released
            and outer.scope == scope
            and outer.database_name == database_name
        ):
            yield outer
            return

        uow = UnitOfWork(
            scope,
            database_name,
            self._engine_provider,
            is_transactional=is_transactional,
        )
        token = _current_uow.set(uow)
        logger.debug(
            "Unit of work started for %s (%s), transactional=%s",
            database_name,
            scope,
            is_transactional,
        )
        try:
            yield uow
        finally:
            _current_uow.reset(token)
            await uow.release()


__all__ = ["UnitOfWork", "UnitOfWorkManager"]
