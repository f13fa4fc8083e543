"""
Test doubles shared across the suite.

- RecordingSleep: async sleep replacement that records requested delays
- RecordingUnitOfWorkManager: UnitOfWorkManager that remembers every unit of work it started
- FailingSchemaRunner: schema runner whose apply() (or pending check) raises
- RecordingSeeder: data seeder that records the tenants it was asked to seed
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from uuid import UUID

from migrationbus.tenancy.context import TenantScope, get_current_scope
from migrationbus.uow import UnitOfWork, UnitOfWorkManager


class RecordingSleep:
    """Stands in for asyncio.sleep; returns immediately."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class RecordingUnitOfWorkManager(UnitOfWorkManager):
    """Records (unit of work, begin options) for each begin() call."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.started: list[tuple[UnitOfWork, dict[str, Any]]] = []

    @asynccontextmanager
    async def begin(
        self,
        scope: TenantScope,
        database_name: str,
        **options: Any,
    ) -> AsyncIterator[UnitOfWork]:
        async with super().begin(scope, database_name, **options) as uow:
            self.started.append((uow, options))
            yield uow


class _FailingContext:
    def __init__(self, runner: FailingSchemaRunner) -> None:
        self._runner = runner

    async def get_pending_migrations(self) -> list[str]:
        if self._runner.fail_on_pending:
            raise self._runner.error
        return ["0001_initial"]

    async def apply(self) -> list[str]:
        self._runner.apply_attempts += 1
        raise self._runner.error


class FailingSchemaRunner:
    """Schema runner that always has one pending migration and fails to apply it."""

    def __init__(self, error: Exception | None = None, *, fail_on_pending: bool = False) -> None:
        self.error = error or RuntimeError("database is unavailable")
        self.fail_on_pending = fail_on_pending
        self.apply_attempts = 0
        self.bound: list[UnitOfWork] = []
        self.scopes_seen: list[TenantScope] = []

    def bind(self, uow: UnitOfWork) -> _FailingContext:
        self.bound.append(uow)
        self.scopes_seen.append(get_current_scope())
        return _FailingContext(self)


class RecordingSeeder:
    def __init__(self) -> None:
        self.seeded: list[UUID | None] = []

    async def seed(self, tenant_id: UUID | None) -> None:
        self.seeded.append(tenant_id)
