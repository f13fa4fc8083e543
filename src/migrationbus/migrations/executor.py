"""
Schema migration executor.

Brings one logical database of one tenant (or of the host) to the latest
schema. Each call:

1. switches to the tenant's scope,
2. starts a new, non-transactional unit of work,
3. for a tenant, skips the work unless the tenant has its own database,
4. checks for pending migrations and applies them,
5. completes the unit of work, whether or not anything was applied.

Nothing here retries or swallows errors; callers decide what a failure means.
"""

from __future__ import annotations

import logging
from uuid import UUID

from migrationbus.observability import Tracer, create_tracer
from migrationbus.observability.attributes import (
    ATTR_DB_NAME,
    ATTR_MIGRATION_APPLIED,
    ATTR_MIGRATION_PENDING_COUNT,
    ATTR_TENANT_ID,
)
from migrationbus.schema.interface import SchemaRunner
from migrationbus.tenancy.context import tenant_scope
from migrationbus.tenancy.resolver import TenantDatabaseResolver
from migrationbus.uow.manager import UnitOfWork, UnitOfWorkManager

logger = logging.getLogger(__name__)


class MigrationExecutor:
    """
    Applies pending schema migrations for one logical database.

    Example:
        >>> executor = MigrationExecutor(uow_manager, schema_runner, resolver, "Catalog")
        >>> applied = await executor.migrate_schema(None)  # host database
        >>> applied = await executor.migrate_schema(tenant_id)

    Args:
        uow_manager: Starts the unit of work each migration runs in
        schema_runner: Knows the migrations and how to apply them
        resolver: Tells whether a tenant has a dedicated database
        database_name: Logical database name (e.g., "Catalog")
        tracer: Optional custom Tracer instance
        enable_tracing: Ignored if tracer is provided
    """

    def __init__(
        self,
        uow_manager: UnitOfWorkManager,
        schema_runner: SchemaRunner,
        resolver: TenantDatabaseResolver,
        database_name: str,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        self._uow_manager = uow_manager
        self._schema_runner = schema_runner
        self._resolver = resolver
        self._database_name = database_name
        self._tracer = tracer or create_tracer(__name__, enable_tracing)

    @property
    def database_name(self) -> str:
        return self._database_name

    async def migrate_schema(self, tenant_id: UUID | None) -> bool:
        """
        Apply pending migrations for the host (None) or a tenant.

        Returns:
            True if at least one migration was applied

        Raises:
            TenantNotFoundError: If tenant_id is unknown to the tenant store
            SchemaMigrationError: If a migration failed
        """
        with self._tracer.span(
            "migrationbus.migration.migrate",
            {
                ATTR_DB_NAME: self._database_name,
                ATTR_TENANT_ID: str(tenant_id) if tenant_id else "",
            },
        ) as span:
            applied = False
            async with tenant_scope(tenant_id) as scope:
                async with self._uow_manager.begin(
                    scope,
                    self._database_name,
                    requires_new=True,
                    is_transactional=False,
                ) as uow:
                    if tenant_id is None:
                        logger.info(
                            "There is no tenant. Migrating %s...",
                            self._database_name,
                            extra={"database_name": self._database_name},
                        )
                        applied = await self._migrate(uow, span)
                    elif await self._resolver.has_dedicated_database(tenant_id):
                        logger.info(
                            "Migrating tenant database: %s with tenant id: %s...",
                            self._database_name,
                            tenant_id,
                            extra={
                                "database_name": self._database_name,
                                "tenant_id": str(tenant_id),
                            },
                        )
                        applied = await self._migrate(uow, span)

                    await uow.complete()

            if span:
                span.set_attribute(ATTR_MIGRATION_APPLIED, applied)
            return applied

    async def _migrate(self, uow: UnitOfWork, span: object) -> bool:
        context = self._schema_runner.bind(uow)
        pending = await context.get_pending_migrations()
        if span:
            span.set_attribute(ATTR_MIGRATION_PENDING_COUNT, len(pending))  # type: ignore[attr-defined]
        if not pending:
            logger.debug("No pending migrations for %s (%s)", self._database_name, uow.scope)
            return False

        await context.apply()
        logger.info(
            "Applied %d migration(s) to %s (%s)",
            len(pending),
            self._database_name,
            uow.scope,
            extra={
                "database_name": self._database_name,
                "scope": str(uow.scope),
                "migrations": pending,
            },
        )
        return True


__all__ = ["MigrationExecutor"]
