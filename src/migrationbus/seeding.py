"""
Post-migration data seeding.

After a database reaches the latest schema the service may need reference
data in it (default roles, lookup tables). The migration handler calls the
configured seeder with the tenant the schema was migrated for; the seeder
runs inside that tenant's scope.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Protocol, runtime_checkable
from uuid import UUID

from migrationbus.tenancy.context import TenantScope, tenant_scope

logger = logging.getLogger(__name__)

SeedFunc = Callable[[TenantScope], Awaitable[None]]


@runtime_checkable
class DataSeeder(Protocol):
    async def seed(self, tenant_id: UUID | None) -> None:
        """Seed data for the tenant, or for the host when tenant_id is None."""
        ...


class NullDataSeeder:
    """Seeder that does nothing."""

    async def seed(self, tenant_id: UUID | None) -> None:
        return None


class CompositeDataSeeder:
    """
    Runs seed contributors in order inside the tenant's scope.

    Contributors should be idempotent: the same tenant may be seeded again
    when its event is redelivered or republished.

    Example:
        >>> async def seed_roles(scope: TenantScope) -> None:
        ...     ...
        >>> seeder = CompositeDataSeeder([seed_roles])
        >>> await seeder.seed(tenant_id)
    """

    def __init__(self, contributors: Sequence[SeedFunc] = ()) -> None:
        self._contributors: list[SeedFunc] = list(contributors)

    def add(self, contributor: SeedFunc) -> None:
        self._contributors.append(contributor)

    async def seed(self, tenant_id: UUID | None) -> None:
        async with tenant_scope(tenant_id) as scope:
            for contributor in self._contributors:
                await contributor(scope)
        logger.info(
            "Seeded data for %s using %d contributor(s)",
            scope,
            len(self._contributors),
            extra={"tenant_id": str(tenant_id) if tenant_id else None},
        )


__all__ = ["DataSeeder", "NullDataSeeder", "CompositeDataSeeder", "SeedFunc"]
