"""
Schema runner interface.

The schema runner is the opaque "apply pending schema changes" operation.
It is bound to a unit of work, which fixes the tenant scope, the database
and the connection, and yields a ``SchemaContext``: the handle used to ask
which migrations are pending and to apply them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from migrationbus.uow import UnitOfWork


@dataclass(frozen=True, order=True)
class Migration:
    """
    One schema migration.

    Migrations are ordered by ``id``; use zero-padded, sortable ids
    (``"0001_create_products"``).

    Attributes:
        id: Sortable unique identifier
        statements: SQL statements executed in order
        description: Optional human-readable summary
    """

    id: str
    statements: tuple[str, ...] = field(default=(), compare=False)
    description: str = field(default="", compare=False)


@runtime_checkable
class SchemaContext(Protocol):
    """Schema handle bound to one unit of work."""

    async def get_pending_migrations(self) -> list[str]:
        """Return ids of migrations not yet applied, in apply order."""
        ...

    async def apply(self) -> list[str]:
        """Apply every pending migration and return the ids applied."""
        ...


@runtime_checkable
class SchemaRunner(Protocol):
    """Creates schema contexts for units of work."""

    def bind(self, uow: UnitOfWork) -> SchemaContext:
        ...


__all__ = ["Migration", "SchemaContext", "SchemaRunner"]
