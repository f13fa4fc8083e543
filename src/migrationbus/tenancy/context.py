"""
Tenant scope management.

A ``TenantScope`` is an explicit value naming the tenant (or the host when
``tenant_id`` is None) that data access should target. Collaborators that
need tenant scoping take the scope as an argument. The scope entered most
recently is also exposed through a ContextVar so code far from the call
site can read it; entering a scope always restores the previous one on exit,
including when the body raises.

The ContextVar keeps concurrent asyncio tasks isolated: each task sees the
scope it entered, never another task's.

Example:
    >>> async def migrate(tenant_id: UUID | None) -> None:
    ...     async with tenant_scope(tenant_id) as scope:
    ...         assert get_current_tenant() == tenant_id
    ...         await run_migrations(scope)
    ...     # previous scope restored here
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager, contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Generator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TenantScope:
    """
    The tenant a unit of work is bound to.

    Attributes:
        tenant_id: Tenant identifier, or None for the host/shared database
    """

    tenant_id: UUID | None = None

    @property
    def is_host(self) -> bool:
        return self.tenant_id is None

    def __str__(self) -> str:
        return "host" if self.tenant_id is None else f"tenant:{self.tenant_id}"


HOST_SCOPE = TenantScope()

_current_scope: ContextVar[TenantScope] = ContextVar("tenant_scope", default=HOST_SCOPE)


def get_current_scope() -> TenantScope:
    """Return the innermost entered scope, or the host scope if none was entered."""
    return _current_scope.get()


def get_current_tenant() -> UUID | None:
    """Return the current tenant id, or None when running against the host."""
    return _current_scope.get().tenant_id


@asynccontextmanager
async def tenant_scope(tenant_id: UUID | None) -> AsyncGenerator[TenantScope, None]:
    """
    Async context manager that switches to ``tenant_id`` for its body.

    Passing None switches to the host. The previous scope is restored on
    exit whether the body returns or raises.

    Args:
        tenant_id: The tenant to switch to, or None for the host

    Yields:
        The entered TenantScope
    """
    scope = TenantScope(tenant_id)
    token = _current_scope.set(scope)
    logger.debug("Tenant scope entered: %s", scope)
    try:
        yield scope
    finally:
        _current_scope.reset(token)
        logger.debug("Tenant scope exited: %s", scope)


@contextmanager
def tenant_scope_sync(tenant_id: UUID | None) -> Generator[TenantScope, None, None]:
    """Sync variant of tenant_scope."""
    scope = TenantScope(tenant_id)
    token = _current_scope.set(scope)
    logger.debug("Tenant scope (sync) entered: %s", scope)
    try:
        yield scope
    finally:
        _current_scope.reset(token)
        logger.debug("Tenant scope (sync) exited: %s", scope)


__all__ = [
    "TenantScope",
    "HOST_SCOPE",
    "get_current_scope",
    "get_current_tenant",
    "tenant_scope",
    "tenant_scope_sync",
]
