"""
Lock provider hook.

Several instances of one service receive the same "apply migrations" event.
A lock provider lets the first one through and turns the others away; losing
the race is a normal outcome, so ``try_acquire`` yields None instead of
raising.

Example:
    >>> async with lock_provider.try_acquire("Migration_Catalog") as handle:
    ...     if handle is None:
    ...         return  # another instance is migrating
    ...     await executor.migrate_schema(tenant_id)
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class LockHandle:
    """
    A held lock.

    Attributes:
        key: The string key identifying the lock
        acquired_at: When the lock was acquired
        lock_id: Backend-specific numeric id, if any
    """

    key: str
    acquired_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    lock_id: int | None = None


@runtime_checkable
class LockProvider(Protocol):
    """Non-blocking, scoped lock acquisition."""

    def try_acquire(self, key: str) -> AbstractAsyncContextManager[LockHandle | None]:
        """
        Try to take the lock for the duration of the ``async with`` body.

        Yields:
            A LockHandle if acquired, None if someone else holds the lock

        Raises:
            LockAcquisitionError: If the backend failed
        """
        ...


__all__ = ["LockHandle", "LockProvider"]
