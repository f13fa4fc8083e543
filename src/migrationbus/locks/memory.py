"""In-process lock provider backed by asyncio locks."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from migrationbus.locks.interface import LockHandle

logger = logging.getLogger(__name__)


class InMemoryLockProvider:
    """
    Lock provider for a single process.

    Only guards against concurrent handlers inside one event loop; use
    PostgreSQLLockProvider when several service instances share a database.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def is_held(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def try_acquire(self, key: str) -> AsyncIterator[LockHandle | None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        if lock.locked():
            logger.debug("Lock %s is already held", key)
            yield None
            return

        await lock.acquire()
        logger.debug("Acquired in-memory lock: key=%s", key)
        try:
            yield LockHandle(key=key)
        finally:
            lock.release()
            logger.debug("Released in-memory lock: key=%s", key)


__all__ = ["InMemoryLockProvider"]
