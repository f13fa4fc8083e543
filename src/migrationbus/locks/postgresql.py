"""
PostgreSQL advisory lock provider.

Advisory locks are application-level locks that:
- Are independent of table/row locks
- Persist for the session (until released or disconnected)
- Support non-blocking acquisition attempts

Each held lock keeps its own session open, because the lock belongs to the
database session that took it.

Usage:
    >>> provider = PostgreSQLLockProvider(session_factory)
    >>> async with provider.try_acquire("Migration_Catalog") as handle:
    ...     if handle is not None:
    ...         await migrate()
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from migrationbus.exceptions import LockAcquisitionError
from migrationbus.locks.interface import LockHandle
from migrationbus.observability import Tracer, create_tracer
from migrationbus.observability.attributes import ATTR_LOCK_ACQUIRED, ATTR_LOCK_KEY

logger = logging.getLogger(__name__)


def key_to_lock_id(key: str) -> int:
    """
    Convert a string key to a 63-bit advisory lock id.

    Uses the first 8 bytes of the SHA-256 digest, masked so the value fits a
    signed PostgreSQL bigint.
    """
    hash_bytes = hashlib.sha256(key.encode()).digest()
    return int.from_bytes(hash_bytes[:8], byteorder="big") & 0x7FFFFFFFFFFFFFFF


class PostgreSQLLockProvider:
    """
    Lock provider using ``pg_try_advisory_lock``.

    Args:
        session_factory: SQLAlchemy async session factory for the database
            all instances share
        tracer: Optional custom Tracer instance
        enable_tracing: Ignored if tracer is provided
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        self._session_factory = session_factory
        self._tracer = tracer or create_tracer(__name__, enable_tracing)

    @asynccontextmanager
    async def try_acquire(self, key: str) -> AsyncIterator[LockHandle | None]:
        """
        Try to take the advisory lock for ``key`` without waiting.

        Yields:
            LockHandle if acquired, None if another session holds it

        Raises:
            LockAcquisitionError: If the database call failed
        """
        lock_id = key_to_lock_id(key)
        session = self._session_factory()

        try:
            with self._tracer.span(
                "migrationbus.lock.acquire",
                {ATTR_LOCK_KEY: key, "lock.id": lock_id},
            ) as span:
                try:
                    result = await session.execute(
                        text("SELECT pg_try_advisory_lock(:lock_id)"),
                        {"lock_id": lock_id},
                    )
                    acquired = bool(result.scalar())
                except Exception as e:
                    raise LockAcquisitionError(key, f"Database error: {e}") from e
                if span:
                    span.set_attribute(ATTR_LOCK_ACQUIRED, acquired)

            if not acquired:
                logger.debug("Advisory lock held elsewhere: key=%s, lock_id=%d", key, lock_id)
                yield None
                return

            logger.debug("Acquired advisory lock: key=%s, lock_id=%d", key, lock_id)
            try:
                yield LockHandle(key=key, lock_id=lock_id)
            finally:
                await self._release(session, key, lock_id)
        finally:
            await session.close()

    async def _release(self, session: AsyncSession, key: str, lock_id: int) -> None:
        try:
            await session.execute(
                text("SELECT pg_advisory_unlock(:lock_id)"),
                {"lock_id": lock_id},
            )
            logger.debug("Released advisory lock: key=%s, lock_id=%d", key, lock_id)
        except Exception as e:
            # Closing the session below drops the lock anyway
            logger.warning("Error releasing advisory lock: key=%s, error=%s", key, e)


__all__ = ["PostgreSQLLockProvider", "key_to_lock_id"]
