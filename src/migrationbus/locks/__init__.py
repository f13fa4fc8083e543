"""
Distributed lock providers for guarding migrations across instances.

- InMemoryLockProvider: single process
- PostgreSQLLockProvider: PostgreSQL advisory locks
"""

from migrationbus.exceptions import LockAcquisitionError
from migrationbus.locks.interface import LockHandle, LockProvider
from migrationbus.locks.memory import InMemoryLockProvider
from migrationbus.locks.postgresql import PostgreSQLLockProvider, key_to_lock_id

__all__ = [
    "LockHandle",
    "LockProvider",
    "InMemoryLockProvider",
    "PostgreSQLLockProvider",
    "LockAcquisitionError",
    "key_to_lock_id",
]
