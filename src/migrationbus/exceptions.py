"""Library exceptions for the migrationbus package."""

from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from migrationbus.tenancy.context import TenantScope


class MigrationBusError(Exception):
    """Base exception for migrationbus library."""

    pass


class TenantNotFoundError(MigrationBusError):
    """Raised when a tenant id does not resolve to a tenant record."""

    def __init__(self, tenant_id: UUID) -> None:
        self.tenant_id = tenant_id
        super().__init__(f"Tenant not found: {tenant_id}")


class TryCountParseError(MigrationBusError, ValueError):
    """
    Raised when an event carries a try count that is not an integer.

    The value is kept on the exception so operators can see what the
    publisher actually sent.

    Attributes:
        property_name: The property key that was read
        raw_value: The unparseable value found in the event
    """

    def __init__(self, property_name: str, raw_value: str) -> None:
        self.property_name = property_name
        self.raw_value = raw_value
        super().__init__(
            f"Event property '{property_name}' must be an integer, got {raw_value!r}"
        )


class UnitOfWorkError(MigrationBusError):
    """Raised when a unit of work is used after it was completed or released."""

    pass


class SchemaMigrationError(MigrationBusError):
    """
    Raised when applying a schema migration fails.

    Attributes:
        migration_id: Identifier of the migration that failed
        database_name: Logical database the migration targeted
    """

    def __init__(self, migration_id: str, database_name: str | None, message: str) -> None:
        self.migration_id = migration_id
        self.database_name = database_name
        target = f" on database {database_name}" if database_name else ""
        super().__init__(f"Migration {migration_id} failed{target}: {message}")


class EventBusError(MigrationBusError):
    """Raised when there's an error in the event bus."""

    pass


class LockAcquisitionError(MigrationBusError):
    """
    Raised when a lock cannot be acquired or released because of an error.

    Losing the race to another holder is not an error; ``try_acquire``
    yields None in that case.

    Attributes:
        key: The lock key
    """

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        super().__init__(f"Lock {key!r}: {message}")


class ConnectionStringNotFoundError(MigrationBusError, LookupError):
    """
    Raised when neither the tenant nor the host defines a usable connection string.

    Attributes:
        scope: The tenant scope that was resolved
        database_name: The logical database that was asked for
    """

    def __init__(self, scope: "TenantScope", database_name: str) -> None:
        self.scope = scope
        self.database_name = database_name
        super().__init__(f"No connection string for database {database_name} in {scope}")
