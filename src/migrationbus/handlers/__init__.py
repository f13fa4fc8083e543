"""Event handlers that drive schema migrations."""

from migrationbus.handlers.migration import DatabaseMigrationEventHandler

__all__ = ["DatabaseMigrationEventHandler"]
