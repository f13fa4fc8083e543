"""Schema migration execution for one logical database."""

from migrationbus.migrations.executor import MigrationExecutor

__all__ = ["MigrationExecutor"]
