"""Schema runners: the "apply pending schema changes" operation."""

from migrationbus.schema.in_memory import InMemorySchemaContext, InMemorySchemaRunner
from migrationbus.schema.interface import Migration, SchemaContext, SchemaRunner
from migrationbus.schema.sql import (
    DEFAULT_HISTORY_TABLE,
    SqlSchemaContext,
    SqlSchemaRunner,
    load_sql_migrations,
)

__all__ = [
    "Migration",
    "SchemaContext",
    "SchemaRunner",
    "SqlSchemaRunner",
    "SqlSchemaContext",
    "load_sql_migrations",
    "DEFAULT_HISTORY_TABLE",
    "InMemorySchemaRunner",
    "InMemorySchemaContext",
]
