"""
Shared test fixtures for the migrationbus tests.

Usage:
    from tests.fixtures import RecordingSleep, RecordingUnitOfWorkManager
"""

from tests.fixtures.doubles import (
    FailingSchemaRunner,
    RecordingSeeder,
    RecordingSleep,
    RecordingUnitOfWorkManager,
)

CATALOG = "Catalog"

__all__ = [
    "CATALOG",
    "FailingSchemaRunner",
    "RecordingSeeder",
    "RecordingSleep",
    "RecordingUnitOfWorkManager",
]
