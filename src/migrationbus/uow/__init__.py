"""Unit of work and per-scope engine management."""

from migrationbus.uow.engines import EngineFactory, EngineProvider, create_engine
from migrationbus.uow.manager import UnitOfWork, UnitOfWorkManager

__all__ = [
    "EngineFactory",
    "EngineProvider",
    "UnitOfWork",
    "UnitOfWorkManager",
    "create_engine",
]
