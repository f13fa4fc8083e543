"""
Configuration for a service's migration handler.

This module provides:
- MigrationSettings: per-service settings for the migration handler
- EventRetryConfig: re-exported from migrationbus.retry.config
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from migrationbus.retry.config import EventRetryConfig
from migrationbus.tenancy.store import DEFAULT_CONNECTION_STRING_NAME, ConnectionStrings


@dataclass(frozen=True)
class MigrationSettings:
    """
    Settings for one service's migration handler.

    Attributes:
        database_name: Logical database this service owns (e.g., "Catalog")
        host_connection_strings: Connection strings for the host database(s)
        lock_key_prefix: Prefix of the distributed lock key, followed by database_name
        fan_out_tenant_migrations: After migrating the host, queue one migration
            event per tenant with a dedicated database
        retry: Retry policy for failed events
    """

    database_name: str
    host_connection_strings: ConnectionStrings = field(default_factory=ConnectionStrings)
    lock_key_prefix: str = "Migration_"
    fan_out_tenant_migrations: bool = True
    retry: EventRetryConfig = field(default_factory=EventRetryConfig)

    def __post_init__(self) -> None:
        if not self.database_name or not self.database_name.strip():
            raise ValueError("database_name must be a non-empty string.")

    @property
    def lock_key(self) -> str:
        return f"{self.lock_key_prefix}{self.database_name}"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> MigrationSettings:
        """
        Build settings from a plain mapping (parsed JSON, environment, ...).

        Recognized keys: ``database_name``, ``connection_strings`` (mapping),
        ``default_connection_string`` (shorthand for ``{"Default": ...}``),
        ``lock_key_prefix``, ``fan_out_tenant_migrations``, ``max_try_count``,
        ``min_delay_ms``, ``max_delay_ms``.

        Raises:
            KeyError: If database_name is missing
            ValueError: If a value fails validation
        """
        strings = ConnectionStrings(data.get("connection_strings") or {})
        if data.get("default_connection_string"):
            strings.setdefault(DEFAULT_CONNECTION_STRING_NAME, data["default_connection_string"])

        retry_defaults = EventRetryConfig()
        retry = EventRetryConfig(
            max_try_count=int(data.get("max_try_count", retry_defaults.max_try_count)),
            min_delay_ms=int(data.get("min_delay_ms", retry_defaults.min_delay_ms)),
            max_delay_ms=int(data.get("max_delay_ms", retry_defaults.max_delay_ms)),
        )
        return cls(
            database_name=data["database_name"],
            host_connection_strings=strings,
            lock_key_prefix=data.get("lock_key_prefix", "Migration_"),
            fan_out_tenant_migrations=_as_bool(data.get("fan_out_tenant_migrations", True)),
            retry=retry,
        )


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


__all__ = ["EventRetryConfig", "MigrationSettings"]
