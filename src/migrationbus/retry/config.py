"""Retry policy configuration for failed event handling."""

from __future__ import annotations

from dataclasses import dataclass

from migrationbus.retry.counter import MAX_EVENT_TRY_COUNT


@dataclass(frozen=True)
class EventRetryConfig:
    """
    Retry policy for failed event handling.

    A failed event is republished while its try count, after incrementing,
    is at most ``max_try_count``; the next failure abandons it. Before each
    republish the coordinator waits a uniformly random whole number of
    milliseconds in ``[min_delay_ms, max_delay_ms)`` so that many tenants
    failing together do not all retry at the same instant.

    Attributes:
        max_try_count: Highest try count that is still republished
        min_delay_ms: Lower bound of the republish delay (inclusive)
        max_delay_ms: Upper bound of the republish delay (exclusive)

    Example:
        >>> config = EventRetryConfig(max_try_count=5, min_delay_ms=1000, max_delay_ms=2000)
    """

    max_try_count: int = MAX_EVENT_TRY_COUNT
    min_delay_ms: int = 5000
    max_delay_ms: int = 15000

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_try_count < 0:
            raise ValueError(
                f"max_try_count must be >= 0, got {self.max_try_count}. Use 0 to never republish."
            )

        if self.min_delay_ms < 0:
            raise ValueError(f"min_delay_ms must be >= 0, got {self.min_delay_ms}.")

        if self.max_delay_ms <= self.min_delay_ms:
            raise ValueError(
                f"max_delay_ms ({self.max_delay_ms}) must be > min_delay_ms ({self.min_delay_ms})."
            )


__all__ = ["EventRetryConfig"]
