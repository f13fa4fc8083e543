"""
Try count embedded in an event's properties.

The retry budget travels with the event: every failed attempt writes the
new count into ``event.properties["TryCount"]`` before the same event object
is republished, so any consumer instance that receives it next knows how
many attempts were already made. Absent or empty means 0.

These functions are not atomic; a single event instance is handled by one
handler invocation at a time.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from migrationbus.exceptions import TryCountParseError

if TYPE_CHECKING:
    from migrationbus.events.base import IntegrationEvent

TRY_COUNT_PROPERTY = "TryCount"
MAX_EVENT_TRY_COUNT = 3

_DECIMAL = re.compile(r"[+-]?[0-9]+")


def get_try_count(event: IntegrationEvent) -> int:
    """
    Read the try count from the event.

    Only plain decimal strings are accepted, with an optional sign:
    ``" 3 "`` and ``"1_0"`` are rejected even though ``int()`` takes them.

    Returns:
        0 if the property is absent or empty, otherwise its integer value

    Raises:
        TryCountParseError: If the property is not a decimal integer
    """
    raw = event.properties.get(TRY_COUNT_PROPERTY)
    if not raw:
        return 0
    if _DECIMAL.fullmatch(raw) is None:
        raise TryCountParseError(TRY_COUNT_PROPERTY, raw)
    return int(raw)


def set_try_count(event: IntegrationEvent, count: int) -> None:
    """Write ``count`` as a decimal string, replacing any previous value."""
    event.properties[TRY_COUNT_PROPERTY] = str(count)


def increment_try_count(event: IntegrationEvent) -> int:
    """Add one to the event's try count and return the new value."""
    count = get_try_count(event) + 1
    set_try_count(event, count)
    return count


__all__ = [
    "TRY_COUNT_PROPERTY",
    "MAX_EVENT_TRY_COUNT",
    "get_try_count",
    "set_try_count",
    "increment_try_count",
]
