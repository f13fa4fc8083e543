"""
Event bus abstraction and the in-process implementation.

Transports that span processes implement ``EventBus`` outside this package.
"""

from migrationbus.bus.adapter import HandlerAdapter
from migrationbus.bus.interface import EventBus, EventHandlerFunc
from migrationbus.bus.memory import DeliveryStats, InMemoryEventBus

__all__ = [
    "EventBus",
    "EventHandlerFunc",
    "HandlerAdapter",
    "InMemoryEventBus",
    "DeliveryStats",
]
