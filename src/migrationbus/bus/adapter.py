"""
Handler adapter.

The bus accepts handlers in several shapes: objects with an async or sync
``handle()`` method, and plain async or sync callables. HandlerAdapter wraps
each of them behind one async ``handle(event)`` so dispatch code never has
to check which kind it was given.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from migrationbus.events.base import IntegrationEvent

logger = logging.getLogger(__name__)

AsyncHandlerFunc = Callable[[IntegrationEvent], Awaitable[None]]


def get_handler_name(handler: Any) -> str:
    """
    Get a descriptive name for a handler for logging and debugging.

    Args:
        handler: Any handler object (class instance, function, lambda)

    Returns:
        String name for the handler
    """
    if hasattr(handler, "__class__") and handler.__class__.__name__ != "function":
        return str(handler.__class__.__name__)
    elif hasattr(handler, "__name__"):
        return str(handler.__name__)
    else:
        return repr(handler)


def _wrap_sync(func: Callable[[IntegrationEvent], Any]) -> AsyncHandlerFunc:
    async def async_wrapper(event: IntegrationEvent) -> None:
        result = func(event)
        # A sync-looking callable may still hand back an awaitable
        if inspect.isawaitable(result):
            await result

    return async_wrapper


class HandlerAdapter:
    """
    Normalizes an event handler to an async ``handle(event)``.

    Two adapters compare equal when they wrap the same original handler,
    which is what ``unsubscribe`` relies on.

    Example:
        >>> adapter = HandlerAdapter(lambda event: print(event))
        >>> await adapter.handle(event)

    Attributes:
        original: The original unwrapped handler
        name: Descriptive name for logging
    """

    def __init__(self, handler: Any) -> None:
        """
        Args:
            handler: Object with handle() method or callable

        Raises:
            TypeError: If handler doesn't have handle() method and isn't callable
        """
        self._original = handler
        self._name = get_handler_name(handler)
        self._async_handler = self._normalize(handler)

    def _normalize(self, handler: Any) -> AsyncHandlerFunc:
        if hasattr(handler, "handle"):
            handle_method = handler.handle
            if inspect.iscoroutinefunction(handle_method):
                return handle_method  # type: ignore[no-any-return]
            return _wrap_sync(handle_method)

        if callable(handler):
            if inspect.iscoroutinefunction(handler):
                return handler  # type: ignore[no-any-return]
            return _wrap_sync(handler)

        raise TypeError(f"Handler must have a handle() method or be callable, got {type(handler)}")

    @property
    def original(self) -> Any:
        return self._original

    @property
    def name(self) -> str:
        return self._name

    async def handle(self, event: IntegrationEvent) -> None:
        await self._async_handler(event)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, HandlerAdapter):
            return self._original is other._original
        return self._original is other

    def __hash__(self) -> int:
        return id(self._original)

    def __repr__(self) -> str:
        return f"HandlerAdapter({self._name})"


__all__ = [
    "HandlerAdapter",
    "AsyncHandlerFunc",
    "get_handler_name",
]
