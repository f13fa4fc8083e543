"""
Unit tests for HandlerAdapter.
"""

from uuid import uuid4

import pytest

from migrationbus.bus import HandlerAdapter
from migrationbus.bus.adapter import get_handler_name
from migrationbus.events import IntegrationEvent, TenantCreated


class AsyncHandler:
    def __init__(self) -> None:
        self.handled: list[IntegrationEvent] = []

    async def handle(self, event: IntegrationEvent) -> None:
        self.handled.append(event)


class SyncHandler:
    def __init__(self) -> None:
        self.handled: list[IntegrationEvent] = []

    def handle(self, event: IntegrationEvent) -> None:
        self.handled.append(event)


@pytest.fixture
def event() -> TenantCreated:
    return TenantCreated(id=uuid4(), name="acme")


class TestHandlerAdapter:
    @pytest.mark.asyncio
    async def test_async_handle_method(self, event: TenantCreated) -> None:
        handler = AsyncHandler()
        await HandlerAdapter(handler).handle(event)
        assert handler.handled == [event]

    @pytest.mark.asyncio
    async def test_sync_handle_method(self, event: TenantCreated) -> None:
        handler = SyncHandler()
        await HandlerAdapter(handler).handle(event)
        assert handler.handled == [event]

    @pytest.mark.asyncio
    async def test_async_function(self, event: TenantCreated) -> None:
        seen: list[IntegrationEvent] = []

        async def on_event(e: IntegrationEvent) -> None:
            seen.append(e)

        await HandlerAdapter(on_event).handle(event)
        assert seen == [event]

    @pytest.mark.asyncio
    async def test_sync_function_returning_awaitable(self, event: TenantCreated) -> None:
        seen: list[IntegrationEvent] = []

        async def inner(e: IntegrationEvent) -> None:
            seen.append(e)

        await HandlerAdapter(lambda e: inner(e)).handle(event)
        assert seen == [event]

    def test_rejects_non_callable(self) -> None:
        with pytest.raises(TypeError):
            HandlerAdapter(42)

    def test_equality_by_original(self) -> None:
        handler = AsyncHandler()
        assert HandlerAdapter(handler) == HandlerAdapter(handler)
        assert HandlerAdapter(handler) == handler
        assert HandlerAdapter(handler) != HandlerAdapter(AsyncHandler())
        assert hash(HandlerAdapter(handler)) == hash(HandlerAdapter(handler))

    def test_original(self) -> None:
        handler = SyncHandler()
        assert HandlerAdapter(handler).original is handler


class TestHandlerName:
    def test_class_instance(self) -> None:
        assert get_handler_name(AsyncHandler()) == "AsyncHandler"

    def test_function(self) -> None:
        def on_tenant_created(event: IntegrationEvent) -> None:
            pass

        assert get_handler_name(on_tenant_created) == "on_tenant_created"
        assert HandlerAdapter(on_tenant_created).name == "on_tenant_created"
