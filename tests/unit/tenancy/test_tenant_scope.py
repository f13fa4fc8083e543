"""
Unit tests for tenant scopes.
"""

import asyncio
from uuid import uuid4

import pytest

from migrationbus.tenancy import (
    HOST_SCOPE,
    TenantScope,
    get_current_scope,
    get_current_tenant,
    tenant_scope,
    tenant_scope_sync,
)


class TestTenantScope:
    def test_host_scope(self) -> None:
        assert HOST_SCOPE.is_host
        assert str(HOST_SCOPE) == "host"

    def test_tenant_scope_str(self) -> None:
        tenant_id = uuid4()
        scope = TenantScope(tenant_id)
        assert not scope.is_host
        assert str(scope) == f"tenant:{tenant_id}"

    def test_equality_by_tenant(self) -> None:
        tenant_id = uuid4()
        assert TenantScope(tenant_id) == TenantScope(tenant_id)

    def test_default_is_host(self) -> None:
        assert get_current_scope() == HOST_SCOPE
        assert get_current_tenant() is None


class TestTenantScopeContextManager:
    """Tests for entering and leaving scopes."""

    @pytest.mark.asyncio
    async def test_switches_and_restores(self) -> None:
        tenant_id = uuid4()

        async with tenant_scope(tenant_id) as scope:
            assert scope.tenant_id == tenant_id
            assert get_current_tenant() == tenant_id

        assert get_current_tenant() is None

    @pytest.mark.asyncio
    async def test_nested_scopes_restore_outer(self) -> None:
        outer, inner = uuid4(), uuid4()

        async with tenant_scope(outer):
            async with tenant_scope(inner):
                assert get_current_tenant() == inner
            assert get_current_tenant() == outer

    @pytest.mark.asyncio
    async def test_host_inside_tenant(self) -> None:
        async with tenant_scope(uuid4()):
            async with tenant_scope(None) as scope:
                assert scope.is_host
                assert get_current_tenant() is None

    @pytest.mark.asyncio
    async def test_restored_after_exception(self) -> None:
        """Leaving the scope by raising still restores the previous tenant."""
        outer = uuid4()

        async with tenant_scope(outer):
            with pytest.raises(RuntimeError):
                async with tenant_scope(uuid4()):
                    raise RuntimeError("migration failed")
            assert get_current_tenant() == outer

        assert get_current_tenant() is None

    @pytest.mark.asyncio
    async def test_concurrent_tasks_are_isolated(self) -> None:
        seen: dict[str, object] = {}

        async def work(name: str) -> None:
            tenant_id = uuid4()
            async with tenant_scope(tenant_id):
                await asyncio.sleep(0)
                seen[name] = get_current_tenant() == tenant_id

        await asyncio.gather(work("a"), work("b"), work("c"))

        assert seen == {"a": True, "b": True, "c": True}

    def test_sync_variant(self) -> None:
        tenant_id = uuid4()
        with tenant_scope_sync(tenant_id):
            assert get_current_tenant() == tenant_id
        assert get_current_tenant() is None
