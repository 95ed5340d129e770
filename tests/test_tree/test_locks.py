"""租户锁测试"""

import asyncio

import pytest

from ycatalog.config import TreeSettings
from ycatalog.exceptions import InvalidParentException
from ycatalog.tree import CategoryCreate, CategoryTreeService, TenantLockRegistry


class TestTenantLockRegistry:
    """TenantLockRegistry 测试"""

    def test_same_tenant_same_lock(self):
        locks = TenantLockRegistry()

        assert locks.get("t1") is locks.get("t1")
        assert locks.get("t1") is not locks.get("t2")
        assert len(locks) == 2

    def test_unknown_tenant_not_locked(self):
        assert TenantLockRegistry().is_locked("t1") is False

    @pytest.mark.asyncio
    async def test_hold(self):
        locks = TenantLockRegistry()

        async with locks.hold("t1"):
            assert locks.is_locked("t1")
            assert not locks.is_locked("t2")
        assert not locks.is_locked("t1")

    @pytest.mark.asyncio
    async def test_hold_serializes_same_tenant(self):
        locks = TenantLockRegistry()
        events = []

        async def worker(name):
            async with locks.hold("t1"):
                events.append(f"{name}:start")
                await asyncio.sleep(0.01)
                events.append(f"{name}:end")

        await asyncio.gather(worker("a"), worker("b"))

        assert events == ["a:start", "a:end", "b:start", "b:end"]

    @pytest.mark.asyncio
    async def test_different_tenants_run_concurrently(self):
        locks = TenantLockRegistry()
        events = []

        async def worker(tenant):
            async with locks.hold(tenant):
                events.append(f"{tenant}:start")
                await asyncio.sleep(0.01)
                events.append(f"{tenant}:end")

        await asyncio.gather(worker("t1"), worker("t2"))

        assert events[:2] == ["t1:start", "t2:start"]

    @pytest.mark.asyncio
    async def test_released_on_error(self):
        locks = TenantLockRegistry()

        with pytest.raises(RuntimeError):
            async with locks.hold("t1"):
                raise RuntimeError("boom")

        assert not locks.is_locked("t1")


class TestServiceSerialization:
    """结构性变更按租户串行"""

    @pytest.mark.asyncio
    async def test_crossing_moves_cannot_both_succeed(self, make_category, service, tenant_id):
        """A 移到 B 下、B 移到 A 下同时发生，只能有一个成功"""
        a = await make_category("A")
        b = await make_category("B")

        results = await asyncio.gather(
            service.move(tenant_id, a.id, b.id),
            service.move(tenant_id, b.id, a.id),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 1
        assert isinstance(failures[0], InvalidParentException)
        assert await service.verify(tenant_id) == []

    @pytest.mark.asyncio
    async def test_concurrent_creates_get_distinct_slugs(self, service, tenant_id):
        created = await asyncio.gather(*[
            service.create(tenant_id, CategoryCreate(name="Phones")) for _ in range(3)
        ])

        assert sorted(c.slug for c in created) == ["phones", "phones-2", "phones-3"]

    @pytest.mark.asyncio
    async def test_lock_disabled(self, memory_store, tenant_id):
        service = CategoryTreeService(
            memory_store, settings=TreeSettings(serialize_structural_mutations=False)
        )

        await service.create(tenant_id, CategoryCreate(name="A"))

        assert len(service.locks) == 0

    @pytest.mark.asyncio
    async def test_services_can_share_registry(self, memory_store):
        locks = TenantLockRegistry()
        first = CategoryTreeService(memory_store, locks=locks)
        second = CategoryTreeService(memory_store, locks=locks)

        assert first.locks is second.locks

    @pytest.mark.asyncio
    async def test_shared_registry_blocks_other_service(self, memory_store, tenant_id):
        """持有共享注册表的锁时，两个服务的创建都要等待"""
        locks = TenantLockRegistry()
        first = CategoryTreeService(memory_store, locks=locks)
        second = CategoryTreeService(memory_store, locks=locks)

        async with locks.hold(tenant_id):
            tasks = [
                asyncio.create_task(first.create(tenant_id, CategoryCreate(name="A"))),
                asyncio.create_task(second.create(tenant_id, CategoryCreate(name="B"))),
            ]
            await asyncio.sleep(0.01)
            assert [t.done() for t in tasks] == [False, False]

        created = await asyncio.gather(*tasks)
        assert sorted(c.slug for c in created) == ["a", "b"]

    def test_explicit_settings_kept(self, memory_store, tree_settings):
        service = CategoryTreeService(memory_store, settings=tree_settings)

        assert service.settings is tree_settings


class TestLockEviction:
    """空闲锁的回收"""

    @pytest.mark.asyncio
    async def test_released_lock_removed(self):
        locks = TenantLockRegistry()

        async with locks.hold("t1"):
            assert len(locks) == 1
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_kept_while_waiters_remain(self):
        locks = TenantLockRegistry()
        events = []

        async def worker(name):
            async with locks.hold("t1"):
                events.append(name)
                await asyncio.sleep(0.01)
                events.append(len(locks))

        await asyncio.gather(worker("a"), worker("b"), worker("c"))

        assert events == ["a", 1, "b", 1, "c", 1]
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_removed_after_error(self):
        locks = TenantLockRegistry()

        with pytest.raises(RuntimeError):
            async with locks.hold("t1"):
                raise RuntimeError("boom")

        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_many_tenants_do_not_accumulate(self, service):
        for index in range(20):
            await service.create(f"tenant-{index}", CategoryCreate(name="A"))

        assert len(service.locks) == 0
