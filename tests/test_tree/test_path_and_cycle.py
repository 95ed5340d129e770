"""PathBuilder 与 CycleGuard 测试"""

import pytest

from ycatalog.exceptions import (
    ErrorCode,
    InvalidParentException,
    ResourceNotFoundException,
)
from ycatalog.tree import Category, CycleGuard, PathBuilder, TreeInfo


def _node(node_id, slug, ancestors=(), path=None, tenant_id="tenant-a"):
    ancestors = list(ancestors)
    return Category(
        id=node_id,
        tenant_id=tenant_id,
        name=slug.title(),
        slug=slug,
        parent_id=ancestors[-1] if ancestors else None,
        ancestors=ancestors,
        depth=len(ancestors),
        path=path or slug,
    )


class TestTreeInfo:
    """TreeInfo 测试"""

    def test_root_info(self):
        info = TreeInfo()

        assert info.parent_id is None
        assert info.ancestors == []
        assert info.depth == 0
        assert info.path_for("phones") == "phones"

    def test_path_for_with_prefix(self):
        info = TreeInfo(parent_id="a", ancestors=["a"], depth=1, path_prefix="electronics/")

        assert info.path_for("phones") == "electronics/phones"


class TestPathBuilder:
    """PathBuilder 测试"""

    @pytest.mark.asyncio
    async def test_resolve_root(self, store, tenant_id):
        info = await PathBuilder(store).resolve(tenant_id, None)

        assert info == TreeInfo()

    @pytest.mark.asyncio
    async def test_resolve_child_of_nested_parent(self, store, tenant_id):
        await store.create(_node("a", "electronics"))
        await store.create(_node("b", "phones", ["a"], "electronics/phones"))

        info = await PathBuilder(store).resolve(tenant_id, "b")

        assert info.parent_id == "b"
        assert info.ancestors == ["a", "b"]
        assert info.depth == 2
        assert info.path_for("android") == "electronics/phones/android"

    @pytest.mark.asyncio
    async def test_resolve_missing_parent(self, store, tenant_id):
        with pytest.raises(ResourceNotFoundException) as exc_info:
            await PathBuilder(store).resolve(tenant_id, "missing")

        assert exc_info.value.code == ErrorCode.PARENT_NOT_FOUND
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_parent_in_other_tenant_is_missing(self, store):
        await store.create(_node("a", "electronics", tenant_id="tenant-b"))

        with pytest.raises(ResourceNotFoundException):
            await PathBuilder(store).resolve("tenant-a", "a")

    @pytest.mark.asyncio
    async def test_parent_with_empty_path_gives_empty_prefix(self, store, tenant_id):
        """父节点 path 为空时前缀也为空"""
        await store.create(Category(id="p", tenant_id=tenant_id, name="P", slug="p", path=""))

        info = await PathBuilder(store).resolve(tenant_id, "p")

        assert info.path_prefix == ""
        assert info.path_for("child") == "child"

    def test_rename_path(self, memory_store):
        builder = PathBuilder(memory_store)

        assert builder.rename_path(_node("c", "phones", ["a"], "electronics/phones"), "mobiles") == "electronics/mobiles"
        assert builder.rename_path(_node("a", "electronics"), "gadgets") == "gadgets"


class TestCycleGuard:
    """CycleGuard 测试"""

    @pytest.fixture
    def chain(self):
        # A -> B -> C
        return [
            _node("A", "a"),
            _node("B", "b", ["A"], "a/b"),
            _node("C", "c", ["A", "B"], "a/b/c"),
        ]

    @pytest.mark.asyncio
    async def test_move_to_root_allowed(self, store, tenant_id):
        await CycleGuard(store).assert_no_cycle(tenant_id, "A", None)

    @pytest.mark.asyncio
    async def test_move_to_self_rejected(self, store, tenant_id):
        with pytest.raises(InvalidParentException) as exc_info:
            await CycleGuard(store).assert_no_cycle(tenant_id, "A", "A")

        assert exc_info.value.status_code == 400
        assert exc_info.value.code == ErrorCode.INVALID_PARENT

    @pytest.mark.asyncio
    async def test_move_under_descendant_rejected(self, store, tenant_id, chain):
        for node in chain:
            await store.create(node)
        guard = CycleGuard(store)

        with pytest.raises(InvalidParentException):
            await guard.assert_no_cycle(tenant_id, "A", "C")
        with pytest.raises(InvalidParentException):
            await guard.assert_no_cycle(tenant_id, "B", "C")

    @pytest.mark.asyncio
    async def test_move_under_sibling_branch_allowed(self, store, tenant_id, chain):
        for node in chain:
            await store.create(node)
        await store.create(_node("D", "d"))
        guard = CycleGuard(store)

        await guard.assert_no_cycle(tenant_id, "B", "D")
        await guard.assert_no_cycle(tenant_id, "C", "A")
