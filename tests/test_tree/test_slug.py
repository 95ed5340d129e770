"""slug 生成测试

测试内容：
1. slugify 规则
2. 租户内唯一性与 -2/-3 后缀
3. 空 slug 校验
"""

import pytest

from ycatalog.exceptions import ValidationException, ErrorCode
from ycatalog.tree import SlugAllocator, slugify, Category


class TestSlugify:
    """slugify 规则测试"""

    @pytest.mark.parametrize("name, expected", [
        ("Electronics", "electronics"),
        ("Smart Phones", "smart-phones"),
        ("  Hello  World  ", "hello-world"),
        ("Café & Bar", "cafe-bar"),
        ("Crème Brûlée", "creme-brulee"),
        ("--Already--Slugged--", "already-slugged"),
        ("TV/Audio", "tv-audio"),
        ("Año 2024!", "ano-2024"),
    ])
    def test_slugify(self, name, expected):
        assert slugify(name) == expected

    def test_non_latin_name_gives_empty_slug(self):
        """非拉丁字符全部被去掉"""
        assert slugify("电子产品") == ""

    def test_empty_input(self):
        assert slugify("") == ""
        assert slugify(None) == ""


class TestSlugAllocator:
    """slug 分配测试"""

    @pytest.mark.asyncio
    async def test_free_slug_returned_unchanged(self, store, tenant_id):
        allocator = SlugAllocator(store)

        assert await allocator.ensure_unique(tenant_id, "phones") == "phones"

    @pytest.mark.asyncio
    async def test_collision_appends_counter(self, store, tenant_id):
        """冲突时依次尝试 -2、-3"""
        await store.create(Category(id="c1", tenant_id=tenant_id, name="Phones", slug="phones", path="phones"))
        await store.create(Category(id="c2", tenant_id=tenant_id, name="Phones", slug="phones-2", path="phones-2"))
        allocator = SlugAllocator(store)

        assert await allocator.ensure_unique(tenant_id, "phones") == "phones-3"

    @pytest.mark.asyncio
    async def test_exclude_self(self, store, tenant_id):
        """改名时排除自身"""
        await store.create(Category(id="c1", tenant_id=tenant_id, name="Phones", slug="phones", path="phones"))
        allocator = SlugAllocator(store)

        assert await allocator.ensure_unique(tenant_id, "phones", exclude_id="c1") == "phones"

    @pytest.mark.asyncio
    async def test_other_tenant_does_not_collide(self, store, tenant_id):
        await store.create(Category(id="c1", tenant_id="tenant-b", name="Phones", slug="phones", path="phones"))
        allocator = SlugAllocator(store)

        assert await allocator.ensure_unique(tenant_id, "phones") == "phones"

    @pytest.mark.asyncio
    async def test_allocate_prefers_hint(self, store, tenant_id):
        allocator = SlugAllocator(store)

        assert await allocator.allocate(tenant_id, "Smart Phones", "My Phones") == "my-phones"
        assert await allocator.allocate(tenant_id, "Smart Phones") == "smart-phones"

    @pytest.mark.asyncio
    async def test_allocate_empty_slug_rejected(self, store, tenant_id):
        allocator = SlugAllocator(store)

        with pytest.raises(ValidationException) as exc_info:
            await allocator.allocate(tenant_id, "电子产品")

        assert exc_info.value.code == ErrorCode.INVALID_SLUG
        assert exc_info.value.status_code == 422
