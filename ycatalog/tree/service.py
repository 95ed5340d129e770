"""分类树服务

组合 SlugAllocator、PathBuilder、CycleGuard、ReparentPropagator 和 TreeAssembler，
提供分类的创建、改名、移动、排序、删除以及查询操作。

使用示例:
    from ycatalog.tree import CategoryTreeService, MemoryTreeStore, CategoryCreate

    service = CategoryTreeService(MemoryTreeStore())

    phones = await service.create("tenant-1", CategoryCreate(name="Phones"))
    await service.move("tenant-1", phones.id, electronics.id)
    tree = await service.get_tree("tenant-1")
"""

import contextlib
from datetime import datetime
from typing import Any, AsyncContextManager, Dict, List, Optional, Tuple

from ycatalog.config import TreeSettings
from ycatalog.exceptions import Err, PartialPropagationException
from ycatalog.log import get_logger
from ycatalog.orm import Page
from ycatalog.utils import generate_id
from .assembler import TreeAssembler
from .cycle_guard import CycleGuard
from .locks import TenantLockRegistry
from .path_builder import PathBuilder
from .propagator import ReparentPropagator
from .record import (
    Category,
    CategoryFilter,
    BulkUpdate,
    TreeViolation,
    STRUCTURAL_FIELDS,
)
from .schemas import CategoryCreate, CategoryUpdate, CategoryListQuery, ReorderItem
from .slug import SlugAllocator
from .stores import BaseTreeStore, parse_sort

logger = get_logger()

# 列表查询中表示 "只要根节点" 的 parent_id
ROOT_TOKEN = "null"

# update 时直接写入的普通字段
_PLAIN_FIELDS = ("description", "image", "is_active", "sort_index", "extra")
# 这些字段不接受 None
_NON_NULLABLE = ("is_active", "sort_index", "extra")


class CategoryTreeService:
    """分类树服务

    Args:
        store: 分类树存储
        settings: 分类树配置，默认从环境变量读取
        locks: 租户锁注册表，多个服务实例共用同一存储时应共用同一个注册表
    """

    def __init__(
        self,
        store: BaseTreeStore,
        settings: TreeSettings = None,
        locks: TenantLockRegistry = None,
    ):
        self.store = store
        # 空注册表的 len() 为 0，不能用 or 判断
        self.settings = settings if settings is not None else TreeSettings()
        self.locks = locks if locks is not None else TenantLockRegistry()

        separator = self.settings.path_separator
        self.slugs = SlugAllocator(store)
        self.paths = PathBuilder(store, separator)
        self.cycles = CycleGuard(store)
        self.propagator = ReparentPropagator(store, separator)
        self.assembler = TreeAssembler(store)

    def _structural(self, tenant_id: str) -> AsyncContextManager:
        if self.settings.serialize_structural_mutations:
            return self.locks.hold(tenant_id)
        return contextlib.nullcontext()

    # ==================== 写入操作 ====================

    async def create(self, tenant_id: str, data: CategoryCreate) -> Category:
        """创建分类

        Raises:
            ValidationException: 无法生成有效 slug
            ResourceNotFoundException: 父分类不存在
            ResourceConflictException: 并发创建导致 slug 冲突
        """
        async with self._structural(tenant_id):
            slug = await self.slugs.allocate(tenant_id, data.name, data.slug)
            info = await self.paths.resolve(tenant_id, data.parent_id)

            now = datetime.now()
            record = Category(
                id=generate_id(),
                tenant_id=tenant_id,
                name=data.name,
                slug=slug,
                description=data.description,
                image=data.image,
                parent_id=info.parent_id,
                ancestors=list(info.ancestors),
                depth=info.depth,
                path=info.path_for(slug),
                is_active=data.is_active,
                sort_index=data.sort_index,
                items_count=0,
                extra=dict(data.extra),
                created_at=now,
                updated_at=now,
            )
            created = await self.store.create(record)

        logger.info(f"分类已创建: tenant={tenant_id}, id={created.id}, path={created.path}")
        return created

    async def update(self, tenant_id: str, category_id: str, data: CategoryUpdate) -> Category:
        """更新分类（改名、编辑、可选移动）

        名称变化且未指定 slug 时重新生成 slug；
        请求中包含 parent_id 时按移动处理（null 表示移到根级）。
        path、ancestors 或 depth 变化后，改写全部子孙节点。
        """
        async with self._structural(tenant_id):
            current = await self.store.find_by_id(tenant_id, category_id)
            return await self._apply_update(tenant_id, current, data)

    async def update_by_slug(self, tenant_id: str, slug: str, data: CategoryUpdate) -> Category:
        """按 slug 更新分类"""
        async with self._structural(tenant_id):
            current = await self.store.find_by_slug(tenant_id, slug)
            return await self._apply_update(tenant_id, current, data)

    async def _apply_update(self, tenant_id: str, current: Category, data: CategoryUpdate) -> Category:
        fields = data.model_fields_set
        patch: Dict[str, Any] = {}

        for key in _PLAIN_FIELDS:
            if key not in fields:
                continue
            value = getattr(data, key)
            if value is None and key in _NON_NULLABLE:
                continue
            patch[key] = value

        name = data.name if "name" in fields and data.name is not None else current.name
        name_changed = name != current.name
        if name_changed:
            patch["name"] = name

        next_slug = current.slug
        if "slug" in fields and data.slug is not None:
            next_slug = await self.slugs.allocate(tenant_id, name, data.slug, exclude_id=current.id)
        elif name_changed:
            next_slug = await self.slugs.allocate(tenant_id, name, exclude_id=current.id)
        if next_slug != current.slug:
            patch["slug"] = next_slug

        if "parent_id" in fields:
            await self.cycles.assert_no_cycle(tenant_id, current.id, data.parent_id)
            info = await self.paths.resolve(tenant_id, data.parent_id)
            patch.update(
                parent_id=info.parent_id,
                ancestors=list(info.ancestors),
                depth=info.depth,
                path=info.path_for(next_slug),
            )
        elif next_slug != current.slug:
            patch["path"] = self.paths.rename_path(current, next_slug)

        updated = await self.store.update_one(tenant_id, current.id, patch)

        if self._structure_changed(current, updated):
            logger.info(
                f"分类结构已变更: tenant={tenant_id}, id={current.id}, "
                f"path={current.path} -> {updated.path}"
            )
            await self.propagator.propagate(tenant_id, current, updated)
        else:
            logger.info(f"分类已更新: tenant={tenant_id}, id={current.id}")
        return updated

    async def move(self, tenant_id: str, category_id: str, new_parent_id: Optional[str]) -> Category:
        """移动分类到新的父分类下，None 表示移到根级

        Raises:
            ResourceNotFoundException: 分类或新父分类不存在
            InvalidParentException: 新父分类是自身或其子孙
        """
        async with self._structural(tenant_id):
            current = await self.store.find_by_id(tenant_id, category_id)
            await self.cycles.assert_no_cycle(tenant_id, current.id, new_parent_id)
            info = await self.paths.resolve(tenant_id, new_parent_id)

            updated = await self.store.update_one(tenant_id, current.id, {
                "parent_id": info.parent_id,
                "ancestors": list(info.ancestors),
                "depth": info.depth,
                "path": info.path_for(current.slug),
            })
            logger.info(
                f"分类已移动: tenant={tenant_id}, id={current.id}, "
                f"parent={current.parent_id} -> {updated.parent_id}"
            )
            await self.propagator.propagate(tenant_id, current, updated)
        return updated

    async def reorder(self, tenant_id: str, items: List[ReorderItem]) -> Dict[str, int]:
        """批量设置 sort_index，重复执行结果相同"""
        if not items:
            return {"matched": 0, "modified": 0}

        result = await self.store.bulk_update(
            tenant_id,
            [BulkUpdate(id=item.id, patch={"sort_index": item.sort_index}) for item in items],
        )
        logger.debug(f"分类排序: tenant={tenant_id}, matched={result.matched}, modified={result.modified}")
        return {"matched": result.matched, "modified": result.modified}

    async def set_active(self, tenant_id: str, category_id: str, is_active: bool) -> Category:
        """启用或停用分类，不影响树结构"""
        updated = await self.store.update_one(tenant_id, category_id, {"is_active": is_active})
        logger.info(f"分类状态已变更: tenant={tenant_id}, id={category_id}, is_active={is_active}")
        return updated

    async def delete(self, tenant_id: str, category_id: str) -> Dict[str, bool]:
        """删除分类，只允许删除没有子分类的节点

        Raises:
            HasChildrenException: 存在子分类
            ResourceNotFoundException: 分类不存在
        """
        async with self._structural(tenant_id):
            await self._delete(tenant_id, category_id)
        return {"deleted": True}

    async def delete_by_slug(self, tenant_id: str, slug: str) -> Dict[str, bool]:
        """按 slug 删除分类"""
        async with self._structural(tenant_id):
            current = await self.store.find_by_slug(tenant_id, slug)
            await self._delete(tenant_id, current.id)
        return {"deleted": True}

    async def _delete(self, tenant_id: str, category_id: str) -> None:
        if await self.store.exists_child_of(tenant_id, category_id):
            raise Err.has_children(category_id=category_id)
        await self.store.delete_one(tenant_id, category_id)
        logger.info(f"分类已删除: tenant={tenant_id}, id={category_id}")

    # ==================== 查询操作 ====================

    async def get_by_id(self, tenant_id: str, category_id: str) -> Category:
        return await self.store.find_by_id(tenant_id, category_id)

    async def get_by_slug(self, tenant_id: str, slug: str) -> Category:
        return await self.store.find_by_slug(tenant_id, slug)

    async def list(self, tenant_id: str, query: CategoryListQuery = None) -> Page[Category]:
        """分页查询分类

        Raises:
            ValidationException: 排序字段不合法
        """
        query = query or CategoryListQuery()

        parent_id = query.parent_id
        root_only = query.root_only
        if parent_id is not None and parent_id.lower() == ROOT_TOKEN:
            parent_id = None
            root_only = True

        criteria = CategoryFilter(
            tenant_id=tenant_id,
            is_active=query.is_active,
            parent_id=parent_id,
            root_only=root_only,
            q=query.q.strip() if query.q and query.q.strip() else None,
        )
        sort = parse_sort(query.sort, self.settings.default_sort)
        limit = min(query.limit or self.settings.default_page_size, self.settings.max_page_size)

        return await self.store.list(criteria, sort, page=query.page, limit=limit)

    async def get_tree(
        self,
        tenant_id: str,
        parent_id: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> List[Dict[str, Any]]:
        """获取嵌套分类树，parent_id 指定时只返回该节点的子树（不含自身）"""
        return await self.assembler.build_tree(tenant_id, parent_id, is_active)

    # ==================== 一致性检查与修复 ====================

    async def verify(self, tenant_id: str) -> List[TreeViolation]:
        """检查租户下全部节点的结构字段

        报告悬空父节点、环、ancestors/depth/path 与父指针不一致以及 slug 重复。
        """
        nodes = await self.store.find_all(tenant_id)
        expected, violations = self._derive_structure(nodes)

        for node in nodes:
            want = expected.get(node.id)
            if want is None:
                continue
            ancestors, depth, path = want
            if node.ancestors != ancestors:
                violations.append(TreeViolation(
                    node.id, "ancestors", "ancestors 与父节点链不一致", ancestors, node.ancestors
                ))
            if node.depth != depth:
                violations.append(TreeViolation(
                    node.id, "depth", "depth 与 ancestors 长度不一致", depth, node.depth
                ))
            if node.path != path:
                violations.append(TreeViolation(
                    node.id, "path", "path 与祖先 slug 不一致", path, node.path
                ))

        seen: Dict[str, str] = {}
        for node in sorted(nodes, key=lambda n: n.id):
            owner = seen.setdefault(node.slug.lower(), node.id)
            if owner != node.id:
                violations.append(TreeViolation(
                    node.id, "duplicate_slug", f"slug 与分类 {owner} 重复", None, node.slug
                ))

        if violations:
            logger.warning(f"分类树一致性检查发现问题: tenant={tenant_id}, count={len(violations)}")
        return violations

    async def rebuild_paths(self, tenant_id: str) -> int:
        """根据父指针自顶向下重算 ancestors、depth、path

        只改写发生偏差的节点，返回改写数量。悬空或成环的节点无法推导，保持原样。

        Raises:
            PartialPropagationException: 部分节点写入失败
        """
        async with self._structural(tenant_id):
            nodes = await self.store.find_all(tenant_id)
            expected, broken = self._derive_structure(nodes)
            for violation in broken:
                logger.warning(f"路径重建跳过分类 {violation.node_id}: {violation.message}")

            updates = []
            for node in nodes:
                want = expected.get(node.id)
                if want is None:
                    continue
                ancestors, depth, path = want
                if (node.ancestors, node.depth, node.path) != (ancestors, depth, path):
                    updates.append(BulkUpdate(
                        id=node.id,
                        patch={"ancestors": ancestors, "depth": depth, "path": path},
                    ))

            if not updates:
                return 0

            result = await self.store.bulk_update(tenant_id, updates)
            logger.warning(f"分类路径已重建: tenant={tenant_id}, modified={result.modified}")
            if result.failed_ids:
                raise PartialPropagationException(
                    message="分类路径重建不完整",
                    details=[f"写入失败的分类: {', '.join(result.failed_ids)}"],
                    result=result,
                    tenant_id=tenant_id,
                )
            return result.modified

    def _derive_structure(
        self, nodes: List[Category]
    ) -> Tuple[Dict[str, Tuple[List[str], int, str]], List[TreeViolation]]:
        """沿父指针推导每个节点应有的 (ancestors, depth, path)"""
        by_id = {node.id: node for node in nodes}
        separator = self.settings.path_separator
        expected: Dict[str, Tuple[List[str], int, str]] = {}
        violations: List[TreeViolation] = []

        for node in nodes:
            chain: List[str] = []
            seen = {node.id}
            problem: Optional[TreeViolation] = None
            cursor = node
            while cursor.parent_id is not None:
                parent_id = cursor.parent_id
                if parent_id not in by_id:
                    problem = TreeViolation(
                        node.id, "dangling_parent", f"祖先链上的父分类 {parent_id} 不存在", None, parent_id
                    )
                    break
                if parent_id in seen:
                    problem = TreeViolation(
                        node.id, "cycle", f"父节点链在 {parent_id} 处成环", None, parent_id
                    )
                    break
                seen.add(parent_id)
                chain.insert(0, parent_id)
                cursor = by_id[parent_id]

            if problem is not None:
                violations.append(problem)
                continue

            path = separator.join([by_id[a].slug for a in chain] + [node.slug])
            expected[node.id] = (chain, len(chain), path)

        return expected, violations

    @staticmethod
    def _structure_changed(before: Category, after: Category) -> bool:
        return any(getattr(before, f) != getattr(after, f) for f in STRUCTURAL_FIELDS)
