"""内存分类树存储

默认的内存存储实现，适用于：
- 单实例部署
- 开发测试
- 不需要持久化的场景

注意：应用重启后数据会丢失。
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from ycatalog.log import get_logger
from ycatalog.orm import Page
from ycatalog.exceptions import BusinessException
from ..record import Category, CategoryFilter, SortField, BulkUpdate, BulkWriteResult
from .base import BaseTreeStore, check_patch, category_not_found, duplicate_slug

logger = get_logger()


def _sort_value(value: Any):
    # None 排在最前，避免与其他类型比较
    return (value is not None, value)


class MemoryTreeStore(BaseTreeStore):
    """内存分类树存储

    记录按 ID 存放在字典中，读写都返回深拷贝，调用方修改返回值不会影响存储。
    同一租户内 slug 唯一。
    """

    def __init__(self):
        self._records: Dict[str, Category] = {}

    # ==================== 内部方法 ====================

    def _lookup(self, tenant_id: str, category_id: str) -> Optional[Category]:
        record = self._records.get(category_id)
        if record is None or record.tenant_id != tenant_id:
            return None
        return record

    def _tenant_records(self, tenant_id: str) -> List[Category]:
        return [r for r in self._records.values() if r.tenant_id == tenant_id]

    def _slug_taken(self, tenant_id: str, slug: str, exclude_id: Optional[str] = None) -> bool:
        slug = slug.lower()
        return any(
            r.slug.lower() == slug and r.id != exclude_id
            for r in self._tenant_records(tenant_id)
        )

    def _apply(self, record: Category, patch: Dict[str, Any]) -> bool:
        """应用补丁，返回是否有字段发生变化"""
        check_patch(patch)
        if "slug" in patch and self._slug_taken(record.tenant_id, patch["slug"], exclude_id=record.id):
            raise duplicate_slug(patch["slug"])

        changed = False
        for key, value in patch.items():
            if getattr(record, key) != value:
                setattr(record, key, value.copy() if isinstance(value, (list, dict)) else value)
                changed = True
        if changed:
            record.updated_at = datetime.now()
        return changed

    # ==================== 接口实现 ====================

    async def create(self, record: Category) -> Category:
        if record.id in self._records:
            raise duplicate_slug(record.slug)
        if self._slug_taken(record.tenant_id, record.slug):
            raise duplicate_slug(record.slug)

        stored = record.copy()
        now = datetime.now()
        stored.created_at = stored.created_at or now
        stored.updated_at = stored.updated_at or now
        self._records[stored.id] = stored
        return stored.copy()

    async def get(self, tenant_id: str, category_id: str) -> Optional[Category]:
        record = self._lookup(tenant_id, category_id)
        return record.copy() if record else None

    async def find_by_slug(self, tenant_id: str, slug: str) -> Category:
        wanted = slug.lower()
        for record in self._tenant_records(tenant_id):
            if record.slug.lower() == wanted:
                return record.copy()
        raise category_not_found(slug=slug)

    async def list(
        self,
        criteria: CategoryFilter,
        sort: List[SortField],
        page: int = 1,
        limit: int = 50,
    ) -> Page[Category]:
        rows = self._tenant_records(criteria.tenant_id)

        if criteria.is_active is not None:
            rows = [r for r in rows if r.is_active == criteria.is_active]
        if criteria.root_only:
            rows = [r for r in rows if r.parent_id is None]
        elif criteria.parent_id is not None:
            rows = [r for r in rows if r.parent_id == criteria.parent_id]
        if criteria.q:
            needle = criteria.q.lower()
            rows = [
                r for r in rows
                if needle in r.name.lower() or needle in (r.description or "").lower()
            ]

        # 稳定排序：先按 ID 兜底，再从最后一个排序字段倒序应用
        rows.sort(key=lambda r: r.id)
        for sort_field in reversed(sort):
            rows.sort(
                key=lambda r, f=sort_field.field: _sort_value(getattr(r, f)),
                reverse=sort_field.descending,
            )

        total = len(rows)
        start = (page - 1) * limit
        page_rows = [r.copy() for r in rows[start:start + limit]]
        return Page.build(page_rows, total, page, limit)

    async def exists_slug(self, tenant_id: str, slug: str, exclude_id: Optional[str] = None) -> bool:
        return self._slug_taken(tenant_id, slug, exclude_id)

    async def exists_child_of(self, tenant_id: str, parent_id: str) -> bool:
        return any(r.parent_id == parent_id for r in self._tenant_records(tenant_id))

    async def is_descendant(self, tenant_id: str, candidate_id: str, ancestor_id: str) -> bool:
        candidate = self._lookup(tenant_id, candidate_id)
        return candidate is not None and ancestor_id in candidate.ancestors

    async def find_descendants(self, tenant_id: str, category_id: str) -> List[Category]:
        return [
            r.copy() for r in self._tenant_records(tenant_id)
            if category_id in r.ancestors
        ]

    async def find_all(self, tenant_id: str) -> List[Category]:
        return [r.copy() for r in self._tenant_records(tenant_id)]

    async def update_one(self, tenant_id: str, category_id: str, patch: Dict[str, Any]) -> Category:
        record = self._lookup(tenant_id, category_id)
        if record is None:
            raise category_not_found(category_id)

        # 在副本上修改，校验失败时原记录不变
        working = record.copy()
        self._apply(working, patch)
        working.updated_at = datetime.now()
        self._records[category_id] = working
        return working.copy()

    async def bulk_update(self, tenant_id: str, updates: List[BulkUpdate]) -> BulkWriteResult:
        result = BulkWriteResult()
        for update in updates:
            record = self._lookup(tenant_id, update.id)
            if record is None:
                continue
            result.matched += 1

            working = record.copy()
            try:
                changed = self._apply(working, update.patch)
            except BusinessException as e:
                logger.warning(f"批量更新跳过记录 {update.id}: {e.message}")
                result.failed_ids.append(update.id)
                continue

            self._records[update.id] = working
            if changed:
                result.modified += 1
        return result

    async def delete_one(self, tenant_id: str, category_id: str) -> None:
        if self._lookup(tenant_id, category_id) is None:
            raise category_not_found(category_id)
        del self._records[category_id]

    def clear(self) -> None:
        """删除所有记录"""
        self._records.clear()
