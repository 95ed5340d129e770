"""分类树存储抽象基类

定义分类树存储的接口规范，所有方法都是协程，且都以 tenant_id 为作用域。
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ycatalog.exceptions import Err, ErrorCode
from ycatalog.orm import Page
from ..record import (
    Category,
    CategoryFilter,
    SortField,
    BulkUpdate,
    BulkWriteResult,
    UPDATABLE_FIELDS,
)


# 排序字段白名单：外部名称（含 camelCase 别名） -> 记录属性
SORTABLE_FIELDS: Dict[str, str] = {
    "name": "name",
    "slug": "slug",
    "path": "path",
    "depth": "depth",
    "sort_index": "sort_index",
    "sortIndex": "sort_index",
    "is_active": "is_active",
    "isActive": "is_active",
    "items_count": "items_count",
    "itemsCount": "items_count",
    "created_at": "created_at",
    "createdAt": "created_at",
    "updated_at": "updated_at",
    "updatedAt": "updated_at",
}

DEFAULT_SORT = "sort_index:asc,created_at:desc"


def parse_sort(sort: Optional[str], default: str = DEFAULT_SORT) -> List[SortField]:
    """解析排序字符串

    格式为逗号分隔的 "字段:方向"，方向可省略（默认 asc）。

    使用示例:
        parse_sort("sortIndex:asc,createdAt:desc")
        # [SortField("sort_index"), SortField("created_at", descending=True)]

    Raises:
        ValidationException: 字段不在白名单内或方向非法
    """
    text = sort if sort and sort.strip() else default
    fields: List[SortField] = []
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        key, _, direction = part.partition(":")
        key = key.strip()
        direction = (direction.strip() or "asc").lower()

        attr = SORTABLE_FIELDS.get(key)
        if attr is None:
            raise Err.invalid(
                f"不支持的排序字段: {key}",
                code=ErrorCode.INVALID_PARAMETER,
                details=[f"可用字段: {', '.join(sorted(set(SORTABLE_FIELDS.values())))}"],
            )
        if direction not in ("asc", "desc"):
            raise Err.invalid(f"不支持的排序方向: {direction}", code=ErrorCode.INVALID_PARAMETER)

        fields.append(SortField(attr, descending=direction == "desc"))
    return fields


def check_patch(patch: Dict[str, Any]) -> None:
    """校验补丁字段，只允许修改 UPDATABLE_FIELDS 中的字段"""
    unknown = set(patch) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"不允许更新的字段: {', '.join(sorted(unknown))}")


def category_not_found(category_id: str = None, slug: str = None):
    if slug is not None:
        return Err.not_found(f"分类不存在: {slug}", code=ErrorCode.CATEGORY_NOT_FOUND, slug=slug)
    return Err.not_found(f"分类不存在: {category_id}", code=ErrorCode.CATEGORY_NOT_FOUND, category_id=category_id)


def duplicate_slug(slug: str):
    return Err.conflict(f"分类 slug 已存在: {slug}", code=ErrorCode.DUPLICATE_SLUG, slug=slug)


class BaseTreeStore(ABC):
    """分类树存储抽象基类

    定义分类树存储的标准接口，所有存储实现都应继承此类。
    不属于当前租户的记录一律视为不存在。
    """

    @abstractmethod
    async def create(self, record: Category) -> Category:
        """写入新记录

        Raises:
            ResourceConflictException: 同一租户下 slug 已存在
        """

    @abstractmethod
    async def get(self, tenant_id: str, category_id: str) -> Optional[Category]:
        """按 ID 查找，不存在返回 None"""

    async def find_by_id(self, tenant_id: str, category_id: str) -> Category:
        """按 ID 查找

        Raises:
            ResourceNotFoundException: 记录不存在
        """
        record = await self.get(tenant_id, category_id)
        if record is None:
            raise category_not_found(category_id)
        return record

    @abstractmethod
    async def find_by_slug(self, tenant_id: str, slug: str) -> Category:
        """按 slug 查找（不区分大小写）

        Raises:
            ResourceNotFoundException: 记录不存在
        """

    @abstractmethod
    async def list(
        self,
        criteria: CategoryFilter,
        sort: List[SortField],
        page: int = 1,
        limit: int = 50,
    ) -> Page[Category]:
        """分页查询"""

    @abstractmethod
    async def exists_slug(self, tenant_id: str, slug: str, exclude_id: Optional[str] = None) -> bool:
        """slug 是否已被占用，exclude_id 指定的记录不参与判断"""

    @abstractmethod
    async def exists_child_of(self, tenant_id: str, parent_id: str) -> bool:
        """是否存在直接子节点"""

    @abstractmethod
    async def is_descendant(self, tenant_id: str, candidate_id: str, ancestor_id: str) -> bool:
        """candidate_id 对应节点的 ancestors 是否包含 ancestor_id"""

    @abstractmethod
    async def find_descendants(self, tenant_id: str, category_id: str) -> List[Category]:
        """ancestors 中包含 category_id 的全部节点"""

    @abstractmethod
    async def find_all(self, tenant_id: str) -> List[Category]:
        """租户下的全部节点"""

    @abstractmethod
    async def update_one(self, tenant_id: str, category_id: str, patch: Dict[str, Any]) -> Category:
        """更新单条记录，整体生效或整体失败

        Raises:
            ResourceNotFoundException: 记录不存在
            ResourceConflictException: 新 slug 与其他记录冲突
        """

    @abstractmethod
    async def bulk_update(self, tenant_id: str, updates: List[BulkUpdate]) -> BulkWriteResult:
        """批量更新，无序且尽力而为

        单条失败不会回滚其他条目，失败的 ID 记录在 failed_ids 中。
        """

    @abstractmethod
    async def delete_one(self, tenant_id: str, category_id: str) -> None:
        """删除单条记录

        Raises:
            ResourceNotFoundException: 没有记录被删除
        """
