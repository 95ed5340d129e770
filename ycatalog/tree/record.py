"""分类记录与存储层数据结构

存储层与服务层之间传递的都是普通 dataclass，不携带 ORM 会话状态。
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


# 允许通过 update_one / bulk_update 修改的字段
UPDATABLE_FIELDS = frozenset({
    "name",
    "slug",
    "description",
    "image",
    "parent_id",
    "ancestors",
    "depth",
    "path",
    "is_active",
    "sort_index",
    "items_count",
    "extra",
})

# 影响树结构的派生字段
STRUCTURAL_FIELDS = ("path", "ancestors", "depth")


@dataclass
class Category:
    """分类记录

    字段说明:
        - ancestors: 从根到直接父节点的 ID 列表，根节点为空列表
        - depth: 等于 len(ancestors)，根节点为 0
        - path: 祖先 slug 与自身 slug 用 "/" 拼接，如 "electronics/phones"
    """
    id: str
    tenant_id: str
    name: str
    slug: str
    parent_id: Optional[str] = None
    ancestors: List[str] = field(default_factory=list)
    depth: int = 0
    path: str = ""
    description: Optional[str] = None
    image: Optional[str] = None
    is_active: bool = True
    sort_index: int = 0
    items_count: int = 0
    extra: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def copy(self) -> "Category":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "image": self.image,
            "parent_id": self.parent_id,
            "ancestors": list(self.ancestors),
            "depth": self.depth,
            "path": self.path,
            "is_active": self.is_active,
            "sort_index": self.sort_index,
            "items_count": self.items_count,
            "extra": copy.deepcopy(self.extra),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class CategoryFilter:
    """列表查询条件

    root_only 为 True 时只返回根节点，此时忽略 parent_id。
    """
    tenant_id: str
    is_active: Optional[bool] = None
    parent_id: Optional[str] = None
    root_only: bool = False
    q: Optional[str] = None


@dataclass(frozen=True)
class SortField:
    field: str
    descending: bool = False


@dataclass
class BulkUpdate:
    """批量更新中的一条：按 ID 应用字段补丁"""
    id: str
    patch: Dict[str, Any]


@dataclass
class BulkWriteResult:
    """批量写入结果

    matched: 找到的记录数
    modified: 实际发生变化的记录数
    failed_ids: 写入失败的记录 ID
    """
    matched: int = 0
    modified: int = 0
    failed_ids: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed_ids

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matched": self.matched,
            "modified": self.modified,
            "failed_ids": list(self.failed_ids),
        }


@dataclass
class TreeViolation:
    """一致性检查发现的问题

    kind 取值: dangling_parent, cycle, ancestors, depth, path, duplicate_slug
    """
    node_id: str
    kind: str
    message: str
    expected: Any = None
    actual: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_id": self.node_id,
            "kind": self.kind,
            "message": self.message,
            "expected": self.expected,
            "actual": self.actual,
        }
