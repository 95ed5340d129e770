"""分类树模块

多租户分类树引擎：物化路径（path）+ 祖先链（ancestors）+ 层级（depth）。

使用示例:
    from ycatalog.tree import CategoryTreeService, MemoryTreeStore, CategoryCreate

    service = CategoryTreeService(MemoryTreeStore())
    root = await service.create("tenant-1", CategoryCreate(name="Electronics"))
    phones = await service.create("tenant-1", CategoryCreate(name="Phones", parent_id=root.id))
    phones.path   # "electronics/phones"
"""

from .record import (
    Category,
    CategoryFilter,
    SortField,
    BulkUpdate,
    BulkWriteResult,
    TreeViolation,
)
from .models import CategoryModel
from .stores import (
    BaseTreeStore,
    MemoryTreeStore,
    SQLAlchemyTreeStore,
    parse_sort,
)
from .slug import slugify, SlugAllocator
from .path_builder import PathBuilder, TreeInfo
from .cycle_guard import CycleGuard
from .propagator import ReparentPropagator
from .assembler import TreeAssembler
from .tree_utils import (
    ROOT_KEY,
    group_by_parent,
    build_nested,
    flatten_tree,
    find_node_in_tree,
    get_node_path,
    calculate_tree_depth,
)
from .locks import TenantLockRegistry
from .schemas import (
    CategoryCreate,
    CategoryUpdate,
    CategoryListQuery,
    ReorderItem,
    ReorderRequest,
    MoveRequest,
    CategoryResponse,
    CategoryTreeNode,
)
from .service import CategoryTreeService
from .api import create_category_router

__all__ = [
    "Category",
    "CategoryFilter",
    "SortField",
    "BulkUpdate",
    "BulkWriteResult",
    "TreeViolation",
    "CategoryModel",
    "BaseTreeStore",
    "MemoryTreeStore",
    "SQLAlchemyTreeStore",
    "parse_sort",
    "slugify",
    "SlugAllocator",
    "PathBuilder",
    "TreeInfo",
    "CycleGuard",
    "ReparentPropagator",
    "TreeAssembler",
    "ROOT_KEY",
    "group_by_parent",
    "build_nested",
    "flatten_tree",
    "find_node_in_tree",
    "get_node_path",
    "calculate_tree_depth",
    "TenantLockRegistry",
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryListQuery",
    "ReorderItem",
    "ReorderRequest",
    "MoveRequest",
    "CategoryResponse",
    "CategoryTreeNode",
    "CategoryTreeService",
    "create_category_router",
]
