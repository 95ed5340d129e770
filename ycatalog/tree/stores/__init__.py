"""分类树存储模块

提供多种存储后端：
- MemoryTreeStore: 内存存储（默认，开发测试）
- SQLAlchemyTreeStore: 数据库存储（需要 init_database）
"""

from .base import BaseTreeStore, SORTABLE_FIELDS, DEFAULT_SORT, parse_sort
from .memory import MemoryTreeStore
from .orm import SQLAlchemyTreeStore

__all__ = [
    "BaseTreeStore",
    "MemoryTreeStore",
    "SQLAlchemyTreeStore",
    "SORTABLE_FIELDS",
    "DEFAULT_SORT",
    "parse_sort",
]
