"""ORM 模块

提供声明基类、数据库会话管理和分页结果。

使用示例:
    from ycatalog.orm import Base, init_database, get_engine

    init_database("sqlite:///./catalog.db")
    Base.metadata.create_all(get_engine())
"""

from .base import Base
from .base_schemas import Page, BaseSchemas
from .db_session import (
    init_database,
    get_engine,
    get_session_factory,
    dispose_database,
)

__all__ = [
    "Base",
    "Page",
    "BaseSchemas",
    "init_database",
    "get_engine",
    "get_session_factory",
    "dispose_database",
]
