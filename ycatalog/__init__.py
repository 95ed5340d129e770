"""
ycatalog - 多租户分类树引擎

提供分类树的创建、改名、移动、排序、删除，以及配置、日志、异常、响应封装等基础功能
"""

from .version import __version__, __author__, __description__

# 导出响应模块
from .response import (
    Resp,
    OK,
    BadRequest,
    NotFound,
    PageData,
    PageResponse,
    ItemResponse,
    OkResponse,
)

# 导出ORM
from .orm import (
    Base,
    Page,
    BaseSchemas,
    init_database,
    get_engine,
    get_session_factory,
    dispose_database,
)

# 导出配置
from .config import (
    AppSettings,
    TreeSettings,
    DatabaseSettings,
    LoggingSettings,
    ConfigLoader,
    load_yaml_config,
)

# 导出异常
from .exceptions import (
    Err,
    ErrorCode,
    BusinessException,
    register_exception_handlers,
)

# 导出日志
from .log import get_logger, setup_logger, setup_root_logger

# 导出分类树
from .tree import (
    Category,
    CategoryTreeService,
    MemoryTreeStore,
    SQLAlchemyTreeStore,
    CategoryCreate,
    CategoryUpdate,
    CategoryListQuery,
    ReorderItem,
    create_category_router,
)

__all__ = [
    "__version__",
    "__author__",
    "__description__",
    "Resp",
    "OK",
    "BadRequest",
    "NotFound",
    "PageData",
    "PageResponse",
    "ItemResponse",
    "OkResponse",
    "Base",
    "Page",
    "BaseSchemas",
    "init_database",
    "get_engine",
    "get_session_factory",
    "dispose_database",
    "AppSettings",
    "TreeSettings",
    "DatabaseSettings",
    "LoggingSettings",
    "ConfigLoader",
    "load_yaml_config",
    "Err",
    "ErrorCode",
    "BusinessException",
    "register_exception_handlers",
    "get_logger",
    "setup_logger",
    "setup_root_logger",
    "Category",
    "CategoryTreeService",
    "MemoryTreeStore",
    "SQLAlchemyTreeStore",
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryListQuery",
    "ReorderItem",
    "create_category_router",
]
