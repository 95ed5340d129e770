"""
Pytest 公共配置和 Fixtures

提供测试所需的公共资源：
- 内存数据库引擎与会话工厂
- 两种分类树存储（内存 / SQLAlchemy），store fixture 对两者参数化
- 分类树服务与造数工具
- FastAPI 测试客户端
"""

import os
import tempfile

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ycatalog.config import TreeSettings
from ycatalog.exceptions import register_exception_handlers
from ycatalog.orm import Base
from ycatalog.tree import (
    CategoryCreate,
    CategoryTreeService,
    MemoryTreeStore,
    SQLAlchemyTreeStore,
    create_category_router,
)


# ==================== 基础 Fixtures ====================

@pytest.fixture(scope="session")
def temp_dir():
    """创建临时目录"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def temp_file(temp_dir):
    """创建临时文件的工厂函数"""
    created_files = []

    def _create_file(filename: str, content: str = "") -> str:
        filepath = os.path.join(temp_dir, filename)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(content)
        created_files.append(filepath)
        return filepath

    yield _create_file

    for f in created_files:
        if os.path.exists(f):
            os.remove(f)


# ==================== 数据库 Fixtures ====================

@pytest.fixture
def memory_engine():
    """创建内存数据库引擎

    使用 StaticPool 和 check_same_thread=False 确保：
    1. 所有操作使用同一个连接（StaticPool）
    2. 存储层在线程池中执行时允许跨线程访问
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(memory_engine):
    """会话工厂"""
    return sessionmaker(autocommit=False, autoflush=True, bind=memory_engine)


# ==================== 分类树 Fixtures ====================

@pytest.fixture
def tenant_id():
    return "tenant-a"


@pytest.fixture
def memory_store():
    return MemoryTreeStore()


@pytest.fixture
def sql_store(session_factory):
    return SQLAlchemyTreeStore(session_factory)


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """两种存储后端都跑同一组用例"""
    if request.param == "memory":
        return request.getfixturevalue("memory_store")
    return request.getfixturevalue("sql_store")


@pytest.fixture
def tree_settings():
    return TreeSettings(
        default_page_size=50,
        max_page_size=500,
        serialize_structural_mutations=True,
    )


@pytest.fixture
def service(store, tree_settings):
    return CategoryTreeService(store, settings=tree_settings)


@pytest.fixture
def make_category(service, tenant_id):
    """创建分类的快捷函数

    使用示例:
        a = await make_category("A")
        b = await make_category("B", parent=a)
    """
    async def _make(name, parent=None, tenant=None, **kwargs):
        data = CategoryCreate(
            name=name,
            parent_id=parent.id if parent is not None else None,
            **kwargs,
        )
        return await service.create(tenant or tenant_id, data)

    return _make


# ==================== FastAPI Fixtures ====================

@pytest.fixture
def app(memory_store, tree_settings):
    """挂载分类路由的测试应用"""
    test_app = FastAPI(title="Test Catalog")
    register_exception_handlers(test_app)

    service = CategoryTreeService(memory_store, settings=tree_settings)
    test_app.include_router(create_category_router(service), prefix="/categories")
    return test_app


@pytest.fixture
def client(app):
    """测试客户端"""
    return TestClient(app)
