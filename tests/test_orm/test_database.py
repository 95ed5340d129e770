"""数据库会话管理与分页结果测试"""

import pytest
from sqlalchemy import select

from ycatalog.config import DatabaseSettings
from ycatalog.orm import (
    Base,
    Page,
    dispose_database,
    get_engine,
    get_session_factory,
    init_database,
)
from ycatalog.tree import CategoryCreate, CategoryModel, CategoryTreeService, SQLAlchemyTreeStore
from ycatalog.tree.models import build_ancestor_path


@pytest.fixture
def clean_database():
    dispose_database()
    yield
    dispose_database()


class TestInitDatabase:
    """init_database 测试"""

    def test_not_initialized(self, clean_database):
        with pytest.raises(RuntimeError):
            get_engine()
        with pytest.raises(RuntimeError):
            get_session_factory()

    def test_missing_url(self, clean_database):
        with pytest.raises(ValueError):
            init_database()
        with pytest.raises(ValueError):
            init_database(config=DatabaseSettings())

    def test_init_memory(self, clean_database):
        engine, session_factory = init_database("sqlite:///:memory:")

        assert get_engine() is engine
        assert get_session_factory() is session_factory
        assert engine.pool.__class__.__name__ == "StaticPool"

    def test_init_from_config(self, clean_database, temp_dir):
        config = DatabaseSettings(url=f"sqlite:///{temp_dir}/catalog_config.db", pool_size=3)

        engine, _ = init_database(config=config)

        assert engine.pool.__class__.__name__ == "QueuePool"
        assert engine.pool.size() == 3

    def test_config_overrides_url(self, clean_database):
        engine, _ = init_database("postgresql://ignored/db", config=DatabaseSettings(url="sqlite://"))

        assert engine.dialect.name == "sqlite"

    def test_reinit_replaces_engine(self, clean_database):
        first, _ = init_database("sqlite:///:memory:")
        second, _ = init_database("sqlite:///:memory:")

        assert first is not second
        assert get_engine() is second

    def test_dispose(self, clean_database):
        init_database("sqlite:///:memory:")

        dispose_database()

        with pytest.raises(RuntimeError):
            get_session_factory()


class TestStoreOnInitializedDatabase:
    """init_database 返回的会话工厂直接用于 SQLAlchemyTreeStore"""

    @pytest.fixture
    def session_factory(self, clean_database):
        engine, session_factory = init_database("sqlite:///:memory:")
        Base.metadata.create_all(bind=engine)
        return session_factory

    @pytest.mark.asyncio
    async def test_service_round_trip(self, session_factory):
        service = CategoryTreeService(SQLAlchemyTreeStore(session_factory))

        parent = await service.create("t1", CategoryCreate(name="Phones"))
        child = await service.create("t1", CategoryCreate(name="Cases", parent_id=parent.id))

        with session_factory() as session:
            stored = session.scalars(select(CategoryModel).where(CategoryModel.id == child.id)).one()
            assert stored.path == "phones/cases"
            assert stored.ancestors == [parent.id]
            assert stored.ancestor_path == build_ancestor_path([parent.id])


class TestAncestorPath:
    """ancestor_path 列格式"""

    def test_root(self):
        assert build_ancestor_path([]) == "/"

    def test_nested(self):
        assert build_ancestor_path(["a", "b"]) == "/a/b/"


class TestPage:
    """Page 测试"""

    @pytest.mark.parametrize("total, size, pages", [
        (0, 10, 0),
        (1, 10, 1),
        (10, 10, 1),
        (11, 10, 2),
        (5, 0, 0),
    ])
    def test_total_pages(self, total, size, pages):
        assert Page.build([], total, 1, size).total_pages == pages

    def test_navigation(self):
        page = Page.build(["x"], total_records=25, page=2, page_size=10)

        assert page.has_prev is True
        assert page.has_next is True
        assert Page.build(["x"], 25, 3, 10).has_next is False

    def test_to_dict(self):
        data = Page.build(["x"], 1, 1, 10).to_dict()

        assert data == {
            "rows": ["x"],
            "total_records": 1,
            "page": 1,
            "page_size": 10,
            "total_pages": 1,
            "has_next": False,
            "has_prev": False,
        }
