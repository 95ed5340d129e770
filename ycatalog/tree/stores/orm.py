"""SQLAlchemy 分类树存储

基于 CategoryModel 的持久化存储。SQLAlchemy 会话是同步的，
每次调用都在默认线程池中新建 session 执行，不阻塞事件循环。

使用示例:
    from ycatalog.orm import init_database, get_engine, Base
    from ycatalog.tree import SQLAlchemyTreeStore

    _, session_factory = init_database("sqlite:///./catalog.db")
    Base.metadata.create_all(get_engine())

    store = SQLAlchemyTreeStore(session_factory)
"""

import asyncio
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, TypeVar

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ycatalog.log import get_logger
from ycatalog.orm import Page
from ..models import CategoryModel, build_ancestor_path
from ..record import Category, CategoryFilter, SortField, BulkUpdate, BulkWriteResult
from .base import BaseTreeStore, check_patch, category_not_found, duplicate_slug

logger = get_logger()

T = TypeVar("T")

_RECORD_FIELDS = (
    "id", "tenant_id", "name", "slug", "description", "image", "parent_id",
    "depth", "path", "is_active", "sort_index", "items_count",
    "created_at", "updated_at",
)


def _like_escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _to_record(model: CategoryModel) -> Category:
    data = {name: getattr(model, name) for name in _RECORD_FIELDS}
    return Category(
        ancestors=list(model.ancestors or []),
        extra=dict(model.extra or {}),
        **data,
    )


def _to_model(record: Category) -> CategoryModel:
    data = {name: getattr(record, name) for name in _RECORD_FIELDS}
    return CategoryModel(
        ancestors=list(record.ancestors),
        ancestor_path=build_ancestor_path(record.ancestors),
        extra=dict(record.extra),
        **data,
    )


def _apply_patch(model: CategoryModel, patch: Dict[str, Any]) -> bool:
    """把补丁写到模型上，返回是否有字段发生变化"""
    changed = False
    for key, value in patch.items():
        if getattr(model, key) == value:
            continue
        if isinstance(value, (list, dict)):
            value = value.copy()
        setattr(model, key, value)
        if key == "ancestors":
            model.ancestor_path = build_ancestor_path(value)
        changed = True
    return changed


class SQLAlchemyTreeStore(BaseTreeStore):
    """SQLAlchemy 分类树存储

    Args:
        session_factory: 返回 Session 的可调用对象（通常是 sessionmaker）
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    # ==================== 执行辅助 ====================

    def _call_in_session(self, work: Callable[[Session], T]) -> T:
        session = self._session_factory()
        try:
            result = work(session)
            session.commit()
            return result
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    async def _run(self, work: Callable[[Session], T]) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._call_in_session, work)

    @staticmethod
    def _select_one(session: Session, tenant_id: str, category_id: str) -> Optional[CategoryModel]:
        return session.scalars(
            select(CategoryModel).where(
                CategoryModel.tenant_id == tenant_id,
                CategoryModel.id == category_id,
            )
        ).first()

    # ==================== 接口实现 ====================

    async def create(self, record: Category) -> Category:
        now = datetime.now()

        def work(session: Session) -> Category:
            model = _to_model(record)
            model.created_at = record.created_at or now
            model.updated_at = record.updated_at or now
            session.add(model)
            try:
                session.flush()
            except IntegrityError as e:
                raise duplicate_slug(record.slug) from e
            return _to_record(model)

        return await self._run(work)

    async def get(self, tenant_id: str, category_id: str) -> Optional[Category]:
        def work(session: Session) -> Optional[Category]:
            model = self._select_one(session, tenant_id, category_id)
            return _to_record(model) if model else None

        return await self._run(work)

    async def find_by_slug(self, tenant_id: str, slug: str) -> Category:
        def work(session: Session) -> Optional[Category]:
            model = session.scalars(
                select(CategoryModel).where(
                    CategoryModel.tenant_id == tenant_id,
                    func.lower(CategoryModel.slug) == slug.lower(),
                )
            ).first()
            return _to_record(model) if model else None

        record = await self._run(work)
        if record is None:
            raise category_not_found(slug=slug)
        return record

    async def list(
        self,
        criteria: CategoryFilter,
        sort: List[SortField],
        page: int = 1,
        limit: int = 50,
    ) -> Page[Category]:
        stmt = select(CategoryModel).where(CategoryModel.tenant_id == criteria.tenant_id)

        if criteria.is_active is not None:
            stmt = stmt.where(CategoryModel.is_active == criteria.is_active)
        if criteria.root_only:
            stmt = stmt.where(CategoryModel.parent_id.is_(None))
        elif criteria.parent_id is not None:
            stmt = stmt.where(CategoryModel.parent_id == criteria.parent_id)
        if criteria.q:
            pattern = f"%{_like_escape(criteria.q.lower())}%"
            stmt = stmt.where(or_(
                func.lower(CategoryModel.name).like(pattern, escape="\\"),
                func.lower(func.coalesce(CategoryModel.description, "")).like(pattern, escape="\\"),
            ))

        order_by = []
        for sort_field in sort:
            column = getattr(CategoryModel, sort_field.field)
            order_by.append(column.desc() if sort_field.descending else column.asc())
        order_by.append(CategoryModel.id.asc())

        def work(session: Session) -> Page[Category]:
            total = session.scalar(select(func.count()).select_from(stmt.subquery()))
            models = session.scalars(
                stmt.order_by(*order_by).offset((page - 1) * limit).limit(limit)
            ).all()
            return Page.build([_to_record(m) for m in models], total or 0, page, limit)

        return await self._run(work)

    async def exists_slug(self, tenant_id: str, slug: str, exclude_id: Optional[str] = None) -> bool:
        stmt = select(CategoryModel.id).where(
            CategoryModel.tenant_id == tenant_id,
            func.lower(CategoryModel.slug) == slug.lower(),
        )
        if exclude_id is not None:
            stmt = stmt.where(CategoryModel.id != exclude_id)

        return await self._run(lambda session: session.scalars(stmt.limit(1)).first() is not None)

    async def exists_child_of(self, tenant_id: str, parent_id: str) -> bool:
        stmt = select(CategoryModel.id).where(
            CategoryModel.tenant_id == tenant_id,
            CategoryModel.parent_id == parent_id,
        ).limit(1)
        return await self._run(lambda session: session.scalars(stmt).first() is not None)

    async def is_descendant(self, tenant_id: str, candidate_id: str, ancestor_id: str) -> bool:
        stmt = select(CategoryModel.id).where(
            CategoryModel.tenant_id == tenant_id,
            CategoryModel.id == candidate_id,
            CategoryModel.ancestor_path.like(f"%/{_like_escape(ancestor_id)}/%", escape="\\"),
        ).limit(1)
        return await self._run(lambda session: session.scalars(stmt).first() is not None)

    async def find_descendants(self, tenant_id: str, category_id: str) -> List[Category]:
        stmt = select(CategoryModel).where(
            CategoryModel.tenant_id == tenant_id,
            CategoryModel.ancestor_path.like(f"%/{_like_escape(category_id)}/%", escape="\\"),
        ).order_by(CategoryModel.depth, CategoryModel.id)
        return await self._run(lambda session: [_to_record(m) for m in session.scalars(stmt).all()])

    async def find_all(self, tenant_id: str) -> List[Category]:
        stmt = select(CategoryModel).where(
            CategoryModel.tenant_id == tenant_id,
        ).order_by(CategoryModel.depth, CategoryModel.id)
        return await self._run(lambda session: [_to_record(m) for m in session.scalars(stmt).all()])

    async def update_one(self, tenant_id: str, category_id: str, patch: Dict[str, Any]) -> Category:
        check_patch(patch)

        def work(session: Session) -> Category:
            model = self._select_one(session, tenant_id, category_id)
            if model is None:
                raise category_not_found(category_id)
            _apply_patch(model, patch)
            model.updated_at = datetime.now()
            # flush 失败后会话不可再读取模型属性
            slug = model.slug
            try:
                session.flush()
            except IntegrityError as e:
                raise duplicate_slug(slug) from e
            return _to_record(model)

        return await self._run(work)

    def _bulk_update_sync(self, tenant_id: str, updates: List[BulkUpdate]) -> BulkWriteResult:
        result = BulkWriteResult()
        # 每条记录独立提交，单条失败不影响其他条目
        for update in updates:
            session = self._session_factory()
            try:
                model = self._select_one(session, tenant_id, update.id)
                if model is None:
                    continue
                result.matched += 1
                if _apply_patch(model, update.patch):
                    model.updated_at = datetime.now()
                    session.commit()
                    result.modified += 1
            except SQLAlchemyError as e:
                session.rollback()
                logger.warning(f"批量更新跳过记录 {update.id}: {e}")
                result.failed_ids.append(update.id)
            finally:
                session.close()
        return result

    async def bulk_update(self, tenant_id: str, updates: List[BulkUpdate]) -> BulkWriteResult:
        for update in updates:
            check_patch(update.patch)
        if not updates:
            return BulkWriteResult()

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._bulk_update_sync, tenant_id, updates)

    async def delete_one(self, tenant_id: str, category_id: str) -> None:
        def work(session: Session) -> int:
            model = self._select_one(session, tenant_id, category_id)
            if model is None:
                return 0
            session.delete(model)
            return 1

        deleted = await self._run(work)
        if deleted != 1:
            raise category_not_found(category_id)
