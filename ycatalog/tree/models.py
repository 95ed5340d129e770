"""分类表模型

ancestors 以 JSON 数组保存，同时冗余一列 ancestor_path（如 "/a/b/"），
"祖先包含某节点" 的查询转换为 ancestor_path LIKE '%/{id}/%'。
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ycatalog.orm import Base


ANCESTOR_PATH_SEPARATOR = "/"


def build_ancestor_path(ancestors: List[str]) -> str:
    """["a", "b"] -> "/a/b/"，根节点为 "/" """
    if not ancestors:
        return ANCESTOR_PATH_SEPARATOR
    return f"{ANCESTOR_PATH_SEPARATOR}{ANCESTOR_PATH_SEPARATOR.join(ancestors)}{ANCESTOR_PATH_SEPARATOR}"


class CategoryModel(Base):
    """分类表"""
    __tablename__ = "catalog_category"
    __table_args__ = (
        UniqueConstraint("tenant_id", "slug", name="uq_catalog_category_tenant_slug"),
        Index("ix_catalog_category_tenant_parent", "tenant_id", "parent_id"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(64), index=True, comment="租户ID")
    name: Mapped[str] = mapped_column(String(150), comment="名称")
    slug: Mapped[str] = mapped_column(String(200), comment="URL 标识，租户内唯一")
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True, comment="描述")
    image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True, comment="图片地址")
    parent_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, comment="父分类ID")
    ancestors: Mapped[List[str]] = mapped_column(JSON, default=list, comment="祖先ID列表，根在前")
    ancestor_path: Mapped[str] = mapped_column(String(2000), default=ANCESTOR_PATH_SEPARATOR, comment="祖先ID路径")
    depth: Mapped[int] = mapped_column(Integer, default=0, comment="层级，根为0")
    path: Mapped[str] = mapped_column(String(2000), default="", comment="slug 物化路径")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, comment="是否启用")
    sort_index: Mapped[int] = mapped_column(Integer, default=0, comment="同级排序")
    items_count: Mapped[int] = mapped_column(Integer, default=0, comment="商品数量")
    extra: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict, comment="扩展字段")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, comment="创建时间")
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, comment="更新时间")

    def __repr__(self) -> str:
        return f"<CategoryModel(id={self.id!r}, tenant_id={self.tenant_id!r}, path={self.path!r})>"
