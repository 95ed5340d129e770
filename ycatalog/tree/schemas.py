"""
分类树 - 请求与响应 Schema

请求字段同时接受 snake_case 和 camelCase（如 parent_id / parentId）。
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ycatalog.orm import BaseSchemas


class _RequestSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    @field_validator("name", mode="before", check_fields=False)
    @classmethod
    def _strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value


class CategoryCreate(_RequestSchema):
    """创建分类请求"""
    name: str = Field(..., min_length=1, max_length=150, description="分类名称")
    slug: Optional[str] = Field(None, max_length=200, description="自定义 slug，为空时由名称生成")
    description: Optional[str] = Field(None, max_length=500, description="描述")
    image: Optional[str] = Field(None, max_length=500, description="图片地址")
    parent_id: Optional[str] = Field(None, description="父分类ID，为空表示根分类")
    is_active: bool = Field(True, description="是否启用")
    sort_index: int = Field(0, ge=0, description="同级排序")
    extra: Dict[str, Any] = Field(default_factory=dict, description="扩展字段")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Smart Phones",
                "parent_id": None,
                "sort_index": 0,
            }
        }
    )


class CategoryUpdate(_RequestSchema):
    """更新分类请求

    只处理请求中出现的字段。parent_id 显式传 null 表示移动到根级。
    """
    name: Optional[str] = Field(None, min_length=1, max_length=150, description="分类名称")
    slug: Optional[str] = Field(None, max_length=200, description="新的 slug")
    description: Optional[str] = Field(None, max_length=500, description="描述")
    image: Optional[str] = Field(None, max_length=500, description="图片地址")
    parent_id: Optional[str] = Field(None, description="新的父分类ID")
    is_active: Optional[bool] = Field(None, description="是否启用")
    sort_index: Optional[int] = Field(None, ge=0, description="同级排序")
    extra: Optional[Dict[str, Any]] = Field(None, description="扩展字段")


class CategoryListQuery(_RequestSchema):
    """分类列表查询参数

    parent_id 传 "null" 等价于 root_only=True。
    sort 格式为 "字段:方向,字段:方向"，如 "sortIndex:asc,createdAt:desc"。
    """
    q: Optional[str] = Field(None, description="按名称、描述模糊搜索")
    is_active: Optional[bool] = Field(None, description="按状态筛选")
    parent_id: Optional[str] = Field(None, description="按父分类筛选")
    root_only: bool = Field(False, description="只返回根分类")
    sort: Optional[str] = Field(None, description="排序")
    page: int = Field(1, ge=1, description="页码")
    limit: Optional[int] = Field(None, ge=1, description="每页数量")


class ReorderItem(_RequestSchema):
    """排序项"""
    id: str = Field(..., description="分类ID")
    sort_index: int = Field(..., ge=0, description="新的排序值")


class ReorderRequest(_RequestSchema):
    """批量排序请求"""
    items: List[ReorderItem] = Field(default_factory=list, description="排序项")


class MoveRequest(_RequestSchema):
    """移动分类请求"""
    id: str = Field(..., description="分类ID")
    parent_id: Optional[str] = Field(None, description="新父分类ID，为空表示移到根级")


class CategoryResponse(BaseSchemas):
    """分类响应"""
    id: str = Field(..., description="分类ID")
    tenant_id: str = Field(..., description="租户ID")
    name: str = Field(..., description="分类名称")
    slug: str = Field(..., description="slug")
    description: Optional[str] = Field(None, description="描述")
    image: Optional[str] = Field(None, description="图片地址")
    parent_id: Optional[str] = Field(None, description="父分类ID")
    ancestors: List[str] = Field(default_factory=list, description="祖先ID列表，根在前")
    depth: int = Field(0, description="层级，根为0")
    path: str = Field("", description="slug 物化路径")
    is_active: bool = Field(True, description="是否启用")
    sort_index: int = Field(0, description="同级排序")
    items_count: int = Field(0, description="商品数量")
    extra: Dict[str, Any] = Field(default_factory=dict, description="扩展字段")
    created_at: Optional[str] = Field(None, description="创建时间")
    updated_at: Optional[str] = Field(None, description="更新时间")


class CategoryTreeNode(BaseSchemas):
    """分类树节点"""
    id: str = Field(..., description="分类ID")
    name: str = Field(..., description="分类名称")
    slug: str = Field(..., description="slug")
    parent_id: Optional[str] = Field(None, description="父分类ID")
    sort_index: int = Field(0, description="同级排序")
    is_active: bool = Field(True, description="是否启用")
    children: List["CategoryTreeNode"] = Field(default_factory=list, description="子分类")


class ReorderResult(BaseSchemas):
    """排序结果"""
    matched: int = Field(0, description="匹配的记录数")
    modified: int = Field(0, description="实际修改的记录数")


# 支持递归引用
CategoryTreeNode.model_rebuild()


__all__ = [
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryListQuery",
    "ReorderItem",
    "ReorderRequest",
    "MoveRequest",
    "CategoryResponse",
    "CategoryTreeNode",
    "ReorderResult",
]
