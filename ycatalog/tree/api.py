"""
分类树 - CRUD API

使用动词风格路由，只使用 GET 和 POST 请求。
租户通过 tenant_id 查询参数传入；业务异常由 register_exception_handlers 统一转换。

使用示例:
    from fastapi import FastAPI
    from ycatalog.exceptions import register_exception_handlers
    from ycatalog.tree import CategoryTreeService, MemoryTreeStore, create_category_router

    app = FastAPI()
    register_exception_handlers(app)

    service = CategoryTreeService(MemoryTreeStore())
    app.include_router(create_category_router(service), prefix="/categories")
"""

from typing import Optional

from fastapi import APIRouter, Query

from ycatalog.response import Resp, PageResponse, ItemResponse, OkResponse
from .schemas import (
    CategoryCreate,
    CategoryUpdate,
    CategoryListQuery,
    CategoryResponse,
    MoveRequest,
    ReorderRequest,
)
from .service import CategoryTreeService


def create_category_router(service: CategoryTreeService) -> APIRouter:
    """创建分类 CRUD 路由

    Args:
        service: 分类树服务实例

    Returns:
        APIRouter

    生成的路由:
        GET  /list               - 分页查询分类
        GET  /tree               - 获取分类树
        GET  /get                - 按 ID 获取分类
        GET  /get-by-slug        - 按 slug 获取分类
        POST /create             - 创建分类
        POST /update             - 按 ID 更新分类
        POST /update-by-slug     - 按 slug 更新分类
        POST /move               - 移动分类
        POST /reorder            - 批量排序
        POST /set-active         - 启用/停用分类
        POST /delete             - 按 ID 删除分类
        POST /delete-by-slug     - 按 slug 删除分类
    """
    router = APIRouter()

    # ==================== 查询接口 ====================

    @router.get(
        "/list",
        response_model=PageResponse[CategoryResponse],
        summary="获取分类列表",
        description="分页查询分类，支持状态、父分类、关键字筛选和多字段排序"
    )
    async def list_categories(
        tenant_id: str = Query(..., description="租户ID"),
        q: Optional[str] = Query(None, description="按名称、描述模糊搜索"),
        is_active: Optional[bool] = Query(None, description="按状态筛选"),
        parent_id: Optional[str] = Query(None, description="父分类ID，传 null 只返回根分类"),
        root_only: bool = Query(False, description="只返回根分类"),
        sort: Optional[str] = Query(None, description="排序，如 sortIndex:asc,createdAt:desc"),
        page: int = Query(1, ge=1, description="页码"),
        limit: Optional[int] = Query(None, ge=1, description="每页数量，超过上限时按上限返回"),
    ):
        """获取分类列表"""
        query = CategoryListQuery(
            q=q,
            is_active=is_active,
            parent_id=parent_id,
            root_only=root_only,
            sort=sort,
            page=page,
            limit=limit,
        )
        return Resp.OK(data=await service.list(tenant_id, query))

    @router.get(
        "/tree",
        response_model=OkResponse,
        summary="获取分类树",
        description="获取嵌套分类树，同级按 sort_index、名称排序"
    )
    async def get_category_tree(
        tenant_id: str = Query(..., description="租户ID"),
        parent_id: Optional[str] = Query(None, description="从该分类的子分类开始"),
        is_active: Optional[bool] = Query(None, description="按状态筛选"),
    ):
        """获取分类树"""
        return Resp.OK(data=await service.get_tree(tenant_id, parent_id, is_active))

    @router.get(
        "/get",
        response_model=ItemResponse[CategoryResponse],
        summary="获取分类详情",
        description="根据分类ID获取详情"
    )
    async def get_category(
        tenant_id: str = Query(..., description="租户ID"),
        category_id: str = Query(..., description="分类ID"),
    ):
        """获取分类详情"""
        return Resp.OK(data=await service.get_by_id(tenant_id, category_id))

    @router.get(
        "/get-by-slug",
        response_model=ItemResponse[CategoryResponse],
        summary="按 slug 获取分类",
        description="根据 slug 获取分类详情（不区分大小写）"
    )
    async def get_category_by_slug(
        tenant_id: str = Query(..., description="租户ID"),
        slug: str = Query(..., description="slug"),
    ):
        """按 slug 获取分类"""
        return Resp.OK(data=await service.get_by_slug(tenant_id, slug))

    # ==================== 写入接口 ====================

    @router.post(
        "/create",
        response_model=ItemResponse[CategoryResponse],
        summary="创建分类",
        description="创建新的分类，slug 为空时由名称生成"
    )
    async def create_category(
        data: CategoryCreate,
        tenant_id: str = Query(..., description="租户ID"),
    ):
        """创建分类"""
        category = await service.create(tenant_id, data)
        return Resp.OK(data=category, message="创建成功")

    @router.post(
        "/update",
        response_model=ItemResponse[CategoryResponse],
        summary="更新分类",
        description="更新分类信息，改名或更换父分类时同步改写子分类路径"
    )
    async def update_category(
        data: CategoryUpdate,
        tenant_id: str = Query(..., description="租户ID"),
        category_id: str = Query(..., description="分类ID"),
    ):
        """更新分类"""
        category = await service.update(tenant_id, category_id, data)
        return Resp.OK(data=category, message="更新成功")

    @router.post(
        "/update-by-slug",
        response_model=ItemResponse[CategoryResponse],
        summary="按 slug 更新分类",
        description="根据 slug 更新分类信息"
    )
    async def update_category_by_slug(
        data: CategoryUpdate,
        tenant_id: str = Query(..., description="租户ID"),
        slug: str = Query(..., description="slug"),
    ):
        """按 slug 更新分类"""
        category = await service.update_by_slug(tenant_id, slug, data)
        return Resp.OK(data=category, message="更新成功")

    @router.post(
        "/move",
        response_model=ItemResponse[CategoryResponse],
        summary="移动分类",
        description="移动分类到新的父分类下"
    )
    async def move_category(
        data: MoveRequest,
        tenant_id: str = Query(..., description="租户ID"),
    ):
        """移动分类"""
        category = await service.move(tenant_id, data.id, data.parent_id)
        return Resp.OK(data=category, message="移动成功")

    @router.post(
        "/reorder",
        response_model=OkResponse,
        summary="批量排序",
        description="批量设置同级排序值"
    )
    async def reorder_categories(
        data: ReorderRequest,
        tenant_id: str = Query(..., description="租户ID"),
    ):
        """批量排序"""
        result = await service.reorder(tenant_id, data.items)
        return Resp.OK(data=result, message="排序成功")

    @router.post(
        "/set-active",
        response_model=ItemResponse[CategoryResponse],
        summary="启用/停用分类",
        description="切换分类的启用状态，不影响树结构"
    )
    async def set_category_active(
        tenant_id: str = Query(..., description="租户ID"),
        category_id: str = Query(..., description="分类ID"),
        is_active: bool = Query(..., description="是否启用"),
    ):
        """启用/停用分类"""
        category = await service.set_active(tenant_id, category_id, is_active)
        return Resp.OK(data=category, message="操作成功")

    @router.post(
        "/delete",
        response_model=OkResponse,
        summary="删除分类",
        description="删除分类，存在子分类时拒绝"
    )
    async def delete_category(
        tenant_id: str = Query(..., description="租户ID"),
        category_id: str = Query(..., description="分类ID"),
    ):
        """删除分类"""
        result = await service.delete(tenant_id, category_id)
        return Resp.OK(data={"id": category_id, **result}, message="删除成功")

    @router.post(
        "/delete-by-slug",
        response_model=OkResponse,
        summary="按 slug 删除分类",
        description="根据 slug 删除分类，存在子分类时拒绝"
    )
    async def delete_category_by_slug(
        tenant_id: str = Query(..., description="租户ID"),
        slug: str = Query(..., description="slug"),
    ):
        """按 slug 删除分类"""
        result = await service.delete_by_slug(tenant_id, slug)
        return Resp.OK(data={"slug": slug, **result}, message="删除成功")

    return router
