from dataclasses import asdict, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional, List, TypeVar, Generic

from fastapi import status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field


# 泛型类型变量
T = TypeVar('T')


class ResponseStatus(str, Enum):
    """响应状态枚举

    用于标识响应的业务状态，与 HTTP 状态码独立。
    """
    SUCCESS = "success"
    ERROR = "error"


# ========== 泛型响应模型 ==========

class PageData(BaseModel, Generic[T]):
    """泛型分页数据模型"""
    rows: List[T] = Field(description="数据列表")
    total_records: int = Field(description="总记录数")
    page: int = Field(description="当前页码")
    page_size: int = Field(description="每页数量")
    total_pages: int = Field(description="总页数")
    has_prev: bool = Field(description="是否有上一页")
    has_next: bool = Field(description="是否有下一页")


class PageResponse(BaseModel, Generic[T]):
    """泛型分页响应模型

    使用示例:
        @router.get("/list", response_model=PageResponse[CategoryResponse])
        async def list_categories(...):
            ...
    """
    status: str = Field(default="success", description="响应状态")
    message: str = Field(default="请求成功", description="响应消息")
    msg_details: List[str] = Field(default=[], description="详细信息")
    data: PageData[T] = Field(description="分页数据")


class ItemResponse(BaseModel, Generic[T]):
    """泛型单项响应模型"""
    status: str = Field(default="success", description="响应状态")
    message: str = Field(default="请求成功", description="响应消息")
    msg_details: List[str] = Field(default=[], description="详细信息")
    data: T = Field(description="数据")


class OkResponse(BaseModel):
    """通用操作响应模型（删除、排序等简单操作）"""
    status: str = Field(default="success", description="响应状态")
    message: str = Field(default="请求成功", description="响应消息")
    msg_details: List[str] = Field(default=[], description="详细信息")
    data: dict = Field(default={}, description="操作结果")


class ValidationErrorResponse(BaseModel):
    """验证错误响应模型（422），用于覆盖 FastAPI 默认的 422 OpenAPI Schema"""
    status: str = Field(default="error", description="响应状态")
    message: str = Field(default="请求参数验证失败", description="错误消息")
    msg_details: List[str] = Field(default=[], description="各字段验证错误详情")
    data: dict = Field(default={}, description="空数据")
    error_code: str = Field(default="VALIDATION_ERROR", description="错误码")


class BaseResponse:
    """基础响应类"""

    @staticmethod
    def _serialize_data(data: Any, _is_top_level: bool = True) -> Any:
        """递归序列化数据，处理 dataclass 记录、Pydantic 模型、Page 和列表

        Args:
            data: 要序列化的数据
            _is_top_level: 是否为顶层调用，顶层 None 转为 {}，嵌套 None 保持为 None
        """
        if data is None:
            return {} if _is_top_level else None

        if isinstance(data, datetime):
            return data.strftime('%Y-%m-%d %H:%M:%S')

        if isinstance(data, BaseModel):
            return BaseResponse._serialize_data(data.model_dump(), False)

        # Page / Category 等带 to_dict 的对象
        if hasattr(data, 'to_dict') and callable(getattr(data, 'to_dict')):
            return BaseResponse._serialize_data(data.to_dict(), False)

        if is_dataclass(data) and not isinstance(data, type):
            return BaseResponse._serialize_data(asdict(data), False)

        if isinstance(data, (list, tuple)):
            return [BaseResponse._serialize_data(item, False) for item in data]

        if isinstance(data, dict):
            return {k: BaseResponse._serialize_data(v, False) for k, v in data.items()}

        return data

    @staticmethod
    def _create_response(
        message: str,
        data: Any = None,
        msg_details: Optional[List[str]] = None,
        status_code: int = status.HTTP_200_OK,
        response_status: ResponseStatus = ResponseStatus.SUCCESS
    ) -> JSONResponse:
        """创建标准化响应"""
        content = {
            "status": response_status.value,
            "message": message,
            "msg_details": msg_details if msg_details is not None else [],
            "data": BaseResponse._serialize_data(data)
        }

        return JSONResponse(
            status_code=status_code,
            content=content
        )


def OK(data: Any = None, message: str = "请求成功") -> JSONResponse:
    """200 OK - 请求成功"""
    return BaseResponse._create_response(
        data=data,
        message=message,
        status_code=status.HTTP_200_OK,
        response_status=ResponseStatus.SUCCESS
    )


def BadRequest(message: str = "请求参数错误", msg_details: Optional[List[str]] = None) -> JSONResponse:
    """400 Bad Request - 请求参数错误"""
    return BaseResponse._create_response(
        message=message,
        msg_details=msg_details,
        status_code=status.HTTP_400_BAD_REQUEST,
        response_status=ResponseStatus.ERROR
    )


def NotFound(message: str = "资源不存在", msg_details: Optional[List[str]] = None) -> JSONResponse:
    """404 Not Found - 资源不存在"""
    return BaseResponse._create_response(
        message=message,
        msg_details=msg_details,
        status_code=status.HTTP_404_NOT_FOUND,
        response_status=ResponseStatus.ERROR
    )


class Resp:
    """响应快捷类

    使用示例:
        from ycatalog.response import Resp

        return Resp.OK(data=category)
        return Resp.OK(data={"deleted": True}, message="删除成功")
        return Resp.NotFound(message="分类不存在")
    """

    OK = OK
    """200 OK - 请求成功"""

    BadRequest = BadRequest
    """400 Bad Request - 请求参数错误"""

    NotFound = NotFound
    """404 Not Found - 资源不存在"""
