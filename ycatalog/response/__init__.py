"""响应模块

使用示例:
    from ycatalog.response import Resp

    return Resp.OK(data=result)
    return Resp.NotFound(message="分类不存在")
"""

from .base_response import (
    Resp,
    ResponseStatus,
    PageData,
    PageResponse,
    ItemResponse,
    OkResponse,
    ValidationErrorResponse,
    BaseResponse,
    OK,
    BadRequest,
    NotFound,
)

__all__ = [
    "Resp",
    "ResponseStatus",
    "PageData",
    "PageResponse",
    "ItemResponse",
    "OkResponse",
    "ValidationErrorResponse",
    "BaseResponse",
    "OK",
    "BadRequest",
    "NotFound",
]
