"""异常处理模块

提供业务异常类、全局异常处理器等功能。

使用示例:
    from ycatalog.exceptions import Err, register_exception_handlers

    app = FastAPI()
    register_exception_handlers(app)

    raise Err.not_found("分类不存在")
"""

from .exceptions import (
    Err,
    ErrorCode,
    ErrorCodeType,
    BusinessException,
    ResourceNotFoundException,
    ResourceConflictException,
    InvalidParentException,
    HasChildrenException,
    ValidationException,
    PartialPropagationException,
)

from .handlers import (
    register_exception_handlers,
    business_exception_handler,
    validation_exception_handler,
    http_exception_handler,
    general_exception_handler,
)

__all__ = [
    "Err",
    "ErrorCode",
    "ErrorCodeType",
    "BusinessException",
    "ResourceNotFoundException",
    "ResourceConflictException",
    "InvalidParentException",
    "HasChildrenException",
    "ValidationException",
    "PartialPropagationException",
    "register_exception_handlers",
    "business_exception_handler",
    "validation_exception_handler",
    "http_exception_handler",
    "general_exception_handler",
]
