"""全局异常处理器

把分类树引擎的异常转换为统一的 JSON 响应：
{status, message, msg_details, data, error_code}

业务异常的 error_code 取自 ErrorCode；传播不完整时 data 中带上批量写入结果，
调用方据此决定是否调用 rebuild_paths。
"""

from typing import Any, Dict, List, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ycatalog.log import get_logger
from ycatalog.response import ResponseStatus, ValidationErrorResponse
from .exceptions import BusinessException, ErrorCode, ErrorCodeType, PartialPropagationException

logger = get_logger()

# 请求参数错误位置的前缀，不出现在字段名里
_LOCATIONS = ("body", "query", "path", "header", "cookie")


def _code_value(code: ErrorCodeType) -> str:
    return code.value if isinstance(code, ErrorCode) else str(code)


def _error_response(
    status_code: int,
    message: str,
    error_code: ErrorCodeType,
    details: Optional[List[str]] = None,
    data: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "status": ResponseStatus.ERROR.value,
            "message": message,
            "msg_details": list(details or []),
            "data": data or {},
            "error_code": _code_value(error_code),
        },
    )


def _request_context(request: Request) -> Dict[str, Any]:
    return {"path": request.url.path, "method": request.method}


async def business_exception_handler(request: Request, exc: BusinessException) -> JSONResponse:
    """业务异常处理器

    4xx 按警告记录；5xx（传播不完整）说明树可能已不一致，按错误记录。
    """
    code = _code_value(exc.code)
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"分类操作失败: {code} - {exc.message}",
        extra={**_request_context(request), "error_code": code, "context": exc.extra},
    )

    data = None
    if isinstance(exc, PartialPropagationException) and exc.result is not None:
        data = exc.result.to_dict()
        if "tenant_id" in exc.extra:
            data["tenant_id"] = exc.extra["tenant_id"]

    return _error_response(exc.status_code, exc.message, exc.code, exc.details, data)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """请求参数验证异常处理器，错误明细格式为 "字段: 原因" """
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"] if loc not in _LOCATIONS)
        errors.append(f"{field or '请求体'}: {error['msg']}")

    logger.warning(f"请求参数验证失败: {errors}", extra=_request_context(request))
    return _error_response(422, "请求参数验证失败", ErrorCode.VALIDATION_ERROR, errors)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """HTTP 异常处理器，error_code 为 HTTP_<状态码>"""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"HTTP 异常: {exc.status_code} - {exc.detail}", extra=_request_context(request))
    return _error_response(exc.status_code, str(exc.detail), f"HTTP_{exc.status_code}")


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """兜底处理器，记录完整堆栈，响应中不暴露异常内容"""
    logger.error(
        f"未处理的异常: {type(exc).__name__}: {exc}",
        exc_info=(type(exc), exc, exc.__traceback__),
        extra=_request_context(request),
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "服务器内部错误", ErrorCode.INTERNAL_SERVER_ERROR
    )


def register_exception_handlers(app) -> None:
    """注册所有异常处理器到 FastAPI 应用

    使用示例:
        app = FastAPI()
        register_exception_handlers(app)
        app.include_router(create_category_router(service), prefix="/categories")
    """
    app.add_exception_handler(BusinessException, business_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    # 兜底处理器必须放在最后
    app.add_exception_handler(Exception, general_exception_handler)

    app.router.responses[422] = {
        "description": "请求参数验证失败",
        "model": ValidationErrorResponse,
    }
