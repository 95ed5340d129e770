"""业务异常类定义

定义分类树引擎使用的业务异常类体系。
"""

import copy
from enum import Enum
from typing import Optional, List, Any, Dict, Union

from fastapi import status


class ErrorCode(str, Enum):
    """错误代码枚举

    继承自 str，可以直接作为字符串使用和比较。

    使用示例:
        from ycatalog.exceptions import ErrorCode, ResourceNotFoundException

        raise ResourceNotFoundException("父分类不存在", code=ErrorCode.PARENT_NOT_FOUND)

        if exc.code == ErrorCode.HAS_CHILDREN:
            ...
    """

    # ==================== 通用错误 ====================
    BUSINESS_ERROR = "BUSINESS_ERROR"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"

    # ==================== 资源相关 (404) ====================
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    CATEGORY_NOT_FOUND = "CATEGORY_NOT_FOUND"
    PARENT_NOT_FOUND = "PARENT_NOT_FOUND"

    # ==================== 冲突相关 (409) ====================
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"
    DUPLICATE_SLUG = "DUPLICATE_SLUG"

    # ==================== 树结构相关 (400) ====================
    INVALID_PARENT = "INVALID_PARENT"
    HAS_CHILDREN = "HAS_CHILDREN"

    # ==================== 验证相关 (422) ====================
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_SLUG = "INVALID_SLUG"
    INVALID_PARAMETER = "INVALID_PARAMETER"

    # ==================== 存储相关 (500) ====================
    PROPAGATION_INCOMPLETE = "PROPAGATION_INCOMPLETE"


# 类型别名，支持枚举和字符串
ErrorCodeType = Union[str, ErrorCode]


class BusinessException(Exception):
    """业务异常基类

    所有业务异常都应该继承此类。

    属性:
        message: 错误消息（面向用户）
        code: 错误代码（用于程序判断，支持 ErrorCode 枚举或字符串）
        status_code: HTTP 状态码
        details: 详细错误信息列表
        extra: 额外的上下文信息

    使用示例:
        raise BusinessException("操作失败")

        raise BusinessException(
            message="分类移动失败",
            code=ErrorCode.INVALID_PARENT,
            extra={"category_id": "abc", "new_parent_id": "def"}
        )
    """

    def __init__(
        self,
        message: str,
        code: ErrorCodeType = ErrorCode.BUSINESS_ERROR,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or []
        self.extra = extra
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式

        Returns:
            包含异常信息的字典
        """
        return {
            "message": self.message,
            "code": self.code,
            "status_code": self.status_code,
            # 返回深拷贝，避免调用方修改返回值反向污染异常对象内部状态
            "details": copy.deepcopy(self.details),
            "extra": copy.deepcopy(self.extra)
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"status_code={self.status_code})"
        )


class ResourceNotFoundException(BusinessException):
    """资源不存在异常

    使用示例:
        raise ResourceNotFoundException("分类不存在", code=ErrorCode.CATEGORY_NOT_FOUND, category_id="abc")
    """

    def __init__(
        self,
        message: str = "资源不存在",
        code: ErrorCodeType = ErrorCode.RESOURCE_NOT_FOUND,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=status.HTTP_404_NOT_FOUND,
            details=details,
            **extra
        )


class ResourceConflictException(BusinessException):
    """资源冲突异常

    slug 在持久化时发生唯一约束冲突（并发创建/改名的竞争）时抛出，
    调用方可以整体重试一次创建或改名。
    """

    def __init__(
        self,
        message: str = "资源冲突",
        code: ErrorCodeType = ErrorCode.RESOURCE_CONFLICT,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=status.HTTP_409_CONFLICT,
            details=details,
            **extra
        )


class InvalidParentException(BusinessException):
    """非法父节点异常

    把节点移动到自身或自身的子孙节点下时抛出。
    """

    def __init__(
        self,
        message: str = "无效的父分类",
        code: ErrorCodeType = ErrorCode.INVALID_PARENT,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
            **extra
        )


class HasChildrenException(BusinessException):
    """存在子分类异常

    删除仍有子分类的节点时抛出。只检查子分类，不检查引用该分类的商品。
    """

    def __init__(
        self,
        message: str = "该分类下存在子分类，不能删除",
        code: ErrorCodeType = ErrorCode.HAS_CHILDREN,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
            **extra
        )


class ValidationException(BusinessException):
    """数据验证异常

    使用示例:
        raise ValidationException("无法从名称生成有效的 slug", code=ErrorCode.INVALID_SLUG)
    """

    def __init__(
        self,
        message: str = "数据验证失败",
        code: ErrorCodeType = ErrorCode.VALIDATION_ERROR,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=422,
            details=details,
            **extra
        )


class PartialPropagationException(BusinessException):
    """子孙节点路径传播不完整异常

    节点自身的写入已经生效，但批量改写子孙节点时部分记录失败，
    树可能处于不一致状态，需要调用 rebuild_paths 修复。

    属性:
        result: 存储层返回的 BulkWriteResult
    """

    def __init__(
        self,
        message: str = "子分类路径更新不完整",
        code: ErrorCodeType = ErrorCode.PROPAGATION_INCOMPLETE,
        details: Optional[List[str]] = None,
        result: Any = None,
        **extra: Any
    ):
        self.result = result
        super().__init__(
            message=message,
            code=code,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details,
            **extra
        )


class Err:
    """异常快捷创建类

    只需导入一个类，即可创建所有类型的业务异常。

    使用示例:
        from ycatalog.exceptions import Err

        raise Err.not_found("分类不存在")
        raise Err.conflict("slug 已存在")
        raise Err.bad_parent("不能将分类移动到其子孙分类下")
        raise Err.has_children()
        raise Err.invalid("排序字段无效", code=ErrorCode.INVALID_PARAMETER)
    """

    @staticmethod
    def not_found(message: str = "资源不存在", **kwargs) -> ResourceNotFoundException:
        """资源不存在 (404)"""
        return ResourceNotFoundException(message, **kwargs)

    @staticmethod
    def conflict(message: str = "资源冲突", **kwargs) -> ResourceConflictException:
        """资源冲突 (409)"""
        return ResourceConflictException(message, **kwargs)

    @staticmethod
    def bad_parent(message: str = "无效的父分类", **kwargs) -> InvalidParentException:
        """非法父节点 (400)"""
        return InvalidParentException(message, **kwargs)

    @staticmethod
    def has_children(message: str = "该分类下存在子分类，不能删除", **kwargs) -> HasChildrenException:
        """存在子分类 (400)"""
        return HasChildrenException(message, **kwargs)

    @staticmethod
    def invalid(message: str = "数据验证失败", **kwargs) -> ValidationException:
        """数据验证失败 (422)"""
        return ValidationException(message, **kwargs)

    @staticmethod
    def fail(message: str = "操作失败", **kwargs) -> BusinessException:
        """通用业务异常 (400)"""
        return BusinessException(message, **kwargs)
