"""业务异常类测试"""

import pytest

from ycatalog.exceptions import (
    BusinessException,
    Err,
    ErrorCode,
    HasChildrenException,
    InvalidParentException,
    PartialPropagationException,
    ResourceConflictException,
    ResourceNotFoundException,
    ValidationException,
)
from ycatalog.tree import BulkWriteResult


class TestBusinessException:
    """BusinessException 测试"""

    def test_defaults(self):
        exc = BusinessException("操作失败")

        assert exc.message == "操作失败"
        assert exc.code == ErrorCode.BUSINESS_ERROR
        assert exc.status_code == 400
        assert exc.details == []
        assert exc.extra == {}
        assert str(exc) == "操作失败"

    def test_extra_kwargs(self):
        exc = BusinessException("x", code="CUSTOM", category_id="abc")

        assert exc.code == "CUSTOM"
        assert exc.extra == {"category_id": "abc"}

    def test_to_dict_returns_copies(self):
        exc = BusinessException("x", details=["a"], meta={"k": [1]})

        data = exc.to_dict()
        data["details"].append("b")
        data["extra"]["meta"]["k"].append(2)

        assert exc.details == ["a"]
        assert exc.extra == {"meta": {"k": [1]}}

    def test_repr(self):
        text = repr(HasChildrenException())

        assert text.startswith("HasChildrenException(")
        assert "status_code=400" in text

    def test_error_code_is_str(self):
        assert ErrorCode.HAS_CHILDREN == "HAS_CHILDREN"


class TestSubclasses:
    """各业务异常的状态码与错误码"""

    @pytest.mark.parametrize("factory, exc_class, status_code, code", [
        (Err.not_found, ResourceNotFoundException, 404, ErrorCode.RESOURCE_NOT_FOUND),
        (Err.conflict, ResourceConflictException, 409, ErrorCode.RESOURCE_CONFLICT),
        (Err.bad_parent, InvalidParentException, 400, ErrorCode.INVALID_PARENT),
        (Err.has_children, HasChildrenException, 400, ErrorCode.HAS_CHILDREN),
        (Err.invalid, ValidationException, 422, ErrorCode.VALIDATION_ERROR),
        (Err.fail, BusinessException, 400, ErrorCode.BUSINESS_ERROR),
    ])
    def test_factories(self, factory, exc_class, status_code, code):
        exc = factory()

        assert isinstance(exc, exc_class)
        assert isinstance(exc, BusinessException)
        assert exc.status_code == status_code
        assert exc.code == code

    def test_factory_code_override(self):
        exc = Err.not_found("父分类不存在", code=ErrorCode.PARENT_NOT_FOUND, parent_id="p1")

        assert exc.code == ErrorCode.PARENT_NOT_FOUND
        assert exc.extra == {"parent_id": "p1"}

    def test_partial_propagation(self):
        result = BulkWriteResult(matched=3, modified=2, failed_ids=["c"])

        exc = PartialPropagationException(result=result, tenant_id="t1")

        assert exc.status_code == 500
        assert exc.code == ErrorCode.PROPAGATION_INCOMPLETE
        assert exc.result is result
        assert exc.extra == {"tenant_id": "t1"}
