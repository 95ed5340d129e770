from dataclasses import dataclass
from typing import TypeVar, Generic, List

from pydantic import BaseModel as PydanticBaseModel


T = TypeVar("T")


# 统一分页结果


@dataclass
class Page(Generic[T]):
    rows: List[T]  # 当前页数据
    total_records: int  # 总条数
    page: int  # 当前页码
    page_size: int  # 每页条数
    total_pages: int  # 总页数

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @classmethod
    def build(cls, rows: List[T], total_records: int, page: int, page_size: int) -> "Page[T]":
        """根据总数计算总页数并创建分页结果"""
        total_pages = (total_records + page_size - 1) // page_size if page_size > 0 else 0
        return cls(
            rows=rows,
            total_records=total_records,
            page=page,
            page_size=page_size,
            total_pages=total_pages,
        )

    def to_dict(self):
        """转换为字典格式，支持JSON序列化"""
        return {
            "rows": self.rows,
            "total_records": self.total_records,
            "page": self.page,
            "page_size": self.page_size,
            "total_pages": self.total_pages,
            "has_next": self.has_next,
            "has_prev": self.has_prev
        }


# 标记
class BaseSchemas(PydanticBaseModel):
    """基础参数"""
    model_config = {"from_attributes": True, "populate_by_name": True}
