"""工具模块

使用示例:
    from ycatalog.utils import generate_id, parse_file_size
"""

from .generate_id import generate_id
from .file_size import parse_file_size, SIZE_UNITS

__all__ = [
    "generate_id",
    "parse_file_size",
    "SIZE_UNITS",
]
