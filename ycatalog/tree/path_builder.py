"""物化路径计算"""

from dataclasses import dataclass, field
from typing import List, Optional

from ycatalog.exceptions import Err, ErrorCode
from .record import Category
from .stores import BaseTreeStore


@dataclass(frozen=True)
class TreeInfo:
    """节点挂到某个父节点下时的结构信息"""
    parent_id: Optional[str] = None
    ancestors: List[str] = field(default_factory=list)
    depth: int = 0
    path_prefix: str = ""

    def path_for(self, slug: str) -> str:
        return f"{self.path_prefix}{slug}"


class PathBuilder:
    """根据父节点计算 ancestors、depth 和 path 前缀

    使用示例:
        builder = PathBuilder(store)
        info = await builder.resolve("tenant-1", parent_id)
        path = info.path_for("phones")   # "electronics/phones"
    """

    def __init__(self, store: BaseTreeStore, separator: str = "/"):
        self.store = store
        self.separator = separator

    async def resolve(self, tenant_id: str, parent_id: Optional[str]) -> TreeInfo:
        """计算挂到 parent_id 下的结构信息

        Raises:
            ResourceNotFoundException: 父节点不存在
        """
        if parent_id is None:
            return TreeInfo()

        parent = await self.store.get(tenant_id, parent_id)
        if parent is None:
            raise Err.not_found(
                "父分类不存在",
                code=ErrorCode.PARENT_NOT_FOUND,
                details=[f"parent_id: {parent_id}"],
                parent_id=parent_id,
            )

        prefix = f"{parent.path}{self.separator}" if parent.path else ""
        return TreeInfo(
            parent_id=parent.id,
            ancestors=[*parent.ancestors, parent.id],
            depth=parent.depth + 1,
            path_prefix=prefix,
        )

    def rename_path(self, node: Category, new_slug: str) -> str:
        """替换 path 末尾的自身 slug 段"""
        head, sep, _ = node.path.rpartition(self.separator)
        return f"{head}{sep}{new_slug}"
