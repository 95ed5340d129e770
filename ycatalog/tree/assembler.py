"""分类树组装"""

from typing import Any, Dict, List, Optional

from .record import Category
from .stores import BaseTreeStore
from .tree_utils import ROOT_KEY, build_nested, group_by_parent

# 树节点只输出这些字段
TREE_FIELDS = ("id", "name", "slug", "parent_id", "sort_index", "is_active")


def tree_projection(record: Category) -> Dict[str, Any]:
    return {name: getattr(record, name) for name in TREE_FIELDS}


class TreeAssembler:
    """把租户的扁平分类列表组装成嵌套树

    每组同级节点按 (sort_index, name) 升序排列。

    使用示例:
        assembler = TreeAssembler(store)
        tree = await assembler.build_tree("tenant-1")
        subtree = await assembler.build_tree("tenant-1", root_parent_id=electronics_id)
    """

    def __init__(self, store: BaseTreeStore):
        self.store = store

    async def build_tree(
        self,
        tenant_id: str,
        root_parent_id: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> List[Dict[str, Any]]:
        """
        Args:
            tenant_id: 租户ID
            root_parent_id: 从该节点的子节点开始组装，None 表示从根节点开始
            is_active: 只保留状态匹配的节点，不匹配节点的整棵子树一并剔除
        """
        records = await self.store.find_all(tenant_id)
        nodes = [tree_projection(r) for r in records]
        if is_active is not None:
            nodes = [n for n in nodes if n["is_active"] == is_active]

        # 起始节点不存在或被过滤掉时，它的子树也一并剔除
        if root_parent_id is not None and not any(n["id"] == root_parent_id for n in nodes):
            return []

        groups = group_by_parent(nodes)
        return build_nested(groups, root_parent_id if root_parent_id is not None else ROOT_KEY)
