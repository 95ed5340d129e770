"""移动节点时的循环检查"""

from typing import Optional

from ycatalog.exceptions import Err
from .stores import BaseTreeStore


class CycleGuard:
    """拒绝会让节点成为自身祖先的移动"""

    def __init__(self, store: BaseTreeStore):
        self.store = store

    async def assert_no_cycle(self, tenant_id: str, node_id: str, new_parent_id: Optional[str]) -> None:
        """
        Raises:
            InvalidParentException: new_parent_id 是节点自身或其子孙
        """
        if new_parent_id is None:
            return

        if new_parent_id == node_id:
            raise Err.bad_parent(
                "不能将分类设为自己的父分类",
                category_id=node_id,
                new_parent_id=new_parent_id,
            )

        if await self.store.is_descendant(tenant_id, new_parent_id, node_id):
            raise Err.bad_parent(
                "不能将分类移动到其子孙分类下",
                category_id=node_id,
                new_parent_id=new_parent_id,
            )
