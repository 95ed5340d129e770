"""子孙节点路径传播

节点改名或移动后，把新的 path 前缀、ancestors 和 depth 改写到全部子孙节点。
"""

from typing import Any, Dict, List

from ycatalog.exceptions import PartialPropagationException
from ycatalog.log import get_logger
from .record import Category, BulkUpdate, BulkWriteResult
from .stores import BaseTreeStore

logger = get_logger()


def descendant_patch(
    descendant: Category,
    node_id: str,
    old_prefix: str,
    new_prefix: str,
    new_ancestors: List[str],
    depth_delta: int,
) -> Dict[str, Any]:
    """计算单个子孙节点的新结构字段

    ancestors 中 node_id 之前的部分换成 new_ancestors，之后的部分保留。
    """
    if descendant.path.startswith(old_prefix):
        path = new_prefix + descendant.path[len(old_prefix):]
    else:
        path = descendant.path

    tail = descendant.ancestors[descendant.ancestors.index(node_id) + 1:]
    return {
        "path": path,
        "ancestors": [*new_ancestors, node_id, *tail],
        "depth": descendant.depth + depth_delta,
    }


class ReparentPropagator:
    """子孙节点传播器

    使用示例:
        propagator = ReparentPropagator(store)
        result = await propagator.propagate("tenant-1", before, after)
    """

    def __init__(self, store: BaseTreeStore, separator: str = "/"):
        self.store = store
        self.separator = separator

    async def propagate(self, tenant_id: str, before: Category, after: Category) -> BulkWriteResult:
        """把 before -> after 的结构变化改写到全部子孙节点

        所有补丁通过一次 bulk_update 写入，没有子孙时不访问存储的写接口。

        Raises:
            PartialPropagationException: 部分子孙写入失败，节点自身的写入不会回滚
        """
        old_prefix = f"{before.path}{self.separator}"
        new_prefix = f"{after.path}{self.separator}"
        depth_delta = after.depth - before.depth

        descendants = await self.store.find_descendants(tenant_id, after.id)
        if not descendants:
            return BulkWriteResult()

        updates = [
            BulkUpdate(
                id=d.id,
                patch=descendant_patch(d, after.id, old_prefix, new_prefix, after.ancestors, depth_delta),
            )
            for d in descendants
        ]
        result = await self.store.bulk_update(tenant_id, updates)

        logger.debug(
            f"子孙路径传播完成: tenant={tenant_id}, node={after.id}, "
            f"descendants={len(updates)}, matched={result.matched}, modified={result.modified}"
        )

        if result.failed_ids:
            logger.error(
                f"子孙路径传播不完整: tenant={tenant_id}, node={after.id}, "
                f"failed={len(result.failed_ids)}"
            )
            raise PartialPropagationException(
                details=[f"写入失败的分类: {', '.join(result.failed_ids)}", "可调用 rebuild_paths 修复"],
                result=result,
                tenant_id=tenant_id,
                category_id=after.id,
            )
        return result
