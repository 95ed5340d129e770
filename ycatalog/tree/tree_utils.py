"""树形结构工具函数

在扁平节点列表（parent_id 指针）和嵌套树（children 列表）之间转换。

使用示例:
    from ycatalog.tree import group_by_parent, build_nested, flatten_tree

    groups = group_by_parent(nodes)
    tree = build_nested(groups)
    flat = flatten_tree(tree)
"""

from typing import Any, Callable, Dict, Hashable, List, Optional, Set

# 没有父节点的分组键
ROOT_KEY = "ROOT"


def sibling_sort_key(node: Dict[str, Any]):
    """同级节点排序：sort_index 升序，名称升序"""
    return (node.get("sort_index") or 0, node.get("name") or "")


def group_by_parent(
    nodes: List[Dict[str, Any]],
    parent_field: str = "parent_id",
) -> Dict[Hashable, List[Dict[str, Any]]]:
    """按父节点分组，parent_id 为空的节点归入 ROOT_KEY"""
    groups: Dict[Hashable, List[Dict[str, Any]]] = {}
    for node in nodes:
        key = node.get(parent_field) or ROOT_KEY
        groups.setdefault(key, []).append(node)
    return groups


def build_nested(
    groups: Dict[Hashable, List[Dict[str, Any]]],
    parent_key: Hashable = ROOT_KEY,
    id_field: str = "id",
    children_field: str = "children",
    sort_key: Optional[Callable[[Dict[str, Any]], Any]] = sibling_sort_key,
    _visited: Optional[Set[Hashable]] = None,
) -> List[Dict[str, Any]]:
    """从 parent_key 开始递归挂接子节点

    节点会被复制，不修改 groups 中的原始数据。
    数据中如果存在环，环上的节点只展开一次。
    """
    visited = _visited if _visited is not None else set()
    siblings = list(groups.get(parent_key, []))
    if sort_key:
        siblings.sort(key=sort_key)

    result: List[Dict[str, Any]] = []
    for node in siblings:
        node_id = node[id_field]
        if node_id in visited:
            continue
        visited.add(node_id)

        item = dict(node)
        item[children_field] = build_nested(
            groups, node_id, id_field, children_field, sort_key, visited
        )
        result.append(item)
    return result


def flatten_tree(
    tree: List[Dict[str, Any]],
    children_field: str = "children",
) -> List[Dict[str, Any]]:
    """深度优先展平嵌套树，结果中不含 children 字段"""
    result: List[Dict[str, Any]] = []
    for node in tree:
        item = {k: v for k, v in node.items() if k != children_field}
        result.append(item)
        result.extend(flatten_tree(node.get(children_field) or [], children_field))
    return result


def find_node_in_tree(
    tree: List[Dict[str, Any]],
    target_id: Any,
    id_field: str = "id",
    children_field: str = "children",
) -> Optional[Dict[str, Any]]:
    """在树中查找指定 ID 的节点，未找到返回 None"""
    path = get_node_path(tree, target_id, id_field, children_field)
    return path[-1] if path else None


def get_node_path(
    tree: List[Dict[str, Any]],
    target_id: Any,
    id_field: str = "id",
    children_field: str = "children",
) -> List[Dict[str, Any]]:
    """从根到目标节点经过的节点列表，未找到返回空列表"""
    for node in tree:
        if node.get(id_field) == target_id:
            return [node]
        below = get_node_path(node.get(children_field) or [], target_id, id_field, children_field)
        if below:
            return [node, *below]
    return []


def calculate_tree_depth(tree: List[Dict[str, Any]], children_field: str = "children") -> int:
    """树的最大层数，空树为 0，只有根节点为 1"""
    if not tree:
        return 0
    return 1 + max(calculate_tree_depth(node.get(children_field) or [], children_field) for node in tree)


__all__ = [
    "ROOT_KEY",
    "sibling_sort_key",
    "group_by_parent",
    "build_nested",
    "flatten_tree",
    "find_node_in_tree",
    "get_node_path",
    "calculate_tree_depth",
]
