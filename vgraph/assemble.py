"""
vgraph.assemble
树组装：选根，按纵向顺序排列子节点，输出无环的 ResultTree。
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Set, Tuple

from .graph import LinkGraph
from .linking import sort_by_x
from .schema import NodeCandidate, ResultTree
from .utils import Logger, noop_log


def select_root(candidates: Sequence[NodeCandidate], graph: LinkGraph) -> Optional[NodeCandidate]:
    """没有父节点的候选中最靠左者；若全部都有父节点（上游成环），退回整体最靠左者。"""
    ordered = sort_by_x(candidates)
    if not ordered:
        return None
    roots = [c for c in ordered if graph.is_orphan(c.id)]
    return roots[0] if roots else ordered[0]


def build_tree(
    root: NodeCandidate,
    candidates: Sequence[NodeCandidate],
    graph: LinkGraph,
) -> ResultTree:
    """从根深度优先构建（显式栈，长链不受递归上限影响）。

    子节点按中心 y 升序（自上而下）。visited 保证每个候选只出现一次：
    已放入树中的候选再次作为子节点出现时跳过（多父或成环）。
    """
    by_id: Dict[int, NodeCandidate] = {c.id: c for c in candidates}
    visited: Set[int] = set()
    tree = ResultTree(name=root.text)
    # (候选, 父节点)；子节点逆序入栈，出栈顺序与递归先序遍历一致
    stack: List[Tuple[NodeCandidate, Optional[ResultTree]]] = [(root, None)]
    while stack:
        node, parent = stack.pop()
        if node.id in visited:
            continue
        visited.add(node.id)
        if parent is None:
            current = tree
        else:
            current = ResultTree(name=node.text)
            parent.children.append(current)
        kids: List[NodeCandidate] = [by_id[i] for i in graph.children_of(node.id) if i in by_id]
        kids.sort(key=lambda c: c.cy)
        stack.extend((child, current) for child in reversed(kids) if child.id not in visited)
    return tree


def assemble_tree(
    candidates: Sequence[NodeCandidate],
    graph: LinkGraph,
    *,
    log: Logger = noop_log,
) -> Optional[ResultTree]:
    root = select_root(candidates, graph)
    if root is None:
        return None
    tree = build_tree(root, candidates, graph)
    unreached = len(candidates) - tree.count()
    log(f'root="{root.text}" nodes={tree.count()} unreachable={unreached}')
    return tree
