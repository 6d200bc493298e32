"""
vgraph.graph
邻接表（父 → 有序子列表）与“已有父节点”集合。

由线条推断阶段建立，空间兜底阶段只做追加；每次重建都新建一个实例。
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Set

from .schema import DirectedEdge


class LinkGraph:
    def __init__(self) -> None:
        self.adjacency: Dict[int, List[int]] = {}
        self.has_parent: Set[int] = set()
        self.edges: List[DirectedEdge] = []

    @classmethod
    def from_edges(cls, edges: Iterable[DirectedEdge]) -> "LinkGraph":
        g = cls()
        for e in edges:
            g.add(e)
        return g

    def add(self, edge: DirectedEdge) -> None:
        # 键只在挂上第一个子节点时出现
        self.adjacency.setdefault(edge.source, []).append(edge.target)
        self.has_parent.add(edge.target)
        self.edges.append(edge)

    def children_of(self, node_id: int) -> List[int]:
        return list(self.adjacency.get(node_id, []))

    def is_orphan(self, node_id: int) -> bool:
        return node_id not in self.has_parent
