"""空间兜底连接。

作用：为线条推断后仍没有父节点的候选（孤儿）按空间位置挑一个父节点。
输入：候选列表、已部分建立的 LinkGraph。
输出：新增的有向边（同时写入 LinkGraph）。

规则：按中心 x 升序遍历，最左侧的候选永远不强行挂接（潜在根）；
父节点必须严格在左侧，度量为中心距离 + 0.5 × 纵向距离，
偏向纵向偏移小的节点以形成从左到右的分支。只追加，不改已有父子关系。
"""

from __future__ import annotations

import math
from typing import List, Optional, Sequence

from .config import ReconstructConfig
from .graph import LinkGraph
from .schema import DirectedEdge, NodeCandidate
from .utils import Logger, noop_log


def sort_by_x(candidates: Sequence[NodeCandidate]) -> List[NodeCandidate]:
    # 稳定排序：x 相同保持发现顺序
    return sorted(candidates, key=lambda c: c.cx)


def spatial_metric(parent: NodeCandidate, child: NodeCandidate, vertical_penalty: float) -> float:
    dx = child.cx - parent.cx
    dy = abs(child.cy - parent.cy)
    return math.hypot(dx, dy) + dy * vertical_penalty


def best_left_parent(
    current: NodeCandidate,
    ordered: Sequence[NodeCandidate],
    upto: int,
    vertical_penalty: float,
) -> Optional[NodeCandidate]:
    best: Optional[NodeCandidate] = None
    min_metric = math.inf
    cx = current.cx
    for potential in ordered[:upto]:
        if cx - potential.cx <= 0:
            continue
        metric = spatial_metric(potential, current, vertical_penalty)
        if metric < min_metric:
            min_metric = metric
            best = potential
    return best


def spatial_fallback_link(
    candidates: Sequence[NodeCandidate],
    graph: LinkGraph,
    cfg: Optional[ReconstructConfig] = None,
    *,
    log: Logger = noop_log,
) -> List[DirectedEdge]:
    cfg = cfg or ReconstructConfig()
    ordered = sort_by_x(candidates)
    added: List[DirectedEdge] = []
    for i in range(1, len(ordered)):
        current = ordered[i]
        if not graph.is_orphan(current.id):
            continue
        parent = best_left_parent(current, ordered, i, cfg.vertical_penalty)
        if parent is None:
            continue
        edge = DirectedEdge(source=parent.id, target=current.id, origin="spatial")
        graph.add(edge)
        added.append(edge)
        log(f'spatial fallback: linked "{current.text}" to "{parent.text}"')
    return added
