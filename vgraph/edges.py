"""
vgraph.edges
线条推断：把矢量线条的两个端点匹配到最近的候选，得到有向边。

逐条线条处理：
  1. 宽高同时小于图标阈值 → 视为图标，跳过；
  2. 长度不可测或不超过最小长度 → 跳过；
  3. 取长度比例 0 与 1 处的实际端点（曲线按真实绘制端点，而不是包围盒角点）；
  4. 端点 → 候选：先判包含（直接命中立即返回），否则取到各候选框最近边的距离最小者，
     距离达到噪声阈值则视为悬空，整条线丢弃；
  5. 两端落在同一候选 → 丢弃；
  6. 同一无序候选对只产出一条边；
  7. 方向：中心 x 较小者为父（图默认从左往右读），与线条的绘制方向无关。
单条线条的几何异常只在本条内捕获，不影响其它线条。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from collections import Counter
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple

from .config import ReconstructConfig
from .errors import GeometryFault
from .schema import DirectedEdge, NodeCandidate, StrokeLike
from .utils import Logger, noop_log


@dataclass
class EdgeStats:
    strokes: int = 0
    dropped: Counter = field(default_factory=Counter)
    edges: int = 0
    faults: List[GeometryFault] = field(default_factory=list)

    def to_dict(self) -> Dict[str, int]:
        return {"strokes": self.strokes, "edges": self.edges, **{k: int(v) for k, v in self.dropped.items()}}


def find_closest_candidate(
    px: float,
    py: float,
    candidates: Sequence[NodeCandidate],
    max_distance: float,
) -> Optional[NodeCandidate]:
    """包含优先；否则最近框距离，距离 >= max_distance 返回 None。"""
    for c in candidates:
        if c.bbox.contains(px, py):
            return c
    best: Optional[NodeCandidate] = None
    min_d = float("inf")
    for c in candidates:
        d = c.bbox.distance_to(px, py)
        if d < min_d:
            min_d = d
            best = c
    if best is None or min_d >= max_distance:
        return None
    return best


def orient(a: NodeCandidate, b: NodeCandidate) -> Tuple[NodeCandidate, NodeCandidate]:
    """返回 (父, 子)：中心 x 小者为父；x 相同再比 y，再比 id。"""
    if (a.cx, a.cy, a.id) <= (b.cx, b.cy, b.id):
        return a, b
    return b, a


def infer_edges(
    candidates: Sequence[NodeCandidate],
    strokes: Iterable[StrokeLike],
    cfg: Optional[ReconstructConfig] = None,
    *,
    stats: Optional[EdgeStats] = None,
    log: Logger = noop_log,
) -> List[DirectedEdge]:
    cfg = cfg or ReconstructConfig()
    stats = stats if stats is not None else EdgeStats()
    processed: Set[FrozenSet[int]] = set()
    edges: List[DirectedEdge] = []

    for idx, stroke in enumerate(strokes):
        stats.strokes += 1
        try:
            box = stroke.bounding_box()
            if box.width < cfg.icon_max_px and box.height < cfg.icon_max_px:
                stats.dropped["icon"] += 1
                continue
            length = stroke.total_length()
            if length is None or length <= cfg.min_stroke_length:
                stats.dropped["short"] += 1
                continue
            p_start = stroke.point_at(0)
            p_end = stroke.point_at(1)
        except Exception as e:
            # 快照抛 GeometryFault；非快照实现（如实时元素句柄）可能抛出任意异常
            fault = e if isinstance(e, GeometryFault) else GeometryFault(f"{type(e).__name__}: {e}")
            fault.stroke_index = idx
            stats.dropped["fault"] += 1
            stats.faults.append(fault)
            log(f"stroke #{idx} skipped: {fault}")
            continue

        start_node = find_closest_candidate(p_start.x, p_start.y, candidates, cfg.noise_distance_px)
        end_node = find_closest_candidate(p_end.x, p_end.y, candidates, cfg.noise_distance_px)
        if start_node is None or end_node is None:
            stats.dropped["unresolved"] += 1
            continue
        if start_node.id == end_node.id:
            stats.dropped["self_loop"] += 1
            continue
        pair = frozenset((start_node.id, end_node.id))
        if pair in processed:
            stats.dropped["duplicate_pair"] += 1
            continue
        processed.add(pair)
        parent, child = orient(start_node, end_node)
        edges.append(DirectedEdge(source=parent.id, target=child.id, origin="stroke"))

    stats.edges = len(edges)
    log(f"found {len(candidates)} nodes and {len(edges)} explicit connections (dropped={dict(stats.dropped)})")
    return edges
