"""端到端编排。

作用：候选收集 → 线条推断 → 空间兜底 → 树组装，一次同步完成。
输入：文本元素与线条（或一次页面快照 SurfaceSnapshot）。
输出：ResultTree；没有可用候选时返回 None（不是错误）。

每次调用都从头重建全部中间结构，不依赖上一次调用留下的任何状态，可直接重试。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from . import constants as K
from .assemble import assemble_tree
from .candidates import CollectStats, collect_candidates
from .config import ReconstructConfig
from .edges import EdgeStats, infer_edges
from .graph import LinkGraph
from .linking import spatial_fallback_link
from .schema import DirectedEdge, NodeCandidate, ResultTree, StrokeLike, SurfaceSnapshot, TextElement
from .utils import Logger, noop_log

# 先于核心算法的结构来源（如选区文本解析、标题层级解析），按顺序尝试
TreeProducer = Callable[[], Optional[ResultTree]]


@dataclass
class Reconstruction:
    candidates: List[NodeCandidate] = field(default_factory=list)
    stroke_edges: List[DirectedEdge] = field(default_factory=list)
    spatial_edges: List[DirectedEdge] = field(default_factory=list)
    tree: Optional[ResultTree] = None
    collect_stats: CollectStats = field(default_factory=CollectStats)
    edge_stats: EdgeStats = field(default_factory=EdgeStats)

    def summary(self) -> Dict[str, Any]:
        return {
            "candidates": len(self.candidates),
            "stroke_edges": len(self.stroke_edges),
            "spatial_edges": len(self.spatial_edges),
            "tree_nodes": self.tree.count() if self.tree else 0,
            "collect": self.collect_stats.to_dict(),
            "strokes": self.edge_stats.to_dict(),
            "fault_strokes": [f.stroke_index for f in self.edge_stats.faults],
        }


def run_reconstruction(
    texts: Iterable[TextElement],
    strokes: Iterable[StrokeLike],
    cfg: Optional[ReconstructConfig] = None,
    *,
    log: Logger = noop_log,
) -> Reconstruction:
    """执行一遍完整重建并保留中间产物（供写出产物/调试叠图使用）。"""
    cfg = cfg or ReconstructConfig()
    rec = Reconstruction()
    rec.candidates = collect_candidates(texts, cfg, stats=rec.collect_stats, log=log)
    if not rec.candidates:
        log("no candidates found")
        return rec
    rec.stroke_edges = infer_edges(rec.candidates, strokes, cfg, stats=rec.edge_stats, log=log)
    graph = LinkGraph.from_edges(rec.stroke_edges)
    rec.spatial_edges = spatial_fallback_link(rec.candidates, graph, cfg, log=log)
    rec.tree = assemble_tree(rec.candidates, graph, log=log)
    return rec


def reconstruct_tree(
    texts: Iterable[TextElement],
    strokes: Iterable[StrokeLike],
    cfg: Optional[ReconstructConfig] = None,
    *,
    log: Logger = noop_log,
) -> Optional[ResultTree]:
    return run_reconstruction(texts, strokes, cfg, log=log).tree


def reconstruct_from_snapshot(
    snapshot: SurfaceSnapshot,
    cfg: Optional[ReconstructConfig] = None,
    *,
    log: Logger = noop_log,
) -> Reconstruction:
    return run_reconstruction(snapshot.texts, snapshot.strokes, cfg, log=log)


def reconstruct_page_structure(
    snapshot: SurfaceSnapshot,
    *,
    preempt: Sequence[TreeProducer] = (),
    cfg: Optional[ReconstructConfig] = None,
    log: Logger = noop_log,
) -> Optional[ResultTree]:
    """先按顺序尝试替代来源，任何一个给出结果即返回；否则运行视觉重建。"""
    for producer in preempt:
        tree = producer()
        if tree is not None:
            log(f"structure provided by {getattr(producer, '__name__', 'producer')}")
            return tree
    log("attempting hybrid visual reconstruction")
    return reconstruct_from_snapshot(snapshot, cfg, log=log).tree


def build_response(tree: Optional[ResultTree]) -> Dict[str, Any]:
    """与扩展端 GET_DATA 回复一致的信封：{success, data, message}。"""
    if tree is None:
        return {"success": False, "data": None, "message": K.MSG_NOT_FOUND}
    return {"success": True, "data": tree.to_dict(), "message": K.MSG_LOADED}


def handle_get_data(
    snapshot: SurfaceSnapshot,
    *,
    preempt: Sequence[TreeProducer] = (),
    cfg: Optional[ReconstructConfig] = None,
    log: Logger = noop_log,
) -> Dict[str, Any]:
    """请求入口：只返回“有树/无树”，内部异常转换为失败回复。"""
    try:
        tree = reconstruct_page_structure(snapshot, preempt=preempt, cfg=cfg, log=log)
        return build_response(tree)
    except Exception as e:
        log(f"reconstruction error: {type(e).__name__}: {e}")
        return {"success": False, "data": None, "message": K.MSG_FAILED}
