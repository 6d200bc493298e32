"""
vgraph.artifacts
把一次重建的中间结果与输出树写入运行目录：

    candidates.json  {"count", "candidates": [...]}
    edges.json       {"stroke_count", "spatial_count", "edges": [...]}
    tree.json        {"success", "data", "message"}（与 GET_DATA 回复同构）
    screenshot_overlay.png（可选，需已有 screenshot.png）

写失败记入 warnings，不抛出。
"""

from __future__ import annotations

import os
from typing import Any, Dict, List

from .constants import ARTIFACTS
from .overlay import draw_overlay
from .pipeline import Reconstruction, build_response
from .utils import write_json


def write_reconstruction(
    out_dir: str,
    rec: Reconstruction,
    *,
    warnings: List[Dict[str, Any]],
    overlay: bool = True,
    label: bool = False,
) -> Dict[str, Any]:
    """写出产物并返回 tree.json 的内容。"""
    response = build_response(rec.tree)
    edges = list(rec.stroke_edges) + list(rec.spatial_edges)
    docs = {
        "candidates": {"count": len(rec.candidates), "candidates": [c.model_dump() for c in rec.candidates]},
        "edges": {
            "stroke_count": len(rec.stroke_edges),
            "spatial_count": len(rec.spatial_edges),
            "edges": [e.model_dump() for e in edges],
        },
        "tree": response,
    }
    for name, doc in docs.items():
        try:
            write_json(os.path.join(out_dir, ARTIFACTS[name]), doc)
        except OSError as e:
            warnings.append({"code": "WRITE_ERROR", "stage": "artifacts", "file": ARTIFACTS[name], "error": str(e)})

    shot = os.path.join(out_dir, ARTIFACTS["screenshot"])
    if overlay and rec.candidates and os.path.exists(shot):
        try:
            draw_overlay(shot, rec.candidates, edges, os.path.join(out_dir, ARTIFACTS["screenshot_overlay"]), label=label)
        except OSError as e:
            warnings.append({"code": "OVERLAY_ERROR", "stage": "artifacts", "error": str(e)})
    return response
