from __future__ import annotations

"""
meta_utils

meta.json 的组装与更新：
 - write_meta: 组装并写入 meta.json（容错，写失败时退回最简 JSON）；
 - update_meta_artifacts: 运行结束后刷新 warnings 与关键产物存在性。

本模块不抛异常，调用方只需在必要时记录 warnings。
"""

import json
import os
import time
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from .constants import ARTIFACTS, DEFAULT_VIEWPORT, VGRAPH_SPEC_VERSION
from .utils import read_json, write_json


def write_meta(
    out_dir: str,
    *,
    url: str,
    title: str,
    domain_key: str,
    ts: str,
    viewport: Optional[Dict[str, Any]] = None,
    status: str = "ok",
    error_code: Optional[str] = None,
    error_stage: Optional[str] = None,
    error: Optional[str] = None,
    warnings: Optional[list] = None,
    config: Optional[Dict[str, Any]] = None,
    summary: Optional[Dict[str, Any]] = None,
    started_epoch: Optional[float] = None,
) -> None:
    """写出 meta.json；容错，不抛异常。"""
    meta = {
        "url": url,
        "title": title or "",
        "domain": urlparse(url).netloc,
        "domain_sanitized": domain_key,
        "timestamp": ts,
        "viewport": viewport or DEFAULT_VIEWPORT,
        "vgraph_spec_version": VGRAPH_SPEC_VERSION,
        "tool": "playwright-python",
        "status": status,
        "error_code": error_code,
        "error_stage": error_stage,
        "error": error,
        "warnings": warnings or [],
        "config": config or {},
        "summary": summary or {},
        "started_epoch": started_epoch,
        "finished_epoch": time.time(),
    }
    try:
        write_json(os.path.join(out_dir, ARTIFACTS["meta"]), meta)
    except (OSError, TypeError, ValueError):
        # 最小容错：直接尝试写最简 JSON
        try:
            with open(os.path.join(out_dir, ARTIFACTS["meta"]), "w", encoding="utf-8") as f:
                json.dump({"url": url, "timestamp": ts, "status": status}, f)
        except OSError:
            pass


def update_meta_artifacts(out_dir: str, *, warnings: Optional[list] = None) -> None:
    """更新 meta：写回 warnings 与关键产物存在性（容错）。"""
    meta_path = os.path.join(out_dir, ARTIFACTS["meta"])
    meta_now = read_json(meta_path)
    meta_now.update({
        "warnings": warnings or [],
        "finished_epoch": time.time(),
        "artifacts_present": {
            name: os.path.exists(os.path.join(out_dir, ARTIFACTS[name]))
            for name in ("screenshot", "screenshot_overlay", "surface", "candidates", "edges", "tree")
        },
    })
    try:
        write_json(meta_path, meta_now)
    except OSError:
        pass
