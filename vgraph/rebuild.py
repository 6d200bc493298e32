from __future__ import annotations

"""
rebuild

离线重建：读取运行目录中的 surface.json（页面快照），重新执行候选收集/线条推断/
空间兜底/树组装，并覆盖写出 candidates.json、edges.json、tree.json 与叠图。
适合调阈值：同一快照可反复重建，结果只取决于快照与配置。

用法：
  python -m vgraph.rebuild --dir workspace/data/<domain>/<ts> \
    --noise-distance-px 80 --vertical-penalty 0.5 --print-tree
"""

import argparse
import os
from typing import Any, Dict, Optional

from .artifacts import write_reconstruction
from .config import ReconstructConfig, get_config
from .constants import ARTIFACTS
from .pipeline import reconstruct_from_snapshot
from .surface import load_surface
from .utils import iter_json, load_json_config, make_logger


def rebuild_dir(
    out_dir: str,
    *,
    config: Optional[ReconstructConfig] = None,
    overlay: bool = True,
    label: bool = False,
    verbose: bool = False,
) -> Dict[str, Any]:
    """对 out_dir 中的 surface.json 重新执行重建，返回 tree.json 内容。"""
    log = make_logger("rebuild", verbose)
    surface_path = os.path.join(out_dir, ARTIFACTS["surface"])
    if not os.path.exists(surface_path):
        raise FileNotFoundError(surface_path)
    snapshot = load_surface(surface_path, log=log)
    rec = reconstruct_from_snapshot(snapshot, config or ReconstructConfig(), log=log)
    warnings: list[dict[str, Any]] = []
    response = write_reconstruction(out_dir, rec, warnings=warnings, overlay=overlay, label=label)
    for w in warnings:
        log(f"warning: {w}")
    log(f"{rec.summary()}")
    return response


def main(argv: Optional[list[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="基于已保存的页面快照（surface.json）离线重建结构树")
    ap.add_argument("--dir", required=True, help="运行目录 workspace/data/<domain>/<ts>")
    ap.add_argument("--config", default=None, help="JSON 配置文件（阈值）")
    ap.add_argument("--noise-distance-px", type=float, default=None)
    ap.add_argument("--vertical-penalty", type=float, default=None)
    ap.add_argument("--min-stroke-length", type=float, default=None)
    ap.add_argument("--no-overlay", dest="overlay", action="store_false")
    ap.set_defaults(overlay=True)
    ap.add_argument("--label", action="store_true")
    ap.add_argument("--print-tree", action="store_true", help="打印 tree.json 内容")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args(argv)

    cfg = get_config(load_json_config(args.config)).with_overrides({
        "noise_distance_px": args.noise_distance_px,
        "vertical_penalty": args.vertical_penalty,
        "min_stroke_length": args.min_stroke_length,
    })
    response = rebuild_dir(os.path.abspath(args.dir), config=cfg, overlay=args.overlay, label=args.label, verbose=args.verbose)
    if args.print_tree:
        print("".join(iter_json(response)))
    else:
        print(f"[rebuild] success={response['success']} dir={args.dir}")
    return 0 if response["success"] else 1


if __name__ == "__main__":
    raise SystemExit(main())
