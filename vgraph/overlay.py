"""
vgraph.overlay
在截图上绘制重建过程：候选框 + 推断出的边，便于排查误连/漏连。

用法（命令行）：
    python -m vgraph.overlay --dir data/<domain>/<ts> \
        --image screenshot.png --out screenshot_overlay.png --label

说明：
    - 读取目录下的 candidates.json 与 edges.json；
    - 线条推断的边用实线（绿色），空间兜底的边用橙色，均连接两个候选的中心；
    - 可选在候选框左上角绘制 id 标签。
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFont

from .constants import ARTIFACTS
from .schema import DirectedEdge, NodeCandidate

_BOX_COLOR = (60, 140, 255)
_EDGE_COLORS = {
    "stroke": (64, 200, 80),
    "spatial": (255, 140, 0),
}


def _load_items(path: str, key: str) -> List[Dict[str, Any]]:
    with open(path, "r", encoding="utf-8") as f:
        doc = json.load(f) or {}
    return [x for x in (doc.get(key) or []) if isinstance(x, dict)]


def _center(c: NodeCandidate) -> Tuple[float, float]:
    return c.cx, c.cy


def draw_overlay(
    image_path: str,
    candidates: Sequence[NodeCandidate],
    edges: Sequence[DirectedEdge],
    out_path: str,
    *,
    thickness: int = 2,
    alpha: int = 0,
    label: bool = False,
) -> int:
    """在 image_path 上绘制候选与边，输出至 out_path，返回绘制的边数。

    alpha: 0 表示不填充，仅描边；>0 在候选框内叠加半透明色块（0~128 推荐）。
    """
    by_id = {c.id: c for c in candidates}
    img = Image.open(image_path).convert("RGBA")
    overlay = Image.new("RGBA", img.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)
    font = ImageFont.load_default()

    for c in candidates:
        b = c.bbox
        draw.rectangle([b.left, b.top, b.right, b.bottom], outline=_BOX_COLOR + (255,), width=thickness)
        # 内缩 1px 填充；不足 2px 的框内缩后坐标反转，只描边
        if alpha > 0 and b.width >= 2 and b.height >= 2:
            draw.rectangle([b.left + 1, b.top + 1, b.right - 1, b.bottom - 1], fill=_BOX_COLOR + (max(0, min(255, alpha)),))
        if label:
            tx, ty = b.left + 2, max(0, b.top - 10)
            draw.text((tx + 1, ty + 1), str(c.id), font=font, fill=(0, 0, 0, 255))
            draw.text((tx, ty), str(c.id), font=font, fill=(255, 255, 255, 255))

    drawn = 0
    for e in edges:
        src = by_id.get(e.source)
        dst = by_id.get(e.target)
        if src is None or dst is None:
            continue
        color = _EDGE_COLORS.get(e.origin, _EDGE_COLORS["stroke"])
        draw.line([_center(src), _center(dst)], fill=color + (255,), width=thickness)
        # 子节点端画一个小圆点表示方向
        x, y = _center(dst)
        r = thickness + 2
        draw.ellipse([x - r, y - r, x + r, y + r], fill=color + (255,))
        drawn += 1

    out = Image.alpha_composite(img, overlay).convert("RGB")
    out.save(out_path)
    return drawn


def _cli() -> int:
    import argparse
    p = argparse.ArgumentParser(description="在截图上绘制候选框与推断出的边")
    p.add_argument("--dir", required=True, help="数据目录 data/<domain>/<ts>")
    p.add_argument("--image", default=ARTIFACTS["screenshot"], help="输入截图文件名")
    p.add_argument("--out", default=None, help="输出文件名（默认在输入名后加 _overlay.png）")
    p.add_argument("--thickness", type=int, default=2)
    p.add_argument("--alpha", type=int, default=0, help="填充透明度 0~255，建议 0~128")
    p.add_argument("--label", action="store_true", help="是否绘制候选 id 标签")
    args = p.parse_args()

    image_path = os.path.join(args.dir, args.image)
    out_path = args.out or os.path.splitext(image_path)[0] + "_overlay.png"
    candidates = [NodeCandidate.model_validate(x) for x in _load_items(os.path.join(args.dir, ARTIFACTS["candidates"]), "candidates")]
    edges = [DirectedEdge.model_validate(x) for x in _load_items(os.path.join(args.dir, ARTIFACTS["edges"]), "edges")]
    draw_overlay(image_path, candidates, edges, out_path, thickness=args.thickness, alpha=args.alpha, label=args.label)
    print(out_path)
    return 0


if __name__ == "__main__":
    raise SystemExit(_cli())
