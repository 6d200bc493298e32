"""
vgraph.surface
页面扫描（Playwright）：一次 page.evaluate 取得稳定快照。

快照内容：
  - texts: 矢量文本（svg text）与通用节点容器的文本元素，含屏幕坐标 bbox 与计算样式；
           同一容器产出的多个文本选项共享 group（容器自身优先，其后为 div/span/p 后代）；
  - strokes: 所有 svg path 的 bbox、fill、总长度，以及长度比例 0/1 处经 getScreenCTM 变换后的端点；
           页面内采样抛出的异常记录在 error 字段，由重建阶段按单条线条处理；
  - has_graph_content: 页面是否含 svg text 或 .react-flow__renderer。
算法只读取快照，页面在快照之后的变化不影响本次重建。
"""

from __future__ import annotations

import json
from typing import Any, Dict, List

from pydantic import ValidationError

from . import constants as K
from .schema import StrokePath, SurfaceSnapshot, TextElement
from .utils import Logger, noop_log

_SNAPSHOT_JS = r"""
(p) => {
  const finite = (v, dflt) => (Number.isFinite(v) ? v : dflt);
  const rectOf = (el) => {
    const r = el.getBoundingClientRect();
    return { left: r.left, top: r.top, width: r.width, height: r.height };
  };
  const styleOf = (el) => {
    const s = window.getComputedStyle(el);
    return {
      visibility: s.visibility || 'visible',
      display: s.display || 'block',
      opacity: finite(parseFloat(s.opacity), 1),
      font_size: finite(parseFloat(s.fontSize), null),
    };
  };
  const texts = [];
  const pushText = (el, source, group) => {
    texts.push({ text: (el.textContent || '').trim(), bbox: rectOf(el), style: styleOf(el), source, group });
  };
  document.querySelectorAll(p.svgText).forEach((el) => pushText(el, 'svg_text', null));
  let group = 0;
  document.querySelectorAll(p.containers.join(', ')).forEach((el) => {
    const g = group++;
    if (el.innerText && el.innerText.trim()) pushText(el, 'container', g);
    const inner = Array.from(el.querySelectorAll(p.containerText)).slice(0, p.maxOptions);
    inner.forEach((d) => pushText(d, 'container', g));
  });

  const strokes = [];
  document.querySelectorAll(p.stroke).forEach((path) => {
    const item = { bbox: rectOf(path), fill: null, length: null, start: null, end: null, error: null };
    try {
      item.fill = window.getComputedStyle(path).fill || null;
      if (typeof path.getTotalLength === 'function') {
        const len = path.getTotalLength();
        item.length = finite(len, null);
        const ctm = path.getScreenCTM();
        if (ctm && item.length !== null) {
          const a = path.getPointAtLength(0).matrixTransform(ctm);
          const b = path.getPointAtLength(len).matrixTransform(ctm);
          item.start = { x: a.x, y: a.y };
          item.end = { x: b.x, y: b.y };
        }
      }
    } catch (e) {
      item.error = String((e && e.message) || e);
    }
    strokes.push(item);
  });

  return {
    url: location.href,
    title: document.title || '',
    viewport: { width: window.innerWidth, height: window.innerHeight },
    has_graph_content: p.hints.some((s) => document.querySelector(s) !== null),
    texts,
    strokes,
  };
}
"""

_HAS_GRAPH_JS = "(sels) => sels.some((s) => document.querySelector(s) !== null)"


def _params(max_options: int) -> Dict[str, Any]:
    return {
        "svgText": K.SVG_TEXT_SELECTOR,
        "containers": list(K.CONTAINER_SELECTORS),
        "containerText": K.CONTAINER_TEXT_SELECTOR,
        "stroke": K.STROKE_SELECTOR,
        "hints": list(K.GRAPH_HINT_SELECTORS),
        "maxOptions": int(max_options),
    }


def parse_surface(doc: Dict[str, Any], *, log: Logger = noop_log) -> SurfaceSnapshot:
    """逐项校验快照；格式异常的单个元素丢弃并计数，不影响其它元素。"""
    texts: List[TextElement] = []
    strokes: List[StrokePath] = []
    bad_texts = 0
    bad_strokes = 0
    for t in doc.get("texts") or []:
        try:
            texts.append(TextElement.model_validate(t))
        except ValidationError:
            bad_texts += 1
    for s in doc.get("strokes") or []:
        try:
            strokes.append(StrokePath.model_validate(s))
        except ValidationError:
            bad_strokes += 1
    if bad_texts or bad_strokes:
        log(f"snapshot: dropped malformed texts={bad_texts} strokes={bad_strokes}")
    return SurfaceSnapshot(
        url=str(doc.get("url") or ""),
        title=str(doc.get("title") or ""),
        viewport=doc.get("viewport") if isinstance(doc.get("viewport"), dict) else None,
        has_graph_content=bool(doc.get("has_graph_content")),
        texts=texts,
        strokes=strokes,
    )


def snapshot_surface(page, *, max_container_options: int = 8, log: Logger = noop_log) -> SurfaceSnapshot:
    """在页面内执行扫描脚本并解析为 SurfaceSnapshot。"""
    raw = page.evaluate(_SNAPSHOT_JS, _params(max_container_options)) or {}
    snap = parse_surface(raw, log=log)
    log(f"snapshot: texts={len(snap.texts)} strokes={len(snap.strokes)} graph_content={snap.has_graph_content}")
    return snap


def has_graph_content(page) -> bool:
    """页面是否含图内容（svg text 或 React Flow 渲染层）。"""
    return bool(page.evaluate(_HAS_GRAPH_JS, list(K.GRAPH_HINT_SELECTORS)))


def load_surface(path: str, *, log: Logger = noop_log) -> SurfaceSnapshot:
    with open(path, "r", encoding="utf-8") as f:
        doc = json.load(f) or {}
    return parse_surface(doc, log=log)


def dump_surface(snapshot: SurfaceSnapshot) -> Dict[str, Any]:
    return snapshot.model_dump()
