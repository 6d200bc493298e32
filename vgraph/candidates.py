"""
vgraph.candidates
候选收集：从页面文本元素生成去重后的节点候选。

规则：
  - 两轮：先矢量文本（svg text，无条件匹配），再通用节点容器；
  - 容器的多个文本选项共享 group，只取第一个判定通过的选项；
  - 判定见 classify.classify_text_element；
  - 去重键：(round(left), round(top), text)，先到先得（重叠渲染层只保留一个）；
  - id 按发现顺序从 0 连续分配。
结果可以为空：空页面是正常结果，不是错误。
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .classify import Verdict, classify_text_element
from .config import ReconstructConfig
from .schema import NodeCandidate, TextElement
from .utils import Logger, noop_log

DedupKey = Tuple[int, int, str]


def _round_px(v: float) -> int:
    # 与浏览器 Math.round 一致：.5 向上取整
    return int(math.floor(v + 0.5))


def dedup_key(el: TextElement) -> DedupKey:
    return _round_px(el.bbox.left), _round_px(el.bbox.top), el.text.strip()


@dataclass
class CollectStats:
    scanned: int = 0
    verdicts: Counter = field(default_factory=Counter)
    duplicates: int = 0
    group_skipped: int = 0

    def to_dict(self) -> Dict[str, int]:
        d = {"scanned": self.scanned, "duplicates": self.duplicates, "group_skipped": self.group_skipped}
        for v in Verdict:
            d[v.value] = int(self.verdicts.get(v, 0))
        return d


def _in_pass_order(elements: Iterable[TextElement]) -> List[TextElement]:
    items = list(elements)
    svg = [e for e in items if e.source == "svg_text"]
    rest = [e for e in items if e.source != "svg_text"]
    return svg + rest


def collect_candidates(
    elements: Iterable[TextElement],
    cfg: Optional[ReconstructConfig] = None,
    *,
    stats: Optional[CollectStats] = None,
    log: Logger = noop_log,
) -> List[NodeCandidate]:
    cfg = cfg or ReconstructConfig()
    stats = stats if stats is not None else CollectStats()
    seen: Set[DedupKey] = set()
    used_groups: Set[int] = set()
    out: List[NodeCandidate] = []

    for el in _in_pass_order(elements):
        stats.scanned += 1
        if el.group is not None and el.group in used_groups:
            stats.group_skipped += 1
            continue
        verdict = classify_text_element(el, cfg)
        stats.verdicts[verdict] += 1
        if verdict is not Verdict.ACCEPTED:
            continue
        if el.group is not None:
            used_groups.add(el.group)
        key = dedup_key(el)
        if key in seen:
            stats.duplicates += 1
            continue
        seen.add(key)
        out.append(NodeCandidate(id=len(out), text=key[2], bbox=el.bbox, source=el.source))

    log(
        f"candidates={len(out)} scanned={stats.scanned} duplicates={stats.duplicates} "
        f"rejected={stats.scanned - stats.group_skipped - stats.verdicts.get(Verdict.ACCEPTED, 0)}"
    )
    return out
