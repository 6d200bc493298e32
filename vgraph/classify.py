"""候选判定（纯函数）。

作用：判断单个文本元素能否成为节点候选，返回枚举结果，
与几何处理/去重解耦，便于单独测试。
输入：TextElement 与阈值配置。
输出：Verdict
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Optional

from .config import ReconstructConfig
from .schema import TextElement

# 箭头/项目符号字形；片段只由这些字形组成时视为连线装饰或列表符号
_ARROW_GLYPHS = "<>→←↑↓↔↕⇒⇐⇔⇨⇦➜➔➝➞➡⬅▶◀▸◂►◄▲▼"
_BULLET_GLYPHS = "+\\-*●•◦▪▫·‣⁃"
_NOISE_RE = re.compile(rf"^(?:[{_ARROW_GLYPHS}{_BULLET_GLYPHS}\s]+|\d+)$")


class Verdict(str, Enum):
    ACCEPTED = "accepted"
    REJECTED_EMPTY = "rejected_empty"
    REJECTED_NOISE = "rejected_noise"
    REJECTED_INVISIBLE = "rejected_invisible"
    REJECTED_SIZE = "rejected_size"


def is_noise_text(text: str) -> bool:
    """纯箭头/纯符号/纯数字（页码、箭头头部等）。"""
    t = (text or "").strip()
    if not t:
        return False
    return bool(_NOISE_RE.match(t))


def classify_text_element(el: TextElement, cfg: Optional[ReconstructConfig] = None) -> Verdict:
    """按顺序判定：未布局 → 不可见 → 图标字形 → 空文本 → 过长/噪声文本。"""
    cfg = cfg or ReconstructConfig()
    box = el.bbox
    if box.width == 0 or box.height == 0:
        return Verdict.REJECTED_SIZE

    st = el.style
    if st.visibility == "hidden" or st.display == "none" or st.opacity < cfg.min_opacity:
        return Verdict.REJECTED_INVISIBLE

    if st.font_size is not None and box.height < cfg.glyph_max_px and st.font_size < cfg.glyph_max_px:
        return Verdict.REJECTED_SIZE

    text = (el.text or "").strip()
    if not text:
        return Verdict.REJECTED_EMPTY
    # 过长文本块是正文，不是图中标签
    if len(text) >= cfg.max_text_len:
        return Verdict.REJECTED_NOISE
    if is_noise_text(text):
        return Verdict.REJECTED_NOISE
    return Verdict.ACCEPTED
