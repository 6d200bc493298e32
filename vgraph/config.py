from __future__ import annotations

"""
vgraph.config

集中管理重建算法的阈值配置。
来源优先级（低 → 高）：内置缺省值 → 环境变量 VGRAPH_*（含 .env）→ JSON 配置文件 → CLI。
"""

import os
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping

from dotenv import load_dotenv

from . import constants as K


def _load_dotenv_if_needed() -> None:
    """尽力从 .env 文件加载 VGRAPH_* 相关环境变量。

    - VGRAPH_ENV_FILE 指定路径优先；
    - 其次是 CWD/.env；
    - 再其次是仓库根目录的 .env。
    不覆盖已经存在于 os.environ 的变量。
    """
    candidates = [
        os.getenv("VGRAPH_ENV_FILE", "").strip(),
        os.path.join(os.getcwd(), ".env"),
        os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir, ".env")),
    ]
    for path in candidates:
        if path and os.path.exists(path):
            load_dotenv(path, override=False)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class ReconstructConfig:
    """重建算法阈值。每次调用按值传入，不在模块级缓存。"""

    min_opacity: float = K.MIN_OPACITY
    glyph_max_px: float = K.GLYPH_MAX_PX
    max_text_len: int = K.MAX_TEXT_LEN
    icon_max_px: float = K.ICON_MAX_PX
    min_stroke_length: float = K.MIN_STROKE_LENGTH
    noise_distance_px: float = K.NOISE_DISTANCE_PX
    vertical_penalty: float = K.VERTICAL_PENALTY

    @classmethod
    def from_env(cls) -> "ReconstructConfig":
        """从环境变量构造配置，给出合理缺省值。"""
        _load_dotenv_if_needed()
        return cls(
            min_opacity=_env_float("VGRAPH_MIN_OPACITY", K.MIN_OPACITY),
            glyph_max_px=_env_float("VGRAPH_GLYPH_MAX_PX", K.GLYPH_MAX_PX),
            max_text_len=_env_int("VGRAPH_MAX_TEXT_LEN", K.MAX_TEXT_LEN),
            icon_max_px=_env_float("VGRAPH_ICON_MAX_PX", K.ICON_MAX_PX),
            min_stroke_length=_env_float("VGRAPH_MIN_STROKE_LENGTH", K.MIN_STROKE_LENGTH),
            noise_distance_px=_env_float("VGRAPH_NOISE_DISTANCE_PX", K.NOISE_DISTANCE_PX),
            vertical_penalty=_env_float("VGRAPH_VERTICAL_PENALTY", K.VERTICAL_PENALTY),
        )

    def with_overrides(self, overrides: Mapping[str, Any] | None) -> "ReconstructConfig":
        """用 JSON 配置/CLI 中的同名键覆盖；未知键与 None 值忽略。"""
        if not overrides:
            return self
        known = {f.name for f in fields(self)}
        changes: Dict[str, Any] = {}
        for key, value in overrides.items():
            if key not in known or value is None:
                continue
            current = getattr(self, key)
            try:
                changes[key] = type(current)(value)
            except (TypeError, ValueError):
                continue
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def get_config(overrides: Mapping[str, Any] | None = None) -> ReconstructConfig:
    """便捷函数：环境变量配置 + 覆盖项。"""
    return ReconstructConfig.from_env().with_overrides(overrides)
