"""
vgraph.errors
异常类型定义。

- ScrapeError：采集/编排流程的致命错误封装，便于写入 meta.json 并可选择抛出；
- GeometryFault：单条线条几何采样失败（元素已脱离文档/无效路径等），
  只在单条线条的范围内捕获，不影响整体重建。
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ScrapeError(Exception):
    """采集致命错误。

    code: 错误码（如 INVALID_URL/LAUNCH_ERROR/NAV_TIMEOUT/SNAPSHOT_ERROR）
    stage: 出错阶段（init/launch/navigate/snapshot/reconstruct）
    message: 人类可读的错误信息
    out_dir: 可选，已写入产物的目录（便于排查）
    original: 可选，原始异常对象
    """

    code: str
    stage: str
    message: str
    out_dir: Optional[str] = None
    original: Optional[Exception] = None

    def __str__(self) -> str:  # pragma: no cover
        base = f"[{self.code}@{self.stage}] {self.message}"
        if self.out_dir:
            base += f" (out_dir={self.out_dir})"
        return base


class GeometryFault(Exception):
    """线条长度/坐标采样失败。"""

    def __init__(self, message: str, *, stroke_index: Optional[int] = None) -> None:
        super().__init__(message)
        self.stroke_index = stroke_index
