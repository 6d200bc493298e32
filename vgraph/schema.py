"""数据模型定义（Pydantic）。

作用：统一页面快照（文本元素/线条）、候选节点、有向边与结果树的数据结构，
便于跨阶段传递与写出 JSON 产物。
输入：页面扫描得到的文本元素与线条快照。
输出：NodeCandidate / DirectedEdge / ResultTree 等结构化对象。
依赖：pydantic
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Literal, Optional, Protocol, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .errors import GeometryFault


class Point(BaseModel):
    x: float
    y: float


class BBox(BaseModel):
    """屏幕（视口）坐标系下的矩形。"""

    model_config = ConfigDict(frozen=True)

    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return self.left + self.width / 2.0, self.top + self.height / 2.0

    def contains(self, px: float, py: float) -> bool:
        """点是否落在框内（含边界）。"""
        return self.left <= px <= self.right and self.top <= py <= self.bottom

    def distance_to(self, px: float, py: float) -> float:
        """点到框最近边的欧氏距离；点在某一轴范围内时该轴分量为 0。"""
        dx = max(self.left - px, 0.0, px - self.right)
        dy = max(self.top - py, 0.0, py - self.bottom)
        return math.hypot(dx, dy)


class TextStyle(BaseModel):
    """计算样式中与可见性相关的字段。font_size 缺失时不参与图标判定。"""

    visibility: str = "visible"
    display: str = "block"
    opacity: float = 1.0
    font_size: Optional[float] = None


class TextElement(BaseModel):
    """页面上一个带文本的可视元素。

    source: svg_text（矢量文本）或 container（通用节点容器内的文本元素）
    group: 同一容器产出的候选选项共享同一 group，容器至多贡献一个候选
    """

    text: str = ""
    bbox: BBox
    style: TextStyle = Field(default_factory=TextStyle)
    source: Literal["svg_text", "container"] = "svg_text"
    group: Optional[int] = None


class StrokeLike(Protocol):
    """线条的最小几何接口（屏幕坐标）。"""

    def bounding_box(self) -> BBox: ...

    def total_length(self) -> Optional[float]: ...

    def point_at(self, fraction: float) -> Point: ...


class StrokePath(BaseModel):
    """页面内采样得到的线条快照。

    页面脚本只在长度比例 0 与 1 处采样端点；其余比例不可用。
    error 非空表示页面内采样已抛出异常（元素脱离文档等）。
    """

    bbox: BBox
    fill: Optional[str] = None
    length: Optional[float] = None
    start: Optional[Point] = None
    end: Optional[Point] = None
    error: Optional[str] = None

    def bounding_box(self) -> BBox:
        return self.bbox

    def total_length(self) -> Optional[float]:
        if self.error:
            raise GeometryFault(self.error)
        if self.length is None or not math.isfinite(self.length):
            return None
        return self.length

    def point_at(self, fraction: float) -> Point:
        if self.error:
            raise GeometryFault(self.error)
        if fraction == 0 and self.start is not None:
            return self.start
        if fraction == 1 and self.end is not None:
            return self.end
        raise GeometryFault(f"point at fraction {fraction} was not sampled")


class NodeCandidate(BaseModel):
    """去重与过滤后的文本片段，结果树的节点候选。创建后不可变。"""

    model_config = ConfigDict(frozen=True)

    id: int
    text: str
    bbox: BBox
    source: str = "svg_text"

    @property
    def cx(self) -> float:
        return self.bbox.center[0]

    @property
    def cy(self) -> float:
        return self.bbox.center[1]


class DirectedEdge(BaseModel):
    """父 → 子。origin 区分线条推断（stroke）与空间兜底（spatial）。"""

    model_config = ConfigDict(frozen=True)

    source: int
    target: int
    origin: Literal["stroke", "spatial"] = "stroke"

    @model_validator(mode="after")
    def _no_self_loop(self) -> "DirectedEdge":
        if self.source == self.target:
            raise ValueError("edge source and target must differ")
        return self


class ResultTree(BaseModel):
    """输出树：{name, children}，递归，无环，每个子节点只挂在一个父节点下。

    一行互不相连的标签经空间兜底后是一条很深的链，
    因此遍历与序列化都用显式栈，不走 model_dump 的递归路径。
    """

    name: str
    children: List["ResultTree"] = Field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        root: Dict[str, Any] = {"name": self.name, "children": []}
        stack: List[Tuple["ResultTree", Dict[str, Any]]] = [(self, root)]
        while stack:
            node, out = stack.pop()
            for child in node.children:
                sub: Dict[str, Any] = {"name": child.name, "children": []}
                out["children"].append(sub)
                stack.append((child, sub))
        return root

    def count(self) -> int:
        n = 0
        stack: List["ResultTree"] = [self]
        while stack:
            node = stack.pop()
            n += 1
            stack.extend(node.children)
        return n


ResultTree.model_rebuild()


class SurfaceSnapshot(BaseModel):
    """一次页面扫描的稳定快照；算法只读取快照，不读取实时页面。"""

    url: str = ""
    title: str = ""
    viewport: Optional[Dict[str, int]] = None
    has_graph_content: bool = False
    texts: List[TextElement] = Field(default_factory=list)
    strokes: List[StrokePath] = Field(default_factory=list)
