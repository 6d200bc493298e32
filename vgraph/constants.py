"""
vgraph.constants
常量定义：阈值缺省值、页面选择器、产物文件名。
"""

DEFAULT_VIEWPORT = {"width": 1280, "height": 800}
VGRAPH_SPEC_VERSION = "v0.1"

# 候选过滤
MIN_OPACITY = 0.1
GLYPH_MAX_PX = 10.0  # 高度与字号同时低于该值视为图标字形
MAX_TEXT_LEN = 300  # 长度 >= 该值视为正文，而非图中标签

# 线条过滤与端点匹配
ICON_MAX_PX = 10.0  # 宽高同时低于该值视为图标
MIN_STROKE_LENGTH = 5.0
NOISE_DISTANCE_PX = 100.0  # 端点到最近候选框距离 >= 该值视为悬空

# 空间兜底：纵向偏移惩罚系数
VERTICAL_PENALTY = 0.5

# 第一轮：矢量文本，无条件匹配
SVG_TEXT_SELECTOR = "svg text"
# 第二轮：通用节点容器，每个容器至多贡献一个候选
CONTAINER_SELECTORS = (
    "main .react-flow__node",
    "main .node",
    '[role="main"] div[style*="absolute"]',
    '[role="main"] div[style*="transform"]',
)
CONTAINER_TEXT_SELECTOR = "div, span, p"
STROKE_SELECTOR = "svg path"
GRAPH_HINT_SELECTORS = ("svg text", ".react-flow__renderer")

# 产物文件名映射
ARTIFACTS = {
    "screenshot": "screenshot.png",
    "screenshot_overlay": "screenshot_overlay.png",
    "surface": "surface.json",
    "candidates": "candidates.json",
    "edges": "edges.json",
    "tree": "tree.json",
    "meta": "meta.json",
}

# 响应信息（与扩展端 GET_DATA 回复保持一致的语义）
MSG_LOADED = "Structure loaded."
MSG_NOT_FOUND = (
    "No data found.\n\n"
    "Select some text or open the mind map view, then try again."
)
MSG_FAILED = "An error occurred while analyzing the page."
