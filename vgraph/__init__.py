"""vgraph package initializer.

从页面的“可视渲染”（文本片段 + 矢量线条）重建一棵有根树。

公开入口：参见 pipeline.reconstruct_tree / scrape.scrape。
"""

__all__ = [
    "schema",
    "classify",
    "candidates",
    "edges",
    "graph",
    "linking",
    "assemble",
    "pipeline",
    "surface",
    "overlay",
    "config",
    "errors",
    "scrape",
    "rebuild",
]
