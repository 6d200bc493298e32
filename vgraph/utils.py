"""
vgraph.utils
通用工具函数：路径/时间/JSON/URL 校验/视口解析/日志。
"""

from __future__ import annotations

import json
import os
import re
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, Optional, Tuple, Union
from urllib.parse import urlparse

from .errors import ScrapeError

Logger = Callable[[str], None]


def make_logger(tag: str, verbose: bool = True) -> Logger:
    """返回带前缀的打印函数；verbose=False 时为空操作。"""
    def _log(msg: str) -> None:
        if verbose:
            print(f"[{tag}] {msg}")
    return _log


def noop_log(msg: str) -> None:
    return None


def sanitize_domain(url: str) -> str:
    """将 URL 的域名清洗为文件系统安全的 key（如 notebooklm_google_com）。"""
    netloc = urlparse(url).netloc
    if ":" in netloc:
        netloc = netloc.split(":", 1)[0]
    if netloc.lower().startswith("www."):
        netloc = netloc[4:]
    key = re.sub(r"[^0-9A-Za-z]", "_", netloc)
    key = re.sub(r"_+", "_", key).strip("_")
    return key or "unknown"


def timestamp_yyyymmddhhmmss() -> str:
    """返回当前时间戳，格式 YYYYMMDDHHMMSS。"""
    return datetime.now().strftime("%Y%m%d%H%M%S")


def ensure_unique_dir(path: str) -> str:
    """确保目录唯一存在，如已存在则追加 -1/-2 后缀。"""
    if not os.path.exists(path):
        os.makedirs(path, exist_ok=True)
        return path
    i = 1
    while True:
        alt = f"{path}-{i}"
        if not os.path.exists(alt):
            os.makedirs(alt, exist_ok=True)
            return alt
        i += 1


_END = object()


def _open_json(value: Any, depth: int) -> Tuple[str, Optional[list]]:
    if isinstance(value, dict):
        if not value:
            return "{}", None
        return "{", [iter(value.items()), True, depth + 1, True]
    if isinstance(value, (list, tuple)):
        if not value:
            return "[]", None
        return "[", [iter(value), False, depth + 1, True]
    return json.dumps(value, ensure_ascii=False), None


def iter_json(obj: Any, indent: int = 2) -> Iterator[str]:
    """逐段输出 JSON 文本，格式与 json.dumps(obj, ensure_ascii=False, indent=indent) 相同。

    用显式栈代替递归：结果树可能是上千层的链，标准编码器会触发递归上限。
    """
    text, frame = _open_json(obj, 0)
    yield text
    stack = [frame] if frame else []
    while stack:
        frame = stack[-1]
        it, is_dict, depth, first = frame
        item = next(it, _END)
        if item is _END:
            stack.pop()
            yield "\n" + " " * (indent * (depth - 1)) + ("}" if is_dict else "]")
            continue
        frame[3] = False
        yield ("\n" if first else ",\n") + " " * (indent * depth)
        if is_dict:
            key, value = item
            yield json.dumps(str(key), ensure_ascii=False) + ": "
        else:
            value = item
        text, child = _open_json(value, depth)
        yield text
        if child:
            stack.append(child)


def write_json(path: str, obj: Any) -> None:
    """以 UTF-8 与缩进写入 JSON 文件（不受嵌套深度限制）。"""
    with open(path, "w", encoding="utf-8") as f:
        f.writelines(iter_json(obj))


def read_json(path: str) -> Dict[str, Any]:
    """读取 JSON 对象；文件缺失或不是对象时返回空 dict。"""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def load_json_config(path: Optional[str]) -> Dict[str, Any]:
    """加载 JSON 配置文件（若不存在或解析失败则返回空 dict）。"""
    if not path or not os.path.exists(path):
        return {}
    return read_json(path)


def validate_url(url: str) -> None:
    """校验 URL（允许 http/https/file），非法则抛 ScrapeError。"""
    parsed = urlparse(url)
    if parsed.scheme == "file" and parsed.path:
        return
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ScrapeError(
            code="INVALID_URL",
            stage="init",
            message=f"unsupported URL: {url}",
        )


def parse_viewport(viewport: Union[str, Tuple[int, int], None]) -> Optional[Tuple[int, int]]:
    """解析视口参数，支持 "WxH" 或 (w,h)。失败返回 None。"""
    if viewport is None:
        return None
    if isinstance(viewport, (tuple, list)) and len(viewport) == 2:
        try:
            return int(viewport[0]), int(viewport[1])
        except (TypeError, ValueError):
            return None
    if isinstance(viewport, str) and "x" in viewport.lower():
        try:
            w, h = viewport.lower().split("x", 1)
            return int(w), int(h)
        except ValueError:
            return None
    return None
