"""
vgraph | Python + Playwright 页面结构重建脚本

接口：
    scrape(url: str, out_root: str = "workspace/data", timeout_ms: int = 45000, ...) -> str | dict

产物目录：workspace/data/<domain_sanitized>/<YYYYMMDDHHMMSS>/
    - screenshot.png          （视口截图，CSS 像素，与快照坐标系一致）
    - surface.json            （页面快照：文本元素 + 线条）
    - candidates.json         （去重过滤后的节点候选）
    - edges.json              （线条推断 + 空间兜底的有向边）
    - tree.json               （{success, data, message}，data 为结果树）
    - screenshot_overlay.png  （候选框与边的调试叠图）
    - meta.json               （元信息：URL/viewport/状态/阈值/统计等）

说明：
    - 页面只在一次 page.evaluate 中被读取，之后的重建只使用快照；
    - 需要浏览器内核：`python -m playwright install chromium`。
"""

from __future__ import annotations

import argparse
import os
import time
from typing import Any, Dict, Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from .artifacts import write_reconstruction
from .config import ReconstructConfig, get_config
from .constants import ARTIFACTS, DEFAULT_VIEWPORT
from .errors import ScrapeError
from .meta_utils import update_meta_artifacts, write_meta
from .pipeline import reconstruct_from_snapshot
from .schema import SurfaceSnapshot
from .surface import dump_surface, has_graph_content, snapshot_surface
from .utils import (
    ensure_unique_dir,
    iter_json,
    load_json_config,
    make_logger,
    parse_viewport,
    sanitize_domain,
    timestamp_yyyymmddhhmmss,
    validate_url,
    write_json,
)


def _context_args(
    devices: Dict[str, Dict[str, Any]],
    device: Optional[str],
    viewport: Optional[tuple],
    dpr: Optional[float],
    warnings: list,
) -> Dict[str, Any]:
    """BrowserContext 参数。

    快照坐标与叠图都以 CSS 像素为准（截图用 scale="css"），
    因此 dpr 只影响渲染清晰度，不影响候选框与线条端点的坐标。
    """
    args: Dict[str, Any] = {}
    if device:
        descriptor = devices.get(device)
        if descriptor:
            args.update(descriptor)
        else:
            warnings.append({"code": "DEVICE_NOT_FOUND", "stage": "launch", "device": device})
    if viewport:
        args["viewport"] = {"width": int(viewport[0]), "height": int(viewport[1])}
    args.setdefault("viewport", dict(DEFAULT_VIEWPORT))
    if dpr is not None:
        args["device_scale_factor"] = float(dpr)
    return args


def _scan_page(page, out_dir: str, warnings: list, log) -> SurfaceSnapshot:
    """探测图内容 → 截图 → 快照。只有快照失败是致命错误。"""
    try:
        if not has_graph_content(page):
            # 没有 svg text / React Flow 渲染层时只剩容器扫描可用，结果多半为空
            warnings.append({"code": "NO_GRAPH_CONTENT", "stage": "snapshot"})
            log("no svg text or react-flow renderer found; scanning containers only")
    except PlaywrightError as e:
        raise ScrapeError("SNAPSHOT_ERROR", "snapshot", str(e), out_dir, e) from e
    try:
        page.screenshot(path=os.path.join(out_dir, ARTIFACTS["screenshot"]), scale="css")
    except PlaywrightError as e:
        warnings.append({"code": "SCREENSHOT_ERROR", "stage": "snapshot", "error": str(e)})
    try:
        return snapshot_surface(page, log=log)
    except PlaywrightError as e:
        raise ScrapeError("SNAPSHOT_ERROR", "snapshot", str(e), out_dir, e) from e


def _capture(
    url: str,
    out_dir: str,
    *,
    timeout_ms: int,
    nav_wait_until: str,
    after_nav_wait_ms: int,
    ready_selector: Optional[str],
    ready_selector_timeout_ms: int,
    device: Optional[str],
    viewport: Optional[tuple],
    dpr: Optional[float],
    headless: bool,
    warnings: list,
    log,
) -> SurfaceSnapshot:
    """启动浏览器、导航、截图并取得快照；致命错误转换为 ScrapeError。"""
    with sync_playwright() as pw:
        context_args = _context_args(pw.devices, device, viewport, dpr, warnings)
        try:
            browser = pw.chromium.launch(headless=headless)
        except PlaywrightError as e:
            raise ScrapeError("LAUNCH_ERROR", "launch", str(e), out_dir, e) from e
        try:
            context = browser.new_context(**context_args)
            page = context.new_page()
            wait_until = nav_wait_until if nav_wait_until in ("domcontentloaded", "load", "networkidle", "commit") else "domcontentloaded"
            try:
                page.goto(url, timeout=timeout_ms, wait_until=wait_until)
            except PlaywrightTimeoutError as e:
                raise ScrapeError("NAV_TIMEOUT", "navigate", str(e), out_dir, e) from e
            except PlaywrightError as e:
                raise ScrapeError("NAV_ERROR", "navigate", str(e), out_dir, e) from e
            if ready_selector:
                try:
                    page.wait_for_selector(ready_selector, timeout=ready_selector_timeout_ms)
                except PlaywrightTimeoutError:
                    warnings.append({"code": "READY_SELECTOR_TIMEOUT", "stage": "navigate", "selector": ready_selector})
            if after_nav_wait_ms > 0:
                page.wait_for_timeout(after_nav_wait_ms)
            log("page ready")
            return _scan_page(page, out_dir, warnings, log)
        finally:
            try:
                browser.close()
            except PlaywrightError:
                pass


def scrape(
    url: str,
    out_root: str = "workspace/data",
    timeout_ms: int = 45000,
    *,
    raise_on_error: bool = False,
    nav_wait_until: str = "domcontentloaded",
    after_nav_wait_ms: int = 2000,
    ready_selector: str | None = None,
    ready_selector_timeout_ms: int = 10000,
    device: str | None = None,
    viewport: str | tuple[int, int] | None = None,
    dpr: float | None = None,
    headless: bool = True,
    return_info: bool = False,
    overlay: bool = True,
    label: bool = False,
    config: ReconstructConfig | None = None,
    verbose: bool = True,
) -> str | Dict[str, Any]:
    """
    打开页面、取快照、重建结构树，产物写入 <out_root>/<domain>/<timestamp>/。

    返回产物目录；return_info=True 时返回包含状态与结果树的 dict。
    """
    log = make_logger("vgraph", verbose)
    started_epoch = time.time()
    ts = timestamp_yyyymmddhhmmss()
    domain_key = sanitize_domain(url)
    out_dir = ensure_unique_dir(os.path.join(out_root, domain_key, ts))
    log(f"out_dir={out_dir}")
    cfg = config or ReconstructConfig()
    warnings: list[dict[str, Any]] = []
    v_tuple = parse_viewport(viewport)

    snapshot: SurfaceSnapshot | None = None
    failure: ScrapeError | None = None
    try:
        validate_url(url)
        snapshot = _capture(
            url,
            out_dir,
            timeout_ms=timeout_ms,
            nav_wait_until=nav_wait_until,
            after_nav_wait_ms=after_nav_wait_ms,
            ready_selector=ready_selector,
            ready_selector_timeout_ms=ready_selector_timeout_ms,
            device=device,
            viewport=v_tuple,
            dpr=dpr,
            headless=headless,
            warnings=warnings,
            log=log,
        )
    except ScrapeError as se:
        failure = ScrapeError(se.code, se.stage, se.message, out_dir, se.original)
    except PlaywrightError as e:
        failure = ScrapeError("BROWSER_ERROR", "launch", str(e), out_dir, e)

    if failure is not None:
        log(f"failed: {failure}")
        write_meta(
            out_dir,
            url=url,
            title="",
            domain_key=domain_key,
            ts=ts,
            viewport={"width": v_tuple[0], "height": v_tuple[1]} if v_tuple else None,
            status="failed",
            error_code=failure.code,
            error_stage=failure.stage,
            error=failure.message,
            warnings=warnings,
            config=cfg.to_dict(),
            started_epoch=started_epoch,
        )
        if raise_on_error:
            raise failure
        if return_info:
            return {"url": url, "out_dir": out_dir, "status": "failed", "error_code": failure.code, "error_stage": failure.stage, "artifacts": ARTIFACTS}
        return out_dir

    try:
        write_json(os.path.join(out_dir, ARTIFACTS["surface"]), dump_surface(snapshot))
    except OSError as e:
        warnings.append({"code": "WRITE_ERROR", "stage": "snapshot", "file": ARTIFACTS["surface"], "error": str(e)})

    rec = reconstruct_from_snapshot(snapshot, cfg, log=log)
    response = write_reconstruction(out_dir, rec, warnings=warnings, overlay=overlay, label=label)
    status = "ok" if response["success"] else "empty"
    write_meta(
        out_dir,
        url=url,
        title=snapshot.title,
        domain_key=domain_key,
        ts=ts,
        viewport=snapshot.viewport,
        status=status,
        warnings=warnings,
        config=cfg.to_dict(),
        summary=rec.summary(),
        started_epoch=started_epoch,
    )
    update_meta_artifacts(out_dir, warnings=warnings)
    log(f"status={status} {rec.summary()}")

    if return_info:
        return {
            "url": url,
            "domain_sanitized": domain_key,
            "timestamp": ts,
            "out_dir": out_dir,
            "status": status,
            "summary": rec.summary(),
            "response": response,
            "artifacts": ARTIFACTS,
        }
    return out_dir


def _cli() -> int:
    p = argparse.ArgumentParser(description="打开页面并从可视渲染（文本 + 线条）重建结构树")
    p.add_argument("--url", required=True, help="目标页面 URL（http/https/file）")
    p.add_argument("--out-root", default="workspace/data", help="产物根目录（默认 workspace/data）")
    p.add_argument("--timeout-ms", type=int, default=45000, help="导航超时（毫秒）")
    p.add_argument("--config", type=str, default=None, help="JSON 配置文件（阈值与运行参数）")
    p.add_argument("--nav-wait-until", type=str, default="domcontentloaded", choices=["domcontentloaded", "load", "networkidle", "commit"])
    p.add_argument("--after-nav-wait-ms", type=int, default=2000, help="导航完成后额外等待（毫秒）")
    p.add_argument("--ready-selector", type=str, default=None, help="可选：等待该选择器出现后再取快照")
    p.add_argument("--device", type=str, default=None, help="Playwright 内置设备名（如 'iPhone 12 Pro'）")
    p.add_argument("--viewport", type=str, default=None, help="自定义视口 'WIDTHxHEIGHT'（如 1280x800）")
    p.add_argument("--dpr", type=float, default=None, help="设备像素比")
    p.add_argument("--no-headless", dest="headless", action="store_false", help="有头模式运行浏览器")
    p.set_defaults(headless=True)
    p.add_argument("--no-overlay", dest="overlay", action="store_false", help="不生成调试叠图")
    p.set_defaults(overlay=True)
    p.add_argument("--label", action="store_true", help="叠图中绘制候选 id")
    p.add_argument("--noise-distance-px", type=float, default=None, help="端点悬空阈值（像素）")
    p.add_argument("--vertical-penalty", type=float, default=None, help="空间兜底的纵向惩罚系数")
    p.add_argument("--return-info", action="store_true", help="输出 JSON 信息而不是仅输出目录")
    p.add_argument("--raise-on-error", action="store_true", help="失败时抛出异常")
    p.add_argument("--verbose", action="store_true", help="输出过程日志（默认开启）")
    p.add_argument("--no-verbose", dest="verbose", action="store_false", help="关闭过程日志")
    p.set_defaults(verbose=True)
    args = p.parse_args()

    # 阈值：环境变量 → JSON 配置 → CLI
    file_cfg = load_json_config(args.config)
    cfg = get_config(file_cfg).with_overrides({
        "noise_distance_px": args.noise_distance_px,
        "vertical_penalty": args.vertical_penalty,
    })

    def cfg_get(key: str, default: Any) -> Any:
        return file_cfg.get(key, default) if key in file_cfg else default

    result = scrape(
        args.url,
        out_root=cfg_get("out_root", args.out_root),
        timeout_ms=int(cfg_get("timeout_ms", args.timeout_ms)),
        raise_on_error=args.raise_on_error,
        nav_wait_until=cfg_get("nav_wait_until", args.nav_wait_until),
        after_nav_wait_ms=int(cfg_get("after_nav_wait_ms", args.after_nav_wait_ms)),
        ready_selector=cfg_get("ready_selector", args.ready_selector),
        device=cfg_get("device", args.device),
        viewport=cfg_get("viewport", args.viewport),
        dpr=cfg_get("dpr", args.dpr),
        headless=bool(cfg_get("headless", args.headless)),
        return_info=args.return_info,
        overlay=bool(cfg_get("overlay", args.overlay)),
        label=args.label,
        config=cfg,
        verbose=bool(cfg_get("verbose", args.verbose)),
    )
    if args.return_info:
        print("".join(iter_json(result)))
    else:
        print(result)
    return 0


if __name__ == "__main__":
    raise SystemExit(_cli())
