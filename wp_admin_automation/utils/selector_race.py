"""
@PURPOSE: 多选择器有界等待工具 - 在超时内轮询多个选择器, 返回第一个出现的匹配
@OUTLINE:
  - class SelectorTimeouts: 默认超时(可由环境变量覆盖)
  - @dataclass SelectorMatch: 命中结果(索引, 选择器, 定位器)
  - async def wait_for_any(): 有界轮询多个选择器(登录/导航/编辑器识别/字段定位共用)
  - async def try_selectors_race(): 并行竞速尝试多个选择器(单轮, 不等待)
@GOTCHAS:
  - wait_for_any 每轮按列表顺序检查, 同一轮多个命中时返回索引最小者, 结果确定
  - 轮询次数与总时长都有上限, 永不无限等待
  - 单个选择器语法错误或页面跳转中的异常只记录 debug, 不中断轮询
@DEPENDENCIES:
  - 外部: playwright.async_api, loguru
"""

from __future__ import annotations

import asyncio
import os
import time
from collections.abc import Sequence
from dataclasses import dataclass

from loguru import logger
from playwright.async_api import Frame, Locator, Page


@dataclass(frozen=True)
class SelectorTimeouts:
    """统一的选择器超时配置.

    可通过环境变量覆盖：
    - SELECTOR_TIMEOUT_NORMAL: 默认超时
    """

    NORMAL: int = int(os.environ.get("SELECTOR_TIMEOUT_NORMAL", "3000"))


# 全局超时配置实例
TIMEOUTS = SelectorTimeouts()


@dataclass(frozen=True, slots=True)
class SelectorMatch:
    """选择器命中结果."""

    index: int
    selector: str
    locator: Locator


async def _probe(scope: Page | Frame, selector: str, visible: bool) -> Locator | None:
    try:
        locator = scope.locator(selector)
        if await locator.count() == 0:
            return None
        first = locator.first
        if visible and not await first.is_visible():
            return None
        return first
    except Exception as exc:
        logger.debug(f"选择器探测异常 selector={selector} err={exc}")
        return None


async def wait_for_any(
    scope: Page | Frame,
    selectors: Sequence[str],
    timeout_ms: int = TIMEOUTS.NORMAL,
    *,
    interval_ms: int = 100,
    backoff_factor: float = 1.5,
    max_interval_ms: int = 1000,
    max_attempts: int | None = None,
    visible: bool = False,
    context_name: str = "",
) -> SelectorMatch | None:
    """在超时内等待任一选择器出现.

    Args:
        scope: Page 或 Frame
        selectors: 选择器列表(顺序即优先级)
        timeout_ms: 总超时(毫秒)
        interval_ms: 初始轮询间隔(毫秒)
        backoff_factor: 轮询间隔退避因子
        max_interval_ms: 轮询间隔上限(毫秒)
        max_attempts: 最大轮询轮数, None 表示仅受超时约束
        visible: 是否要求元素可见
        context_name: 业务上下文名称(日志用)

    Returns:
        第一个命中的 SelectorMatch, 超时返回 None

    Examples:
        >>> match = await wait_for_any(page, ["#login_error", "#wpadminbar"], 5000)
        >>> match.index if match else None
        1
    """
    if not selectors:
        return None

    deadline = time.monotonic() + timeout_ms / 1000
    delay_ms = float(interval_ms)
    attempt = 0

    while True:
        attempt += 1
        for index, selector in enumerate(selectors):
            locator = await _probe(scope, selector, visible)
            if locator is not None:
                logger.debug(
                    "[等待] {} 命中 {} (索引 {}, 第 {} 轮)",
                    context_name or "选择器",
                    selector,
                    index,
                    attempt,
                )
                return SelectorMatch(index=index, selector=selector, locator=locator)

        remaining = deadline - time.monotonic()
        if remaining <= 0 or (max_attempts is not None and attempt >= max_attempts):
            break

        await asyncio.sleep(min(delay_ms / 1000, remaining))
        delay_ms = min(delay_ms * backoff_factor, float(max_interval_ms))

    logger.debug(
        "[等待] {} 全部 {} 个选择器在 {}ms/{} 轮内均未出现",
        context_name or "选择器",
        len(selectors),
        timeout_ms,
        attempt,
    )
    return None


async def try_selectors_race(
    scope: Page | Frame,
    selectors: Sequence[str],
    *,
    visible: bool = True,
    context_name: str = "",
) -> Locator | None:
    """并行竞速尝试多个选择器，返回第一个成功的(单轮, 不等待).

    Args:
        scope: Page 或 Frame
        selectors: 选择器列表
        visible: 是否要求元素可见
        context_name: 业务上下文名称

    Returns:
        第一个成功匹配的 Locator，如果都失败则返回 None.
    """
    if not selectors:
        return None

    tasks = [
        asyncio.create_task(_probe(scope, sel, visible), name=f"selector_{idx}")
        for idx, sel in enumerate(selectors)
    ]

    result: Locator | None = None
    try:
        # 使用 as_completed 竞速，第一个成功的立即返回
        for coro in asyncio.as_completed(tasks):
            locator = await coro
            if locator is not None:
                result = locator
                break
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

    if result is None:
        logger.debug(
            "[竞速] {} 全部 {} 个选择器均失败",
            context_name or "选择器",
            len(selectors),
        )
    return result
