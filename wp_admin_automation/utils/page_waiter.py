"""
@PURPOSE: 后台页面的有界等待 - 网络空闲, DOM 稳定(含加载动画), 可见后点击/填充
@OUTLINE:
  - @dataclass WaitStrategy: 等待参数(可由 TimingConfig 构造)
  - class PageWaiter: 绑定单个页面的等待工具
    - async def wait_for_network_idle(): 等待 networkidle, 超时返回 False
    - async def wait_for_dom_stable(): 连续采样 DOM 摘要直到稳定
    - async def safe_click(): 等待可见后点击
    - async def safe_fill(): 等待可见后清空并输入
@GOTCHAS:
  - 后台心跳请求(wp-admin/admin-ajax.php heartbeat)会让 networkidle 迟迟不触发, 超时只记录 debug
  - DOM 摘要 = [活动加载动画数, 节点数]; 有 .spinner.is-active 或 .components-spinner 时视为未稳定
  - 所有等待都有上限, 超时返回 False 而不抛异常, 由调用方决定是否算失败
@DEPENDENCIES:
  - 外部: playwright, loguru
  - 内部: config.settings.TimingConfig
@RELATED: selector_race.py, browser/navigator.py
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from loguru import logger
from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

if TYPE_CHECKING:
    from ..config.settings import TimingConfig


# 返回 [活动加载动画数, 节点数]
DOM_SNAPSHOT_SCRIPT = """
() => {
    const body = document.body;
    if (!body) {
        return [1, 0];
    }
    const busy = body.querySelectorAll('.spinner.is-active, .components-spinner').length;
    return [busy, body.getElementsByTagName('*').length];
}
"""


@dataclass(slots=True)
class WaitStrategy:
    """等待参数, 单位均为毫秒."""

    idle_timeout_ms: int = 3000
    settle_timeout_ms: int = 2000
    element_timeout_ms: int = 3000
    stable_samples: int = 2
    sample_interval_ms: int = 150
    quick_interval_ms: int = 50

    @classmethod
    def from_timing(cls, timing: TimingConfig) -> WaitStrategy:
        return cls(
            element_timeout_ms=timing.element_timeout_ms,
            quick_interval_ms=timing.poll_interval_ms,
        )


class PageWaiter:
    """绑定单个页面的等待工具.

    Examples:
        >>> waiter = PageWaiter(page, WaitStrategy.from_timing(settings.timing))
        >>> await waiter.safe_click(page.locator("#submit"), name="保存按钮")
        True
    """

    def __init__(self, page: Page, strategy: WaitStrategy | None = None):
        self.page = page
        self.strategy = strategy or WaitStrategy()

    async def wait_for_network_idle(self, timeout_ms: int | None = None) -> bool:
        """等待网络空闲, 超时返回 False."""

        try:
            await self.page.wait_for_load_state(
                "networkidle", timeout=timeout_ms or self.strategy.idle_timeout_ms
            )
        except PlaywrightTimeoutError:
            logger.debug("networkidle 未在时限内出现(可能是心跳请求), 继续")
            return False
        return True

    async def wait_for_dom_stable(self, timeout_ms: int | None = None) -> bool:
        """等待页面结构不再变化且没有活动的加载动画.

        先做一次快速比较(间隔 quick_interval_ms 的两次采样), 不通过时按
        sample_interval_ms 轮询, 连续 stable_samples 次相同即视为稳定.

        Args:
            timeout_ms: 总时限, 默认 settle_timeout_ms

        Returns:
            True 表示已稳定, False 表示到达时限
        """
        strategy = self.strategy
        previous = await self._snapshot()
        await asyncio.sleep(strategy.quick_interval_ms / 1000)
        current = await self._snapshot()
        if current is not None and current == previous and current[0] == 0:
            return True

        deadline = time.monotonic() + (timeout_ms or strategy.settle_timeout_ms) / 1000
        same_count = 0
        while time.monotonic() < deadline:
            await asyncio.sleep(strategy.sample_interval_ms / 1000)
            previous, current = current, await self._snapshot()
            if current is None or current != previous or current[0] > 0:
                same_count = 0
                continue
            same_count += 1
            if same_count >= strategy.stable_samples:
                return True

        logger.debug(f"页面未在时限内稳定: {self.page.url}")
        return False

    async def safe_click(
        self,
        locator: Locator | None,
        *,
        timeout_ms: int | None = None,
        wait_after: bool = True,
        name: str | None = None,
    ) -> bool:
        """等待元素可见后点击.

        Args:
            locator: 目标定位器(取第一个匹配)
            timeout_ms: 每一步的时限
            wait_after: 点击后是否等待 DOM 稳定
            name: 日志中的元素名称

        Returns:
            点击是否完成
        """
        if locator is None:
            return False

        target = locator.first
        timeout = timeout_ms or self.strategy.element_timeout_ms
        try:
            await target.wait_for(state="visible", timeout=timeout)
            try:
                await target.scroll_into_view_if_needed(timeout=timeout)
            except PlaywrightTimeoutError:
                logger.debug(f"滚动到 {name or '元素'} 超时, 直接点击")
            await target.click(timeout=timeout)
        except PlaywrightTimeoutError:
            logger.debug(f"点击 {name or '元素'} 超时")
            return False

        if wait_after:
            await self.wait_for_dom_stable()
        return True

    async def safe_fill(
        self,
        locator: Locator | None,
        value: str,
        *,
        timeout_ms: int | None = None,
        name: str | None = None,
    ) -> bool:
        """等待元素可见后清空并输入 value."""

        if locator is None:
            return False

        target = locator.first
        timeout = timeout_ms or self.strategy.element_timeout_ms
        try:
            await target.wait_for(state="visible", timeout=timeout)
            await target.fill(value, timeout=timeout)
        except PlaywrightTimeoutError:
            logger.debug(f"填写 {name or '元素'} 超时")
            return False
        return True

    async def _snapshot(self) -> list[int] | None:
        # 页面跳转中 evaluate 会因执行上下文销毁而失败
        try:
            return await self.page.evaluate(DOM_SNAPSHOT_SCRIPT)
        except Exception as exc:
            logger.debug(f"DOM 摘要采集失败: {exc}")
            return None
