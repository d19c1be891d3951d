"""
@PURPOSE: 编辑器识别 - 有界轮询各策略的探测选择器, 返回当前页面对应的编辑器策略
@OUTLINE:
  - class EditorStrategyResolver: 编辑器策略识别器
    - async def resolve(): 识别当前编辑器(按 URL 缓存在会话上)
@GOTCHAS:
  - 识别顺序固定: 块编辑器 → 经典文本 → 经典可视化, 相同 DOM 结果确定
  - 超时未识别抛 EditorDetectionTimeout, 不使用默认编辑器
  - 缓存的策略在复用前会重新 detect, 模式切换(可视化/文本)后重新识别
@DEPENDENCIES:
  - 内部: editor_strategies, utils.selector_race, core.errors
@RELATED: editor_strategies.py, navigator.py
"""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from ..config.settings import Settings, get_settings
from ..core.errors import EditorDetectionTimeout
from ..utils.selector_race import wait_for_any
from .editor_strategies import EditorStrategy, default_strategies
from .session_manager import Session


class EditorStrategyResolver:
    """编辑器策略识别器.

    Examples:
        >>> resolver = EditorStrategyResolver()
        >>> strategy = await resolver.resolve(session)
        >>> strategy.context
        <EditorContext.BLOCK_EDITOR: 'block_editor'>
    """

    def __init__(
        self,
        settings: Settings | None = None,
        strategies: Sequence[EditorStrategy] | None = None,
    ):
        self.settings = settings or get_settings()
        self.strategies = list(strategies) if strategies else default_strategies(self.settings)

    async def resolve(self, session: Session) -> EditorStrategy:
        """识别当前页面的编辑器.

        Args:
            session: 已导航到编辑页的会话

        Returns:
            编辑器策略

        Raises:
            EditorDetectionTimeout: 超时内未识别到任何编辑器
        """
        page = session.page
        url = page.url

        cached = session.editor_cache.get(url)
        if cached is not None:
            if await cached.detect(page):
                return cached
            logger.debug(f"编辑器模式已变化, 重新识别: {url}")
            del session.editor_cache[url]

        timing = self.settings.timing
        match = await wait_for_any(
            page,
            [strategy.probe_selector for strategy in self.strategies],
            timing.editor_detection_timeout_ms,
            interval_ms=timing.poll_interval_ms,
            backoff_factor=timing.backoff_factor,
            max_interval_ms=timing.max_poll_interval_ms,
            max_attempts=timing.max_attempts,
            context_name="编辑器识别",
        )
        if match is None:
            raise EditorDetectionTimeout(
                f"未能在 {timing.editor_detection_timeout_ms}ms 内识别编辑器: {url}",
                url=url,
            )

        strategy = self.strategies[match.index]
        session.editor_cache[url] = strategy
        logger.info(f"识别到编辑器: {strategy.context.value}")
        return strategy
