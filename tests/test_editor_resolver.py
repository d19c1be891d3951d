"""
@PURPOSE: 编辑器识别单元测试 - 识别顺序确定, 超时失败, 按 URL 缓存与失效
@OUTLINE:
  - TestResolve: 测试 EditorStrategyResolver.resolve()
"""

import time

import pytest
from wp_admin_automation.browser.editor_resolver import EditorStrategyResolver
from wp_admin_automation.browser.editor_strategies import EditorContext, default_strategies
from wp_admin_automation.core.errors import EditorDetectionTimeout

EDIT_URL = "https://wp.test/wp-admin/post-new.php"


@pytest.fixture
def resolver(settings, field_engine, selectors):
    return EditorStrategyResolver(settings, default_strategies(settings, field_engine, selectors))


@pytest.fixture
async def session(session_manager, mock_page):
    session = session_manager.new_session()
    await session_manager.launch(session)
    mock_page.url = EDIT_URL
    yield session
    await session_manager.close(session)


class TestResolve:
    """测试编辑器识别."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "probe, expected",
        [
            ("body.block-editor-page", EditorContext.BLOCK_EDITOR),
            ("#wp-content-wrap.html-active", EditorContext.CLASSIC_TEXT),
            ("#wp-content-wrap.tmce-active", EditorContext.CLASSIC_VISUAL),
        ],
    )
    async def test_detects_each_editor(self, resolver, session, mock_page, probe, expected):
        """测试三种编辑器分别被识别."""
        mock_page.dom.add(probe, tag="div", type=None)

        strategy = await resolver.resolve(session)

        assert strategy.context is expected

    @pytest.mark.asyncio
    async def test_detection_is_deterministic(self, resolver, session, mock_page):
        """测试同一 DOM 同时匹配多个探测器时结果固定为优先级最高者."""
        mock_page.dom.add("#wp-content-wrap.tmce-active", tag="div", type=None)
        mock_page.dom.add(".block-editor-writing-flow", tag="div", type=None)

        results = set()
        for _ in range(5):
            session.editor_cache.clear()
            results.add((await resolver.resolve(session)).context)

        assert results == {EditorContext.BLOCK_EDITOR}

    @pytest.mark.asyncio
    async def test_no_editor_raises_timeout(self, resolver, session):
        """测试没有编辑器时在超时内抛出 EditorDetectionTimeout."""
        started = time.monotonic()

        with pytest.raises(EditorDetectionTimeout) as exc_info:
            await resolver.resolve(session)

        elapsed_ms = (time.monotonic() - started) * 1000
        assert elapsed_ms < resolver.settings.timing.editor_detection_timeout_ms * 3
        assert exc_info.value.is_timeout
        assert EDIT_URL not in session.editor_cache

    @pytest.mark.asyncio
    async def test_result_is_cached_per_url(self, resolver, session, mock_page):
        """测试识别结果按 URL 缓存并复用."""
        mock_page.dom.add("body.block-editor-page", tag="body", type=None)

        first = await resolver.resolve(session)
        second = await resolver.resolve(session)

        assert first is second
        assert session.editor_cache[EDIT_URL] is first

    @pytest.mark.asyncio
    async def test_mode_switch_invalidates_cache(self, resolver, session, mock_page):
        """测试经典编辑器切换模式后重新识别."""
        mock_page.dom.add("#wp-content-wrap.tmce-active", tag="div", type=None)
        assert (await resolver.resolve(session)).context is EditorContext.CLASSIC_VISUAL

        mock_page.dom.remove("#wp-content-wrap.tmce-active")
        mock_page.dom.add("#wp-content-wrap.html-active", tag="div", type=None)

        assert (await resolver.resolve(session)).context is EditorContext.CLASSIC_TEXT
