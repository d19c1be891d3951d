"""
@PURPOSE: 会话生命周期单元测试 - 启动幂等, 关闭释放全部资源, 启动失败的清理与异常链
@OUTLINE:
  - TestSessionLaunch: 测试 SessionManager.launch()
  - TestSessionClose: 测试 SessionManager.close()
  - TestSessionScope: 测试 session_scope() 上下文管理器
"""

from unittest.mock import AsyncMock

import pytest
from tests.mocks import MockConsoleMessage
from wp_admin_automation.browser.session_manager import SessionState
from wp_admin_automation.core.errors import LaunchFailure


class TestSessionLaunch:
    """测试浏览器启动."""

    def test_new_session_uses_settings(self, session_manager):
        """测试新会话携带站点与凭据配置."""
        session = session_manager.new_session()

        assert session.base_url == "https://wp.test"
        assert session.admin_url == "https://wp.test/wp-admin"
        assert session.username == "admin"
        assert session.state is SessionState.CLOSED
        assert not session.is_open
        assert "secret" not in repr(session)

    @pytest.mark.asyncio
    async def test_launch_opens_page(self, session_manager, mock_playwright, mock_page):
        """测试启动后页面可用且配置了默认超时."""
        session = session_manager.new_session()

        page = await session_manager.launch(session)

        assert page is mock_page
        assert session.state is SessionState.OPEN
        assert mock_page.default_timeout == session_manager.settings.browser.timeout
        launch_kwargs = mock_playwright.chromium.launches[0]
        assert launch_kwargs["headless"] is True
        assert "--no-sandbox" in launch_kwargs["args"]

    @pytest.mark.asyncio
    async def test_launch_is_idempotent(self, session_manager, mock_playwright):
        """测试重复启动不会创建第二个浏览器."""
        session = session_manager.new_session()

        first = await session_manager.launch(session)
        second = await session_manager.launch(session)

        assert first is second
        assert len(mock_playwright.chromium.launches) == 1

    @pytest.mark.asyncio
    async def test_launch_failure_is_chained_and_cleans_up(self, session_manager, mock_playwright):
        """测试启动失败抛出 LaunchFailure(保留原始异常)并释放已创建的资源."""
        mock_playwright.chromium.launch_error = RuntimeError("Executable doesn't exist")
        session = session_manager.new_session()

        with pytest.raises(LaunchFailure) as exc_info:
            await session_manager.launch(session)

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert exc_info.value.kind.value == "launch_failure"
        assert mock_playwright.stop_count == 1
        assert session.playwright is None
        assert session.state is SessionState.CLOSED

    @pytest.mark.asyncio
    async def test_unknown_browser_type_fails_launch(self, session_manager, mock_playwright):
        """测试不支持的浏览器类型转为 LaunchFailure."""
        session_manager.settings.browser.browser_type = "netscape"
        session = session_manager.new_session()

        with pytest.raises(LaunchFailure):
            await session_manager.launch(session)

        assert mock_playwright.stop_count == 1

    @pytest.mark.asyncio
    async def test_console_messages_are_buffered(self, session_manager, mock_page):
        """测试控制台消息被记录到会话."""
        session = session_manager.new_session()
        await session_manager.launch(session)

        mock_page.emit("console", MockConsoleMessage("error", "Uncaught TypeError"))
        mock_page.emit("pageerror", "ReferenceError: jQuery is not defined")

        assert list(session.console_messages) == [
            "[error] Uncaught TypeError",
            "[pageerror] ReferenceError: jQuery is not defined",
        ]


class TestSessionClose:
    """测试会话关闭."""

    @pytest.mark.asyncio
    async def test_close_releases_all_resources(self, session_manager, mock_playwright, mock_page):
        """测试关闭后所有句柄被释放."""
        session = session_manager.new_session()
        await session_manager.launch(session)
        session.authenticated = True
        session.editor_cache["x"] = object()
        browser = mock_playwright.browser
        context = browser.contexts[0]

        await session_manager.close(session)

        assert mock_page.close_count == 1
        assert context.close_count == 1
        assert browser.close_count == 1
        assert mock_playwright.stop_count == 1
        assert session.page is None and session.browser is None
        assert session.authenticated is False
        assert session.editor_cache == {}
        assert session.state is SessionState.CLOSED

    @pytest.mark.asyncio
    async def test_close_twice_is_noop(self, session_manager, mock_playwright):
        """测试重复关闭不会再次释放资源."""
        session = session_manager.new_session()
        await session_manager.launch(session)
        browser = mock_playwright.browser

        await session_manager.close(session)
        await session_manager.close(session)

        assert browser.close_count == 1
        assert mock_playwright.stop_count == 1

    @pytest.mark.asyncio
    async def test_close_continues_after_page_close_failure(self, session_manager, mock_playwright, mock_page):
        """测试 page.close() 失败后继续清理其他资源且不抛异常."""
        session = session_manager.new_session()
        await session_manager.launch(session)
        mock_page.close = AsyncMock(side_effect=Exception("模拟 page 关闭错误"))
        browser = mock_playwright.browser

        await session_manager.close(session)

        assert browser.close_count == 1
        assert mock_playwright.stop_count == 1
        assert session.page is None
        assert session.state is SessionState.CLOSED


class TestSessionScope:
    """测试 session_scope()."""

    @pytest.mark.asyncio
    async def test_scope_closes_on_exception(self, session_manager, mock_playwright):
        """测试作用域内抛出异常时浏览器仍被关闭."""
        with pytest.raises(ValueError):
            async with session_manager.session_scope() as session:
                assert session.is_open
                raise ValueError("boom")

        assert mock_playwright.browser.close_count == 1
        assert session.page is None
