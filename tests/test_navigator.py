"""
@PURPOSE: 后台导航单元测试 - 路径规范化, 到达确认, 404/错误页, 会话过期后重新登录
@OUTLINE:
  - TestBuildAdminUrl: 测试 build_admin_url()
  - TestNavigateTo: 测试 Navigator.navigate_to()
"""

import time

import pytest
from tests.mocks import settings_page
from wp_admin_automation.browser.navigator import build_admin_url
from wp_admin_automation.core.errors import AuthFailure, NavigationTimeout
from wp_admin_automation.models.request import NavigationTarget


class TestBuildAdminUrl:
    """测试后台路径规范化."""

    @pytest.mark.parametrize(
        "path",
        [
            "options-general.php",
            "/options-general.php",
            "/wp-admin/options-general.php",
            "wp-admin/options-general.php",
            "https://wp.test/wp-admin/options-general.php",
        ],
    )
    def test_equivalent_forms_resolve_to_same_url(self, path):
        """测试带或不带后台前缀的路径得到相同 URL."""
        url = build_admin_url("https://wp.test/", "/wp-admin", path)

        assert url == "https://wp.test/wp-admin/options-general.php"

    def test_query_string_is_kept(self):
        """测试查询参数原样保留."""
        url = build_admin_url("https://wp.test", "/wp-admin", "post-new.php?post_type=page")

        assert url == "https://wp.test/wp-admin/post-new.php?post_type=page"

    def test_other_site_is_rejected(self):
        """测试其他站点的完整 URL 被拒绝."""
        with pytest.raises(ValueError):
            build_admin_url("https://wp.test", "/wp-admin", "https://evil.test/wp-admin/")

    def test_similar_prefix_is_not_stripped(self):
        """测试仅前缀相似的路径不会被误截断."""
        url = build_admin_url("https://wp.test", "/wp-admin", "wp-admin-tools.php")

        assert url == "https://wp.test/wp-admin/wp-admin-tools.php"


class TestNavigateTo:
    """测试导航与到达确认."""

    @pytest.mark.asyncio
    async def test_navigate_logs_in_first(self, navigator, session_manager, fake_wp, mock_page):
        """测试未登录会话先登录再导航."""
        fake_wp.add_page("options-general.php", settings_page)
        session = session_manager.new_session()

        page = await navigator.navigate_to(
            session, NavigationTarget(path="options-general.php", markers="#submit")
        )

        assert page is mock_page
        assert session.authenticated is True
        assert mock_page.url == "https://wp.test/wp-admin/options-general.php"

    @pytest.mark.asyncio
    async def test_missing_page_raises_navigation_timeout_without_hanging(
        self, navigator, session_manager, fake_wp
    ):
        """测试不存在的后台页面在超时内抛出 NavigationTimeout 并报告原因."""
        session = session_manager.new_session()
        started = time.monotonic()

        with pytest.raises(NavigationTimeout) as exc_info:
            await navigator.navigate_to(
                session, NavigationTarget(path="no-such-page.php", markers="#submit")
            )

        elapsed_ms = (time.monotonic() - started) * 1000
        assert elapsed_ms < navigator.settings.timing.navigation_timeout_ms * 3
        assert "404" in exc_info.value.message
        assert "抱歉" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_missing_marker_raises_navigation_timeout(self, navigator, session_manager, fake_wp):
        """测试到达标记未出现时抛出 NavigationTimeout."""
        fake_wp.add_page("options-general.php", settings_page)
        session = session_manager.new_session()

        with pytest.raises(NavigationTimeout) as exc_info:
            await navigator.navigate_to(
                session,
                NavigationTarget(path="options-general.php", markers="#never", timeout_ms=100),
            )

        assert exc_info.value.details["markers"] == "#never"

    @pytest.mark.asyncio
    async def test_goto_timeout_raises_navigation_timeout(
        self, navigator, session_manager, fake_wp, mock_page
    ):
        """测试页面加载超时转为 NavigationTimeout."""
        mock_page.goto_timeouts.add("https://wp.test/wp-admin/slow.php")
        session = session_manager.new_session()

        with pytest.raises(NavigationTimeout) as exc_info:
            await navigator.navigate_to(session, NavigationTarget(path="slow.php"))

        assert exc_info.value.details["url"] == "https://wp.test/wp-admin/slow.php"

    @pytest.mark.asyncio
    async def test_expired_session_reauthenticates_once(
        self, navigator, auth, session_manager, fake_wp
    ):
        """测试会话中途过期时重新登录一次后到达目标."""
        fake_wp.add_page("options-general.php", settings_page)
        session = session_manager.new_session()
        await auth.login(session)
        fake_wp.expire_once = True

        await navigator.navigate_to(
            session, NavigationTarget(path="options-general.php", markers="#submit")
        )

        assert len(fake_wp.login_attempts) == 2
        assert session.authenticated is True

    @pytest.mark.asyncio
    async def test_repeated_redirect_raises_auth_failure(
        self, navigator, auth, session_manager, fake_wp
    ):
        """测试重新登录后仍被重定向到登录页时抛出 AuthFailure."""
        fake_wp.add_page("options-general.php", settings_page)
        session = session_manager.new_session()
        await auth.login(session)
        fake_wp.always_expire = True

        with pytest.raises(AuthFailure):
            await navigator.navigate_to(
                session, NavigationTarget(path="options-general.php", markers="#submit")
            )

        assert len(fake_wp.login_attempts) == 2

    @pytest.mark.asyncio
    async def test_navigation_clears_editor_cache(self, navigator, auth, session_manager, fake_wp):
        """测试导航后清空编辑器识别缓存."""
        fake_wp.add_page("options-general.php", settings_page)
        session = session_manager.new_session()
        await auth.login(session)
        session.editor_cache["https://wp.test/wp-admin/post-new.php"] = object()

        await navigator.navigate_to(session, NavigationTarget(path="options-general.php"))

        assert session.editor_cache == {}
