"""
@PURPOSE: 后台常用操作流程单元测试 - 请求构造与插件启停的幂等性
@OUTLINE:
  - TestRequestBuilders: 测试 build_*_request()
  - TestAdminFlows: 测试 AdminFlows 端到端流程(基于 FakeWordPress)
"""

import pytest
from tests.mocks import plugins_page, settings_page
from wp_admin_automation.models.request import FieldType
from wp_admin_automation.workflows.admin_flows import (
    AdminFlows,
    build_content_request,
    build_menu_request,
    build_plugin_request,
    build_settings_request,
    build_theme_request,
)


class TestRequestBuilders:
    """测试请求构造."""

    def test_settings_request(self):
        """测试设置项名称转为 id 选择器, 值类型推断语义类型."""
        request = build_settings_request(
            "general", {"blogname": "My Site", "users_can_register": True, "[name=x]": 3}
        )

        assert request.target.path == "options-general.php"
        assert request.submit_selector == "#submit"
        assert [f.selector for f in request.fields] == ["#blogname", "#users_can_register", "[name=x]"]
        assert [f.field_type for f in request.fields] == [
            FieldType.TEXT,
            FieldType.BOOLEAN,
            FieldType.NUMBER,
        ]
        assert "#setting-error-settings_updated" in request.success_markers

    @pytest.mark.parametrize(
        "post_type, path",
        [("post", "post-new.php"), ("page", "post-new.php?post_type=page")],
    )
    def test_content_request(self, post_type, path):
        """测试新建内容请求的路径与编辑器需求."""
        request = build_content_request("标题", "正文", post_type)

        assert request.target.path == path
        assert request.needs_editor is True
        assert request.publish is True

    def test_plugin_request(self):
        """测试插件请求以插件行为到达标记."""
        request = build_plugin_request("akismet/akismet.php")

        assert request.entity == "akismet"
        assert request.target.markers == ['tr[data-plugin="akismet/akismet.php"]']

    def test_theme_request(self):
        """测试主题请求."""
        request = build_theme_request("twentytwentyfour")

        assert request.target.path == "themes.php"
        assert request.target.markers == ['.theme[data-slug="twentytwentyfour"]']

    def test_menu_request(self):
        """测试菜单请求包含名称, 位置和自动添加设置."""
        request = build_menu_request("主菜单", ["primary"], auto_add_pages=True)

        assert [f.name for f in request.fields] == ["menu-name", "location:primary", "auto-add-pages"]
        assert request.fields[1].selector == 'input[name="menu-locations[primary]"]'
        assert request.submit_selector == "#save_menu_header"


class TestAdminFlows:
    """测试后台流程."""

    @pytest.fixture
    def flows(self, engine):
        return AdminFlows(engine)

    @pytest.mark.asyncio
    async def test_update_settings(self, flows, fake_wp):
        """测试修改常规设置."""
        fake_wp.add_page("options-general.php", settings_page)

        result = await flows.update_settings("general", {"blogname": "My Site"})

        assert result.success is True
        assert result.fields.applied_count == 1

    @pytest.mark.asyncio
    async def test_activate_inactive_plugin(self, flows, fake_wp):
        """测试启用未启用的插件."""
        plugins = {"akismet/akismet.php": False}
        fake_wp.add_page("plugins.php", plugins_page(plugins))

        result = await flows.set_plugin_state("akismet/akismet.php", active=True)

        assert result.success is True
        assert result.data["changed"] is True
        assert plugins["akismet/akismet.php"] is True
        assert result.screenshot_path is not None

    @pytest.mark.asyncio
    async def test_already_active_plugin_is_not_clicked(self, flows, fake_wp, mock_page):
        """测试插件已处于目标状态时不点击任何链接."""
        plugins = {"akismet/akismet.php": True}
        fake_wp.add_page("plugins.php", plugins_page(plugins))

        result = await flows.set_plugin_state("akismet/akismet.php", active=True)

        assert result.success is True
        assert result.data == {"changed": False, "active": True}
        link = mock_page.dom.query('tr[data-plugin="akismet/akismet.php"] .deactivate a')[0]
        assert link.clicks == 0
        assert plugins["akismet/akismet.php"] is True

    @pytest.mark.asyncio
    async def test_missing_plugin_fails_navigation(self, flows, fake_wp):
        """测试插件不存在时到达标记未出现, 返回 navigation_timeout."""
        fake_wp.add_page("plugins.php", plugins_page({}))

        result = await flows.set_plugin_state("hello/hello.php", active=True)

        assert result.success is False
        assert result.error.kind == "navigation_timeout"
