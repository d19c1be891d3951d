"""
@PURPOSE: 后台常用操作流程 - 将高层意图(改设置/发文章/启停插件/切换主题/建菜单)转为引擎请求
@OUTLINE:
  - def build_settings_request(): 设置页保存请求
  - def build_content_request(): 新建内容请求
  - def build_plugin_request(): 插件页请求
  - def build_theme_request(): 主题页请求
  - def build_menu_request(): 新建菜单请求
  - class AdminFlows: 流程执行器(组合请求与自定义步骤, 交给 AutomationEngine 执行)
@GOTCHAS:
  - 插件/主题已处于期望状态时不点击, 结果 data.changed=False
  - 每个流程到达终态时由引擎保存一张截图
@DEPENDENCIES:
  - 外部: loguru
  - 内部: core.engine, models, utils.selector_race, utils.page_waiter
@RELATED: core/engine.py, cli/main.py
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from ..config.settings import load_selectors
from ..core.engine import AutomationEngine
from ..core.errors import ActionTimeout, ElementNotFound
from ..models.request import AdminRequest, FieldDescriptor, FieldType, NavigationTarget
from ..models.result import ActionResult
from ..utils.page_waiter import PageWaiter
from ..utils.selector_race import wait_for_any


def _infer_field_type(value: Any) -> FieldType:
    if isinstance(value, bool):
        return FieldType.BOOLEAN
    if isinstance(value, (int, float)):
        return FieldType.NUMBER
    return FieldType.TEXT


def _field_selector(name: str) -> str:
    """设置项名称转选择器: 已是选择器时原样返回, 否则按 id 匹配."""

    if name.startswith(("#", ".", "[")) or " " in name:
        return name
    return f"#{name}"


# ========== 请求构造 ==========

def build_settings_request(page_slug: str, values: dict[str, Any]) -> AdminRequest:
    """设置页保存请求.

    Args:
        page_slug: 设置页名称(general/writing/reading/discussion/media/permalink)
        values: 设置项名称(或选择器) → 期望值

    Examples:
        >>> request = build_settings_request("general", {"blogname": "My Site"})
        >>> request.target.path
        'options-general.php'
    """
    notices = load_selectors()["notices"]
    fields = [
        FieldDescriptor(
            selector=_field_selector(name),
            field_type=_infer_field_type(value),
            value=value,
            name=name,
        )
        for name, value in values.items()
    ]
    return AdminRequest(
        operation="update_settings",
        entity=page_slug,
        target=NavigationTarget(path=f"options-{page_slug}.php", markers=["#submit"]),
        fields=fields,
        submit_selector="#submit",
        success_markers=notices["success"],
        error_markers=notices["error"],
    )


def build_content_request(
    title: str, content: str, post_type: str = "post", publish: bool = True
) -> AdminRequest:
    """新建内容(文章/页面)请求."""

    path = "post-new.php" if post_type == "post" else f"post-new.php?post_type={post_type}"
    return AdminRequest(
        operation="create_content",
        entity=post_type,
        target=NavigationTarget(path=path),
        title=title,
        content=content,
        publish=publish,
    )


def build_plugin_request(plugin_file: str) -> AdminRequest:
    """插件页请求(插件行出现即视为到达)."""

    return AdminRequest(
        operation="set_plugin_state",
        entity=plugin_file.split("/")[0],
        target=NavigationTarget(
            path="plugins.php", markers=[f'tr[data-plugin="{plugin_file}"]']
        ),
    )


def build_theme_request(slug: str) -> AdminRequest:
    """主题页请求."""

    return AdminRequest(
        operation="activate_theme",
        entity=slug,
        target=NavigationTarget(path="themes.php", markers=[f'.theme[data-slug="{slug}"]']),
    )


def build_menu_request(
    name: str, locations: list[str] | None = None, auto_add_pages: bool = False
) -> AdminRequest:
    """新建导航菜单请求.

    Args:
        name: 菜单名称
        locations: 要绑定的菜单位置(主题注册的位置名)
        auto_add_pages: 是否自动添加新页面
    """
    fields = [FieldDescriptor(selector="#menu-name", value=name, name="menu-name")]
    for location in locations or []:
        fields.append(
            FieldDescriptor(
                selector=f'input[name="menu-locations[{location}]"]',
                field_type=FieldType.BOOLEAN,
                value=True,
                name=f"location:{location}",
            )
        )
    fields.append(
        FieldDescriptor(
            selector="#auto-add-pages",
            field_type=FieldType.BOOLEAN,
            value=auto_add_pages,
            name="auto-add-pages",
        )
    )
    notices = load_selectors()["notices"]
    return AdminRequest(
        operation="create_menu",
        entity=name,
        target=NavigationTarget(path="nav-menus.php?action=edit&menu=0", markers=["#menu-name"]),
        fields=fields,
        submit_selector="#save_menu_header",
        success_markers=notices["success"],
        error_markers=notices["error"],
    )


# ========== 流程执行 ==========

class AdminFlows:
    """后台常用操作流程.

    Examples:
        >>> flows = AdminFlows(AutomationEngine())
        >>> result = await flows.set_plugin_state("akismet/akismet.php", active=True)
        >>> result.data["changed"]
        True
    """

    def __init__(self, engine: AutomationEngine):
        self.engine = engine
        self.timing = engine.settings.timing
        self.notices = engine.selectors["notices"]

    async def update_settings(self, page_slug: str, values: dict[str, Any]) -> ActionResult:
        """修改设置页并保存."""

        return await self.engine.run(build_settings_request(page_slug, values))

    async def create_content(
        self, title: str, content: str, post_type: str = "post", publish: bool = True
    ) -> ActionResult:
        """新建并发布内容."""

        return await self.engine.run(build_content_request(title, content, post_type, publish))

    async def set_plugin_state(self, plugin_file: str, active: bool) -> ActionResult:
        """启用或停用插件.

        Args:
            plugin_file: 插件文件(如 akismet/akismet.php)
            active: 期望状态
        """
        row = f'tr[data-plugin="{plugin_file}"]'

        async def toggle(session, page) -> dict[str, Any]:
            row_match = await self._require(page, row, "插件行")
            classes = (await row_match.get_attribute("class") or "").split()
            if ("active" in classes) == active:
                logger.info(f"插件 {plugin_file} 已处于目标状态, 跳过")
                return {"changed": False, "active": active}

            action = "activate" if active else "deactivate"
            await self._click_and_confirm(page, f"{row} .{action} a", f"插件{action}链接")
            return {"changed": True, "active": active}

        return await self.engine.run(build_plugin_request(plugin_file), toggle)

    async def activate_theme(self, slug: str) -> ActionResult:
        """切换主题."""

        theme = f'.theme[data-slug="{slug}"]'

        async def activate(session, page) -> dict[str, Any]:
            card = await self._require(page, theme, "主题卡片")
            classes = (await card.get_attribute("class") or "").split()
            if "active" in classes:
                logger.info(f"主题 {slug} 已启用, 跳过")
                return {"changed": False}

            await card.hover(timeout=self.timing.action_timeout_ms)
            await self._click_and_confirm(page, f"{theme} .theme-actions .activate", "主题启用按钮")
            return {"changed": True}

        return await self.engine.run(build_theme_request(slug), activate)

    async def create_menu(
        self, name: str, locations: list[str] | None = None, auto_add_pages: bool = False
    ) -> ActionResult:
        """新建导航菜单, 结果 data.menu_id 为新菜单 ID."""

        async def read_menu_id(session, page) -> dict[str, Any]:
            menu_input = await wait_for_any(
                page, ["#menu"], self.timing.element_timeout_ms, context_name="菜单ID"
            )
            if menu_input is None:
                return {"menu_id": None}
            value = await menu_input.locator.input_value(timeout=self.timing.action_timeout_ms)
            return {"menu_id": int(value) if value.isdigit() else None}

        request = build_menu_request(name, locations, auto_add_pages)
        return await self.engine.run(request, read_menu_id)

    # ========== 公共步骤 ==========

    async def _require(self, page: Any, selector: str, name: str) -> Any:
        match = await wait_for_any(
            page, [selector], self.timing.element_timeout_ms, context_name=name
        )
        if match is None:
            raise ElementNotFound(f"未找到{name}: {selector}", selector=selector)
        return match.locator

    async def _click_and_confirm(self, page: Any, selector: str, name: str) -> None:
        link = await self._require(page, selector, name)
        waiter = PageWaiter(page, self.engine.field_engine.wait_strategy)
        if not await waiter.safe_click(
            link, timeout_ms=self.timing.action_timeout_ms, wait_after=False, name=name
        ):
            raise ActionTimeout(f"{name}点击超时", selector=selector)
        await waiter.wait_for_network_idle(self.timing.navigation_timeout_ms)

        notice = await wait_for_any(
            page,
            self.notices["success"],
            self.timing.action_timeout_ms,
            interval_ms=self.timing.poll_interval_ms,
            context_name=f"{name}结果",
        )
        if notice is None:
            raise ActionTimeout(f"{name}点击后未出现成功提示", selector=selector)
