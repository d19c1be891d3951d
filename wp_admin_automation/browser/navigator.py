"""
@PURPOSE: 后台导航器 - 规范化后台路径, 导航并确认到达(网络空闲 + 标记元素 + DOM 稳定)
@OUTLINE:
  - def build_admin_url(): 将后台路径规范化为完整 URL
  - class Navigator: 导航器
    - async def navigate_to(): 导航到目标并确认到达
    - async def _visit(): 单次导航
    - async def _describe_failure(): 收集失败诊断(wp_die 错误页, HTTP 状态)
@GOTCHAS:
  - 未登录时先经过 AuthController 登录
  - 中途会话过期(被重定向到登录页)时只重新登录一次, 再次跳转登录页抛 AuthFailure
  - 不存在的后台页面返回 404 或 wp_die 页面, 统一转为 NavigationTimeout
@DEPENDENCIES:
  - 外部: playwright, loguru
  - 内部: auth_controller, utils.selector_race, utils.page_waiter, core.errors
@RELATED: auth_controller.py, editor_resolver.py
"""

from __future__ import annotations

from typing import Any

from loguru import logger
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..config.settings import Settings, get_settings, load_selectors
from ..core.errors import AuthFailure, NavigationTimeout
from ..models.request import NavigationTarget
from ..utils.page_waiter import PageWaiter, WaitStrategy
from ..utils.selector_race import wait_for_any
from .auth_controller import AuthController
from .session_manager import Session, SessionState


def build_admin_url(base_url: str, admin_path: str, path: str) -> str:
    """将后台路径规范化为完整 URL.

    Args:
        base_url: 站点根地址
        admin_path: 后台路径前缀(如 /wp-admin)
        path: 目标路径, 可带或不带后台前缀, 也可为同站点完整 URL

    Returns:
        完整 URL

    Raises:
        ValueError: 完整 URL 不属于当前站点

    Examples:
        >>> build_admin_url("https://a.test", "/wp-admin", "/wp-admin/options-general.php")
        'https://a.test/wp-admin/options-general.php'
        >>> build_admin_url("https://a.test", "/wp-admin", "options-general.php")
        'https://a.test/wp-admin/options-general.php'
    """
    base_url = base_url.rstrip("/")
    if path.startswith(("http://", "https://")):
        if path != base_url and not path.startswith(base_url + "/"):
            raise ValueError(f"不允许导航到其他站点: {path}")
        return path

    relative = path.strip().lstrip("/")
    prefix = admin_path.strip("/")
    if prefix and (relative == prefix or relative.startswith(prefix + "/")):
        relative = relative[len(prefix):].lstrip("/")
    return f"{base_url}{admin_path}/{relative}"


class Navigator:
    """后台导航器.

    Examples:
        >>> navigator = Navigator(auth=auth)
        >>> await navigator.navigate_to(session, NavigationTarget(path="options-general.php"))
    """

    def __init__(
        self,
        settings: Settings | None = None,
        auth: AuthController | None = None,
        selectors: dict[str, Any] | None = None,
    ):
        self.settings = settings or get_settings()
        self.auth = auth or AuthController(self.settings)
        self.selectors = selectors or load_selectors()
        self.wait_strategy = WaitStrategy.from_timing(self.settings.timing)

    async def navigate_to(self, session: Session, target: NavigationTarget) -> Any:
        """导航到目标页面并确认到达.

        Args:
            session: 会话
            target: 导航目标

        Returns:
            到达后的 Page

        Raises:
            NavigationTimeout: 页面未在超时内到达或标记未出现
            AuthFailure: 重新登录后仍被重定向到登录页
        """
        if not session.authenticated:
            logger.debug("会话未登录, 导航前先登录")
            await self.auth.login(session)

        url = build_admin_url(session.base_url, session.admin_path, target.path)
        timeout_ms = target.timeout_ms or self.settings.timing.navigation_timeout_ms

        reauthenticated = False
        while True:
            session.state = SessionState.NAVIGATING
            try:
                arrived = await self._visit(session, url, target, timeout_ms)
            finally:
                session.state = SessionState.OPEN

            if arrived:
                break
            if reauthenticated:
                raise AuthFailure("重新登录后仍被重定向到登录页", url=url)

            logger.warning("会话已过期(被重定向到登录页), 重新登录")
            session.authenticated = False
            await self.auth.login(session)
            reauthenticated = True

        session.editor_cache.clear()
        logger.success(f"✓ 已到达 {url}")
        return session.page

    async def _visit(
        self, session: Session, url: str, target: NavigationTarget, timeout_ms: int
    ) -> bool:
        """单次导航, 被重定向到登录页时返回 False."""

        page = session.page
        logger.info(f"导航到: {url}")
        try:
            response = await page.goto(url, wait_until="networkidle", timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            reason = await self._describe_failure(page, None)
            raise NavigationTimeout(
                f"导航超时 ({timeout_ms}ms): {url}{reason}", url=url
            ) from exc

        if await self.auth.is_login_surface(page):
            return False

        status = getattr(response, "status", None)
        if status is not None and status >= 400:
            reason = await self._describe_failure(page, status)
            raise NavigationTimeout(f"页面不可用: {url}{reason}", url=url, status=status)

        if target.markers:
            timing = self.settings.timing
            match = await wait_for_any(
                page,
                target.markers,
                timeout_ms,
                interval_ms=timing.poll_interval_ms,
                backoff_factor=timing.backoff_factor,
                max_interval_ms=timing.max_poll_interval_ms,
                context_name="到达标记",
            )
            if match is None:
                reason = await self._describe_failure(page, status)
                raise NavigationTimeout(
                    f"到达标记未出现 ({timeout_ms}ms): {url}{reason}",
                    url=url,
                    markers=",".join(target.markers),
                )
        elif await self._is_error_page(page):
            reason = await self._describe_failure(page, status)
            raise NavigationTimeout(f"页面不可用: {url}{reason}", url=url)

        await PageWaiter(page, self.wait_strategy).wait_for_dom_stable()
        return True

    async def _is_error_page(self, page: Any) -> bool:
        locator = page.locator(self.selectors["admin"]["error_page"])
        return await locator.count() > 0

    async def _describe_failure(self, page: Any, status: int | None) -> str:
        parts = []
        if status is not None and status >= 400:
            parts.append(f"HTTP {status}")
        try:
            if await self._is_error_page(page):
                text = (await page.locator(self.selectors["admin"]["error_page"]).first.inner_text()).strip()
                parts.append(f"WordPress 错误页: {text[:200]}")
        except Exception as exc:
            logger.debug(f"读取错误页信息失败: {exc}")
        return f" ({'; '.join(parts)})" if parts else ""
