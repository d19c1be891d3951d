"""
@PURPOSE: 登录控制器, 保证会话在后台导航前已登录
@OUTLINE:
  - class AuthController: 登录控制器主类
    - async def login(): 按需登录(已登录时直接返回)
    - async def is_login_surface(): 判断当前页面是否为登录页
    - async def _submit_credentials(): 填写凭据并判定登录结果
@GOTCHAS:
  - 后台首页未跳转到 wp-login.php 即视为已登录(预认证会话)
  - 登录结果同时等待成功标记和错误标记, 错误标记优先
  - 登录失败时会话保持打开但 authenticated=False
  - 不记录密码
@DEPENDENCIES:
  - 外部: playwright, loguru
  - 内部: session_manager, utils.selector_race, utils.page_waiter, core.errors
@RELATED: session_manager.py, navigator.py
"""

from __future__ import annotations

from typing import Any

from loguru import logger
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..config.settings import Settings, get_settings, load_selectors
from ..core.errors import AuthFailure, AuthTimeout, AutomationError
from ..utils.page_waiter import PageWaiter, WaitStrategy
from ..utils.selector_race import try_selectors_race, wait_for_any
from .session_manager import Session, SessionManager, SessionState


class AuthController:
    """登录控制器.

    Attributes:
        settings: 应用配置
        selectors: 登录页选择器
        session_manager: 会话管理器(用于按需启动浏览器)

    Examples:
        >>> auth = AuthController(session_manager=manager)
        >>> await auth.login(session)
        >>> session.authenticated
        True
    """

    def __init__(
        self,
        settings: Settings | None = None,
        session_manager: SessionManager | None = None,
        selectors: dict[str, Any] | None = None,
    ):
        self.settings = settings or get_settings()
        self.session_manager = session_manager or SessionManager(self.settings)
        self.selectors = (selectors or load_selectors())["login"]
        self.wait_strategy = WaitStrategy.from_timing(self.settings.timing)

    def _on_login_url(self, url: str) -> bool:
        return self.selectors["page_marker"] in url or "reauth=1" in url

    async def is_login_surface(self, page: Any) -> bool:
        """当前页面是否为登录页(URL 或可见的登录表单)."""

        if self._on_login_url(page.url):
            return True
        form = await try_selectors_race(
            page,
            [self.selectors["form"], self.selectors["username_input"]],
            context_name="登录表单",
        )
        return form is not None

    async def login(self, session: Session) -> bool:
        """确保会话已登录.

        Args:
            session: 会话

        Returns:
            True(成功时); 失败时抛出异常

        Raises:
            AuthFailure: 登录页出现错误提示
            AuthTimeout: 在超时内无法判定登录结果
            LaunchFailure: 浏览器启动失败
        """
        if session.authenticated:
            logger.debug("会话已登录, 跳过登录流程")
            return True

        page = await self.session_manager.launch(session)
        session.state = SessionState.AUTHENTICATING
        logger.info(f"开始登录 {session.base_url} user={session.username or '-'}")

        try:
            await self._authenticate(session, page)
        except AutomationError:
            session.authenticated = False
            session.state = SessionState.OPEN
            raise

        session.authenticated = True
        session.state = SessionState.OPEN
        logger.success("✓ 登录成功")
        return True

    async def _authenticate(self, session: Session, page: Any) -> None:
        timing = self.settings.timing
        admin_url = f"{session.admin_url}/"

        try:
            await page.goto(
                admin_url, wait_until="networkidle", timeout=timing.navigation_timeout_ms
            )
        except PlaywrightTimeoutError as exc:
            raise AuthTimeout(f"打开后台首页超时: {admin_url}", url=admin_url) from exc

        if not self._on_login_url(page.url):
            logger.info("后台首页未跳转到登录页, 会话已处于登录状态")
            return

        form = await wait_for_any(
            page,
            [self.selectors["username_input"]],
            timing.element_timeout_ms,
            interval_ms=timing.poll_interval_ms,
            context_name="登录表单",
        )
        if form is None:
            raise AuthTimeout("既未进入后台也未找到登录表单", url=page.url)

        await self._submit_credentials(session, page)

    async def _submit_credentials(self, session: Session, page: Any) -> None:
        timing = self.settings.timing
        waiter = PageWaiter(page, self.wait_strategy)

        for selector, value, name in (
            (self.selectors["username_input"], session.username, "用户名"),
            (self.selectors["password_input"], session.password, "密码"),
        ):
            filled = await waiter.safe_fill(
                page.locator(selector), value, timeout_ms=timing.action_timeout_ms, name=name
            )
            if not filled:
                raise AuthTimeout(f"{name}输入超时", selector=selector)

        logger.debug("提交登录表单")
        clicked = await waiter.safe_click(
            page.locator(self.selectors["submit_button"]),
            timeout_ms=timing.action_timeout_ms,
            wait_after=False,
            name="登录按钮",
        )
        if not clicked:
            raise AuthTimeout("登录按钮点击超时", selector=self.selectors["submit_button"])

        await waiter.wait_for_network_idle(timing.auth_timeout_ms)

        error_markers = list(self.selectors["error_markers"])
        markers = error_markers + list(self.selectors["success_markers"])
        match = await wait_for_any(
            page,
            markers,
            timing.auth_timeout_ms,
            interval_ms=timing.poll_interval_ms,
            backoff_factor=timing.backoff_factor,
            max_interval_ms=timing.max_poll_interval_ms,
            context_name="登录结果",
        )

        if match is not None and match.index < len(error_markers):
            text = (await match.locator.inner_text()).strip()
            logger.error(f"✗ 登录失败: {text}")
            raise AuthFailure(text or "登录失败", url=page.url)

        if match is None and self._on_login_url(page.url):
            raise AuthTimeout("提交凭据后未出现登录结果", url=page.url)
