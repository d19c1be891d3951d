"""
@PURPOSE: 浏览器会话管理 - 显式 Session 值对象 + 启动/关闭/作用域生命周期
@OUTLINE:
  - class SessionState: 会话状态枚举
  - @dataclass Session: 会话值对象(浏览器句柄, 登录状态, 凭据, 控制台消息)
  - class SessionManager: 会话生命周期管理
    - def new_session(): 按配置创建会话
    - async def launch(): 启动浏览器(幂等)
    - async def close(): 关闭浏览器(幂等, 不抛异常)
    - def session_scope(): 启动并保证释放的异步上下文管理器
@GOTCHAS:
  - close() 是结束会话的唯一途径, 每个资源独立超时, 任何一步失败都继续清理后续资源
  - 启动失败为致命错误, 先释放已创建的部分资源再抛出 LaunchFailure, 不重试
  - Session 不跨调用复用, 不持久化 Cookie
@DEPENDENCIES:
  - 外部: playwright, loguru
  - 内部: config.settings, core.errors
@RELATED: auth_controller.py, navigator.py, core/engine.py
"""

from __future__ import annotations

import asyncio
import uuid
from collections import deque
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from loguru import logger
from playwright.async_api import async_playwright

from ..config.settings import Settings, get_settings
from ..core.errors import LaunchFailure


class SessionState(str, Enum):
    """会话状态."""

    CLOSED = "closed"
    LAUNCHING = "launching"
    OPEN = "open"
    AUTHENTICATING = "authenticating"
    NAVIGATING = "navigating"
    CLOSING = "closing"


@dataclass(eq=False)
class Session:
    """浏览器会话.

    作为显式参数传给每个操作, 不在控制器中隐式持有 page.

    Attributes:
        base_url: 站点根地址
        admin_path: 后台路径前缀
        username: 登录用户名
        password: 应用密码
        session_id: 会话 ID(日志上下文)
        playwright/browser/context/page: Playwright 句柄, 关闭后为 None
        authenticated: 是否已登录
        state: 生命周期状态
        console_messages: 最近的浏览器控制台消息
        editor_cache: 当前 URL 已识别的编辑器策略
        lock: 保证同一时刻只有一个操作使用该会话
    """

    base_url: str
    admin_path: str = "/wp-admin"
    username: str = ""
    password: str = field(default="", repr=False)
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    playwright: Any = None
    browser: Any = None
    context: Any = None
    page: Any = None
    authenticated: bool = False
    state: SessionState = SessionState.CLOSED
    console_messages: deque[str] = field(default_factory=lambda: deque(maxlen=200), repr=False)
    editor_cache: dict[str, Any] = field(default_factory=dict, repr=False)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @property
    def admin_url(self) -> str:
        return f"{self.base_url.rstrip('/')}{self.admin_path}"

    @property
    def is_open(self) -> bool:
        return self.page is not None


class SessionManager:
    """浏览器会话管理器.

    Examples:
        >>> manager = SessionManager()
        >>> async with manager.session_scope() as session:
        ...     await session.page.goto(session.admin_url)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        playwright_factory: Callable[[], Any] = async_playwright,
    ):
        """初始化管理器.

        Args:
            settings: 应用配置, 默认全局配置
            playwright_factory: 返回 Playwright 上下文管理器的工厂(测试可替换)
        """
        self.settings = settings or get_settings()
        self._playwright_factory = playwright_factory

    def new_session(self) -> Session:
        """按配置创建一个未启动的会话."""

        wp = self.settings.wordpress
        return Session(
            base_url=wp.site_url,
            admin_path=wp.admin_path,
            username=wp.username,
            password=wp.app_password,
            console_messages=deque(maxlen=self.settings.browser.console_buffer_size),
        )

    def _launch_options(self) -> dict[str, Any]:
        browser = self.settings.browser
        args = list(browser.sandbox_args)
        for arg in browser.extra_args:
            if arg not in args:
                args.append(arg)
        return {
            "headless": browser.headless,
            "slow_mo": browser.slow_mo,
            "args": args,
        }

    async def launch(self, session: Session) -> Any:
        """启动浏览器并打开页面.

        已有页面时直接返回(幂等).

        Args:
            session: 会话

        Returns:
            Playwright Page

        Raises:
            LaunchFailure: 启动失败(原始异常作为 __cause__)
        """
        if session.page is not None:
            return session.page

        browser_cfg = self.settings.browser
        timeout = self.settings.timing.launch_timeout_ms / 1000
        session.state = SessionState.LAUNCHING
        logger.info(
            f"启动浏览器 type={browser_cfg.browser_type} headless={browser_cfg.headless} "
            f"slow_mo={browser_cfg.slow_mo}"
        )

        try:
            session.playwright = await asyncio.wait_for(
                self._playwright_factory().start(), timeout=timeout
            )
            browser_type = getattr(session.playwright, browser_cfg.browser_type, None)
            if browser_type is None:
                raise ValueError(f"不支持的浏览器类型: {browser_cfg.browser_type}")

            session.browser = await asyncio.wait_for(
                browser_type.launch(**self._launch_options()), timeout=timeout
            )
            session.context = await asyncio.wait_for(
                session.browser.new_context(viewport=dict(browser_cfg.viewport)),
                timeout=timeout,
            )
            page = await asyncio.wait_for(session.context.new_page(), timeout=timeout)
            page.set_default_timeout(browser_cfg.timeout)
            self._attach_console(session, page)
            session.page = page
        except Exception as exc:
            logger.error(f"浏览器启动失败: {type(exc).__name__}: {exc}")
            await self.close(session)
            raise LaunchFailure(
                f"浏览器启动失败: {exc}", browser_type=browser_cfg.browser_type
            ) from exc

        session.state = SessionState.OPEN
        logger.success(f"浏览器已启动 session={session.session_id[:8]}")
        return session.page

    def _attach_console(self, session: Session, page: Any) -> None:
        """订阅页面控制台和脚本错误事件."""

        def on_console(message: Any) -> None:
            text = f"[{message.type}] {message.text}"
            session.console_messages.append(text)
            if message.type == "error":
                logger.warning(f"浏览器控制台错误: {message.text}")
            else:
                logger.debug(f"浏览器控制台: {text}")

        def on_page_error(error: Any) -> None:
            text = f"[pageerror] {error}"
            session.console_messages.append(text)
            logger.error(f"页面脚本异常: {error}")

        page.on("console", on_console)
        page.on("pageerror", on_page_error)

    async def close(self, session: Session) -> None:
        """关闭会话, 确保所有资源被释放.

        清理顺序: Page → Context → Browser → Playwright.
        每一步独立超时, 失败只记录日志, 本方法从不抛异常.
        已关闭的会话直接返回.
        """
        handles = (session.page, session.context, session.browser, session.playwright)
        if session.state is SessionState.CLOSED and all(h is None for h in handles):
            logger.debug("会话已关闭, 跳过")
            return

        session.state = SessionState.CLOSING
        errors: list[tuple[str, BaseException]] = []

        steps = (
            ("page", "close", 5.0),
            ("context", "close", 5.0),
            ("browser", "close", 10.0),
            ("playwright", "stop", 5.0),
        )
        for attr, method, timeout in steps:
            resource = getattr(session, attr)
            try:
                if resource is not None:
                    try:
                        await asyncio.wait_for(getattr(resource, method)(), timeout=timeout)
                    except TimeoutError:
                        errors.append((attr, TimeoutError(f"{attr}.{method}() 超时 ({timeout:g}s)")))
                        logger.warning(f"{attr}.{method}() 超时 ({timeout:g}s)")
                    except Exception as exc:
                        errors.append((attr, exc))
                        logger.debug(f"{attr}.{method}() 失败: {exc}")
            finally:
                setattr(session, attr, None)

        session.authenticated = False
        session.editor_cache.clear()
        session.state = SessionState.CLOSED

        if errors:
            error_summary = ", ".join(f"{name}:{type(e).__name__}" for name, e in errors)
            logger.warning(f"浏览器关闭过程中有 {len(errors)} 个错误: {error_summary}")
        else:
            logger.info(f"浏览器已关闭 session={session.session_id[:8]}")

    @asynccontextmanager
    async def session_scope(self, session: Session | None = None) -> AsyncIterator[Session]:
        """启动会话并在退出时保证关闭.

        Args:
            session: 已有会话, 默认新建

        Yields:
            已启动的会话
        """
        session = session or self.new_session()
        try:
            await self.launch(session)
            yield session
        finally:
            await self.close(session)
