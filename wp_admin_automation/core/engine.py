"""
@PURPOSE: 自动化引擎 - 串联会话/登录/导航/编辑器识别/字段修改/截图, 执行一次后台操作请求
@OUTLINE:
  - ExtraStep: 自定义步骤类型(插件/主题/菜单等流程使用)
  - class AutomationEngine: 自动化引擎
    - async def run(): 执行 AdminRequest 并返回 ActionResult
    - async def _execute(): 正常流程
    - async def _capture_on_failure(): 失败时尽量保存截图
@GOTCHAS:
  - 每次 run() 独占一个会话, 所有退出路径都会关闭浏览器
  - AutomationError 转为失败结果; 其它异常在关闭浏览器后继续上抛
  - 修改类流程到达终态时恰好保存一张截图(启动失败时没有页面, 无法截图)
  - 部分字段失败时仍会提交表单, 结果标记为 partial
@DEPENDENCIES:
  - 外部: loguru
  - 内部: browser.*, models, core.errors, utils.logger_setup
@RELATED: workflows/admin_flows.py
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from typing import Any

from ..browser.action_capture import ActionCapture
from ..browser.auth_controller import AuthController
from ..browser.editor_resolver import EditorStrategyResolver
from ..browser.editor_strategies import default_strategies
from ..browser.field_engine import FieldInteractionEngine
from ..browser.navigator import Navigator
from ..browser.session_manager import Session, SessionManager
from ..config.settings import Settings, get_settings, load_selectors
from ..models.request import AdminRequest
from ..models.result import ActionResult, FieldBatchResult
from ..utils.logger_setup import get_logger_with_context, log_section
from .errors import AutomationError

ExtraStep = Callable[[Session, Any], Awaitable[dict[str, Any]]]


class AutomationEngine:
    """自动化引擎.

    Attributes:
        settings: 应用配置
        session_manager: 会话管理器
        auth: 登录控制器
        navigator: 导航器
        resolver: 编辑器识别器
        field_engine: 字段交互引擎
        capture: 截图与结果构造

    Examples:
        >>> engine = AutomationEngine()
        >>> result = await engine.run(AdminRequest(
        ...     operation="update_settings",
        ...     entity="general",
        ...     target=NavigationTarget(path="options-general.php", markers=["#blogname"]),
        ...     fields=[FieldDescriptor(selector="#blogname", value="My Site")],
        ...     submit_selector="#submit",
        ... ))
        >>> result.success
        True
    """

    def __init__(
        self,
        settings: Settings | None = None,
        session_manager: SessionManager | None = None,
        auth: AuthController | None = None,
        navigator: Navigator | None = None,
        resolver: EditorStrategyResolver | None = None,
        field_engine: FieldInteractionEngine | None = None,
        capture: ActionCapture | None = None,
    ):
        self.settings = settings or get_settings()
        self.selectors = load_selectors()
        self.session_manager = session_manager or SessionManager(self.settings)
        self.auth = auth or AuthController(self.settings, self.session_manager, self.selectors)
        self.navigator = navigator or Navigator(self.settings, self.auth, self.selectors)
        self.field_engine = field_engine or FieldInteractionEngine(self.settings)
        self.resolver = resolver or EditorStrategyResolver(
            self.settings, default_strategies(self.settings, self.field_engine, self.selectors)
        )
        self.capture = capture or ActionCapture(self.settings)

    async def run(self, request: AdminRequest, extra_step: ExtraStep | None = None) -> ActionResult:
        """执行一次后台操作.

        Args:
            request: 操作请求
            extra_step: 字段修改/提交之后, 截图之前执行的自定义步骤, 返回值并入结果 data

        Returns:
            操作结果(会话级错误也以失败结果返回)
        """
        started = time.perf_counter()
        session = self.session_manager.new_session()
        log = get_logger_with_context(
            session_id=session.session_id,
            operation=request.operation,
            entity=request.entity,
            target=request.target.path,
        )
        log_section(f"开始执行: {request.operation} {request.entity}".strip())

        try:
            async with session.lock:
                result = await self._execute(session, request, extra_step, log)
        except AutomationError as exc:
            log.error(f"✗ 操作失败: {exc}")
            screenshot = await self._capture_on_failure(session, request, log)
            result = ActionCapture.from_error(
                exc,
                operation=request.operation,
                entity=request.entity,
                screenshot_path=screenshot,
            )
        finally:
            await self.session_manager.close(session)

        result.execution_time = round(time.perf_counter() - started, 3)
        log.info(f"操作结束: success={result.success} 耗时 {result.execution_time}s")
        return result

    async def _execute(
        self,
        session: Session,
        request: AdminRequest,
        extra_step: ExtraStep | None,
        log: Any,
    ) -> ActionResult:
        await self.auth.login(session)
        page = await self.navigator.navigate_to(session, request.target)

        strategy = None
        if request.needs_editor:
            strategy = await self.resolver.resolve(session)

        outcomes = []
        if strategy is not None and request.title is not None:
            outcomes.append(await self.field_engine.apply_title(page, strategy, request.title))
        if strategy is not None and request.content is not None:
            outcomes.append(await self.field_engine.apply_content(page, strategy, request.content))
        if request.fields:
            batch = await self.field_engine.apply_fields(page, request.fields)
            outcomes.extend(batch.outcomes)
        fields = FieldBatchResult(outcomes=outcomes) if outcomes else None

        data: dict[str, Any] = {}
        if request.submit_selector:
            marker = await self.field_engine.submit(
                page,
                request.submit_selector,
                request.success_markers,
                request.error_markers,
            )
            data["submitted"] = True
            if marker:
                data["success_marker"] = marker
        if strategy is not None:
            data["editor"] = strategy.context.value
            if request.publish:
                data.update(await strategy.publish(page))
        if extra_step is not None:
            data.update(await extra_step(session, page))

        screenshot = None
        if request.mutating:
            screenshot = await self.capture.capture(page, request.entity, request.operation)

        if fields is not None and not fields.all_succeeded:
            log.warning(f"操作部分完成: {fields.summary()}")
            return ActionCapture.partial(
                fields,
                operation=request.operation,
                entity=request.entity,
                screenshot_path=screenshot,
                data=data,
            )

        log.success(f"✓ 操作完成: {request.operation}")
        return ActionCapture.success(
            f"{request.operation} 完成",
            operation=request.operation,
            entity=request.entity,
            screenshot_path=screenshot,
            fields=fields,
            data=data,
        )

    async def _capture_on_failure(
        self, session: Session, request: AdminRequest, log: Any
    ) -> str | None:
        """失败时保存截图, 截图本身失败只记录警告."""

        if not request.mutating or session.page is None:
            return None
        try:
            return await self.capture.capture(
                session.page, request.entity, f"{request.operation}-failed"
            )
        except Exception as exc:
            log.warning(f"失败截图保存失败: {exc}")
            return None
