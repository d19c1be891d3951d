"""
@PURPOSE: 字段交互引擎 - 按元素声明的类型修改表单字段并回读校验, 汇总批量结果
@OUTLINE:
  - class FieldInteractionEngine: 字段交互引擎
    - async def apply_fields(): 批量修改字段(单个失败不中断其余字段)
    - async def apply_field(): 修改单个字段, 返回 FieldOutcome
    - async def apply_title(): 通过编辑器策略写入标题
    - async def apply_content(): 通过编辑器策略写入正文
    - async def submit(): 点击提交按钮并等待成功/错误提示
@GOTCHAS:
  - 交互方式以元素的 type/tagName 为准, FieldDescriptor.field_type 只在元素类型未知时兜底
  - 已处于期望状态的字段不做任何操作(复选框不点击, 输入框不重填)
  - 回读不一致记为字段失败(verification_mismatch), 不抛异常
  - ElementNotFound / ActionTimeout / Playwright 操作错误被转为字段结果, 致命错误继续上抛
  - 非表单元素(contenteditable 等)按文本写入时用 inner_text 回读, input_value 只用于表单控件
@DEPENDENCIES:
  - 外部: playwright, loguru
  - 内部: utils.selector_race, utils.page_waiter, models, core.errors
@RELATED: editor_strategies.py, core/engine.py
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..config.settings import Settings, get_settings
from ..core.errors import (
    ActionTimeout,
    AutomationError,
    ElementNotFound,
    ErrorKind,
    SubmissionRejected,
)
from ..models.request import FieldDescriptor, FieldType
from ..models.result import ErrorDetail, FieldBatchResult, FieldOutcome, FieldStatus
from ..utils.page_waiter import PageWaiter, WaitStrategy
from ..utils.selector_race import wait_for_any

if TYPE_CHECKING:
    from .editor_strategies import EditorStrategy


ELEMENT_TYPE_SCRIPT = "el => (el.type || el.tagName || '').toLowerCase()"
SELECT_OPTIONS_SCRIPT = (
    "el => Array.from(el.options || []).map(o => [o.value, (o.label || o.text || '').trim()])"
)
SET_VALUE_SCRIPT = """
(el, value) => {
    el.value = value;
    el.dispatchEvent(new Event('input', { bubbles: true }));
    el.dispatchEvent(new Event('change', { bubbles: true }));
    return el.value;
}
"""

TEXT_TYPES = {
    "text", "number", "email", "url", "password", "search", "tel", "textarea",
    "date", "datetime-local", "time", "month", "week",
}
TOGGLE_TYPES = {"checkbox", "radio"}
SELECT_TYPES = {"select", "select-one", "select-multiple"}
SCRIPT_TYPES = {"color", "range"}
UNSUPPORTED_TYPES = {"button", "submit", "reset", "image", "file", "hidden"}

_FALLBACK_BY_FIELD_TYPE = {
    FieldType.TEXT: "text",
    FieldType.NUMBER: "text",
    FieldType.BOOLEAN: "toggle",
    FieldType.ENUM: "select",
}


def interaction_for(element_type: str, field_type: FieldType) -> str | None:
    """根据元素类型决定交互方式, 未知元素类型按语义类型兜底.

    Returns:
        text/toggle/select/script, 不支持时返回 None
    """
    if element_type in TEXT_TYPES:
        return "text"
    if element_type in TOGGLE_TYPES:
        return "toggle"
    if element_type in SELECT_TYPES:
        return "select"
    if element_type in SCRIPT_TYPES:
        return "script"
    if element_type in UNSUPPORTED_TYPES:
        return None
    return _FALLBACK_BY_FIELD_TYPE.get(field_type)


class FieldInteractionEngine:
    """字段交互引擎.

    Examples:
        >>> engine = FieldInteractionEngine()
        >>> batch = await engine.apply_fields(page, [
        ...     FieldDescriptor(selector="#blogname", value="My Site"),
        ...     FieldDescriptor(selector="#users_can_register", field_type="boolean", value=True),
        ... ])
        >>> batch.summary()
        '2/2 成功 (修改 2, 无需修改 0, 失败 0)'
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.timing = self.settings.timing
        self.wait_strategy = WaitStrategy.from_timing(self.timing)

    # ========== 批量/单字段 ==========

    async def apply_fields(
        self, page: Any, descriptors: Sequence[FieldDescriptor]
    ) -> FieldBatchResult:
        """按顺序修改字段, 单个字段失败不影响其余字段.

        Args:
            page: Playwright Page
            descriptors: 字段请求列表

        Returns:
            批量结果
        """
        outcomes = []
        for descriptor in descriptors:
            outcomes.append(await self.apply_field(page, descriptor))

        batch = FieldBatchResult(outcomes=outcomes)
        if batch.all_succeeded:
            logger.success(f"✓ 字段修改完成: {batch.summary()}")
        else:
            failed = ", ".join(o.descriptor.label for o in batch.failed_outcomes())
            logger.warning(f"字段修改部分失败: {batch.summary()} 失败字段: {failed}")
        return batch

    async def apply_field(self, page: Any, descriptor: FieldDescriptor) -> FieldOutcome:
        """修改单个字段.

        字段级错误(元素不存在, 步骤超时, 浏览器拒绝操作)转为失败结果返回.
        """
        try:
            outcome = await self._apply(page, descriptor)
        except AutomationError as exc:
            if exc.fatal:
                raise
            logger.warning(f"字段 {descriptor.label} 失败: {exc}")
            return FieldOutcome(
                descriptor=descriptor, status=FieldStatus.FAILED, error=exc.to_detail()
            )

        logger.debug(
            f"字段 {descriptor.label}: {outcome.status.value} (type={outcome.element_type})"
        )
        return outcome

    async def _apply(self, page: Any, descriptor: FieldDescriptor) -> FieldOutcome:
        match = await wait_for_any(
            page,
            [descriptor.selector],
            self.timing.element_timeout_ms,
            interval_ms=self.timing.poll_interval_ms,
            backoff_factor=self.timing.backoff_factor,
            max_interval_ms=self.timing.max_poll_interval_ms,
            context_name=descriptor.label,
        )
        if match is None:
            raise ElementNotFound(
                f"未找到字段元素: {descriptor.label}", selector=descriptor.selector
            )

        locator = match.locator
        element_type = None
        try:
            element_type = await self._element_type(locator)
            interaction = interaction_for(element_type, descriptor.field_type)
            if interaction is None:
                return self._failed(
                    descriptor,
                    ErrorKind.UNSUPPORTED_FIELD,
                    f"不支持的元素类型: {element_type}",
                    element_type,
                )

            handler = {
                "text": self._apply_text,
                "toggle": self._apply_toggle,
                "select": self._apply_select,
                "script": self._apply_script_value,
            }[interaction]
            return await handler(locator, descriptor, element_type)
        except PlaywrightTimeoutError as exc:
            raise ActionTimeout(
                f"字段操作超时: {descriptor.label}", selector=descriptor.selector
            ) from exc
        except PlaywrightError as exc:
            # 例如 number 输入框填入非数字, 非表单元素不可编辑
            logger.warning(f"字段 {descriptor.label} 操作失败: {exc.message}")
            return self._failed(
                descriptor, ErrorKind.INTERACTION_FAILED, exc.message, element_type
            )

    async def _element_type(self, locator: Any) -> str:
        element_type = await locator.evaluate(ELEMENT_TYPE_SCRIPT)
        return str(element_type or "").lower()

    # ========== 各类交互 ==========

    async def _apply_text(
        self, locator: Any, descriptor: FieldDescriptor, element_type: str
    ) -> FieldOutcome:
        timeout = self.timing.action_timeout_ms
        desired = descriptor.as_text()
        if element_type in TEXT_TYPES:
            read = locator.input_value
        else:
            # 按语义类型兜底的非表单元素, fill 只对 contenteditable 有效
            read = locator.inner_text

        if await read(timeout=timeout) == desired:
            return self._unchanged(descriptor, element_type, desired)

        # fill 先清空再输入
        await locator.fill(desired, timeout=timeout)
        actual = await read(timeout=timeout)
        return self._verified(descriptor, element_type, desired, actual)

    async def _apply_toggle(
        self, locator: Any, descriptor: FieldDescriptor, element_type: str
    ) -> FieldOutcome:
        timeout = self.timing.action_timeout_ms
        try:
            desired = descriptor.as_bool()
        except ValueError as exc:
            return self._failed(descriptor, ErrorKind.UNSUPPORTED_FIELD, str(exc), element_type)

        if await locator.is_checked(timeout=timeout) == desired:
            return self._unchanged(descriptor, element_type, desired)

        await locator.click(timeout=timeout)
        actual = await locator.is_checked(timeout=timeout)
        return self._verified(descriptor, element_type, desired, actual)

    async def _apply_select(
        self, locator: Any, descriptor: FieldDescriptor, element_type: str
    ) -> FieldOutcome:
        timeout = self.timing.action_timeout_ms
        desired = descriptor.as_text()

        options = await locator.evaluate(SELECT_OPTIONS_SCRIPT)
        values = [value for value, _ in options]
        by_label = {label: value for value, label in options}
        if desired in values:
            target_value = desired
        elif desired in by_label:
            target_value = by_label[desired]
        else:
            return self._failed(
                descriptor,
                ErrorKind.UNSUPPORTED_FIELD,
                f"下拉框中不存在选项: {desired}",
                element_type,
            )

        if await locator.input_value(timeout=timeout) == target_value:
            return self._unchanged(descriptor, element_type, target_value)

        await locator.select_option(value=target_value, timeout=timeout)
        actual = await locator.input_value(timeout=timeout)
        return self._verified(descriptor, element_type, target_value, actual)

    async def _apply_script_value(
        self, locator: Any, descriptor: FieldDescriptor, element_type: str
    ) -> FieldOutcome:
        """颜色/滑块等无法 fill 的输入, 直接赋值并派发 input/change 事件."""

        timeout = self.timing.action_timeout_ms
        desired = descriptor.as_text()

        if (await locator.input_value(timeout=timeout)).lower() == desired.lower():
            return self._unchanged(descriptor, element_type, desired)

        await locator.evaluate(SET_VALUE_SCRIPT, desired)
        actual = await locator.input_value(timeout=timeout)
        return self._verified(descriptor, element_type, desired.lower(), actual.lower())

    # ========== 编辑器内容 ==========

    async def apply_title(self, page: Any, strategy: EditorStrategy, title: str) -> FieldOutcome:
        """通过编辑器策略写入标题并回读校验."""

        descriptor = FieldDescriptor(
            selector=strategy.title_selector, value=title, name="title"
        )
        return await self._apply_with_strategy(
            descriptor, strategy.apply_title, strategy.read_title, page, title
        )

    async def apply_content(self, page: Any, strategy: EditorStrategy, text: str) -> FieldOutcome:
        """通过编辑器策略写入正文并回读校验.

        Args:
            page: Playwright Page
            strategy: 已识别的编辑器策略
            text: 正文内容

        Returns:
            正文字段结果
        """
        descriptor = FieldDescriptor(
            selector=strategy.content_selector, value=text, name="content"
        )
        return await self._apply_with_strategy(
            descriptor, strategy.apply_content, strategy.read_content, page, text
        )

    async def _apply_with_strategy(self, descriptor, write, read, page, text) -> FieldOutcome:
        element_type = "editor"
        try:
            try:
                await write(page, text)
                actual = await read(page)
            except PlaywrightTimeoutError as exc:
                raise ActionTimeout(
                    f"编辑器操作超时: {descriptor.label}", selector=descriptor.selector
                ) from exc
        except PlaywrightError as exc:
            logger.warning(f"编辑器字段 {descriptor.label} 操作失败: {exc.message}")
            return self._failed(descriptor, ErrorKind.INTERACTION_FAILED, exc.message, element_type)
        except AutomationError as exc:
            if exc.fatal:
                raise
            logger.warning(f"编辑器字段 {descriptor.label} 失败: {exc}")
            return FieldOutcome(
                descriptor=descriptor, status=FieldStatus.FAILED, error=exc.to_detail()
            )

        outcome = self._verified(descriptor, element_type, text.strip(), actual.strip())
        logger.debug(f"编辑器字段 {descriptor.label}: {outcome.status.value}")
        return outcome

    # ========== 提交 ==========

    async def submit(
        self,
        page: Any,
        selector: str,
        success_markers: Sequence[str] = (),
        error_markers: Sequence[str] = (),
    ) -> str | None:
        """点击提交按钮并等待结果提示.

        Args:
            page: Playwright Page
            selector: 提交按钮选择器
            success_markers: 成功提示选择器
            error_markers: 错误提示选择器

        Returns:
            命中的成功标记选择器, 未提供标记时返回 None

        Raises:
            ElementNotFound: 提交按钮不存在
            ActionTimeout: 点击超时或提示未出现
            SubmissionRejected: 出现错误提示
        """
        timing = self.timing
        match = await wait_for_any(
            page, [selector], timing.element_timeout_ms,
            interval_ms=timing.poll_interval_ms, context_name="提交按钮",
        )
        if match is None:
            raise ElementNotFound(f"未找到提交按钮: {selector}", selector=selector)

        waiter = PageWaiter(page, self.wait_strategy)
        clicked = await waiter.safe_click(
            match.locator, timeout_ms=timing.action_timeout_ms, wait_after=False, name="提交按钮"
        )
        if not clicked:
            raise ActionTimeout(f"提交按钮点击超时: {selector}", selector=selector)
        await waiter.wait_for_network_idle(timing.navigation_timeout_ms)

        errors = list(error_markers)
        markers = errors + list(success_markers)
        if not markers:
            await waiter.wait_for_dom_stable()
            return None

        result = await wait_for_any(
            page,
            markers,
            timing.action_timeout_ms,
            interval_ms=timing.poll_interval_ms,
            backoff_factor=timing.backoff_factor,
            max_interval_ms=timing.max_poll_interval_ms,
            context_name="提交结果",
        )
        if result is None:
            raise ActionTimeout("提交后未出现结果提示", selector=selector)
        if result.index < len(errors):
            text = (await result.locator.inner_text()).strip()
            raise SubmissionRejected(text or "提交失败", selector=result.selector)

        logger.success(f"✓ 提交成功 ({result.selector})")
        return result.selector

    # ========== 结果构造 ==========

    @staticmethod
    def _unchanged(descriptor: FieldDescriptor, element_type: str, actual: Any) -> FieldOutcome:
        return FieldOutcome(
            descriptor=descriptor,
            status=FieldStatus.UNCHANGED,
            element_type=element_type,
            actual=actual,
        )

    @staticmethod
    def _verified(
        descriptor: FieldDescriptor, element_type: str, desired: Any, actual: Any
    ) -> FieldOutcome:
        if actual == desired:
            return FieldOutcome(
                descriptor=descriptor,
                status=FieldStatus.APPLIED,
                element_type=element_type,
                actual=actual,
            )
        return FieldOutcome(
            descriptor=descriptor,
            status=FieldStatus.FAILED,
            element_type=element_type,
            actual=actual,
            error=ErrorDetail(
                kind=ErrorKind.VERIFICATION_MISMATCH.value,
                message=f"回读值不一致: 期望 {desired!r}, 实际 {actual!r}",
            ),
        )

    @staticmethod
    def _failed(
        descriptor: FieldDescriptor, kind: ErrorKind, message: str, element_type: str | None
    ) -> FieldOutcome:
        return FieldOutcome(
            descriptor=descriptor,
            status=FieldStatus.FAILED,
            element_type=element_type,
            error=ErrorDetail(kind=kind.value, message=message),
        )
