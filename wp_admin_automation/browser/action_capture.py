"""
@PURPOSE: 操作结果记录 - 保存审计截图并构造统一的 ActionResult
@OUTLINE:
  - def build_screenshot_name(): 生成截图文件名
  - class ActionCapture: 截图与结果构造
    - async def capture(): 保存整页截图并返回路径
    - def success(): 成功结果
    - def partial(): 部分成功结果(部分字段失败)
    - def failure(): 失败结果
    - def from_error(): 由 AutomationError 构造失败结果
@GOTCHAS:
  - 文件名包含微秒时间戳和随机后缀, 同一毫秒内多次截图不会覆盖
  - 截图超时抛 ActionTimeout
@DEPENDENCIES:
  - 外部: playwright, loguru
  - 内部: models.result, core.errors
@RELATED: core/engine.py
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any

from loguru import logger
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..config.settings import Settings, get_settings
from ..core.errors import ActionTimeout, AutomationError
from ..models.result import ActionResult, ErrorDetail, FieldBatchResult

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


def _safe(part: str) -> str:
    return _UNSAFE_CHARS.sub("_", part).strip("_") or "none"


def build_screenshot_name(action: str, entity: str, now: datetime | None = None) -> str:
    """生成截图文件名: {action}-{entity}-{时间戳}-{随机后缀}.png.

    Examples:
        >>> build_screenshot_name("update_settings", "general").startswith("update_settings-general-")
        True
    """
    timestamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S-%f")
    return f"{_safe(action)}-{_safe(entity)}-{timestamp}-{uuid.uuid4().hex[:8]}.png"


class ActionCapture:
    """截图与结果构造."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    @property
    def screenshot_dir(self) -> Path:
        return self.settings.get_absolute_path(self.settings.capture.screenshot_dir)

    async def capture(self, page: Any, entity: str, action: str) -> str:
        """保存整页截图.

        Args:
            page: Playwright Page
            entity: 实体标识
            action: 操作名称

        Returns:
            截图文件路径

        Raises:
            ActionTimeout: 截图超时
        """
        path = self.screenshot_dir / build_screenshot_name(action, entity)
        path.parent.mkdir(parents=True, exist_ok=True)

        try:
            await page.screenshot(
                path=str(path),
                full_page=self.settings.capture.full_page,
                timeout=self.settings.timing.screenshot_timeout_ms,
            )
        except PlaywrightTimeoutError as exc:
            raise ActionTimeout(f"截图超时: {path.name}", path=str(path)) from exc

        logger.debug(f"截图已保存: {path}")
        return str(path)

    # ========== 结果构造 ==========

    @staticmethod
    def success(
        message: str,
        *,
        operation: str = "",
        entity: str = "",
        screenshot_path: str | None = None,
        fields: FieldBatchResult | None = None,
        data: dict[str, Any] | None = None,
    ) -> ActionResult:
        return ActionResult(
            success=True,
            message=message,
            operation=operation,
            entity=entity,
            screenshot_path=screenshot_path,
            fields=fields,
            data=data or {},
        )

    @staticmethod
    def partial(
        fields: FieldBatchResult,
        *,
        operation: str = "",
        entity: str = "",
        screenshot_path: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> ActionResult:
        """部分字段失败的结果, error 取第一个失败字段的错误."""

        failed = fields.failed_outcomes()
        return ActionResult(
            success=False,
            partial=True,
            message=f"部分字段失败: {fields.summary()}",
            operation=operation,
            entity=entity,
            screenshot_path=screenshot_path,
            error=failed[0].error if failed else None,
            fields=fields,
            data=data or {},
        )

    @staticmethod
    def failure(
        message: str,
        *,
        error: ErrorDetail | None = None,
        operation: str = "",
        entity: str = "",
        screenshot_path: str | None = None,
        fields: FieldBatchResult | None = None,
    ) -> ActionResult:
        return ActionResult(
            success=False,
            message=message,
            operation=operation,
            entity=entity,
            screenshot_path=screenshot_path,
            error=error,
            fields=fields,
        )

    @classmethod
    def from_error(
        cls,
        exc: AutomationError,
        *,
        operation: str = "",
        entity: str = "",
        screenshot_path: str | None = None,
    ) -> ActionResult:
        return cls.failure(
            exc.message,
            error=exc.to_detail(),
            operation=operation,
            entity=entity,
            screenshot_path=screenshot_path,
        )
