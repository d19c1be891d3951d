"""
@PURPOSE: 浏览器自动化引擎错误分类 - 会话级致命错误与字段级可聚合错误
@OUTLINE:
  - class ErrorKind: 错误类型枚举
  - class AutomationError: 引擎错误基类
  - class TimedOutError: 超时类错误基类
  - class LaunchFailure: 浏览器启动失败(致命,不重试)
  - class AuthFailure: 登录失败(携带远端错误文本)
  - class AuthTimeout: 登录结果等待超时
  - class NavigationTimeout: 导航超时
  - class ElementNotFound: 元素未找到(字段级,聚合到部分结果)
  - class EditorDetectionTimeout: 编辑器识别超时(内容编辑流程致命)
  - class ActionTimeout: 单步操作超时
  - class SubmissionRejected: 表单提交被拒绝(携带页面提示)
@GOTCHAS:
  - 会话级错误(启动/登录/导航/编辑器识别)会中止整个操作
  - 字段级错误(ElementNotFound/ActionTimeout)由 FieldInteractionEngine 转为字段结果,不向上抛出
@DEPENDENCIES:
  - 内部: models.result
@RELATED: core/engine.py, browser/field_engine.py
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from ..models.result import ErrorDetail


class ErrorKind(str, Enum):
    """错误类型."""

    LAUNCH_FAILURE = "launch_failure"
    AUTH_FAILURE = "auth_failure"
    AUTH_TIMEOUT = "auth_timeout"
    NAVIGATION_TIMEOUT = "navigation_timeout"
    ELEMENT_NOT_FOUND = "element_not_found"
    EDITOR_DETECTION_TIMEOUT = "editor_detection_timeout"
    ACTION_TIMEOUT = "action_timeout"
    VERIFICATION_MISMATCH = "verification_mismatch"
    UNSUPPORTED_FIELD = "unsupported_field"
    INTERACTION_FAILED = "interaction_failed"
    SUBMISSION_REJECTED = "submission_rejected"
    UNEXPECTED = "unexpected"


class AutomationError(Exception):
    """引擎错误基类.

    Attributes:
        kind: 错误类型
        message: 可读错误信息
        details: 附加诊断信息
    """

    kind: ErrorKind = ErrorKind.UNEXPECTED
    fatal: bool = True

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    @property
    def is_timeout(self) -> bool:
        return isinstance(self, TimedOutError)

    def to_detail(self) -> ErrorDetail:
        """转换为结果中的结构化错误."""

        return ErrorDetail(
            kind=self.kind.value,
            message=self.message,
            timed_out=self.is_timeout,
            details={key: str(value) for key, value in self.details.items()},
        )

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"


class TimedOutError(AutomationError):
    """超时类错误基类(所有有界等待超时都归入此类)."""


class LaunchFailure(AutomationError):
    """浏览器启动失败, 致命且不重试."""

    kind = ErrorKind.LAUNCH_FAILURE


class AuthFailure(AutomationError):
    """登录失败, message 为远端页面的错误提示文本."""

    kind = ErrorKind.AUTH_FAILURE


class AuthTimeout(TimedOutError):
    """提交凭据后既未出现成功标记也未出现错误标记."""

    kind = ErrorKind.AUTH_TIMEOUT


class NavigationTimeout(TimedOutError):
    """导航未在超时内到达稳定状态或标记元素."""

    kind = ErrorKind.NAVIGATION_TIMEOUT


class ElementNotFound(AutomationError):
    """目标元素不存在(字段级, 非致命)."""

    kind = ErrorKind.ELEMENT_NOT_FOUND
    fatal = False


class EditorDetectionTimeout(TimedOutError):
    """未能在超时内识别编辑器类型."""

    kind = ErrorKind.EDITOR_DETECTION_TIMEOUT


class SubmissionRejected(AutomationError):
    """提交后页面出现错误提示, message 为提示文本."""

    kind = ErrorKind.SUBMISSION_REJECTED


class ActionTimeout(TimedOutError):
    """单个操作步骤(输入/点击/选择/截图)超时."""

    kind = ErrorKind.ACTION_TIMEOUT
    fatal = False


__all__ = [
    "ActionTimeout",
    "AuthFailure",
    "AuthTimeout",
    "AutomationError",
    "EditorDetectionTimeout",
    "ElementNotFound",
    "ErrorKind",
    "LaunchFailure",
    "NavigationTimeout",
    "SubmissionRejected",
    "TimedOutError",
]
