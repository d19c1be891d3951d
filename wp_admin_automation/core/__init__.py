"""
@PURPOSE: 核心模块，错误分类与自动化引擎
@OUTLINE:
  - errors: 错误分类
  - engine.AutomationEngine: 自动化引擎(从 wp_admin_automation.core.engine 导入)
@GOTCHAS:
  - 本文件只导出错误类, engine 依赖 browser 包, 在此导入会造成循环导入
"""

from .errors import (
    ActionTimeout,
    AuthFailure,
    AuthTimeout,
    AutomationError,
    EditorDetectionTimeout,
    ElementNotFound,
    ErrorKind,
    LaunchFailure,
    NavigationTimeout,
    SubmissionRejected,
    TimedOutError,
)

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
