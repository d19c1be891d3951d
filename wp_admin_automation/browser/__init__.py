"""
@PURPOSE: 浏览器模块，会话管理、登录、导航、编辑器识别与字段交互
@OUTLINE:
  - SessionManager / Session: 会话生命周期
  - AuthController: 登录
  - Navigator: 后台导航
  - EditorStrategyResolver / EditorStrategy: 编辑器识别与策略
  - FieldInteractionEngine: 字段修改
  - ActionCapture: 截图与结果构造
"""

from .action_capture import ActionCapture
from .auth_controller import AuthController
from .editor_resolver import EditorStrategyResolver
from .editor_strategies import (
    BlockEditorStrategy,
    ClassicTextStrategy,
    ClassicVisualStrategy,
    EditorCapabilities,
    EditorContext,
    EditorStrategy,
)
from .field_engine import FieldInteractionEngine
from .navigator import Navigator, build_admin_url
from .session_manager import Session, SessionManager, SessionState

__all__ = [
    "ActionCapture",
    "AuthController",
    "BlockEditorStrategy",
    "ClassicTextStrategy",
    "ClassicVisualStrategy",
    "EditorCapabilities",
    "EditorContext",
    "EditorStrategy",
    "EditorStrategyResolver",
    "FieldInteractionEngine",
    "Navigator",
    "Session",
    "SessionManager",
    "SessionState",
    "build_admin_url",
]
