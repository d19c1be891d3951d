"""
@PURPOSE: WordPress 后台浏览器自动化引擎
@OUTLINE:
  - AutomationEngine: 执行一次后台操作请求
  - AdminRequest / ActionResult: 请求与结果模型
  - AdminFlows: 常用后台流程
@DEPENDENCIES:
  - 外部: playwright, loguru, pydantic, pydantic-settings, pyyaml, typer, rich
"""

__version__ = "1.0.0"

from .core.engine import AutomationEngine
from .models import ActionResult, AdminRequest, FieldDescriptor, FieldType, NavigationTarget
from .workflows import AdminFlows

__all__ = [
    "ActionResult",
    "AdminFlows",
    "AdminRequest",
    "AutomationEngine",
    "FieldDescriptor",
    "FieldType",
    "NavigationTarget",
    "__version__",
]
