"""
@PURPOSE: 数据模型模块，使用Pydantic定义请求与结果结构
@OUTLINE:
  - FieldType, FieldDescriptor, NavigationTarget, AdminRequest: 请求模型
  - ErrorDetail, FieldStatus, FieldOutcome, FieldBatchResult, ActionResult: 结果模型
@DEPENDENCIES:
  - 内部: .request, .result
"""

from .request import AdminRequest, FieldDescriptor, FieldType, NavigationTarget
from .result import ActionResult, ErrorDetail, FieldBatchResult, FieldOutcome, FieldStatus

__all__ = [
    "ActionResult",
    "AdminRequest",
    "ErrorDetail",
    "FieldBatchResult",
    "FieldDescriptor",
    "FieldOutcome",
    "FieldStatus",
    "FieldType",
    "NavigationTarget",
]
