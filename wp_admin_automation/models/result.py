"""
@PURPOSE: 定义浏览器自动化执行结果的数据结构
@OUTLINE:
  - class ErrorDetail: 结构化错误
  - class FieldStatus: 字段执行状态枚举
  - class FieldOutcome: 单个字段的执行结果
  - class FieldBatchResult: 批量字段执行汇总
  - class ActionResult: 一次后台操作的最终结果(含截图路径)
@DEPENDENCIES:
  - 外部: pydantic
@RELATED: browser/action_capture.py, browser/field_engine.py
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from .request import FieldDescriptor


class ErrorDetail(BaseModel):
    """结构化错误.

    Attributes:
        kind: 错误类型(ErrorKind 的值)
        message: 错误信息
        timed_out: 是否为超时类错误
        details: 附加诊断信息
    """

    kind: str = Field(..., description="错误类型")
    message: str = Field(..., description="错误信息")
    timed_out: bool = Field(default=False, description="是否超时")
    details: dict[str, str] = Field(default_factory=dict, description="附加信息")


class FieldStatus(str, Enum):
    """字段执行状态."""

    APPLIED = "applied"  # 已修改并校验通过
    UNCHANGED = "unchanged"  # 已是期望状态, 未执行操作
    FAILED = "failed"


class FieldOutcome(BaseModel):
    """单个字段的执行结果.

    Attributes:
        descriptor: 原始字段请求(便于调用方选择性重试)
        status: 执行状态
        element_type: 页面元素声明的类型
        actual: 回读到的实际值
        error: 失败原因
    """

    descriptor: FieldDescriptor
    status: FieldStatus
    element_type: str | None = Field(default=None, description="元素类型")
    actual: Any = Field(default=None, description="回读值")
    error: ErrorDetail | None = Field(default=None, description="失败原因")

    @property
    def succeeded(self) -> bool:
        return self.status is not FieldStatus.FAILED


class FieldBatchResult(BaseModel):
    """批量字段执行汇总."""

    outcomes: list[FieldOutcome] = Field(default_factory=list)

    @property
    def applied_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status is FieldStatus.APPLIED)

    @property
    def unchanged_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status is FieldStatus.UNCHANGED)

    @property
    def succeeded_count(self) -> int:
        return sum(1 for o in self.outcomes if o.succeeded)

    @property
    def failed_count(self) -> int:
        return sum(1 for o in self.outcomes if not o.succeeded)

    @property
    def all_succeeded(self) -> bool:
        return self.failed_count == 0

    def failed_outcomes(self) -> list[FieldOutcome]:
        return [o for o in self.outcomes if not o.succeeded]

    def failed_descriptors(self) -> list[FieldDescriptor]:
        """返回失败字段的原始请求, 供调用方选择性重试."""

        return [o.descriptor for o in self.failed_outcomes()]

    def summary(self) -> str:
        return (
            f"{self.succeeded_count}/{len(self.outcomes)} 成功"
            f" (修改 {self.applied_count}, 无需修改 {self.unchanged_count},"
            f" 失败 {self.failed_count})"
        )


class ActionResult(BaseModel):
    """后台操作最终结果.

    Attributes:
        success: 是否成功
        partial: 是否部分成功
        message: 可读信息
        operation: 操作名称
        entity: 实体标识
        screenshot_path: 审计截图路径(修改类流程必有)
        error: 结构化错误(失败时)
        fields: 字段批量执行结果
        data: 附加数据(如新建内容 ID)
        execution_time: 执行耗时(秒)
        completed_at: 完成时间
    """

    success: bool = Field(..., description="是否成功")
    partial: bool = Field(default=False, description="是否部分成功(部分字段失败)")
    message: str = Field(..., description="可读信息")
    operation: str = Field(default="", description="操作名称")
    entity: str = Field(default="", description="实体标识")
    screenshot_path: str | None = Field(default=None, description="审计截图路径")
    error: ErrorDetail | None = Field(default=None, description="结构化错误")
    fields: FieldBatchResult | None = Field(default=None, description="字段执行结果")
    data: dict[str, Any] = Field(default_factory=dict, description="附加数据")
    execution_time: float = Field(default=0.0, description="执行耗时")
    completed_at: str = Field(
        default_factory=lambda: datetime.now().isoformat(), description="完成时间"
    )
