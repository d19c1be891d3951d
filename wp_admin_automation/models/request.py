"""
@PURPOSE: 定义浏览器自动化请求的数据结构(导航目标,字段描述,管理操作请求)
@OUTLINE:
  - class FieldType: 字段语义类型枚举
  - class FieldDescriptor: 单个字段修改请求
  - class NavigationTarget: 导航目标(路径 + 到达标记)
  - class AdminRequest: 一次完整的后台操作请求
@GOTCHAS:
  - FieldDescriptor 只是请求对象, 不持有 DOM 引用, 消费一次即丢弃
  - 实际交互方式以页面元素声明的类型为准, field_type 仅用于取值转换和兜底
@DEPENDENCIES:
  - 外部: pydantic
@RELATED: models/result.py, browser/field_engine.py
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

_TRUTHY = {"1", "true", "yes", "on", "y", "checked"}
_FALSY = {"0", "false", "no", "off", "n", "", "unchecked"}


class FieldType(str, Enum):
    """字段语义类型."""

    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"


class FieldDescriptor(BaseModel):
    """单个字段修改请求.

    Attributes:
        selector: 目标元素选择器
        field_type: 语义类型(text/number/boolean/enum)
        value: 期望值
        name: 字段名称(用于日志与结果, 默认取选择器)

    Examples:
        >>> FieldDescriptor(selector="#blogname", value="My Site").label
        '#blogname'
    """

    selector: str = Field(..., min_length=1, description="目标元素选择器")
    field_type: FieldType = Field(default=FieldType.TEXT, description="语义类型")
    value: Any = Field(default=None, description="期望值")
    name: str | None = Field(default=None, description="字段名称")

    @property
    def label(self) -> str:
        return self.name or self.selector

    def as_text(self) -> str:
        """期望值的文本形式(输入框/下拉框使用)."""

        if self.value is None:
            return ""
        if isinstance(self.value, bool):
            return "1" if self.value else "0"
        if isinstance(self.value, float) and self.value.is_integer():
            return str(int(self.value))
        return str(self.value)

    def as_bool(self) -> bool:
        """期望值的布尔形式(复选框使用).

        Raises:
            ValueError: 值无法解释为布尔值
        """

        if isinstance(self.value, bool):
            return self.value
        if isinstance(self.value, (int, float)):
            return bool(self.value)
        text = str(self.value).strip().lower() if self.value is not None else ""
        if text in _TRUTHY:
            return True
        if text in _FALSY:
            return False
        raise ValueError(f"无法将 {self.value!r} 解释为布尔值 (field={self.label})")


class NavigationTarget(BaseModel):
    """导航目标.

    Attributes:
        path: 后台路径, 可带或不带 /wp-admin 前缀, 也可为同站点完整 URL
        markers: 确认到达的标记选择器(任一出现即视为到达)
        timeout_ms: 导航超时(毫秒), None 使用配置默认值
    """

    path: str = Field(..., description="后台路径")
    markers: list[str] = Field(default_factory=list, description="到达标记选择器")
    timeout_ms: int | None = Field(default=None, ge=1, description="导航超时(毫秒)")

    @field_validator("markers", mode="before")
    @classmethod
    def _split_markers(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value


class AdminRequest(BaseModel):
    """一次后台操作请求(由上层工具编排层构造).

    Attributes:
        operation: 操作名称(用于日志与截图文件名)
        entity: 实体标识(用于截图文件名)
        target: 导航目标
        fields: 字段修改列表(按顺序执行)
        title: 内容标题(仅内容编辑流程)
        content: 正文内容(仅内容编辑流程, 交由编辑器策略处理)
        submit_selector: 提交按钮选择器(设置保存类流程)
        success_markers: 提交成功标记
        error_markers: 提交失败标记
        publish: 是否通过编辑器策略发布内容
        mutating: 是否为修改类流程(修改类流程必须截图)
    """

    operation: str = Field(..., min_length=1, description="操作名称")
    entity: str = Field(default="", description="实体标识")
    target: NavigationTarget
    fields: list[FieldDescriptor] = Field(default_factory=list, description="字段修改列表")
    title: str | None = Field(default=None, description="内容标题")
    content: str | None = Field(default=None, description="正文内容")
    submit_selector: str | None = Field(default=None, description="提交按钮选择器")
    success_markers: list[str] = Field(default_factory=list, description="提交成功标记")
    error_markers: list[str] = Field(default_factory=list, description="提交失败标记")
    publish: bool = Field(default=False, description="是否发布内容")
    mutating: bool = Field(default=True, description="是否为修改类流程")

    @property
    def needs_editor(self) -> bool:
        """是否需要识别内容编辑器."""

        return self.content is not None or self.title is not None or self.publish
