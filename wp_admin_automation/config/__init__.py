"""
@PURPOSE: 配置模块，导出配置类与全局配置获取函数
@OUTLINE:
  - Settings: 应用配置主类
  - get_settings(): 全局配置实例
  - load_selectors(): 选择器配置
@DEPENDENCIES:
  - 内部: .settings
"""

from .settings import (
    BrowserConfig,
    CaptureConfig,
    LoggingConfig,
    Settings,
    TimingConfig,
    WordPressConfig,
    create_settings,
    get_settings,
    load_selectors,
)

__all__ = [
    "BrowserConfig",
    "CaptureConfig",
    "LoggingConfig",
    "Settings",
    "TimingConfig",
    "WordPressConfig",
    "create_settings",
    "get_settings",
    "load_selectors",
]
