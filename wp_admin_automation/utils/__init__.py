"""
@PURPOSE: 工具模块，提供等待、选择器轮询和日志设置
@DEPENDENCIES:
  - 内部: .page_waiter, .selector_race, .logger_setup
"""

from .logger_setup import get_logger_with_context, log_section, setup_logger
from .page_waiter import PageWaiter, WaitStrategy
from .selector_race import SelectorMatch, try_selectors_race, wait_for_any

__all__ = [
    "PageWaiter",
    "SelectorMatch",
    "WaitStrategy",
    "get_logger_with_context",
    "log_section",
    "setup_logger",
    "try_selectors_race",
    "wait_for_any",
]
