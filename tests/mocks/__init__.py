"""
@PURPOSE: 测试 Mock 模块, 提供 Playwright 对象与 WordPress 后台的模拟
@OUTLINE:
  - dom_mock: 内存 DOM(FakeDom, FakeElement)
  - browser_mock: 页面相关 Mock(MockPage, MockLocator, MockFrame)
  - playwright_mock: Playwright 核心对象 Mock
  - wordpress_mock: WordPress 后台模拟器与页面构造器
"""

from .browser_mock import MockConsoleMessage, MockFrame, MockLocator, MockPage, MockResponse
from .dom_mock import FakeDom, FakeElement
from .playwright_mock import (
    MockAsyncPlaywright,
    MockBrowser,
    MockBrowserContext,
    MockBrowserType,
    MockPlaywright,
)
from .wordpress_mock import (
    FakeWordPress,
    add_paragraph,
    block_editor_page,
    classic_text_page,
    classic_visual_page,
    plugins_page,
    settings_page,
)

__all__ = [
    "FakeDom",
    "FakeElement",
    "FakeWordPress",
    "MockAsyncPlaywright",
    "MockBrowser",
    "MockBrowserContext",
    "MockBrowserType",
    "MockConsoleMessage",
    "MockFrame",
    "MockLocator",
    "MockPage",
    "MockPlaywright",
    "MockResponse",
    "add_paragraph",
    "block_editor_page",
    "classic_text_page",
    "classic_visual_page",
    "plugins_page",
    "settings_page",
]
