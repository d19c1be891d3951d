"""
@PURPOSE: Pytest配置文件，配置测试环境和fixtures
@OUTLINE:
  - pytest_configure(): 配置pytest
  - Settings fixtures: settings(缩短超时, 截图写入临时目录)
  - Mock fixtures: mock_page, mock_playwright, playwright_factory, fake_wp
  - Component fixtures: session_manager, auth, navigator, field_engine, engine
@DEPENDENCIES:
  - 外部: pytest, pytest-asyncio
  - 内部: tests.mocks, wp_admin_automation
"""

import sys
from pathlib import Path

import pytest

# 添加项目根目录到Python路径
app_root = Path(__file__).parent
if str(app_root) not in sys.path:
    sys.path.insert(0, str(app_root))

from tests.mocks import (  # noqa: E402
    FakeWordPress,
    MockAsyncPlaywright,
    MockPage,
    MockPlaywright,
)
from wp_admin_automation.browser.auth_controller import AuthController  # noqa: E402
from wp_admin_automation.browser.field_engine import FieldInteractionEngine  # noqa: E402
from wp_admin_automation.browser.navigator import Navigator  # noqa: E402
from wp_admin_automation.browser.session_manager import SessionManager  # noqa: E402
from wp_admin_automation.config.settings import (  # noqa: E402
    CaptureConfig,
    Settings,
    TimingConfig,
    WordPressConfig,
    load_selectors,
)
from wp_admin_automation.core.engine import AutomationEngine  # noqa: E402


def pytest_configure(config):
    """配置pytest."""
    # 标记注册
    config.addinivalue_line("markers", "asyncio: 标记异步测试")
    config.addinivalue_line("markers", "integration: 标记集成测试（需要浏览器环境）")
    config.addinivalue_line("markers", "slow: 标记慢速测试")


pytest_plugins = ("pytest_asyncio",)


# ============================================================
# 配置 Fixtures
# ============================================================


@pytest.fixture
def settings(tmp_path):
    """缩短超时的测试配置, 截图写入临时目录."""
    return Settings(
        base_dir=str(tmp_path),
        wordpress=WordPressConfig(
            site_url="https://wp.test",
            admin_path="/wp-admin",
            username="admin",
            app_password="secret",
        ),
        timing=TimingConfig(
            launch_timeout_ms=2000,
            navigation_timeout_ms=1000,
            auth_timeout_ms=400,
            editor_detection_timeout_ms=300,
            element_timeout_ms=150,
            action_timeout_ms=400,
            screenshot_timeout_ms=1000,
            poll_interval_ms=10,
            backoff_factor=1.5,
            max_poll_interval_ms=50,
            max_attempts=20,
        ),
        capture=CaptureConfig(screenshot_dir="screenshots", full_page=True),
    )


@pytest.fixture
def selectors():
    """默认选择器配置."""
    return load_selectors()


# ============================================================
# Mock Fixtures
# ============================================================


@pytest.fixture
def mock_page():
    """Mock Page 对象."""
    return MockPage()


@pytest.fixture
def mock_playwright(mock_page):
    """Mock Playwright 主对象(新建页面均返回 mock_page)."""
    return MockPlaywright(mock_page)


@pytest.fixture
def playwright_factory(mock_playwright):
    """替代 async_playwright 的工厂."""
    return lambda: MockAsyncPlaywright(mock_playwright)


@pytest.fixture
def fake_wp(mock_page):
    """接管 mock_page 导航的 WordPress 后台模拟器(未登录)."""
    return FakeWordPress().attach_to(mock_page)


# ============================================================
# 组件 Fixtures
# ============================================================


@pytest.fixture
def session_manager(settings, playwright_factory):
    """使用 Mock Playwright 的会话管理器."""
    return SessionManager(settings, playwright_factory=playwright_factory)


@pytest.fixture
def auth(settings, session_manager, selectors):
    """登录控制器."""
    return AuthController(settings, session_manager, selectors)


@pytest.fixture
def navigator(settings, auth, selectors):
    """导航器."""
    return Navigator(settings, auth, selectors)


@pytest.fixture
def field_engine(settings):
    """字段交互引擎."""
    return FieldInteractionEngine(settings)


@pytest.fixture
def engine(settings, session_manager):
    """使用 Mock Playwright 的自动化引擎."""
    return AutomationEngine(settings, session_manager=session_manager)
