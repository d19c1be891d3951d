"""
@PURPOSE: 应用配置管理，使用Pydantic Settings管理配置，支持多环境和从YAML加载
@OUTLINE:
  - class WordPressConfig: 站点与凭据配置
  - class BrowserConfig: 浏览器启动配置
  - class TimingConfig: 超时与轮询配置
  - class CaptureConfig: 截图配置
  - class LoggingConfig: 日志配置
  - class Settings: 应用配置主类
  - def load_environment_config(): 加载环境YAML(支持别名引用)
  - def create_settings(): 创建配置实例
  - def get_settings(): 获取全局配置实例(缓存)
  - def load_selectors(): 加载选择器配置(与默认值合并)
@GOTCHAS:
  - 敏感信息(应用密码)应存储在.env文件中, 不要提交到git
  - 环境配置文件优先级: 环境变量 > YAML > 默认值
  - 环境YAML文件不存在时使用默认值
@DEPENDENCIES:
  - 外部: pydantic, pydantic_settings, pyyaml
@RELATED: __init__.py, wp_selectors.json
"""

import copy
import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from loguru import logger
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_DIR = Path(__file__).parent
SELECTOR_FILE = CONFIG_DIR / "wp_selectors.json"


# ========== 子配置类 ==========

class WordPressConfig(BaseSettings):
    """站点与凭据配置.

    Attributes:
        site_url: 站点根地址(不含 /wp-admin)
        admin_path: 后台路径前缀
        username: 管理员用户名
        app_password: 应用密码(凭据)
    """

    model_config = SettingsConfigDict(env_prefix="WP_", extra="ignore")

    site_url: str = Field(default="https://example.com", description="站点根地址")
    admin_path: str = Field(default="/wp-admin", description="后台路径前缀")
    username: str = Field(default="", description="管理员用户名")
    app_password: str = Field(default="", description="应用密码")

    @field_validator("site_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("admin_path")
    @classmethod
    def normalize_admin_path(cls, v: str) -> str:
        v = "/" + v.strip("/")
        return "" if v == "/" else v


class BrowserConfig(BaseSettings):
    """浏览器配置.

    Attributes:
        browser_type: 浏览器类型
        headless: 无头模式
        slow_mo: 慢速模式(毫秒)
        timeout: 页面默认超时(毫秒)
        viewport: 视口大小
        sandbox_args: 沙箱相关启动参数
        extra_args: 追加启动参数
        console_buffer_size: 保留的控制台消息条数
    """

    model_config = SettingsConfigDict(env_prefix="BROWSER_", extra="ignore")

    browser_type: str = Field(default="chromium", description="浏览器类型: chromium/firefox/webkit")
    headless: bool = Field(default=True, description="无头模式")
    slow_mo: int = Field(default=0, ge=0, description="慢速模式(毫秒)")
    timeout: int = Field(default=30000, ge=1, description="默认超时(毫秒)")
    viewport: Dict[str, int] = Field(
        default={"width": 1920, "height": 1080},
        description="视口大小",
    )
    sandbox_args: List[str] = Field(
        default=["--no-sandbox", "--disable-setuid-sandbox", "--disable-dev-shm-usage"],
        description="沙箱相关启动参数",
    )
    extra_args: List[str] = Field(default_factory=list, description="追加启动参数")
    console_buffer_size: int = Field(default=200, ge=0, description="控制台消息缓存条数")


class TimingConfig(BaseSettings):
    """超时与轮询配置(毫秒).

    Attributes:
        launch_timeout_ms: 浏览器启动超时
        navigation_timeout_ms: 导航超时
        auth_timeout_ms: 登录结果等待超时
        editor_detection_timeout_ms: 编辑器识别超时
        element_timeout_ms: 元素定位超时
        action_timeout_ms: 单步操作超时
        screenshot_timeout_ms: 截图超时
        poll_interval_ms: 轮询初始间隔
        backoff_factor: 轮询退避因子
        max_poll_interval_ms: 轮询最大间隔
        max_attempts: 轮询最大次数
    """

    model_config = SettingsConfigDict(env_prefix="TIMING_", extra="ignore")

    launch_timeout_ms: int = Field(default=30000, ge=1)
    navigation_timeout_ms: int = Field(default=30000, ge=1)
    auth_timeout_ms: int = Field(default=15000, ge=1)
    editor_detection_timeout_ms: int = Field(default=10000, ge=1)
    element_timeout_ms: int = Field(default=3000, ge=1)
    action_timeout_ms: int = Field(default=5000, ge=1)
    screenshot_timeout_ms: int = Field(default=15000, ge=1)
    poll_interval_ms: int = Field(default=100, ge=1)
    backoff_factor: float = Field(default=1.5, ge=1.0)
    max_poll_interval_ms: int = Field(default=1000, ge=1)
    max_attempts: int = Field(default=40, ge=1)


class CaptureConfig(BaseSettings):
    """截图配置.

    Attributes:
        screenshot_dir: 截图目录
        full_page: 是否整页截图
    """

    model_config = SettingsConfigDict(env_prefix="CAPTURE_", extra="ignore")

    screenshot_dir: str = Field(default="data/screenshots", description="截图目录")
    full_page: bool = Field(default=True, description="整页截图")


class LoggingConfig(BaseSettings):
    """日志配置.

    Attributes:
        level: 日志级别
        format: 日志格式(detailed/json/simple)
        output: 输出目标列表
        file_path: 文件路径
        rotation: 轮转大小
        retention: 保留时间
    """

    model_config = SettingsConfigDict(env_prefix="LOG_", extra="ignore")

    level: str = Field(default="INFO", description="日志级别")
    format: str = Field(default="detailed", description="日志格式")
    output: List[str] = Field(default=["console"], description="输出目标")
    file_path: str = Field(default="data/logs/wp_admin.log", description="文件路径")
    rotation: str = Field(default="10 MB", description="轮转大小")
    retention: str = Field(default="7 days", description="保留时间")


# ========== 主配置类 ==========

class Settings(BaseSettings):
    """应用配置主类.

    从环境变量、.env文件和YAML配置文件加载配置。
    优先级：环境变量 > YAML > 默认值

    Examples:
        >>> from wp_admin_automation.config import get_settings
        >>> get_settings().wordpress.admin_path
        '/wp-admin'
    """

    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("environment", "ENVIRONMENT"),
        description="运行环境",
    )
    base_dir: str = Field(default="", description="相对路径解析根目录, 为空则使用当前工作目录")

    wordpress: WordPressConfig = Field(default_factory=WordPressConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    timing: TimingConfig = Field(default_factory=TimingConfig)
    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",  # 支持 BROWSER__HEADLESS=false
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """验证环境名称."""
        valid_envs = ["development", "staging", "production"]
        if v not in valid_envs:
            raise ValueError(f"环境必须是: {valid_envs}")
        return v

    def get_absolute_path(self, relative_path: str) -> Path:
        """将相对路径转换为绝对路径.

        Args:
            relative_path: 相对路径

        Returns:
            绝对路径
        """
        path = Path(relative_path)
        if path.is_absolute():
            return path
        base = Path(self.base_dir) if self.base_dir else Path.cwd()
        return base / path

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典（隐藏敏感信息）."""
        data = self.model_dump()
        if data.get("wordpress", {}).get("app_password"):
            data["wordpress"]["app_password"] = "***"
        return data


# ========== 配置加载 ==========

def load_environment_config(env: str = "development", config_dir: Optional[Path] = None) -> Dict[str, Any]:
    """从YAML文件加载环境配置，支持别名引用.

    Args:
        env: 环境名称
        config_dir: 环境配置目录, 默认 config/environments

    Returns:
        环境配置字典, 文件不存在时返回空字典
    """

    config_dir = config_dir or CONFIG_DIR / "environments"
    target_file = config_dir / f"{env}.yaml"

    def _load(file_path: Path, seen: set[Path]) -> Dict[str, Any]:
        if file_path in seen:
            raise ValueError(f"检测到环境配置的循环引用: {file_path}")
        seen.add(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"环境配置文件不存在: {file_path}")

        with file_path.open("r", encoding="utf-8") as handle:
            content = yaml.safe_load(handle)

        if content is None:
            return {}

        if isinstance(content, str):
            alias = content.strip()
            if not alias:
                raise ValueError(f"环境配置别名不能为空: {file_path}")

            if alias.endswith((".yaml", ".yml")):
                alias_file = file_path.parent / alias
            else:
                alias_file = file_path.parent / f"{alias}.yaml"

            return _load(alias_file, seen)

        if not isinstance(content, dict):
            raise TypeError(
                f"环境配置 {file_path} 必须是字典或别名字符串, 当前类型: {type(content).__name__}",
            )

        return content

    if not target_file.exists():
        logger.debug(f"环境配置文件不存在, 使用默认配置: {target_file}")
        return {}

    return _load(target_file, set())


def create_settings(env: Optional[str] = None, config_dir: Optional[Path] = None) -> Settings:
    """创建配置实例.

    环境变量中已设置的子配置项优先于 YAML 中的同名项.

    Args:
        env: 环境名称，如果为None则从环境变量获取
        config_dir: 环境配置目录

    Returns:
        配置实例
    """
    if env is None:
        env = os.getenv("ENVIRONMENT", "development")

    yaml_config = load_environment_config(env, config_dir)
    env_settings = Settings(environment=env)

    sections = {
        "wordpress": WordPressConfig,
        "browser": BrowserConfig,
        "timing": TimingConfig,
        "capture": CaptureConfig,
        "logging": LoggingConfig,
    }
    overrides: Dict[str, Any] = {}
    for name, config_cls in sections.items():
        from_env = getattr(env_settings, name)
        merged = dict(yaml_config.get(name, {}) or {})
        # 显式设置过的字段(环境变量/.env)覆盖 YAML
        merged.update(from_env.model_dump(exclude_unset=True))
        overrides[name] = config_cls(**merged)

    return env_settings.model_copy(update=overrides)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """获取全局配置实例."""

    return create_settings()


# ========== 选择器配置 ==========

DEFAULT_SELECTORS: Dict[str, Any] = {
    "login": {
        "page_marker": "wp-login.php",
        "form": "#loginform",
        "username_input": "#user_login",
        "password_input": "#user_pass",
        "submit_button": "#wp-submit",
        "error_markers": ["#login_error", ".login-error"],
        "success_markers": ["#wpadminbar", "#adminmenu"],
    },
    "admin": {
        "error_page": "body#error-page, .wp-die-message",
    },
    "editor": {
        "block_probe": (
            ".block-editor-writing-flow, body.block-editor-page, .edit-post-visual-editor"
        ),
        "classic_text_probe": "#wp-content-wrap.html-active",
        "classic_visual_probe": "#wp-content-wrap.tmce-active",
        "block_title": ".editor-post-title__input, .wp-block-post-title",
        "block_inserter_toggle": (
            ".block-editor-inserter__toggle, .edit-post-header-toolbar__inserter-toggle, "
            ".editor-document-tools__inserter-toggle"
        ),
        "block_paragraph_item": (
            ".editor-block-list-item-paragraph, .block-editor-block-types-list__item"
            "[class*='paragraph']"
        ),
        "block_paragraph_editable": (
            "[data-type='core/paragraph'] .block-editor-rich-text__editable, "
            "p.block-editor-rich-text__editable"
        ),
        "block_publish_toggle": ".editor-post-publish-panel__toggle",
        "block_publish_button": ".editor-post-publish-button",
        "block_publish_notice": ".components-snackbar, .post-publish-panel__postpublish",
        "classic_title": "#title",
        "classic_text_tab": "#content-html",
        "classic_textarea": "#content",
        "classic_frame_name": "content_ifr",
        "classic_frame_body": "body#tinymce",
        "classic_publish_button": "#publish",
        "classic_publish_notice": "#message.updated, #message.notice-success",
    },
    "notices": {
        "success": [
            "#setting-error-settings_updated",
            ".notice-success",
            "#message.updated",
            ".updated",
        ],
        "error": [".notice-error", ".error:not(.hidden)", "#setting-error-invalid"],
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_selectors(selector_path: Optional[str | Path] = None) -> Dict[str, Any]:
    """加载选择器配置.

    读取失败时记录警告并退回默认选择器, 文件中的项覆盖默认项.

    Args:
        selector_path: 选择器配置文件路径, 默认使用包内 wp_selectors.json

    Returns:
        选择器配置字典
    """
    selector_file = Path(selector_path) if selector_path else SELECTOR_FILE
    try:
        with open(selector_file, encoding="utf-8") as f:
            loaded = json.load(f)
    except Exception as e:
        logger.warning(f"加载选择器配置失败: {e}, 使用默认选择器")
        return copy.deepcopy(DEFAULT_SELECTORS)

    return _deep_merge(DEFAULT_SELECTORS, loaded)
