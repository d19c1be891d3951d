"""
@PURPOSE: loguru 日志配置 - 控制台/文件输出, 三种格式, 会话上下文, 凭据脱敏
@OUTLINE:
  - def format_detailed(): 开发格式(带会话/操作/实体上下文)
  - def format_json(): 单行 JSON, 便于日志采集
  - def format_simple(): 时间 + 级别 + 消息
  - def setup_logger(): 按 LoggingConfig 重新配置全局 logger
  - def get_logger_with_context(): 绑定会话上下文
  - def log_section(): 操作开始的分隔标题
@GOTCHAS:
  - 只有入口(CLI)调用 setup_logger(), 导入本模块不改动全局 logger
  - 格式化函数的返回值会被 loguru 再当作格式串解析, 拼入的动态内容必须转义花括号
  - 应用密码出现在消息中时替换为 ***(登录失败的页面文本可能回显输入)
@DEPENDENCIES:
  - 外部: loguru
  - 内部: config.settings
"""

import json
import sys
from typing import Any, Callable, Dict, Optional

from loguru import logger

from ..config.settings import LoggingConfig, Settings, get_settings

CONTEXT_KEYS = ("session_id", "operation", "entity", "target")


def _escape(text: str) -> str:
    return text.replace("{", "{{").replace("}", "}}")


def _context_of(record: Dict[str, Any]) -> Dict[str, Any]:
    extra = record["extra"]
    return {key: extra[key] for key in CONTEXT_KEYS if extra.get(key)}


def format_detailed(record: Dict[str, Any]) -> str:
    """开发格式: 时间 | 级别 | 位置 [上下文] - 消息."""

    context = _context_of(record)
    if "session_id" in context:
        context["session_id"] = str(context["session_id"])[:8]
    suffix = ""
    if context:
        suffix = " [" + ", ".join(f"{key}={value}" for key, value in context.items()) + "]"

    return (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{line}</cyan>"
        + _escape(suffix)
        + " - <level>{message}</level>\n{exception}"
    )


def format_json(record: Dict[str, Any]) -> str:
    """单行 JSON 格式, 会话上下文放在 context 字段."""

    entry: Dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "module": record["name"],
        "line": record["line"],
        "message": record["message"],
    }
    context = _context_of(record)
    if context:
        entry["context"] = context

    exception = record["exception"]
    if exception:
        entry["error"] = f"{exception.type.__name__}: {exception.value}"

    return _escape(json.dumps(entry, ensure_ascii=False, default=str)) + "\n"


def format_simple(record: Dict[str, Any]) -> str:
    return "{time:HH:mm:ss} | {level: <8} | {message}\n"


FORMATTERS: Dict[str, Callable[[Dict[str, Any]], str]] = {
    "detailed": format_detailed,
    "json": format_json,
    "simple": format_simple,
}


def _redactor(secret: str) -> Callable[[Dict[str, Any]], bool]:
    def redact(record: Dict[str, Any]) -> bool:
        if secret and secret in record["message"]:
            record["message"] = record["message"].replace(secret, "***")
        return True

    return redact


def setup_logger(
    config: Optional[LoggingConfig] = None,
    force: bool = False,
    settings: Optional[Settings] = None,
) -> None:
    """按配置添加日志输出.

    Args:
        config: 日志配置, 默认 settings.logging
        force: 先移除已有的输出(包括 loguru 默认的 stderr)
        settings: 用于解析文件路径与脱敏的配置, 默认全局配置

    Examples:
        >>> setup_logger(force=True)
    """
    settings = settings or get_settings()
    config = config or settings.logging

    if force:
        logger.remove()

    formatter = FORMATTERS.get(config.format, format_detailed)
    redact = _redactor(settings.wordpress.app_password)

    if "console" in config.output:
        logger.add(
            sys.stderr,
            format=formatter,
            level=config.level,
            filter=redact,
            colorize=config.format == "detailed",
            diagnose=False,
        )

    if "file" in config.output:
        log_file = settings.get_absolute_path(config.file_path)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_file),
            format=formatter,
            level=config.level,
            filter=redact,
            rotation=config.rotation,
            retention=config.retention,
            encoding="utf-8",
            diagnose=False,
        )

    logger.debug(f"日志输出: {', '.join(config.output)} ({config.format}, {config.level})")


def get_logger_with_context(**context) -> Any:
    """返回绑定了上下文的 logger.

    Examples:
        >>> log = get_logger_with_context(session_id=session.id, operation="update_settings")
        >>> log.info("开始保存设置")
    """
    return logger.bind(**context)


def log_section(title: str, char: str = "=", width: int = 60) -> None:
    line = char * width
    logger.info(line)
    logger.info(title)
    logger.info(line)
