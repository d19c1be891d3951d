"""
@PURPOSE: 内容编辑器策略 - 块编辑器/经典编辑器(文本模式)/经典编辑器(可视化模式)的统一接口
@OUTLINE:
  - class EditorCapabilities: 编辑器能力描述
  - class EditorContext: 编辑器类型枚举(携带能力描述)
  - class EditorStrategy: 策略基类(detect/apply_content/apply_field/read_content/apply_title/publish)
  - class BlockEditorStrategy: 块编辑器(正文只保留一个段落块, 回读全部段落)
  - class ClassicTextStrategy: 经典编辑器文本模式(直接写入 #content)
  - class ClassicVisualStrategy: 经典编辑器可视化模式(写入 content_ifr 框架内的 body)
  - def extract_post_id(): 从编辑页 URL 中提取文章 ID
  - def default_strategies(): 按识别优先级返回策略列表
@GOTCHAS:
  - 策略本身无状态, 页面始终通过参数传入
  - 元素不存在抛 ElementNotFound, 步骤超时抛 ActionTimeout
@DEPENDENCIES:
  - 外部: playwright, loguru
  - 内部: field_engine, utils.selector_race, utils.page_waiter, core.errors
@RELATED: editor_resolver.py, field_engine.py
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar

from loguru import logger

from ..config.settings import Settings, get_settings, load_selectors
from ..core.errors import ActionTimeout, ElementNotFound
from ..models.request import FieldDescriptor
from ..models.result import FieldOutcome
from ..utils.page_waiter import PageWaiter, WaitStrategy
from ..utils.selector_race import wait_for_any
from .field_engine import FieldInteractionEngine

_POST_ID_PATTERN = re.compile(r"[?&]post=(\d+)")
TAG_NAME_SCRIPT = "el => el.tagName.toLowerCase()"


@dataclass(frozen=True, slots=True)
class EditorCapabilities:
    """编辑器能力描述."""

    direct_typing: bool
    requires_frame: bool
    requires_block_insertion: bool


class EditorContext(str, Enum):
    """编辑器类型."""

    BLOCK_EDITOR = "block_editor"
    CLASSIC_VISUAL = "classic_visual"
    CLASSIC_TEXT = "classic_text"

    @property
    def capabilities(self) -> EditorCapabilities:
        return _CAPABILITIES[self]


_CAPABILITIES = {
    EditorContext.BLOCK_EDITOR: EditorCapabilities(
        direct_typing=False, requires_frame=False, requires_block_insertion=True
    ),
    EditorContext.CLASSIC_VISUAL: EditorCapabilities(
        direct_typing=True, requires_frame=True, requires_block_insertion=False
    ),
    EditorContext.CLASSIC_TEXT: EditorCapabilities(
        direct_typing=True, requires_frame=False, requires_block_insertion=False
    ),
}


def extract_post_id(url: str) -> int | None:
    """从编辑页 URL 中提取文章 ID.

    Examples:
        >>> extract_post_id("https://a.test/wp-admin/post.php?post=42&action=edit")
        42
    """
    match = _POST_ID_PATTERN.search(url or "")
    return int(match.group(1)) if match else None


class EditorStrategy(ABC):
    """编辑器策略基类.

    Attributes:
        context: 编辑器类型
        selectors: 编辑器选择器
        field_engine: 普通字段交互引擎
    """

    context: ClassVar[EditorContext]
    probe_key: ClassVar[str]

    def __init__(
        self,
        settings: Settings | None = None,
        field_engine: FieldInteractionEngine | None = None,
        selectors: dict[str, Any] | None = None,
    ):
        self.settings = settings or get_settings()
        self.timing = self.settings.timing
        self.field_engine = field_engine or FieldInteractionEngine(self.settings)
        self.selectors = (selectors or load_selectors())["editor"]
        self.wait_strategy = WaitStrategy.from_timing(self.timing)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    @property
    def capabilities(self) -> EditorCapabilities:
        return self.context.capabilities

    @property
    def probe_selector(self) -> str:
        return self.selectors[self.probe_key]

    @property
    @abstractmethod
    def title_selector(self) -> str: ...

    @property
    @abstractmethod
    def content_selector(self) -> str: ...

    async def detect(self, page: Any) -> bool:
        """当前页面是否为本编辑器(单次检查, 不等待)."""

        return await page.locator(self.probe_selector).count() > 0

    @abstractmethod
    async def apply_content(self, page: Any, text: str) -> None:
        """写入正文."""

    @abstractmethod
    async def read_content(self, page: Any) -> str:
        """读取正文(用于校验)."""

    async def apply_field(self, page: Any, descriptor: FieldDescriptor) -> FieldOutcome:
        """修改编辑页上的普通字段(摘要, 自定义字段等)."""

        return await self.field_engine.apply_field(page, descriptor)

    async def apply_title(self, page: Any, title: str) -> None:
        locator = await self._require(page, self.title_selector, "标题输入框")
        await locator.fill(title, timeout=self.timing.action_timeout_ms)

    async def read_title(self, page: Any) -> str:
        locator = await self._require(page, self.title_selector, "标题输入框")
        return await self._read_text(locator)

    @abstractmethod
    async def publish(self, page: Any) -> dict[str, Any]:
        """发布内容, 返回附加数据(如 post_id)."""

    # ========== 公共步骤 ==========

    async def _require(self, scope: Any, selector: str, name: str) -> Any:
        match = await wait_for_any(
            scope,
            [selector],
            self.timing.element_timeout_ms,
            interval_ms=self.timing.poll_interval_ms,
            context_name=name,
        )
        if match is None:
            raise ElementNotFound(f"未找到{name}: {selector}", selector=selector)
        return match.locator

    async def _click(self, page: Any, selector: str, name: str) -> None:
        locator = await self._require(page, selector, name)
        clicked = await PageWaiter(page, self.wait_strategy).safe_click(
            locator, timeout_ms=self.timing.action_timeout_ms, name=name
        )
        if not clicked:
            raise ActionTimeout(f"{name}点击超时: {selector}", selector=selector)

    async def _wait_notice(self, page: Any, selector: str, name: str) -> None:
        match = await wait_for_any(
            page,
            [selector],
            self.timing.action_timeout_ms,
            interval_ms=self.timing.poll_interval_ms,
            backoff_factor=self.timing.backoff_factor,
            max_interval_ms=self.timing.max_poll_interval_ms,
            context_name=name,
        )
        if match is None:
            raise ActionTimeout(f"{name}未出现: {selector}", selector=selector)

    async def _read_text(self, locator: Any) -> str:
        """读取输入框的值, 非输入框读取可见文本."""

        tag = await locator.evaluate(TAG_NAME_SCRIPT)
        if tag in ("input", "textarea"):
            return await locator.input_value(timeout=self.timing.action_timeout_ms)
        return await locator.inner_text(timeout=self.timing.action_timeout_ms)


class BlockEditorStrategy(EditorStrategy):
    """块编辑器: 插入段落块后输入正文."""

    context = EditorContext.BLOCK_EDITOR
    probe_key = "block_probe"

    @property
    def title_selector(self) -> str:
        return self.selectors["block_title"]

    @property
    def content_selector(self) -> str:
        return self.selectors["block_paragraph_editable"]

    async def apply_content(self, page: Any, text: str) -> None:
        """正文写入第一个段落块, 其余段落块清空后删除."""

        timeout = self.timing.action_timeout_ms
        blocks = page.locator(self.content_selector)
        count = await blocks.count()
        if count == 0:
            logger.debug("块编辑器中没有段落块, 插入新段落")
            await self._click(page, self.selectors["block_inserter_toggle"], "块插入按钮")
            await self._click(page, self.selectors["block_paragraph_item"], "段落块")
            await self._require(page, self.content_selector, "段落块编辑区")

        # 从后往前删除, 空段落中按 Backspace 会移除该块
        for index in range(count - 1, 0, -1):
            extra = blocks.nth(index)
            await extra.fill("", timeout=timeout)
            await extra.press("Backspace", timeout=timeout)
        if count > 1:
            logger.debug(f"已移除 {count - 1} 个多余段落块")

        editable = blocks.first
        await editable.click(timeout=timeout)
        await editable.fill(text, timeout=timeout)

    async def read_content(self, page: Any) -> str:
        """读取全部段落块文本(以换行连接)."""

        await self._require(page, self.content_selector, "段落块编辑区")
        texts = await page.locator(self.content_selector).all_inner_texts()
        return "\n".join(texts)

    async def publish(self, page: Any) -> dict[str, Any]:
        await self._click(page, self.selectors["block_publish_toggle"], "发布面板按钮")
        await self._click(page, self.selectors["block_publish_button"], "发布按钮")
        await self._wait_notice(page, self.selectors["block_publish_notice"], "发布成功提示")
        post_id = extract_post_id(page.url)
        logger.success(f"✓ 块编辑器内容已发布 post_id={post_id}")
        return {"post_id": post_id, "editor": self.context.value}


class _ClassicStrategy(EditorStrategy):
    """经典编辑器公共部分(标题与发布)."""

    @property
    def title_selector(self) -> str:
        return self.selectors["classic_title"]

    async def publish(self, page: Any) -> dict[str, Any]:
        await self._click(page, self.selectors["classic_publish_button"], "发布按钮")
        await PageWaiter(page, self.wait_strategy).wait_for_network_idle(
            self.timing.navigation_timeout_ms
        )
        await self._wait_notice(page, self.selectors["classic_publish_notice"], "发布成功提示")
        post_id = extract_post_id(page.url)
        logger.success(f"✓ 经典编辑器内容已发布 post_id={post_id}")
        return {"post_id": post_id, "editor": self.context.value}


class ClassicTextStrategy(_ClassicStrategy):
    """经典编辑器文本模式: 直接写入 textarea."""

    context = EditorContext.CLASSIC_TEXT
    probe_key = "classic_text_probe"

    @property
    def content_selector(self) -> str:
        return self.selectors["classic_textarea"]

    async def apply_content(self, page: Any, text: str) -> None:
        if not await self.detect(page):
            await self._click(page, self.selectors["classic_text_tab"], "文本模式标签")
        textarea = await self._require(page, self.content_selector, "正文输入框")
        await textarea.fill(text, timeout=self.timing.action_timeout_ms)

    async def read_content(self, page: Any) -> str:
        textarea = await self._require(page, self.content_selector, "正文输入框")
        return await textarea.input_value(timeout=self.timing.action_timeout_ms)


class ClassicVisualStrategy(_ClassicStrategy):
    """经典编辑器可视化模式: 写入 TinyMCE 框架内的 body."""

    context = EditorContext.CLASSIC_VISUAL
    probe_key = "classic_visual_probe"

    @property
    def content_selector(self) -> str:
        return self.selectors["classic_frame_body"]

    def _frame(self, page: Any) -> Any:
        frame = page.frame(name=self.selectors["classic_frame_name"])
        if frame is None:
            raise ElementNotFound(
                f"未找到可视化编辑器框架: {self.selectors['classic_frame_name']}",
                frame=self.selectors["classic_frame_name"],
            )
        return frame

    async def apply_content(self, page: Any, text: str) -> None:
        body = await self._require(self._frame(page), self.content_selector, "可视化编辑区")
        await body.click(timeout=self.timing.action_timeout_ms)
        await body.fill(text, timeout=self.timing.action_timeout_ms)

    async def read_content(self, page: Any) -> str:
        body = await self._require(self._frame(page), self.content_selector, "可视化编辑区")
        return await body.inner_text(timeout=self.timing.action_timeout_ms)


def default_strategies(
    settings: Settings | None = None,
    field_engine: FieldInteractionEngine | None = None,
    selectors: dict[str, Any] | None = None,
) -> list[EditorStrategy]:
    """按识别优先级返回策略列表: 块编辑器 → 经典文本 → 经典可视化."""

    settings = settings or get_settings()
    selectors = selectors or load_selectors()
    field_engine = field_engine or FieldInteractionEngine(settings)
    return [
        BlockEditorStrategy(settings, field_engine, selectors),
        ClassicTextStrategy(settings, field_engine, selectors),
        ClassicVisualStrategy(settings, field_engine, selectors),
    ]
