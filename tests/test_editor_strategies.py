"""
@PURPOSE: 编辑器策略单元测试 - 块编辑器/经典文本/经典可视化的正文写入, 标题, 发布
@OUTLINE:
  - TestBlockEditor: 测试 BlockEditorStrategy
  - TestClassicText: 测试 ClassicTextStrategy
  - TestClassicVisual: 测试 ClassicVisualStrategy
  - TestHelpers: 测试 extract_post_id 与能力描述
"""

import pytest
from tests.mocks import (
    FakeElement,
    MockPage,
    add_paragraph,
    block_editor_page,
    classic_text_page,
    classic_visual_page,
)
from tests.mocks.wordpress_mock import PARAGRAPH_SELECTOR
from wp_admin_automation.browser.editor_strategies import (
    BlockEditorStrategy,
    ClassicTextStrategy,
    ClassicVisualStrategy,
    EditorContext,
    extract_post_id,
)
from wp_admin_automation.core.errors import ElementNotFound
from wp_admin_automation.models.result import FieldStatus

NEW_POST_URL = "https://wp.test/wp-admin/post-new.php"


def _page(builder) -> MockPage:
    page = MockPage(url=NEW_POST_URL)
    builder(page, page.dom)
    return page


class TestBlockEditor:
    """测试块编辑器."""

    @pytest.fixture
    def strategy(self, settings, field_engine, selectors):
        return BlockEditorStrategy(settings, field_engine, selectors)

    @pytest.mark.asyncio
    async def test_apply_content_inserts_paragraph(self, strategy):
        """测试空文档中先插入段落块再输入正文."""
        page = _page(block_editor_page)

        await strategy.apply_content(page, "Hello")

        assert await strategy.read_content(page) == "Hello"
        assert page.dom.query(".block-editor-inserter__toggle")[0].clicks == 1

    @pytest.mark.asyncio
    async def test_apply_content_reuses_existing_paragraph(self, strategy):
        """测试已有段落块时直接写入, 不打开插入器."""
        page = _page(block_editor_page)
        add_paragraph(page.dom, "旧内容")

        await strategy.apply_content(page, "Hello")

        assert await strategy.read_content(page) == "Hello"
        assert page.dom.query(".block-editor-inserter__toggle")[0].clicks == 0

    @pytest.mark.asyncio
    async def test_apply_content_replaces_all_paragraphs(self, strategy, field_engine):
        """测试已有多个段落块时正文只剩新内容."""
        page = _page(block_editor_page)
        add_paragraph(page.dom, "old one")
        add_paragraph(page.dom, "old two")
        add_paragraph(page.dom, "old three")

        outcome = await field_engine.apply_content(page, strategy, "Hello")

        assert outcome.status is FieldStatus.APPLIED
        assert [p.text for p in page.dom.query(PARAGRAPH_SELECTOR)] == ["Hello"]

    @pytest.mark.asyncio
    async def test_leftover_paragraph_is_verification_mismatch(self, strategy, field_engine):
        """测试锁定的段落块(拒绝删除并恢复内容)留在正文中时回读不一致."""
        page = _page(block_editor_page)
        add_paragraph(page.dom, "old one")
        locked = page.dom.add(PARAGRAPH_SELECTOR, FakeElement(tag="p", type=None, text="locked", editable=True))
        locked.on_key = lambda key: setattr(locked, "text", "locked")

        outcome = await field_engine.apply_content(page, strategy, "Hello")

        assert outcome.status is FieldStatus.FAILED
        assert outcome.error.kind == "verification_mismatch"
        assert outcome.actual == "Hello\nlocked"

    @pytest.mark.asyncio
    async def test_field_engine_verifies_content(self, strategy, field_engine):
        """测试通过字段引擎写入正文并回读校验."""
        page = _page(block_editor_page)

        outcome = await field_engine.apply_content(page, strategy, "Hello")

        assert outcome.status is FieldStatus.APPLIED
        assert outcome.actual == "Hello"

    @pytest.mark.asyncio
    async def test_title_round_trip(self, strategy):
        """测试标题写入后可回读."""
        page = _page(block_editor_page)

        await strategy.apply_title(page, "我的文章")

        assert await strategy.read_title(page) == "我的文章"

    @pytest.mark.asyncio
    async def test_publish_returns_post_id(self, strategy):
        """测试发布后返回文章 ID."""
        page = _page(block_editor_page)

        data = await strategy.publish(page)

        assert data == {"post_id": 42, "editor": "block_editor"}

    @pytest.mark.asyncio
    async def test_detect(self, strategy):
        """测试块编辑器探测."""
        assert await strategy.detect(_page(block_editor_page)) is True
        assert await strategy.detect(_page(classic_text_page)) is False


class TestClassicText:
    """测试经典编辑器文本模式."""

    @pytest.fixture
    def strategy(self, settings, field_engine, selectors):
        return ClassicTextStrategy(settings, field_engine, selectors)

    @pytest.mark.asyncio
    async def test_apply_content(self, strategy):
        """测试直接写入 textarea."""
        page = _page(classic_text_page)

        await strategy.apply_content(page, "Hello")

        assert page.dom.query("#content")[0].value == "Hello"
        assert await strategy.read_content(page) == "Hello"

    @pytest.mark.asyncio
    async def test_switches_to_text_tab_when_needed(self, strategy):
        """测试未处于文本模式时先点击文本标签."""
        page = MockPage(url=NEW_POST_URL)
        page.dom.add("#content", tag="textarea", type="textarea")
        tab = page.dom.add("#content-html", tag="button", type="button")

        await strategy.apply_content(page, "Hello")

        assert tab.clicks == 1
        assert await strategy.read_content(page) == "Hello"

    @pytest.mark.asyncio
    async def test_publish(self, strategy):
        """测试经典编辑器发布."""
        page = _page(classic_text_page)

        data = await strategy.publish(page)

        assert data == {"post_id": 7, "editor": "classic_text"}

    @pytest.mark.asyncio
    async def test_apply_field_delegates_to_field_engine(self, strategy):
        """测试编辑页上的普通字段交给字段引擎处理."""
        from wp_admin_automation.models.request import FieldDescriptor

        page = _page(classic_text_page)
        page.dom.add("#excerpt", tag="textarea", type="textarea")

        outcome = await strategy.apply_field(page, FieldDescriptor(selector="#excerpt", value="摘要"))

        assert outcome.status is FieldStatus.APPLIED


class TestClassicVisual:
    """测试经典编辑器可视化模式."""

    @pytest.fixture
    def strategy(self, settings, field_engine, selectors):
        return ClassicVisualStrategy(settings, field_engine, selectors)

    @pytest.mark.asyncio
    async def test_apply_content_writes_into_frame(self, strategy):
        """测试正文写入 content_ifr 框架内的 body."""
        page = _page(classic_visual_page)

        await strategy.apply_content(page, "Hello")

        assert page.frames["content_ifr"].dom.query("body#tinymce")[0].text == "Hello"
        assert await strategy.read_content(page) == "Hello"

    @pytest.mark.asyncio
    async def test_missing_frame_raises_element_not_found(self, strategy):
        """测试框架不存在时抛出 ElementNotFound."""
        page = _page(classic_visual_page)
        page.frames.clear()

        with pytest.raises(ElementNotFound):
            await strategy.apply_content(page, "Hello")


class TestHelpers:
    """测试辅助函数."""

    @pytest.mark.parametrize(
        "url, expected",
        [
            ("https://wp.test/wp-admin/post.php?post=42&action=edit", 42),
            ("https://wp.test/wp-admin/post.php?action=edit&post=7", 7),
            ("https://wp.test/wp-admin/post-new.php", None),
        ],
    )
    def test_extract_post_id(self, url, expected):
        """测试从编辑页 URL 中提取文章 ID."""
        assert extract_post_id(url) == expected

    def test_capabilities(self):
        """测试编辑器能力描述."""
        assert EditorContext.BLOCK_EDITOR.capabilities.requires_block_insertion
        assert EditorContext.CLASSIC_VISUAL.capabilities.requires_frame
        assert EditorContext.CLASSIC_TEXT.capabilities.direct_typing
