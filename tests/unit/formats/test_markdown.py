"""
Unit tests for markdown format strategy.
"""

import pytest

from schemabrackets.dom import NodeKind
from schemabrackets.formats.base import registry
from schemabrackets.formats.markdown import MarkdownStrategy


def kinds(nodes):
    return [node.kind for node in nodes]


class TestMarkdownStrategy:
    def setup_method(self):
        self.strategy = MarkdownStrategy()

    def test_name(self):
        assert self.strategy.name == "markdown"

    def test_extensions(self):
        assert ".md" in self.strategy.extensions
        assert ".qmd" in self.strategy.extensions

    def test_registered(self):
        assert registry.get_by_extension("md").name == "markdown"
        assert registry.get_by_name("markdown") is not None

    def test_detect_annotations(self):
        assert self.strategy.detect("Intro\n\n<<item:Movie>>[\n")
        assert not self.strategy.detect("# Plain markdown\n")


class TestBlocks:
    def setup_method(self):
        self.strategy = MarkdownStrategy()

    def test_heading(self):
        doc = self.strategy.parse("## Avatar")
        (header,) = doc.blocks
        assert header.kind is NodeKind.HEADER
        assert header.level == 2
        assert header.children[0].text == "Avatar"

    def test_paragraph_words(self):
        doc = self.strategy.parse("Science fiction film")
        assert kinds(doc.blocks[0].children) == [
            NodeKind.STR, NodeKind.SPACE, NodeKind.STR, NodeKind.SPACE, NodeKind.STR,
        ]

    def test_tight_list_items_are_plain(self):
        doc = self.strategy.parse("- Avatar\n- Titanic\n")
        (bullets,) = doc.blocks
        assert bullets.kind is NodeKind.BULLET_LIST
        assert kinds(bullets.children) == [NodeKind.LIST_ITEM, NodeKind.LIST_ITEM]
        assert bullets.children[0].children[0].kind is NodeKind.PLAIN

    def test_loose_list_items_are_paragraphs(self):
        doc = self.strategy.parse("1. Avatar\n\n2. Titanic\n")
        (numbered,) = doc.blocks
        assert numbered.kind is NodeKind.ORDERED_LIST
        assert numbered.children[0].children[0].kind is NodeKind.PARA

    def test_table(self):
        doc = self.strategy.parse("| Title | Genre |\n|---|---|\n| Avatar | Drama |\n")
        (table,) = doc.blocks
        assert table.kind is NodeKind.TABLE
        assert kinds(table.children) == [NodeKind.TABLE_ROW, NodeKind.TABLE_ROW]
        cell = table.children[1].children[1]
        assert cell.kind is NodeKind.TABLE_CELL
        assert cell.children[0].kind is NodeKind.PLAIN
        assert cell.children[0].children[0].text == "Drama"

    def test_fenced_code(self):
        doc = self.strategy.parse("```python\n<<name>>[x]\n```\n")
        (code,) = doc.blocks
        assert code.kind is NodeKind.CODE_BLOCK
        assert code.text == "<<name>>[x]\n"
        assert code.attrs == {"class": "python"}

    def test_blockquote(self):
        doc = self.strategy.parse("> quoted\n")
        assert doc.blocks[0].kind is NodeKind.BLOCKQUOTE
        assert doc.blocks[0].children[0].kind is NodeKind.PARA

    def test_html_block_and_rule(self):
        doc = self.strategy.parse("<div>\nhi\n</div>\n\n***\n")
        assert kinds(doc.blocks) == [NodeKind.RAW_BLOCK, NodeKind.HORIZONTAL_RULE]


class TestInlines:
    def setup_method(self):
        self.strategy = MarkdownStrategy()

    def inlines(self, text):
        return self.strategy.parse(text).blocks[0].children

    def test_inline_html_keeps_source(self):
        head, fragment, tail = self.inlines("<<name>>[Avatar]")
        assert head.text == "<"
        assert fragment.kind is NodeKind.RAW_INLINE
        assert fragment.source == "<name>"
        assert tail.text == ">[Avatar]"

    def test_autolink_keeps_source(self):
        head, fragment, tail = self.inlines("<<item:Movie>>[")
        assert fragment.kind is NodeKind.LINK
        assert fragment.source == "<item:Movie>"
        assert tail.text == ">["

    def test_regular_link_has_no_source(self):
        (link,) = self.inlines("[Trailer](https://example.com/t.mp4)")
        assert link.kind is NodeKind.LINK
        assert link.target == "https://example.com/t.mp4"
        assert link.source is None
        assert link.children[0].text == "Trailer"

    def test_image(self):
        (image,) = self.inlines("![poster](poster.jpg)")
        assert image.kind is NodeKind.IMAGE
        assert image.target == "poster.jpg"
        assert image.children[0].text == "poster"

    def test_emphasis_and_strike(self):
        nodes = self.inlines("*Avatar* ~~Titanic~~")
        assert kinds(nodes) == [NodeKind.EMPH, NodeKind.SPACE, NodeKind.STRIKEOUT]

    def test_softbreak(self):
        nodes = self.inlines("one\ntwo")
        assert kinds(nodes) == [NodeKind.STR, NodeKind.SOFTBREAK, NodeKind.STR]


class TestFrontMatter:
    def setup_method(self):
        self.strategy = MarkdownStrategy()

    def test_front_matter_becomes_meta(self):
        doc = self.strategy.parse("---\ntitle: Avatar\nschema-brackets:\n  syntax: rdfa\n---\n# Avatar\n")
        assert doc.meta == {"title": "Avatar", "schema-brackets": {"syntax": "rdfa"}}
        assert doc.blocks[0].kind is NodeKind.HEADER

    def test_no_front_matter(self):
        assert self.strategy.parse("# Avatar\n").meta == {}

    def test_invalid_yaml(self):
        with pytest.raises(ValueError, match="Invalid front matter"):
            self.strategy.parse("---\ntitle: [unclosed\n---\nbody\n")

    def test_front_matter_must_be_mapping(self):
        with pytest.raises(ValueError, match="mapping"):
            self.strategy.parse("---\n- a\n- b\n---\nbody\n")
