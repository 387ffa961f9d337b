"""
Markdown format strategy.

Parses Markdown with markdown-it-py (CommonMark plus tables and
strikethrough) into the Pandoc-shaped DOM the rewriter expects:
text split into STR/SPACE words, inline HTML and autolinks kept with
their verbatim source, tight-list paragraphs as PLAIN.
"""

from __future__ import annotations

import re

from markdown_it import MarkdownIt
from markdown_it.token import Token

from ..dom import Document, Node, NodeKind, stringify, tokenize_text
from .base import FormatStrategy, registry, split_front_matter

# markdown-it block token base name -> node kind
BLOCK_KINDS = {
    "paragraph": NodeKind.PARA,
    "heading": NodeKind.HEADER,
    "blockquote": NodeKind.BLOCKQUOTE,
    "bullet_list": NodeKind.BULLET_LIST,
    "ordered_list": NodeKind.ORDERED_LIST,
    "list_item": NodeKind.LIST_ITEM,
    "table": NodeKind.TABLE,
    "tr": NodeKind.TABLE_ROW,
    "th": NodeKind.TABLE_CELL,
    "td": NodeKind.TABLE_CELL,
}

INLINE_KINDS = {
    "em": NodeKind.EMPH,
    "strong": NodeKind.STRONG,
    "s": NodeKind.STRIKEOUT,
    "link": NodeKind.LINK,
}

ANNOTATION_PATTERN = re.compile(r"<<\s*item\s*:")


def _base_type(token: Token) -> str:
    return token.type.rsplit("_", 1)[0]


def convert_inlines(tokens: list[Token]) -> list[Node]:
    """Convert a markdown-it inline token stream into inline nodes."""
    root = Node(NodeKind.SPAN)
    stack: list[tuple[Node, bool]] = [(root, False)]

    for token in tokens:
        parent = stack[-1][0]
        if token.type == "text" or token.type == "text_special":
            parent.children.extend(tokenize_text(token.content))
        elif token.type == "softbreak":
            parent.add_child(Node(NodeKind.SOFTBREAK))
        elif token.type == "hardbreak":
            parent.add_child(Node(NodeKind.LINEBREAK))
        elif token.type == "code_inline":
            parent.add_child(Node(NodeKind.CODE, token.content))
        elif token.type == "html_inline":
            parent.add_child(Node(NodeKind.RAW_INLINE, token.content, format="html", source=token.content))
        elif token.type == "image":
            image = Node(
                NodeKind.IMAGE,
                children=convert_inlines(token.children or []),
                target=str(token.attrGet("src") or ""),
            )
            if token.attrGet("title"):
                image.attrs["title"] = str(token.attrGet("title"))
            parent.add_child(image)
        elif token.nesting == 1 and _base_type(token) in INLINE_KINDS:
            node = Node(INLINE_KINDS[_base_type(token)])
            is_autolink = False
            if node.kind is NodeKind.LINK:
                node.target = str(token.attrGet("href") or "")
                if token.attrGet("title"):
                    node.attrs["title"] = str(token.attrGet("title"))
                is_autolink = token.markup == "autolink"
            parent.add_child(node)
            stack.append((node, is_autolink))
        elif token.nesting == -1 and _base_type(token) in INLINE_KINDS:
            node, is_autolink = stack.pop()
            if is_autolink:
                node.source = f"<{stringify(node.children)}>"
        elif token.content:
            parent.children.extend(tokenize_text(token.content))

    return root.children


def convert_blocks(tokens: list[Token]) -> list[Node]:
    """Convert a markdown-it block token stream into block nodes."""
    root = Node(NodeKind.DIV)
    stack: list[Node] = [root]

    for token in tokens:
        base = _base_type(token)
        if token.nesting == 1:
            if base not in BLOCK_KINDS:
                continue  # thead / tbody wrappers are flattened
            kind = BLOCK_KINDS[base]
            if kind is NodeKind.PARA and token.hidden:
                kind = NodeKind.PLAIN
            node = Node(kind)
            if kind is NodeKind.HEADER:
                node.level = int(token.tag[1:])
            stack[-1].add_child(node)
            stack.append(node)
        elif token.nesting == -1:
            if base in BLOCK_KINDS:
                stack.pop()
        elif token.type == "inline":
            inlines = convert_inlines(token.children or [])
            if stack[-1].kind is NodeKind.TABLE_CELL:
                stack[-1].add_child(Node(NodeKind.PLAIN, children=inlines))
            else:
                stack[-1].children.extend(inlines)
        elif token.type in ("fence", "code_block"):
            code = Node(NodeKind.CODE_BLOCK, token.content)
            if token.info.strip():
                code.attrs["class"] = token.info.split()[0]
            stack[-1].add_child(code)
        elif token.type == "html_block":
            stack[-1].add_child(Node(NodeKind.RAW_BLOCK, token.content, format="html"))
        elif token.type == "hr":
            stack[-1].add_child(Node(NodeKind.HORIZONTAL_RULE))

    return root.children


class MarkdownStrategy(FormatStrategy):
    """Markdown reader producing a Pandoc-shaped Document."""

    def __init__(self):
        self._md = MarkdownIt("commonmark").enable(["table", "strikethrough"])

    @property
    def name(self) -> str:
        return "markdown"

    @property
    def extensions(self) -> list[str]:
        return [".md", ".markdown", ".qmd"]

    def detect(self, content: str) -> bool:
        """Content carrying bracket annotations is treated as Markdown."""
        return bool(ANNOTATION_PATTERN.search(content))

    def parse(self, content: str) -> Document:
        """
        Parse Markdown into a Document.

        Structure:
        - blocks: PARA / PLAIN / HEADER with inline children,
          BLOCKQUOTE / lists / tables with nested blocks
        - meta: YAML front matter, if any
        """
        meta, body = split_front_matter(content)
        tokens = self._md.parse(body)
        return Document(blocks=convert_blocks(tokens), meta=meta)


# Register the strategy
registry.register(MarkdownStrategy())
