"""
DOM - Document Object Model for schema-brackets

A closed set of node kinds modelled on the Pandoc AST. Readers build a
Document of these nodes; the rewriter and the graph extractor walk it.

Key invariant: node kinds form a closed enum. A node of an unknown kind
cannot be constructed, so walkers never silently skip a new host kind.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum


class NodeKind(Enum):
    # inline leaves
    STR = "str"
    SPACE = "space"
    SOFTBREAK = "softbreak"
    LINEBREAK = "linebreak"
    CODE = "code"
    RAW_INLINE = "raw_inline"
    # inline containers
    EMPH = "emph"
    STRONG = "strong"
    STRIKEOUT = "strikeout"
    SPAN = "span"
    LINK = "link"
    IMAGE = "image"
    # blocks holding inlines
    PARA = "para"
    PLAIN = "plain"
    HEADER = "header"
    # blocks holding blocks
    DIV = "div"
    BLOCKQUOTE = "blockquote"
    LIST_ITEM = "list_item"
    TABLE_CELL = "table_cell"
    # walked element-wise
    BULLET_LIST = "bullet_list"
    ORDERED_LIST = "ordered_list"
    TABLE = "table"
    TABLE_ROW = "table_row"
    # block leaves
    CODE_BLOCK = "code_block"
    RAW_BLOCK = "raw_block"
    HORIZONTAL_RULE = "horizontal_rule"


WHITESPACE_KINDS = frozenset({NodeKind.SPACE, NodeKind.SOFTBREAK, NodeKind.LINEBREAK})
INLINE_BLOCK_KINDS = frozenset({NodeKind.PARA, NodeKind.PLAIN, NodeKind.HEADER})
BLOCK_CONTAINER_KINDS = frozenset({
    NodeKind.DIV,
    NodeKind.BLOCKQUOTE,
    NodeKind.LIST_ITEM,
    NodeKind.TABLE_CELL,
})
ELEMENTWISE_KINDS = frozenset({
    NodeKind.BULLET_LIST,
    NodeKind.ORDERED_LIST,
    NodeKind.TABLE,
    NodeKind.TABLE_ROW,
})
MEDIA_KINDS = frozenset({NodeKind.LINK, NodeKind.IMAGE})


@dataclass
class Node:
    """A node in the document tree."""
    kind: NodeKind
    text: str = ""  # literal content of STR, CODE, RAW_* and CODE_BLOCK nodes
    children: list[Node] = field(default_factory=list)
    attrs: dict[str, str] = field(default_factory=dict)
    target: str | None = None  # link target or image source
    level: int = 0  # heading level
    format: str | None = None  # raw content format, e.g. "html"
    source: str | None = None  # verbatim source of opaque inline fragments
    base: str | None = None  # type vocabulary of an item node, kept whatever the syntax mode

    def __post_init__(self):
        if not isinstance(self.kind, NodeKind):
            raise TypeError(f"Node kind must be a NodeKind, got {self.kind!r}")

    def depth_first(self) -> Iterator[Node]:
        """Traverse tree depth-first, yielding self then children."""
        yield self
        for child in self.children:
            yield from child.depth_first()

    def add_child(self, child: Node) -> Node:
        """Add a child node and return it for chaining."""
        self.children.append(child)
        return child


@dataclass
class Document:
    """A block sequence plus document-level metadata."""
    blocks: list[Node] = field(default_factory=list)
    meta: dict = field(default_factory=dict)

    def depth_first(self) -> Iterator[Node]:
        for block in self.blocks:
            yield from block.depth_first()


def make_str(text: str) -> Node:
    return Node(NodeKind.STR, text)


def make_space() -> Node:
    return Node(NodeKind.SPACE, " ")


_WHITESPACE_RUN = re.compile(r"(\s+)")


def tokenize_text(text: str) -> list[Node]:
    """Split literal text into STR words separated by SPACE nodes."""
    nodes: list[Node] = []
    for part in _WHITESPACE_RUN.split(text):
        if not part:
            continue
        nodes.append(make_space() if part.isspace() else make_str(part))
    return nodes


def stringify(nodes: Iterable[Node]) -> str:
    """
    Flatten nodes to plain text.

    Spaces and breaks become a single space, raw fragments are dropped,
    containers contribute their children's text.
    """
    parts: list[str] = []
    for node in nodes:
        if node.kind is NodeKind.STR or node.kind is NodeKind.CODE:
            parts.append(node.text)
        elif node.kind in WHITESPACE_KINDS:
            parts.append(" ")
        elif node.kind in (NodeKind.RAW_INLINE, NodeKind.RAW_BLOCK):
            continue
        elif node.kind is NodeKind.CODE_BLOCK:
            parts.append(node.text)
        else:
            parts.append(stringify(node.children))
    return "".join(parts)


def dump_tree(nodes: Iterable[Node], indent: int = 0) -> list[str]:
    """Indented one-line-per-node view of a tree, for debugging and the CLI."""
    lines: list[str] = []
    pad = "  " * indent
    for node in nodes:
        label = node.kind.name
        if node.kind is NodeKind.HEADER:
            label += f" {node.level}"
        if node.text and node.kind not in WHITESPACE_KINDS:
            label += f" {node.text!r}"
        if node.target is not None:
            label += f" -> {node.target}"
        if node.attrs:
            label += " " + " ".join(
                f"{key}={value!r}" if value else key for key, value in node.attrs.items()
            )
        lines.append(pad + label)
        lines.extend(dump_tree(node.children, indent + 1))
    return lines
