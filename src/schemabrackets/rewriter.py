"""
Tree rewriting: annotation regions become attributed nodes.

Two granularities:
- inline folding inside one inline run, producing attributed SPANs
  (or hoisting property attributes onto a lone link/image);
- block folding, where a paragraph holding only `<<item:TYPE>>[` opens a
  scope over the following sibling blocks, closed by a lone `]`
  paragraph or a paragraph ending in an unbalanced `]`. The blocks in
  between are wrapped in an attributed DIV.

Per scope: Seeking-Opener -> Scanning-Interior(depth=1) -> Matched
(emit attributed node) or Unmatched-EOF (emit the opener literally).
"""

from __future__ import annotations

import logging
from dataclasses import replace

from .config import Config
from .dom import (
    BLOCK_CONTAINER_KINDS,
    ELEMENTWISE_KINDS,
    INLINE_BLOCK_KINDS,
    MEDIA_KINDS,
    WHITESPACE_KINDS,
    Document,
    Node,
    NodeKind,
    make_str,
    stringify,
)
from .markup import item_attributes, item_base, property_attributes
from .matcher import RegionMatch, match_region
from .normalize import normalize_inlines
from .syntax import CLOSE, Opener, bracket_balance, iter_openers, parse_opener

logger = logging.getLogger(__name__)

LINE_KINDS = (NodeKind.PARA, NodeKind.PLAIN)
WORD_KINDS = frozenset({NodeKind.STR}) | WHITESPACE_KINDS


def _line_text(block: Node) -> str | None:
    """Normalized text of a paragraph made only of words and whitespace."""
    if block.kind not in LINE_KINDS:
        return None
    inlines = normalize_inlines(list(block.children))
    if not all(node.kind in WORD_KINDS for node in inlines):
        return None
    return stringify(inlines).strip()


def block_opener(block: Node) -> Opener | None:
    """The item opener if this paragraph is exactly `<<item:TYPE ...>>[` or `<<item:TYPE ...>>`."""
    text = _line_text(block)
    if not text:
        return None
    opener = parse_opener(text)
    if opener is None or not opener.is_item:
        return None
    if opener.rest is not None and opener.rest.strip():
        return None
    return opener


def is_close_line(block: Node) -> bool:
    """A paragraph holding nothing but `]`."""
    return _line_text(block) == CLOSE


def _last_word_index(inlines: list[Node]) -> int | None:
    idx = len(inlines) - 1
    while idx >= 0 and inlines[idx].kind in WHITESPACE_KINDS:
        idx -= 1
    return idx if idx >= 0 else None


def has_trailing_close(block: Node) -> bool:
    """
    A paragraph whose content ends in ']' that no '[' in it accounts for.

    `<<name>>[Avatar]` is balanced and does not count; `...last line\\n]`
    does.
    """
    if block.kind not in LINE_KINDS:
        return False
    inlines = normalize_inlines(list(block.children))
    last = _last_word_index(inlines)
    if last is None or inlines[last].kind is not NodeKind.STR or not inlines[last].text.endswith(CLOSE):
        return False
    balance = sum(bracket_balance(node.text) for node in inlines if node.kind is NodeKind.STR)
    return balance < 0


def strip_trailing_close(inlines: list[Node]) -> list[Node]:
    """Copy of inlines without the final ']' and the whitespace around it."""
    result = list(inlines)
    last = _last_word_index(result)
    if last is None:
        return result
    del result[last + 1:]
    text = result[last].text[:-len(CLOSE)]
    if text:
        result[last] = make_str(text)
    else:
        del result[last]
        while result and result[-1].kind in WHITESPACE_KINDS:
            result.pop()
    return result


class Rewriter:
    """Applies annotation folding to a document tree with one Config."""

    def __init__(self, config: Config):
        self.config = config
        # ids of opener paragraphs deliberately kept literal (unmatched)
        self._literal_blocks: set[int] = set()

    # ------------------------------------------------------------------
    # inline folding

    def rewrite_inlines(self, inlines: list[Node]) -> list[Node]:
        """Rewrite every balanced region in an inline sequence, recursively."""
        nodes = normalize_inlines(list(inlines))
        out: list[Node] = []
        i = 0
        while i < len(nodes):
            node = nodes[i]
            if node.kind is NodeKind.STR:
                found = self._match_in_text(nodes, i)
                if found is None:
                    out.append(node)
                    i += 1
                    continue
                prefix, match = found
                if prefix:
                    out.append(make_str(prefix))
                out.append(self._wrap_inline(match))
                if match.after:
                    # text after ']' rejoins the stream and is scanned again
                    nodes[match.end] = make_str(match.after)
                    i = match.end
                else:
                    i = match.end + 1
            else:
                if node.children:
                    node.children = self.rewrite_inlines(node.children)
                out.append(node)
                i += 1
        return out

    def _match_in_text(self, nodes: list[Node], i: int) -> tuple[str, RegionMatch] | None:
        """First opener in nodes[i] that has a matching close, with the literal text before it."""
        text = nodes[i].text
        for opener in iter_openers(text):
            match = match_region(nodes, i, opener)
            if match is not None:
                return text[:opener.start], match
        return None

    def _wrap_inline(self, match: RegionMatch) -> Node:
        opener = match.opener
        inner = self.rewrite_inlines(match.inner)
        if opener.is_item:
            return Node(
                NodeKind.SPAN,
                children=inner,
                attrs=item_attributes(opener, self.config),
                base=item_base(opener, self.config),
            )

        attrs = property_attributes(opener.name, self.config)
        if len(inner) == 1 and inner[0].kind in MEDIA_KINDS:
            # a property whose whole value is a link or image takes its target
            inner[0].attrs.update(attrs)
            return inner[0]
        return Node(NodeKind.SPAN, children=inner, attrs=attrs)

    # ------------------------------------------------------------------
    # block folding

    def fold_blocks(self, blocks: list[Node]) -> list[Node]:
        """Fold block-level item scopes in a sibling sequence, then rewrite each block."""
        out: list[Node] = []
        i = 0
        while i < len(blocks):
            block = blocks[i]
            opener = block_opener(block)
            if opener is None:
                out.append(self.rewrite_block(block))
                i += 1
                continue

            end, closing = self._find_block_close(blocks, i)
            if end is None:
                logger.debug(f"Block opener <<item:{opener.name}>> is never closed, keeping literal")
                self._literal_blocks.add(id(block))
                out.append(block)
                i += 1
                continue

            interior = list(blocks[i + 1:end])
            if closing is not None:
                interior.append(closing)
            out.append(Node(
                NodeKind.DIV,
                children=self.fold_blocks(interior),
                attrs=item_attributes(opener, self.config),
                base=item_base(opener, self.config),
            ))
            i = end + 1
        return out

    def _find_block_close(self, blocks: list[Node], start: int) -> tuple[int | None, Node | None]:
        """
        Index of the block closing the scope opened at blocks[start].

        Returns (index, None) for a lone `]` paragraph, (index, stripped copy)
        for a paragraph ending in an unbalanced `]`, (None, None) when the
        sequence ends first.
        """
        depth = 1
        for j in range(start + 1, len(blocks)):
            block = blocks[j]
            if block_opener(block) is not None:
                depth += 1
            elif is_close_line(block):
                depth -= 1
                if depth == 0:
                    return j, None
            elif has_trailing_close(block):
                depth -= 1
                if depth == 0:
                    stripped = strip_trailing_close(normalize_inlines(list(block.children)))
                    return j, replace(block, children=stripped)
        return None, None

    def rewrite_block(self, block: Node) -> Node:
        """Rewrite inside one block, dispatching on its kind."""
        kind = block.kind
        if kind in INLINE_BLOCK_KINDS:
            block.children = self.rewrite_inlines(block.children)
        elif kind in BLOCK_CONTAINER_KINDS:
            block.children = self.fold_blocks(block.children)
        elif kind in ELEMENTWISE_KINDS:
            # each list item / row / cell is folded on its own, never across siblings
            block.children = [self.rewrite_block(child) for child in block.children]
        elif kind in (NodeKind.CODE_BLOCK, NodeKind.RAW_BLOCK, NodeKind.HORIZONTAL_RULE):
            pass
        elif block.children:
            block.children = self.fold_blocks(block.children)
        return block

    # ------------------------------------------------------------------
    # cleanup

    def cleanup(self, blocks: list[Node]) -> list[Node]:
        """
        Drop opener-only and `]`-only paragraphs left after folding and strip
        a dangling unbalanced `]` from paragraph ends. Unmatched openers kept
        as literal fallback are left alone.
        """
        out: list[Node] = []
        for block in blocks:
            if id(block) not in self._literal_blocks and (
                is_close_line(block) or block_opener(block) is not None
            ):
                logger.debug(f"Dropping stray marker line {stringify(block.children)!r}")
                continue
            if has_trailing_close(block):
                block.children = strip_trailing_close(block.children)
            self._cleanup_within(block)
            out.append(block)
        return out

    def _cleanup_within(self, block: Node) -> None:
        if block.kind in BLOCK_CONTAINER_KINDS:
            block.children = self.cleanup(block.children)
        elif block.kind in ELEMENTWISE_KINDS:
            for child in block.children:
                self._cleanup_within(child)

    def rewrite_document(self, doc: Document) -> Document:
        doc.blocks = self.cleanup(self.fold_blocks(doc.blocks))
        return doc
