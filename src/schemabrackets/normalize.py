"""
Token normalization for inline sequences.

Upstream tokenizers tear the `<<...>>` delimiter apart in two ways:

- an inner `<name>` or `<item:Type>` is taken for raw HTML or an autolink,
  leaving `Str("<")`, an opaque fragment and `Str(">[...")`;
- whitespace inside the opener splits it into separate words
  (`<<item:Person` SPACE `prop=director>>[`).

Both are glued back into a single STR before recognition. All passes
mutate the list in place and are idempotent.
"""

from __future__ import annotations

from .dom import Node, NodeKind, make_str
from .syntax import find_opener


def _fragment_source(node: Node) -> str | None:
    """Verbatim `<...>` source of an opaque inline fragment, if it has one."""
    source = node.source
    if source and source.startswith("<") and source.endswith(">"):
        return source
    return None


def fuse_fragment(nodes: list[Node], i: int) -> bool:
    """
    Fuse Str(...'<'), fragment('<x>'), Str('>'...) at position i into one
    Str holding the concatenated source. Returns True if fused.
    """
    if i + 2 >= len(nodes):
        return False
    head, fragment, tail = nodes[i], nodes[i + 1], nodes[i + 2]
    if head.kind is not NodeKind.STR or not head.text.endswith("<"):
        return False
    source = _fragment_source(fragment)
    if source is None:
        return False
    if tail.kind is not NodeKind.STR or not tail.text.startswith(">"):
        return False
    nodes[i:i + 3] = [make_str(head.text + source + tail.text)]
    return True


def fuse_spaced_opener(nodes: list[Node], i: int) -> bool:
    """
    Fuse an opener split on spaces, starting at the Str at position i.

    Only fires when the joined words form a valid opener at the `<<`, and
    never crosses a line break.
    """
    text = nodes[i].text
    start = text.rfind("<<")
    if start == -1 or ">>" in text[start:]:
        return False

    joined = text
    j = i + 1
    while j < len(nodes):
        node = nodes[j]
        if node.kind is NodeKind.SPACE:
            joined += " "
        elif node.kind is NodeKind.STR:
            joined += node.text
            if ">>" in node.text:
                break
        else:
            return False
        j += 1
    else:
        return False

    opener = find_opener(joined, start)
    if opener is None or opener.start != start:
        return False
    nodes[i:j + 1] = [make_str(joined)]
    return True


def merge_next_str(nodes: list[Node], i: int) -> bool:
    """Merge the Str at i with an immediately following Str."""
    if i + 1 >= len(nodes) or nodes[i + 1].kind is not NodeKind.STR:
        return False
    nodes[i:i + 2] = [make_str(nodes[i].text + nodes[i + 1].text)]
    return True


def normalize_inlines(nodes: list[Node]) -> list[Node]:
    """
    Merge adjacent Str nodes and repair torn openers, in place.

    Fused nodes are replaced by a new Str at the earliest fused position;
    the original node objects are never modified.
    """
    i = 0
    while i < len(nodes):
        if nodes[i].kind is NodeKind.STR and (
            fuse_fragment(nodes, i)
            or fuse_spaced_opener(nodes, i)
            or merge_next_str(nodes, i)
        ):
            continue  # re-examine the fused node
        i += 1
    return nodes
