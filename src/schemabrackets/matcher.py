"""
Nested region matching.

Given an opener found in the STR at some index of a sibling sequence,
scan forward counting openers and close markers until depth returns to
zero. Scanning never mutates the sequence: when no match exists the
caller emits the opener unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .dom import WHITESPACE_KINDS, Node, NodeKind, make_str
from .syntax import REGION_START, Close, Opener, close_at, iter_markers

logger = logging.getLogger(__name__)


@dataclass
class RegionMatch:
    """A balanced `<<...>>[ ... ]` region."""
    opener: Opener
    inner: list[Node]  # siblings between open and close, plus text before the close
    end: int  # index of the sibling holding the matching close
    after: str  # literal text following the close on that sibling


def external_bracket_index(nodes: list[Node], index: int) -> int | None:
    """
    Index of the sibling supplying '[' for a bracketless opener at index.

    Whitespace between the opener and the bracket is skipped, so the '['
    may sit on the following line.
    """
    k = index + 1
    while k < len(nodes) and nodes[k].kind in WHITESPACE_KINDS:
        k += 1
    if k < len(nodes) and nodes[k].kind is NodeKind.STR and nodes[k].text.startswith(REGION_START):
        return k
    return None


def _settle(text: str, depth: int, nodes: list[Node], index: int) -> tuple[int, Close | None]:
    """
    Apply the markers of one text to depth.

    Returns (depth, the close that brought depth to zero or None).
    A bracketless nested opener only counts when its own next sibling
    supplies the '['.
    """
    for offset, opener in iter_markers(text):
        if opener is None:
            depth -= 1
            if depth == 0:
                return 0, close_at(text, offset)
        elif not opener.needs_external_bracket or external_bracket_index(nodes, index) is not None:
            depth += 1
    return depth, None


def match_region(nodes: list[Node], index: int, opener: Opener) -> RegionMatch | None:
    """
    Find the close matching `opener`, which sits in the STR at nodes[index].

    Returns None (literal fallback) when the opener needs a '[' from the next
    sibling and none is there, or when the sequence ends before depth
    returns to zero.
    """
    if opener.needs_external_bracket:
        seed_index = external_bracket_index(nodes, index)
        if seed_index is None:
            logger.debug(f"Opener <<{opener.name}>> has no '[' after it, keeping literal")
            return None
        seed = nodes[seed_index].text[len(REGION_START):]
    else:
        seed_index = index
        seed = opener.rest or ""

    depth, close = _settle(seed, 1, nodes, seed_index)
    if close is not None:
        inner = [make_str(close.before)] if close.before else []
        return RegionMatch(opener=opener, inner=inner, end=seed_index, after=close.after)

    for j in range(seed_index + 1, len(nodes)):
        node = nodes[j]
        if node.kind is not NodeKind.STR:
            continue
        depth, close = _settle(node.text, depth, nodes, j)
        if close is None:
            continue
        inner = [make_str(seed)] if seed else []
        inner.extend(nodes[seed_index + 1:j])
        if close.before:
            inner.append(make_str(close.before))
        return RegionMatch(opener=opener, inner=inner, end=j, after=close.after)

    logger.debug(f"Opener <<{opener.name}>> is never closed, keeping literal")
    return None
