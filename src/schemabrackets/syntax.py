"""
Opener and close-marker recognition for the bracket annotation syntax.

    <<item:TYPE key=value ...>>[ ... ]    typed item
    <<prop:NAME>>[ ... ]                  explicit property
    <<NAME>>[ ... ]                       shorthand property

The '[' may instead start the next text leaf (block style, or a bracket
on the following line). A ']' anywhere in a text leaf is a close marker.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field

NAME = r"[A-Za-z0-9._:\-]+"
IRI = r"[A-Za-z][A-Za-z0-9+.\-]*://[^\s<>\[\]]+"

OPENER_PATTERN = re.compile(
    r"<<\s*(?:"
    rf"item\s*:\s*(?P<type>{IRI}|{NAME})(?P<attrs>(?:\s[^<>]*?)?)"
    rf"|prop\s*:\s*(?P<prop>{NAME})\s*"
    rf"|(?P<short>{NAME})\s*"
    r")>>(?P<bracket>\s*\[)?"
)

ATTRIBUTE_PATTERN = re.compile(r"([A-Za-z0-9_\-]+)\s*=\s*([A-Za-z0-9._:#/%\-]+)")

RESERVED_NAMES = ("item", "prop")
CLOSE = "]"
REGION_START = "["


@dataclass
class Opener:
    """A recognized `<<...>>` opener inside a text leaf."""
    kind: str  # "item" or "prop"
    name: str  # type name for items, property name for props
    start: int  # offset of '<<' in the leaf text
    end: int  # offset just past '>>' or '>>['
    rest: str | None  # text after '[' on the same leaf; None when '[' must come from the next leaf
    attributes: dict[str, str] = field(default_factory=dict)
    shorthand: bool = False

    @property
    def is_item(self) -> bool:
        return self.kind == "item"

    @property
    def needs_external_bracket(self) -> bool:
        return self.rest is None

    @property
    def property_name(self) -> str | None:
        """Property this opener fills on its parent (items only, via `prop=`)."""
        if self.is_item:
            return self.attributes.get("prop") or None
        return self.name


@dataclass
class Close:
    """A ']' inside a text leaf, with the literal text either side."""
    before: str
    after: str


def parse_attributes(tail: str) -> dict[str, str]:
    """Parse `key=value` pairs. Unknown keys are kept as-is."""
    return {key: value for key, value in ATTRIBUTE_PATTERN.findall(tail)}


def _opener_from_match(match: re.Match, text: str) -> Opener | None:
    if match.group("bracket") is not None:
        rest: str | None = text[match.end():]
    elif text[match.end():].strip() == "":
        rest = None
    else:
        # '>>' followed by something other than '[' is plain text
        return None

    if match.group("type") is not None:
        return Opener(
            kind="item",
            name=match.group("type"),
            start=match.start(),
            end=match.end(),
            rest=rest,
            attributes=parse_attributes(match.group("attrs") or ""),
        )
    if match.group("prop") is not None:
        return Opener(kind="prop", name=match.group("prop"), start=match.start(), end=match.end(), rest=rest)

    name = match.group("short")
    if name in RESERVED_NAMES:
        return None
    return Opener(kind="prop", name=name, start=match.start(), end=match.end(), rest=rest, shorthand=True)


def find_opener(text: str, pos: int = 0) -> Opener | None:
    """First valid opener in text at or after pos."""
    search_from = pos
    while True:
        match = OPENER_PATTERN.search(text, search_from)
        if match is None:
            return None
        opener = _opener_from_match(match, text)
        if opener is not None:
            return opener
        search_from = match.start() + 1


def iter_openers(text: str) -> Iterator[Opener]:
    """All openers in text, left to right, never overlapping."""
    pos = 0
    while True:
        opener = find_opener(text, pos)
        if opener is None:
            return
        yield opener
        pos = opener.end


def parse_opener(text: str) -> Opener | None:
    """The opener that begins text (leading whitespace ignored), if any."""
    opener = find_opener(text)
    if opener is None or text[:opener.start].strip():
        return None
    return opener


def close_at(text: str, offset: int) -> Close:
    """Split text around the ']' at offset."""
    return Close(before=text[:offset], after=text[offset + len(CLOSE):])


def iter_markers(text: str) -> Iterator[tuple[int, Opener | None]]:
    """
    Yield (offset, opener) for every opener and (offset, None) for every
    close marker in text, in order. A ']' inside an opener's own `<<...>>`
    is part of the opener, not a close.
    """
    pos = 0
    while pos < len(text):
        opener = find_opener(text, pos)
        close = text.find(CLOSE, pos)
        if opener is not None and (close == -1 or opener.start < close):
            yield opener.start, opener
            pos = opener.end
        elif close != -1:
            yield close, None
            pos = close + 1
        else:
            return


def bracket_balance(text: str) -> int:
    """
    Region starts minus close markers in a single text leaf.

    Every `<<...>>[` opener carries one '[', and a bracketless opener
    counts once its '[' arrives, so plain `[1]` pairs cancel out too.
    """
    return text.count(REGION_START) - text.count(CLOSE)
