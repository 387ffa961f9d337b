"""
Microdata and RDFa attribute sets for rewritten regions.

Which convention is emitted depends on Config.syntax: microdata, rdfa
or both side by side on the same node.
"""

from __future__ import annotations

from .config import Config
from .syntax import Opener

# keys consumed by the item opener itself rather than copied to the node
ITEM_CONTROL_KEYS = ("prop", "vocab")


def item_base(opener: Opener, config: Config) -> str:
    """Vocabulary an item's type resolves against: its own `vocab=` or the default."""
    return opener.attributes.get("vocab") or config.vocab


def item_attributes(opener: Opener, config: Config) -> dict[str, str]:
    """Attributes for an item container, honoring a per-item `vocab=` override."""
    attrs = {
        key: value for key, value in opener.attributes.items() if key not in ITEM_CONTROL_KEYS
    }
    vocab = item_base(opener, config)
    prop = opener.property_name
    namespaces = config.namespaces

    if config.emits_microdata:
        attrs["itemscope"] = ""
        itemtype = namespaces.resolve(opener.name, vocab)
        if itemtype:
            attrs["itemtype"] = itemtype
        if prop:
            attrs["itemprop"] = prop
    if config.emits_rdfa:
        attrs["vocab"] = vocab
        attrs["typeof"] = opener.name
        if namespaces.prefixes:
            attrs["prefix"] = namespaces.prefix_attribute()
        if prop:
            attrs["property"] = prop
    return attrs


def property_attributes(name: str, config: Config) -> dict[str, str]:
    """Attributes for a property span or a hoisted link/image."""
    attrs: dict[str, str] = {}
    if config.emits_microdata:
        attrs["itemprop"] = name
    if config.emits_rdfa:
        attrs["property"] = name
    return attrs
