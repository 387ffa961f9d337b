"""
Graph extraction from an attributed tree.

Every attributed item becomes a JSON-LD node `{"@type": ..., prop: value}`.
Values are text, a link/image target, or a nested node. Items nested
without a property name stay in the visible tree but are not attached
to their parent.
"""

from __future__ import annotations

from collections.abc import Iterable

from .config import Config
from .dom import MEDIA_KINDS, Node, stringify

GraphNode = dict  # {"@type": str, <property>: str | GraphNode | list}


def is_item(node: Node) -> bool:
    return "itemscope" in node.attrs or "typeof" in node.attrs


def property_name(node: Node) -> str | None:
    return node.attrs.get("itemprop") or node.attrs.get("property") or None


def type_identifier(node: Node, config: Config) -> str | None:
    """Absolute type IRI of an item: itemtype, else typeof resolved against its vocab."""
    itemtype = node.attrs.get("itemtype")
    if itemtype:
        return itemtype
    return config.namespaces.resolve(node.attrs.get("typeof"), node.attrs.get("vocab"))


def add_property(obj: GraphNode, key: str, value) -> None:
    """Set a property, promoting to a list on repeats. Never deduplicates."""
    if key not in obj:
        obj[key] = value
    elif isinstance(obj[key], list):
        obj[key].append(value)
    else:
        obj[key] = [obj[key], value]


def property_value(node: Node) -> str:
    if node.kind in MEDIA_KINDS:
        return node.target or ""
    return stringify(node.children).strip()


def collect_node(node: Node, config: Config) -> GraphNode | None:
    """Graph node for an attributed item, or None if it has no resolvable type."""
    identifier = type_identifier(node, config)
    if not identifier:
        return None
    base = node.base or node.attrs.get("vocab") or config.vocab
    obj: GraphNode = {"@type": config.namespaces.compact(identifier, base)}
    _collect_properties(node.children, obj, config)
    return obj


def _collect_properties(nodes: Iterable[Node], obj: GraphNode, config: Config) -> None:
    for node in nodes:
        name = property_name(node)
        if is_item(node):
            child = collect_node(node, config)
            if name and child is not None:
                add_property(obj, name, child)
        elif name:
            value = property_value(node)
            if value:
                add_property(obj, name, value)
        elif node.children:
            _collect_properties(node.children, obj, config)


def find_top_level_nodes(blocks: Iterable[Node], config: Config) -> list[GraphNode]:
    """
    Graph nodes for items that are not some other item's property value.

    Untyped containers, block or inline, are searched through; typed items
    are not descended into.
    """
    nodes: list[GraphNode] = []
    for block in blocks:
        if is_item(block):
            if property_name(block) is None:
                obj = collect_node(block, config)
                if obj is not None:
                    nodes.append(obj)
        elif block.children:
            nodes.extend(find_top_level_nodes(block.children, config))
    return nodes
