"""
JSON-LD payload: @context merging, @graph ordering, serialization and
injection into the document's header-includes.
"""

from __future__ import annotations

import json
import logging
import re

from .config import DEFAULT_CONTEXT, Config
from .dom import Document, Node, NodeKind
from .extract import GraphNode

logger = logging.getLogger(__name__)

HEADER_INCLUDES = "header-includes"
SCRIPT_TEMPLATE = '<script type="application/ld+json">{}</script>'

# two IRIs run together, e.g. "https://schema.orghttps://schema.org"
DOUBLED_IRI = re.compile(r"https?://.+https?://")


def _prefix_map(config: Config) -> dict[str, str]:
    mapping = {prefix: config.prefixes[prefix] for prefix in sorted(config.prefixes)}
    if config.vocab:
        mapping["@vocab"] = config.vocab
    return mapping


def merge_context(config: Config):
    """
    Combine the configured @context with the prefix table and vocab.

    - string: `[string, {prefixes..., "@vocab": vocab}]`
    - list: the mapping is appended as one more entry
    - mapping: prefixes and @vocab fill in keys the user did not set
    """
    extra = _prefix_map(config)
    context = config.context

    if context is None or isinstance(context, str):
        base = context or DEFAULT_CONTEXT
        if DOUBLED_IRI.search(base):
            logger.debug(f"Context {base!r} holds two IRIs, using {DEFAULT_CONTEXT}")
            base = DEFAULT_CONTEXT
        return [base, extra] if extra else base

    if isinstance(context, list):
        merged_list: list = list(context)
        if extra:
            merged_list.append(extra)
        return merged_list

    merged = dict(context)
    for key, value in extra.items():
        merged.setdefault(key, value)
    return merged


def type_label(node: GraphNode) -> str:
    label = node.get("@type", "")
    if isinstance(label, list):
        label = label[0] if label else ""
    return str(label)


def order_graph(nodes: list[GraphNode], primary_type: str) -> list[GraphNode]:
    """Primary type first, then by type label. Stable; for readable diffs only."""
    primary = re.compile(rf"(^|[:/#]){re.escape(primary_type)}$") if primary_type else None

    def sort_key(node: GraphNode) -> tuple[int, str]:
        label = type_label(node)
        rank = 0 if primary is not None and primary.search(label) else 1
        return rank, label

    return sorted(nodes, key=sort_key)


def build_payload(nodes: list[GraphNode], config: Config) -> dict:
    return {
        "@context": merge_context(config),
        "@graph": order_graph(nodes, config.primary_type),
    }


def to_json(payload) -> str:
    """
    Compact JSON. Mappings keep insertion order; '</' is escaped so the
    text can sit inside a <script> element.
    """
    text = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    return text.replace("</", "<\\/")


def script_block(json_text: str) -> Node:
    return Node(NodeKind.RAW_BLOCK, text=SCRIPT_TEMPLATE.format(json_text), format="html")


def inject_jsonld(doc: Document, nodes: list[GraphNode], config: Config) -> Document:
    """Append the serialized graph to header-includes. No-op for an empty graph."""
    if not nodes:
        return doc
    block = script_block(to_json(build_payload(nodes, config)))

    existing = doc.meta.get(HEADER_INCLUDES)
    if existing is None:
        doc.meta[HEADER_INCLUDES] = [block]
    elif isinstance(existing, list):
        existing.append(block)
    else:
        doc.meta[HEADER_INCLUDES] = [existing, block]

    logger.info(f"Injected JSON-LD graph with {len(nodes)} top-level node(s)")
    return doc
