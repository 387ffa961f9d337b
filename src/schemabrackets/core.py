"""
Compilation pipeline for schema-brackets.

Implements the whole-document pass:
- per-document settings merged into the configuration
- bracket annotations rewritten into Microdata / RDFa attributes
- top-level items collected into a JSON-LD graph and appended to the
  document's header-includes
"""

from __future__ import annotations

from collections.abc import Mapping

from .config import SETTINGS_KEY, Config, get_config
from .dom import Document
from .extract import find_top_level_nodes
from .formats import markdown as _markdown  # noqa: F401 - ensure markdown format is registered
from .formats import text as _text  # noqa: F401 - ensure text format is registered
from .formats.base import FormatStrategy, registry
from .jsonld import build_payload, inject_jsonld
from .rewriter import Rewriter


def document_config(
    doc: Document,
    config: Config | None = None,
    overrides: Mapping | None = None,
) -> Config:
    """
    Base configuration with the document's own `schema-brackets` settings
    applied, then `overrides` (CLI flags) on top.
    """
    if config is None:
        config = get_config()
    return config.with_settings(doc.meta.get(SETTINGS_KEY)).with_settings(overrides)


def compile_document(
    doc: Document,
    config: Config | None = None,
    overrides: Mapping | None = None,
) -> Document:
    """
    Rewrite annotations in doc and inject its JSON-LD graph.

    The document is modified in place and returned.
    """
    config = document_config(doc, config, overrides)
    Rewriter(config).rewrite_document(doc)
    if config.jsonld:
        inject_jsonld(doc, find_top_level_nodes(doc.blocks, config), config)
    return doc


def graph_payload(
    doc: Document,
    config: Config | None = None,
    overrides: Mapping | None = None,
) -> dict | None:
    """
    The {@context, @graph} payload of an already rewritten document,
    or None when it has no top-level items.
    """
    config = document_config(doc, config, overrides)
    nodes = find_top_level_nodes(doc.blocks, config)
    if not nodes:
        return None
    return build_payload(nodes, config)


def get_strategy(content: str, filename: str | None, format_type: str | None) -> FormatStrategy:
    """Pick a reader: explicit type, then extension / magic detection, then Markdown."""
    if format_type:
        strategy = registry.get_by_name(format_type)
        if strategy is None:
            available = ", ".join(s.name for s in registry.strategies)
            raise ValueError(f"Unknown format type {format_type!r}. Available: {available}")
        return strategy

    match = registry.detect(content, filename)
    if match:
        return match.strategy
    return registry.get_by_name("markdown")


def compile_text(
    content: str,
    filename: str | None = None,
    format_type: str | None = None,
    config: Config | None = None,
    overrides: Mapping | None = None,
) -> Document:
    """Parse source text with the matching reader and compile it."""
    strategy = get_strategy(content, filename, format_type)
    return compile_document(strategy.parse(content), config, overrides)
