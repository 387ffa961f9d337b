"""
CLI interface for schema-brackets.

Compiles a Markdown or text document with bracket annotations and prints
its JSON-LD payload, the <script> block destined for the page head, or
the attributed tree.
"""

from __future__ import annotations

import argparse
import logging
import sys

from .config import SYNTAXES, get_config
from .core import compile_text, document_config, graph_payload
from .dom import Node, NodeKind, dump_tree
from .jsonld import HEADER_INCLUDES, to_json

OUTPUTS = ("jsonld", "script", "tree")


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="schema-brackets",
        description="Compile <<item:TYPE>>[ ... ] annotations into Microdata/RDFa and JSON-LD",
    )

    parser.add_argument(
        "file",
        nargs="?",
        help="Input file (reads from stdin if not provided)",
    )

    parser.add_argument(
        "--type",
        type=str,
        dest="format_type",
        help="Force input format (markdown, text)",
    )

    parser.add_argument(
        "--output",
        "-o",
        choices=OUTPUTS,
        default="jsonld",
        help="What to print: JSON-LD payload (default), head <script> block, or attributed tree",
    )

    parser.add_argument(
        "--syntax",
        choices=SYNTAXES,
        help="Attribute convention to emit (default from config: both)",
    )

    parser.add_argument(
        "--vocab",
        type=str,
        help="Default vocabulary IRI for bare type names (e.g., https://schema.org/)",
    )

    parser.add_argument(
        "--prefix",
        action="append",
        default=[],
        metavar="PREFIX=IRI",
        help="Namespace prefix, repeatable (e.g., dc=http://purl.org/dc/terms/)",
    )

    parser.add_argument(
        "--context",
        type=str,
        help="JSON-LD @context base IRI",
    )

    parser.add_argument(
        "--primary-type",
        type=str,
        help="Type listed first in @graph",
    )

    parser.add_argument(
        "--no-jsonld",
        action="store_false",
        dest="jsonld",
        default=None,
        help="Do not build the JSON-LD graph",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log literal fallbacks and other decisions to stderr",
    )

    return parser.parse_args(args)


def parse_prefixes(values: list[str]) -> dict[str, str]:
    """Parse repeated PREFIX=IRI flags."""
    prefixes: dict[str, str] = {}
    for value in values:
        prefix, sep, iri = value.partition("=")
        if not sep or not prefix.strip() or not iri.strip():
            raise ValueError(f"Invalid prefix {value!r}. Use PREFIX=IRI (e.g., dc=http://purl.org/dc/terms/)")
        prefixes[prefix.strip()] = iri.strip()
    return prefixes


def cli_settings(parsed: argparse.Namespace) -> dict:
    """Settings mapping from CLI flags (only flags that were given)."""
    settings: dict = {}
    if parsed.syntax:
        settings["syntax"] = parsed.syntax
    if parsed.vocab:
        settings["vocab"] = parsed.vocab
    if parsed.context:
        settings["context"] = parsed.context
    if parsed.primary_type:
        settings["primary-type"] = parsed.primary_type
    if parsed.jsonld is not None:
        settings["jsonld"] = parsed.jsonld
    if parsed.prefix:
        settings["prefixes"] = parse_prefixes(parsed.prefix)
    return settings


def read_input(filepath: str | None) -> tuple[str, str | None]:
    """Read from file or stdin, return (content, filename)."""
    if filepath:
        with open(filepath, encoding="utf-8") as f:
            return f.read(), filepath
    return sys.stdin.read(), None


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parsed = parse_args(args)

    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        content, filename = read_input(parsed.file)
    except FileNotFoundError:
        print(f"Error: File not found: {parsed.file}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error reading input: {e}", file=sys.stderr)
        return 1

    # flags go on top of the document's own settings
    try:
        config = get_config()
        overrides = cli_settings(parsed)
        doc = compile_text(
            content,
            filename=filename,
            format_type=parsed.format_type,
            config=config,
            overrides=overrides,
        )
        effective = document_config(doc, config, overrides)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if parsed.output == "tree":
        print("\n".join(dump_tree(doc.blocks)))
    elif parsed.output == "script":
        for block in doc.meta.get(HEADER_INCLUDES, []):
            if isinstance(block, Node) and block.kind is NodeKind.RAW_BLOCK:
                print(block.text)
    elif effective.jsonld:
        payload = graph_payload(doc, config, overrides)
        if payload is not None:
            print(to_json(payload))

    return 0


if __name__ == "__main__":
    sys.exit(main())
