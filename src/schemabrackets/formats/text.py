"""
Text format strategy.

Parses plain text into paragraphs separated by blank lines. Lines in a
paragraph are joined with SOFTBREAK, words split into STR/SPACE, so
block-style annotations work the same way as in Markdown.
"""

from ..dom import Document, Node, NodeKind, tokenize_text
from .base import FormatStrategy, registry, split_front_matter


class TextStrategy(FormatStrategy):
    """Plain text as paragraphs of lines, split on blank lines."""

    @property
    def name(self) -> str:
        return "text"

    @property
    def extensions(self) -> list[str]:
        return [".txt", ".text"]

    def parse(self, content: str) -> Document:
        """
        Parse into Document: blocks -> PARA per section -> words.
        Sections are separated by one or more blank lines.
        """
        meta, body = split_front_matter(content)
        doc = Document(meta=meta)

        # Group lines into sections (split on blank lines)
        sections: list[list[str]] = []
        current_section: list[str] = []

        for line in body.splitlines():
            if line.strip() == "":
                if current_section:
                    sections.append(current_section)
                    current_section = []
            else:
                current_section.append(line.strip())

        if current_section:
            sections.append(current_section)

        for section_lines in sections:
            para = Node(NodeKind.PARA)
            for idx, line in enumerate(section_lines):
                if idx:
                    para.add_child(Node(NodeKind.SOFTBREAK))
                para.children.extend(tokenize_text(line))
            doc.blocks.append(para)

        return doc


# Register the default strategy
registry.register(TextStrategy())
