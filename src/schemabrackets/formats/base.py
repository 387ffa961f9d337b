"""
Base format interface and registry.

Each format strategy turns source text into a Document tree.
The registry manages format detection and selection.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

import yaml

from ..dom import Document

# YAML front matter: a leading '---' line, the YAML, a closing '---' or '...' line
FRONT_MATTER_PATTERN = re.compile(r"\A---[ \t]*\r?\n(.*?)^(?:---|\.\.\.)[ \t]*(?:\r?\n|\Z)", re.DOTALL | re.MULTILINE)


def split_front_matter(content: str) -> tuple[dict, str]:
    """
    Split leading YAML front matter from content.

    Returns (metadata, body). Content without front matter gives ({}, content).
    Raises ValueError on malformed YAML.
    """
    match = FRONT_MATTER_PATTERN.match(content)
    if not match:
        return {}, content
    try:
        meta = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid front matter: {e}") from e
    if meta is None:
        meta = {}
    if not isinstance(meta, dict):
        raise ValueError(f"Front matter must be a mapping, got {type(meta).__name__}")
    return meta, content[match.end():]


class FormatStrategy(ABC):
    """Base class for source format readers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name."""
        ...

    @property
    @abstractmethod
    def extensions(self) -> list[str]:
        """File extensions this format handles (e.g., ['.txt', '.text'])."""
        ...

    def detect(self, content: str) -> bool:
        """
        Magic detection: returns True if content looks like this format.
        Default implementation returns False (rely on extension only).
        """
        return False

    @abstractmethod
    def parse(self, content: str) -> Document:
        """Parse content into a Document."""
        ...


@dataclass
class FormatMatch:
    """Result of format detection."""
    strategy: FormatStrategy
    confidence: float  # 0.0 to 1.0


class FormatRegistry:
    """Registry of format strategies with detection and selection."""

    def __init__(self):
        self._strategies: list[FormatStrategy] = []
        self._by_extension: dict[str, FormatStrategy] = {}
        self._by_name: dict[str, FormatStrategy] = {}

    def register(self, strategy: FormatStrategy) -> None:
        """Register a format strategy."""
        self._strategies.append(strategy)
        self._by_name[strategy.name] = strategy
        for ext in strategy.extensions:
            # First registered wins for extension conflicts
            if ext not in self._by_extension:
                self._by_extension[ext] = strategy

    def get_by_name(self, name: str) -> FormatStrategy | None:
        """Get strategy by name (for --type override)."""
        return self._by_name.get(name)

    def get_by_extension(self, ext: str) -> FormatStrategy | None:
        """Get strategy by file extension."""
        if not ext.startswith('.'):
            ext = '.' + ext
        return self._by_extension.get(ext.lower())

    def detect(self, content: str, filename: str | None = None) -> FormatMatch | None:
        """
        Detect the best format for content.

        Priority:
        1. Extension match (high confidence)
        2. Magic detection (medium confidence)
        """
        if filename:
            ext = self._get_extension(filename)
            if ext and ext in self._by_extension:
                return FormatMatch(
                    strategy=self._by_extension[ext],
                    confidence=1.0
                )

        for strategy in self._strategies:
            if strategy.detect(content):
                return FormatMatch(
                    strategy=strategy,
                    confidence=0.8
                )

        # Return None to let caller decide fallback
        return None

    def _get_extension(self, filename: str) -> str | None:
        """Extract lowercase extension from filename."""
        if '.' in filename:
            return '.' + filename.rsplit('.', 1)[-1].lower()
        return None

    @property
    def strategies(self) -> list[FormatStrategy]:
        """List all registered strategies."""
        return list(self._strategies)


# Global registry instance
registry = FormatRegistry()
