"""
Configuration for schema-brackets.

All tunable parameters in one place. Loaded from:
1. Defaults (this file)
2. Config file (~/.config/schema-brackets/config.toml) if exists
3. Environment variables (SCHEMA_BRACKETS_*) override file
4. Document front matter (`schema-brackets:` mapping) per document
5. CLI flags override everything

A Config is immutable. Each layer produces a new value with
`Config.with_settings`, and the rewriter and extractor receive it
explicitly.
"""

from __future__ import annotations

import contextlib
import logging
import os
import tomllib  # stdlib in 3.11+
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path

from .namespaces import NamespaceTable

logger = logging.getLogger(__name__)

SETTINGS_KEY = "schema-brackets"
SYNTAXES = ("microdata", "rdfa", "both")
DEFAULT_VOCAB = "https://schema.org/"
DEFAULT_CONTEXT = "https://schema.org"

ContextValue = str | list[str] | dict[str, str] | None


def _normalize_vocab(vocab: str) -> str:
    """Vocabularies always end in '/' or '#' so terms can be appended."""
    if vocab and vocab[-1] not in "/#":
        return vocab + "/"
    return vocab


def _as_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() not in ("false", "0", "no", "off")


@dataclass(frozen=True)
class Config:
    """Settings for one compilation pass."""
    syntax: str = "both"  # microdata | rdfa | both
    jsonld: bool = True
    vocab: str = DEFAULT_VOCAB
    prefixes: dict[str, str] = field(default_factory=dict)
    context: ContextValue = DEFAULT_CONTEXT
    primary_type: str = "Movie"  # sorts first in @graph

    def __post_init__(self):
        if self.syntax not in SYNTAXES:
            raise ValueError(f"Invalid syntax {self.syntax!r}, expected one of {', '.join(SYNTAXES)}")
        if not isinstance(self.prefixes, Mapping):
            raise ValueError(f"prefixes must be a mapping, got {type(self.prefixes).__name__}")
        if self.context is not None and not isinstance(self.context, (str, list, dict)):
            raise ValueError(f"context must be a string, list or mapping, got {type(self.context).__name__}")
        object.__setattr__(self, "vocab", _normalize_vocab(self.vocab))

    @property
    def emits_microdata(self) -> bool:
        return self.syntax in ("microdata", "both")

    @property
    def emits_rdfa(self) -> bool:
        return self.syntax in ("rdfa", "both")

    @property
    def namespaces(self) -> NamespaceTable:
        return NamespaceTable(self.vocab, self.prefixes)

    def with_settings(self, settings: Mapping | None) -> Config:
        """
        Return a new Config with a settings mapping applied.

        Recognized keys: syntax, jsonld, vocab, prefixes, context,
        primary-type. Unknown keys are ignored. Prefixes accumulate on
        top of the existing table.
        """
        if not settings:
            return self
        if not isinstance(settings, Mapping):
            raise ValueError(f"{SETTINGS_KEY} settings must be a mapping, got {type(settings).__name__}")

        changes: dict = {}
        if settings.get("syntax") is not None:
            changes["syntax"] = str(settings["syntax"]).strip()
        if settings.get("jsonld") is not None:
            changes["jsonld"] = _as_bool(settings["jsonld"])
        if settings.get("vocab"):
            changes["vocab"] = str(settings["vocab"]).strip()
        if settings.get("primary-type"):
            changes["primary_type"] = str(settings["primary-type"])
        if settings.get("prefixes") is not None:
            prefixes = settings["prefixes"]
            if not isinstance(prefixes, Mapping):
                raise ValueError(f"prefixes must be a mapping, got {type(prefixes).__name__}")
            merged = dict(self.prefixes)
            merged.update({str(k): str(v) for k, v in prefixes.items()})
            changes["prefixes"] = merged
        if settings.get("context") is not None:
            changes["context"] = _coerce_context(settings["context"])

        return replace(self, **changes)


def _coerce_context(value) -> ContextValue:
    if isinstance(value, Mapping):
        return {str(k): str(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return str(value)


def get_config_path() -> Path:
    """Get config file path, respecting XDG."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "schema-brackets" / "config.toml"
    return Path.home() / ".config" / "schema-brackets" / "config.toml"


def load_config() -> Config:
    """Load config from file if exists, else return defaults."""
    config = Config()
    path = get_config_path()

    if path.exists():
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
            config = config.with_settings(data.get(SETTINGS_KEY, data))
        except (OSError, tomllib.TOMLDecodeError, ValueError) as e:
            logger.warning(f"Ignoring config file {path}: {e}")

    # env var overrides
    config = _apply_env(config)

    return config


def _apply_env(config: Config) -> Config:
    """Apply environment variable overrides."""
    env_map: dict[str, str] = {
        "SCHEMA_BRACKETS_SYNTAX": "syntax",
        "SCHEMA_BRACKETS_JSONLD": "jsonld",
        "SCHEMA_BRACKETS_VOCAB": "vocab",
        "SCHEMA_BRACKETS_PRIMARY_TYPE": "primary-type",
    }

    for env_key, setting in env_map.items():
        val = os.environ.get(env_key)
        if val is not None:
            with contextlib.suppress(ValueError):
                config = config.with_settings({setting: val})

    return config


# Module-level config instance, loaded once on first use
_config: Config | None = None


def get_config() -> Config:
    """Get the global config instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config
