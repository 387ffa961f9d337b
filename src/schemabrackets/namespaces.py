"""
Namespace resolution for type and property names.

Names are written as absolute IRIs (`https://schema.org/Movie`), CURIEs
against a configured prefix (`dc:CreativeWork`) or bare terms (`Movie`)
resolved against a base vocabulary.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field

ABSOLUTE_IRI = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")
CURIE = re.compile(r"^([^:]+):(.+)$")


def join_iri(base: str | None, term: str) -> str:
    """Join a base IRI and a term, inserting '/' unless base ends in '/' or '#'."""
    if not base:
        return term
    if base[-1] in "/#":
        return base + term
    return base + "/" + term


def is_absolute(name: str) -> bool:
    return bool(ABSOLUTE_IRI.match(name))


@dataclass(frozen=True)
class NamespaceTable:
    """Default vocabulary plus prefix -> base IRI table. Read-only."""
    vocab: str
    prefixes: Mapping[str, str] = field(default_factory=dict)

    def resolve(self, name: str | None, base: str | None = None) -> str | None:
        """
        Resolve a name to an absolute IRI.

        1. Absolute IRIs are returned unchanged.
        2. `prefix:rest` with a known prefix joins the prefix base and rest.
        3. Anything else joins `base` (per-item vocab) or the default vocab.

        Returns None for an empty name.
        """
        if not name:
            return None
        if is_absolute(name):
            return name
        curie = CURIE.match(name)
        if curie and curie.group(1) in self.prefixes:
            return join_iri(self.prefixes[curie.group(1)], curie.group(2))
        return join_iri(base or self.vocab, name)

    def compact(self, iri: str, base: str | None = None) -> str:
        """
        Shorten an absolute IRI for JSON-LD output.

        Prefixes are tried in sorted order so the result does not depend
        on configuration order. Falls back to stripping the scope base,
        then to the IRI itself.
        """
        for prefix in sorted(self.prefixes):
            namespace = self.prefixes[prefix]
            if namespace and iri.startswith(namespace) and len(iri) > len(namespace):
                return f"{prefix}:{iri[len(namespace):]}"
        scope = base or self.vocab
        if scope and iri.startswith(scope) and len(iri) > len(scope):
            return iri[len(scope):]
        return iri

    def prefix_attribute(self) -> str:
        """RDFa `prefix` attribute value: `p1: iri1 p2: iri2`, sorted."""
        return " ".join(sorted(f"{prefix}: {iri}" for prefix, iri in self.prefixes.items()))
