"""algorithm subpackage: configuration, canonicalization and diffing.

Import from this module (not from sub-modules directly) to stay on the stable
public interface.

Example::

    from json_same_as.algorithm import Canonicalizer, ConfigurationBuilder, DiffEngine

    config = ConfigurationBuilder().ignore_path("id").build()
    canonicalizer = Canonicalizer(config)
    left = canonicalizer.canonical_text({"id": 1, "tags": {"b", "a"}})
    right = canonicalizer.canonical_text({"id": 2, "tags": {"a", "b"}})
    DiffEngine().compare(left, right)   # None
"""

from __future__ import annotations

from json_same_as.algorithm.canonicalizer import (
    Canonicalizer,
    MatcherRejection,
    TypeRules,
    format_timestamp,
)
from json_same_as.algorithm.config import (
    ComparisonConfiguration,
    ConfigurationBuilder,
    MatcherRegistry,
)
from json_same_as.algorithm.diff import DiffEngine

__all__ = [
    "Canonicalizer",
    "ComparisonConfiguration",
    "ConfigurationBuilder",
    "DiffEngine",
    "MatcherRegistry",
    "MatcherRejection",
    "TypeRules",
    "format_timestamp",
]
