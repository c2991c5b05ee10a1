"""ComparisonConfiguration, MatcherRegistry and ConfigurationBuilder.

ComparisonConfiguration is a frozen (immutable) dataclass holding every rule
of one comparison: ignored paths, ignored types, ignored field-name patterns
and the registry of path- and type-keyed custom matchers.  It is produced
once by ``ConfigurationBuilder.build()`` and never mutated afterwards.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from json_same_as.protocols import Matcher

__all__ = [
    "ComparisonConfiguration",
    "ConfigurationBuilder",
    "MatcherRegistry",
    "NamePredicate",
    "as_name_predicate",
]

NamePredicate = Callable[[str], bool]


def _empty_mapping() -> Mapping[Any, Matcher]:
    return MappingProxyType({})


def as_name_predicate(rule: Any) -> NamePredicate:
    """Normalize a field-name rule to a plain ``str -> bool`` predicate.

    Accepts a compiled ``re.Pattern`` (matched with ``search``), a ``Matcher``
    or any other callable.

    Raises:
        TypeError: If ``rule`` is none of these.
    """
    if isinstance(rule, re.Pattern):
        pattern = rule
        return lambda name: pattern.search(name) is not None
    if isinstance(rule, Matcher):
        matcher = rule
        return matcher.matches
    if callable(rule):
        return rule
    msg = f"Field-name rule must be a re.Pattern, Matcher or callable, got {type(rule)!r}"
    raise TypeError(msg)


@dataclass(frozen=True, slots=True)
class MatcherRegistry:
    """Immutable registry of custom matchers keyed by path and by type.

    Both mappings keep insertion order, which is the order in which matchers
    are evaluated and described.
    """

    path_matchers: Mapping[str, Matcher] = field(default_factory=_empty_mapping)
    type_matchers: Mapping[type, Matcher] = field(default_factory=_empty_mapping)

    def matcher_for_path(self, path: str) -> Matcher | None:
        return self.path_matchers.get(path)

    def matcher_for_type(self, cls: type) -> Matcher | None:
        return self.type_matchers.get(cls)


@dataclass(frozen=True, slots=True)
class ComparisonConfiguration:
    """Immutable configuration of one comparison.

    Attributes:
        ignored_paths: Paths removed from both sides of the comparison.
        ignored_types: Classes whose fields and values are removed everywhere.
        name_patterns: Predicates over field names; matching fields are removed.
        registry:      Path- and type-keyed custom matchers.
        indent:        Indentation of canonical text (>= 0).  Default 2.
    """

    ignored_paths: frozenset[str] = frozenset()
    ignored_types: tuple[type, ...] = ()
    name_patterns: tuple[NamePredicate, ...] = ()
    registry: MatcherRegistry = field(default_factory=MatcherRegistry)
    indent: int = 2

    def __post_init__(self) -> None:
        if self.indent < 0:
            msg = f"indent must be >= 0, got {self.indent}"
            raise ValueError(msg)
        for cls in self.ignored_types:
            if not isinstance(cls, type):
                msg = f"ignored_types must contain classes, got {cls!r}"
                raise TypeError(msg)

    @property
    def suppressed_paths(self) -> frozenset[str]:
        """Paths left out of the generic diff: ignored or custom-matched."""
        return self.ignored_paths | frozenset(self.registry.path_matchers)

    def ignores_name(self, name: str) -> bool:
        return any(predicate(name) for predicate in self.name_patterns)


class ConfigurationBuilder:
    """Mutable, fluent builder of a ``ComparisonConfiguration``.

    Example::

        config = (
            ConfigurationBuilder()
            .ignore_path("id")
            .ignore_type(datetime)
            .match_path("name", not_(is_empty()))
            .build()
        )
    """

    def __init__(self, indent: int = 2) -> None:
        self._indent = indent
        self._ignored_paths: list[str] = []
        self._ignored_types: list[type] = []
        self._name_patterns: list[NamePredicate] = []
        self._path_matchers: dict[str, Matcher] = {}
        self._type_matchers: dict[type, Matcher] = {}

    def ignore_path(self, path: str) -> ConfigurationBuilder:
        if not isinstance(path, str) or not path:
            msg = f"path must be a non-empty string, got {path!r}"
            raise ValueError(msg)
        self._ignored_paths.append(path)
        return self

    def ignore_type(self, cls: type) -> ConfigurationBuilder:
        if not isinstance(cls, type):
            msg = f"ignore_type() requires a class, got {cls!r}"
            raise TypeError(msg)
        if cls not in self._ignored_types:
            self._ignored_types.append(cls)
        return self

    def ignore_name(self, rule: Any) -> ConfigurationBuilder:
        self._name_patterns.append(as_name_predicate(rule))
        return self

    def match_path(self, path: str, matcher: Matcher) -> ConfigurationBuilder:
        if not isinstance(path, str) or not path:
            msg = f"path must be a non-empty string, got {path!r}"
            raise ValueError(msg)
        self._path_matchers[path] = _require_matcher(matcher)
        return self

    def match_type(self, cls: type, matcher: Matcher) -> ConfigurationBuilder:
        if not isinstance(cls, type):
            msg = f"match_type() requires a class, got {cls!r}"
            raise TypeError(msg)
        self._type_matchers[cls] = _require_matcher(matcher)
        return self

    def build(self) -> ComparisonConfiguration:
        """Snapshot the current rules into an immutable configuration."""
        return ComparisonConfiguration(
            ignored_paths=frozenset(self._ignored_paths),
            ignored_types=tuple(self._ignored_types),
            name_patterns=tuple(self._name_patterns),
            registry=MatcherRegistry(
                path_matchers=MappingProxyType(dict(self._path_matchers)),
                type_matchers=MappingProxyType(dict(self._type_matchers)),
            ),
            indent=self._indent,
        )


def _require_matcher(matcher: Any) -> Matcher:
    if not isinstance(matcher, Matcher):
        msg = (
            "matcher must provide matches(), describe_to() and "
            f"describe_mismatch(), got {type(matcher)!r}"
        )
        raise TypeError(msg)
    return matcher
