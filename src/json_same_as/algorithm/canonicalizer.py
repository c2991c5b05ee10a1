"""Canonicalizer: converts an arbitrary object graph into a CanonicalValue tree.

Rules, in precedence order, for every field or value met during the walk:

1. Exclusion - fields whose name matches an ignored pattern, whose declared
   or runtime type is ignored, or whose path is suppressed are omitted.
   Non-field values (root, elements, mapping entries) of an ignored type
   become ``null``.
2. Interception - when type matchers are intercepted and the declared or
   runtime type has a matcher, the matcher decides: accepted values become
   ``null``; a rejected value aborts the walk with a ``MatcherRejection``.
3. Unordered containers - set elements are sorted by their canonical text;
   mapping entries are sorted by key text + value text and rendered as
   ``[{key: value}, ...]`` when every key is a scalar, else as a flat
   ``[key, value, key, value, ...]`` array.
4. Dates - ``Jan 5, 2024 03:04:05.006 PM`` (aware datetimes in UTC).
5. ``Maybe`` - ``[value]`` when present, ``[null]`` when absent.
6. Cyclic types - the first occurrence of an instance renders in full, later
   occurrences of the same instance render as the reference object
   ``{"@ref": <n>}``, ``n`` being the arena position of the first one.
7. Objects - an object of the remaining fields in declaration order; null
   members are omitted.

A rejection is returned, not raised: every encoding step hands its outcome
back to its parent, which stops at the first ``MatcherRejection``.
"""

from __future__ import annotations

import datetime
import json
import logging
import uuid
from collections.abc import Callable, Generator, Mapping, Sequence, Set
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from pathlib import PurePath
from typing import Any, NamedTuple

import numpy as np

from json_same_as.algorithm.config import ComparisonConfiguration
from json_same_as.cache import DEFAULT_FIELD_CACHE, FieldCache
from json_same_as.optional import Maybe
from json_same_as.protocols import Matcher
from json_same_as.tree.introspect import is_namedtuple, iter_fields
from json_same_as.tree.nodes import UNORDERED_MARKER, CanonicalValue, NodeKind
from json_same_as.tree.paths import Location

__all__ = [
    "REFERENCE_KEY",
    "Canonicalizer",
    "MatcherRejection",
    "Outcome",
    "TypeRules",
    "format_timestamp",
]

logger = logging.getLogger(__name__)

REFERENCE_KEY = "@ref"

_MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)  # fmt: skip

_NULL = CanonicalValue.null()


def format_timestamp(value: datetime.date) -> str:
    """Format a date or datetime with millisecond resolution.

    English month abbreviations and a 12-hour clock are used regardless of
    locale, e.g. ``Jan 5, 2024 03:04:05.006 PM``.  Aware datetimes are
    converted to UTC first; plain dates render at midnight.
    """
    hour = minute = second = millis = 0
    if isinstance(value, datetime.datetime):
        if value.utcoffset() is not None:
            value = value.astimezone(datetime.timezone.utc)
        hour, minute, second = value.hour, value.minute, value.second
        millis = value.microsecond // 1000
    meridiem = "AM" if hour < 12 else "PM"
    return (
        f"{_MONTHS[value.month - 1]} {value.day}, {value.year:04d} "
        f"{hour % 12 or 12:02d}:{minute:02d}:{second:02d}.{millis:03d} {meridiem}"
    )


@dataclass(frozen=True, slots=True)
class MatcherRejection:
    """A type matcher rejected a value during canonicalization.

    Attributes:
        value:     The rejected value (may be None for a declared field).
        matcher:   The matcher that rejected it.
        type_name: Simple name of the class the matcher is bound to.
        snippet:   Pretty canonical text of the value when it is not a
                   primitive or null; None otherwise.
    """

    value: Any
    matcher: Matcher
    type_name: str
    snippet: str | None = None

    def describe(self) -> str:
        """``<TypeName> <mismatch>`` plus the snippet on its own lines."""
        text = f"{self.type_name} {self.matcher.describe_mismatch(self.value)}"
        if self.snippet is not None:
            text = f"{text}\n{self.snippet}"
        return text


Outcome = CanonicalValue | MatcherRejection


@dataclass(slots=True)
class _Arena:
    """Identity arena of one canonicalization pass.

    ``objects`` pins every admitted instance so that its id stays unique for
    the whole pass; ``index`` maps an id to its arena position.
    """

    objects: list[Any] = field(default_factory=list)
    index: dict[int, int] = field(default_factory=dict)

    def reference(self, value: Any) -> int | None:
        return self.index.get(id(value))

    def admit(self, value: Any) -> None:
        self.index[id(value)] = len(self.objects)
        self.objects.append(value)

    def fork(self) -> _Arena:
        return _Arena(list(self.objects), dict(self.index))


class _Visit(NamedTuple):
    """One value to encode, with the state it is encoded under."""

    value: Any
    arena: _Arena
    location: Location
    declared: type | None


_Encoding = Generator[_Visit, Any, Outcome]


class _Entry(NamedTuple):
    sort_key: str
    key: Any
    value: Any
    key_probe: CanonicalValue
    value_probe: CanonicalValue
    name: str | None
    location: Location


class TypeRules:
    """Type-keyed ignore and matcher rules, resolved once per canonicalizer.

    Args:
        config:         The comparison configuration.
        intercept:      Hand values of matched types to their matcher.
        ignore_matched: Treat matched types as ignored types.
    """

    def __init__(
        self,
        config: ComparisonConfiguration,
        *,
        intercept: bool,
        ignore_matched: bool,
    ) -> None:
        type_matchers = config.registry.type_matchers
        ignored = set(config.ignored_types)
        if ignore_matched:
            ignored.update(type_matchers)
        self._ignored: frozenset[type] = frozenset(ignored)
        self._matchers: dict[type, Matcher] = dict(type_matchers) if intercept else {}

    def is_ignored(self, cls: type | None) -> bool:
        return cls is not None and cls in self._ignored

    def matcher_for(
        self, declared: type | None, runtime: type | None
    ) -> tuple[type, Matcher] | None:
        """Return ``(bound_class, matcher)``; the declared type wins."""
        if not self._matchers:
            return None
        for cls in (declared, runtime):
            if cls is not None:
                matcher = self._matchers.get(cls)
                if matcher is not None:
                    return cls, matcher
        return None


class Canonicalizer:
    """Walks object graphs and produces ``CanonicalValue`` trees.

    One canonicalizer serves one side of a comparison: the expected side
    ignores matched types (``ignore_matched_types=True``), the actual side
    intercepts them (``intercept_type_matchers=True``).  Per-class encoder and
    rule decisions are cached on the instance; identity state lives in a
    fresh arena per ``canonicalize`` call.

    Composite encoders are generators: they yield a ``_Visit`` for every child
    and receive its outcome back.  ``_walk`` drives them from an explicit
    stack, so the depth of the graph is not bounded by the recursion limit.

    Example::

        canonicalizer = Canonicalizer(ComparisonConfiguration())
        canonicalizer.canonicalize({3, 1, 2}).render()
        # '[\\n  1,\\n  2,\\n  3\\n]'
    """

    def __init__(
        self,
        config: ComparisonConfiguration,
        cycle_types: frozenset[type] = frozenset(),
        *,
        intercept_type_matchers: bool = False,
        ignore_matched_types: bool = False,
        apply_path_rules: bool = True,
        field_cache: FieldCache | None = None,
    ) -> None:
        self._config = config
        self._cycle_types = cycle_types
        self._field_cache = field_cache if field_cache is not None else DEFAULT_FIELD_CACHE
        self._rules = TypeRules(
            config,
            intercept=intercept_type_matchers,
            ignore_matched=ignore_matched_types,
        )
        self._suppressed = config.suppressed_paths if apply_path_rules else frozenset()
        self._encoders: dict[type, tuple[Callable[..., Any], bool]] = {}
        self._plain: Canonicalizer | None = None

    @property
    def config(self) -> ComparisonConfiguration:
        return self._config

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def canonicalize(self, value: Any) -> Outcome:
        """Return the canonical tree of ``value``, or the first rejection."""
        return self._walk(_Visit(value, _Arena(), Location(), None))

    def canonical_text(self, value: Any) -> str | MatcherRejection:
        """Return the canonical text of ``value``, or the first rejection."""
        outcome = self.canonicalize(value)
        if isinstance(outcome, MatcherRejection):
            return outcome
        return outcome.render(self._config.indent)

    def snippet(self, value: Any) -> str | None:
        """Pretty canonical text of ``value`` for diagnostics.

        Rendered without type interception and without path rules, since
        paths are written from the root of the graph and ``value`` is any
        node inside it.  None when the value is None or canonicalizes to a
        primitive.
        """
        if value is None:
            return None
        outcome = self._plain_canonicalizer().canonicalize(value)
        if isinstance(outcome, MatcherRejection) or outcome.is_primitive:
            return None
        return outcome.render(self._config.indent)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _walk(self, visit: _Visit) -> Outcome:
        started = self._start(visit)
        if not isinstance(started, Generator):
            return started
        stack: list[_Encoding] = [started]
        reply: Any = None
        while True:
            try:
                request = stack[-1].send(reply)
            except StopIteration as done:
                stack.pop()
                if not stack:
                    return done.value
                reply = done.value
                continue
            started = self._start(request)
            if isinstance(started, Generator):
                stack.append(started)
                reply = None
            else:
                reply = started

    def _start(self, visit: _Visit) -> Outcome | _Encoding:
        """Encode a leaf at once, or return the generator of a composite."""
        value, arena, location, declared = visit
        runtime = type(value)
        if value is not None and self._rules.is_ignored(runtime):
            return _NULL

        bound = self._rules.matcher_for(declared, None if value is None else runtime)
        if bound is not None:
            return self._intercept(value, *bound)

        encoder, composite = self._encoder_for(runtime)
        if not composite:
            return encoder(value)

        if runtime in self._cycle_types:
            reference = arena.reference(value)
            if reference is not None:
                return _reference(reference)
            arena.admit(value)
        return encoder(value, arena, location)

    def _encoder_for(self, cls: type) -> tuple[Callable[..., Any], bool]:
        try:
            return self._encoders[cls]
        except KeyError:
            selected = self._select_encoder(cls)
            self._encoders[cls] = selected
            return selected

    def _select_encoder(self, cls: type) -> tuple[Callable[..., Any], bool]:
        """Pick the encoder for ``cls`` and whether it is composite.

        numpy scalars are checked before bool/int/float (np.float64 subclasses
        float), Enum before int and str (IntEnum, StrEnum), and bool before int.
        """
        if cls is type(None):
            return _encode_null, False
        if issubclass(cls, np.ndarray):
            return self._encode_ndarray, True
        if issubclass(cls, np.generic):
            return self._encode_numpy_scalar, True
        if issubclass(cls, bool):
            return _encode_bool, False
        if issubclass(cls, Enum):
            return _encode_enum, False
        if issubclass(cls, int):
            return _encode_int, False
        if issubclass(cls, float):
            return _encode_float, False
        if issubclass(cls, str):
            return _encode_str, False
        if issubclass(cls, datetime.date):
            return _encode_date, False
        if issubclass(cls, (bytes, bytearray, memoryview)):
            return _encode_bytes, False
        if issubclass(
            cls,
            (complex, Decimal, uuid.UUID, PurePath, datetime.time, datetime.timedelta),
        ):
            return _encode_text, False
        if issubclass(cls, type):
            return _encode_class, False
        if issubclass(cls, Maybe):
            return self._encode_maybe, True
        if is_namedtuple(cls):
            return self._encode_object, True
        if issubclass(cls, Mapping):
            return self._encode_mapping, True
        if issubclass(cls, Set):
            return self._encode_set, True
        if issubclass(cls, Sequence):
            return self._encode_sequence, True
        return self._encode_object, True

    # ------------------------------------------------------------------
    # Interception
    # ------------------------------------------------------------------

    def _intercept(self, value: Any, bound: type, matcher: Matcher) -> Outcome:
        if matcher.matches(value):
            return _NULL
        logger.debug("%s matcher rejected %r", bound.__name__, value)
        return MatcherRejection(value, matcher, bound.__name__, self.snippet(value))

    def _plain_canonicalizer(self) -> Canonicalizer:
        if self._plain is None:
            self._plain = Canonicalizer(
                self._config,
                self._cycle_types,
                apply_path_rules=False,
                field_cache=self._field_cache,
            )
        return self._plain

    # ------------------------------------------------------------------
    # Composite encoders
    # ------------------------------------------------------------------

    def _encode_object(self, value: Any, arena: _Arena, location: Location) -> _Encoding:
        members: list[tuple[str, CanonicalValue]] = []
        for name, item, declared in iter_fields(value, self._field_cache):
            if self._config.ignores_name(name) or self._rules.is_ignored(declared):
                continue
            child = location.field(name)
            if child.is_in(self._suppressed):
                continue
            outcome = yield _Visit(item, arena, child, declared)
            if isinstance(outcome, MatcherRejection):
                return outcome
            if outcome.kind is NodeKind.NULL:
                continue
            key = UNORDERED_MARKER + name if isinstance(item, (Set, Mapping)) else name
            members.append((key, outcome))
        return CanonicalValue.obj(members)

    def _encode_sequence(
        self, value: Sequence[Any], arena: _Arena, location: Location
    ) -> _Encoding:
        items: list[CanonicalValue] = []
        for position, item in enumerate(value):
            child = location.index(position)
            if child.indexed in self._suppressed:
                continue
            outcome = yield _Visit(item, arena, child, None)
            if isinstance(outcome, MatcherRejection):
                return outcome
            items.append(outcome)
        return CanonicalValue.array(items)

    def _encode_set(self, value: Set[Any], arena: _Arena, location: Location) -> _Encoding:
        # Sort keys come from forked passes so that probing never consumes
        # arena positions of the real pass.
        probes: list[tuple[str, Any, CanonicalValue]] = []
        for item in value:
            probe = yield _Visit(item, arena.fork(), location, None)
            if isinstance(probe, MatcherRejection):
                return probe
            probes.append((probe.sort_key(), item, probe))
        probes.sort(key=lambda probe: probe[0])

        items: list[CanonicalValue] = []
        for _, item, probe in probes:
            outcome = yield from self._settle(item, probe, arena, location)
            if isinstance(outcome, MatcherRejection):
                return outcome
            items.append(outcome)
        return CanonicalValue.array(items)

    def _encode_mapping(
        self, value: Mapping[Any, Any], arena: _Arena, location: Location
    ) -> _Encoding:
        entries: list[_Entry] = []
        for key, item in value.items():
            name = _member_name(key) if _is_scalar_key(key) else None
            child = location.field(name) if name is not None else location
            if name is not None and child.is_in(self._suppressed):
                continue
            key_probe = yield _Visit(key, arena.fork(), location, None)
            if isinstance(key_probe, MatcherRejection):
                return key_probe
            value_probe = yield _Visit(item, arena.fork(), child, None)
            if isinstance(value_probe, MatcherRejection):
                return value_probe
            entries.append(
                _Entry(
                    key_probe.sort_key() + value_probe.sort_key(),
                    key,
                    item,
                    key_probe,
                    value_probe,
                    name,
                    child,
                )
            )
        entries.sort(key=lambda entry: entry.sort_key)
        scalar_keys = all(entry.name is not None for entry in entries)

        items: list[CanonicalValue] = []
        for entry in entries:
            settled_value = yield from self._settle(
                entry.value, entry.value_probe, arena, entry.location
            )
            if isinstance(settled_value, MatcherRejection):
                return settled_value
            if scalar_keys and entry.name is not None:
                items.append(CanonicalValue.obj([(entry.name, settled_value)]))
                continue
            settled_key = yield from self._settle(entry.key, entry.key_probe, arena, location)
            if isinstance(settled_key, MatcherRejection):
                return settled_key
            items.extend((settled_key, settled_value))
        return CanonicalValue.array(items)

    def _settle(
        self, value: Any, probe: CanonicalValue, arena: _Arena, location: Location
    ) -> _Encoding:
        """Re-encode a probed element in the real pass when references matter."""
        if not self._cycle_types:
            return probe
        return (yield _Visit(value, arena, location, None))

    def _encode_maybe(self, value: Maybe[Any], arena: _Arena, location: Location) -> _Encoding:
        outcome = yield _Visit(value.or_none(), arena, location, None)
        if isinstance(outcome, MatcherRejection):
            return outcome
        return CanonicalValue.array([outcome])

    def _encode_ndarray(
        self, value: np.ndarray, arena: _Arena, location: Location
    ) -> _Encoding:
        if value.ndim == 0:
            return (yield _Visit(value.item(), arena, location, None))
        return (yield from self._encode_sequence(value.tolist(), arena, location))

    def _encode_numpy_scalar(
        self, value: np.generic, arena: _Arena, location: Location
    ) -> _Encoding:
        return (yield _Visit(value.item(), arena, location, None))


def _reference(index: int) -> CanonicalValue:
    return CanonicalValue.obj([(REFERENCE_KEY, CanonicalValue.scalar(index))])


# ---------------------------------------------------------------------------
# Scalar encoders
# ---------------------------------------------------------------------------


def _encode_null(value: None) -> CanonicalValue:
    return _NULL


def _encode_bool(value: bool) -> CanonicalValue:
    return CanonicalValue.scalar(bool(value))


def _encode_int(value: int) -> CanonicalValue:
    return CanonicalValue.scalar(int(value))


def _encode_float(value: float) -> CanonicalValue:
    return CanonicalValue.scalar(float(value))


def _encode_str(value: str) -> CanonicalValue:
    return CanonicalValue.scalar(str(value))


def _encode_enum(value: Enum) -> CanonicalValue:
    return CanonicalValue.scalar(value.name)


def _encode_date(value: datetime.date) -> CanonicalValue:
    return CanonicalValue.scalar(format_timestamp(value))


def _encode_bytes(value: bytes | bytearray | memoryview) -> CanonicalValue:
    return CanonicalValue.scalar(bytes(value).hex())


def _encode_text(value: Any) -> CanonicalValue:
    return CanonicalValue.scalar(str(value))


def _encode_class(value: type) -> CanonicalValue:
    return CanonicalValue.scalar(f"{value.__module__}.{value.__qualname__}")


# ---------------------------------------------------------------------------
# Mapping keys
# ---------------------------------------------------------------------------


def _is_scalar_key(key: Any) -> bool:
    return key is None or isinstance(key, (bool, int, float, str, Enum, np.generic))


def _member_name(key: Any) -> str:
    """Text used as the member name of a scalar mapping key."""
    if isinstance(key, Enum):
        return key.name
    if isinstance(key, str):
        return key
    if isinstance(key, np.generic):
        key = key.item()
    return json.dumps(key)
