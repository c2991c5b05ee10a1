"""Field paths: parsing, location tracking and live-object lookup.

A path addresses a location in an object graph with dotted field names and
optional ``[index]`` suffixes::

    address.street
    children[0].name
    scores.alice          # mapping key

Every location has two spellings.  The *plain* form skips sequence indices
(``children.name``) and so addresses the field in every element; the
*indexed* form keeps them (``children[1].name``) and addresses one element.
A path rule matches a location when it equals either spelling.

Sets and ``Maybe`` wrappers are transparent: their elements share the
container's location.
"""

from __future__ import annotations

import re
from collections.abc import Collection, Mapping, Sequence, Set
from dataclasses import dataclass
from typing import Any

from json_same_as.optional import Maybe

__all__ = ["Location", "find_at", "parse_path"]

_SEGMENT = re.compile(r"^(?P<name>[^\[\]]*)(?P<indices>(?:\[\d+\])*)$")
_INDEX = re.compile(r"\[(\d+)\]")

PathSegment = str | int


def parse_path(path: str) -> tuple[PathSegment, ...]:
    """Split a path into field-name (str) and index (int) segments.

    A dotted part made only of digits stays a string: it may be a mapping key
    or a sequence index, and ``find_at`` decides by the container it meets.

    Raises:
        ValueError: If the path is empty or a part is malformed.
    """
    if not path:
        msg = "Path must be a non-empty string"
        raise ValueError(msg)
    segments: list[PathSegment] = []
    for part in path.split("."):
        match = _SEGMENT.match(part)
        if match is None or (not match.group("name") and not match.group("indices")):
            msg = f"Malformed path segment {part!r} in {path!r}"
            raise ValueError(msg)
        if match.group("name"):
            segments.append(match.group("name"))
        segments.extend(int(index) for index in _INDEX.findall(match.group("indices")))
    return tuple(segments)


@dataclass(frozen=True, slots=True)
class Location:
    """The plain and indexed spellings of one location during a walk."""

    plain: str = ""
    indexed: str = ""

    def field(self, name: str) -> Location:
        return Location(_join(self.plain, name), _join(self.indexed, name))

    def index(self, position: int) -> Location:
        return Location(self.plain, f"{self.indexed}[{position}]")

    def is_in(self, paths: Collection[str]) -> bool:
        if not paths:
            return False
        return self.plain in paths or self.indexed in paths


def _join(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name


def find_at(root: Any, path: str) -> Any:
    """Return the value found at ``path`` inside the live object ``root``.

    Missing attributes, keys and out-of-range indices yield None.  A field
    name applied to a sequence or set is applied to every element and yields
    the list of results.
    """
    return _find(root, parse_path(path))


def _find(value: Any, segments: tuple[PathSegment, ...]) -> Any:
    if not segments:
        return value
    if value is None:
        return None
    if isinstance(value, Maybe):
        return _find(value.or_none(), segments)

    head, rest = segments[0], segments[1:]

    if isinstance(head, int):
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
            return _find(value[head], rest) if head < len(value) else None
        if isinstance(value, Mapping):
            return _find(value.get(head), rest)
        return None

    if isinstance(value, Mapping):
        return _find(_mapping_lookup(value, head), rest)
    if isinstance(value, (Set, list, tuple)) and not hasattr(value, "_fields"):
        if head.isdigit() and isinstance(value, Sequence):
            position = int(head)
            return _find(value[position], rest) if position < len(value) else None
        return [_find(element, segments) for element in value]
    return _find(getattr(value, head, None), rest)


def _mapping_lookup(mapping: Mapping[Any, Any], name: str) -> Any:
    if name in mapping:
        return mapping[name]
    for key, item in mapping.items():
        if str(getattr(key, "name", key)) == name:
            return item
    return None
