"""CanonicalValue dataclass and NodeKind StrEnum for the canonical tree.

Every object graph handed to json-same-as is reduced to a tree of immutable
``CanonicalValue`` nodes before it is compared or printed.  The tree mirrors
the JSON data model: null, boolean, number, string, array and object.

Object members that hold an unordered container (a set or a mapping) carry
``UNORDERED_MARKER`` as a key prefix.  The marker is internal bookkeeping only:
``to_builtin()`` and ``render()`` strip it, so it never reaches canonical text.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from enum import StrEnum, auto
from typing import Any

__all__ = ["UNORDERED_MARKER", "CanonicalValue", "NodeKind"]

UNORDERED_MARKER = "\x00unordered\x00"

Scalar = bool | int | float | str | None


class NodeKind(StrEnum):
    """Enumeration of the six canonical node kinds.

    - NULL     -> "null"
    - BOOLEAN  -> "boolean"
    - NUMBER   -> "number"
    - STRING   -> "string"
    - ARRAY    -> "array"   : ordered sequence of nodes
    - OBJECT   -> "object"  : ordered (key, node) pairs, keys unique
    """

    NULL = auto()
    BOOLEAN = auto()
    NUMBER = auto()
    STRING = auto()
    ARRAY = auto()
    OBJECT = auto()


@dataclass(frozen=True, slots=True)
class CanonicalValue:
    """An immutable node of the canonical tree.

    Attributes:
        kind:    Which kind of node this is (see NodeKind).
        value:   The Python scalar for NULL/BOOLEAN/NUMBER/STRING nodes; None
                 for ARRAY and OBJECT.
        items:   Child nodes of an ARRAY, in order.  Empty for all others.
        members: ``(key, node)`` pairs of an OBJECT, in declaration order.
                 Empty for all others.
    """

    kind: NodeKind
    value: Scalar = None
    items: tuple[CanonicalValue, ...] = ()
    members: tuple[tuple[str, CanonicalValue], ...] = ()

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def null(cls) -> CanonicalValue:
        return _NULL

    @classmethod
    def scalar(cls, value: Scalar) -> CanonicalValue:
        """Wrap a Python scalar, dispatching on its type.

        bool MUST be checked before int: bool subclasses int in Python.

        Raises:
            TypeError: If ``value`` is not a JSON scalar.
        """
        if value is None:
            return _NULL
        if isinstance(value, bool):
            return cls(NodeKind.BOOLEAN, value)
        if isinstance(value, (int, float)):
            return cls(NodeKind.NUMBER, value)
        if isinstance(value, str):
            return cls(NodeKind.STRING, value)
        msg = f"Unsupported scalar type: {type(value)!r}"
        raise TypeError(msg)

    @classmethod
    def array(cls, items: Iterable[CanonicalValue]) -> CanonicalValue:
        return cls(NodeKind.ARRAY, items=tuple(items))

    @classmethod
    def obj(cls, members: Iterable[tuple[str, CanonicalValue]]) -> CanonicalValue:
        """Build an OBJECT node.

        Raises:
            ValueError: If two members share the same key.
        """
        pairs = tuple(members)
        keys = [key for key, _ in pairs]
        if len(set(keys)) != len(keys):
            msg = f"Duplicate member keys in canonical object: {keys!r}"
            raise ValueError(msg)
        return cls(NodeKind.OBJECT, members=pairs)

    @classmethod
    def from_builtin(cls, value: Any) -> CanonicalValue:
        """Convert a plain JSON value (as produced by ``json.loads``) to a tree.

        Raises:
            TypeError: If ``value`` contains a non-JSON type.
        """
        return _fold(value, _builtin_children, cls._assemble_builtin)

    @classmethod
    def _assemble_builtin(cls, value: Any, children: list[CanonicalValue]) -> CanonicalValue:
        if isinstance(value, dict):
            return cls.obj(zip(map(str, value), children, strict=True))
        if isinstance(value, list):
            return cls.array(children)
        return cls.scalar(value)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def is_primitive(self) -> bool:
        """True for NULL, BOOLEAN, NUMBER and STRING nodes."""
        return self.kind not in (NodeKind.ARRAY, NodeKind.OBJECT)

    @property
    def children(self) -> tuple[CanonicalValue, ...]:
        """Child nodes of an ARRAY or OBJECT, in order; empty for primitives."""
        if self.kind is NodeKind.OBJECT:
            return tuple(child for _, child in self.members)
        return self.items

    def get(self, name: str) -> CanonicalValue | None:
        """Return the member called ``name``, marked or not; None if absent."""
        for key, child in self.members:
            if key == name or key == UNORDERED_MARKER + name:
                return child
        return None

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def to_builtin(self) -> Any:
        """Return plain JSON-able Python values with markers stripped."""
        return _fold(self, _node_children, _assemble_node)

    def render(self, indent: int | None = 2) -> str:
        """Return the canonical text: pretty-printed JSON, markers stripped.

        The output is byte-identical to ``json.dumps(self.to_builtin(),
        indent=indent, ensure_ascii=False)`` but is produced without recursion,
        so trees of any depth render.
        """
        separators = (",", ": ") if indent is not None else (", ", ": ")
        return _dump(self, indent, separators)

    def sort_key(self) -> str:
        """Compact canonical text used to order unordered-container elements."""
        return _dump(self, None, (",", ":"))


_NULL = CanonicalValue(NodeKind.NULL)

_EXHAUSTED = object()


# ---------------------------------------------------------------------------
# Iterative traversal helpers
# ---------------------------------------------------------------------------


def _fold(
    root: Any,
    children_of: Callable[[Any], Iterable[Any] | None],
    assemble: Callable[[Any, list[Any]], Any],
) -> Any:
    """Post-order fold over a tree using an explicit stack.

    ``children_of`` returns None for leaves; ``assemble`` receives a node and
    the folded results of its children, in order.
    """
    children = children_of(root)
    if children is None:
        return assemble(root, [])
    stack: list[tuple[Any, Iterator[Any], list[Any]]] = [(root, iter(children), [])]
    while True:
        node, pending, results = stack[-1]
        child = next(pending, _EXHAUSTED)
        if child is _EXHAUSTED:
            stack.pop()
            folded = assemble(node, results)
            if not stack:
                return folded
            stack[-1][2].append(folded)
            continue
        grandchildren = children_of(child)
        if grandchildren is None:
            results.append(assemble(child, []))
        else:
            stack.append((child, iter(grandchildren), []))


def _builtin_children(value: Any) -> Iterable[Any] | None:
    if isinstance(value, dict):
        return value.values()
    if isinstance(value, list):
        return value
    return None


def _node_children(node: CanonicalValue) -> Iterable[CanonicalValue] | None:
    return None if node.is_primitive else node.children


def _assemble_node(node: CanonicalValue, children: list[Any]) -> Any:
    if node.kind is NodeKind.ARRAY:
        return children
    if node.kind is NodeKind.OBJECT:
        return {
            key.removeprefix(UNORDERED_MARKER): child
            for (key, _), child in zip(node.members, children, strict=True)
        }
    return node.value


def _dump(root: CanonicalValue, indent: int | None, separators: tuple[str, str]) -> str:
    """Serialize ``root`` the way ``json.dumps`` does, with an explicit stack.

    The stack holds either nodes still to be written or literal text.
    """
    item_separator, key_separator = separators
    parts: list[str] = []
    stack: list[tuple[CanonicalValue, int] | str] = [(root, 0)]
    while stack:
        entry = stack.pop()
        if isinstance(entry, str):
            parts.append(entry)
            continue
        node, depth = entry
        if node.is_primitive:
            parts.append(json.dumps(node.value, ensure_ascii=False))
            continue
        opening, closing = ("{", "}") if node.kind is NodeKind.OBJECT else ("[", "]")
        if not node.members and not node.items:
            parts.append(opening + closing)
            continue
        inner = _newline(indent, depth + 1)
        pending: list[tuple[CanonicalValue, int] | str] = []
        if node.kind is NodeKind.OBJECT:
            for position, (key, child) in enumerate(node.members):
                name = json.dumps(key.removeprefix(UNORDERED_MARKER), ensure_ascii=False)
                lead = inner if position == 0 else item_separator + inner
                pending.extend((lead + name + key_separator, (child, depth + 1)))
        else:
            for position, child in enumerate(node.items):
                pending.extend(
                    (inner if position == 0 else item_separator + inner, (child, depth + 1))
                )
        pending.append(_newline(indent, depth) + closing)
        parts.append(opening)
        stack.extend(reversed(pending))
    return "".join(parts)


def _newline(indent: int | None, depth: int) -> str:
    if indent is None:
        return ""
    return "\n" + " " * (indent * depth)
