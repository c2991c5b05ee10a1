"""CycleDetector: finds the runtime types that close reference cycles.

The detector walks an object graph depth-first, keeping the identities on the
active path.  Reaching an object that is still on the active path means a
back-edge closed a cycle through it, and that object's runtime type is
recorded.  Every cycle contains at least one back-edge, so every cycle holds at
least one recorded type; the canonicalizer switches those types to
reference-aware encoding, which is enough to make any traversal terminate.

The walk is iterative (no recursion limit on deep graphs) and never
re-explores an object it has fully explored, so shared sub-graphs cost one
visit each.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from json_same_as.cache import DEFAULT_FIELD_CACHE, FieldCache
from json_same_as.tree.introspect import is_leaf, iter_children

__all__ = ["CycleDetector", "find_cyclic_types"]

logger = logging.getLogger(__name__)

_EXHAUSTED = object()


class CycleDetector:
    """Detects runtime types participating in reference cycles.

    Stateless between calls: ``detect`` allocates fresh bookkeeping each time.

    Example::

        class Node:
            def __init__(self):
                self.next = self

        CycleDetector().detect(Node())   # frozenset({Node})
    """

    def __init__(self, field_cache: FieldCache | None = None) -> None:
        self._field_cache = field_cache if field_cache is not None else DEFAULT_FIELD_CACHE

    def detect(self, root: Any) -> frozenset[type]:
        """Return the set of runtime types closing a cycle reachable from ``root``."""
        if is_leaf(root):
            return frozenset()

        found: set[type] = set()
        on_path: set[int] = {id(root)}
        explored: set[int] = set()
        # Keeps every visited object alive so that ids stay unique for the walk.
        visited: list[Any] = [root]
        stack: list[tuple[Any, Iterator[Any]]] = [
            (root, iter_children(root, self._field_cache))
        ]

        while stack:
            node, children = stack[-1]
            child = next(children, _EXHAUSTED)
            if child is _EXHAUSTED:
                stack.pop()
                on_path.discard(id(node))
                explored.add(id(node))
                continue
            if is_leaf(child):
                continue
            child_id = id(child)
            if child_id in on_path:
                found.add(type(child))
                continue
            if child_id in explored:
                continue
            on_path.add(child_id)
            visited.append(child)
            stack.append((child, iter_children(child, self._field_cache)))

        if found:
            logger.debug(
                "Cyclic types detected: %s",
                sorted(cls.__qualname__ for cls in found),
            )
        return frozenset(found)


def find_cyclic_types(
    root: Any, field_cache: FieldCache | None = None
) -> frozenset[type]:
    """Return the runtime types closing a cycle reachable from ``root``."""
    return CycleDetector(field_cache).detect(root)
