"""Tree subpackage: the canonical tree and object-graph primitives.

Re-exports the public API for the tree module:
- CanonicalValue: immutable node of the canonical JSON tree
- NodeKind: StrEnum of the six node kinds
- UNORDERED_MARKER: internal key prefix of set/mapping members

Cycle detection (``tree.cycles``) and path handling (``tree.paths``) are
imported from their modules directly.
"""

from json_same_as.tree.nodes import UNORDERED_MARKER, CanonicalValue, NodeKind

__all__ = ["UNORDERED_MARKER", "CanonicalValue", "NodeKind"]
