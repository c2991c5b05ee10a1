"""FieldCache: LRU-backed cache of per-class field layouts.

Introspecting a class (dataclass fields, slots, resolved annotations) is the
same work for every instance of it, so the resulting ``ClassLayout`` is cached
per class.  Only class metadata is cached, never instances, so the cache holds
no comparison state.  LRU eviction occurs silently when ``max_size`` is
exceeded.

Example::

    from json_same_as.cache import FieldCache

    cache = FieldCache(max_size=256)
    layout = cache.layout(MyDataclass)         # computed
    layout_again = cache.layout(MyDataclass)   # served from memory
"""

from __future__ import annotations

from cachetools import LRUCache

from json_same_as.tree.introspect import ClassLayout, compute_layout

__all__ = ["DEFAULT_FIELD_CACHE", "FieldCache"]


class FieldCache:
    """LRU cache mapping a class to its ``ClassLayout``.

    Each instance maintains its own ``LRUCache``: two separate instances
    never share entries.

    Args:
        max_size: Maximum number of class layouts held in memory.  Defaults
            to 256.  When exceeded, the least-recently-used entry is silently
            evicted.
    """

    def __init__(self, max_size: int = 256) -> None:
        if max_size < 1:
            msg = f"max_size must be >= 1, got {max_size}"
            raise ValueError(msg)
        self._cache: LRUCache[type, ClassLayout] = LRUCache(maxsize=max_size)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def max_size(self) -> int:
        """The maximum number of entries this cache can hold."""
        return int(self._cache.maxsize)

    @property
    def curr_size(self) -> int:
        """The current number of entries stored in the cache."""
        return int(self._cache.currsize)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def layout(self, cls: type) -> ClassLayout:
        """Return the layout of ``cls``, computing it on first use."""
        try:
            return self._cache[cls]
        except KeyError:
            layout = compute_layout(cls)
            self._cache[cls] = layout
            return layout

    def clear(self) -> None:
        self._cache.clear()


# Shared by default; safe because layouts depend on the class alone.
DEFAULT_FIELD_CACHE = FieldCache()
