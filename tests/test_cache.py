"""Unit tests for FieldCache.

Tests cover:
- Cache hits (a class layout is computed once and then served from memory)
- LRU eviction (silent eviction at max_size)
- Instance isolation (separate FieldCache instances do not share state)
- Properties (max_size and curr_size return correct values)
"""

from dataclasses import dataclass

import pytest

from json_same_as import cache as cache_module
from json_same_as.cache import FieldCache
from json_same_as.tree.introspect import ClassLayout

# ---------------------------------------------------------------------------
# Spy helper
# ---------------------------------------------------------------------------


def _spy_compute_layout(monkeypatch: pytest.MonkeyPatch) -> list[type]:
    """Patch ``compute_layout`` with a spy that records the classes passed in."""
    call_log: list[type] = []
    original = cache_module.compute_layout

    def spy(cls: type) -> ClassLayout:
        call_log.append(cls)
        return original(cls)

    monkeypatch.setattr(cache_module, "compute_layout", spy)
    return call_log


@dataclass
class A:
    a: int


@dataclass
class B:
    b: int


@dataclass
class C:
    c: int


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestCachedLayouts:
    """A class layout is introspected once per cache."""

    def test_second_lookup_is_served_from_cache(self, monkeypatch: pytest.MonkeyPatch) -> None:
        call_log = _spy_compute_layout(monkeypatch)
        cache = FieldCache()

        first = cache.layout(A)
        second = cache.layout(A)

        assert first is second
        assert call_log == [A]

    def test_layout_contents(self) -> None:
        layout = FieldCache().layout(A)
        assert [spec.name for spec in layout.fields] == ["a"]
        assert layout.fields[0].declared_type is int
        assert layout.dynamic is False


class TestEviction:
    """Least-recently-used layouts are evicted silently."""

    def test_evicted_class_is_recomputed(self, monkeypatch: pytest.MonkeyPatch) -> None:
        call_log = _spy_compute_layout(monkeypatch)
        cache = FieldCache(max_size=2)

        cache.layout(A)
        cache.layout(B)
        cache.layout(C)  # evicts A
        assert cache.curr_size == 2

        cache.layout(A)
        assert call_log == [A, B, C, A]


class TestIsolation:
    def test_instances_do_not_share_entries(self) -> None:
        first = FieldCache()
        second = FieldCache()
        first.layout(A)
        assert first.curr_size == 1
        assert second.curr_size == 0

    def test_clear(self) -> None:
        cache = FieldCache()
        cache.layout(A)
        cache.clear()
        assert cache.curr_size == 0


class TestProperties:
    def test_max_size(self) -> None:
        assert FieldCache().max_size == 256
        assert FieldCache(max_size=8).max_size == 8

    def test_rejects_non_positive_max_size(self) -> None:
        with pytest.raises(ValueError, match="max_size must be >= 1"):
            FieldCache(max_size=0)
