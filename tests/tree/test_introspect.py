"""Tests for field introspection.

Covers:
- Declared types resolved from annotations (Optional, unions, generics)
- Field order for dataclasses, named tuples, slotted and plain classes
- Unset slots skipped, ``__dict__`` entries appended after declared fields
- Child iteration used by cycle detection
"""

import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple, Optional

import numpy as np
import pytest

from json_same_as.cache import FieldCache
from json_same_as.tree.introspect import (
    compute_layout,
    is_leaf,
    is_namedtuple,
    iter_children,
    iter_fields,
    resolve_declared_type,
)


class Colour(Enum):
    RED = 1


@dataclass
class Point:
    x: int
    y: Optional[int] = None
    tags: list[str] = field(default_factory=list)


class Pair(NamedTuple):
    left: int
    right: str


class Slotted:
    __slots__ = ("first", "__hidden")

    def __init__(self, first: int) -> None:
        self.first = first


class Plain:
    name: str

    def __init__(self) -> None:
        self.name = "plain"
        self.extra = 2


@pytest.fixture
def cache() -> FieldCache:
    return FieldCache()


class TestResolveDeclaredType:
    """Annotations reduce to a single class or None."""

    def test_plain_class(self) -> None:
        assert resolve_declared_type(int) is int

    def test_optional_unwraps(self) -> None:
        assert resolve_declared_type(Optional[Point]) is Point
        assert resolve_declared_type(Point | None) is Point

    def test_generic_resolves_to_origin(self) -> None:
        assert resolve_declared_type(list[str]) is list
        assert resolve_declared_type(dict[str, int]) is dict

    def test_wide_union_is_unresolved(self) -> None:
        assert resolve_declared_type(int | str) is None

    def test_string_annotation_is_unresolved(self) -> None:
        assert resolve_declared_type("Point") is None


class TestLeaves:
    @pytest.mark.parametrize(
        "value",
        [None, True, 1, 1.5, "s", b"b", Colour.RED, datetime.date(2024, 1, 1), np.int64(3), int],
    )
    def test_leaf_values(self, value: object) -> None:
        assert is_leaf(value)

    def test_containers_are_not_leaves(self) -> None:
        assert not is_leaf([1])
        assert not is_leaf({"a": 1})
        assert not is_leaf(Point(1))

    def test_namedtuple_detection(self) -> None:
        assert is_namedtuple(Pair)
        assert not is_namedtuple(tuple)


class TestLayouts:
    """Field order and declared types per kind of class."""

    def test_dataclass_fields_in_declaration_order(self, cache: FieldCache) -> None:
        fields = list(iter_fields(Point(1, 2), cache))
        assert [(name, value) for name, value, _ in fields] == [
            ("x", 1),
            ("y", 2),
            ("tags", []),
        ]
        assert [declared for _, _, declared in fields] == [int, int, list]

    def test_namedtuple_fields(self, cache: FieldCache) -> None:
        fields = list(iter_fields(Pair(1, "r"), cache))
        assert fields == [("left", 1, int), ("right", "r", str)]

    def test_unset_slot_is_skipped(self, cache: FieldCache) -> None:
        names = [name for name, _, _ in iter_fields(Slotted(3), cache)]
        assert names == ["first"]

    def test_mangled_slot_is_found(self) -> None:
        layout = compute_layout(Slotted)
        assert [spec.name for spec in layout.fields] == ["first", "_Slotted__hidden"]

    def test_plain_object_uses_instance_dict(self, cache: FieldCache) -> None:
        fields = list(iter_fields(Plain(), cache))
        assert fields == [("name", "plain", str), ("extra", 2, None)]

    def test_layout_is_cached(self, cache: FieldCache) -> None:
        assert cache.layout(Point) is cache.layout(Point)


class TestIterChildren:
    def test_mapping_yields_keys_and_values(self, cache: FieldCache) -> None:
        assert list(iter_children({"a": 1}, cache)) == ["a", 1]

    def test_sequence_yields_elements(self, cache: FieldCache) -> None:
        assert list(iter_children([1, 2], cache)) == [1, 2]

    def test_object_yields_field_values(self, cache: FieldCache) -> None:
        assert list(iter_children(Point(1, None, ["t"]), cache)) == [1, None, ["t"]]

    def test_leaf_yields_nothing(self, cache: FieldCache) -> None:
        assert list(iter_children("text", cache)) == []

    def test_object_array_yields_elements(self, cache: FieldCache) -> None:
        marker = Plain()
        array = np.array([marker, 1], dtype=object)
        assert not is_leaf(array)
        assert list(iter_children(array, cache)) == [marker, 1]

    def test_numeric_array_is_a_leaf(self, cache: FieldCache) -> None:
        array = np.array([1, 2, 3])
        assert is_leaf(array)
        assert list(iter_children(array, cache)) == []
