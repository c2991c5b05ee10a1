"""Field introspection over arbitrary Python objects.

Resolves which fields an object exposes, in declaration order, together with
the type each field was declared with:

- dataclasses     -> ``dataclasses.fields()`` (ClassVar and InitVar excluded)
- named tuples    -> ``_fields``
- other objects   -> ``__slots__`` (base classes first), then ``__dict__``

Declared types come from the class annotations.  ``Optional[X]`` and
``X | None`` resolve to ``X``, ``list[X]`` resolves to ``list``; anything that
does not resolve to a single class resolves to None.

Class layouts are pure metadata and are cached per class by ``FieldCache``.
"""

from __future__ import annotations

import dataclasses
import datetime
import types
import typing
import uuid
from collections.abc import Iterator, Mapping, Sequence, Set
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from pathlib import PurePath
from typing import TYPE_CHECKING, Any, Union

import numpy as np

if TYPE_CHECKING:
    from json_same_as.cache import FieldCache

__all__ = [
    "LEAF_TYPES",
    "ClassLayout",
    "FieldSpec",
    "compute_layout",
    "is_leaf",
    "is_namedtuple",
    "iter_children",
    "iter_fields",
    "resolve_declared_type",
]

# Values of these types are never traversed: they canonicalize to a scalar.
# numpy arrays are decided by dtype in is_leaf().
LEAF_TYPES: tuple[type, ...] = (
    type(None),
    bool,
    int,
    float,
    complex,
    str,
    bytes,
    bytearray,
    memoryview,
    Enum,
    Decimal,
    uuid.UUID,
    PurePath,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    np.generic,
    type,
)


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """One declared field: its attribute name and resolved declared class."""

    name: str
    declared_type: type | None


@dataclass(frozen=True, slots=True)
class ClassLayout:
    """Cached field metadata of a class.

    Attributes:
        fields:      Statically declared fields, in declaration order.
        dynamic:     True when instance ``__dict__`` entries are fields too.
        annotations: Resolved declared type per annotated attribute name.
    """

    fields: tuple[FieldSpec, ...]
    dynamic: bool
    annotations: Mapping[str, type | None]


def is_leaf(value: Any) -> bool:
    """True for values that are never traversed.

    numpy arrays are leaves unless their dtype is ``object``: such arrays hold
    arbitrary Python objects, which may reference the array's owner.
    """
    if isinstance(value, np.ndarray):
        return value.dtype != object
    return isinstance(value, LEAF_TYPES)


def is_namedtuple(cls: type) -> bool:
    return issubclass(cls, tuple) and hasattr(cls, "_fields")


def resolve_declared_type(annotation: Any) -> type | None:
    """Reduce a type annotation to the single class a field is declared as."""
    origin = typing.get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return resolve_declared_type(args[0])
        return None
    if origin is typing.Annotated:
        return resolve_declared_type(typing.get_args(annotation)[0])
    if origin is not None:
        return origin if isinstance(origin, type) else None
    if isinstance(annotation, type):
        return annotation
    return None


def _class_annotations(cls: type) -> dict[str, Any]:
    """Return the raw annotations of ``cls`` and its bases.

    ``typing.get_type_hints`` evaluates string annotations; when it cannot
    (e.g. names only imported under TYPE_CHECKING) the unevaluated annotations
    are used and strings resolve to no declared type.
    """
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError, AttributeError):
        merged: dict[str, Any] = {}
        for klass in reversed(cls.__mro__):
            merged.update(klass.__dict__.get("__annotations__", {}))
        return merged


def _slot_names(cls: type) -> list[str]:
    names: list[str] = []
    for klass in reversed(cls.__mro__):
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if name in ("__dict__", "__weakref__"):
                continue
            if name.startswith("__") and not name.endswith("__"):
                name = f"_{klass.__name__.lstrip('_')}{name}"
            if name not in names:
                names.append(name)
    return names


def compute_layout(cls: type) -> ClassLayout:
    """Compute the ``ClassLayout`` of ``cls`` (uncached; see ``FieldCache``)."""
    annotations = {
        name: resolve_declared_type(annotation)
        for name, annotation in _class_annotations(cls).items()
    }

    if dataclasses.is_dataclass(cls):
        specs = tuple(
            FieldSpec(f.name, annotations.get(f.name))
            for f in dataclasses.fields(cls)
        )
        return ClassLayout(specs, dynamic=False, annotations=annotations)

    if is_namedtuple(cls):
        specs = tuple(FieldSpec(name, annotations.get(name)) for name in cls._fields)
        return ClassLayout(specs, dynamic=False, annotations=annotations)

    specs = tuple(FieldSpec(name, annotations.get(name)) for name in _slot_names(cls))
    return ClassLayout(specs, dynamic=True, annotations=annotations)


def iter_fields(
    obj: Any, field_cache: FieldCache
) -> Iterator[tuple[str, Any, type | None]]:
    """Yield ``(name, value, declared_type)`` for each field of ``obj``.

    Unset slots are skipped.  ``__dict__`` entries follow the declared fields
    in insertion order.
    """
    layout = field_cache.layout(type(obj))
    seen: set[str] = set()
    for spec in layout.fields:
        try:
            value = getattr(obj, spec.name)
        except AttributeError:
            continue
        seen.add(spec.name)
        yield spec.name, value, spec.declared_type

    if not layout.dynamic:
        return
    instance_dict = getattr(obj, "__dict__", None)
    if not isinstance(instance_dict, dict):
        return
    for name, value in instance_dict.items():
        if name not in seen:
            yield name, value, layout.annotations.get(name)


def iter_children(value: Any, field_cache: FieldCache) -> Iterator[Any]:
    """Yield every object directly referenced by ``value``.

    Mappings yield keys and values, sets, sequences and object-dtype arrays
    their elements, and every other object its field values.  Leaves yield
    nothing.
    """
    if is_leaf(value):
        return
    cls = type(value)
    if isinstance(value, np.ndarray):
        yield from value.flat
    elif isinstance(value, Mapping):
        for key, item in value.items():
            yield key
            yield item
    elif isinstance(value, Set) or (
        isinstance(value, Sequence) and not is_namedtuple(cls)
    ):
        yield from value
    else:
        for _, item, _ in iter_fields(value, field_cache):
            yield item
