"""Maybe: an explicit optional wrapper with a visible present/absent state.

A bare ``None`` field disappears from canonical text, which hides whether a
value was deliberately absent.  Wrapping the value in ``Maybe`` keeps that state
visible: the canonicalizer renders ``Maybe.of(x)`` as ``[x]`` and
``Maybe.absent()`` as ``[null]``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

__all__ = ["Maybe"]

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Maybe(Generic[T]):
    """An immutable value that is either present or absent.

    Prefer the ``of``, ``absent`` and ``of_nullable`` constructors over the
    raw dataclass constructor.
    """

    value: T | None = None
    present: bool = False

    def __post_init__(self) -> None:
        if not self.present and self.value is not None:
            msg = "An absent Maybe cannot hold a value"
            raise ValueError(msg)

    @classmethod
    def of(cls, value: T) -> Maybe[T]:
        if value is None:
            msg = "Maybe.of() requires a non-None value; use Maybe.of_nullable()"
            raise ValueError(msg)
        return cls(value, True)

    @classmethod
    def absent(cls) -> Maybe[T]:
        return cls()

    @classmethod
    def of_nullable(cls, value: T | None) -> Maybe[T]:
        return cls.absent() if value is None else cls.of(value)

    def or_none(self) -> T | None:
        return self.value
