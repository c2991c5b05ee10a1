"""Matcher Protocol for json-same-as custom matching.

Defines the structural interface every custom matcher must satisfy.  Users can
plug in their own matchers without inheriting from any base class: any object
with conformant ``matches``, ``describe_to`` and ``describe_mismatch`` methods
passes ``isinstance`` checks.

Example::

    from json_same_as.protocols import Matcher

    class IsPositive:
        def matches(self, item: object) -> bool:
            return isinstance(item, int) and item > 0

        def describe_to(self) -> str:
            return "a positive int"

        def describe_mismatch(self, item: object) -> str:
            return f"was {item!r}"

    assert isinstance(IsPositive(), Matcher)  # True - structural conformance
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

__all__ = ["Matcher"]


@runtime_checkable
class Matcher(Protocol):
    """Structural protocol for custom matchers.

    - ``matches`` must be free of side effects: it may be called more than
      once for the same value during a single comparison.
    - ``describe_to`` describes what the matcher requires, e.g. ``"kiwi"``.
    - ``describe_mismatch`` describes why ``item`` was rejected, e.g.
      ``was "banana"``.
    """

    def matches(self, item: Any) -> bool: ...

    def describe_to(self) -> str: ...

    def describe_mismatch(self, item: Any) -> str: ...
