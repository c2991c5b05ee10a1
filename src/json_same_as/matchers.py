"""Built-in custom matchers.

A small library of ready-made matchers satisfying the ``Matcher`` Protocol,
for use with ``SameAsMatcher.with_()``.  Descriptions follow the familiar
hamcrest wording so that failure messages read naturally::

    and str "kiwi"
         but: str was "banana"

Strings are described in double quotes; every other value uses ``repr``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sized
from typing import Any

from json_same_as.protocols import Matcher

__all__ = [
    "BaseMatcher",
    "described_as",
    "describe_value",
    "equal_to",
    "has_feature",
    "instance_of",
    "is_empty",
    "is_none",
    "matches_predicate",
    "not_",
    "not_none",
]


def describe_value(value: Any) -> str:
    """Describe a value the way matcher messages quote it."""
    if isinstance(value, str):
        return f'"{value}"'
    return repr(value)


class BaseMatcher(ABC):
    """Convenience base class: subclasses implement ``matches`` and ``describe_to``.

    The default mismatch description is ``was <value>``.
    """

    @abstractmethod
    def matches(self, item: Any) -> bool:
        """True when ``item`` satisfies the matcher."""

    @abstractmethod
    def describe_to(self) -> str:
        """What a matching value looks like, e.g. ``"kiwi"``."""

    def describe_mismatch(self, item: Any) -> str:
        return f"was {describe_value(item)}"

    def __repr__(self) -> str:
        return f"<{type(self).__name__}: {self.describe_to()}>"


class _EqualTo(BaseMatcher):
    def __init__(self, expected: Any) -> None:
        self._expected = expected

    def matches(self, item: Any) -> bool:
        return bool(item == self._expected)

    def describe_to(self) -> str:
        return describe_value(self._expected)


class _IsNone(BaseMatcher):
    def matches(self, item: Any) -> bool:
        return item is None

    def describe_to(self) -> str:
        return "None"


class _Not(BaseMatcher):
    def __init__(self, matcher: Matcher) -> None:
        self._matcher = matcher

    def matches(self, item: Any) -> bool:
        return not self._matcher.matches(item)

    def describe_to(self) -> str:
        return f"not {self._matcher.describe_to()}"


class _IsEmpty(BaseMatcher):
    def matches(self, item: Any) -> bool:
        return isinstance(item, Sized) and len(item) == 0

    def describe_to(self) -> str:
        return "empty"


class _InstanceOf(BaseMatcher):
    def __init__(self, cls: type) -> None:
        self._cls = cls

    def matches(self, item: Any) -> bool:
        return isinstance(item, self._cls)

    def describe_to(self) -> str:
        return f"an instance of {self._cls.__name__}"

    def describe_mismatch(self, item: Any) -> str:
        if item is None:
            return "was None"
        return f"{describe_value(item)} is a {type(item).__name__}"


class _HasFeature(BaseMatcher):
    """Applies a sub-matcher to one feature extracted from the item.

    ``None`` items never match: the feature cannot be extracted from them.
    """

    def __init__(
        self,
        description: str,
        name: str,
        getter: Callable[[Any], Any],
        matcher: Matcher,
    ) -> None:
        self._description = description
        self._name = name
        self._getter = getter
        self._matcher = matcher

    def matches(self, item: Any) -> bool:
        if item is None:
            return False
        return self._matcher.matches(self._getter(item))

    def describe_to(self) -> str:
        return f"{self._description} {self._matcher.describe_to()}"

    def describe_mismatch(self, item: Any) -> str:
        if item is None:
            return "was None"
        feature = self._getter(item)
        return f"{self._name} {self._matcher.describe_mismatch(feature)}"


class _MatchesPredicate(BaseMatcher):
    def __init__(self, predicate: Callable[[Any], bool], description: str) -> None:
        self._predicate = predicate
        self._description = description

    def matches(self, item: Any) -> bool:
        return bool(self._predicate(item))

    def describe_to(self) -> str:
        return self._description


class _DescribedAs(BaseMatcher):
    def __init__(self, description: str, matcher: Matcher) -> None:
        self._description = description
        self._matcher = matcher

    def matches(self, item: Any) -> bool:
        return self._matcher.matches(item)

    def describe_to(self) -> str:
        return self._description

    def describe_mismatch(self, item: Any) -> str:
        return self._matcher.describe_mismatch(item)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def equal_to(expected: Any) -> Matcher:
    """Match items equal (``==``) to ``expected``."""
    return _EqualTo(expected)


def is_none() -> Matcher:
    return _IsNone()


def not_(matcher: Matcher) -> Matcher:
    """Invert ``matcher``."""
    return _Not(matcher)


def not_none() -> Matcher:
    return _Not(_IsNone())


def is_empty() -> Matcher:
    """Match sized items (strings, collections) of length zero."""
    return _IsEmpty()


def instance_of(cls: type) -> Matcher:
    return _InstanceOf(cls)


def has_feature(
    description: str,
    name: str,
    getter: Callable[[Any], Any],
    matcher: Matcher,
) -> Matcher:
    """Match items whose extracted feature satisfies ``matcher``.

    Args:
        description: Leads the matcher description, e.g. ``"having name"``.
        name:        Leads the mismatch description, e.g. ``"name"``.
        getter:      Extracts the feature from a non-None item.
        matcher:     Applied to the extracted feature.

    Example::

        has_feature("having name", "name", lambda p: p.name, equal_to("kiwi"))
        # describe_to():             'having name "kiwi"'
        # describe_mismatch(banana): 'name was "banana"'
    """
    return _HasFeature(description, name, getter, matcher)


def matches_predicate(predicate: Callable[[Any], bool], description: str) -> Matcher:
    """Wrap a plain predicate function as a matcher."""
    return _MatchesPredicate(predicate, description)


def described_as(description: str, matcher: Matcher) -> Matcher:
    """Replace the description of ``matcher`` with ``description``."""
    return _DescribedAs(description, matcher)
