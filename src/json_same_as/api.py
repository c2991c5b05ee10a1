"""Public API functions for json-same-as.

This module provides the user-facing entry points: ``same_as`` builds a
configurable matcher, ``assert_that`` turns a failed match into an
``AssertionError``, and ``compare`` / ``is_same`` run a one-off comparison
with the default configuration.  Each call creates a fresh ``SameAsMatcher``,
so no configuration leaks between calls.
"""

from __future__ import annotations

from typing import Any

from json_same_as.comparator import SameAsMatcher
from json_same_as.protocols import Matcher
from json_same_as.result import MismatchReport

__all__ = ["assert_that", "compare", "is_same", "same_as"]


def same_as(expected: Any, *, indent: int = 2) -> SameAsMatcher:
    """Return a matcher for object graphs equivalent to ``expected``.

    Args:
        expected: The expected object graph.
        indent:   Indentation of the canonical text shown in failures.

    Returns:
        A ``SameAsMatcher`` still open for ``ignoring`` / ``with_`` calls.
    """
    return SameAsMatcher(expected, indent=indent)


def assert_that(actual: Any, matcher: Matcher, reason: str = "") -> None:
    """Assert that ``actual`` satisfies ``matcher``.

    Raises:
        AssertionError: With the message
            ``"<reason>\\nExpected: <description>\\n     but: <mismatch>"``.
    """
    if matcher.matches(actual):
        return
    description = matcher.describe_to()
    mismatch = matcher.describe_mismatch(actual)
    raise AssertionError(f"{reason}\nExpected: {description}\n     but: {mismatch}")


def compare(expected: Any, actual: Any) -> MismatchReport | None:
    """Compare two object graphs with the default configuration.

    Returns:
        None when they are equivalent, else a ``MismatchReport``.
    """
    return SameAsMatcher(expected).evaluate(actual)


def is_same(expected: Any, actual: Any) -> bool:
    """Return True if the two object graphs canonicalize to equivalent text."""
    return compare(expected, actual) is None
