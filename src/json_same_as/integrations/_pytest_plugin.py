"""pytest plugin for json-same-as.

Auto-discovered by pytest via the pytest11 entry point declared in pyproject.toml.
When the package is installed (even in editable mode), pytest discovers this plugin
automatically -- no conftest.py changes are needed.

Source: https://docs.pytest.org/en/stable/how-to/writing_plugins.html
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import pytest

from json_same_as import assert_that, same_as
from json_same_as.protocols import Matcher


@pytest.fixture(scope="session")
def assert_same_as() -> Any:
    """Fixture that returns a callable deep-equality asserter.

    The fixture is session-scoped because the returned callable is stateless
    (every call builds a fresh SameAsMatcher).

    Usage in tests::

        def test_person(assert_same_as):
            assert_same_as(load_person(), Person(name="Ada"), ignoring=["id"])

        def test_wrong_name(assert_same_as):
            with pytest.raises(AssertionError, match=r"Expected: \\"Ada\\""):
                assert_same_as(Person(name="Bob"), Person(name="Ada"))

    Args:
        No arguments -- the fixture is injected by pytest.

    Returns:
        A callable ``_assert(actual, expected, ignoring=(), matchers=None,
        reason="") -> None`` that raises ``AssertionError`` when the two object
        graphs are not equivalent.
    """

    def _assert(
        actual: Any,
        expected: Any,
        ignoring: Iterable[Any] = (),
        matchers: Mapping[str | type, Matcher] | None = None,
        reason: str = "",
    ) -> None:
        """Assert that ``actual`` is the same as ``expected``.

        Args:
            actual:   The object graph produced by the code under test.
            expected: The expected object graph.
            ignoring: Paths, classes or field-name rules to leave out.
            matchers: Custom matchers keyed by path or by class.
            reason:   Leads the assertion message.

        Raises:
            AssertionError: With the expected canonical text and the first
                difference.
        """
        matcher = same_as(expected)
        for rule in ignoring:
            matcher.ignoring(rule)
        for target, custom in (matchers or {}).items():
            matcher.with_(target, custom)
        assert_that(actual, matcher, reason)

    return _assert
