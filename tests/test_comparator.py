"""Tests for SameAsMatcher.

Covers the full evaluation pipeline:
- Equal and unequal object graphs, ignore rules on both sides
- Path matchers against the live actual graph, with snippets
- Type matchers: literal diagnostics, None fields, every occurrence checked
- The absent-actual case
- Cyclic graphs, including cycles through object-dtype arrays
- Object chains deeper than the recursion limit
- Lifecycle: configuration frozen at the first evaluation
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

import numpy as np
import pytest

from json_same_as import assert_that
from json_same_as.comparator import MatcherState, SameAsMatcher
from json_same_as.errors import ConfigurationFrozenError, SameAsError
from json_same_as.matchers import equal_to, has_feature, is_empty, is_none, not_

# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------


@dataclass
class Child:
    child_string: Optional[str] = None
    child_integer: Optional[int] = None


@dataclass
class Parent:
    parent_string: Optional[str] = None
    child: Optional[Child] = None
    children: list[Child] = field(default_factory=list)


@dataclass
class Stamped:
    name: str
    created: datetime


class Node:
    def __init__(self, name: str) -> None:
        self.name = name
        self.next: Any = None


def _child_string_is(value: str) -> Any:
    return has_feature(
        "having string field", "string field", lambda c: c.child_string, equal_to(value)
    )


def _failure(actual: Any, matcher: SameAsMatcher) -> str:
    with pytest.raises(AssertionError) as exc_info:
        assert_that(actual, matcher)
    return str(exc_info.value)


# ---------------------------------------------------------------------------
# Plain comparison
# ---------------------------------------------------------------------------


class TestPlainComparison:
    def test_equal_graphs_match(self) -> None:
        expected = Parent("p", Child("a", 1), [Child("b", 2)])
        actual = Parent("p", Child("a", 1), [Child("b", 2)])
        assert SameAsMatcher(expected).matches(actual)

    def test_different_graphs_report_first_difference(self) -> None:
        matcher = SameAsMatcher(Parent("p", Child("apple", 1)))
        report = matcher.evaluate(Parent("p", Child("banana", 1)))
        assert report is not None
        assert report.message == 'child.child_string\nExpected: "apple"\n     got: "banana"\n'
        assert report.comparison_failure is True
        assert matcher.last_report is report

    def test_set_order_does_not_matter(self) -> None:
        assert SameAsMatcher({"tags": {"a", "b", "c"}}).matches({"tags": {"c", "a", "b"}})

    def test_ignored_path(self) -> None:
        matcher = SameAsMatcher(Parent("p", Child("apple", 1))).ignoring("child.child_string")
        assert matcher.matches(Parent("p", Child("banana", 1)))

    def test_ignored_type(self) -> None:
        expected = Stamped("a", datetime(2020, 1, 1))
        actual = Stamped("a", datetime(2024, 6, 1))
        assert SameAsMatcher(expected).ignoring(datetime).matches(actual)

    def test_ignored_name_pattern(self) -> None:
        matcher = SameAsMatcher(Child("a", 1)).ignoring(re.compile("integer$"))
        assert matcher.matches(Child("a", 99))

    def test_ignored_name_callable(self) -> None:
        matcher = SameAsMatcher(Child("a", 1)).ignoring(lambda name: name == "child_integer")
        assert matcher.matches(Child("a", 99))


# ---------------------------------------------------------------------------
# Path matchers
# ---------------------------------------------------------------------------


class TestPathMatchers:
    def test_path_matcher_replaces_generic_diff(self) -> None:
        matcher = SameAsMatcher(Parent("p", Child("apple", 1))).with_(
            "child.child_string", not_(is_empty())
        )
        assert matcher.matches(Parent("p", Child("banana", 1)))

    def test_path_matcher_rejection(self) -> None:
        matcher = SameAsMatcher(Parent("p", Child("apple", 1))).with_(
            "child.child_string", equal_to("kiwi")
        )
        message = _failure(Parent("p", Child("banana", 1)), matcher)
        assert message.endswith(
            'and child.child_string "kiwi"\n     but: child.child_string was "banana"'
        )

    def test_path_matcher_rejection_carries_snippet(self) -> None:
        matcher = SameAsMatcher(Parent("p", Child("apple", 1))).with_(
            "child", _child_string_is("kiwi")
        )
        report = matcher.evaluate(Parent("p", Child("banana", 1)))
        assert report is not None
        assert report.message == (
            'child string field was "banana"\n'
            '{\n  "child_string": "banana",\n  "child_integer": 1\n}'
        )
        assert report.comparison_failure is False

    def test_snippet_ignores_root_path_rules(self) -> None:
        matcher = (
            SameAsMatcher(Parent("p", Child("apple", 1)))
            .ignoring("child_integer")
            .with_("child", _child_string_is("kiwi"))
        )
        report = matcher.evaluate(Parent("p", Child("banana", 1)))
        assert report is not None
        assert report.message.endswith('{\n  "child_string": "banana",\n  "child_integer": 1\n}')

    def test_ignored_path_with_matcher_still_consults_matcher(self) -> None:
        matcher = (
            SameAsMatcher(Parent("p", Child("apple", 1)))
            .ignoring("child.child_string")
            .with_("child.child_string", equal_to("kiwi"))
        )
        assert not matcher.matches(Parent("p", Child("banana", 1)))
        assert matcher.matches(Parent("p", Child("kiwi", 1)))

    def test_indexed_path_matcher(self) -> None:
        expected = Parent(children=[Child("a"), Child("b")])
        matcher = SameAsMatcher(expected).with_("children[1].child_string", equal_to("z"))
        assert matcher.matches(Parent(children=[Child("a"), Child("z")]))


# ---------------------------------------------------------------------------
# Type matchers
# ---------------------------------------------------------------------------


class TestTypeMatchers:
    def test_literal_diagnostic_for_primitive(self) -> None:
        matcher = SameAsMatcher(Child("apple", 1)).with_(str, equal_to("kiwi"))
        message = _failure(Child("banana", 1), matcher)
        assert message.endswith('and str "kiwi"\n     but: str was "banana"')

    def test_literal_diagnostic_with_snippet(self) -> None:
        expected = Parent("parent", Child("apple", 1))
        matcher = SameAsMatcher(expected).with_(Child, _child_string_is("kiwi"))
        message = _failure(Parent("parent", Child("banana", 1)), matcher)
        assert message.endswith(
            'and Child having string field "kiwi"\n'
            '     but: Child string field was "banana"\n'
            '{\n  "child_string": "banana",\n  "child_integer": 1\n}'
        )

    def test_null_child_fails_the_matcher(self) -> None:
        matcher = SameAsMatcher(Parent("parent", Child("apple", 1))).with_(
            Child, _child_string_is("kiwi")
        )
        message = _failure(Parent("parent", None), matcher)
        assert message.endswith("     but: Child was None")

    def test_matching_child_overrides_generic_diff(self) -> None:
        matcher = SameAsMatcher(Parent("parent", Child("apple", 1))).with_(
            Child, has_feature("having string", "string", lambda c: c.child_string, not_(is_empty()))
        )
        assert matcher.matches(Parent("parent", Child("banana", 7)))

    def test_every_occurrence_must_match(self) -> None:
        expected = Parent("parent", Child("kiwi"), [Child("kiwi"), Child("kiwi")])
        actual = Parent("parent", Child("kiwi"), [Child("kiwi"), Child("banana")])
        matcher = SameAsMatcher(expected).with_(Child, _child_string_is("kiwi"))
        report = matcher.evaluate(actual)
        assert report is not None
        assert report.message.startswith('Child string field was "banana"')
        assert report.comparison_failure is False

    def test_all_occurrences_matching(self) -> None:
        expected = Parent("parent", Child("x"), [Child("y")])
        actual = Parent("parent", Child("kiwi"), [Child("kiwi")])
        assert SameAsMatcher(expected).with_(Child, _child_string_is("kiwi")).matches(actual)

    def test_root_type_matcher_with_absent_actual(self) -> None:
        matcher = SameAsMatcher(Parent("parent")).with_(Parent, is_none())
        assert matcher.matches(None)


# ---------------------------------------------------------------------------
# Absent actual
# ---------------------------------------------------------------------------


class TestAbsentActual:
    def test_none_matches_none(self) -> None:
        assert SameAsMatcher(None).matches(None)

    def test_none_against_value(self) -> None:
        report = SameAsMatcher(Child("a")).evaluate(None)
        assert report is not None
        assert report.message == "actual was null"

    def test_value_against_none(self) -> None:
        report = SameAsMatcher(None).evaluate(Child("a"))
        assert report is not None
        assert report.comparison_failure is True


# ---------------------------------------------------------------------------
# Cycles
# ---------------------------------------------------------------------------


class TestCycles:
    def test_equal_cyclic_graphs(self) -> None:
        expected, actual = Node("loop"), Node("loop")
        expected.next = expected
        actual.next = actual
        assert SameAsMatcher(expected).matches(actual)

    def test_cycle_through_object_array(self) -> None:
        expected, actual = Node("holder"), Node("holder")
        expected.next = np.array([expected, 1], dtype=object)
        actual.next = np.array([actual, 1], dtype=object)
        assert SameAsMatcher(expected).matches(actual)

    def test_different_cyclic_graphs(self) -> None:
        expected, actual = Node("a"), Node("b")
        expected.next = expected
        actual.next = actual
        report = SameAsMatcher(expected).evaluate(actual)
        assert report is not None
        assert report.message == 'name\nExpected: "a"\n     got: "b"\n'


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class TestLifecycle:
    def test_initial_state(self) -> None:
        matcher = SameAsMatcher(1)
        assert matcher.state is MatcherState.CONFIGURING
        assert matcher.configuration is None

    def test_evaluation_freezes_configuration(self) -> None:
        matcher = SameAsMatcher(Child("a")).ignoring("child_integer")
        matcher.matches(Child("a", 3))
        assert matcher.state is MatcherState.DESCRIBED
        assert matcher.configuration is not None
        with pytest.raises(ConfigurationFrozenError):
            matcher.ignoring("child_string")
        with pytest.raises(SameAsError):
            matcher.with_(str, equal_to("x"))

    def test_frozen_matcher_can_be_reevaluated(self) -> None:
        matcher = SameAsMatcher(Child("a"))
        assert not matcher.matches(Child("b"))
        assert matcher.matches(Child("a"))
        assert matcher.last_report is None

    def test_with_rejects_unknown_target(self) -> None:
        with pytest.raises(TypeError, match="path or a class"):
            SameAsMatcher(1).with_(3, equal_to(3))  # type: ignore[arg-type]

    def test_describe_to_lists_custom_matchers(self) -> None:
        matcher = (
            SameAsMatcher(Child("a", 1))
            .with_("child_integer", equal_to(1))
            .with_(str, equal_to("a"))
        )
        assert matcher.describe_to() == (
            "{}\n"
            "and child_integer 1\n"
            'and str "a"'
        )
        assert matcher.state is MatcherState.CONFIGURING

    def test_describe_mismatch_is_empty_on_match(self) -> None:
        assert SameAsMatcher(1).describe_mismatch(1) == ""


# ---------------------------------------------------------------------------
# Depth
# ---------------------------------------------------------------------------


def _chain(length: int, last: str = "end") -> Node:
    head = Node("0")
    current = head
    for index in range(1, length):
        current.next = Node(str(index))
        current = current.next
    current.name = last
    return head


class TestDepth:
    def test_deep_equal_chains(self) -> None:
        assert SameAsMatcher(_chain(3000)).matches(_chain(3000))

    def test_deep_different_chains(self) -> None:
        report = SameAsMatcher(_chain(1500)).evaluate(_chain(1500, last="other"))
        assert report is not None
        assert report.message.endswith('.name\nExpected: "end"\n     got: "other"\n')
