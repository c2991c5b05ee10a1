"""DiffEngine: structural comparison of two canonical trees.

Two trees are equal when:

- OBJECT: same member names (order irrelevant), members recursively equal.
- ARRAY:  same length, elements recursively equal by position.
- Scalars: same kind and equal value.  Numbers compare numerically
  (``1 == 1.0``) and NaN equals NaN; a boolean never equals a number.

Only the first difference is reported, walking expected members in order.
The walk keeps an explicit stack, so arbitrarily deep trees compare without
hitting the interpreter's recursion limit.
"""

from __future__ import annotations

import json
import logging
import math

from json_same_as.result import MismatchReport
from json_same_as.tree.nodes import UNORDERED_MARKER, CanonicalValue, NodeKind

__all__ = ["NULL_TEXT", "DiffEngine"]

logger = logging.getLogger(__name__)

NULL_TEXT = "null"


class DiffEngine:
    """Compares canonical texts or trees and explains the first difference.

    Stateless; one instance can serve any number of comparisons.

    Example::

        report = DiffEngine().compare('{"a": 1}', '{"a": 2}')
        print(report.message)
        # a
        # Expected: 1
        #      got: 2
    """

    def compare(self, expected_text: str, actual_text: str) -> MismatchReport | None:
        """Return None when the texts are structurally equal, else a report.

        Unparsable text is reported, never raised.  Text nested deeper than
        the JSON parser supports counts as unparsable.
        """
        try:
            expected = CanonicalValue.from_builtin(json.loads(expected_text))
            actual = CanonicalValue.from_builtin(json.loads(actual_text))
        except (json.JSONDecodeError, RecursionError) as exc:
            return MismatchReport(
                message=f"Unparsable canonical text: {exc}",
                expected=expected_text,
                actual=actual_text,
                comparison_failure=True,
            )
        message = _first_difference(expected, actual)
        if message is None:
            return None
        return _mismatch(message, expected_text, actual_text)

    def compare_trees(
        self, expected: CanonicalValue, actual: CanonicalValue, indent: int | None = 2
    ) -> MismatchReport | None:
        """Compare two canonical trees directly, without a text round-trip.

        The report carries both trees rendered with ``indent``.
        """
        message = _first_difference(expected, actual)
        if message is None:
            return None
        return _mismatch(message, expected.render(indent), actual.render(indent))

    def compare_with_null_actual(self, expected_text: str) -> MismatchReport | None:
        """Comparison against an absent actual: equal only to the ``null`` text."""
        if expected_text.strip() == NULL_TEXT:
            return None
        return MismatchReport(
            message="actual was null",
            expected=expected_text,
            actual=NULL_TEXT,
            comparison_failure=True,
        )


# ---------------------------------------------------------------------------
# Tree walk
# ---------------------------------------------------------------------------


def _mismatch(message: str, expected_text: str, actual_text: str) -> MismatchReport:
    logger.debug("Structural mismatch: %s", message.strip())
    return MismatchReport(
        message=message,
        expected=expected_text,
        actual=actual_text,
        comparison_failure=True,
    )


def _first_difference(expected: CanonicalValue, actual: CanonicalValue) -> str | None:
    """Depth-first walk; returns the message of the first difference.

    Stack entries are node pairs still to compare, or a ready message that
    becomes the answer once every entry pushed above it compared equal.
    """
    stack: list[tuple[CanonicalValue, CanonicalValue, str] | str] = [
        (expected, actual, "")
    ]
    while stack:
        entry = stack.pop()
        if isinstance(entry, str):
            return entry
        left, right, path = entry
        if left.kind is not right.kind:
            return _value_changed(path, left, right)
        if left.kind is NodeKind.OBJECT:
            stack.extend(_object_steps(left, right, path))
        elif left.kind is NodeKind.ARRAY:
            if len(left.items) != len(right.items):
                return (
                    f"{path}[]: Expected {len(left.items)} values "
                    f"but got {len(right.items)}\n"
                )
            for position in reversed(range(len(left.items))):
                stack.append(
                    (left.items[position], right.items[position], f"{path}[{position}]")
                )
        elif not _same_scalar(left.value, right.value):
            return _value_changed(path, left, right)
    return None


def _object_steps(
    expected: CanonicalValue, actual: CanonicalValue, path: str
) -> list[tuple[CanonicalValue, CanonicalValue, str] | str]:
    """Steps for one object pair, in stack order (last one is walked first)."""
    steps: list[tuple[CanonicalValue, CanonicalValue, str] | str] = []
    expected_members = _named(expected)
    actual_members = dict(_named(actual))
    expected_names = {name for name, _ in expected_members}
    for name in actual_members:
        if name not in expected_names:
            steps.append(f"{path}\nUnexpected: {name}\n")
            break
    for name, child in reversed(expected_members):
        if name in actual_members:
            steps.append((child, actual_members[name], _member_path(path, name)))
        else:
            steps.append(f"{path}\nExpected: {name}\n     but none found\n")
    return steps


def _named(node: CanonicalValue) -> list[tuple[str, CanonicalValue]]:
    return [(key.removeprefix(UNORDERED_MARKER), child) for key, child in node.members]


def _same_scalar(expected: object, actual: object) -> bool:
    if isinstance(expected, float) and isinstance(actual, float):
        if math.isnan(expected) and math.isnan(actual):
            return True
    return expected == actual


def _member_path(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name


def _describe(node: CanonicalValue) -> str:
    if node.kind is NodeKind.OBJECT:
        return "a JSON object"
    if node.kind is NodeKind.ARRAY:
        return "a JSON array"
    return json.dumps(node.value, ensure_ascii=False)


def _value_changed(path: str, expected: CanonicalValue, actual: CanonicalValue) -> str:
    return f"{path}\nExpected: {_describe(expected)}\n     got: {_describe(actual)}\n"
