"""MismatchReport dataclass for comparison output.

This module provides the result type returned by ``SameAsMatcher.evaluate()``
and ``compare()`` when two object graphs are not equivalent.  A successful
comparison returns None instead of a report.
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["MismatchReport"]


@dataclass(frozen=True, slots=True)
class MismatchReport:
    """Why a comparison failed.

    Attributes:
        message: Human-readable difference message.  For a structural
            difference it names the first differing path; for a rejected
            custom matcher it reads ``<PathOrTypeName> <mismatch>`` followed by
            a canonical snippet of the rejected value when it is not primitive.
        expected: Canonical text of the expected value, or None when the
            comparison stopped before the texts were produced.
        actual: Canonical text of the actual value (``"null"`` when the actual
            value was None), or None as for ``expected``.
        comparison_failure: True when the failure is a comparison of the two
            canonical texts (structural difference, null-vs-value, unparsable
            text); False when a custom matcher rejected a value.  Assertion
            adapters use it to decide whether to show an expected/actual diff.
    """

    message: str
    expected: str | None = None
    actual: str | None = None
    comparison_failure: bool = False
