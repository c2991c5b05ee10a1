"""SameAsMatcher: the deep-equality matcher that wires the whole engine together.

A ``SameAsMatcher`` holds one expected object graph and a configuration that is
built fluently (``ignoring`` / ``with_``) and frozen at the first evaluation.

Architecture of one evaluation:

1. CycleDetector scans both graphs; the union of cyclic types switches both
   canonicalizers to reference-aware encoding.
2. Two canonicalizers are built.  The expected side ignores every type bound
   to a type matcher; the actual side hands values of those types to the
   matcher instead.
3. Path matchers run against the live actual graph (located with
   ``find_at``), so they see real objects rather than canonical text.  The
   first rejection ends the evaluation.
4. The expected side is canonicalized.  An absent actual (None) matches only
   an expected text of ``null``.
5. The actual side is canonicalized; a type matcher rejection ends the
   evaluation.
6. DiffEngine compares the two canonical trees.

Failures come back as a ``MismatchReport``; nothing is raised for "different".
"""

from __future__ import annotations

import logging
from enum import StrEnum, auto
from typing import Any, cast

from json_same_as.algorithm.canonicalizer import Canonicalizer, MatcherRejection
from json_same_as.algorithm.config import ComparisonConfiguration, ConfigurationBuilder
from json_same_as.algorithm.diff import DiffEngine
from json_same_as.cache import DEFAULT_FIELD_CACHE, FieldCache
from json_same_as.errors import ConfigurationFrozenError
from json_same_as.protocols import Matcher
from json_same_as.result import MismatchReport
from json_same_as.tree.nodes import CanonicalValue
from json_same_as.tree.cycles import find_cyclic_types
from json_same_as.tree.paths import find_at

__all__ = ["MatcherState", "SameAsMatcher"]

logger = logging.getLogger(__name__)


class MatcherState(StrEnum):
    """Lifecycle of a SameAsMatcher.

    - CONFIGURING -> "configuring" : rules may still be added
    - EVALUATING  -> "evaluating"  : an evaluation is in progress
    - DESCRIBED   -> "described"   : the last evaluation finished
    """

    CONFIGURING = auto()
    EVALUATING = auto()
    DESCRIBED = auto()


class SameAsMatcher:
    """Matches object graphs that canonicalize to the same text as ``expected``.

    Configuration calls return the matcher itself so that they chain.  The
    first ``evaluate()`` / ``matches()`` freezes the configuration; further
    ``ignoring`` / ``with_`` calls raise ``ConfigurationFrozenError``.  A
    frozen matcher may be evaluated again against other actual values.

    Example::

        matcher = (
            SameAsMatcher(expected_person)
            .ignoring("id")
            .ignoring(datetime)
            .ignoring(re.compile(r"^_"))
            .with_("name", not_(is_empty()))
        )
        matcher.matches(actual_person)
    """

    def __init__(
        self,
        expected: Any,
        *,
        indent: int = 2,
        field_cache: FieldCache | None = None,
    ) -> None:
        """Initialise the matcher.

        Args:
            expected:    The expected object graph.  Never mutated.
            indent:      Indentation of canonical text.  Defaults to 2.
            field_cache: Class-layout cache shared by both canonicalizers.
                Defaults to the process-wide ``DEFAULT_FIELD_CACHE``.
        """
        self._expected = expected
        self._builder = ConfigurationBuilder(indent=indent)
        self._field_cache = field_cache if field_cache is not None else DEFAULT_FIELD_CACHE
        self._diff = DiffEngine()
        self._config: ComparisonConfiguration | None = None
        self._state = MatcherState.CONFIGURING
        self._last_report: MismatchReport | None = None

    @property
    def expected(self) -> Any:
        return self._expected

    @property
    def state(self) -> MatcherState:
        return self._state

    @property
    def configuration(self) -> ComparisonConfiguration | None:
        """The frozen configuration, or None before the first evaluation."""
        return self._config

    @property
    def last_report(self) -> MismatchReport | None:
        """Report of the last evaluation; None before any or after a match."""
        return self._last_report

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def ignoring(self, rule: Any) -> SameAsMatcher:
        """Leave something out of the comparison on both sides.

        Args:
            rule: A path string (``"address.street"``, ``"children[0]"``), a
                class (every field and value of exactly that type), or a
                field-name rule: ``re.Pattern``, ``Matcher`` or ``str -> bool``
                callable.
        """
        self._require_configuring()
        if isinstance(rule, str):
            self._builder.ignore_path(rule)
        elif isinstance(rule, type):
            self._builder.ignore_type(rule)
        else:
            self._builder.ignore_name(rule)
        return self

    def with_(self, target: str | type, matcher: Matcher) -> SameAsMatcher:
        """Compare the value at a path, or every value of a type, with ``matcher``.

        Raises:
            TypeError: If ``target`` is neither a path string nor a class.
        """
        self._require_configuring()
        if isinstance(target, str):
            self._builder.match_path(target, matcher)
        elif isinstance(target, type):
            self._builder.match_type(target, matcher)
        else:
            msg = f"with_() target must be a path or a class, got {target!r}"
            raise TypeError(msg)
        return self

    def _require_configuring(self) -> None:
        if self._config is not None:
            msg = "SameAsMatcher configuration is frozen after the first evaluation"
            raise ConfigurationFrozenError(msg)

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def matches(self, actual: Any) -> bool:
        return self.evaluate(actual) is None

    def evaluate(self, actual: Any) -> MismatchReport | None:
        """Compare ``actual`` with the expected graph.

        Returns:
            None when they are equivalent, else a ``MismatchReport``.
        """
        if self._config is None:
            self._config = self._builder.build()
        self._state = MatcherState.EVALUATING
        try:
            report = self._evaluate(self._config, actual)
        finally:
            self._state = MatcherState.DESCRIBED
        self._last_report = report
        return report

    def _evaluate(
        self, config: ComparisonConfiguration, actual: Any
    ) -> MismatchReport | None:
        cycle_types = find_cyclic_types(actual, self._field_cache) | find_cyclic_types(
            self._expected, self._field_cache
        )
        actual_side = Canonicalizer(
            config,
            cycle_types,
            intercept_type_matchers=True,
            field_cache=self._field_cache,
        )

        report = self._check_path_matchers(config, actual, actual_side)
        if report is not None:
            return report

        expected = self._canonicalize_expected(config, cycle_types)
        if actual is None:
            return self._diff.compare_with_null_actual(expected.render(config.indent))

        outcome = actual_side.canonicalize(actual)
        if isinstance(outcome, MatcherRejection):
            return MismatchReport(
                message=outcome.describe(), expected=expected.render(config.indent)
            )
        return self._diff.compare_trees(expected, outcome, config.indent)

    def _check_path_matchers(
        self,
        config: ComparisonConfiguration,
        actual: Any,
        actual_side: Canonicalizer,
    ) -> MismatchReport | None:
        for path, matcher in config.registry.path_matchers.items():
            target = None if actual is None else find_at(actual, path)
            if matcher.matches(target):
                continue
            logger.debug("Path matcher at %s rejected %r", path, target)
            message = f"{path} {matcher.describe_mismatch(target)}"
            snippet = actual_side.snippet(target)
            if snippet is not None:
                message = f"{message}\n{snippet}"
            return MismatchReport(message=message)
        return None

    def _canonicalize_expected(
        self, config: ComparisonConfiguration, cycle_types: frozenset[type]
    ) -> CanonicalValue:
        expected_side = Canonicalizer(
            config,
            cycle_types,
            ignore_matched_types=True,
            field_cache=self._field_cache,
        )
        # Without interception no matcher runs, so the outcome is never a rejection.
        return cast(CanonicalValue, expected_side.canonicalize(self._expected))

    # ------------------------------------------------------------------
    # Descriptions
    # ------------------------------------------------------------------

    def describe_to(self) -> str:
        """Expected canonical text followed by one line per custom matcher."""
        config = self._config if self._config is not None else self._builder.build()
        cycle_types = find_cyclic_types(self._expected, self._field_cache)
        lines = [self._canonicalize_expected(config, cycle_types).render(config.indent)]
        for path, matcher in config.registry.path_matchers.items():
            lines.append(f"and {path} {matcher.describe_to()}")
        for cls, matcher in config.registry.type_matchers.items():
            lines.append(f"and {cls.__name__} {matcher.describe_to()}")
        return "\n".join(lines)

    def describe_mismatch(self, actual: Any) -> str:
        """Evaluate ``actual`` and return the mismatch message ("" on a match)."""
        report = self.evaluate(actual)
        return report.message if report is not None else ""

    def __repr__(self) -> str:
        return f"<SameAsMatcher state={self._state}>"
