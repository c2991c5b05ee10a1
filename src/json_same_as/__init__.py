"""json-same-as - deep equality of object graphs through canonical JSON text."""

from __future__ import annotations

import logging

from json_same_as.algorithm.config import ComparisonConfiguration, ConfigurationBuilder
from json_same_as.api import assert_that, compare, is_same, same_as
from json_same_as.comparator import MatcherState, SameAsMatcher
from json_same_as.errors import ConfigurationFrozenError, SameAsError
from json_same_as.optional import Maybe
from json_same_as.protocols import Matcher
from json_same_as.result import MismatchReport

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__: str = "0.1.0"
__all__: list[str] = [
    "ComparisonConfiguration",
    "ConfigurationBuilder",
    "ConfigurationFrozenError",
    "Matcher",
    "MatcherState",
    "Maybe",
    "MismatchReport",
    "SameAsError",
    "SameAsMatcher",
    "assert_that",
    "compare",
    "is_same",
    "same_as",
]
