"""Exception hierarchy for json-same-as.

Only programming misuse is raised.  A value that merely differs from its
expectation is never an exception: it is reported as a ``MismatchReport``.
"""

from __future__ import annotations

__all__ = ["ConfigurationFrozenError", "SameAsError"]


class SameAsError(Exception):
    """Base class for every error raised by json-same-as."""


class ConfigurationFrozenError(SameAsError):
    """Raised when a matcher is reconfigured after its first evaluation."""
