"""Exceptions raised by the scheduling engine.

All errors are raised synchronously at the offending call and are fatal to
that scheduling attempt.
"""


class SchedulingError(Exception):
    """Base class for every error raised by seeyouagain."""


class ConfigurationError(SchedulingError, ValueError):
    """Invalid parameters: retention out of range, malformed weights, bad interval cap."""


class InvalidGradeError(SchedulingError, ValueError):
    """A Manual or unknown grade reached an operation that needs a real grade."""


class IdentityMismatchError(SchedulingError):
    """A review log does not belong to the card it was paired with."""
