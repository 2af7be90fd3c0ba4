"""
Exceptions and warnings raised by the harness.
"""


class MinorityWindowError(Exception):
    """Base class for all harness errors."""


class ConfigurationError(MinorityWindowError, ValueError):
    """Invalid schedule, balancer or classifier configuration. Fatal at startup."""


class InsufficientDataError(MinorityWindowError):
    """A requested train/test slice exceeds the rows available in the pool."""

    def __init__(self, message, requested=None, available=None):
        super().__init__(message)
        self.requested = requested
        self.available = available


class DegenerateLabelsError(MinorityWindowError, ValueError):
    """A metric that needs both classes was asked for on a single-class set."""


class SyntheticShortfallWarning(UserWarning):
    """The synthetic pool held fewer rows of a class than were requested."""
