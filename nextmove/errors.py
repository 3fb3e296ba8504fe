"""
Engine exceptions.

The planning core raises only these. Anything else (store I/O, calendar
transport) belongs to the caller and propagates untouched.
"""


class ValidationError(ValueError):
    """A record or request is structurally unusable."""


class PolicyError(ValueError):
    """The planning policy file contains values the engine cannot use."""


class CalendarUnavailable(RuntimeError):
    """Raised by a free-minutes lookup when no calendar signal can be read."""
