"""
recall.exceptions
-----------------

Errors raised by the scheduling engine. Every error subclasses ValueError, so
callers that only care about bad input can catch that.
"""

from __future__ import annotations
from collections.abc import Iterable


class SchedulingError(ValueError):
    """Base exception for the scheduling engine."""


class InvalidParameters(SchedulingError):
    """Raised when scheduling parameters break one or more constraints."""

    def __init__(self, violations: Iterable[str]) -> None:
        self.violations = list(violations)
        super().__init__(
            "One or more scheduling parameters are invalid:\n"
            + "\n".join(self.violations)
        )


class InvalidTimestamp(SchedulingError):
    """Raised when a review datetime is naive, not UTC, or precedes the card's last review."""


class InvalidRating(SchedulingError):
    """Raised when a rating is not one of Again, Hard, Good or Easy."""


__all__ = [
    "SchedulingError",
    "InvalidParameters",
    "InvalidTimestamp",
    "InvalidRating",
]
