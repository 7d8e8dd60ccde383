"""
Errors raised at the scheduling engine boundary.

Every error is an input-validation failure detected before any state
transition. Nothing is retried inside the engine.
"""

from __future__ import annotations

from typing import Optional


class SchedulerError(Exception):
    """Base class for scheduling engine errors."""


class InvalidStateError(SchedulerError, ValueError):
    """Prior card state passed by the caller is malformed or out of range."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class InvalidRatingError(SchedulerError, ValueError):
    """Rating is not one of Again(1), Hard(2), Good(3), Easy(4)."""

    def __init__(self, rating: object):
        super().__init__(f"Invalid rating {rating!r}: expected 1 (Again) to 4 (Easy)")
        self.rating = rating


class InvalidParametersError(SchedulerError, ValueError):
    """Scheduler configuration is malformed."""
