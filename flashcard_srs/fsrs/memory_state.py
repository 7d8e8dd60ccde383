"""
Memory State - FSRS Card State and Retrievability

Defines the core memory state variables and derived quantities for FSRS.

Key concepts:
- Stability (S): Days until retrievability decays to the reference threshold (0.9)
- Difficulty (D): How hard the card is to learn (1-10 scale)
- Retrievability (R): Probability of successful recall at time t

CardState values are immutable. Every review produces a new value via
dataclasses.replace; the stored record is replaced wholesale by the caller.
"""

from __future__ import annotations
from dataclasses import asdict, dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional
import math

from flashcard_srs.fsrs.constants import (
    D_MAX,
    D_MIN,
    DEFAULT_DECAY,
    SECONDS_PER_DAY,
    Rating,
    State,
    decay_factor,
)
from flashcard_srs.fsrs.errors import InvalidStateError


def ensure_utc(timestamp: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)


def _parse_timestamp(value: Any, field_name: str) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str):
        try:
            return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError as exc:
            raise InvalidStateError(f"{field_name} is not an ISO timestamp: {value!r}", field_name) from exc
    raise InvalidStateError(f"{field_name} must be a datetime or ISO string, got {type(value).__name__}", field_name)


@dataclass(frozen=True)
class CardState:
    """
    Scheduling knowledge for one card and one learner.

    A never-reviewed card is in State.NEW with zero stability and difficulty.
    """
    due: datetime
    stability: float = 0.0        # S, in days
    difficulty: float = 0.0       # D, range 1-10 (0 while New)
    elapsed_days: float = 0.0     # Days since last_review at the latest review
    scheduled_days: float = 0.0   # Interval leading up to the next review
    reps: int = 0                 # Successful recalls of an already-seen card
    lapses: int = 0               # Again ratings while in Review
    state: State = State.NEW
    last_review: Optional[datetime] = None
    step: int = 0                 # Index into learning/relearning steps

    def __post_init__(self):
        object.__setattr__(self, "due", ensure_utc(self.due))
        if self.last_review is not None:
            object.__setattr__(self, "last_review", ensure_utc(self.last_review))
        try:
            object.__setattr__(self, "state", State(self.state))
        except ValueError as exc:
            raise InvalidStateError(f"Unknown lifecycle state {self.state!r}", "state") from exc

    def evolve(self, **changes: Any) -> CardState:
        """Return a copy with the given fields changed."""
        return replace(self, **changes)

    def validate(self) -> CardState:
        """
        Check every field invariant.

        Returns:
            self, so construction from persisted data can chain

        Raises:
            InvalidStateError: naming the first offending field
        """
        for name in ("stability", "difficulty", "elapsed_days", "scheduled_days"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or math.isnan(value) or math.isinf(value):
                raise InvalidStateError(f"{name} must be a finite number, got {value!r}", name)
            if value < 0:
                raise InvalidStateError(f"{name} must not be negative, got {value}", name)

        for name in ("reps", "lapses", "step"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise InvalidStateError(f"{name} must be a non-negative integer, got {value!r}", name)

        if self.state == State.NEW:
            if self.difficulty != 0 and not D_MIN <= self.difficulty <= D_MAX:
                raise InvalidStateError(
                    f"difficulty must be 0 or within [{D_MIN}, {D_MAX}] for a new card, got {self.difficulty}",
                    "difficulty",
                )
        else:
            if self.stability <= 0:
                raise InvalidStateError(
                    f"stability must be positive once a card leaves New, got {self.stability}",
                    "stability",
                )
            if not D_MIN <= self.difficulty <= D_MAX:
                raise InvalidStateError(
                    f"difficulty must be within [{D_MIN}, {D_MAX}], got {self.difficulty}",
                    "difficulty",
                )
            if self.last_review is None:
                raise InvalidStateError(f"{self.state.name} card has no last_review", "last_review")

        if self.last_review is not None and self.due < self.last_review:
            raise InvalidStateError("due must not be earlier than last_review", "due")

        return self

    def to_dict(self) -> dict:
        """Serialise to plain values (ISO timestamps, int state)."""
        data = asdict(self)
        data["due"] = self.due.isoformat()
        data["last_review"] = self.last_review.isoformat() if self.last_review else None
        data["state"] = int(self.state)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CardState:
        """
        Build and validate a CardState from a persisted record.

        Unknown keys (ids, audit columns) are ignored.

        Raises:
            InvalidStateError: if a field is missing or out of range
        """
        if data.get("due") is None:
            raise InvalidStateError("due is required", "due")
        try:
            card = cls(
                due=_parse_timestamp(data["due"], "due"),
                stability=data.get("stability", 0.0),
                difficulty=data.get("difficulty", 0.0),
                elapsed_days=data.get("elapsed_days", 0.0),
                scheduled_days=data.get("scheduled_days", 0.0),
                reps=data.get("reps", 0),
                lapses=data.get("lapses", 0),
                state=data.get("state", State.NEW),
                last_review=_parse_timestamp(data.get("last_review"), "last_review"),
                step=data.get("step", 0) or 0,
            )
        except TypeError as exc:
            raise InvalidStateError(f"Malformed card state: {exc}") from exc
        return card.validate()


@dataclass(frozen=True)
class ReviewLogEntry:
    """
    Immutable record of one review transition.

    `state` and `due` describe the card before the review; the remaining
    fields describe the outcome.
    """
    rating: Rating
    state: State
    due: datetime
    stability: float
    difficulty: float
    elapsed_days: float
    last_elapsed_days: float
    scheduled_days: float
    learning_steps: int
    review: datetime
    state_after: State
    retrievability: Optional[float] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["rating"] = int(self.rating)
        data["state"] = int(self.state)
        data["state_after"] = int(self.state_after)
        data["due"] = self.due.isoformat()
        data["review"] = self.review.isoformat()
        return data


def new_card(now: Optional[datetime] = None) -> CardState:
    """
    Default state for a card that has never been reviewed.

    Args:
        now: Creation time, becomes the due date (defaults to now)

    Returns:
        New CardState in State.NEW, due immediately
    """
    if now is None:
        now = datetime.now(timezone.utc)
    return CardState(due=now)


def validate_card_state(card: CardState) -> CardState:
    """Validate a caller-supplied CardState (see CardState.validate)."""
    if not isinstance(card, CardState):
        raise InvalidStateError(f"Expected CardState, got {type(card).__name__}")
    return card.validate()


def calculate_elapsed_days(last_review: Optional[datetime], now: datetime) -> float:
    """
    Days between the previous review and now.

    Clock skew (now earlier than last_review) clamps to 0.

    Returns:
        Elapsed days (0 if never reviewed)
    """
    if last_review is None:
        return 0.0
    delta = ensure_utc(now) - ensure_utc(last_review)
    return max(0.0, delta.total_seconds() / SECONDS_PER_DAY)


def calculate_retrievability(
    stability: float,
    elapsed_days: float,
    decay: float = DEFAULT_DECAY
) -> float:
    """
    Calculate retrievability using the FSRS power forgetting curve.

    Formula: R = (1 + FACTOR * t / S) ^ DECAY

    Where:
    - t = elapsed days since the last review
    - S = stability (in days)
    - FACTOR = 0.9 ^ (1 / DECAY) - 1, so that R = 0.9 when t = S

    With DECAY = -1 this is the classic (1 + t / (9 * S)) ^ -1.

    Args:
        stability: Current stability in days (> 0)
        elapsed_days: Days since last review
        decay: Curve exponent (negative)

    Returns:
        Retrievability between 0 and 1
    """
    if elapsed_days <= 0:
        return 1.0
    if stability <= 0:
        return 0.0

    factor = decay_factor(decay)
    return (1.0 + factor * elapsed_days / stability) ** decay


def days_to_timedelta(days: float) -> timedelta:
    """Convert a (possibly fractional) day count into a timedelta."""
    return timedelta(seconds=round(days * SECONDS_PER_DAY))
