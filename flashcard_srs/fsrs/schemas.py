"""
Pydantic models for the scheduling engine boundary.

These models define the shape of persisted SRS records and incoming
review requests. Validation failures are surfaced as engine errors
(InvalidStateError / InvalidRatingError) so callers only handle one taxonomy.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from flashcard_srs.fsrs.constants import State
from flashcard_srs.fsrs.errors import InvalidRatingError, InvalidStateError
from flashcard_srs.fsrs.memory_state import CardState, ReviewLogEntry, ensure_utc


# ---- Requests ----

class ReviewRequest(BaseModel):
    """Body of a review submission."""
    rating: int = Field(..., ge=1, le=4, description="1=Again, 2=Hard, 3=Good, 4=Easy")

    model_config = ConfigDict(strict=True)

    @classmethod
    def parse(cls, payload: Any) -> ReviewRequest:
        """Validate a raw payload, raising InvalidRatingError on failure."""
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            rating = payload.get("rating") if isinstance(payload, dict) else payload
            raise InvalidRatingError(rating) from exc


# ---- Persisted Record ----

class SrsRecord(BaseModel):
    """
    Persisted scheduling record for one (user, flashcard) pair.

    Mirrors CardState plus the fingerprint of the parameters that produced it.
    """
    due: datetime
    stability: float = Field(0.0, ge=0)
    difficulty: float = Field(0.0, ge=0, le=10)
    elapsed_days: float = Field(0.0, ge=0)
    scheduled_days: float = Field(0.0, ge=0)
    reps: int = Field(0, ge=0)
    lapses: int = Field(0, ge=0)
    state: State = State.NEW
    last_review: Optional[datetime] = None
    step: int = Field(0, ge=0)
    params_hash: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    @field_validator("due", "last_review")
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Naive timestamps (e.g. SQLite columns) are stored in UTC
        return ensure_utc(value) if value is not None else None

    @model_validator(mode="after")
    def _check_due_after_review(self) -> SrsRecord:
        if self.last_review is not None and self.due < self.last_review:
            raise ValueError("due must not be earlier than last_review")
        return self

    @classmethod
    def parse(cls, payload: Any) -> SrsRecord:
        """Validate a raw record (dict or ORM row), raising InvalidStateError."""
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            errors = exc.errors()
            field = ".".join(str(p) for p in errors[0]["loc"]) if errors and errors[0]["loc"] else None
            raise InvalidStateError(f"Invalid SRS record: {exc.error_count()} error(s): {errors[0]['msg']}", field) from exc

    def to_card_state(self) -> CardState:
        """Convert to a validated CardState."""
        return CardState.from_dict(self.model_dump())

    @classmethod
    def from_card_state(cls, card: CardState, params_hash: Optional[str] = None) -> SrsRecord:
        return cls(**card.to_dict(), params_hash=params_hash)


class ReviewLogRecord(BaseModel):
    """Serialisable review log entry, ready for an append-only history."""
    rating: int
    state: State
    state_after: State
    due: datetime
    stability: float
    difficulty: float
    elapsed_days: float
    last_elapsed_days: float
    scheduled_days: float
    learning_steps: int
    review: datetime
    retrievability: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("due", "review")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @classmethod
    def from_entry(cls, entry: ReviewLogEntry) -> ReviewLogRecord:
        return cls(**entry.to_dict())
