"""
Scheduler - FSRS Algorithm Logic

Pure FSRS scheduling and state transitions (no database calls).

Main workflow:
1. Validate the rating
2. Measure elapsed time since the last review (clock skew clamps to 0)
3. Calculate retrievability (only for reviewed, non-New cards)
4. Apply the transition for (state, rating)
5. Return a new CardState + ReviewLogEntry

State machine:
    New        + any          -> Learning
    Learning   + Again/Hard   -> Learning
    Learning   + Good/Easy    -> Review
    Review     + Again        -> Relearning  (lapse)
    Review     + Hard/Good/Easy -> Review
    Relearning + Again/Hard   -> Relearning
    Relearning + Good/Easy    -> Review

This module handles ONLY the algorithm logic.
Database I/O is handled by the database module.
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, NamedTuple, Optional

from flashcard_srs.fsrs import learning_steps, memory_updates
from flashcard_srs.fsrs.config import SchedulerParameters
from flashcard_srs.fsrs.constants import MINUTES_PER_DAY, S_MIN, Rating, State
from flashcard_srs.fsrs.errors import InvalidRatingError
from flashcard_srs.fsrs.memory_state import (
    CardState,
    ReviewLogEntry,
    calculate_elapsed_days,
    calculate_retrievability,
    days_to_timedelta,
    ensure_utc,
)
from flashcard_srs.logging_config import get_logger

logger = get_logger(__name__)


class SchedulingResult(NamedTuple):
    """Outcome of one review: the replacement state and its log entry."""
    card: CardState
    log: ReviewLogEntry


def as_rating(value: Any) -> Rating:
    """
    Coerce caller input to a Rating.

    Accepts Rating members and the integers 1-4. Booleans, floats with a
    fractional part and anything else are rejected.

    Raises:
        InvalidRatingError: if the value is not a valid rating
    """
    if isinstance(value, Rating):
        return value
    if isinstance(value, bool):
        raise InvalidRatingError(value)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int):
        raise InvalidRatingError(value)
    try:
        return Rating(value)
    except ValueError:
        raise InvalidRatingError(value) from None


class Scheduler:
    """
    Stateless FSRS scheduler bound to one parameter set.

    Safe to share between threads: it only holds immutable parameters.
    """

    def __init__(self, parameters: Optional[SchedulerParameters] = None):
        self.parameters = parameters or SchedulerParameters()

    def __repr__(self):
        return f"<Scheduler(params={self.parameters.params_hash()})>"

    # ---- Queries ----

    def get_retrievability(self, card: CardState, now: Optional[datetime] = None) -> float:
        """
        Predicted recall probability for a card at `now`.

        New cards (and cards never reviewed) report 0.
        """
        if card.state == State.NEW or card.last_review is None or card.stability <= 0:
            return 0.0
        now = _resolve_now(now)
        elapsed = calculate_elapsed_days(card.last_review, now)
        return calculate_retrievability(card.stability, elapsed, self.parameters.decay)

    # ---- Transitions ----

    def next(self, card: CardState, rating: Any, now: Optional[datetime] = None) -> SchedulingResult:
        """
        Apply one review to a card.

        Args:
            card: Current (validated) card state
            rating: Learner feedback, Rating or 1-4
            now: Review time (defaults to now, UTC)

        Returns:
            SchedulingResult(card, log) with a brand new CardState
        """
        rating = as_rating(rating)
        now = _resolve_now(now)
        params = self.parameters

        if card.last_review is not None and now < card.last_review:
            logger.warning(
                "Review time %s precedes last review %s; treating elapsed time as 0",
                now.isoformat(),
                card.last_review.isoformat(),
            )

        elapsed_days = calculate_elapsed_days(card.last_review, now)

        retrievability = None
        if card.last_review is not None and card.state != State.NEW:
            retrievability = calculate_retrievability(card.stability, elapsed_days, params.decay)

        if card.state == State.NEW:
            changes = self._first_exposure(rating)
        elif card.state in (State.LEARNING, State.RELEARNING):
            changes = self._short_term(card, rating, elapsed_days, retrievability)
        else:
            changes = self._long_term(card, rating, retrievability)

        scheduled_days = changes["scheduled_days"]
        try:
            due = now + days_to_timedelta(scheduled_days)
        except OverflowError:
            due = datetime.max.replace(tzinfo=timezone.utc)
        updated = card.evolve(
            elapsed_days=elapsed_days,
            last_review=now,
            due=due,
            **changes,
        )

        log = ReviewLogEntry(
            rating=rating,
            state=card.state,
            due=card.due,
            stability=updated.stability,
            difficulty=updated.difficulty,
            elapsed_days=elapsed_days,
            last_elapsed_days=card.elapsed_days,
            scheduled_days=scheduled_days,
            learning_steps=updated.step,
            review=now,
            state_after=updated.state,
            retrievability=retrievability,
        )

        logger.debug(
            "%s + %s -> %s (S=%.4f, D=%.4f, ivl=%.4fd)",
            card.state.name,
            rating.name,
            updated.state.name,
            updated.stability,
            updated.difficulty,
            scheduled_days,
        )

        return SchedulingResult(updated, log)

    def repeat(self, card: CardState, now: Optional[datetime] = None) -> Dict[Rating, SchedulingResult]:
        """
        Preview the outcome of every rating for a card.

        Returns:
            Mapping Rating -> SchedulingResult, in rating order
        """
        now = _resolve_now(now)
        return {rating: self.next(card, rating, now) for rating in Rating}

    def forget(
        self,
        card: CardState,
        now: Optional[datetime] = None,
        reset_count: bool = False
    ) -> CardState:
        """
        Reset a card to New so it is learned from scratch.

        Args:
            card: Current card state
            now: Reset time; the card becomes due immediately
            reset_count: Also zero reps and lapses

        Returns:
            New CardState in State.NEW
        """
        now = _resolve_now(now)
        if card.last_review is not None and now < card.last_review:
            now = card.last_review
        return card.evolve(
            due=now,
            stability=0.0,
            difficulty=0.0,
            elapsed_days=0.0,
            scheduled_days=0.0,
            reps=0 if reset_count else card.reps,
            lapses=0 if reset_count else card.lapses,
            state=State.NEW,
            step=0,
        )

    # ---- Transition helpers ----

    def _first_exposure(self, rating: Rating) -> dict:
        """New + any rating: initialise S/D and start learning."""
        params = self.parameters
        minutes, step = learning_steps.first_exposure_step(
            params.new_card_steps, params.learning_steps, rating
        )
        return {
            "stability": memory_updates.init_stability(rating, params.weights),
            "difficulty": memory_updates.init_difficulty(rating, params.weights),
            "scheduled_days": minutes / MINUTES_PER_DAY,
            "state": State.LEARNING,
            "step": step,
        }

    def _short_term(
        self,
        card: CardState,
        rating: Rating,
        elapsed_days: float,
        retrievability: Optional[float]
    ) -> dict:
        """Learning/Relearning: stay on a step or graduate to Review."""
        params = self.parameters
        weights = params.weights

        if elapsed_days < 1.0:
            stability = max(S_MIN, memory_updates.next_short_term_stability(card.stability, rating, weights))
        else:
            stability = memory_updates.next_stability(
                card.stability, card.difficulty, retrievability, rating, card.state, weights
            )
        difficulty = memory_updates.next_difficulty(card.difficulty, rating, weights)
        reps = card.reps + (0 if rating == Rating.AGAIN else 1)

        if learning_steps.graduates(rating):
            return {
                "stability": stability,
                "difficulty": difficulty,
                "scheduled_days": float(self._interval(stability)),
                "state": State.REVIEW,
                "step": 0,
                "reps": reps,
            }

        steps = params.learning_steps if card.state == State.LEARNING else params.relearning_steps
        minutes, step = learning_steps.repeat_step(steps, card.step, rating)
        return {
            "stability": stability,
            "difficulty": difficulty,
            "scheduled_days": minutes / MINUTES_PER_DAY,
            "state": card.state,
            "step": step,
            "reps": reps,
        }

    def _long_term(
        self,
        card: CardState,
        rating: Rating,
        retrievability: Optional[float]
    ) -> dict:
        """Review: lapse into Relearning on Again, otherwise grow the interval."""
        params = self.parameters
        weights = params.weights

        stability = memory_updates.next_stability(
            card.stability, card.difficulty, retrievability, rating, State.REVIEW, weights
        )
        difficulty = memory_updates.next_difficulty(card.difficulty, rating, weights)

        if rating == Rating.AGAIN:
            return {
                "stability": stability,
                "difficulty": difficulty,
                "scheduled_days": params.relearning_steps[0] / MINUTES_PER_DAY,
                "state": State.RELEARNING,
                "step": 0,
                "lapses": card.lapses + 1,
            }

        return {
            "stability": stability,
            "difficulty": difficulty,
            "scheduled_days": float(self._interval(stability)),
            "state": State.REVIEW,
            "step": 0,
            "reps": card.reps + 1,
        }

    def _interval(self, stability: float) -> int:
        params = self.parameters
        return memory_updates.next_interval(
            stability,
            request_retention=params.request_retention,
            maximum_interval=params.maximum_interval,
            decay=params.decay,
        )


def _resolve_now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    return ensure_utc(now)
