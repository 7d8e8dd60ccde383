"""
Review Session Adapter - Main API for Review Management

Orchestrates one review transaction without any I/O:
1. Validate the rating
2. Load prior state (or default New state for a never-reviewed card)
3. Invoke the Scheduler
4. Return the replacement state + a log entry for the caller to persist

Persistence and transport belong to the caller (see the database module
for a reference implementation).
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, TypeVar, Union

from flashcard_srs.fsrs.constants import Rating
from flashcard_srs.fsrs.memory_state import (
    CardState,
    ReviewLogEntry,
    ensure_utc,
    new_card,
    validate_card_state,
)
from flashcard_srs.fsrs.scheduler import Scheduler, SchedulingResult, as_rating
from flashcard_srs.fsrs.schemas import SrsRecord

PriorState = Union[CardState, Mapping[str, Any], SrsRecord, None]
T = TypeVar("T")

_default_scheduler = Scheduler()


def load_prior_state(prior: PriorState, now: datetime) -> CardState:
    """
    Build a validated CardState from whatever the caller persisted.

    Args:
        prior: CardState, record mapping, SrsRecord, or None for a new card
        now: Review time, used as the due date of a new card

    Returns:
        Validated CardState

    Raises:
        InvalidStateError: if the prior record is malformed
    """
    if prior is None:
        return new_card(now)
    if isinstance(prior, CardState):
        return validate_card_state(prior)
    if isinstance(prior, SrsRecord):
        return prior.to_card_state()
    return SrsRecord.parse(dict(prior)).to_card_state()


def review(
    prior: PriorState,
    rating: Any,
    now: Optional[datetime] = None,
    scheduler: Optional[Scheduler] = None
) -> Tuple[CardState, ReviewLogEntry]:
    """
    Apply a single review and return (new_state, log_entry).

    This is the main entry point for callers. No database calls.
    Caller is responsible for:
    1. Loading the prior record (or passing None)
    2. Upserting the returned state keyed by (user, card)
    3. Appending the log entry to its history

    Args:
        prior: Prior persisted state, or None if the card was never reviewed
        rating: 1=Again, 2=Hard, 3=Good, 4=Easy (or a Rating)
        now: Review timestamp (defaults to now, UTC)
        scheduler: Scheduler to use (defaults to published parameters)

    Returns:
        Tuple of (new CardState, ReviewLogEntry)

    Raises:
        InvalidRatingError: rating outside 1-4, before anything else is done
        InvalidStateError: malformed prior state
    """
    rating = as_rating(rating)
    now = _resolve_now(now)
    scheduler = scheduler or _default_scheduler

    card = load_prior_state(prior, now)
    result = scheduler.next(card, rating, now)
    return result.card, result.log


def preview(
    prior: PriorState,
    now: Optional[datetime] = None,
    scheduler: Optional[Scheduler] = None
) -> Dict[Rating, SchedulingResult]:
    """
    Outcome of every possible rating, e.g. to label rating buttons.

    Returns:
        Mapping Rating -> SchedulingResult
    """
    now = _resolve_now(now)
    scheduler = scheduler or _default_scheduler
    return scheduler.repeat(load_prior_state(prior, now), now)


def forget(
    prior: PriorState,
    now: Optional[datetime] = None,
    reset_count: bool = False,
    scheduler: Optional[Scheduler] = None
) -> CardState:
    """Reset a card to New (optionally zeroing reps and lapses)."""
    now = _resolve_now(now)
    scheduler = scheduler or _default_scheduler
    return scheduler.forget(load_prior_state(prior, now), now, reset_count)


def get_retrievability(
    prior: PriorState,
    now: Optional[datetime] = None,
    scheduler: Optional[Scheduler] = None
) -> float:
    """Current recall probability of a card (0 for New cards)."""
    now = _resolve_now(now)
    scheduler = scheduler or _default_scheduler
    return scheduler.get_retrievability(load_prior_state(prior, now), now)


def select_due(
    cards: Iterable[Tuple[T, PriorState]],
    now: Optional[datetime] = None,
    limit: Optional[int] = None
) -> List[Tuple[T, CardState]]:
    """
    Pick the cards due for study.

    Cards without a record get the default New state and are always due.
    Results are ordered by due date (oldest first), so overdue cards come
    before new ones created at `now`.

    Args:
        cards: (key, prior state) pairs, e.g. (flashcard_id, record)
        now: Reference time (defaults to now, UTC)
        limit: Maximum number of cards to return

    Returns:
        List of (key, CardState) for cards with due <= now
    """
    now = _resolve_now(now)
    due: List[Tuple[T, CardState]] = []
    for key, prior in cards:
        card = load_prior_state(prior, now)
        if card.due <= now:
            due.append((key, card))

    due.sort(key=lambda item: item[1].due)
    if limit is not None:
        due = due[:limit]
    return due


def _resolve_now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    return ensure_utc(now)
