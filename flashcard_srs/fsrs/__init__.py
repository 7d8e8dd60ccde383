"""
FSRS - Free Spaced Repetition Scheduler

Scheduling engine for flashcard reviews.

This package implements the FSRS-5 memory model with:
- Power forgetting curve: R = (1 + FACTOR * t / S) ^ DECAY, R(S) = 0.9
- Interpretable memory state (Stability, Difficulty, Retrievability)
- Lifecycle state machine: New -> Learning -> Review <-> Relearning
- Immutable card state, one new value per review

Quick start:
    from flashcard_srs import fsrs

    # Process a review (algorithm only, no DB calls)
    card, log = fsrs.review(prior_state, fsrs.Rating.GOOD)

    # Custom parameters, loaded once at startup
    scheduler = fsrs.Scheduler(fsrs.load_parameters())
    card, log = fsrs.review(card, 3, scheduler=scheduler)

The database module (imported separately) is a reference persistence
collaborator built on SQLAlchemy.
"""

# Core review API (algorithm logic)
from flashcard_srs.fsrs.review import (
    forget,
    get_retrievability,
    load_prior_state,
    preview,
    review,
    select_due,
)
from flashcard_srs.fsrs.scheduler import Scheduler, SchedulingResult, as_rating

# Configuration
from flashcard_srs.fsrs.config import SchedulerParameters, load_parameters, with_weights

# Constants and parameters
from flashcard_srs.fsrs.constants import (
    Rating,
    State,
    DEFAULT_WEIGHTS,
    DEFAULT_REQUEST_RETENTION,
    DEFAULT_MAXIMUM_INTERVAL,
    MAXIMUM_INTERVAL_LIMIT,
    DEFAULT_DECAY,
    D_MIN,
    D_MAX,
    S_MIN,
)

# Errors
from flashcard_srs.fsrs.errors import (
    SchedulerError,
    InvalidStateError,
    InvalidRatingError,
    InvalidParametersError,
)

# Memory state (for advanced usage)
from flashcard_srs.fsrs.memory_state import (
    CardState,
    ReviewLogEntry,
    new_card,
    validate_card_state,
    calculate_retrievability,
    calculate_elapsed_days,
)
from flashcard_srs.fsrs.memory_updates import (
    init_stability,
    init_difficulty,
    next_difficulty,
    next_stability,
    next_interval,
)
from flashcard_srs.fsrs.schemas import ReviewRequest, SrsRecord, ReviewLogRecord


__all__ = [
    # Core algorithm
    "review",
    "preview",
    "forget",
    "get_retrievability",
    "load_prior_state",
    "select_due",
    "Scheduler",
    "SchedulingResult",
    "as_rating",

    # Configuration
    "SchedulerParameters",
    "load_parameters",
    "with_weights",

    # Enums
    "Rating",
    "State",

    # Errors
    "SchedulerError",
    "InvalidStateError",
    "InvalidRatingError",
    "InvalidParametersError",

    # Memory state
    "CardState",
    "ReviewLogEntry",
    "new_card",
    "validate_card_state",
    "calculate_retrievability",
    "calculate_elapsed_days",

    # Memory updates
    "init_stability",
    "init_difficulty",
    "next_difficulty",
    "next_stability",
    "next_interval",

    # Boundary schemas
    "ReviewRequest",
    "SrsRecord",
    "ReviewLogRecord",

    # Parameters
    "DEFAULT_WEIGHTS",
    "DEFAULT_REQUEST_RETENTION",
    "DEFAULT_MAXIMUM_INTERVAL",
    "MAXIMUM_INTERVAL_LIMIT",
    "DEFAULT_DECAY",
    "D_MIN",
    "D_MAX",
    "S_MIN",
]
