"""
FSRS Constants and Parameters

All fixed values for the FSRS algorithm in one place.
The default weights are the published FSRS-5 defaults shipped by the
reference FSRS schedulers; they are tuned offline and never learned at runtime.
"""

from enum import IntEnum


# ---- Ratings ----

class Rating(IntEnum):
    """Learner feedback on a review, ordered by recall quality."""
    AGAIN = 1   # Retrieval failed
    HARD = 2    # Retrieved with high effort
    GOOD = 3    # Retrieved normally
    EASY = 4    # Retrieved fluently


# ---- Lifecycle states ----

class State(IntEnum):
    """Coarse phase of a card's scheduling history (persisted as an int)."""
    NEW = 0
    LEARNING = 1
    REVIEW = 2
    RELEARNING = 3


# ---- Default Weights (FSRS-5) ----

DEFAULT_WEIGHTS = (
    0.40255,   # w0: initial stability for Again
    1.18385,   # w1: initial stability for Hard
    3.173,     # w2: initial stability for Good
    15.69105,  # w3: initial stability for Easy
    7.1949,    # w4: initial difficulty for Again
    0.5345,    # w5: initial difficulty spread by rating
    1.4604,    # w6: difficulty step per rating
    0.0046,    # w7: difficulty mean reversion
    1.54575,   # w8: recall stability growth scale (exp)
    0.1192,    # w9: recall growth saturation by stability
    1.01925,   # w10: recall growth credit for low retrievability
    1.9395,    # w11: post-lapse stability scale
    0.11,      # w12: post-lapse difficulty exponent
    0.29605,   # w13: post-lapse stability exponent
    2.2698,    # w14: post-lapse retrievability credit
    0.2315,    # w15: Hard penalty
    2.9898,    # w16: Easy bonus
    0.51655,   # w17: short-term stability scale
    0.6621,    # w18: short-term stability offset
)
WEIGHT_COUNT = len(DEFAULT_WEIGHTS)


# ---- Global Constants ----

DEFAULT_REQUEST_RETENTION = 0.9  # Reference retrievability at t = S
DEFAULT_MAXIMUM_INTERVAL = 36500  # Days (100 years)
MAXIMUM_INTERVAL_LIMIT = 365000   # Largest configurable interval; keeps due dates inside datetime range
DEFAULT_DECAY = -0.5              # Forgetting curve exponent (FSRS-4.5 and later)

S_MIN = 0.01     # Floor for any computed stability (days)
D_MIN = 1.0      # Minimum difficulty
D_MAX = 10.0     # Maximum difficulty

SECONDS_PER_DAY = 86400.0
MINUTES_PER_DAY = 1440.0


# ---- Short-Term Steps (minutes) ----

DEFAULT_LEARNING_STEPS = (1.0, 10.0)
DEFAULT_RELEARNING_STEPS = (10.0,)

# First exposure of a New card: fixed step by rating
DEFAULT_NEW_CARD_STEPS = {
    Rating.AGAIN: 1.0,
    Rating.HARD: 5.0,
    Rating.GOOD: 10.0,
    Rating.EASY: MINUTES_PER_DAY,
}


def decay_factor(decay: float, reference_retention: float = DEFAULT_REQUEST_RETENTION) -> float:
    """Factor that pins R(t = S) to the reference retention for a given decay."""
    return reference_retention ** (1.0 / decay) - 1.0
