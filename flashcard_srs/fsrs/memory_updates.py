"""
Memory Updates - Stability, Difficulty and Interval

Pure FSRS-5 update rules. Deterministic given a fixed weight vector.

Key principles:
- Spaced, effortful success produces the largest stability gains
- Lower retrievability at review time earns a bigger recovery credit
- Difficulty reflects resistance to stability growth, not forgetting speed
"""

from __future__ import annotations
import math
from typing import Optional, Sequence

from flashcard_srs.fsrs.constants import (
    D_MAX,
    D_MIN,
    DEFAULT_DECAY,
    DEFAULT_MAXIMUM_INTERVAL,
    DEFAULT_REQUEST_RETENTION,
    DEFAULT_WEIGHTS,
    S_MIN,
    Rating,
    State,
    decay_factor,
)


def clamp_difficulty(difficulty: float) -> float:
    """Clip difficulty into [1, 10]."""
    return min(max(difficulty, D_MIN), D_MAX)


def init_stability(rating: Rating, weights: Sequence[float] = DEFAULT_WEIGHTS) -> float:
    """
    First-review stability, a direct lookup by rating.

    Formula: S0(G) = w[G-1]
    """
    return max(weights[int(rating) - 1], 0.1)


def init_difficulty(rating: Rating, weights: Sequence[float] = DEFAULT_WEIGHTS) -> float:
    """
    First-review difficulty.

    Formula: D0(G) = w4 - exp(w5 * (G - 1)) + 1, clipped to [1, 10]
    """
    return clamp_difficulty(_raw_init_difficulty(rating, weights))


def _raw_init_difficulty(rating: Rating, weights: Sequence[float]) -> float:
    return weights[4] - math.exp(weights[5] * (int(rating) - 1)) + 1.0


def next_difficulty(
    difficulty: float,
    rating: Rating,
    weights: Sequence[float] = DEFAULT_WEIGHTS
) -> float:
    """
    Update difficulty based on retrieval outcome.

    Formula:
        delta = -w6 * (G - 3)
        D' = D + delta * (10 - D) / 9          (linear damping)
        D'' = w7 * D0(Easy) + (1 - w7) * D'     (mean reversion)
        clipped to [1, 10]

    Again and Hard push difficulty up, Easy pulls it down, Good leaves it
    almost unchanged apart from the slow mean reversion.

    Args:
        difficulty: Current difficulty
        rating: Learner feedback
        weights: FSRS weight vector

    Returns:
        New difficulty value (clipped to [1, 10])
    """
    delta = -weights[6] * (int(rating) - 3)
    damped = difficulty + delta * (10.0 - difficulty) / 9.0
    reverted = weights[7] * _raw_init_difficulty(Rating.EASY, weights) + (1.0 - weights[7]) * damped
    return clamp_difficulty(reverted)


def next_recall_stability(
    difficulty: float,
    stability: float,
    retrievability: float,
    rating: Rating,
    weights: Sequence[float] = DEFAULT_WEIGHTS
) -> float:
    """
    Stability after a successful retrieval (Hard/Good/Easy).

    Formula:
        S' = S * (1 + exp(w8) * (11 - D) * S^-w9 * (exp(w10 * (1 - R)) - 1) * p)

    Where p is w15 for Hard, w16 for Easy and 1 for Good.
    """
    hard_penalty = weights[15] if rating == Rating.HARD else 1.0
    easy_bonus = weights[16] if rating == Rating.EASY else 1.0
    growth = (
        math.exp(weights[8])
        * (11.0 - difficulty)
        * stability ** -weights[9]
        * (math.exp(weights[10] * (1.0 - retrievability)) - 1.0)
        * hard_penalty
        * easy_bonus
    )
    return stability * (1.0 + growth)


def next_forget_stability(
    difficulty: float,
    stability: float,
    retrievability: float,
    weights: Sequence[float] = DEFAULT_WEIGHTS
) -> float:
    """
    Stability after a lapse (Again).

    Formula:
        S' = min(w11 * D^-w12 * ((S + 1)^w13 - 1) * exp(w14 * (1 - R)),
                 S / exp(w17 * w18))

    The second term keeps post-lapse stability strictly below S.
    """
    long_term = (
        weights[11]
        * difficulty ** -weights[12]
        * ((stability + 1.0) ** weights[13] - 1.0)
        * math.exp(weights[14] * (1.0 - retrievability))
    )
    short_term_cap = stability / math.exp(weights[17] * weights[18])
    return min(long_term, short_term_cap)


def next_short_term_stability(
    stability: float,
    rating: Rating,
    weights: Sequence[float] = DEFAULT_WEIGHTS
) -> float:
    """
    Stability after a same-day review in Learning or Relearning.

    Formula: S' = S * exp(w17 * (G - 3 + w18))
    """
    return stability * math.exp(weights[17] * (int(rating) - 3 + weights[18]))


def next_stability(
    stability: float,
    difficulty: float,
    retrievability: Optional[float],
    rating: Rating,
    state: State,
    weights: Sequence[float] = DEFAULT_WEIGHTS
) -> float:
    """
    Main entry point for stability updates.

    - New cards take the first-review lookup value.
    - Again applies the lapse rule; other ratings apply the recall rule.
    - A missing retrievability is treated as 1.0 (reviewed immediately).

    Returns:
        New stability, always strictly positive
    """
    if state == State.NEW or stability <= 0:
        return init_stability(rating, weights)

    if retrievability is None:
        retrievability = 1.0

    if rating == Rating.AGAIN:
        new_stability = next_forget_stability(difficulty, stability, retrievability, weights)
    else:
        new_stability = next_recall_stability(difficulty, stability, retrievability, rating, weights)

    return max(S_MIN, new_stability)


def next_interval(
    stability: float,
    request_retention: float = DEFAULT_REQUEST_RETENTION,
    maximum_interval: int = DEFAULT_MAXIMUM_INTERVAL,
    decay: float = DEFAULT_DECAY
) -> int:
    """
    Whole-day interval at which predicted retrievability reaches the target.

    Formula: I = S / FACTOR * (r^(1 / DECAY) - 1)

    With r = 0.9 this is I = S. The result is rounded, floored at 1 day and
    capped at maximum_interval.
    """
    factor = decay_factor(decay)
    interval = stability / factor * (request_retention ** (1.0 / decay) - 1.0)
    return int(max(round(min(interval, maximum_interval)), 1))
