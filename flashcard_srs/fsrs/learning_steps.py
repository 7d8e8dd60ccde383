"""
Learning Steps - Short-Term Scheduling

Picks the sub-day step for cards in New, Learning and Relearning.

Short-term steps exist to:
- Repair same-day failures
- Confirm a fresh memory before handing it to long-term intervals

Steps are configured in minutes. Only Again and Hard keep a card on a
step; Good and Easy graduate it to Review.
"""

from __future__ import annotations
from typing import Mapping, Sequence, Tuple

from flashcard_srs.fsrs.constants import Rating


def first_exposure_step(
    new_card_steps: Mapping[Rating, float],
    learning_steps: Sequence[float],
    rating: Rating
) -> Tuple[float, int]:
    """
    Fixed step for the very first review of a card.

    Args:
        new_card_steps: Minutes per rating for the first exposure
        learning_steps: Learning steps, used to position the step index
        rating: Learner feedback

    Returns:
        (minutes until due, learning step index)
    """
    minutes = new_card_steps[rating]

    if rating == Rating.AGAIN or rating == Rating.HARD:
        step = 0
    elif rating == Rating.GOOD:
        step = min(1, len(learning_steps) - 1)
    else:
        step = len(learning_steps) - 1

    return minutes, step


def repeat_step(
    steps: Sequence[float],
    step: int,
    rating: Rating
) -> Tuple[float, int]:
    """
    Step for a card that stays in Learning or Relearning.

    - Again restarts at the first step.
    - Hard repeats the current step. On the first step it waits 1.5x a
      single step, or halfway between the first two steps.

    Args:
        steps: Configured steps in minutes
        step: Current step index (clamped into range)
        rating: AGAIN or HARD

    Returns:
        (minutes until due, new step index)
    """
    if rating not in (Rating.AGAIN, Rating.HARD):
        raise ValueError("Only AGAIN and HARD keep a card on a short-term step")

    if rating == Rating.AGAIN:
        return steps[0], 0

    step = min(max(step, 0), len(steps) - 1)
    if step == 0:
        if len(steps) == 1:
            return steps[0] * 1.5, 0
        return (steps[0] + steps[1]) / 2.0, 0
    return steps[step], step


def graduates(rating: Rating) -> bool:
    """Good and Easy move a short-term card to Review."""
    return rating >= Rating.GOOD
