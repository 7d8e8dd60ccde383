"""Tests for the FSRS state machine."""

import logging
from datetime import timedelta

import pytest

from flashcard_srs.fsrs import (
    InvalidRatingError,
    MAXIMUM_INTERVAL_LIMIT,
    Rating,
    Scheduler,
    SchedulerParameters,
    State,
    new_card,
)
from flashcard_srs.fsrs.scheduler import as_rating


# ---- New ----

def test_new_card_good_starts_learning(scheduler, now):
    card, log = scheduler.next(new_card(now), Rating.GOOD, now)

    assert card.state == State.LEARNING
    assert card.reps == 0
    assert card.lapses == 0
    assert card.due == now + timedelta(minutes=10)
    assert card.last_review == now
    assert card.elapsed_days == 0
    assert card.stability == pytest.approx(3.173)
    assert card.difficulty == pytest.approx(5.2824, abs=1e-4)
    assert card.scheduled_days == pytest.approx(10 / 1440)

    assert log.rating == Rating.GOOD
    assert log.state == State.NEW
    assert log.state_after == State.LEARNING
    assert log.retrievability is None
    assert log.review == now


@pytest.mark.parametrize("rating,minutes", [
    (Rating.AGAIN, 1),
    (Rating.HARD, 5),
    (Rating.GOOD, 10),
    (Rating.EASY, 1440),
])
def test_new_card_any_rating_starts_learning(scheduler, now, rating, minutes):
    card, _ = scheduler.next(new_card(now), rating, now)
    assert card.state == State.LEARNING
    assert card.due == now + timedelta(minutes=minutes)
    assert card.stability > 0
    assert 1 <= card.difficulty <= 10


def test_does_not_mutate_input(scheduler, review_card, now):
    before = review_card.to_dict()
    scheduler.next(review_card, Rating.AGAIN, now + timedelta(days=10))
    assert review_card.to_dict() == before


# ---- Learning ----

def test_learning_again_stays_learning(scheduler, now):
    learning, _ = scheduler.next(new_card(now), Rating.GOOD, now)
    later = now + timedelta(minutes=10)
    card, _ = scheduler.next(learning, Rating.AGAIN, later)

    assert card.state == State.LEARNING
    assert card.due == later + timedelta(minutes=1)
    assert card.step == 0
    assert card.reps == 0
    assert card.lapses == 0
    assert card.stability < learning.stability


def test_learning_hard_repeats_step(scheduler, now):
    learning, _ = scheduler.next(new_card(now), Rating.GOOD, now)
    later = now + timedelta(minutes=10)
    card, _ = scheduler.next(learning, Rating.HARD, later)

    assert card.state == State.LEARNING
    assert card.due == later + timedelta(minutes=10)
    assert card.reps == 1


def test_learning_good_graduates(scheduler, now):
    learning, _ = scheduler.next(new_card(now), Rating.GOOD, now)
    later = now + timedelta(minutes=10)
    card, log = scheduler.next(learning, Rating.GOOD, later)

    assert card.state == State.REVIEW
    assert card.scheduled_days == 4.0
    assert card.due == later + timedelta(days=4)
    assert card.reps == 1
    assert log.retrievability is not None
    assert log.retrievability < 1


def test_learning_easy_graduates(scheduler, now):
    learning, _ = scheduler.next(new_card(now), Rating.EASY, now)
    card, _ = scheduler.next(learning, Rating.EASY, now + timedelta(days=1))

    assert card.state == State.REVIEW
    assert card.scheduled_days >= 1
    assert card.scheduled_days == int(card.scheduled_days)


# ---- Review ----

def test_review_good_grows_stability(scheduler, review_card, now):
    later = now + timedelta(days=10)
    card, log = scheduler.next(review_card, Rating.GOOD, later)

    assert card.state == State.REVIEW
    assert card.elapsed_days == pytest.approx(10.0)
    assert log.retrievability == pytest.approx(0.9)
    assert log.retrievability < 1
    assert card.stability > 10
    assert card.scheduled_days >= review_card.scheduled_days
    assert card.reps == review_card.reps + 1
    assert card.lapses == review_card.lapses
    assert card.due == later + timedelta(days=card.scheduled_days)
    assert log.last_elapsed_days == review_card.elapsed_days


def test_review_again_lapses(scheduler, review_card, now):
    later = now + timedelta(days=10)
    card, log = scheduler.next(review_card, Rating.AGAIN, later)

    assert card.state == State.RELEARNING
    assert card.lapses == review_card.lapses + 1
    assert card.reps == review_card.reps
    assert card.stability < 10
    assert card.due == later + timedelta(minutes=10)
    assert log.state == State.REVIEW
    assert log.state_after == State.RELEARNING


@pytest.mark.parametrize("rating", [Rating.HARD, Rating.GOOD, Rating.EASY])
def test_review_success_stays_in_review(scheduler, review_card, now, rating):
    card, _ = scheduler.next(review_card, rating, now + timedelta(days=8))
    assert card.state == State.REVIEW
    assert card.scheduled_days >= 1


def test_consecutive_easy_reviews_do_not_shrink_interval(scheduler, now):
    first, _ = scheduler.next(new_card(now), Rating.EASY, now)
    second, _ = scheduler.next(first, Rating.EASY, first.due)
    third, _ = scheduler.next(second, Rating.EASY, second.due)

    assert second.scheduled_days >= first.scheduled_days
    assert third.scheduled_days >= second.scheduled_days
    assert third.stability >= second.stability


def test_consecutive_easy_reviews_of_review_card(scheduler, review_card, now):
    first, _ = scheduler.next(review_card, Rating.EASY, now + timedelta(days=10))
    second, _ = scheduler.next(first, Rating.EASY, first.due)
    assert second.scheduled_days >= first.scheduled_days


def test_maximum_interval_caps_review(review_card, now):
    scheduler = Scheduler(SchedulerParameters(maximum_interval=15))
    card, _ = scheduler.next(review_card, Rating.EASY, now + timedelta(days=10))
    assert card.scheduled_days == 15


# ---- Relearning ----

def _relearning_card(scheduler, review_card, now):
    card, _ = scheduler.next(review_card, Rating.AGAIN, now + timedelta(days=10))
    return card


def test_relearning_again_stays(scheduler, review_card, now):
    relearning = _relearning_card(scheduler, review_card, now)
    later = relearning.due
    card, _ = scheduler.next(relearning, Rating.AGAIN, later)

    assert card.state == State.RELEARNING
    assert card.due == later + timedelta(minutes=10)
    assert card.lapses == relearning.lapses


def test_relearning_hard_stays(scheduler, review_card, now):
    relearning = _relearning_card(scheduler, review_card, now)
    later = relearning.due
    card, _ = scheduler.next(relearning, Rating.HARD, later)

    assert card.state == State.RELEARNING
    assert card.due == later + timedelta(minutes=15)


@pytest.mark.parametrize("rating", [Rating.GOOD, Rating.EASY])
def test_relearning_success_returns_to_review(scheduler, review_card, now, rating):
    relearning = _relearning_card(scheduler, review_card, now)
    card, _ = scheduler.next(relearning, rating, relearning.due)

    assert card.state == State.REVIEW
    assert card.scheduled_days >= 1
    assert card.lapses == 1


# ---- Invariants ----

@pytest.mark.parametrize("sequence", [
    [3, 3, 3, 3],
    [1, 1, 2, 3, 1, 4],
    [4, 1, 1, 3, 2, 2, 4],
    [2, 2, 2, 2, 2],
])
def test_invariants_hold_across_sequences(scheduler, now, sequence):
    card = new_card(now)
    t = now
    for rating in sequence:
        previous = card
        card, _ = scheduler.next(card, rating, t)
        card.validate()
        assert card.stability > 0
        assert 1 <= card.difficulty <= 10
        assert card.due >= card.last_review
        assert card.reps >= previous.reps
        assert card.lapses >= previous.lapses
        assert card.elapsed_days >= 0
        t = card.due


def test_clock_skew_clamps_elapsed_days(scheduler, review_card, now, caplog):
    earlier = now - timedelta(days=1)
    with caplog.at_level(logging.WARNING):
        card, log = scheduler.next(review_card, Rating.GOOD, earlier)

    assert card.elapsed_days == 0
    assert log.retrievability == 1.0
    assert card.due >= card.last_review
    assert card.scheduled_days >= 1
    assert "precedes last review" in caplog.text


def test_invalid_rating_rejected(scheduler, review_card, now):
    for bad in (0, 5, -1, "3", None, True, 2.5):
        with pytest.raises(InvalidRatingError):
            scheduler.next(review_card, bad, now)


def test_as_rating_accepts_ints():
    assert as_rating(1) is Rating.AGAIN
    assert as_rating(4) is Rating.EASY
    assert as_rating(3.0) is Rating.GOOD
    assert as_rating(Rating.HARD) is Rating.HARD


# ---- Preview / retrievability / forget ----

def test_repeat_previews_every_rating(scheduler, review_card, now):
    later = now + timedelta(days=10)
    outcomes = scheduler.repeat(review_card, later)

    assert list(outcomes) == list(Rating)
    assert outcomes[Rating.AGAIN].card.state == State.RELEARNING
    hard = outcomes[Rating.HARD].card.scheduled_days
    good = outcomes[Rating.GOOD].card.scheduled_days
    easy = outcomes[Rating.EASY].card.scheduled_days
    assert hard <= good <= easy


def test_get_retrievability(scheduler, review_card, now):
    assert scheduler.get_retrievability(review_card, now) == 1.0
    assert scheduler.get_retrievability(review_card, now + timedelta(days=10)) == pytest.approx(0.9)
    assert scheduler.get_retrievability(new_card(now), now) == 0.0


def test_forget_resets_to_new(scheduler, review_card, now):
    later = now + timedelta(days=3)
    card = scheduler.forget(review_card, later)

    assert card.state == State.NEW
    assert card.stability == 0
    assert card.difficulty == 0
    assert card.due == later
    assert card.reps == review_card.reps
    card.validate()


def test_forget_reset_count(scheduler, review_card, now):
    card = scheduler.forget(review_card.evolve(lapses=2), now, reset_count=True)
    assert card.reps == 0
    assert card.lapses == 0


def test_alternate_weights_change_first_stability(now):
    weights = list(SchedulerParameters().weights)
    weights[2] = 6.0
    scheduler = Scheduler(SchedulerParameters(weights=weights))
    card, _ = scheduler.next(new_card(now), Rating.GOOD, now)
    assert card.stability == 6.0


def test_largest_interval_keeps_due_in_range(review_card, now):
    scheduler = Scheduler(SchedulerParameters(maximum_interval=MAXIMUM_INTERVAL_LIMIT))
    later = now + timedelta(days=10)
    card, _ = scheduler.next(review_card.evolve(stability=5_000_000.0), Rating.GOOD, later)

    assert card.scheduled_days == MAXIMUM_INTERVAL_LIMIT
    assert card.due == later + timedelta(days=MAXIMUM_INTERVAL_LIMIT)
    card.validate()
