"""Tests for the review session adapter."""

from datetime import datetime, timedelta, timezone

import pytest

from flashcard_srs import fsrs
from flashcard_srs.fsrs import (
    InvalidRatingError,
    InvalidStateError,
    Rating,
    Scheduler,
    SchedulerParameters,
    SrsRecord,
    State,
    new_card,
)


def test_review_without_prior_state(now):
    card, log = fsrs.review(None, 3, now=now)

    assert card.state == State.LEARNING
    assert card.reps == 0
    assert card.due == now + timedelta(minutes=10)
    assert log.rating == Rating.GOOD
    assert log.state == State.NEW
    assert log.due == now


def test_review_defaults_now_to_wall_clock():
    card, log = fsrs.review(None, Rating.AGAIN)
    assert card.last_review == log.review
    assert card.last_review.tzinfo is not None


def test_review_accepts_persisted_record(review_card, now):
    record = review_card.to_dict()
    record.update({"flashcard_id": 12, "user_id": "u1", "params_hash": None})

    card, log = fsrs.review(record, 3, now=now + timedelta(days=10))

    assert card.state == State.REVIEW
    assert card.stability > 10
    assert log.elapsed_days == pytest.approx(10)


def test_review_accepts_srs_record(review_card, now):
    record = SrsRecord.from_card_state(review_card)
    card, _ = fsrs.review(record, 1, now=now + timedelta(days=10))
    assert card.state == State.RELEARNING
    assert card.lapses == 1


def test_review_rejects_bad_rating_before_state(now):
    with pytest.raises(InvalidRatingError):
        fsrs.review({"due": "garbage"}, 7, now=now)


@pytest.mark.parametrize("record", [
    {"due": "2025-01-01T00:00:00+00:00", "stability": -1},
    {"due": "2025-01-01T00:00:00+00:00", "difficulty": 12, "state": 2, "stability": 3,
     "last_review": "2024-12-30T00:00:00+00:00"},
    {"due": "2025-01-01T00:00:00+00:00", "reps": -1},
    {"due": "2025-01-01T00:00:00+00:00", "state": 2, "stability": 0, "difficulty": 5,
     "last_review": "2024-12-30T00:00:00+00:00"},
    {"due": "2024-12-01T00:00:00+00:00", "state": 2, "stability": 3, "difficulty": 5,
     "last_review": "2024-12-30T00:00:00+00:00"},
    {"stability": 3},
])
def test_review_rejects_malformed_prior_state(record, now):
    with pytest.raises(InvalidStateError):
        fsrs.review(record, 3, now=now)


def test_review_rejects_invalid_card_state(review_card, now):
    with pytest.raises(InvalidStateError):
        fsrs.review(review_card.evolve(difficulty=42.0), 3, now=now)


def test_review_uses_supplied_scheduler(now):
    weights = list(SchedulerParameters().weights)
    weights[3] = 20.0
    scheduler = Scheduler(SchedulerParameters(weights=weights))

    card, _ = fsrs.review(None, Rating.EASY, now=now, scheduler=scheduler)
    assert card.stability == 20.0


def test_review_output_round_trips(now):
    card, log = fsrs.review(None, 4, now=now)
    card, log = fsrs.review(card.to_dict(), 4, now=card.due)
    assert fsrs.CardState.from_dict(card.to_dict()) == card
    assert log.to_dict()["rating"] == 4


def test_preview_new_card(now):
    outcomes = fsrs.preview(None, now=now)
    assert set(outcomes) == set(Rating)
    assert all(result.card.state == State.LEARNING for result in outcomes.values())
    dues = [outcomes[r].card.due for r in Rating]
    assert dues == sorted(dues)


def test_forget_via_adapter(review_card, now):
    card = fsrs.forget(review_card.to_dict(), now=now + timedelta(days=1), reset_count=True)
    assert card.state == State.NEW
    assert card.reps == 0


def test_get_retrievability_via_adapter(review_card, now):
    assert fsrs.get_retrievability(review_card, now + timedelta(days=10)) == pytest.approx(0.9)
    assert fsrs.get_retrievability(None, now) == 0.0


def test_select_due_orders_by_due(review_card, now):
    overdue = review_card.evolve(due=now + timedelta(days=2))
    later = now + timedelta(days=5)
    not_due = review_card.evolve(due=later + timedelta(days=1))

    due = fsrs.select_due(
        [
            ("new", None),
            ("overdue", overdue),
            ("not-due", not_due),
            ("scheduled", review_card.evolve(due=now + timedelta(days=1)).to_dict()),
        ],
        now=later,
    )

    assert [key for key, _ in due] == ["scheduled", "overdue", "new"]
    assert due[-1][1].state == State.NEW


def test_select_due_limit(now):
    due = fsrs.select_due([(i, None) for i in range(5)], now=now, limit=2)
    assert [key for key, _ in due] == [0, 1]


def test_new_card_is_always_due(now):
    [(key, card)] = fsrs.select_due([("a", None)], now=now)
    assert card == new_card(now)


def test_review_accepts_naive_and_aware_timestamps(now):
    record = {
        "due": "2025-01-10T00:00:00",
        "last_review": "2025-01-01T00:00:00Z",
        "state": 2,
        "stability": 3.0,
        "difficulty": 5.0,
    }
    card, log = fsrs.review(record, 3, now=now + timedelta(days=9))
    assert card.state == State.REVIEW
    assert log.due == datetime(2025, 1, 10, tzinfo=timezone.utc)
