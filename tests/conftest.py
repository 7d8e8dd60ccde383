"""Shared test fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

from flashcard_srs.fsrs import CardState, Scheduler, SchedulerParameters, State


T0 = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    """Fixed review time."""
    return T0


@pytest.fixture
def scheduler():
    """Scheduler with the published default parameters."""
    return Scheduler(SchedulerParameters())


@pytest.fixture
def review_card():
    """Review-state card: S=10, D=5, last reviewed at T0, due 10 days later."""
    return CardState(
        due=T0 + timedelta(days=10),
        stability=10.0,
        difficulty=5.0,
        elapsed_days=5.0,
        scheduled_days=10.0,
        reps=3,
        lapses=0,
        state=State.REVIEW,
        last_review=T0,
    )


@pytest.fixture
def db(tmp_path, monkeypatch):
    """Temporary SQLite database with the SRS schema applied."""
    from flashcard_srs.fsrs import database

    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'srs.db'}")
    monkeypatch.delenv("TEST_MODE", raising=False)
    database.init_db()
    return database
