"""
SQLAlchemy ORM Models for SRS Persistence

Defines the per-user scheduling record and the append-only review log.
Only the fields the scheduling engine reads or writes are stored.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, Index, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SrsMetadata(Base):
    """
    Latest scheduling state for one flashcard and one user.

    Replaced wholesale after every review (upsert keyed by user + flashcard).
    """
    __tablename__ = 'srs_metadata'

    # Primary key: composite of user_id and flashcard_id
    user_id = Column(String(255), primary_key=True, nullable=False)
    flashcard_id = Column(Integer, primary_key=True, nullable=False)

    # Scheduling
    due = Column(DateTime(timezone=True), nullable=False)
    stability = Column(Float, nullable=False)
    difficulty = Column(Float, nullable=False)
    elapsed_days = Column(Float, nullable=False)
    scheduled_days = Column(Float, nullable=False)

    # Counters and lifecycle
    reps = Column(Integer, nullable=False, default=0)
    lapses = Column(Integer, nullable=False, default=0)
    state = Column(Integer, nullable=False)  # 0=New, 1=Learning, 2=Review, 3=Relearning
    step = Column(Integer, nullable=False, default=0)
    last_review = Column(DateTime(timezone=True), nullable=True)

    # Fingerprint of the parameters that produced this record
    params_hash = Column(String(64), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index('idx_srs_metadata_user_due', 'user_id', 'due'),
    )

    def __repr__(self):
        return f"<SrsMetadata({self.user_id}, {self.flashcard_id}, state={self.state})>"


class ReviewLog(Base):
    """
    Log entry for a single review of a flashcard.

    Never updated after insert.
    """
    __tablename__ = 'review_logs'

    id = Column(Integer, primary_key=True, autoincrement=True)

    user_id = Column(String(255), nullable=False)
    flashcard_id = Column(Integer, nullable=False)

    rating = Column(Integer, nullable=False)  # 1=Again, 2=Hard, 3=Good, 4=Easy
    state = Column(Integer, nullable=False)  # State before the review
    state_after = Column(Integer, nullable=False)
    due = Column(DateTime(timezone=True), nullable=False)  # Due date before the review

    # State after review
    stability = Column(Float, nullable=False)
    difficulty = Column(Float, nullable=False)
    elapsed_days = Column(Float, nullable=False)
    last_elapsed_days = Column(Float, nullable=False)
    scheduled_days = Column(Float, nullable=False)
    learning_steps = Column(Integer, nullable=False, default=0)
    retrievability = Column(Float, nullable=True)

    review = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index('idx_review_logs_card', 'user_id', 'flashcard_id'),
        Index('idx_review_logs_review', 'review'),
    )

    def __repr__(self):
        return f"<ReviewLog(id={self.id}, {self.user_id}/{self.flashcard_id}, rating={self.rating})>"
