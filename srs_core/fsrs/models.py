"""
SQLAlchemy ORM Models for FSRS Database

Defines CardRecord and ReviewLogRecord for persistence.
Timestamps are stored as UTC; state and rating as small integer codes.
"""

from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class CardRecord(Base):
    """
    Persistent memory state for a single card.

    `deck_id` is the grouping scope; `version` guards review writes.
    """
    __tablename__ = 'flashcard_fsrs'

    id = Column(Integer, primary_key=True, autoincrement=True)
    deck_id = Column(Integer, nullable=True)

    # Memory state
    difficulty = Column(Float, nullable=False, default=0.0)
    stability = Column(Float, nullable=False, default=0.0)
    state = Column(Integer, nullable=False, default=0)  # 0=NEW, 1=LEARNING, 2=REVIEW, 3=RELEARNING

    # Scheduling
    due = Column(DateTime(timezone=True), nullable=False)
    last_review = Column(DateTime(timezone=True), nullable=True)
    reps = Column(Integer, nullable=False, default=0)
    lapses = Column(Integer, nullable=False, default=0)
    scheduled_days = Column(Integer, nullable=False, default=0)
    elapsed_days = Column(Integer, nullable=False, default=0)

    # Optimistic concurrency counter
    version = Column(Integer, nullable=False, default=0)

    # Structured auxiliary payload (JSON text, see srs_core.schemas.CardExtras)
    extras = Column(Text, nullable=True)

    reviews = relationship(
        "ReviewLogRecord",
        back_populates="card",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index('idx_flashcard_fsrs_due', 'due'),
        Index('idx_flashcard_fsrs_state', 'state'),
        Index('idx_flashcard_fsrs_deck', 'deck_id'),
    )

    def __repr__(self):
        return f"<CardRecord(id={self.id}, deck={self.deck_id}, state={self.state})>"


class ReviewLogRecord(Base):
    """
    Append-only log entry for a single review.

    Rows are removed only by cascade when the owning card is deleted.
    """
    __tablename__ = 'flashcard_reviews'

    id = Column(Integer, primary_key=True, autoincrement=True)
    card_id = Column(
        Integer,
        ForeignKey('flashcard_fsrs.id', ondelete='CASCADE'),
        nullable=False,
    )

    rating = Column(Integer, nullable=False)  # 1=AGAIN, 2=HARD, 3=GOOD, 4=EASY
    reviewed_at = Column(DateTime(timezone=True), nullable=False)
    scheduled_days = Column(Integer, nullable=False)
    elapsed_days = Column(Integer, nullable=False)
    state = Column(Integer, nullable=False)  # resulting state

    # State before review
    stability_before = Column(Float, nullable=True)
    difficulty_before = Column(Float, nullable=True)
    retrievability_before = Column(Float, nullable=True)

    # State after review
    stability_after = Column(Float, nullable=True)
    difficulty_after = Column(Float, nullable=True)

    card = relationship("CardRecord", back_populates="reviews")

    __table_args__ = (
        Index('idx_flashcard_reviews_card', 'card_id'),
        Index('idx_flashcard_reviews_date', 'reviewed_at'),
    )

    def __repr__(self):
        return f"<ReviewLogRecord(id={self.id}, card={self.card_id}, rating={self.rating})>"
