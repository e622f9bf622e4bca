"""
Memory State - Card State and Retrievability

Defines the per-card memory state and its derived quantities.

Key concepts:
- Stability (S): Days for recall probability to decay to ~36.8% (1/e)
- Difficulty (D): How hard the card is to strengthen (1-10 scale)
- Retrievability (R): Probability of successful recall at time t
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from srs_core.errors import CardIntegrityError
from srs_core.fsrs.constants import CardState, D_MAX, D_MIN, Rating
from srs_core.schemas import CardExtras


SECONDS_PER_DAY = 86400.0


@dataclass
class Card:
    """
    Memory state for a single card.

    `deck_id` is the grouping scope used by the due queue and analytics.
    `version` is bumped on every persisted review and guards against
    concurrent writes.
    """
    card_id: Optional[int]
    deck_id: Optional[int]

    difficulty: float
    stability: float  # S, in days
    state: CardState

    due: datetime
    last_review: Optional[datetime]

    reps: int = 0
    lapses: int = 0
    scheduled_days: int = 0
    elapsed_days: int = 0

    version: int = 0
    extras: CardExtras = field(default_factory=CardExtras)


@dataclass(frozen=True)
class ReviewLogEntry:
    """
    Immutable record of one review.

    The *_before fields are None for the first review of a New card.
    """
    card_id: int
    rating: Rating
    reviewed_at: datetime
    scheduled_days: int
    elapsed_days: int
    resulting_state: CardState

    stability_before: Optional[float] = None
    difficulty_before: Optional[float] = None
    retrievability_before: Optional[float] = None
    stability_after: Optional[float] = None
    difficulty_after: Optional[float] = None


def as_utc(value: datetime) -> datetime:
    """Normalize a timestamp to aware UTC. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def days_between(start: datetime, end: datetime) -> float:
    """Fractional days from `start` to `end` (negative if end is earlier)."""
    return (as_utc(end) - as_utc(start)).total_seconds() / SECONDS_PER_DAY


def initialize_new_card(
    now: datetime,
    deck_id: Optional[int] = None,
    card_id: Optional[int] = None
) -> Card:
    """
    Initialize state for a new card (never seen before).

    Args:
        now: Creation time; the card is due immediately
        deck_id: Optional grouping scope
        card_id: Store-assigned id, if already known

    Returns:
        New Card in state NEW
    """
    return Card(
        card_id=card_id,
        deck_id=deck_id,
        difficulty=0.0,
        stability=0.0,
        state=CardState.NEW,
        due=as_utc(now),
        last_review=None,
    )


def calculate_retrievability(card: Card, now: datetime) -> float:
    """
    Calculate retrievability using exponential decay past the due date.

    Formula: R = exp(-t / S), t = max(0, days from due to now)

    Interpretation:
    - At or before the due date: R = 1.0
    - At t = S days overdue: R = 1/e
    - New cards always report R = 1.0

    Args:
        card: Card to evaluate
        now: Reference time

    Returns:
        Retrievability between 0 and 1
    """
    if card.state == CardState.NEW:
        return 1.0

    check_integrity(card)

    t = max(0.0, days_between(card.due, now))
    if t == 0.0:
        return 1.0
    return math.exp(-t / card.stability)


def check_integrity(card: Card) -> None:
    """
    Fail fast on a card that breaks a memory-state invariant.

    Raises:
        CardIntegrityError: stability <= 0, missing last review or
            out-of-range difficulty outside the NEW state
    """
    if card.state == CardState.NEW:
        return

    if not card.stability > 0:
        raise CardIntegrityError(
            card.card_id, f"stability {card.stability} <= 0 in state {card.state.name}"
        )
    if card.last_review is None:
        raise CardIntegrityError(
            card.card_id, f"last_review missing in state {card.state.name}"
        )
    if not D_MIN <= card.difficulty <= D_MAX:
        raise CardIntegrityError(
            card.card_id, f"difficulty {card.difficulty} outside [{D_MIN}, {D_MAX}]"
        )
