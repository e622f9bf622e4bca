"""
Due queue selection.

Picks the cards eligible for review now and annotates each one with the
four possible outcomes, so the host can show "Again 5m / Good 3d" style
buttons without touching stored state.

Priority order:
1. New cards (never-seen material first)
2. Learning cards
3. Review cards
4. Relearning cards
Within a state, the card that has been due longest comes first.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from srs_core.errors import InvalidLimit
from srs_core.fsrs.memory_state import Card, as_utc
from srs_core.fsrs.ports import CardRepository
from srs_core.fsrs.scheduler import Scheduler, SchedulingPreview


@dataclass(frozen=True)
class DueCard:
    """A due card with its preview outcomes."""
    card: Card
    preview: SchedulingPreview
    next_intervals: dict[str, str]


def due_order_key(card: Card) -> tuple:
    return (int(card.state), as_utc(card.due), card.card_id or 0)


class DueQueueSelector:
    """Reads due cards from the card store and orders them for study."""

    def __init__(self, cards: CardRepository, scheduler: Scheduler):
        self._cards = cards
        self._scheduler = scheduler

    def get_due(
        self,
        now: datetime,
        scope: Optional[int] = None,
        limit: int = 50
    ) -> list[DueCard]:
        """
        Get cards with due <= now, ordered for study.

        Args:
            now: Reference time
            scope: Optional deck id; None selects across all decks
            limit: Maximum number of cards to return

        Returns:
            Ordered list of DueCard values

        Raises:
            InvalidLimit: limit is not positive
            CardIntegrityError: a stored card breaks a memory-state invariant
        """
        if limit <= 0:
            raise InvalidLimit(limit)

        cards = self._cards.list_due(now, scope=scope, limit=limit)
        cards = sorted(
            (card for card in cards if as_utc(card.due) <= as_utc(now)),
            key=due_order_key,
        )[:limit]

        due_cards = []
        for card in cards:
            preview = self._scheduler.preview(card, now)
            due_cards.append(DueCard(
                card=card,
                preview=preview,
                next_intervals=preview.interval_labels(),
            ))
        return due_cards
