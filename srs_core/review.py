"""
Review submission.

Runs one review as a single transaction:
1. Load the card (CardNotFound if absent)
2. Validate the rating (InvalidRating)
3. Schedule the next memory state
4. Write the card, guarded by its version (Conflict on a concurrent change)
5. Append the review log entry

Steps 4 and 5 commit together or not at all.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from srs_core.errors import CardNotFound, Conflict
from srs_core.fsrs.memory_state import Card
from srs_core.fsrs.ports import CardRepository, ReviewLogRepository
from srs_core.fsrs.scheduler import Scheduler, parse_rating
from srs_core.logging import get_logger


logger = get_logger(__name__)


class ReviewRecorder:
    """
    Orchestrates review transactions.

    The card and log repositories must share one database so that the
    transaction opened by the card repository covers both writes.
    """

    def __init__(
        self,
        cards: CardRepository,
        logs: ReviewLogRepository,
        scheduler: Scheduler
    ):
        self._cards = cards
        self._logs = logs
        self._scheduler = scheduler

    def submit_review(self, card_id: int, rating: object, now: datetime) -> Card:
        """
        Record one review and return the updated card.

        Args:
            card_id: Card being reviewed
            rating: Raw rating value, validated against 1-4
            now: Review time

        Returns:
            Card as persisted after the review

        Raises:
            CardNotFound: no card with card_id
            InvalidRating: rating outside 1-4
            Conflict: the card changed between read and write
            StoreUnavailable: persistence failed; nothing was written
            CardIntegrityError: the stored card breaks an invariant
        """
        with self._cards.transaction() as session:
            card = self._cards.get_card(card_id, session=session)
            if card is None:
                raise CardNotFound(card_id)

            grade = parse_rating(rating)
            result = self._scheduler.schedule(card, grade, now)

            if not self._cards.compare_and_set(result.card, card.version, session=session):
                logger.warning("review_conflict", card_id=card_id, expected_version=card.version)
                raise Conflict(card_id, card.version)

            self._logs.append_log(result.log, session=session)

        updated = replace(result.card, version=card.version + 1)
        logger.info(
            "review_recorded",
            card_id=card_id,
            rating=grade.name,
            state=updated.state.name,
            due=updated.due.isoformat(),
            scheduled_days=updated.scheduled_days,
        )
        return updated
