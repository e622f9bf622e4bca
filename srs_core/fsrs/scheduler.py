"""
Scheduler - FSRS Algorithm Logic

Pure FSRS scheduling and state updates (no database calls).

Main workflow:
1. Validate the card's memory state
2. Compute elapsed days and recall probability
3. Apply the update rules for the card's lifecycle state
4. Pick a learning step or a (fuzzed) day interval
5. Return the updated card + log entry

The input card is never mutated, so the same card can be scheduled for all
four ratings to preview outcomes. Database I/O lives in the database module.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional

from srs_core.errors import InvalidRating
from srs_core.fsrs import intervals, stability_updates
from srs_core.fsrs.constants import (
    NEW_CARD_STEPS,
    RELEARN_STEPS,
    CardState,
    Rating,
    SchedulerParameters,
)
from srs_core.fsrs.memory_state import (
    Card,
    ReviewLogEntry,
    as_utc,
    check_integrity,
    days_between,
)


@dataclass(frozen=True)
class SchedulingResult:
    """Next memory state for one rating, plus the log entry to persist."""
    card: Card
    log: ReviewLogEntry

    @property
    def interval_days(self) -> float:
        """Fractional days from this review to the next due date."""
        return days_between(self.log.reviewed_at, self.card.due)


@dataclass(frozen=True)
class SchedulingPreview:
    """The four candidate outcomes for one unmodified card."""
    again: SchedulingResult
    hard: SchedulingResult
    good: SchedulingResult
    easy: SchedulingResult

    def for_rating(self, rating: Rating) -> SchedulingResult:
        if rating == Rating.AGAIN:
            return self.again
        if rating == Rating.HARD:
            return self.hard
        if rating == Rating.GOOD:
            return self.good
        if rating == Rating.EASY:
            return self.easy
        raise InvalidRating(rating)

    def interval_labels(self) -> dict[str, str]:
        """Display labels keyed by rating name, e.g. {"again": "5m", ...}."""
        return {
            "again": intervals.format_interval(self.again.interval_days),
            "hard": intervals.format_interval(self.hard.interval_days),
            "good": intervals.format_interval(self.good.interval_days),
            "easy": intervals.format_interval(self.easy.interval_days),
        }


def parse_rating(value: object) -> Rating:
    """
    Validate a raw rating value.

    Raises:
        InvalidRating: value is not one of 1, 2, 3, 4
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRating(value)
    try:
        return Rating(value)
    except ValueError:
        raise InvalidRating(value) from None


class Scheduler:
    """
    FSRS scheduler bound to one parameter set.

    Construct once and pass it to the components that need it; it holds no
    mutable state and is safe to call concurrently.
    """

    def __init__(self, parameters: Optional[SchedulerParameters] = None):
        self.parameters = parameters or SchedulerParameters()

    def schedule(self, card: Card, rating: Rating, now: datetime) -> SchedulingResult:
        """
        Apply one review to a card.

        Args:
            card: Current memory state (not modified)
            rating: User feedback
            now: Review time

        Returns:
            SchedulingResult with the updated card and its log entry

        Raises:
            InvalidRating: rating outside 1-4
            CardIntegrityError: card violates a memory-state invariant
        """
        rating = parse_rating(rating)
        check_integrity(card)
        now = as_utc(now)

        if card.state == CardState.NEW:
            elapsed_days = 0
            retrievability = None
        else:
            elapsed_days = max(0, int(days_between(card.last_review, now)))
            retrievability = stability_updates.forgetting_curve(elapsed_days, card.stability)

        if card.state == CardState.NEW:
            stability, difficulty, state, step, days = self._schedule_new(
                card, rating, elapsed_days, now
            )
        elif card.state in (CardState.LEARNING, CardState.RELEARNING):
            stability, difficulty, state, step, days = self._schedule_learning(
                card, rating, elapsed_days, now
            )
        else:
            stability, difficulty, state, step, days = self._schedule_review(
                card, rating, elapsed_days, retrievability, now
            )

        if step is not None:
            due = now + step
            scheduled_days = 0
        else:
            due = now + timedelta(days=days)
            scheduled_days = days

        lapses = card.lapses
        if card.state == CardState.REVIEW and rating == Rating.AGAIN:
            lapses += 1

        updated = replace(
            card,
            difficulty=difficulty,
            stability=stability,
            state=state,
            due=due,
            last_review=now,
            reps=card.reps + 1,
            lapses=lapses,
            scheduled_days=scheduled_days,
            elapsed_days=elapsed_days,
        )

        is_new = card.state == CardState.NEW
        log = ReviewLogEntry(
            card_id=card.card_id,
            rating=rating,
            reviewed_at=now,
            scheduled_days=scheduled_days,
            elapsed_days=elapsed_days,
            resulting_state=state,
            stability_before=None if is_new else card.stability,
            difficulty_before=None if is_new else card.difficulty,
            retrievability_before=retrievability,
            stability_after=stability,
            difficulty_after=difficulty,
        )
        return SchedulingResult(card=updated, log=log)

    def preview(self, card: Card, now: datetime) -> SchedulingPreview:
        """Schedule the same card for every rating without persisting anything."""
        return SchedulingPreview(
            again=self.schedule(card, Rating.AGAIN, now),
            hard=self.schedule(card, Rating.HARD, now),
            good=self.schedule(card, Rating.GOOD, now),
            easy=self.schedule(card, Rating.EASY, now),
        )

    # ---- State handlers ----
    # Each returns (stability, difficulty, state, learning_step, interval_days);
    # exactly one of learning_step / interval_days is set.

    def _schedule_new(self, card: Card, rating: Rating, elapsed_days: int, now: datetime):
        w = self.parameters.weights
        stability = stability_updates.initial_stability(rating, w)
        difficulty = stability_updates.initial_difficulty(rating, w)

        if rating == Rating.EASY:
            days = self._review_interval(card, stability, elapsed_days, now)
            return stability, difficulty, CardState.REVIEW, None, days

        return stability, difficulty, CardState.LEARNING, NEW_CARD_STEPS[rating], None

    def _schedule_learning(self, card: Card, rating: Rating, elapsed_days: int, now: datetime):
        w = self.parameters.weights
        difficulty = stability_updates.next_difficulty(card.difficulty, rating, w)

        if rating in RELEARN_STEPS:
            stability = stability_updates.update_stability_short_term(card.stability, rating, w)
            return stability, difficulty, card.state, RELEARN_STEPS[rating], None

        good_stability = stability_updates.update_stability_short_term(card.stability, Rating.GOOD, w)
        good_days = self._review_interval(card, good_stability, elapsed_days, now)
        if rating == Rating.GOOD:
            return good_stability, difficulty, CardState.REVIEW, None, good_days

        easy_stability = stability_updates.update_stability_short_term(card.stability, Rating.EASY, w)
        easy_days = self._review_interval(card, easy_stability, elapsed_days, now)
        easy_days = self._cap(max(easy_days, good_days + 1))
        return easy_stability, difficulty, CardState.REVIEW, None, easy_days

    def _schedule_review(
        self,
        card: Card,
        rating: Rating,
        elapsed_days: int,
        retrievability: float,
        now: datetime
    ):
        w = self.parameters.weights
        difficulty = stability_updates.next_difficulty(card.difficulty, rating, w)

        if rating == Rating.AGAIN:
            stability = stability_updates.update_stability_on_failure(
                card.stability, card.difficulty, retrievability, w
            )
            return stability, difficulty, CardState.RELEARNING, RELEARN_STEPS[Rating.AGAIN], None

        # Ordering hard <= good < easy needs all three candidates
        hard_stability, good_stability, easy_stability = (
            stability_updates.update_stability_on_success(
                card.stability, card.difficulty, retrievability, grade, w
            )
            for grade in (Rating.HARD, Rating.GOOD, Rating.EASY)
        )
        hard_days = self._review_interval(card, hard_stability, elapsed_days, now)
        good_days = self._review_interval(card, good_stability, elapsed_days, now)
        easy_days = self._review_interval(card, easy_stability, elapsed_days, now)

        hard_days = min(hard_days, good_days)
        good_days = self._cap(max(good_days, hard_days + 1))
        easy_days = self._cap(max(easy_days, good_days + 1))

        if rating == Rating.HARD:
            return hard_stability, difficulty, CardState.REVIEW, None, hard_days
        if rating == Rating.GOOD:
            return good_stability, difficulty, CardState.REVIEW, None, good_days
        return easy_stability, difficulty, CardState.REVIEW, None, easy_days

    # ---- Interval helpers ----

    def _review_interval(self, card: Card, stability: float, elapsed_days: int, now: datetime) -> int:
        params = self.parameters
        days = intervals.next_interval(
            stability, params.desired_retention, params.maximum_interval
        )
        if not params.enable_fuzz:
            return days
        seed = intervals.fuzz_seed(
            card.card_id, card.reps, card.difficulty, card.stability, now.isoformat()
        )
        return intervals.fuzz_interval(days, elapsed_days, params.maximum_interval, seed)

    def _cap(self, days: int) -> int:
        return min(days, self.parameters.maximum_interval)
