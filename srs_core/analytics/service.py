"""
Service layer to assemble streaks, heatmaps and card statistics.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from srs_core.analytics.constants import TIMEFRAME_DAYS
from srs_core.analytics.metrics import build_day_buckets, compute_streak, count_on_day
from srs_core.analytics.queries import load_review_events_df, local_tz
from srs_core.analytics.types import CardStats, Heatmap, HeatmapBucket
from srs_core.errors import InvalidTimeframe
from srs_core.fsrs.constants import CardState
from srs_core.fsrs.ports import CardRepository, ReviewLogRepository


class AnalyticsAggregator:
    """
    Read-only analytics over the review log and card store.

    "Today" is the local date of the reference time passed to each call.
    """

    def __init__(self, cards: CardRepository, logs: ReviewLogRepository):
        self._cards = cards
        self._logs = logs

    def streak(self, now: datetime, scope: Optional[int] = None) -> int:
        """Consecutive days with at least one review, ending today or yesterday."""
        tz = local_tz(now)
        log_days = self._logs.list_log_dates(tz, scope=scope)
        return compute_streak(log_days, now.astimezone(tz).date())

    def heatmap(
        self,
        timeframe: str,
        now: datetime,
        scope: Optional[int] = None
    ) -> Heatmap:
        """
        Build the activity heatmap for a timeframe.

        Args:
            timeframe: "week" (7 days), "month" (30) or "year" (365)
            now: Reference time; the last bucket is its local date
            scope: Optional deck id

        Returns:
            Heatmap with exactly TIMEFRAME_DAYS[timeframe] buckets

        Raises:
            InvalidTimeframe: unknown timeframe
        """
        if timeframe not in TIMEFRAME_DAYS:
            raise InvalidTimeframe(timeframe)

        tz = local_tz(now)
        end_date = now.astimezone(tz).date()
        start_date = end_date - timedelta(days=TIMEFRAME_DAYS[timeframe] - 1)

        events_df = load_review_events_df(self._logs, start_date, end_date, tz, scope=scope)
        daily = build_day_buckets(events_df, start_date, end_date)

        buckets = [
            HeatmapBucket(date=day.date(), count=int(count))
            for day, count in daily.items()
        ]
        return Heatmap(
            timeframe=timeframe,
            buckets=buckets,
            max_count=int(daily.max()) if len(daily) else 0,
            total_reviews=int(daily.sum()),
            streak=self.streak(now, scope=scope),
            start_date=start_date,
            end_date=end_date,
        )

    def stats(self, now: datetime, scope: Optional[int] = None) -> CardStats:
        """Card counts per state, cards due now, reviews logged today and streak."""
        tz = local_tz(now)
        today = now.astimezone(tz).date()

        counts = self._cards.count_by_state(scope=scope)
        today_df = load_review_events_df(self._logs, today, today, tz, scope=scope)

        return CardStats(
            total_cards=sum(counts.values()),
            new_cards=counts[CardState.NEW],
            learning_cards=counts[CardState.LEARNING],
            review_cards=counts[CardState.REVIEW],
            relearning_cards=counts[CardState.RELEARNING],
            due_today=self._cards.count_due(now, scope=scope),
            reviewed_today=count_on_day(today_df, today),
            streak=self.streak(now, scope=scope),
        )
