from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pandas as pd
import pytest

from srs_core.analytics.metrics import build_day_buckets, compute_streak, count_on_day
from srs_core.analytics.queries import load_review_events_df
from srs_core.analytics.service import AnalyticsAggregator
from srs_core.errors import InvalidTimeframe
from srs_core.fsrs.constants import CardState, Rating
from srs_core.fsrs.memory_state import ReviewLogEntry


@pytest.fixture
def aggregator(card_store, log_store) -> AnalyticsAggregator:
    return AnalyticsAggregator(card_store, log_store)


@pytest.fixture
def log_review(log_store):
    def _log(card_id, reviewed_at, rating=Rating.GOOD):
        log_store.append_log(ReviewLogEntry(
            card_id=card_id,
            rating=rating,
            reviewed_at=reviewed_at,
            scheduled_days=0,
            elapsed_days=0,
            resulting_state=CardState.LEARNING,
        ))
    return _log


# ---- Streak ----

TODAY = date(2026, 3, 14)


def test_streak_three_consecutive_days():
    days = [TODAY, TODAY - timedelta(days=1), TODAY - timedelta(days=2)]
    assert compute_streak(days, TODAY) == 3


def test_streak_survives_until_end_of_next_day():
    assert compute_streak([TODAY - timedelta(days=1)], TODAY) == 1


def test_streak_broken_after_a_missed_day():
    assert compute_streak([TODAY - timedelta(days=3)], TODAY) == 0


def test_streak_stops_at_first_gap():
    days = [TODAY, TODAY - timedelta(days=2), TODAY - timedelta(days=3)]
    assert compute_streak(days, TODAY) == 1


def test_streak_empty():
    assert compute_streak([], TODAY) == 0


def test_streak_from_store(aggregator, card_store, log_review, now):
    card = card_store.create_card(now)
    for days_ago in (0, 1, 2, 4):
        log_review(card.card_id, now - timedelta(days=days_ago))
    log_review(card.card_id, now - timedelta(hours=1))

    assert aggregator.streak(now) == 3


# ---- Heatmap ----

def test_week_heatmap(aggregator, card_store, log_review, now):
    card = card_store.create_card(now)
    log_review(card.card_id, now)
    log_review(card.card_id, now - timedelta(hours=2))
    log_review(card.card_id, now - timedelta(days=2))

    heatmap = aggregator.heatmap("week", now)

    assert len(heatmap.buckets) == 7
    assert heatmap.end_date == now.date()
    assert heatmap.start_date == now.date() - timedelta(days=6)
    assert [b.date for b in heatmap.buckets] == [
        heatmap.start_date + timedelta(days=i) for i in range(7)
    ]

    active = {b.date: b.count for b in heatmap.buckets if b.count >= 1}
    assert active == {now.date(): 2, now.date() - timedelta(days=2): 1}
    assert heatmap.max_count == 2
    assert heatmap.total_reviews == 3
    assert heatmap.streak == 1


@pytest.mark.parametrize("timeframe, days", [("week", 7), ("month", 30), ("year", 365)])
def test_heatmap_lengths(aggregator, now, timeframe, days):
    heatmap = aggregator.heatmap(timeframe, now)

    assert len(heatmap.buckets) == days
    assert heatmap.max_count == 0
    assert heatmap.total_reviews == 0
    assert heatmap.streak == 0


def test_heatmap_ignores_reviews_outside_window(aggregator, card_store, log_review, now):
    card = card_store.create_card(now)
    log_review(card.card_id, now - timedelta(days=7))
    log_review(card.card_id, now + timedelta(days=1))

    heatmap = aggregator.heatmap("week", now)

    assert heatmap.total_reviews == 0


@pytest.mark.parametrize("timeframe", ["decade", "", "WEEK", None])
def test_invalid_timeframe(aggregator, now, timeframe):
    with pytest.raises(InvalidTimeframe):
        aggregator.heatmap(timeframe, now)


def test_heatmap_uses_local_day_of_now(aggregator, card_store, log_review, now):
    plus_two = timezone(timedelta(hours=2))
    local_now = now.astimezone(plus_two)
    card = card_store.create_card(now)
    # 23:30 UTC on the previous day is 01:30 local time today
    log_review(card.card_id, datetime(2026, 3, 13, 23, 30, tzinfo=timezone.utc))

    heatmap = aggregator.heatmap("week", local_now)

    assert heatmap.buckets[-1].date == date(2026, 3, 14)
    assert heatmap.buckets[-1].count == 1
    assert heatmap.streak == 1


def test_heatmap_scope(aggregator, card_store, log_review, now):
    mine = card_store.create_card(now, deck_id=1)
    other = card_store.create_card(now, deck_id=2)
    log_review(mine.card_id, now)
    log_review(other.card_id, now)
    log_review(other.card_id, now)

    assert aggregator.heatmap("week", now, scope=1).total_reviews == 1
    assert aggregator.heatmap("week", now).total_reviews == 3


# ---- Stats ----

def test_stats(aggregator, card_store, log_review, make_card, now):
    new_card = card_store.create_card(now)
    card_store.create_card(now - timedelta(hours=1))
    card_store.upsert_card(make_card(card_id=None, state=CardState.LEARNING, stability=2.0, due=now))
    card_store.upsert_card(make_card(card_id=None, due=now + timedelta(days=4)))
    card_store.upsert_card(make_card(card_id=None, state=CardState.RELEARNING, stability=1.0,
                                     due=now + timedelta(minutes=5)))
    log_review(new_card.card_id, now - timedelta(hours=3))
    log_review(new_card.card_id, now - timedelta(days=1))

    stats = aggregator.stats(now)

    assert stats.total_cards == 5
    assert stats.new_cards == 2
    assert stats.learning_cards == 1
    assert stats.review_cards == 1
    assert stats.relearning_cards == 1
    assert stats.due_today == 3
    assert stats.reviewed_today == 1
    assert stats.streak == 2


def test_stats_empty_store(aggregator, now):
    stats = aggregator.stats(now)

    assert stats.total_cards == 0
    assert stats.due_today == 0
    assert stats.reviewed_today == 0
    assert stats.streak == 0


# ---- Dataframe helpers ----

def test_load_review_events_df_empty(log_store):
    df = load_review_events_df(log_store, TODAY, TODAY, timezone.utc)

    assert df.empty
    assert list(df.columns) == ["card_id", "rating", "reviewed_at", "local_day"]
    assert count_on_day(df, TODAY) == 0


def test_build_day_buckets_fills_missing_days():
    df = pd.DataFrame({"local_day": [TODAY, TODAY, TODAY - timedelta(days=3)]})

    buckets = build_day_buckets(df, TODAY - timedelta(days=4), TODAY)

    assert buckets.tolist() == [0, 1, 0, 0, 2]


# ---- Daylight saving time ----

BERLIN = ZoneInfo("Europe/Berlin")


def test_heatmap_buckets_follow_dst_offsets(aggregator, card_store, log_review):
    now = datetime(2026, 7, 1, 12, 0, tzinfo=BERLIN)
    card = card_store.create_card(now)
    # 23:30 CET on Jan 10; a summer offset would push it into Jan 11
    log_review(card.card_id, datetime(2026, 1, 10, 22, 30, tzinfo=timezone.utc))
    # 00:30 CEST on Jul 1
    log_review(card.card_id, datetime(2026, 6, 30, 22, 30, tzinfo=timezone.utc))

    heatmap = aggregator.heatmap("year", now)

    active = [b.date for b in heatmap.buckets if b.count]
    assert active == [date(2026, 1, 10), date(2026, 7, 1)]


def test_month_heatmap_across_spring_forward(aggregator, card_store, log_review):
    now = datetime(2026, 4, 2, 12, 0, tzinfo=BERLIN)
    card = card_store.create_card(now)
    log_review(card.card_id, datetime(2026, 3, 20, 22, 30, tzinfo=timezone.utc))
    log_review(card.card_id, datetime(2026, 4, 1, 22, 30, tzinfo=timezone.utc))

    heatmap = aggregator.heatmap("month", now)

    counts = {b.date: b.count for b in heatmap.buckets}
    assert counts[date(2026, 3, 20)] == 1
    assert counts[date(2026, 3, 21)] == 0
    assert counts[date(2026, 4, 2)] == 1
    assert heatmap.total_reviews == 2


def test_streak_across_spring_forward(aggregator, card_store, log_review):
    now = datetime(2026, 3, 30, 10, 0, tzinfo=BERLIN)
    card = card_store.create_card(now)
    log_review(card.card_id, datetime(2026, 3, 28, 22, 30, tzinfo=timezone.utc))
    log_review(card.card_id, datetime(2026, 3, 29, 12, 0, tzinfo=timezone.utc))
    log_review(card.card_id, datetime(2026, 3, 30, 6, 0, tzinfo=timezone.utc))

    assert aggregator.streak(now) == 3
    assert aggregator.stats(now).reviewed_today == 1
