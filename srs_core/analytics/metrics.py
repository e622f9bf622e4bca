"""
Metric computations for analytics dashboards.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Sequence

import pandas as pd


def compute_streak(log_days: Sequence[date], today: date) -> int:
    """
    Count consecutive study days ending at the most recent one.

    The streak survives if the most recent day is today or yesterday;
    otherwise it is 0. Counting stops at the first missing day.

    Args:
        log_days: Distinct local days with reviews, newest first
        today: Current local date

    Returns:
        Streak length in days
    """
    days = [day for day in log_days if day <= today]
    if not days:
        return 0

    if (today - days[0]).days > 1:
        return 0

    streak = 0
    expected = days[0]
    for day in days:
        if day != expected:
            break
        streak += 1
        expected -= timedelta(days=1)
    return streak


def build_day_buckets(
    events_df: pd.DataFrame,
    first_day: date,
    last_day: date
) -> pd.Series:
    """
    Dense per-day review counts from first_day to last_day inclusive.

    Days without reviews hold 0.
    """
    index = pd.date_range(start=first_day, end=last_day, freq="D")
    if events_df.empty:
        return pd.Series(0, index=index, dtype="int64")

    counts = pd.to_datetime(events_df["local_day"]).value_counts()
    return counts.reindex(index, fill_value=0).astype("int64")


def count_on_day(events_df: pd.DataFrame, day: date) -> int:
    """Number of events whose local day is `day`."""
    if events_df.empty:
        return 0
    return int((events_df["local_day"] == day).sum())
