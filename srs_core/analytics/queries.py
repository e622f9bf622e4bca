"""
Data-loading helpers for analytics.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional

import pandas as pd

from srs_core.analytics.constants import EVENT_COLUMNS
from srs_core.fsrs.ports import ReviewLogRepository


def local_tz(now: datetime) -> tzinfo:
    """Timezone that defines "local date" for a reference time (UTC if naive)."""
    return now.tzinfo or timezone.utc


def day_start(day: date, tz: tzinfo) -> datetime:
    """Local midnight at the start of `day`."""
    return datetime.combine(day, time.min, tzinfo=tz)


def day_range(first_day: date, last_day: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """Half-open [start, end) timestamps covering first_day..last_day inclusive."""
    return day_start(first_day, tz), day_start(last_day + timedelta(days=1), tz)


def load_review_events_df(
    logs: ReviewLogRepository,
    first_day: date,
    last_day: date,
    tz: tzinfo,
    scope: Optional[int] = None
) -> pd.DataFrame:
    """
    Load review events between two local days (inclusive) into a dataframe.

    Columns: card_id, rating, reviewed_at (UTC), local_day (date in tz).
    local_day is resolved per timestamp so the offset in effect on that
    day (DST included) applies.
    """
    start, end = day_range(first_day, last_day, tz)
    entries = logs.list_logs_in_range(start, end, scope=scope)
    if not entries:
        return pd.DataFrame(columns=EVENT_COLUMNS)

    df = pd.DataFrame(
        [
            {
                "card_id": e.card_id,
                "rating": int(e.rating),
                "reviewed_at": e.reviewed_at,
                "local_day": e.reviewed_at.astimezone(tz).date(),
            }
            for e in entries
        ]
    )
    df["reviewed_at"] = pd.to_datetime(df["reviewed_at"], utc=True)
    return df.sort_values("reviewed_at").reset_index(drop=True)
