"""
Constants for analytics timeframes.
"""

from __future__ import annotations

from typing import Final


TIMEFRAME_DAYS: Final[dict[str, int]] = {
    "week": 7,
    "month": 30,
    "year": 365,
}

EVENT_COLUMNS: Final[list[str]] = ["card_id", "rating", "reviewed_at", "local_day"]
