"""
Types for analytics results.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Literal


Timeframe = Literal["week", "month", "year"]


@dataclass(frozen=True)
class HeatmapBucket:
    """Number of reviews logged on one local calendar day."""
    date: date
    count: int


@dataclass(frozen=True)
class Heatmap:
    """
    Fixed-length activity calendar ending today (inclusive).
    """
    timeframe: Timeframe
    buckets: list[HeatmapBucket]
    max_count: int
    total_reviews: int
    streak: int
    start_date: date
    end_date: date


@dataclass(frozen=True)
class CardStats:
    """Card counts per state plus today's activity."""
    total_cards: int
    new_cards: int
    learning_cards: int
    review_cards: int
    relearning_cards: int
    due_today: int
    reviewed_today: int
    streak: int
