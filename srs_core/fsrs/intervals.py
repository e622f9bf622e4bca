"""
Intervals - Turning stability into due dates

Converts a stability value into a day interval for the desired retention,
spreads day intervals with a bounded, seeded fuzz, and formats intervals
for display.
"""

from __future__ import annotations

import math
import random

from srs_core.fsrs.constants import DECAY, FACTOR, FUZZ_RANGES


def next_interval(
    stability: float,
    desired_retention: float,
    maximum_interval: int
) -> int:
    """
    Days until recall probability falls to the desired retention.

    Formula: I = S / FACTOR * (r^(1/DECAY) - 1), rounded, in [1, maximum]

    With r = 0.9 the interval equals the stability.
    """
    raw = stability / FACTOR * (desired_retention ** (1.0 / DECAY) - 1.0)
    return min(max(1, round(raw)), maximum_interval)


def fuzz_seed(card_id: object, reps: int, difficulty: float, stability: float, now_iso: str) -> str:
    """Seed string that makes fuzz reproducible for identical inputs."""
    return f"{card_id}:{reps}:{difficulty * stability:.6f}:{now_iso}"


def fuzz_interval(
    interval: int,
    elapsed_days: int,
    maximum_interval: int,
    seed: str
) -> int:
    """
    Spread a day interval to avoid many cards landing on the same day.

    Intervals under 2.5 days are returned unchanged. Otherwise the result
    lies within interval +/- delta (15% / 10% / 5% bands), is at least
    2 days, at least elapsed_days + 1, and at most maximum_interval.

    Args:
        interval: Unfuzzed interval in days
        elapsed_days: Days since the previous review
        maximum_interval: Upper bound in days
        seed: Deterministic seed (see fuzz_seed)

    Returns:
        Fuzzed interval in days
    """
    if interval < 2.5:
        return interval

    delta = 1.0
    for start, end, factor in FUZZ_RANGES:
        delta += factor * max(min(interval, end) - start, 0.0)

    min_ivl = max(2, int(round(interval - delta)))
    max_ivl = min(int(round(interval + delta)), maximum_interval)
    if interval > elapsed_days:
        min_ivl = max(min_ivl, elapsed_days + 1)
    min_ivl = min(min_ivl, max_ivl)

    fuzz_factor = random.Random(seed).random()
    return int(math.floor(fuzz_factor * (max_ivl - min_ivl + 1) + min_ivl))


def format_interval(days: float) -> str:
    """
    Human-readable interval label.

    Examples: 0.007 -> "10m", 0.125 -> "3h", 4 -> "4d", 60 -> "2mo", 540 -> "1.5y"
    """
    if days < 1:
        minutes = round(days * 24 * 60)
        if minutes < 60:
            return f"{minutes}m"
        return f"{round(minutes / 60)}h"
    if days < 30:
        return f"{round(days)}d"
    if days < 365:
        return f"{round(days / 30)}mo"
    return f"{days / 365:.1f}y"
