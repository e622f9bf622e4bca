"""
FSRS Constants and Parameters

All configurable parameters for the FSRS algorithm in one place.
The default weights are the published FSRS-5 reference set; any other
parameter set satisfying the same contracts can be passed to the Scheduler.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import IntEnum


# ---- Ratings ----

class Rating(IntEnum):
    """User feedback on a retrieval attempt."""
    AGAIN = 1   # Retrieval failed
    HARD = 2    # Retrieved with high effort
    GOOD = 3    # Retrieved normally
    EASY = 4    # Retrieved fluently


# ---- Lifecycle States ----

class CardState(IntEnum):
    """Lifecycle state of a card. Values are the persisted integer codes."""
    NEW = 0
    LEARNING = 1
    REVIEW = 2
    RELEARNING = 3


# ---- Global Constants ----

S_MIN = 0.1          # Minimum stability (days)
D_MIN = 1.0          # Minimum difficulty
D_MAX = 10.0         # Maximum difficulty

# Forgetting curve R(t, S) = (1 + FACTOR * t / S) ^ DECAY
DECAY = -0.5
FACTOR = 19.0 / 81.0

DEFAULT_DESIRED_RETENTION = 0.9
DEFAULT_MAXIMUM_INTERVAL = 36500  # days

MINUTE = timedelta(minutes=1)


# ---- Learning Steps ----
# Same-day steps for New / Learning / Relearning cards. Never fuzzed.

NEW_CARD_STEPS = {
    Rating.AGAIN: timedelta(minutes=1),
    Rating.HARD: timedelta(minutes=5),
    Rating.GOOD: timedelta(minutes=10),
}

RELEARN_STEPS = {
    Rating.AGAIN: timedelta(minutes=5),
    Rating.HARD: timedelta(minutes=10),
}


# ---- Fuzz Ranges ----
# (start_days, end_days, factor): spread applied to day intervals

FUZZ_RANGES = (
    (2.5, 7.0, 0.15),
    (7.0, 20.0, 0.1),
    (20.0, float("inf"), 0.05),
)


# ---- Default Weights (FSRS-5) ----

DEFAULT_WEIGHTS = (
    0.40255, 1.18385, 3.173, 15.69105,   # w0-w3   initial stability per rating
    7.1949, 0.5345,                      # w4-w5   initial difficulty
    1.4604, 0.0046,                      # w6-w7   difficulty delta, mean reversion
    1.54575, 0.1192, 1.01925,            # w8-w10  recall stability
    1.9395, 0.11, 0.29605, 2.2698,       # w11-w14 forget stability
    0.2315, 2.9898,                      # w15-w16 hard penalty, easy bonus
    0.51655, 0.6621,                     # w17-w18 short-term stability
)


@dataclass(frozen=True)
class SchedulerParameters:
    """
    A pluggable FSRS parameter set.

    Attributes:
        weights: 19 FSRS-5 weights (w0..w18)
        desired_retention: Target recall probability at the next due date
        maximum_interval: Upper bound on any scheduled interval, in days
        enable_fuzz: Spread day intervals to avoid due-date clustering
    """
    weights: tuple[float, ...] = field(default=DEFAULT_WEIGHTS)
    desired_retention: float = DEFAULT_DESIRED_RETENTION
    maximum_interval: int = DEFAULT_MAXIMUM_INTERVAL
    enable_fuzz: bool = True

    def __post_init__(self):
        if len(self.weights) != len(DEFAULT_WEIGHTS):
            raise ValueError(
                f"Expected {len(DEFAULT_WEIGHTS)} weights, got {len(self.weights)}"
            )
        if not 0.0 < self.desired_retention < 1.0:
            raise ValueError("desired_retention must be in (0, 1)")
        if self.maximum_interval < 1:
            raise ValueError("maximum_interval must be at least 1 day")
