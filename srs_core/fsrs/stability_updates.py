"""
Stability and Difficulty Updates

Implements the FSRS memory-state update formulas.

All functions are pure and take the weight vector explicitly, so a different
parameter set can be plugged in without touching the formulas.

Key principles:
- Spaced, effortful success produces the largest stability gains
- Successful recall never lowers stability
- A lapse always lowers stability
- Difficulty drifts up on failure and down on easy success, within [1, 10]
"""

from __future__ import annotations

import math
from typing import Sequence

from srs_core.fsrs.constants import (
    D_MAX,
    D_MIN,
    DECAY,
    FACTOR,
    S_MIN,
    Rating,
)


def clamp_difficulty(difficulty: float) -> float:
    return max(D_MIN, min(D_MAX, difficulty))


def forgetting_curve(elapsed_days: float, stability: float) -> float:
    """
    Recall probability used by the update rules.

    Formula: R = (1 + FACTOR * t / S) ^ DECAY

    Args:
        elapsed_days: Days since the last review (t)
        stability: Current stability (S)

    Returns:
        Retrievability between 0 and 1
    """
    if elapsed_days <= 0:
        return 1.0
    return (1.0 + FACTOR * elapsed_days / stability) ** DECAY


def initial_stability(rating: Rating, w: Sequence[float]) -> float:
    """S0(G) = w[G-1], floored at S_MIN."""
    return max(w[rating - 1], S_MIN)


def initial_difficulty(rating: Rating, w: Sequence[float]) -> float:
    """D0(G) = w4 - exp(w5 * (G - 1)) + 1, clipped to [1, 10]."""
    return clamp_difficulty(w[4] - math.exp(w[5] * (rating - 1)) + 1.0)


def next_difficulty(difficulty: float, rating: Rating, w: Sequence[float]) -> float:
    """
    Update difficulty based on the rating.

    Formula:
        delta = -w6 * (G - 3)
        D' = D + delta * (10 - D) / 9
        D'' = w7 * D0(EASY) + (1 - w7) * D'

    The linear damping shrinks steps near the upper bound; mean reversion
    pulls towards the easiest initial difficulty. Result is clipped to [1, 10].

    Args:
        difficulty: Current difficulty
        rating: User feedback
        w: Weight vector

    Returns:
        New difficulty value
    """
    delta = -w[6] * (rating - 3)
    damped = difficulty + delta * (D_MAX - difficulty) / 9.0
    reverted = w[7] * initial_difficulty(Rating.EASY, w) + (1.0 - w[7]) * damped
    return clamp_difficulty(reverted)


def update_stability_on_success(
    stability: float,
    difficulty: float,
    retrievability: float,
    rating: Rating,
    w: Sequence[float]
) -> float:
    """
    Update stability after a successful recall (Hard/Good/Easy).

    Formula:
        S' = S * (1 + e^w8 * (11 - D) * S^-w9 * (e^(w10 * (1 - R)) - 1) * p * b)

    Where p = w15 for Hard (penalty), b = w16 for Easy (bonus), 1 otherwise.
    Since R <= 1 every factor is non-negative, so S' >= S.

    Args:
        stability: Current stability (S)
        difficulty: Current difficulty (D)
        retrievability: Recall probability at review time (R)
        rating: User feedback (HARD, GOOD or EASY)
        w: Weight vector

    Returns:
        New stability value
    """
    if rating == Rating.AGAIN:
        raise ValueError("Use update_stability_on_failure for AGAIN feedback")

    hard_penalty = w[15] if rating == Rating.HARD else 1.0
    easy_bonus = w[16] if rating == Rating.EASY else 1.0

    growth = (
        math.exp(w[8])
        * (11.0 - difficulty)
        * stability ** -w[9]
        * (math.exp(w[10] * (1.0 - retrievability)) - 1.0)
        * hard_penalty
        * easy_bonus
    )
    return max(stability, stability * (1.0 + growth))


def update_stability_on_failure(
    stability: float,
    difficulty: float,
    retrievability: float,
    w: Sequence[float]
) -> float:
    """
    Update stability after a lapse (Again).

    Formula:
        S_long = w11 * D^-w12 * ((S + 1)^w13 - 1) * e^(w14 * (1 - R))
        S' = min(S_long, S / e^(w17 * w18))

    The short-term cap keeps post-lapse stability strictly below S. The
    S_MIN floor only applies where it stays under that cap, so a card
    that is already below S_MIN still loses stability.

    Args:
        stability: Current stability
        difficulty: Current difficulty
        retrievability: Recall probability at review time

    Returns:
        New stability value (reduced)
    """
    long_term = (
        w[11]
        * difficulty ** -w[12]
        * ((stability + 1.0) ** w[13] - 1.0)
        * math.exp(w[14] * (1.0 - retrievability))
    )
    short_term_cap = stability / math.exp(w[17] * w[18])
    floor = min(S_MIN, short_term_cap)
    return max(floor, min(long_term, short_term_cap))


def update_stability_short_term(
    stability: float,
    rating: Rating,
    w: Sequence[float]
) -> float:
    """
    Same-day stability update for learning and relearning steps.

    Formula: S' = S * e^(w17 * (G - 3 + w18))
    """
    return max(S_MIN, stability * math.exp(w[17] * (rating - 3 + w[18])))
