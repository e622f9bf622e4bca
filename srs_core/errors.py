"""
Errors - Typed failures for the scheduling core

Every failure the core can report derives from SrsError. Components raise
these; the host-facing StudyService turns them into Result values so nothing
escapes across the host-application boundary uncaught.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar


T = TypeVar("T")


class SrsError(Exception):
    """Base class for every error raised by srs_core."""

    code = "srs_error"


class CardNotFound(SrsError):
    """No card with the requested id exists in the card store."""

    code = "card_not_found"

    def __init__(self, card_id: int):
        super().__init__(f"Card {card_id} not found")
        self.card_id = card_id


class InvalidRating(SrsError):
    """Rating outside the four-value set {1, 2, 3, 4}."""

    code = "invalid_rating"

    def __init__(self, rating: object):
        super().__init__(f"Invalid rating {rating!r}: expected 1 (Again), 2 (Hard), 3 (Good) or 4 (Easy)")
        self.rating = rating


class InvalidTimeframe(SrsError):
    """Heatmap timeframe other than week, month or year."""

    code = "invalid_timeframe"

    def __init__(self, timeframe: object):
        super().__init__(f"Invalid timeframe {timeframe!r}: expected 'week', 'month' or 'year'")
        self.timeframe = timeframe


class InvalidLimit(SrsError, ValueError):
    """Due-queue limit that is not a positive integer."""

    code = "invalid_limit"

    def __init__(self, limit: object):
        super().__init__(f"Invalid limit {limit!r}: expected a positive integer")
        self.limit = limit


class StoreUnavailable(SrsError):
    """
    Persistence failure.

    The driver message is kept verbatim in `detail`; the core never retries.
    """

    code = "store_unavailable"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class Conflict(SrsError):
    """The stored card changed between read and write during a review."""

    code = "conflict"

    def __init__(self, card_id: int, expected_version: int):
        super().__init__(
            f"Card {card_id} was modified concurrently (expected version {expected_version}); "
            "re-fetch and retry"
        )
        self.card_id = card_id
        self.expected_version = expected_version


class CardIntegrityError(SrsError):
    """A card violates a memory-state invariant (upstream bug, never repaired)."""

    code = "card_integrity"

    def __init__(self, card_id: Optional[int], reason: str):
        super().__init__(f"Card {card_id} failed integrity check: {reason}")
        self.card_id = card_id
        self.reason = reason


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of a host-facing operation: either a value or an SrsError.
    """
    value: Optional[T] = None
    error: Optional[SrsError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: SrsError) -> "Result[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        """Return the value, re-raising the stored error on failure."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
