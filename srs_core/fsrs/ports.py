"""
Ports (interfaces) for card and review-log persistence.

These define the contract that storage adapters must implement. The queue
selector, review recorder and analytics depend on these abstractions, not on
a concrete database.

Every method accepts an optional `session` handle obtained from
`CardRepository.transaction()`. Passing it runs the call inside that
transaction; omitting it runs the call in its own short transaction.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date, datetime, tzinfo
from typing import Any, Optional

from srs_core.fsrs.constants import CardState
from srs_core.fsrs.memory_state import Card, ReviewLogEntry


class CardRepository(ABC):
    """
    Port for reading and writing per-card memory state.

    Implementations:
        - CardStore: SQLAlchemy-backed store (srs_core.fsrs.database)
    """

    @abstractmethod
    def transaction(self) -> AbstractContextManager[Any]:
        """Open a unit of work shared by card and log writes."""

    @abstractmethod
    def get_card(self, card_id: int, session: Optional[Any] = None) -> Optional[Card]:
        """Load one card by id, or None if absent."""

    @abstractmethod
    def list_due(
        self,
        now: datetime,
        scope: Optional[int] = None,
        limit: int = 50,
        session: Optional[Any] = None
    ) -> list[Card]:
        """
        Cards with due <= now, ordered by state then due ascending.

        Args:
            now: Reference time
            scope: Optional deck id
            limit: Maximum number of cards
        """

    @abstractmethod
    def upsert_card(self, card: Card, session: Optional[Any] = None) -> Card:
        """Insert (card_id None) or overwrite a card; returns it with its id."""

    @abstractmethod
    def compare_and_set(
        self,
        card: Card,
        expected_version: int,
        session: Optional[Any] = None
    ) -> bool:
        """
        Write `card` only if the stored version still equals expected_version.

        The stored version becomes expected_version + 1.

        Returns:
            False if the row changed (or vanished) since it was read
        """

    @abstractmethod
    def create_card(
        self,
        now: datetime,
        deck_id: Optional[int] = None,
        session: Optional[Any] = None
    ) -> Card:
        """Insert a fresh NEW card due at `now`."""

    @abstractmethod
    def count_by_state(
        self,
        scope: Optional[int] = None,
        session: Optional[Any] = None
    ) -> dict[CardState, int]:
        """Number of cards per lifecycle state (every state present)."""

    @abstractmethod
    def count_due(
        self,
        now: datetime,
        scope: Optional[int] = None,
        session: Optional[Any] = None
    ) -> int:
        """Number of cards with due <= now."""


class ReviewLogRepository(ABC):
    """
    Port for the append-only review log.

    Implementations:
        - ReviewLogStore: SQLAlchemy-backed store (srs_core.fsrs.database)
    """

    @abstractmethod
    def append_log(self, entry: ReviewLogEntry, session: Optional[Any] = None) -> None:
        """Append one immutable entry."""

    @abstractmethod
    def list_log_dates(
        self,
        tz: tzinfo,
        scope: Optional[int] = None,
        session: Optional[Any] = None
    ) -> list[date]:
        """Distinct calendar days (in `tz`) with at least one review, newest first."""

    @abstractmethod
    def list_logs_in_range(
        self,
        start: datetime,
        end: datetime,
        scope: Optional[int] = None,
        session: Optional[Any] = None
    ) -> list[ReviewLogEntry]:
        """Entries with start <= reviewed_at < end, oldest first."""
