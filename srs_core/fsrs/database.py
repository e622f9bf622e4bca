"""
Database - FSRS Database I/O Operations

Handles all database operations for card state and review events.
Uses SQLAlchemy ORM; any SQLAlchemy URL works (SQLite by default).

This module handles ONLY database I/O.
Algorithm logic is handled by the scheduler module.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime, tzinfo
from pathlib import Path
from typing import TYPE_CHECKING, Iterator, Optional

from sqlalchemy import create_engine, event, func, update
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from srs_core.errors import CardIntegrityError, StoreUnavailable
from srs_core.fsrs.constants import CardState, Rating
from srs_core.fsrs.memory_state import Card, ReviewLogEntry, as_utc, initialize_new_card
from srs_core.fsrs.models import Base, CardRecord, ReviewLogRecord
from srs_core.fsrs.ports import CardRepository, ReviewLogRepository
from srs_core.logging import get_logger
from srs_core.schemas import dump_extras, parse_extras

if TYPE_CHECKING:
    from srs_core.config import Settings


logger = get_logger(__name__)


# ---- Engine and sessions ----

def get_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Get SQLAlchemy engine for database connection.

    In-memory SQLite shares one connection across sessions; file-backed
    SQLite gets its parent directory created; other backends use a
    connection pool.

    Args:
        database_url: SQLAlchemy URL
        echo: Log emitted SQL

    Returns:
        SQLAlchemy Engine instance
    """
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        if url.database in (None, "", ":memory:"):
            engine = create_engine(
                url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
                echo=echo,
            )
        else:
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
            engine = create_engine(url, echo=echo)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(
        url,
        pool_size=5,           # Keep 5 connections open
        max_overflow=10,       # Allow up to 10 extra connections
        pool_pre_ping=True,    # Verify connections before use
        echo=echo,
    )


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # Review rows cascade with their card only when SQLite enforces FKs
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine_from_settings(settings: Settings) -> Engine:
    """Engine for the configured database (in-memory SQLite in test mode)."""
    return get_engine(settings.effective_database_url)


def get_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to `engine`; objects stay usable after commit."""
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """
    Initialize database schema if tables don't exist.

    Safe to call multiple times.

    Raises:
        StoreUnavailable: the database could not be reached
    """
    try:
        Base.metadata.create_all(engine)
    except SQLAlchemyError as exc:
        raise StoreUnavailable(str(exc)) from exc


@contextmanager
def session_scope(session_factory: sessionmaker) -> Iterator[Session]:
    """
    Run a block in one transaction: commit on success, roll back on error.

    SQLAlchemy errors are re-raised as StoreUnavailable with the driver
    message unchanged; anything else propagates as-is after rollback.
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("store_failure", error=str(exc))
        raise StoreUnavailable(str(exc)) from exc
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ---- Row conversion ----

def _to_card(record: CardRecord) -> Card:
    try:
        state = CardState(record.state)
    except ValueError:
        raise CardIntegrityError(record.id, f"unknown state code {record.state}") from None

    return Card(
        card_id=record.id,
        deck_id=record.deck_id,
        difficulty=record.difficulty,
        stability=record.stability,
        state=state,
        due=as_utc(record.due),
        last_review=as_utc(record.last_review) if record.last_review else None,
        reps=record.reps,
        lapses=record.lapses,
        scheduled_days=record.scheduled_days,
        elapsed_days=record.elapsed_days,
        version=record.version,
        extras=parse_extras(record.extras, record.id),
    )


def _card_values(card: Card) -> dict:
    return {
        "deck_id": card.deck_id,
        "difficulty": card.difficulty,
        "stability": card.stability,
        "state": int(card.state),
        "due": as_utc(card.due),
        "last_review": as_utc(card.last_review) if card.last_review else None,
        "reps": card.reps,
        "lapses": card.lapses,
        "scheduled_days": card.scheduled_days,
        "elapsed_days": card.elapsed_days,
        "extras": dump_extras(card.extras),
    }


def _to_log_entry(record: ReviewLogRecord) -> ReviewLogEntry:
    return ReviewLogEntry(
        card_id=record.card_id,
        rating=Rating(record.rating),
        reviewed_at=as_utc(record.reviewed_at),
        scheduled_days=record.scheduled_days,
        elapsed_days=record.elapsed_days,
        resulting_state=CardState(record.state),
        stability_before=record.stability_before,
        difficulty_before=record.difficulty_before,
        retrievability_before=record.retrievability_before,
        stability_after=record.stability_after,
        difficulty_after=record.difficulty_after,
    )


# ---- Stores ----

class _SqlStore:
    """Shared session handling for the SQLAlchemy stores."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def transaction(self):
        return session_scope(self._session_factory)

    @contextmanager
    def _use(self, session: Optional[Session]) -> Iterator[Session]:
        if session is not None:
            yield session
        else:
            with session_scope(self._session_factory) as own:
                yield own


class CardStore(_SqlStore, CardRepository):
    """Card Store backed by the flashcard_fsrs table."""

    def get_card(self, card_id: int, session: Optional[Session] = None) -> Optional[Card]:
        """
        Load card state from database.

        Args:
            card_id: Card identifier
            session: Optional open transaction

        Returns:
            Card if found, None otherwise
        """
        with self._use(session) as s:
            record = s.get(CardRecord, card_id)
            if record is None:
                return None
            return _to_card(record)

    def list_due(
        self,
        now: datetime,
        scope: Optional[int] = None,
        limit: int = 50,
        session: Optional[Session] = None
    ) -> list[Card]:
        with self._use(session) as s:
            query = s.query(CardRecord).filter(CardRecord.due <= as_utc(now))
            if scope is not None:
                query = query.filter(CardRecord.deck_id == scope)
            records = query.order_by(
                CardRecord.state.asc(),
                CardRecord.due.asc(),
                CardRecord.id.asc(),
            ).limit(limit).all()
            return [_to_card(record) for record in records]

    def upsert_card(self, card: Card, session: Optional[Session] = None) -> Card:
        """
        Save card state to database (insert or update).

        Args:
            card: Card to save; card_id None inserts a new row

        Returns:
            The saved card, carrying its database id
        """
        with self._use(session) as s:
            record = s.get(CardRecord, card.card_id) if card.card_id is not None else None
            if record is None:
                record = CardRecord(id=card.card_id, version=card.version, **_card_values(card))
                s.add(record)
            else:
                for key, value in _card_values(card).items():
                    setattr(record, key, value)
                record.version = card.version
            s.flush()
            return replace(card, card_id=record.id)

    def compare_and_set(
        self,
        card: Card,
        expected_version: int,
        session: Optional[Session] = None
    ) -> bool:
        with self._use(session) as s:
            result = s.execute(
                update(CardRecord)
                .where(
                    CardRecord.id == card.card_id,
                    CardRecord.version == expected_version,
                )
                .values(version=expected_version + 1, **_card_values(card))
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    def create_card(
        self,
        now: datetime,
        deck_id: Optional[int] = None,
        session: Optional[Session] = None
    ) -> Card:
        return self.upsert_card(initialize_new_card(now, deck_id=deck_id), session=session)

    def count_by_state(
        self,
        scope: Optional[int] = None,
        session: Optional[Session] = None
    ) -> dict[CardState, int]:
        with self._use(session) as s:
            query = s.query(CardRecord.state, func.count(CardRecord.id))
            if scope is not None:
                query = query.filter(CardRecord.deck_id == scope)
            rows = query.group_by(CardRecord.state).all()

        counts = {state: 0 for state in CardState}
        for code, count in rows:
            try:
                counts[CardState(code)] = count
            except ValueError:
                raise CardIntegrityError(None, f"unknown state code {code}") from None
        return counts

    def count_due(
        self,
        now: datetime,
        scope: Optional[int] = None,
        session: Optional[Session] = None
    ) -> int:
        with self._use(session) as s:
            query = s.query(func.count(CardRecord.id)).filter(CardRecord.due <= as_utc(now))
            if scope is not None:
                query = query.filter(CardRecord.deck_id == scope)
            return int(query.scalar() or 0)


class ReviewLogStore(_SqlStore, ReviewLogRepository):
    """Review Log Store backed by the append-only flashcard_reviews table."""

    def append_log(self, entry: ReviewLogEntry, session: Optional[Session] = None) -> None:
        """
        Log a review event to the database.

        Args:
            entry: Review log entry produced by the scheduler
            session: Optional open transaction (shared with the card write)
        """
        with self._use(session) as s:
            s.add(ReviewLogRecord(
                card_id=entry.card_id,
                rating=int(entry.rating),
                reviewed_at=as_utc(entry.reviewed_at),
                scheduled_days=entry.scheduled_days,
                elapsed_days=entry.elapsed_days,
                state=int(entry.resulting_state),
                stability_before=entry.stability_before,
                difficulty_before=entry.difficulty_before,
                retrievability_before=entry.retrievability_before,
                stability_after=entry.stability_after,
                difficulty_after=entry.difficulty_after,
            ))
            s.flush()

    def list_log_dates(
        self,
        tz: tzinfo,
        scope: Optional[int] = None,
        session: Optional[Session] = None
    ) -> list[date]:
        with self._use(session) as s:
            query = s.query(ReviewLogRecord.reviewed_at)
            if scope is not None:
                query = query.join(CardRecord, CardRecord.id == ReviewLogRecord.card_id)
                query = query.filter(CardRecord.deck_id == scope)
            timestamps = [row[0] for row in query.all()]

        days = {as_utc(ts).astimezone(tz).date() for ts in timestamps}
        return sorted(days, reverse=True)

    def list_logs_in_range(
        self,
        start: datetime,
        end: datetime,
        scope: Optional[int] = None,
        session: Optional[Session] = None
    ) -> list[ReviewLogEntry]:
        with self._use(session) as s:
            query = s.query(ReviewLogRecord).filter(
                ReviewLogRecord.reviewed_at >= as_utc(start),
                ReviewLogRecord.reviewed_at < as_utc(end),
            )
            if scope is not None:
                query = query.join(CardRecord, CardRecord.id == ReviewLogRecord.card_id)
                query = query.filter(CardRecord.deck_id == scope)
            records = query.order_by(
                ReviewLogRecord.reviewed_at.asc(),
                ReviewLogRecord.id.asc(),
            ).all()
            return [_to_log_entry(record) for record in records]
