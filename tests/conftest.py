"""Shared test fixtures for srs_core.

This module provides pytest fixtures used across all tests: an in-memory
SQLite database, the two stores, a deterministic scheduler and a fixed
reference time.
"""

from datetime import datetime, timedelta, timezone

import pytest

from srs_core.fsrs.constants import CardState, SchedulerParameters
from srs_core.fsrs.database import (
    CardStore,
    ReviewLogStore,
    get_engine,
    get_session_factory,
    init_db,
)
from srs_core.fsrs.memory_state import Card
from srs_core.fsrs.scheduler import Scheduler


NOW = datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc)


# Database fixtures
@pytest.fixture
def engine():
    """Fresh in-memory SQLite engine with the schema created."""
    engine = get_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return get_session_factory(engine)


@pytest.fixture
def card_store(session_factory) -> CardStore:
    return CardStore(session_factory)


@pytest.fixture
def log_store(session_factory) -> ReviewLogStore:
    return ReviewLogStore(session_factory)


# Scheduler fixtures
@pytest.fixture
def scheduler() -> Scheduler:
    """Scheduler with fuzz disabled so intervals are exact."""
    return Scheduler(SchedulerParameters(enable_fuzz=False))


@pytest.fixture
def now() -> datetime:
    return NOW


# Sample data fixtures
@pytest.fixture
def make_card():
    """Build an in-memory card in any state with sensible defaults."""

    def _make(
        state: CardState = CardState.REVIEW,
        stability: float = 10.0,
        difficulty: float = 5.0,
        due: datetime = NOW,
        last_review: datetime = None,
        card_id: int = 1,
        deck_id: int = 1,
        **overrides,
    ) -> Card:
        if state == CardState.NEW:
            return Card(
                card_id=card_id,
                deck_id=deck_id,
                difficulty=0.0,
                stability=0.0,
                state=CardState.NEW,
                due=due,
                last_review=None,
                **overrides,
            )
        if last_review is None:
            last_review = due - timedelta(days=max(1, round(stability)))
        values = dict(reps=3, scheduled_days=round(stability))
        values.update(overrides)
        return Card(
            card_id=card_id,
            deck_id=deck_id,
            difficulty=difficulty,
            stability=stability,
            state=state,
            due=due,
            last_review=last_review,
            **values,
        )

    return _make
