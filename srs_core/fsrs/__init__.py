"""
FSRS - Free Spaced Repetition Scheduler

Scheduling core for the study engine.

This package implements the FSRS-5 memory model with:
- Stability / Difficulty updates per rating
- Learning and relearning steps in minutes, review intervals in days
- Seeded interval fuzz (reproducible for identical inputs)
- Exponential retrievability past the due date: R = exp(-t/S)

Quick start:
    from srs_core import fsrs

    scheduler = fsrs.Scheduler()
    result = scheduler.schedule(card, fsrs.Rating.GOOD, now)

    engine = fsrs.get_engine("sqlite://")
    fsrs.init_db(engine)
    cards = fsrs.CardStore(fsrs.get_session_factory(engine))
"""

# Core scheduler API (algorithm logic)
from srs_core.fsrs.scheduler import (
    Scheduler,
    SchedulingPreview,
    SchedulingResult,
    parse_rating,
)

# Database API
from srs_core.fsrs.database import (
    CardStore,
    ReviewLogStore,
    create_engine_from_settings,
    get_engine,
    get_session_factory,
    init_db,
    session_scope,
)

# Store contracts
from srs_core.fsrs.ports import CardRepository, ReviewLogRepository

# Constants and parameters
from srs_core.fsrs.constants import (
    CardState,
    Rating,
    SchedulerParameters,
    DEFAULT_WEIGHTS,
    S_MIN,
    D_MIN,
    D_MAX,
)

# Memory state
from srs_core.fsrs.memory_state import (
    Card,
    ReviewLogEntry,
    calculate_retrievability,
    initialize_new_card,
)

from srs_core.fsrs.intervals import format_interval


__all__ = [
    # Core algorithm
    "Scheduler",
    "SchedulingPreview",
    "SchedulingResult",
    "parse_rating",

    # Database operations
    "CardStore",
    "ReviewLogStore",
    "create_engine_from_settings",
    "get_engine",
    "get_session_factory",
    "init_db",
    "session_scope",
    "CardRepository",
    "ReviewLogRepository",

    # Constants
    "CardState",
    "Rating",
    "SchedulerParameters",
    "DEFAULT_WEIGHTS",
    "S_MIN",
    "D_MIN",
    "D_MAX",

    # Memory state
    "Card",
    "ReviewLogEntry",
    "calculate_retrievability",
    "initialize_new_card",
    "format_interval",
]
