"""
Study Service - Host-facing API

Wires the scheduler, stores, due queue, review recorder and analytics
together behind four calls:

    service = StudyService.from_settings()

    due = service.get_due_cards(scope=deck_id, limit=20)
    result = service.submit_review(card_id, rating)
    stats = service.get_stats()
    heatmap = service.get_heatmap("week")

Every call returns a Result. Core failures (SrsError) are logged and
returned as Result.failure; they never propagate to the host.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional, TypeVar

from dateutil import tz

from srs_core.analytics.service import AnalyticsAggregator
from srs_core.analytics.types import CardStats, Heatmap
from srs_core.config import Settings, load_settings
from srs_core.errors import Result, SrsError
from srs_core.fsrs.database import (
    CardStore,
    ReviewLogStore,
    create_engine_from_settings,
    get_session_factory,
    init_db,
)
from srs_core.fsrs.memory_state import Card
from srs_core.fsrs.ports import CardRepository, ReviewLogRepository
from srs_core.fsrs.scheduler import Scheduler
from srs_core.logging import configure_logging, get_logger
from srs_core.queue import DueCard, DueQueueSelector
from srs_core.review import ReviewRecorder


T = TypeVar("T")

Clock = Callable[[], datetime]

logger = get_logger(__name__)


def local_now() -> datetime:
    """Current time in the machine zone, carrying its DST rules."""
    return datetime.now(tz.tzlocal())


class StudyService:
    """
    Facade over the scheduling core.

    The clock is injected so that "now" (and with it the local calendar
    day used by analytics) is controlled by the host.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        cards: CardRepository,
        logs: ReviewLogRepository,
        clock: Optional[Clock] = None
    ):
        self.scheduler = scheduler
        self.cards = cards
        self.logs = logs
        self._clock = clock or local_now

        self._queue = DueQueueSelector(cards, scheduler)
        self._recorder = ReviewRecorder(cards, logs, scheduler)
        self._analytics = AnalyticsAggregator(cards, logs)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None
    ) -> "StudyService":
        """
        Build a service from environment settings.

        Configures logging, creates the schema if needed and constructs the
        scheduler from the configured parameters.

        Raises:
            StoreUnavailable: the database could not be initialized
            ValueError: invalid settings
        """
        settings = settings or load_settings()
        configure_logging(level=settings.log_level, json_output=settings.log_json)

        engine = create_engine_from_settings(settings)
        init_db(engine)
        session_factory = get_session_factory(engine)
        zone = settings.zone()

        logger.info(
            "study_service_ready",
            database=engine.url.render_as_string(hide_password=True),
            test_mode=settings.test_mode,
            desired_retention=settings.desired_retention,
            enable_fuzz=settings.enable_fuzz,
            timezone=str(zone),
        )
        return cls(
            scheduler=Scheduler(settings.scheduler_parameters()),
            cards=CardStore(session_factory),
            logs=ReviewLogStore(session_factory),
            clock=clock or (lambda: datetime.now(zone)),
        )

    def now(self) -> datetime:
        return self._clock()

    # ---- Host API ----

    def get_due_cards(self, scope: Optional[int] = None, limit: int = 50) -> Result[list[DueCard]]:
        """
        Cards due now, ordered New, Learning, Review, Relearning, oldest due first.

        A non-positive limit comes back as an InvalidLimit failure.
        """
        now = self.now()
        return self._run(
            "get_due_cards",
            lambda: self._queue.get_due(now, scope=scope, limit=limit),
            scope=scope,
        )

    def submit_review(self, card_id: int, rating: object) -> Result[Card]:
        """Record a rating (1-4) for a card and return its updated state."""
        now = self.now()
        return self._run(
            "submit_review",
            lambda: self._recorder.submit_review(card_id, rating, now),
            card_id=card_id,
        )

    def get_stats(self, scope: Optional[int] = None) -> Result[CardStats]:
        """Card counts, due count, today's reviews and the current streak."""
        now = self.now()
        return self._run(
            "get_stats",
            lambda: self._analytics.stats(now, scope=scope),
            scope=scope,
        )

    def get_heatmap(self, timeframe: str, scope: Optional[int] = None) -> Result[Heatmap]:
        """Daily review counts for "week", "month" or "year", ending today."""
        now = self.now()
        return self._run(
            "get_heatmap",
            lambda: self._analytics.heatmap(timeframe, now, scope=scope),
            scope=scope,
            timeframe=timeframe,
        )

    # ---- Helpers ----

    def _run(self, operation: str, call: Callable[[], T], **context) -> Result[T]:
        try:
            return Result.success(call())
        except SrsError as exc:
            logger.warning(
                "operation_failed",
                operation=operation,
                code=exc.code,
                error=str(exc),
                **context,
            )
            return Result.failure(exc)
