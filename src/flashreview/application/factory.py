"""
Review Engine Factory
Centralizes wiring of repositories and use cases from an AppConfig.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from flashreview.application.config import AppConfig
from flashreview.application.review import (
    DueCardSelector,
    GetReviewHistory,
    GetStrugglingCards,
    RecordReview,
    ReviewRecorder,
    ReviewStatsService,
    SpacedRepetitionService,
    StartReviewSession,
    StrugglingPolicy,
    StrugglingQueueService,
    SubmitReview,
)
from flashreview.domain.review.models import utcnow
from flashreview.domain.review.ports import SessionRepository
from flashreview.infrastructure.persistence import (
    Database,
    SqlFlashcardRepository,
    SqlReviewHistoryRepository,
    SqlStrugglingQueueRepository,
)
from flashreview.infrastructure.sessions import InMemorySessionRepository


@dataclass
class ReviewEngine:
    """Everything the outer layers need, built once per process."""

    database: Database
    flashcards: SqlFlashcardRepository
    history: SqlReviewHistoryRepository
    struggling_queue: SqlStrugglingQueueRepository
    sessions: SessionRepository
    get_due_cards: DueCardSelector
    start_session: StartReviewSession
    submit_review: SubmitReview
    record_review: RecordReview
    get_struggling_cards: GetStrugglingCards
    get_review_history: GetReviewHistory
    get_stats: ReviewStatsService

    async def close(self) -> None:
        await self.database.dispose()


def struggling_policy(config: AppConfig) -> StrugglingPolicy:
    return StrugglingPolicy(
        consecutive_failures=config.struggling_consecutive_failures,
        min_attempts=config.struggling_min_attempts,
        failure_ratio=config.struggling_failure_ratio,
        recovery_streak=config.struggling_recovery_streak,
    )


async def build_engine(
    config: AppConfig,
    create_schema: bool = True,
    clock: Callable[[], datetime] = utcnow,
) -> ReviewEngine:
    """
    Returns a fully wired ReviewEngine for the configured database.

    ``clock`` drives session idleness only; review timestamps come from the
    use cases.
    """
    database = Database(config.database_url, echo=config.database_echo)
    if create_schema:
        await database.create_all()

    flashcards = SqlFlashcardRepository(database.session_factory)
    history = SqlReviewHistoryRepository(database.session_factory)
    queue = SqlStrugglingQueueRepository(database.session_factory)
    sessions = InMemorySessionRepository(ttl_seconds=config.session_ttl_seconds, clock=clock)

    scheduler = SpacedRepetitionService()
    struggling = StrugglingQueueService(queue, struggling_policy(config))
    selector = DueCardSelector(history, flashcards, scheduler)
    recorder = ReviewRecorder(history, flashcards, struggling, scheduler)

    return ReviewEngine(
        database=database,
        flashcards=flashcards,
        history=history,
        struggling_queue=queue,
        sessions=sessions,
        get_due_cards=selector,
        start_session=StartReviewSession(selector, sessions, config.default_session_limit),
        submit_review=SubmitReview(recorder, sessions),
        record_review=RecordReview(recorder),
        get_struggling_cards=GetStrugglingCards(struggling, flashcards),
        get_review_history=GetReviewHistory(history),
        get_stats=ReviewStatsService(history, struggling, scheduler),
    )
