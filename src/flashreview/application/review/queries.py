"""
Read-side queries for dashboards and admin tooling: struggling cards, review
history, aggregate review stats.
"""

import logging
from collections import Counter
from datetime import datetime

from flashreview.domain.errors import ReviewError
from flashreview.domain.review.models import MasteryLevel, ReviewHistoryRecord, round_percent, utcnow
from flashreview.domain.review.ports import FlashcardRepository, ReviewHistoryRepository

from .dtos import ReviewStats, StrugglingCard, StrugglingCardsResponse, UseCaseResult
from .scheduling import SpacedRepetitionService, start_of_day
from .struggling import StrugglingQueueService
from .validation import check_limit, require_flashcard_id, require_user_id

logger = logging.getLogger(__name__)


class GetStrugglingCards:
    """Struggling cards with content, most-failed and most-recently-failed first."""

    def __init__(self, struggling: StrugglingQueueService, flashcard_repo: FlashcardRepository):
        self._struggling = struggling
        self._cards = flashcard_repo

    async def execute(
        self, user_id: str, limit: int | None = None
    ) -> UseCaseResult[StrugglingCardsResponse]:
        try:
            user_id = require_user_id(user_id)
            limit = check_limit(limit)
        except ReviewError as e:
            return UseCaseResult.failure(e)

        entries = await self._struggling.list_struggling(user_id, limit)
        total = await self._struggling.count_struggling(user_id)
        contents = await self._cards.find_many([e.flashcard_id for e in entries])

        cards = []
        for entry in entries:
            card = contents.get(entry.flashcard_id)
            if card is None:
                logger.warning(f"Skipping struggling card {entry.flashcard_id}: content not found")
                continue
            cards.append(
                StrugglingCard(
                    id=card.id,
                    question=card.question,
                    answer=card.answer,
                    difficulty=card.difficulty,
                    times_failed=entry.times_failed,
                    last_failed_at=entry.last_failed_at,
                    added_at=entry.added_at,
                )
            )

        return UseCaseResult.success(StrugglingCardsResponse(cards=cards, total=total))


class GetReviewHistory:
    def __init__(self, history_repo: ReviewHistoryRepository):
        self._history = history_repo

    async def execute(
        self, user_id: str, flashcard_id: int
    ) -> UseCaseResult[list[ReviewHistoryRecord]]:
        try:
            user_id = require_user_id(user_id)
            flashcard_id = require_flashcard_id(flashcard_id)
        except ReviewError as e:
            return UseCaseResult.failure(e)
        return UseCaseResult.success(
            await self._history.find_by_user_and_flashcard(user_id, flashcard_id)
        )


class ReviewStatsService:
    """
    Aggregate counts consumed by the stats dashboard.

    Mastery is computed from the latest record of every card the learner has
    reviewed, so only ``learning`` and ``mastered`` are reported.
    """

    def __init__(
        self,
        history_repo: ReviewHistoryRepository,
        struggling: StrugglingQueueService,
        scheduler: SpacedRepetitionService | None = None,
    ):
        self._history = history_repo
        self._struggling = struggling
        self._scheduler = scheduler or SpacedRepetitionService()

    async def execute(
        self, user_id: str, now: datetime | None = None
    ) -> UseCaseResult[ReviewStats]:
        try:
            user_id = require_user_id(user_id)
        except ReviewError as e:
            return UseCaseResult.failure(e)

        now = now or utcnow()
        due_count = await self._history.count_due_flashcards(user_id, now)
        struggling_count = await self._struggling.count_struggling(user_id)
        records = await self._history.find_by_user(user_id)

        correct = sum(1 for r in records if r.is_correct)
        today = start_of_day(now)
        reviews_today = sum(1 for r in records if r.review_date >= today)

        # records are newest first, so the first one seen per card is its latest
        latest: dict[int, ReviewHistoryRecord] = {}
        for record in records:
            latest.setdefault(record.flashcard_id, record)
        mastery = Counter(self._scheduler.mastery_level(r) for r in latest.values())

        return UseCaseResult.success(
            ReviewStats(
                due_count=due_count,
                struggling_count=struggling_count,
                total_reviews=len(records),
                correct_reviews=correct,
                accuracy_percent=round_percent(correct, len(records)),
                reviews_today=reviews_today,
                mastery={
                    MasteryLevel.LEARNING: mastery[MasteryLevel.LEARNING],
                    MasteryLevel.MASTERED: mastery[MasteryLevel.MASTERED],
                },
            )
        )
