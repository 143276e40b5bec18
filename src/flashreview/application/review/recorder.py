"""
Recording a single answer: schedule, persist, update the struggling queue.

Shared by SubmitReview (inside a session) and RecordReview (stand-alone).
"""

import logging
from datetime import datetime

from flashreview.domain.errors import ReviewError, flashcard_not_found
from flashreview.domain.review.models import (
    ReviewEvent,
    ReviewHistoryRecord,
    ReviewMode,
    utcnow,
)
from flashreview.domain.review.ports import FlashcardRepository, ReviewHistoryRepository

from .dtos import RecordReviewResponse, UseCaseResult
from .scheduling import SpacedRepetitionService
from .struggling import StrugglingQueueService
from .validation import require_flashcard_id, require_user_id

logger = logging.getLogger(__name__)


class ReviewRecorder:
    def __init__(
        self,
        history_repo: ReviewHistoryRepository,
        flashcard_repo: FlashcardRepository,
        struggling: StrugglingQueueService,
        scheduler: SpacedRepetitionService | None = None,
    ):
        self._history = history_repo
        self._cards = flashcard_repo
        self._struggling = struggling
        self._scheduler = scheduler or SpacedRepetitionService()

    async def record(
        self,
        user_id: str,
        flashcard_id: int,
        is_correct: bool,
        mode: ReviewMode = ReviewMode.FLASHCARD,
        now: datetime | None = None,
    ) -> tuple[ReviewHistoryRecord, ReviewEvent]:
        """
        Persist one review and return the saved record with its event tag.

        Raises:
            NotFoundError: the flashcard does not exist.
        """
        now = now or utcnow()

        if await self._cards.find_by_id(flashcard_id) is None:
            raise flashcard_not_found(flashcard_id)

        history = await self._history.find_by_user_and_flashcard(user_id, flashcard_id)
        scheduled = self._scheduler.calculate_next_interval(history, is_correct, now)

        saved = await self._history.save(
            ReviewHistoryRecord(
                user_id=user_id,
                flashcard_id=flashcard_id,
                review_mode=mode,
                is_correct=is_correct,
                review_date=now,
                next_review_date=scheduled.next_review_date,
                interval_days=scheduled.interval_days,
            )
        )

        event = await self._struggling.apply_outcome(
            user_id, flashcard_id, history, is_correct, now
        )
        logger.debug(
            f"Recorded review user={user_id} card={flashcard_id} correct={is_correct} "
            f"interval={scheduled.interval_days}d event={event.value}"
        )
        return saved, event


class RecordReview:
    """Stand-alone review outside any session (lesson flows, quick checks)."""

    def __init__(self, recorder: ReviewRecorder):
        self._recorder = recorder

    async def execute(
        self,
        user_id: str,
        flashcard_id: int,
        is_correct: bool,
        mode: str | ReviewMode | None = None,
        now: datetime | None = None,
    ) -> UseCaseResult[RecordReviewResponse]:
        try:
            user_id = require_user_id(user_id)
            flashcard_id = require_flashcard_id(flashcard_id)
            review_mode = ReviewMode.parse(mode)
            saved, event = await self._recorder.record(
                user_id, flashcard_id, bool(is_correct), review_mode, now
            )
        except ReviewError as e:
            return UseCaseResult.failure(e)

        return UseCaseResult.success(
            RecordReviewResponse(
                id=saved.id,
                flashcard_id=saved.flashcard_id,
                review_mode=saved.review_mode,
                is_correct=saved.is_correct,
                next_review_date=saved.next_review_date,
                interval_days=saved.interval_days,
                event=event,
            )
        )
