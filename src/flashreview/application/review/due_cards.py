"""
Due-card selection.

Asks the history store which cards are due, resolves their content, and joins
in the learner's last review for each.
"""

import logging
from datetime import datetime

from flashreview.domain.errors import ReviewError
from flashreview.domain.review.models import ReviewFlashcard
from flashreview.domain.review.ports import FlashcardRepository, ReviewHistoryRepository

from .dtos import DueCard, DueCardsResponse, UseCaseResult
from .scheduling import SpacedRepetitionService
from .validation import check_limit, require_user_id

logger = logging.getLogger(__name__)


class DueCardSelector:
    """
    Builds display-ready due cards for a learner.

    Cards whose content lookup fails (e.g. the card was deleted) are skipped;
    one missing card never fails the whole batch.
    """

    def __init__(
        self,
        history_repo: ReviewHistoryRepository,
        flashcard_repo: FlashcardRepository,
        scheduler: SpacedRepetitionService | None = None,
    ):
        self._history = history_repo
        self._cards = flashcard_repo
        self._scheduler = scheduler or SpacedRepetitionService()

    async def load_snapshot(
        self,
        user_id: str,
        limit: int | None = None,
        now: datetime | None = None,
    ) -> list[ReviewFlashcard]:
        """Due cards with content and last-known interval, most overdue first."""
        due_ids = await self._history.find_due_flashcards(user_id, limit, now)
        if not due_ids:
            return []

        contents = await self._cards.find_many(due_ids)
        snapshot: list[ReviewFlashcard] = []

        for flashcard_id in due_ids:
            card = contents.get(flashcard_id)
            if card is None:
                logger.warning(f"Skipping due card {flashcard_id}: content not found")
                continue

            last_review = await self._history.find_last_review(user_id, flashcard_id)
            snapshot.append(ReviewFlashcard.from_card(card, last_review))

        return snapshot

    async def execute(
        self,
        user_id: str,
        limit: int | None = None,
        now: datetime | None = None,
    ) -> UseCaseResult[DueCardsResponse]:
        try:
            user_id = require_user_id(user_id)
            limit = check_limit(limit)
        except ReviewError as e:
            return UseCaseResult.failure(e)

        snapshot = await self.load_snapshot(user_id, limit, now)
        total_due = await self._history.count_due_flashcards(user_id, now)

        cards = [
            DueCard(
                id=card.id,
                question=card.question,
                answer=card.answer,
                difficulty=card.difficulty,
                last_review_date=card.last_review_date,
                next_review_date=card.next_review_date,
                interval_days=card.interval_days,
                days_overdue=self._days_overdue(card, now),
            )
            for card in snapshot
        ]
        return UseCaseResult.success(DueCardsResponse(cards=cards, total_due=total_due))

    def _days_overdue(self, card: ReviewFlashcard, now: datetime | None) -> int:
        if card.last_review_date is None:
            return 0
        if not self._scheduler.is_due_for_review(card.last_review_date, card.interval_days, now):
            return 0
        return -self._scheduler.days_until_next_review(
            card.last_review_date, card.interval_days, now
        )
