"""
Struggling queue: cards a learner keeps failing.

Cards are promoted into the queue when the failure policy triggers and demoted
out of it once the learner answers correctly often enough in a row.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from flashreview.domain.constants import (
    STRUGGLING_CONSECUTIVE_FAILURES,
    STRUGGLING_FAILURE_RATIO,
    STRUGGLING_MIN_ATTEMPTS,
    STRUGGLING_RECOVERY_STREAK,
)
from flashreview.domain.review.models import (
    ReviewEvent,
    ReviewHistoryRecord,
    StrugglingQueueEntry,
    utcnow,
)
from flashreview.domain.review.ports import StrugglingQueueRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StrugglingPolicy:
    """
    Thresholds for promoting a card into (and out of) the struggling queue.

    A failing card is struggling if either:
    - it has failed ``consecutive_failures`` times in a row, OR
    - it has at least ``min_attempts`` attempts and the failure streak makes up
      more than ``failure_ratio`` of them.

    It recovers after ``recovery_streak`` consecutive correct answers.
    """

    consecutive_failures: int = STRUGGLING_CONSECUTIVE_FAILURES
    min_attempts: int = STRUGGLING_MIN_ATTEMPTS
    failure_ratio: float = STRUGGLING_FAILURE_RATIO
    recovery_streak: int = STRUGGLING_RECOVERY_STREAK

    def __post_init__(self):
        if self.consecutive_failures < 1 or self.min_attempts < 1 or self.recovery_streak < 1:
            raise ValueError("Struggling thresholds must be positive")
        if not 0.0 <= self.failure_ratio < 1.0:
            raise ValueError("failure_ratio must be in [0, 1)")

    def should_mark_as_struggling(self, failure_count: int, total_attempts: int) -> bool:
        if failure_count >= self.consecutive_failures:
            return True

        if total_attempts >= self.min_attempts:
            return failure_count / total_attempts > self.failure_ratio

        return False

    def has_recovered(self, correct_streak: int) -> bool:
        return correct_streak >= self.recovery_streak


def count_streak(history: Sequence[ReviewHistoryRecord], is_correct: bool) -> int:
    """Length of the run of ``is_correct`` outcomes at the head of a newest-first history."""
    count = 0
    for record in history:
        if record.is_correct != is_correct:
            break
        count += 1
    return count


class StrugglingQueueService:
    """
    Application service that applies the StrugglingPolicy to a new outcome.

    Depends on the StrugglingQueueRepository port only.
    """

    def __init__(
        self,
        queue_repo: StrugglingQueueRepository,
        policy: StrugglingPolicy | None = None,
    ):
        self._repo = queue_repo
        self._policy = policy or StrugglingPolicy()

    @property
    def policy(self) -> StrugglingPolicy:
        return self._policy

    async def apply_outcome(
        self,
        user_id: str,
        flashcard_id: int,
        prior_history: Sequence[ReviewHistoryRecord],
        is_correct: bool,
        now: datetime | None = None,
    ) -> ReviewEvent:
        """
        Update the queue for one answer and return the event tag for it.

        Args:
            prior_history: Records before this attempt, newest first.
        """
        now = now or utcnow()

        if is_correct:
            streak = count_streak(prior_history, True) + 1
            if self._policy.has_recovered(streak):
                if await self._repo.remove(user_id, flashcard_id):
                    logger.info(
                        f"Card {flashcard_id} recovered for user {user_id} "
                        f"after {streak} correct answer(s)"
                    )
            return ReviewEvent.MASTERED

        failures = count_streak(prior_history, False) + 1
        attempts = len(prior_history) + 1
        if not self._policy.should_mark_as_struggling(failures, attempts):
            return ReviewEvent.STRUGGLED

        entry = await self._repo.record_failure(user_id, flashcard_id, now)
        logger.info(
            f"Card {flashcard_id} marked struggling for user {user_id} "
            f"(streak={failures}, times_failed={entry.times_failed})"
        )
        return ReviewEvent.MARKED_STRUGGLING

    async def list_struggling(
        self, user_id: str, limit: int | None = None
    ) -> list[StrugglingQueueEntry]:
        return await self._repo.list_for_user(user_id, limit)

    async def count_struggling(self, user_id: str) -> int:
        return await self._repo.count_for_user(user_id)
