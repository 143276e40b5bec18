"""
Session orchestration: start a review session, submit answers to it.

Wires the DueCardSelector, ReviewRecorder and SessionRepository together.
"""

import logging
from datetime import datetime

from ulid import ULID

from flashreview.domain.constants import SESSION_ID_PREFIX
from flashreview.domain.errors import (
    NotFoundError,
    ReviewError,
    no_due_cards,
    session_not_found,
)
from flashreview.domain.review.models import ReviewMode, utcnow
from flashreview.domain.review.ports import SessionRepository
from flashreview.domain.review.session import ReviewSession

from .due_cards import DueCardSelector
from .dtos import (
    CardView,
    StartReviewSessionResponse,
    SubmitReviewResponse,
    UseCaseResult,
)
from .recorder import ReviewRecorder
from .validation import (
    check_limit,
    require_flashcard_id,
    require_session_id,
    require_user_id,
)

logger = logging.getLogger(__name__)


def generate_session_id(user_id: str) -> str:
    return f"{SESSION_ID_PREFIX}-{user_id}-{ULID()}"


class StartReviewSession:
    def __init__(
        self,
        selector: DueCardSelector,
        sessions: SessionRepository,
        default_limit: int | None = None,
    ):
        self._selector = selector
        self._sessions = sessions
        self._default_limit = default_limit

    async def execute(
        self,
        user_id: str,
        mode: str | ReviewMode | None = None,
        limit: int | None = None,
        now: datetime | None = None,
    ) -> UseCaseResult[StartReviewSessionResponse]:
        """
        Snapshot the learner's due cards into a new session.

        Fails with NO_DUE_CARDS when nothing is due.
        """
        now = now or utcnow()
        try:
            user_id = require_user_id(user_id)
            review_mode = ReviewMode.parse(mode)
            limit = check_limit(limit) or self._default_limit

            cards = await self._selector.load_snapshot(user_id, limit, now)
            if not cards:
                raise no_due_cards()

            session = ReviewSession.start(
                generate_session_id(user_id), user_id, cards, review_mode, now
            )
        except ReviewError as e:
            return UseCaseResult.failure(e)

        await self._sessions.save(session)
        logger.info(
            f"Started {review_mode.value} session {session.session_id} "
            f"with {session.total} card(s)"
        )

        return UseCaseResult.success(
            StartReviewSessionResponse(
                session_id=session.session_id,
                mode=session.mode,
                total_cards=session.total,
                current_card=CardView.of(session.current_card()),
                progress=session.start_progress(),
            )
        )


class SubmitReview:
    def __init__(self, recorder: ReviewRecorder, sessions: SessionRepository):
        self._recorder = recorder
        self._sessions = sessions

    async def execute(
        self,
        user_id: str,
        session_id: str,
        flashcard_id: int,
        is_correct: bool,
        now: datetime | None = None,
    ) -> UseCaseResult[SubmitReviewResponse]:
        try:
            user_id = require_user_id(user_id)
            session_id = require_session_id(session_id)
            flashcard_id = require_flashcard_id(flashcard_id)
        except ReviewError as e:
            return UseCaseResult.failure(e)

        async with self._sessions.lock(user_id, session_id):
            try:
                return UseCaseResult.success(
                    await self._submit(user_id, session_id, flashcard_id, bool(is_correct), now)
                )
            except ReviewError as e:
                return UseCaseResult.failure(e)

    async def _submit(
        self,
        user_id: str,
        session_id: str,
        flashcard_id: int,
        is_correct: bool,
        now: datetime | None,
    ) -> SubmitReviewResponse:
        now = now or utcnow()

        session = await self._sessions.get(user_id, session_id)
        if session is None:
            # releases the lock handed out for this id
            await self._sessions.discard(user_id, session_id)
            raise session_not_found(session_id)

        # Mismatch and completion are checked before anything is written.
        session.ensure_current(flashcard_id)

        try:
            saved, event = await self._recorder.record(
                user_id, flashcard_id, is_correct, session.mode, now
            )
        except NotFoundError as e:
            if e.code == "FLASHCARD_NOT_FOUND":
                # the snapshot can no longer advance past this card
                logger.warning(
                    f"Card {flashcard_id} vanished during session {session_id}; "
                    f"discarding the session"
                )
                await self._sessions.discard(user_id, session_id)
            raise

        session.record_answer(flashcard_id, is_correct, now)

        if session.is_complete():
            await self._sessions.discard(user_id, session_id)
            summary = session.summary()
            logger.info(
                f"Completed session {session_id}: {summary.correct_count}/"
                f"{summary.total_reviewed} correct"
            )
            return SubmitReviewResponse(
                result="completed",
                event=event,
                next_review_date=saved.next_review_date,
                interval_days=saved.interval_days,
                progress=session.progress(),
                session_complete=summary,
            )

        await self._sessions.save(session)
        return SubmitReviewResponse(
            result="advanced",
            event=event,
            next_review_date=saved.next_review_date,
            interval_days=saved.interval_days,
            progress=session.progress(),
            next_card=CardView.of(session.current_card()),
        )
