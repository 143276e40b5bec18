"""
Review session aggregate.

A session snapshots a batch of due cards when it starts and walks them strictly
forward. States: active (a card remains at ``current_index``) and completed
(the cursor moved past the last card).
"""

from dataclasses import dataclass, field
from datetime import datetime

from flashreview.domain.errors import BusinessRuleError, NotFoundError, no_due_cards

from .models import (
    ReviewFlashcard,
    ReviewMode,
    ReviewResult,
    SessionPosition,
    SessionProgress,
    SessionSummary,
    round_percent,
    utcnow,
)


@dataclass
class ReviewSession:
    session_id: str
    user_id: str
    mode: ReviewMode
    cards: tuple[ReviewFlashcard, ...]
    started_at: datetime = field(default_factory=utcnow)
    current_index: int = 0
    results: list[ReviewResult] = field(default_factory=list)
    last_activity_at: datetime = field(default_factory=utcnow)

    @classmethod
    def start(
        cls,
        session_id: str,
        user_id: str,
        cards: list[ReviewFlashcard],
        mode: ReviewMode = ReviewMode.FLASHCARD,
        now: datetime | None = None,
    ) -> "ReviewSession":
        if not cards:
            raise no_due_cards()
        now = now or utcnow()
        return cls(
            session_id=session_id,
            user_id=user_id,
            mode=mode,
            cards=tuple(cards),
            started_at=now,
            last_activity_at=now,
        )

    @property
    def total(self) -> int:
        return len(self.cards)

    @property
    def reviewed_count(self) -> int:
        return len(self.results)

    @property
    def correct_count(self) -> int:
        return sum(1 for r in self.results if r.is_correct)

    @property
    def accuracy_percent(self) -> int:
        return round_percent(self.correct_count, self.reviewed_count)

    def is_complete(self) -> bool:
        return self.current_index >= self.total

    def current_card(self) -> ReviewFlashcard:
        if self.is_complete():
            raise BusinessRuleError("Review session already complete", "SESSION_COMPLETE")
        return self.cards[self.current_index]

    def ensure_current(self, flashcard_id: int) -> ReviewFlashcard:
        """Return the current card, failing unless it is ``flashcard_id``."""
        card = self.current_card()
        if card.id != flashcard_id:
            raise NotFoundError(
                f"Flashcard {flashcard_id} is not the current card of session "
                f"{self.session_id}",
                "CARD_NOT_IN_SESSION",
            )
        return card

    def record_answer(
        self, flashcard_id: int, is_correct: bool, now: datetime | None = None
    ) -> ReviewResult:
        """
        Record the answer for the current card and advance the cursor.

        Raises:
            BusinessRuleError: the session is already complete.
            NotFoundError: ``flashcard_id`` is not the card being shown.
        """
        card = self.ensure_current(flashcard_id)
        now = now or utcnow()
        result = ReviewResult(card.id, is_correct, self.mode, now)
        self.results.append(result)
        self.current_index += 1
        self.last_activity_at = now
        return result

    def start_progress(self) -> SessionPosition:
        """Progress as shown alongside the first card."""
        return SessionPosition(current=1, total=self.total, percent=round_percent(1, self.total))

    def progress(self) -> SessionProgress:
        return SessionProgress(
            reviewed=self.reviewed_count,
            total=self.total,
            percent=round_percent(self.reviewed_count, self.total),
        )

    def summary(self) -> SessionSummary:
        return SessionSummary(
            total_reviewed=self.reviewed_count,
            correct_count=self.correct_count,
            accuracy_percent=self.accuracy_percent,
        )
