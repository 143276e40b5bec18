"""
Request/response shapes for the review use cases.

Plain dataclasses; the HTTP layer maps them onto pydantic models.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, Literal, TypeVar

from flashreview.domain.errors import ReviewError
from flashreview.domain.review.models import (
    Flashcard,
    MasteryLevel,
    ReviewEvent,
    ReviewFlashcard,
    ReviewMode,
    SessionPosition,
    SessionProgress,
    SessionSummary,
)

T = TypeVar("T")


@dataclass(frozen=True)
class UseCaseResult(Generic[T]):
    """
    Discriminated success/failure returned by every use case.

    Exactly one of ``value`` and ``error`` is set.
    """

    value: T | None = None
    error: ReviewError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "UseCaseResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ReviewError) -> "UseCaseResult[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


@dataclass(frozen=True)
class CardView:
    id: int
    question: str
    answer: str
    difficulty: str

    @classmethod
    def of(cls, card: ReviewFlashcard | Flashcard) -> "CardView":
        return cls(
            id=card.id,
            question=card.question,
            answer=card.answer,
            difficulty=card.difficulty,
        )


@dataclass(frozen=True)
class DueCard:
    id: int
    question: str
    answer: str
    difficulty: str
    last_review_date: datetime | None
    next_review_date: datetime | None
    interval_days: int
    days_overdue: int = 0


@dataclass(frozen=True)
class DueCardsResponse:
    cards: list[DueCard]
    total_due: int


@dataclass(frozen=True)
class StartReviewSessionResponse:
    session_id: str
    mode: ReviewMode
    total_cards: int
    current_card: CardView
    progress: SessionPosition


@dataclass(frozen=True)
class SubmitReviewResponse:
    result: Literal["advanced", "completed"]
    event: ReviewEvent
    next_review_date: datetime
    interval_days: int
    progress: SessionProgress
    next_card: CardView | None = None
    session_complete: SessionSummary | None = None


@dataclass(frozen=True)
class RecordReviewResponse:
    id: int
    flashcard_id: int
    review_mode: ReviewMode
    is_correct: bool
    next_review_date: datetime
    interval_days: int
    event: ReviewEvent


@dataclass(frozen=True)
class StrugglingCard:
    id: int
    question: str
    answer: str
    difficulty: str
    times_failed: int
    last_failed_at: datetime
    added_at: datetime


@dataclass(frozen=True)
class StrugglingCardsResponse:
    cards: list[StrugglingCard]
    total: int


@dataclass(frozen=True)
class ReviewStats:
    due_count: int
    struggling_count: int
    total_reviews: int
    correct_reviews: int
    accuracy_percent: int
    reviews_today: int
    mastery: dict[MasteryLevel, int] = field(default_factory=dict)
