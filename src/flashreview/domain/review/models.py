"""
Domain models for the spaced-repetition review engine.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum

from flashreview.domain.errors import ValidationError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def round_percent(part: int, whole: int) -> int:
    """Percentage rounded half-up (``round`` would round 50.5 down to 50)."""
    if whole <= 0:
        return 0
    return int(part * 100 / whole + 0.5)


class ReviewMode(str, Enum):
    """
    Pedagogical context a review happened in.

    The scheduler treats all modes the same; they are kept apart so history can
    be analysed per context later.
    """

    FLASHCARD = "flashcard"  # guided learning
    QUIZ = "quiz"  # structured review
    RECALL = "recall"  # unstructured cram

    @classmethod
    def parse(cls, value: "str | ReviewMode | None") -> "ReviewMode":
        if value is None:
            return cls.FLASHCARD
        if isinstance(value, ReviewMode):
            return value
        key = value.strip().lower()
        key = _MODE_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError as e:
            raise ValidationError(f"Unknown review mode: {value!r}") from e


_MODE_ALIASES = {"learn": "flashcard", "review": "quiz", "cram": "recall"}


class ReviewEvent(str, Enum):
    """Outcome tag returned for a single submitted answer."""

    MASTERED = "mastered"
    STRUGGLED = "struggled"
    MARKED_STRUGGLING = "marked_struggling"


class MasteryLevel(str, Enum):
    NEW = "new"
    LEARNING = "learning"
    MASTERED = "mastered"


@dataclass(frozen=True)
class Flashcard:
    """Card content as served by the content catalog."""

    id: int
    question: str
    answer: str
    difficulty: str = "medium"


@dataclass(frozen=True)
class ReviewHistoryRecord:
    """
    One append-only review event.

    Attributes:
        user_id: Owning learner.
        flashcard_id: Card that was reviewed.
        review_mode: Context the review happened in.
        is_correct: Outcome of this attempt.
        review_date: When the attempt was recorded (UTC).
        next_review_date: The card is not due again before this instant.
        interval_days: Interval that produced next_review_date.
        id: Assigned by the store on save.
    """

    user_id: str
    flashcard_id: int
    review_mode: ReviewMode
    is_correct: bool
    review_date: datetime
    next_review_date: datetime
    interval_days: int
    id: int | None = None

    def with_id(self, record_id: int) -> "ReviewHistoryRecord":
        return replace(self, id=record_id)


@dataclass(frozen=True)
class StrugglingQueueEntry:
    user_id: str
    flashcard_id: int
    times_failed: int
    last_failed_at: datetime
    added_at: datetime


@dataclass(frozen=True)
class ScheduledInterval:
    """Result of the interval ladder: how long to wait and until when."""

    interval_days: int
    next_review_date: datetime


@dataclass(frozen=True)
class ReviewFlashcard:
    """
    Snapshot of a due card taken when a session starts.

    ``interval_days`` defaults to 1 and ``last_review_date`` to None for cards
    that have never been reviewed.
    """

    id: int
    question: str
    answer: str
    difficulty: str
    interval_days: int = 1
    last_review_date: datetime | None = None
    next_review_date: datetime | None = None

    @classmethod
    def from_card(
        cls, card: Flashcard, last_review: ReviewHistoryRecord | None
    ) -> "ReviewFlashcard":
        return cls(
            id=card.id,
            question=card.question,
            answer=card.answer,
            difficulty=card.difficulty,
            interval_days=last_review.interval_days if last_review else 1,
            last_review_date=last_review.review_date if last_review else None,
            next_review_date=last_review.next_review_date if last_review else None,
        )


@dataclass(frozen=True)
class ReviewResult:
    flashcard_id: int
    is_correct: bool
    review_mode: ReviewMode
    reviewed_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class SessionPosition:
    current: int
    total: int
    percent: int


@dataclass(frozen=True)
class SessionProgress:
    reviewed: int
    total: int
    percent: int


@dataclass(frozen=True)
class SessionSummary:
    total_reviewed: int
    correct_count: int
    accuracy_percent: int
