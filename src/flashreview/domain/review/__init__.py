# Domain Review Package
from .models import (
    Flashcard,
    MasteryLevel,
    ReviewEvent,
    ReviewFlashcard,
    ReviewHistoryRecord,
    ReviewMode,
    ReviewResult,
    ScheduledInterval,
    SessionPosition,
    SessionProgress,
    SessionSummary,
    StrugglingQueueEntry,
)
from .ports import (
    FlashcardRepository,
    ReviewHistoryRepository,
    SessionRepository,
    StrugglingQueueRepository,
)
from .session import ReviewSession

__all__ = [
    "Flashcard",
    "MasteryLevel",
    "ReviewEvent",
    "ReviewFlashcard",
    "ReviewHistoryRecord",
    "ReviewMode",
    "ReviewResult",
    "ScheduledInterval",
    "SessionPosition",
    "SessionProgress",
    "SessionSummary",
    "StrugglingQueueEntry",
    "FlashcardRepository",
    "ReviewHistoryRepository",
    "SessionRepository",
    "StrugglingQueueRepository",
    "ReviewSession",
]
