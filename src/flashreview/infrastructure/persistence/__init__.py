# Infrastructure Persistence Package
from .database import Database
from .flashcards import SqlFlashcardRepository
from .review_history import SqlReviewHistoryRepository
from .struggling_queue import SqlStrugglingQueueRepository

__all__ = [
    "Database",
    "SqlFlashcardRepository",
    "SqlReviewHistoryRepository",
    "SqlStrugglingQueueRepository",
]
