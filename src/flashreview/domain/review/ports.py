"""
Ports (interfaces) for the review engine.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime

from .models import Flashcard, ReviewHistoryRecord, StrugglingQueueEntry
from .session import ReviewSession


class ReviewHistoryRepository(ABC):
    """
    Port for the append-only review history.

    Implementations:
        - SqlReviewHistoryRepository: SQLAlchemy (async) over SQLite.
    """

    @abstractmethod
    async def find_by_id(self, record_id: int) -> ReviewHistoryRecord | None:
        pass

    @abstractmethod
    async def find_last_review(
        self, user_id: str, flashcard_id: int
    ) -> ReviewHistoryRecord | None:
        """Return the chronologically latest record for (user, card), if any."""
        pass

    @abstractmethod
    async def find_by_user(self, user_id: str) -> list[ReviewHistoryRecord]:
        pass

    @abstractmethod
    async def find_by_user_and_flashcard(
        self, user_id: str, flashcard_id: int
    ) -> list[ReviewHistoryRecord]:
        """
        Fetch every record for (user, card).

        Returns:
            Records sorted newest first.
        """
        pass

    @abstractmethod
    async def find_due_flashcards(
        self, user_id: str, limit: int | None = None, now: datetime | None = None
    ) -> list[int]:
        """
        Fetch the ids of cards due for the learner.

        A card is due when its most recent record has ``next_review_date <= now``
        or when it has no record at all. Reviewed cards come first, most overdue
        first; never-reviewed cards follow in id order.
        """
        pass

    @abstractmethod
    async def count_due_flashcards(self, user_id: str, now: datetime | None = None) -> int:
        pass

    @abstractmethod
    async def save(self, record: ReviewHistoryRecord) -> ReviewHistoryRecord:
        """Persist a new record and return it with its assigned id."""
        pass

    @abstractmethod
    async def delete(self, record_id: int) -> None:
        pass

    @abstractmethod
    async def delete_by_user(self, user_id: str) -> int:
        pass

    @abstractmethod
    async def delete_by_flashcard(self, flashcard_id: int) -> int:
        pass


class StrugglingQueueRepository(ABC):
    """Port for the per-learner struggling queue, keyed by (user, card)."""

    @abstractmethod
    async def find(self, user_id: str, flashcard_id: int) -> StrugglingQueueEntry | None:
        pass

    @abstractmethod
    async def record_failure(
        self, user_id: str, flashcard_id: int, failed_at: datetime
    ) -> StrugglingQueueEntry:
        """
        Upsert an entry: increment ``times_failed`` and refresh ``last_failed_at``
        when it exists, otherwise create it with ``times_failed = 1``.

        The increment must not lose updates under concurrent calls.
        """
        pass

    @abstractmethod
    async def remove(self, user_id: str, flashcard_id: int) -> bool:
        """Delete the entry. Returns True if one existed."""
        pass

    @abstractmethod
    async def list_for_user(
        self, user_id: str, limit: int | None = None
    ) -> list[StrugglingQueueEntry]:
        """Entries ordered by times_failed DESC, then last_failed_at DESC."""
        pass

    @abstractmethod
    async def count_for_user(self, user_id: str) -> int:
        pass

    @abstractmethod
    async def delete_by_user(self, user_id: str) -> int:
        pass

    @abstractmethod
    async def delete_by_flashcard(self, flashcard_id: int) -> int:
        pass


class FlashcardRepository(ABC):
    """Port onto the content catalog. The engine only reads from it."""

    @abstractmethod
    async def find_by_id(self, flashcard_id: int) -> Flashcard | None:
        pass

    @abstractmethod
    async def find_many(self, flashcard_ids: list[int]) -> dict[int, Flashcard]:
        pass


class SessionRepository(ABC):
    """
    Port for live review sessions.

    Sessions are owned by a single learner; ``lock`` serializes submissions
    against one session.
    """

    @abstractmethod
    async def save(self, session: ReviewSession) -> None:
        pass

    @abstractmethod
    async def get(self, user_id: str, session_id: str) -> ReviewSession | None:
        pass

    @abstractmethod
    async def discard(self, user_id: str, session_id: str) -> None:
        pass

    @abstractmethod
    def lock(self, user_id: str, session_id: str) -> asyncio.Lock:
        pass
