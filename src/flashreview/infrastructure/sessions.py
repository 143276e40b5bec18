"""
In-memory session repository.

Sessions live only as long as the process. Each learner has at most one active
session; idle sessions are evicted lazily after ``ttl_seconds``.

Idleness is measured on the repository's own clock, stamped on every ``save``,
so callers replaying reviews at an explicit ``now`` cannot age a session out.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from flashreview.domain.constants import SESSION_TTL_SECONDS
from flashreview.domain.review.models import utcnow
from flashreview.domain.review.ports import SessionRepository
from flashreview.domain.review.session import ReviewSession

logger = logging.getLogger(__name__)

SessionKey = tuple[str, str]


class InMemorySessionRepository(SessionRepository):
    def __init__(
        self,
        ttl_seconds: int = SESSION_TTL_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._sessions: dict[SessionKey, ReviewSession] = {}
        self._touched: dict[SessionKey, datetime] = {}
        self._locks: dict[SessionKey, asyncio.Lock] = {}

    async def save(self, session: ReviewSession) -> None:
        self._evict_expired()
        key = (session.user_id, session.session_id)

        # A new session replaces whatever the learner had open
        for other in [k for k in self._sessions if k[0] == session.user_id and k != key]:
            logger.info(f"Replacing review session {other[1]} for user {other[0]}")
            self._drop(other)

        self._sessions[key] = session
        self._touched[key] = self._clock()

    async def get(self, user_id: str, session_id: str) -> ReviewSession | None:
        self._evict_expired()
        return self._sessions.get((user_id, session_id))

    async def discard(self, user_id: str, session_id: str) -> None:
        self._drop((user_id, session_id))

    def lock(self, user_id: str, session_id: str) -> asyncio.Lock:
        return self._locks.setdefault((user_id, session_id), asyncio.Lock())

    def __len__(self) -> int:
        return len(self._sessions)

    @property
    def lock_count(self) -> int:
        return len(self._locks)

    def _evict_expired(self) -> None:
        cutoff = self._clock() - self._ttl
        for key, touched in list(self._touched.items()):
            if touched < cutoff:
                logger.warning(f"Evicting idle review session {key[1]} for user {key[0]}")
                self._drop(key)

        # Locks handed out for ids that never matched a session
        for key, lock in list(self._locks.items()):
            if key not in self._sessions and not lock.locked():
                del self._locks[key]

    def _drop(self, key: SessionKey) -> None:
        self._sessions.pop(key, None)
        self._touched.pop(key, None)
        self._locks.pop(key, None)
