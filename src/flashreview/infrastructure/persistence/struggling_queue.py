"""
SQL Struggling Queue Repository - Infrastructure adapter over SQLAlchemy (async).

One row per (user, card). The failure counter is bumped with a single atomic
UPDATE so concurrent evaluations of the same card never lose an increment.
"""

import logging
from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError

from flashreview.domain.review.models import StrugglingQueueEntry
from flashreview.domain.review.ports import StrugglingQueueRepository

from .database import StrugglingQueueRow, from_db_time, to_db_time

logger = logging.getLogger(__name__)


class SqlStrugglingQueueRepository(StrugglingQueueRepository):
    def __init__(self, session_factory):
        self._session_factory = session_factory

    async def find(self, user_id: str, flashcard_id: int) -> StrugglingQueueEntry | None:
        stmt = select(StrugglingQueueRow).where(
            StrugglingQueueRow.user_id == user_id,
            StrugglingQueueRow.flashcard_id == flashcard_id,
        )
        async with self._session_factory() as session:
            row = (await session.scalars(stmt)).first()
            return self._to_entry(row) if row else None

    async def record_failure(
        self, user_id: str, flashcard_id: int, failed_at: datetime
    ) -> StrugglingQueueEntry:
        failed_at_db = to_db_time(failed_at)

        if not await self._increment(user_id, flashcard_id, failed_at_db):
            try:
                async with self._session_factory.begin() as session:
                    session.add(
                        StrugglingQueueRow(
                            user_id=user_id,
                            flashcard_id=flashcard_id,
                            times_failed=1,
                            last_failed_at=failed_at_db,
                            added_at=failed_at_db,
                        )
                    )
            except IntegrityError:
                # Another writer inserted the row first
                logger.debug(f"Insert race on struggling entry {user_id}/{flashcard_id}")
                await self._increment(user_id, flashcard_id, failed_at_db)

        entry = await self.find(user_id, flashcard_id)
        if entry is None:
            raise RuntimeError(f"Struggling entry {user_id}/{flashcard_id} vanished after upsert")
        return entry

    async def remove(self, user_id: str, flashcard_id: int) -> bool:
        async with self._session_factory.begin() as session:
            result = await session.execute(
                delete(StrugglingQueueRow).where(
                    StrugglingQueueRow.user_id == user_id,
                    StrugglingQueueRow.flashcard_id == flashcard_id,
                )
            )
        return result.rowcount > 0

    async def list_for_user(
        self, user_id: str, limit: int | None = None
    ) -> list[StrugglingQueueEntry]:
        stmt = (
            select(StrugglingQueueRow)
            .where(StrugglingQueueRow.user_id == user_id)
            .order_by(
                StrugglingQueueRow.times_failed.desc(),
                StrugglingQueueRow.last_failed_at.desc(),
                StrugglingQueueRow.flashcard_id,
            )
        )
        if limit:
            stmt = stmt.limit(limit)

        async with self._session_factory() as session:
            rows = (await session.scalars(stmt)).all()
            return [self._to_entry(row) for row in rows]

    async def count_for_user(self, user_id: str) -> int:
        stmt = (
            select(func.count())
            .select_from(StrugglingQueueRow)
            .where(StrugglingQueueRow.user_id == user_id)
        )
        async with self._session_factory() as session:
            return int(await session.scalar(stmt) or 0)

    async def delete_by_user(self, user_id: str) -> int:
        async with self._session_factory.begin() as session:
            result = await session.execute(
                delete(StrugglingQueueRow).where(StrugglingQueueRow.user_id == user_id)
            )
        return result.rowcount

    async def delete_by_flashcard(self, flashcard_id: int) -> int:
        async with self._session_factory.begin() as session:
            result = await session.execute(
                delete(StrugglingQueueRow).where(StrugglingQueueRow.flashcard_id == flashcard_id)
            )
        return result.rowcount

    async def _increment(self, user_id: str, flashcard_id: int, failed_at: datetime) -> bool:
        async with self._session_factory.begin() as session:
            result = await session.execute(
                update(StrugglingQueueRow)
                .where(
                    StrugglingQueueRow.user_id == user_id,
                    StrugglingQueueRow.flashcard_id == flashcard_id,
                )
                .values(
                    times_failed=StrugglingQueueRow.times_failed + 1,
                    last_failed_at=failed_at,
                )
            )
        return result.rowcount > 0

    @staticmethod
    def _to_entry(row: StrugglingQueueRow) -> StrugglingQueueEntry:
        return StrugglingQueueEntry(
            user_id=row.user_id,
            flashcard_id=row.flashcard_id,
            times_failed=row.times_failed,
            last_failed_at=from_db_time(row.last_failed_at),
            added_at=from_db_time(row.added_at),
        )
