"""
SQL Review History Repository - Infrastructure adapter over SQLAlchemy (async).

Implements ReviewHistoryRepository. Records are append-only; the latest record
per (user, card) is the one with the greatest (review_date, id).
"""

import logging
from datetime import datetime

from sqlalchemy import Select, case, delete, func, or_, select

from flashreview.domain.errors import NotFoundError
from flashreview.domain.review.models import ReviewHistoryRecord, ReviewMode, utcnow
from flashreview.domain.review.ports import ReviewHistoryRepository

from .database import FlashcardRow, ReviewHistoryRow, from_db_time, to_db_time

logger = logging.getLogger(__name__)

_NEWEST_FIRST = (ReviewHistoryRow.review_date.desc(), ReviewHistoryRow.id.desc())


class SqlReviewHistoryRepository(ReviewHistoryRepository):
    def __init__(self, session_factory):
        self._session_factory = session_factory

    async def find_by_id(self, record_id: int) -> ReviewHistoryRecord | None:
        async with self._session_factory() as session:
            row = await session.get(ReviewHistoryRow, record_id)
            return self._to_record(row) if row else None

    async def find_last_review(
        self, user_id: str, flashcard_id: int
    ) -> ReviewHistoryRecord | None:
        stmt = (
            select(ReviewHistoryRow)
            .where(
                ReviewHistoryRow.user_id == user_id,
                ReviewHistoryRow.flashcard_id == flashcard_id,
            )
            .order_by(*_NEWEST_FIRST)
            .limit(1)
        )
        async with self._session_factory() as session:
            row = (await session.scalars(stmt)).first()
            return self._to_record(row) if row else None

    async def find_by_user(self, user_id: str) -> list[ReviewHistoryRecord]:
        stmt = (
            select(ReviewHistoryRow)
            .where(ReviewHistoryRow.user_id == user_id)
            .order_by(*_NEWEST_FIRST)
        )
        return await self._fetch(stmt)

    async def find_by_user_and_flashcard(
        self, user_id: str, flashcard_id: int
    ) -> list[ReviewHistoryRecord]:
        stmt = (
            select(ReviewHistoryRow)
            .where(
                ReviewHistoryRow.user_id == user_id,
                ReviewHistoryRow.flashcard_id == flashcard_id,
            )
            .order_by(*_NEWEST_FIRST)
        )
        return await self._fetch(stmt)

    async def find_due_flashcards(
        self, user_id: str, limit: int | None = None, now: datetime | None = None
    ) -> list[int]:
        latest, stmt = self._due_query(user_id, now)
        stmt = stmt.order_by(
            # never-reviewed cards after the overdue ones
            case((latest.c.next_review_date.is_(None), 1), else_=0),
            latest.c.next_review_date,
            FlashcardRow.id,
        )
        if limit:
            stmt = stmt.limit(limit)

        async with self._session_factory() as session:
            return list((await session.scalars(stmt)).all())

    async def count_due_flashcards(self, user_id: str, now: datetime | None = None) -> int:
        _, stmt = self._due_query(user_id, now)
        count_stmt = select(func.count()).select_from(stmt.subquery())
        async with self._session_factory() as session:
            return int(await session.scalar(count_stmt) or 0)

    async def save(self, record: ReviewHistoryRecord) -> ReviewHistoryRecord:
        row = ReviewHistoryRow(
            user_id=record.user_id,
            flashcard_id=record.flashcard_id,
            review_mode=record.review_mode.value,
            is_correct=record.is_correct,
            review_date=to_db_time(record.review_date),
            next_review_date=to_db_time(record.next_review_date),
            interval_days=record.interval_days,
        )
        async with self._session_factory.begin() as session:
            session.add(row)
            await session.flush()
            record_id = row.id
        return record.with_id(record_id)

    async def delete(self, record_id: int) -> None:
        async with self._session_factory.begin() as session:
            result = await session.execute(
                delete(ReviewHistoryRow).where(ReviewHistoryRow.id == record_id)
            )
        if result.rowcount == 0:
            raise NotFoundError(
                f"Review history {record_id} not found", "REVIEW_HISTORY_NOT_FOUND"
            )

    async def delete_by_user(self, user_id: str) -> int:
        async with self._session_factory.begin() as session:
            result = await session.execute(
                delete(ReviewHistoryRow).where(ReviewHistoryRow.user_id == user_id)
            )
        logger.info(f"Deleted {result.rowcount} review record(s) for user {user_id}")
        return result.rowcount

    async def delete_by_flashcard(self, flashcard_id: int) -> int:
        async with self._session_factory.begin() as session:
            result = await session.execute(
                delete(ReviewHistoryRow).where(ReviewHistoryRow.flashcard_id == flashcard_id)
            )
        logger.info(f"Deleted {result.rowcount} review record(s) for flashcard {flashcard_id}")
        return result.rowcount

    def _due_query(self, user_id: str, now: datetime | None):
        """
        Cards in the catalog whose latest record is due, or that have none.

        Returns the latest-record subquery (for ordering) and the select.
        """
        now_db = to_db_time(now or utcnow())

        ranked = (
            select(
                ReviewHistoryRow.flashcard_id,
                ReviewHistoryRow.next_review_date,
                func.row_number()
                .over(partition_by=ReviewHistoryRow.flashcard_id, order_by=_NEWEST_FIRST)
                .label("rn"),
            )
            .where(ReviewHistoryRow.user_id == user_id)
            .subquery()
        )
        latest = (
            select(ranked.c.flashcard_id, ranked.c.next_review_date)
            .where(ranked.c.rn == 1)
            .subquery()
        )
        stmt: Select = (
            select(FlashcardRow.id)
            .outerjoin(latest, latest.c.flashcard_id == FlashcardRow.id)
            .where(
                or_(
                    latest.c.next_review_date.is_(None),
                    latest.c.next_review_date <= now_db,
                )
            )
        )
        return latest, stmt

    async def _fetch(self, stmt) -> list[ReviewHistoryRecord]:
        async with self._session_factory() as session:
            rows = (await session.scalars(stmt)).all()
            return [self._to_record(row) for row in rows]

    @staticmethod
    def _to_record(row: ReviewHistoryRow) -> ReviewHistoryRecord:
        return ReviewHistoryRecord(
            id=row.id,
            user_id=row.user_id,
            flashcard_id=row.flashcard_id,
            review_mode=ReviewMode(row.review_mode),
            is_correct=row.is_correct,
            review_date=from_db_time(row.review_date),
            next_review_date=from_db_time(row.next_review_date),
            interval_days=row.interval_days,
        )
