"""
SQL Flashcard Repository - read access to the content catalog, plus the
minimal writes needed to seed it from the CLI.
"""

import logging
from collections.abc import Iterable

from sqlalchemy import delete, select

from flashreview.domain.review.models import Flashcard
from flashreview.domain.review.ports import FlashcardRepository

from .database import FlashcardRow

logger = logging.getLogger(__name__)

DIFFICULTIES = ("easy", "medium", "hard")


class SqlFlashcardRepository(FlashcardRepository):
    def __init__(self, session_factory):
        self._session_factory = session_factory

    async def find_by_id(self, flashcard_id: int) -> Flashcard | None:
        async with self._session_factory() as session:
            row = await session.get(FlashcardRow, flashcard_id)
            return self._to_card(row) if row else None

    async def find_many(self, flashcard_ids: list[int]) -> dict[int, Flashcard]:
        if not flashcard_ids:
            return {}
        stmt = select(FlashcardRow).where(FlashcardRow.id.in_(flashcard_ids))
        async with self._session_factory() as session:
            rows = (await session.scalars(stmt)).all()
            return {row.id: self._to_card(row) for row in rows}

    async def add_many(self, cards: Iterable[dict]) -> list[Flashcard]:
        """
        Insert cards given as ``{"question", "answer", "difficulty"?}`` dicts.

        Raises:
            ValueError: a card is missing its question/answer or has an unknown
                difficulty.
        """
        rows = [self._to_row(card) for card in cards]
        async with self._session_factory.begin() as session:
            session.add_all(rows)
            await session.flush()
            created = [self._to_card(row) for row in rows]
        logger.info(f"Imported {len(created)} flashcard(s)")
        return created

    async def delete(self, flashcard_id: int) -> bool:
        async with self._session_factory.begin() as session:
            result = await session.execute(
                delete(FlashcardRow).where(FlashcardRow.id == flashcard_id)
            )
        return result.rowcount > 0

    @staticmethod
    def _to_row(card: dict) -> FlashcardRow:
        if not isinstance(card, dict):
            raise ValueError(f"Flashcard must be a mapping, got {card!r}")
        question = str(card.get("question") or "").strip()
        answer = str(card.get("answer") or "").strip()
        difficulty = str(card.get("difficulty") or "medium").strip().lower()
        if not question or not answer:
            raise ValueError(f"Flashcard needs a question and an answer: {card!r}")
        if difficulty not in DIFFICULTIES:
            raise ValueError(f"Unknown difficulty {difficulty!r}, expected one of {DIFFICULTIES}")
        return FlashcardRow(question=question, answer=answer, difficulty=difficulty)

    @staticmethod
    def _to_card(row: FlashcardRow) -> Flashcard:
        return Flashcard(
            id=row.id,
            question=row.question,
            answer=row.answer,
            difficulty=row.difficulty,
        )
