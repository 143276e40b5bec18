"""
SQLAlchemy (async) schema and engine wiring.

Timestamps are stored as naive UTC and handed back to the domain as
timezone-aware UTC.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import (
    Boolean,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


def to_db_time(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def from_db_time(moment: datetime | None) -> datetime | None:
    if moment is None:
        return None
    return moment.replace(tzinfo=timezone.utc)


class Base(DeclarativeBase):
    pass


class FlashcardRow(Base):
    """Content catalog. Owned by the content subsystem; the engine only reads it."""

    __tablename__ = "flashcards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    question: Mapped[str] = mapped_column(Text)
    answer: Mapped[str] = mapped_column(Text)
    difficulty: Mapped[str] = mapped_column(String(16), default="medium")


class ReviewHistoryRow(Base):
    __tablename__ = "review_history"
    __table_args__ = (
        Index("ix_review_history_user_card_date", "user_id", "flashcard_id", "review_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128))
    flashcard_id: Mapped[int] = mapped_column(Integer, index=True)
    review_mode: Mapped[str] = mapped_column(String(16))
    is_correct: Mapped[bool] = mapped_column(Boolean)
    review_date: Mapped[datetime] = mapped_column(DateTime)
    next_review_date: Mapped[datetime] = mapped_column(DateTime)
    interval_days: Mapped[int] = mapped_column(Integer)


class StrugglingQueueRow(Base):
    __tablename__ = "struggling_queue"
    __table_args__ = (UniqueConstraint("user_id", "flashcard_id", name="uq_struggling_user_card"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128))
    flashcard_id: Mapped[int] = mapped_column(Integer, index=True)
    times_failed: Mapped[int] = mapped_column(Integer, default=1)
    last_failed_at: Mapped[datetime] = mapped_column(DateTime)
    added_at: Mapped[datetime] = mapped_column(DateTime)


class Database:
    """
    Owns the async engine and session factory.

    Usage:
        async with Database(url) as db:
            await db.create_all()
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        engine_kwargs: dict = {"echo": echo}

        parsed = make_url(url)
        if parsed.get_backend_name() == "sqlite":
            if parsed.database in (None, "", ":memory:"):
                # one shared connection, otherwise every checkout sees an empty DB
                engine_kwargs["poolclass"] = StaticPool
                engine_kwargs["connect_args"] = {"check_same_thread": False}
            else:
                Path(parsed.database).expanduser().parent.mkdir(parents=True, exist_ok=True)

        self.engine = create_async_engine(url, **engine_kwargs)
        self.session_factory = async_sessionmaker(self.engine, expire_on_commit=False)

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.debug(f"Schema ensured on {self.engine.url!r}")

    async def dispose(self) -> None:
        await self.engine.dispose()

    async def __aenter__(self) -> "Database":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.dispose()
