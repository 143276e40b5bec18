from datetime import datetime, timezone

import pytest

from flashreview.application.config import AppConfig
from flashreview.application.factory import build_engine
from flashreview.domain.review.models import ReviewHistoryRecord, ReviewMode
from flashreview.infrastructure.persistence import (
    Database,
    SqlFlashcardRepository,
    SqlReviewHistoryRepository,
    SqlStrugglingQueueRepository,
)

MEMORY_URL = "sqlite+aiosqlite:///:memory:"


def at(day: int, hour: int = 12) -> datetime:
    """A fixed UTC instant in March 2025."""
    return datetime(2025, 3, day, hour, tzinfo=timezone.utc)


class FakeClock:
    """Settable stand-in for utcnow."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def make_record(
    flashcard_id: int = 1,
    is_correct: bool = True,
    interval_days: int = 1,
    review_date: datetime | None = None,
    next_review_date: datetime | None = None,
    user_id: str = "alice",
) -> ReviewHistoryRecord:
    review_date = review_date or at(1)
    return ReviewHistoryRecord(
        user_id=user_id,
        flashcard_id=flashcard_id,
        review_mode=ReviewMode.FLASHCARD,
        is_correct=is_correct,
        review_date=review_date,
        next_review_date=next_review_date or review_date,
        interval_days=interval_days,
    )


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config and the default DB
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
async def database():
    db = Database(MEMORY_URL)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def flashcard_repo(database):
    return SqlFlashcardRepository(database.session_factory)


@pytest.fixture
def history_repo(database):
    return SqlReviewHistoryRepository(database.session_factory)


@pytest.fixture
def queue_repo(database):
    return SqlStrugglingQueueRepository(database.session_factory)


@pytest.fixture
def session_clock():
    return FakeClock(at(1))


@pytest.fixture
async def engine(mock_home, session_clock):
    config = AppConfig(database_url=MEMORY_URL)
    review_engine = await build_engine(config, clock=session_clock)
    yield review_engine
    await review_engine.close()
