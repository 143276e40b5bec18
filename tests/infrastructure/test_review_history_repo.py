from datetime import datetime, timezone

import pytest

from conftest import at, make_record
from flashreview.domain.errors import NotFoundError


@pytest.fixture
async def card_ids(flashcard_repo):
    cards = await flashcard_repo.add_many(
        [{"question": f"Q{i}", "answer": f"A{i}"} for i in range(4)]
    )
    return [c.id for c in cards]


@pytest.mark.asyncio
async def test_save_assigns_id_and_round_trips(history_repo):
    record = make_record(flashcard_id=5, review_date=at(1), next_review_date=at(2, 0))

    saved = await history_repo.save(record)
    loaded = await history_repo.find_by_id(saved.id)

    assert saved.id is not None
    assert loaded == saved
    assert loaded.review_date.tzinfo == timezone.utc


@pytest.mark.asyncio
async def test_history_is_newest_first(history_repo):
    await history_repo.save(make_record(review_date=at(1), interval_days=1))
    await history_repo.save(make_record(review_date=at(3), interval_days=7))
    await history_repo.save(make_record(review_date=at(2), interval_days=3))
    await history_repo.save(make_record(flashcard_id=2, review_date=at(4)))

    records = await history_repo.find_by_user_and_flashcard("alice", 1)
    assert [r.interval_days for r in records] == [7, 3, 1]

    last = await history_repo.find_last_review("alice", 1)
    assert last.interval_days == 7
    assert await history_repo.find_last_review("bob", 1) is None

    assert len(await history_repo.find_by_user("alice")) == 4


@pytest.mark.asyncio
async def test_due_cards(history_repo, card_ids):
    c1, c2, c3, c4 = card_ids
    await history_repo.save(make_record(c1, next_review_date=at(4, 0)))
    await history_repo.save(make_record(c2, next_review_date=at(20, 0)))
    await history_repo.save(make_record(c3, next_review_date=at(2, 0)))
    # c4 never reviewed

    due = await history_repo.find_due_flashcards("alice", now=at(5))

    # most overdue first, never-reviewed last
    assert due == [c3, c1, c4]
    assert await history_repo.count_due_flashcards("alice", now=at(5)) == 3
    assert await history_repo.find_due_flashcards("alice", limit=2, now=at(5)) == [c3, c1]


@pytest.mark.asyncio
async def test_due_boundary_is_inclusive(history_repo, card_ids):
    await history_repo.save(make_record(card_ids[0], next_review_date=at(2, 0)))
    midnight = datetime(2025, 3, 2, tzinfo=timezone.utc)

    assert card_ids[0] in await history_repo.find_due_flashcards("alice", now=midnight)


@pytest.mark.asyncio
async def test_only_latest_record_decides_due(history_repo, card_ids):
    c1 = card_ids[0]
    await history_repo.save(make_record(c1, review_date=at(1), next_review_date=at(2, 0)))
    await history_repo.save(make_record(c1, review_date=at(2), next_review_date=at(20, 0)))

    assert c1 not in await history_repo.find_due_flashcards("alice", now=at(5))


@pytest.mark.asyncio
async def test_due_is_per_user(history_repo, card_ids):
    for card_id in card_ids:
        await history_repo.save(make_record(card_id, next_review_date=at(20, 0)))

    assert await history_repo.find_due_flashcards("alice", now=at(5)) == []
    assert await history_repo.find_due_flashcards("bob", now=at(5)) == card_ids


@pytest.mark.asyncio
async def test_delete(history_repo):
    saved = await history_repo.save(make_record())

    await history_repo.delete(saved.id)
    assert await history_repo.find_by_id(saved.id) is None

    with pytest.raises(NotFoundError) as exc:
        await history_repo.delete(saved.id)
    assert exc.value.code == "REVIEW_HISTORY_NOT_FOUND"


@pytest.mark.asyncio
async def test_bulk_delete(history_repo):
    await history_repo.save(make_record(1))
    await history_repo.save(make_record(2))
    await history_repo.save(make_record(2, user_id="bob"))

    assert await history_repo.delete_by_flashcard(2) == 2
    assert await history_repo.delete_by_user("alice") == 1
    assert await history_repo.find_by_user("bob") == []
