import pytest

from conftest import at
from flashreview.domain.review.models import ReviewEvent, ReviewMode


@pytest.fixture
async def card(engine):
    (created,) = await engine.flashcards.add_many([{"question": "Q", "answer": "A"}])
    return created


@pytest.mark.asyncio
async def test_record_review_outside_session(engine, card):
    result = await engine.record_review.execute("u1", card.id, True, mode="cram", now=at(1))

    assert result.ok
    assert result.value.id is not None
    assert result.value.review_mode is ReviewMode.RECALL
    assert result.value.interval_days == 1
    assert result.value.event is ReviewEvent.MASTERED

    history = (await engine.get_review_history.execute("u1", card.id)).unwrap()
    assert [r.id for r in history] == [result.value.id]


@pytest.mark.asyncio
async def test_record_review_unknown_card_writes_nothing(engine, card):
    result = await engine.record_review.execute("u1", 999, False, now=at(1))

    assert result.error.code == "FLASHCARD_NOT_FOUND"
    assert await engine.history.find_by_user("u1") == []


@pytest.mark.asyncio
async def test_struggling_lifecycle(engine, card):
    events = []
    for day in (1, 2, 3):
        result = await engine.record_review.execute("u1", card.id, False, now=at(day))
        events.append(result.value.event)
    assert events == [
        ReviewEvent.STRUGGLED,
        ReviewEvent.STRUGGLED,
        ReviewEvent.MARKED_STRUGGLING,
    ]

    struggling = (await engine.get_struggling_cards.execute("u1")).unwrap()
    assert struggling.total == 1
    assert struggling.cards[0].id == card.id
    assert struggling.cards[0].times_failed == 1
    assert struggling.cards[0].added_at == at(3)

    fourth = (await engine.record_review.execute("u1", card.id, False, now=at(4))).unwrap()
    assert fourth.event is ReviewEvent.MARKED_STRUGGLING
    entry = (await engine.get_struggling_cards.execute("u1")).unwrap().cards[0]
    assert entry.times_failed == 2
    assert entry.last_failed_at == at(4)
    assert entry.added_at == at(3)

    recovered = (await engine.record_review.execute("u1", card.id, True, now=at(5))).unwrap()
    assert recovered.event is ReviewEvent.MASTERED
    assert (await engine.get_struggling_cards.execute("u1")).unwrap().total == 0


@pytest.mark.asyncio
async def test_struggling_queue_is_per_user(engine, card):
    for day in (1, 2, 3):
        await engine.record_review.execute("u1", card.id, False, now=at(day))

    assert (await engine.get_struggling_cards.execute("u2")).unwrap().total == 0


@pytest.mark.asyncio
async def test_history_validation(engine):
    result = await engine.get_review_history.execute("u1", -1)
    assert result.error.code == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_due_cards_report_days_overdue(engine, card):
    await engine.record_review.execute("u1", card.id, True, now=at(1))

    due = (await engine.get_due_cards.execute("u1", now=at(5))).unwrap()

    assert [c.id for c in due.cards] == [card.id]
    assert due.cards[0].days_overdue == 3
