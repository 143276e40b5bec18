import pytest

from conftest import at
from flashreview.domain.review.models import MasteryLevel


@pytest.mark.asyncio
async def test_review_stats(engine):
    c1, c2, _c3 = await engine.flashcards.add_many(
        [{"question": f"Q{i}", "answer": f"A{i}"} for i in range(3)]
    )
    for day in (1, 2, 5):
        await engine.record_review.execute("u1", c1.id, True, now=at(day))
    await engine.record_review.execute("u1", c2.id, False, now=at(5, 9))

    stats = (await engine.get_stats.execute("u1", now=at(5, 18))).unwrap()

    assert stats.total_reviews == 4
    assert stats.correct_reviews == 3
    assert stats.accuracy_percent == 75
    assert stats.reviews_today == 2
    # c1 due on the 12th, c2 on the 6th, c3 never reviewed
    assert stats.due_count == 1
    assert stats.struggling_count == 0
    assert stats.mastery == {MasteryLevel.LEARNING: 1, MasteryLevel.MASTERED: 1}


@pytest.mark.asyncio
async def test_review_stats_for_new_learner(engine):
    await engine.flashcards.add_many([{"question": "Q", "answer": "A"}])

    stats = (await engine.get_stats.execute("nobody", now=at(1))).unwrap()

    assert stats.total_reviews == 0
    assert stats.accuracy_percent == 0
    assert stats.due_count == 1
    assert stats.mastery == {MasteryLevel.LEARNING: 0, MasteryLevel.MASTERED: 0}
