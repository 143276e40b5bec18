import pytest


@pytest.mark.asyncio
async def test_add_and_find(flashcard_repo):
    created = await flashcard_repo.add_many(
        [
            {"question": " 2 + 2? ", "answer": "4", "difficulty": "Easy"},
            {"question": "Capital of Peru?", "answer": "Lima"},
        ]
    )

    first, second = created
    assert first.question == "2 + 2?"
    assert first.difficulty == "easy"
    assert second.difficulty == "medium"

    assert await flashcard_repo.find_by_id(first.id) == first
    found = await flashcard_repo.find_many([first.id, second.id, 999])
    assert set(found) == {first.id, second.id}
    assert await flashcard_repo.find_many([]) == {}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "card",
    [
        {"question": "", "answer": "A"},
        {"question": "Q"},
        {"question": "Q", "answer": "A", "difficulty": "brutal"},
        "just a string",
        ["Q", "A"],
    ],
)
async def test_add_rejects_invalid_cards(flashcard_repo, card):
    with pytest.raises(ValueError):
        await flashcard_repo.add_many([card])


@pytest.mark.asyncio
async def test_delete(flashcard_repo):
    (card,) = await flashcard_repo.add_many([{"question": "Q", "answer": "A"}])

    assert await flashcard_repo.delete(card.id) is True
    assert await flashcard_repo.find_by_id(card.id) is None
    assert await flashcard_repo.delete(card.id) is False
