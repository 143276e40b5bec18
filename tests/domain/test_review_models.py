import pytest

from conftest import at, make_record
from flashreview.domain.errors import ValidationError
from flashreview.domain.review.models import (
    Flashcard,
    ReviewFlashcard,
    ReviewMode,
    round_percent,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, ReviewMode.FLASHCARD),
        ("quiz", ReviewMode.QUIZ),
        (" Recall ", ReviewMode.RECALL),
        ("learn", ReviewMode.FLASHCARD),
        ("review", ReviewMode.QUIZ),
        ("cram", ReviewMode.RECALL),
        (ReviewMode.QUIZ, ReviewMode.QUIZ),
    ],
)
def test_review_mode_parse(value, expected):
    assert ReviewMode.parse(value) is expected


def test_review_mode_parse_unknown():
    with pytest.raises(ValidationError) as exc:
        ReviewMode.parse("speedrun")
    assert exc.value.code == "VALIDATION_ERROR"
    assert exc.value.kind == "validation"


def test_round_percent_rounds_half_up():
    assert round_percent(1, 3) == 33
    assert round_percent(2, 3) == 67
    assert round_percent(1, 8) == 13  # 12.5
    assert round_percent(3, 3) == 100


def test_round_percent_empty_whole():
    assert round_percent(0, 0) == 0


def test_review_flashcard_defaults_for_new_card():
    card = ReviewFlashcard.from_card(Flashcard(7, "Q", "A", "hard"), None)
    assert card.interval_days == 1
    assert card.last_review_date is None
    assert card.next_review_date is None
    assert card.difficulty == "hard"


def test_review_flashcard_carries_last_review():
    last = make_record(flashcard_id=7, interval_days=3, review_date=at(2), next_review_date=at(5, 0))
    card = ReviewFlashcard.from_card(Flashcard(7, "Q", "A"), last)
    assert card.interval_days == 3
    assert card.last_review_date == at(2)
    assert card.next_review_date == at(5, 0)


def test_with_id_returns_copy():
    record = make_record()
    saved = record.with_id(42)
    assert saved.id == 42
    assert record.id is None
