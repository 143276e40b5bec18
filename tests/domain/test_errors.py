from flashreview.domain.errors import (
    BusinessRuleError,
    NotFoundError,
    ReviewError,
    ValidationError,
    flashcard_not_found,
    no_due_cards,
    session_not_found,
)


def test_default_codes():
    assert ValidationError("bad").code == "VALIDATION_ERROR"
    assert NotFoundError("gone").kind == "not_found"
    assert BusinessRuleError("nope").kind == "business_rule"


def test_factories_carry_codes():
    assert flashcard_not_found(3).code == "FLASHCARD_NOT_FOUND"
    assert session_not_found("s").code == "SESSION_NOT_FOUND"
    assert no_due_cards().code == "NO_DUE_CARDS"
    assert isinstance(no_due_cards(), ReviewError)


def test_to_dict():
    err = flashcard_not_found(3)
    assert err.to_dict() == {
        "code": "FLASHCARD_NOT_FOUND",
        "kind": "not_found",
        "message": "Flashcard 3 not found",
    }
    assert str(err) == "Flashcard 3 not found"
