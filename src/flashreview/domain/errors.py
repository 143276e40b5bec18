"""
Typed failures raised by the review engine.

Every error carries a machine-readable ``code`` and a coarse ``kind`` so the
outer layers can map it to a response without string matching.
"""


class ReviewError(Exception):
    """Base class for expected, client-facing failures."""

    kind = "error"
    default_code = "REVIEW_ERROR"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "kind": self.kind, "message": self.message}


class ValidationError(ReviewError):
    kind = "validation"
    default_code = "VALIDATION_ERROR"


class NotFoundError(ReviewError):
    kind = "not_found"
    default_code = "NOT_FOUND"


class BusinessRuleError(ReviewError):
    kind = "business_rule"
    default_code = "BUSINESS_RULE_VIOLATION"


def flashcard_not_found(flashcard_id: int) -> NotFoundError:
    return NotFoundError(f"Flashcard {flashcard_id} not found", "FLASHCARD_NOT_FOUND")


def session_not_found(session_id: str) -> NotFoundError:
    return NotFoundError(f"Review session {session_id} not found", "SESSION_NOT_FOUND")


def no_due_cards() -> BusinessRuleError:
    return BusinessRuleError("No cards due for review", "NO_DUE_CARDS")
