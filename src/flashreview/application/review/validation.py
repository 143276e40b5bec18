"""Input checks shared by the review use cases. They run before any state change."""

from flashreview.domain.errors import ValidationError


def require_user_id(user_id: str | None) -> str:
    if not isinstance(user_id, str) or not user_id.strip():
        raise ValidationError("userId is required")
    return user_id.strip()


def require_flashcard_id(flashcard_id: int | None) -> int:
    # bool is an int subclass
    if isinstance(flashcard_id, bool) or not isinstance(flashcard_id, int) or flashcard_id < 1:
        raise ValidationError(f"Invalid flashcardId: {flashcard_id!r}")
    return flashcard_id


def require_session_id(session_id: str | None) -> str:
    if not isinstance(session_id, str) or not session_id.strip():
        raise ValidationError("sessionId is required")
    return session_id.strip()


def check_limit(limit: int | None) -> int | None:
    if limit is None:
        return None
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ValidationError(f"limit must be a positive integer, got {limit!r}")
    return limit
