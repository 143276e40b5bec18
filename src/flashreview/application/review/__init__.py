# Application Review Package
from .due_cards import DueCardSelector
from .dtos import UseCaseResult
from .queries import GetReviewHistory, GetStrugglingCards, ReviewStatsService
from .recorder import RecordReview, ReviewRecorder
from .scheduling import SpacedRepetitionService
from .sessions import StartReviewSession, SubmitReview
from .struggling import StrugglingPolicy, StrugglingQueueService

__all__ = [
    "DueCardSelector",
    "UseCaseResult",
    "GetReviewHistory",
    "GetStrugglingCards",
    "ReviewStatsService",
    "RecordReview",
    "ReviewRecorder",
    "SpacedRepetitionService",
    "StartReviewSession",
    "SubmitReview",
    "StrugglingPolicy",
    "StrugglingQueueService",
]
