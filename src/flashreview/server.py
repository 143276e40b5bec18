import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Annotated, Literal

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from flashreview.application.config import AppConfig, resolve_config
from flashreview.application.factory import ReviewEngine, build_engine
from flashreview.application.review.dtos import UseCaseResult
from flashreview.consts import VERSION
from flashreview.domain.errors import ReviewError

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("flashreview.server")

STATUS_BY_KIND = {"validation": 422, "not_found": 404, "business_rule": 409}


class ApiModel(BaseModel):
    model_config = ConfigDict(
        from_attributes=True, alias_generator=to_camel, populate_by_name=True
    )


class HealthResponse(ApiModel):
    status: str
    version: str
    uptime_seconds: float


class CardModel(ApiModel):
    id: int
    question: str
    answer: str
    difficulty: str


class PositionModel(ApiModel):
    current: int
    total: int
    percent: int


class ProgressModel(ApiModel):
    reviewed: int
    total: int
    percent: int


class SummaryModel(ApiModel):
    total_reviewed: int
    correct_count: int
    accuracy_percent: int


class StartSessionRequest(ApiModel):
    mode: str | None = None
    limit: int | None = Field(default=None, ge=1)


class StartSessionResponse(ApiModel):
    status: Literal["started", "no_due_cards"]
    session_id: str | None = None
    mode: str | None = None
    total_cards: int = 0
    current_card: CardModel | None = None
    progress: PositionModel | None = None


class SubmitAnswerRequest(ApiModel):
    flashcard_id: int
    is_correct: bool


class SubmitAnswerResponse(ApiModel):
    result: Literal["advanced", "completed"]
    event: str
    next_review_date: datetime
    interval_days: int
    progress: ProgressModel
    next_card: CardModel | None = None
    session_complete: SummaryModel | None = None


class RecordReviewRequest(ApiModel):
    flashcard_id: int
    is_correct: bool
    mode: str | None = None


class RecordReviewResponse(ApiModel):
    id: int
    flashcard_id: int
    review_mode: str
    is_correct: bool
    next_review_date: datetime
    interval_days: int
    event: str


class DueCardModel(CardModel):
    last_review_date: datetime | None
    next_review_date: datetime | None
    interval_days: int
    days_overdue: int


class DueCardsResponse(ApiModel):
    cards: list[DueCardModel]
    total_due: int


class StrugglingCardModel(CardModel):
    times_failed: int
    last_failed_at: datetime
    added_at: datetime


class StrugglingCardsResponse(ApiModel):
    cards: list[StrugglingCardModel]
    total: int


class HistoryRecordModel(ApiModel):
    id: int
    flashcard_id: int
    review_mode: str
    is_correct: bool
    review_date: datetime
    next_review_date: datetime
    interval_days: int


class StatsResponse(ApiModel):
    due_count: int
    struggling_count: int
    total_reviews: int
    correct_reviews: int
    accuracy_percent: int
    reviews_today: int
    mastery: dict[str, int]


def create_app(config: AppConfig | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info(f"flashreview server v{VERSION} starting up...")
        app.state.engine = await build_engine(config or resolve_config())
        yield
        # Shutdown
        await app.state.engine.close()
        logger.info("flashreview server shutting down...")

    app = FastAPI(
        title="flashreview",
        description="Spaced-repetition review engine.",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.start_time = time.time()
    _register_routes(app)
    return app


def get_engine(request: Request) -> ReviewEngine:
    return request.app.state.engine


EngineDep = Annotated[ReviewEngine, Depends(get_engine)]
# Supplied by the authorization layer in front of this service
UserId = Annotated[str, Header(alias="X-User-Id")]


def _unwrap(result: UseCaseResult):
    if result.ok:
        return result.value
    raise _http_error(result.error)


def _http_error(error: ReviewError) -> HTTPException:
    return HTTPException(status_code=STATUS_BY_KIND.get(error.kind, 400), detail=error.to_dict())


def _register_routes(app: FastAPI) -> None:
    @app.get("/health", response_model=HealthResponse)
    async def health_check(request: Request):
        """
        Simple health check to verify server is reachable.
        """
        return HealthResponse(
            status="ok",
            version=VERSION,
            uptime_seconds=time.time() - request.app.state.start_time,
        )

    @app.get("/version")
    async def get_version():
        return {"version": VERSION}

    @app.post("/reviews/sessions", response_model=StartSessionResponse)
    async def start_session(req: StartSessionRequest, user_id: UserId, engine: EngineDep):
        """Start a review session over the learner's due cards."""
        result = await engine.start_session.execute(user_id, mode=req.mode, limit=req.limit)
        if not result.ok and result.error.code == "NO_DUE_CARDS":
            return StartSessionResponse(status="no_due_cards")

        started = _unwrap(result)
        return StartSessionResponse(
            status="started",
            session_id=started.session_id,
            mode=started.mode.value,
            total_cards=started.total_cards,
            current_card=CardModel.model_validate(started.current_card),
            progress=PositionModel.model_validate(started.progress),
        )

    @app.post("/reviews/sessions/{session_id}/answers", response_model=SubmitAnswerResponse)
    async def submit_answer(
        session_id: str, req: SubmitAnswerRequest, user_id: UserId, engine: EngineDep
    ):
        """Submit the answer for the session's current card."""
        submitted = _unwrap(
            await engine.submit_review.execute(
                user_id, session_id, req.flashcard_id, req.is_correct
            )
        )
        return SubmitAnswerResponse(
            result=submitted.result,
            event=submitted.event.value,
            next_review_date=submitted.next_review_date,
            interval_days=submitted.interval_days,
            progress=ProgressModel.model_validate(submitted.progress),
            next_card=CardModel.model_validate(submitted.next_card)
            if submitted.next_card
            else None,
            session_complete=SummaryModel.model_validate(submitted.session_complete)
            if submitted.session_complete
            else None,
        )

    @app.post("/reviews/record", response_model=RecordReviewResponse)
    async def record_review(req: RecordReviewRequest, user_id: UserId, engine: EngineDep):
        """Record a single review outside of any session."""
        recorded = _unwrap(
            await engine.record_review.execute(
                user_id, req.flashcard_id, req.is_correct, mode=req.mode
            )
        )
        return RecordReviewResponse(
            id=recorded.id,
            flashcard_id=recorded.flashcard_id,
            review_mode=recorded.review_mode.value,
            is_correct=recorded.is_correct,
            next_review_date=recorded.next_review_date,
            interval_days=recorded.interval_days,
            event=recorded.event.value,
        )

    @app.get("/reviews/due", response_model=DueCardsResponse)
    async def due_cards(
        user_id: UserId,
        engine: EngineDep,
        limit: Annotated[int | None, Query(ge=1)] = None,
    ):
        due = _unwrap(await engine.get_due_cards.execute(user_id, limit))
        return DueCardsResponse.model_validate(due)

    @app.get("/reviews/struggling", response_model=StrugglingCardsResponse)
    async def struggling_cards(
        user_id: UserId,
        engine: EngineDep,
        limit: Annotated[int | None, Query(ge=1)] = None,
    ):
        struggling = _unwrap(await engine.get_struggling_cards.execute(user_id, limit))
        return StrugglingCardsResponse.model_validate(struggling)

    @app.get("/reviews/history/{flashcard_id}", response_model=list[HistoryRecordModel])
    async def review_history(flashcard_id: int, user_id: UserId, engine: EngineDep):
        records = _unwrap(await engine.get_review_history.execute(user_id, flashcard_id))
        return [
            HistoryRecordModel(
                id=r.id,
                flashcard_id=r.flashcard_id,
                review_mode=r.review_mode.value,
                is_correct=r.is_correct,
                review_date=r.review_date,
                next_review_date=r.next_review_date,
                interval_days=r.interval_days,
            )
            for r in records
        ]

    @app.get("/reviews/stats", response_model=StatsResponse)
    async def review_stats(user_id: UserId, engine: EngineDep):
        stats = _unwrap(await engine.get_stats.execute(user_id))
        return StatsResponse(
            due_count=stats.due_count,
            struggling_count=stats.struggling_count,
            total_reviews=stats.total_reviews,
            correct_reviews=stats.correct_reviews,
            accuracy_percent=stats.accuracy_percent,
            reviews_today=stats.reviews_today,
            mastery={level.value: count for level, count in stats.mastery.items()},
        )


app = create_app()
