import logging
import time
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from cramdeck.application.bookmarks.service import BookmarkService
from cramdeck.application.config import resolve_config
from cramdeck.application.factory import (
    get_blob_store,
    get_bookmark_service,
    get_review_service,
    get_study_stats_service,
)
from cramdeck.application.review.queries import current_streak
from cramdeck.application.review.service import ReviewService
from cramdeck.application.study.service import StudyStatsService, get_average_accuracy
from cramdeck.consts import VERSION

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cramdeck.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"cramdeck server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("cramdeck server shutting down...")


app = FastAPI(
    title="cramdeck",
    description="Spaced-repetition review scheduling API.",
    version=VERSION,
    lifespan=lifespan,
)

start_time = time.time()


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class ReviewCardResponse(BaseModel):
    question_index: int
    ease_factor: float
    interval: int
    repetitions: int
    next_review_date: int
    last_answered_correct: bool
    last_review_date: int
    average_response_time_ms: float | None = None
    total_responses: int | None = None


class ReviewStatsResponse(BaseModel):
    total_reviewed: int
    mastered: int
    learning: int
    struggling: int
    due_now: int


class AnswerRequest(BaseModel):
    question_index: int
    correct: bool
    response_time_ms: int | None = Field(default=None, ge=0)
    quality: int | None = Field(default=None, ge=0, le=5)
    scope: str | None = None


class OverrideRequest(BaseModel):
    question_index: int
    quality: int = Field(ge=0, le=5)
    scope: str | None = None


class AnswerResponse(BaseModel):
    card: ReviewCardResponse | None
    history_length: int


def _review_service(scope: str | None) -> ReviewService:
    config = resolve_config({"scope": scope})
    return get_review_service(config, store=get_blob_store(config))


def _study_service(scope: str | None) -> StudyStatsService:
    config = resolve_config({"scope": scope})
    return get_study_stats_service(config, store=get_blob_store(config))


def _bookmark_service(scope: str | None) -> BookmarkService:
    config = resolve_config({"scope": scope})
    return get_bookmark_service(config, store=get_blob_store(config))


def _cards(cards) -> list[ReviewCardResponse]:
    return [ReviewCardResponse(**asdict(c)) for c in cards]


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.post("/reviews/answer", response_model=AnswerResponse)
def record_answer(req: AnswerRequest):
    """Record an answer and return the rescheduled card."""
    try:
        service = _review_service(req.scope)
        data = service.record_answer(
            req.question_index,
            req.correct,
            response_time_ms=req.response_time_ms,
            quality=req.quality,
        )
        _study_service(req.scope).track_answer(req.correct, current_streak(data))
    except Exception as e:
        logger.error(f"Recording answer failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e

    card = data.cards[req.question_index]
    return AnswerResponse(
        card=ReviewCardResponse(**asdict(card)), history_length=len(data.review_history)
    )


@app.post("/reviews/override", response_model=AnswerResponse)
def override_quality(req: OverrideRequest):
    """Regrade the most recent answer to a question."""
    try:
        service = _review_service(req.scope)
        data = service.override_last_review_quality(req.question_index, req.quality)
    except Exception as e:
        logger.error(f"Override failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e

    if data is None:
        raise HTTPException(
            status_code=404, detail=f"No answer recorded for question {req.question_index}"
        )
    card = data.cards[req.question_index]
    return AnswerResponse(
        card=ReviewCardResponse(**asdict(card)), history_length=len(data.review_history)
    )


@app.get("/reviews/due", response_model=list[ReviewCardResponse])
def due_cards(scope: str | None = None):
    return _cards(_review_service(scope).due_cards())


@app.get("/reviews/failed", response_model=list[ReviewCardResponse])
def failed_cards(scope: str | None = None):
    return _cards(_review_service(scope).failed_cards())


@app.get("/reviews/queue", response_model=list[ReviewCardResponse])
def review_queue(scope: str | None = None, limit: int | None = Query(default=None, ge=1)):
    """Failed cards first, then due cards, each by next review date."""
    return _cards(_review_service(scope).review_queue(limit=limit))


@app.get("/reviews/stats", response_model=ReviewStatsResponse)
def review_stats(scope: str | None = None):
    return ReviewStatsResponse(**asdict(_review_service(scope).stats()))


@app.delete("/reviews")
def clear_reviews(scope: str | None = None):
    """Erase all review data for the scope."""
    _review_service(scope).clear_all_data()
    return {"ok": True}


class DailyStatsResponse(BaseModel):
    date: str
    questions_answered: int
    correct_answers: int
    study_time_ms: int
    sessions: int


class StudySummaryResponse(BaseModel):
    days: list[DailyStatsResponse]
    accuracy: float
    streak: int
    total_questions_answered: int
    total_study_time_ms: int


@app.get("/study/summary", response_model=StudySummaryResponse)
def study_summary(scope: str | None = None, days: int = Query(default=7, ge=1)):
    """Per-day study activity for the last `days` days plus lifetime totals."""
    tracker = _study_service(scope)
    recent = tracker.get_recent_stats(days)
    totals = tracker.load()
    return StudySummaryResponse(
        days=[DailyStatsResponse(**asdict(d)) for d in recent],
        accuracy=get_average_accuracy(recent),
        streak=tracker.get_study_streak(),
        total_questions_answered=totals.total_questions_answered,
        total_study_time_ms=totals.total_study_time_ms,
    )


@app.post("/study/session/end")
def end_study_session(scope: str | None = None):
    tracker = _study_service(scope)
    stats = tracker.end_session()
    return {"total_study_time_ms": stats.total_study_time_ms}


class BookmarkToggleRequest(BaseModel):
    question_index: int
    scope: str | None = None


class BookmarksResponse(BaseModel):
    question_indices: list[int]
    count: int


@app.post("/bookmarks/toggle")
def toggle_bookmark(req: BookmarkToggleRequest):
    bookmarked = _bookmark_service(req.scope).toggle_bookmark(req.question_index)
    return {"question_index": req.question_index, "bookmarked": bookmarked}


@app.get("/bookmarks", response_model=BookmarksResponse)
def list_bookmarks(scope: str | None = None):
    indices = _bookmark_service(scope).get_bookmarked_indices()
    return BookmarksResponse(question_indices=indices, count=len(indices))


@app.delete("/bookmarks")
def clear_bookmarks(scope: str | None = None):
    _bookmark_service(scope).clear_all_bookmarks()
    return {"ok": True}
