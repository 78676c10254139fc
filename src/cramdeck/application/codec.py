"""
Blob codec for persisted review, study-stats and bookmark state.

The persisted layout uses camelCase field names and string card keys:

    {"cards": {"12": {"questionIndex": 12, "easeFactor": 2.5, ...}},
     "reviewHistory": [{"questionIndex": 12, "timestamp": ..., "correct": true}]}

Optional fields are omitted when unset. Decoding raises
pydantic.ValidationError (a ValueError) on malformed input; callers
decide how to degrade.
"""

from dataclasses import asdict

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from cramdeck.domain.bookmarks.models import Bookmarks
from cramdeck.domain.review.models import ReviewCard, ReviewHistoryEntry, SpacedRepetitionData
from cramdeck.domain.study.models import DailyStats, StudyStats


class _BlobModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReviewCardSchema(_BlobModel):
    question_index: int
    ease_factor: float
    interval: int
    repetitions: int
    next_review_date: int
    last_answered_correct: bool
    last_review_date: int
    average_response_time_ms: float | None = None
    total_responses: int | None = None


class ReviewHistoryEntrySchema(_BlobModel):
    question_index: int
    timestamp: int
    correct: bool
    response_time_ms: int | None = None
    quality: int | None = None
    prev_card: ReviewCardSchema | None = None


class SpacedRepetitionSchema(_BlobModel):
    cards: dict[int, ReviewCardSchema] = {}
    review_history: list[ReviewHistoryEntrySchema] = []


class DailyStatsSchema(_BlobModel):
    date: str
    questions_answered: int = 0
    correct_answers: int = 0
    study_time_ms: int = 0
    sessions: int = 0


class StudyStatsSchema(_BlobModel):
    daily_stats: list[DailyStatsSchema] = []
    total_questions_answered: int = 0
    total_correct: int = 0
    total_study_time_ms: int = 0
    longest_streak: int = 0
    current_session_start: int | None = None
    last_activity_timestamp: int | None = None


class BookmarksSchema(_BlobModel):
    question_indices: list[int] = []
    created_at: dict[int, int] = {}


def encode_data(data: SpacedRepetitionData) -> str:
    schema = SpacedRepetitionSchema.model_validate(asdict(data))
    return schema.model_dump_json(by_alias=True, exclude_none=True)


def decode_data(text: str) -> SpacedRepetitionData:
    schema = SpacedRepetitionSchema.model_validate_json(text)
    return SpacedRepetitionData(
        cards={index: _card(card) for index, card in schema.cards.items()},
        review_history=[_entry(entry) for entry in schema.review_history],
    )


def encode_stats(stats: StudyStats) -> str:
    schema = StudyStatsSchema.model_validate(asdict(stats))
    return schema.model_dump_json(by_alias=True, exclude_none=True)


def decode_stats(text: str) -> StudyStats:
    schema = StudyStatsSchema.model_validate_json(text)
    return StudyStats(
        daily_stats=[DailyStats(**day.model_dump()) for day in schema.daily_stats],
        **schema.model_dump(exclude={"daily_stats"}),
    )


def encode_bookmarks(bookmarks: Bookmarks) -> str:
    return BookmarksSchema.model_validate(asdict(bookmarks)).model_dump_json(by_alias=True)


def decode_bookmarks(text: str) -> Bookmarks:
    schema = BookmarksSchema.model_validate_json(text)
    return Bookmarks(**schema.model_dump())


def _card(schema: ReviewCardSchema) -> ReviewCard:
    return ReviewCard(**schema.model_dump())


def _entry(schema: ReviewHistoryEntrySchema) -> ReviewHistoryEntry:
    return ReviewHistoryEntry(
        prev_card=_card(schema.prev_card) if schema.prev_card else None,
        **schema.model_dump(exclude={"prev_card"}),
    )
