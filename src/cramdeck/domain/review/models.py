"""
Domain models for the spaced-repetition scheduler.

These are pure data structures with no I/O or external dependencies.
Timestamps are integer epoch milliseconds throughout.
"""

from dataclasses import dataclass, field
from typing import Literal

from cramdeck.domain.constants import DEFAULT_EASE_FACTOR

# SM-2 recall quality:
# 0: complete blackout
# 1: incorrect, but recognized the answer when shown
# 2: incorrect, but the answer felt familiar
# 3: correct after significant effort
# 4: correct with some hesitation
# 5: perfect, instant recall
Quality = Literal[0, 1, 2, 3, 4, 5]


@dataclass
class ReviewCard:
    """
    Memory state for a single question.

    Attributes:
        question_index: Externally assigned question identifier.
        ease_factor: Interval growth multiplier, never below 1.3.
        interval: Days until the next review (0 for an unseen card).
        repetitions: Consecutive passing answers since the last failure.
        next_review_date: Epoch ms when the card becomes due.
        last_answered_correct: Whether the latest answer had quality >= 3.
        last_review_date: Epoch ms of the latest answer.
        average_response_time_ms: Moving average of answer times, if tracked.
        total_responses: Number of timed answers folded into the average.
    """

    question_index: int
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval: int = 0
    repetitions: int = 0
    next_review_date: int = 0
    last_answered_correct: bool = False
    last_review_date: int = 0
    average_response_time_ms: float | None = None
    total_responses: int | None = None


@dataclass
class ReviewHistoryEntry:
    """
    A single answer event. Entries are never edited except for an
    explicit quality override.
    """

    question_index: int
    timestamp: int
    correct: bool
    response_time_ms: int | None = None
    quality: int | None = None
    prev_card: ReviewCard | None = None  # Card before this answer; None on first exposure


@dataclass
class SpacedRepetitionData:
    """
    Aggregate root: every card keyed by question index plus the bounded
    answer log. Loaded and saved as a whole.
    """

    cards: dict[int, ReviewCard] = field(default_factory=dict)
    review_history: list[ReviewHistoryEntry] = field(default_factory=list)


@dataclass(frozen=True)
class ReviewStats:
    """
    Aggregate counters over an aggregate's cards.

    `struggling` and `due_now` overlap with the other buckets.
    """

    total_reviewed: int
    mastered: int
    learning: int
    struggling: int
    due_now: int
