"""
SM-2 scheduling math.

This is a pure computation module with no I/O. The current time is
always passed in by the caller.
"""

import math
from dataclasses import replace

from cramdeck.domain.constants import (
    DEFAULT_EASE_FACTOR,
    DEFAULT_RESPONSE_TIME_MS,
    MIN_EASE_FACTOR,
    MS_PER_DAY,
    PASSING_QUALITY,
    RESPONSE_TIME_DECAY,
    SECOND_INTERVAL_DAYS,
)
from cramdeck.domain.review.models import Quality, ReviewCard


def quality_from_correctness(correct: bool, hesitation: bool = False) -> Quality:
    """
    Map a plain right/wrong signal onto the SM-2 quality scale.

    Only 1, 3 and 4 are produced here; the scheduler itself accepts 0-5.
    """
    if not correct:
        return 1
    if hesitation:
        return 3
    return 4


def quality_from_response(
    correct: bool,
    response_time_ms: float,
    average_response_time_ms: float = DEFAULT_RESPONSE_TIME_MS,
) -> Quality:
    """
    Grade an answer by correctness and speed relative to the card's
    running average response time.
    """
    if average_response_time_ms <= 0:
        average_response_time_ms = DEFAULT_RESPONSE_TIME_MS

    if not correct:
        # A fast wrong answer means nothing was recalled at all
        if response_time_ms < average_response_time_ms * 0.5:
            return 0
        return 1

    ratio = response_time_ms / average_response_time_ms
    if ratio < 0.5:
        return 5
    if ratio < 1.2:
        return 4
    return 3


def new_card(now: int, question_index: int = -1) -> ReviewCard:
    """Default state for a question that has never been answered."""
    return ReviewCard(
        question_index=question_index,
        ease_factor=DEFAULT_EASE_FACTOR,
        interval=0,
        repetitions=0,
        next_review_date=now,
        last_answered_correct=False,
        last_review_date=now,
    )


def calculate_next_review(card: ReviewCard | None, quality: int, now: int) -> ReviewCard:
    """
    Compute the card state after an answer of the given quality.

    A None card is treated as a first exposure; the synthesized card has
    question_index -1 and the caller must set the real index.

    Returns:
        A new ReviewCard. The input card is not modified.
    """
    if card is None:
        card = new_card(now)

    ease_factor = card.ease_factor
    interval = card.interval
    repetitions = card.repetitions

    if quality < PASSING_QUALITY:
        repetitions = 0
        interval = 1
    else:
        if repetitions == 0:
            interval = 1
        elif repetitions == 1:
            interval = SECOND_INTERVAL_DAYS
        else:
            interval = _round_half_up(interval * ease_factor)
        repetitions += 1

    # Applied on failures too, so repeated misses keep lowering the ease
    miss = 5 - quality
    ease_factor = max(MIN_EASE_FACTOR, ease_factor + (0.1 - miss * (0.08 + miss * 0.02)))

    return replace(
        card,
        ease_factor=ease_factor,
        interval=interval,
        repetitions=repetitions,
        next_review_date=now + interval * MS_PER_DAY,
        last_answered_correct=quality >= PASSING_QUALITY,
        last_review_date=now,
    )


def update_response_time(
    card: ReviewCard, previous: ReviewCard | None, response_time_ms: float
) -> ReviewCard:
    """
    Fold a new response time sample into the card's moving average.

    The average is seeded from `previous` so that a recomputed card does
    not double count its own sample.
    """
    prev_avg = DEFAULT_RESPONSE_TIME_MS
    prev_count = 0
    if previous is not None:
        if previous.average_response_time_ms is not None:
            prev_avg = previous.average_response_time_ms
        prev_count = previous.total_responses or 0

    return replace(
        card,
        average_response_time_ms=prev_avg * RESPONSE_TIME_DECAY
        + response_time_ms * (1 - RESPONSE_TIME_DECAY),
        total_responses=prev_count + 1,
    )


def _round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; intervals round .5 upward
    return math.floor(value + 0.5)
