import pytest

from cramdeck.application.review.scheduler import (
    calculate_next_review,
    new_card,
    quality_from_correctness,
    quality_from_response,
    update_response_time,
)
from cramdeck.domain.constants import MS_PER_DAY
from cramdeck.domain.review.models import ReviewCard

NOW = 1_700_000_000_000


# --- Quality mapping ---


def test_quality_from_correctness():
    assert quality_from_correctness(False) == 1
    assert quality_from_correctness(False, hesitation=True) == 1
    assert quality_from_correctness(True) == 4
    assert quality_from_correctness(True, hesitation=True) == 3


@pytest.mark.parametrize(
    "correct, time_ms, expected",
    [
        (False, 5000, 0),  # fast wrong answer: blackout
        (False, 9000, 1),
        (True, 5000, 5),
        (True, 10000, 4),
        (True, 17000, 4),
        (True, 20000, 3),
        (True, 60000, 3),
    ],
)
def test_quality_from_response_default_baseline(correct, time_ms, expected):
    assert quality_from_response(correct, time_ms) == expected


def test_quality_from_response_uses_card_average():
    # 4s is slow for someone who usually answers in 2s
    assert quality_from_response(True, 4000, average_response_time_ms=2000) == 3
    assert quality_from_response(True, 900, average_response_time_ms=2000) == 5


# --- Scheduling ---


def test_first_exposure_synthesizes_default_card():
    card = calculate_next_review(None, 4, NOW)

    assert card.question_index == -1
    assert card.interval == 1
    assert card.repetitions == 1
    assert card.ease_factor == pytest.approx(2.5)
    assert card.next_review_date == NOW + MS_PER_DAY
    assert card.last_answered_correct is True
    assert card.last_review_date == NOW


def test_success_streak_interval_sequence():
    card = new_card(NOW, question_index=7)
    intervals = []
    repetitions = []

    for _ in range(3):
        before = card
        card = calculate_next_review(card, 4, NOW)
        intervals.append(card.interval)
        repetitions.append(card.repetitions)

    assert intervals == [1, 6, round(6 * before.ease_factor)]
    assert intervals[2] == 15
    assert repetitions == [1, 2, 3]
    assert card.question_index == 7


def test_failure_after_streak_resets():
    card = ReviewCard(question_index=3, ease_factor=2.6, interval=40, repetitions=5)

    failed = calculate_next_review(card, 1, NOW)

    assert failed.repetitions == 0
    assert failed.interval == 1
    assert failed.last_answered_correct is False
    assert failed.next_review_date == NOW + MS_PER_DAY
    assert failed.ease_factor == pytest.approx(2.6 - 0.54)


def test_input_card_not_mutated():
    card = ReviewCard(question_index=3, interval=6, repetitions=2)
    calculate_next_review(card, 5, NOW)
    assert card.interval == 6
    assert card.repetitions == 2


def test_ease_factor_adjustments():
    base = ReviewCard(question_index=0)
    assert calculate_next_review(base, 5, NOW).ease_factor == pytest.approx(2.6)
    assert calculate_next_review(base, 4, NOW).ease_factor == pytest.approx(2.5)
    assert calculate_next_review(base, 3, NOW).ease_factor == pytest.approx(2.36)
    assert calculate_next_review(base, 0, NOW).ease_factor == pytest.approx(1.7)


def test_repeated_blackouts_floor_ease_factor():
    card = None
    for _ in range(20):
        card = calculate_next_review(card, 0, NOW)
        assert card.ease_factor >= 1.3
        assert card.interval == 1
        assert card.repetitions == 0

    assert card.ease_factor == pytest.approx(1.3)


@pytest.mark.parametrize("quality", [0, 1, 2, 3, 4, 5])
def test_ease_floor_holds_for_every_quality(quality):
    card = ReviewCard(question_index=0, ease_factor=1.3, interval=10, repetitions=4)
    assert calculate_next_review(card, quality, NOW).ease_factor >= 1.3


def test_interval_rounds_half_up():
    # 5 * 2.5 = 12.5 rounds to 13, not 12
    card = ReviewCard(question_index=0, ease_factor=2.5, interval=5, repetitions=2)
    assert calculate_next_review(card, 4, NOW).interval == 13


def test_update_response_time_moving_average():
    card = new_card(NOW, 1)

    first = update_response_time(card, None, 5000)
    assert first.average_response_time_ms == pytest.approx(15000 * 0.7 + 5000 * 0.3)
    assert first.total_responses == 1

    second = update_response_time(first, first, 5000)
    assert second.average_response_time_ms == pytest.approx(
        first.average_response_time_ms * 0.7 + 1500
    )
    assert second.total_responses == 2


@pytest.mark.parametrize("average", [0, -250.0])
def test_quality_from_response_non_positive_average_uses_default(average):
    assert quality_from_response(True, 5000, average_response_time_ms=average) == 5
    assert quality_from_response(True, 20000, average_response_time_ms=average) == 3
    assert quality_from_response(False, 5000, average_response_time_ms=average) == 0
