from unittest.mock import MagicMock

import pytest

from cramdeck.application.codec import decode_data
from cramdeck.application.review.service import ReviewService
from cramdeck.domain.constants import MS_PER_DAY, REVIEW_STORAGE_KEY
from cramdeck.domain.ports import BlobStore, QuotaExceededError, StorageError
from cramdeck.domain.review.models import SpacedRepetitionData

# --- Loading ---


def test_load_missing_blob_is_empty(service):
    assert service.load() == SpacedRepetitionData()


@pytest.mark.parametrize(
    "raw",
    ["", "not json", "null", "[]", '{"cards": {"x": {}}}', '{"cards": {"1": {"questionIndex": "a"}}}'],
)
def test_load_malformed_blob_is_empty(store, service, raw):
    store.set(REVIEW_STORAGE_KEY, raw)
    assert service.load() == SpacedRepetitionData(cards={}, review_history=[])


def test_load_read_failure_is_empty(clock):
    broken = MagicMock(spec=BlobStore)
    broken.get.side_effect = StorageError("disk on fire")
    service = ReviewService(broken, clock=clock)

    assert service.load() == SpacedRepetitionData()


# --- Recording ---


def test_record_answer_creates_card_and_persists(store, service, clock):
    data = service.record_answer(12, correct=True)

    card = data.cards[12]
    assert card.question_index == 12
    assert card.interval == 1
    assert card.repetitions == 1
    assert card.next_review_date == clock.now + MS_PER_DAY

    entry = data.review_history[-1]
    assert entry.question_index == 12
    assert entry.timestamp == clock.now
    assert entry.correct is True
    assert entry.quality == 4
    assert entry.prev_card is None

    assert decode_data(store.get(REVIEW_STORAGE_KEY)) == data


def test_record_answer_wrong_uses_quality_one(service):
    data = service.record_answer(3, correct=False)
    assert data.review_history[-1].quality == 1
    assert data.cards[3].last_answered_correct is False
    assert data.cards[3].ease_factor == pytest.approx(2.5 - 0.54)


def test_record_answer_streak_across_calls(service, clock):
    for _ in range(3):
        data = service.record_answer(5, correct=True)
        clock.advance_days(1)

    assert data.cards[5].interval == 15
    assert data.cards[5].repetitions == 3
    assert data.review_history[-1].prev_card.repetitions == 2


def test_record_answer_with_response_time(service):
    data = service.record_answer(1, correct=True, response_time_ms=3000)

    card = data.cards[1]
    assert data.review_history[-1].quality == 5
    assert data.review_history[-1].response_time_ms == 3000
    assert card.total_responses == 1
    assert card.average_response_time_ms == pytest.approx(15000 * 0.7 + 3000 * 0.3)


def test_record_answer_zero_response_time_falls_back(service):
    data = service.record_answer(1, correct=True, response_time_ms=0)
    assert data.review_history[-1].quality == 4
    assert data.cards[1].total_responses is None


def test_record_answer_explicit_quality_wins(service):
    data = service.record_answer(1, correct=True, response_time_ms=3000, quality=3)
    assert data.review_history[-1].quality == 3
    assert data.cards[1].ease_factor == pytest.approx(2.36)


def test_history_capped_oldest_first(store, clock):
    service = ReviewService(store, clock=clock)
    for i in range(1005):
        clock.now += 1
        service.record_answer(i, correct=i % 2 == 0)

    history = service.load().review_history
    assert len(history) == 1000
    assert [e.question_index for e in history] == list(range(5, 1005))
    assert all(a.timestamp < b.timestamp for a, b in zip(history, history[1:]))


def test_custom_history_limit(store, clock):
    service = ReviewService(store, history_limit=3, clock=clock)
    for i in range(5):
        data = service.record_answer(i, correct=True)
    assert [e.question_index for e in data.review_history] == [2, 3, 4]
    assert len(data.cards) == 5


def test_write_failure_is_swallowed(clock):
    broken = MagicMock(spec=BlobStore)
    broken.get.return_value = None
    broken.set.side_effect = QuotaExceededError("full")
    service = ReviewService(broken, clock=clock)

    data = service.record_answer(8, correct=True)

    assert data.cards[8].repetitions == 1
    assert len(data.review_history) == 1
    broken.set.assert_called_once()


def test_save_reports_failure(clock):
    broken = MagicMock(spec=BlobStore)
    broken.set.side_effect = StorageError("read-only")
    service = ReviewService(broken, clock=clock)
    assert service.save(SpacedRepetitionData()) is False


# --- Override ---


def test_override_recomputes_from_previous_snapshot(service, clock):
    service.record_answer(4, correct=True)
    clock.advance_days(1)
    service.record_answer(4, correct=True)
    second_answer_at = clock.now
    clock.advance_days(1)

    data = service.override_last_review_quality(4, 1)

    card = data.cards[4]
    assert card.repetitions == 0
    assert card.interval == 1
    assert card.last_answered_correct is False
    assert data.review_history[-1].quality == 1
    assert data.review_history[-1].timestamp == second_answer_at
    assert service.load() == data


def test_override_first_exposure_only_relabels(service):
    before = service.record_answer(2, correct=True).cards[2]

    data = service.override_last_review_quality(2, 5)

    assert data.cards[2] == before
    assert data.review_history[-1].quality == 5


def test_override_targets_latest_entry_for_question(service):
    service.record_answer(1, correct=True)
    service.record_answer(1, correct=True)
    service.record_answer(2, correct=True)

    data = service.override_last_review_quality(1, 0)

    assert [e.quality for e in data.review_history] == [4, 0, 4]


def test_override_unknown_question_does_not_write(clock):
    store = MagicMock(spec=BlobStore)
    store.get.return_value = None
    service = ReviewService(store, clock=clock)

    data = service.override_last_review_quality(99, 3)

    assert data is None
    store.set.assert_not_called()


def test_override_trimmed_history_reports_missing(store, clock):
    service = ReviewService(store, history_limit=2, clock=clock)
    service.record_answer(1, correct=True)
    service.record_answer(1, correct=True)
    service.record_answer(2, correct=True)
    before = service.record_answer(3, correct=True)
    saved = store.get(REVIEW_STORAGE_KEY)

    assert service.override_last_review_quality(1, 0) is None

    assert store.get(REVIEW_STORAGE_KEY) == saved
    assert service.load().cards[1] == before.cards[1]


# --- Clear & views ---


def test_clear_all_data(store, service):
    service.record_answer(1, correct=True)
    service.clear_all_data()

    assert store.get(REVIEW_STORAGE_KEY) is None
    assert service.load() == SpacedRepetitionData()


def test_clear_failure_is_swallowed(clock):
    broken = MagicMock(spec=BlobStore)
    broken.delete.side_effect = StorageError("locked")
    ReviewService(broken, clock=clock).clear_all_data()
    broken.delete.assert_called_once_with(REVIEW_STORAGE_KEY)


def test_service_views_use_clock(service, clock):
    service.record_answer(1, correct=False)
    service.record_answer(2, correct=True)

    assert service.due_cards() == []
    assert [c.question_index for c in service.review_queue()] == [1]
    assert [c.question_index for c in service.failed_cards()] == [1]

    clock.advance_days(1)
    assert [c.question_index for c in service.due_cards()] == [1, 2]
    assert [c.question_index for c in service.review_queue()] == [1, 2]
    stats = service.stats()
    assert stats.due_now == 2
    assert stats.struggling == 1
    assert stats.learning == 1


def test_scoped_keys_are_independent(store, clock):
    a = ReviewService(store, storage_key=f"{REVIEW_STORAGE_KEY}:a", clock=clock)
    b = ReviewService(store, storage_key=f"{REVIEW_STORAGE_KEY}:b", clock=clock)

    a.record_answer(1, correct=True)

    assert 1 in a.load().cards
    assert b.load().cards == {}
