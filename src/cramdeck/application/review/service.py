"""
Review Service: Application layer orchestrator.

Owns the load-modify-store cycle around the pure scheduling math.
"""

import logging
from dataclasses import replace

from pydantic import ValidationError

from cramdeck.application.clock import Clock, system_clock
from cramdeck.application.codec import decode_data, encode_data
from cramdeck.domain.constants import HISTORY_LIMIT, REVIEW_STORAGE_KEY
from cramdeck.domain.ports import BlobStore, StorageError
from cramdeck.domain.review.models import (
    ReviewCard,
    ReviewHistoryEntry,
    ReviewStats,
    SpacedRepetitionData,
)

from .queries import get_cards_needing_review, get_due_cards, get_failed_cards, get_stats
from .scheduler import (
    calculate_next_review,
    quality_from_correctness,
    quality_from_response,
    update_response_time,
)

logger = logging.getLogger(__name__)


class ReviewService:
    """
    Application service for recording answers against a persisted
    SpacedRepetitionData aggregate.

    Every mutating call loads the whole aggregate, changes it in memory
    and writes it back whole. There is no locking: two writers sharing a
    storage key race, and the last save wins. Callers are expected to
    issue calls for one key sequentially.

    Storage failures never propagate. An unreadable or malformed blob
    loads as an empty aggregate, and a failed save is logged while the
    in-memory result is still returned.
    """

    def __init__(
        self,
        store: BlobStore,
        storage_key: str = REVIEW_STORAGE_KEY,
        history_limit: int = HISTORY_LIMIT,
        clock: Clock | None = None,
    ):
        """
        Args:
            store: The storage port holding the aggregate blob.
            storage_key: Slot name, already scoped if scoping is in use.
            history_limit: Maximum number of retained history entries.
            clock: Epoch-ms time source; defaults to the system clock.
        """
        self._store = store
        self.storage_key = storage_key
        self.history_limit = history_limit
        self._clock = clock or system_clock

    def now(self) -> int:
        return self._clock()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> SpacedRepetitionData:
        """
        Load the aggregate, or an empty one if it is missing or unreadable.
        """
        try:
            raw = self._store.get(self.storage_key)
        except StorageError as e:
            logger.warning(f"Failed to read review data '{self.storage_key}': {e}")
            return SpacedRepetitionData()

        if not raw:
            return SpacedRepetitionData()

        try:
            return decode_data(raw)
        except ValidationError as e:
            logger.warning(f"Discarding malformed review data '{self.storage_key}': {e}")
            return SpacedRepetitionData()

    def save(self, data: SpacedRepetitionData) -> bool:
        """
        Overwrite the stored aggregate.

        Returns:
            True if the write succeeded, False if it was swallowed.
        """
        try:
            self._store.set(self.storage_key, encode_data(data))
        except StorageError as e:
            logger.error(f"Failed to save review data '{self.storage_key}': {e}")
            return False
        return True

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def record_answer(
        self,
        question_index: int,
        correct: bool,
        response_time_ms: int | None = None,
        quality: int | None = None,
        now: int | None = None,
    ) -> SpacedRepetitionData:
        """
        Schedule the next review for a question after an answer.

        Quality is taken from `quality` if given, otherwise derived from
        the response time when one is supplied, otherwise from plain
        correctness.

        Returns:
            The updated aggregate, whether or not it persisted.
        """
        now = self.now() if now is None else now
        data = self.load()
        existing = data.cards.get(question_index)
        timed = response_time_ms is not None and response_time_ms > 0

        if quality is None:
            if timed:
                average = existing.average_response_time_ms if existing else None
                if average is None:
                    quality = quality_from_response(correct, response_time_ms)
                else:
                    quality = quality_from_response(correct, response_time_ms, average)
            else:
                quality = quality_from_correctness(correct)

        updated = calculate_next_review(existing, quality, now)
        updated.question_index = question_index
        if timed:
            updated = update_response_time(updated, existing, response_time_ms)

        data.cards[question_index] = updated
        data.review_history.append(
            ReviewHistoryEntry(
                question_index=question_index,
                timestamp=now,
                correct=correct,
                response_time_ms=response_time_ms,
                quality=quality,
                prev_card=replace(existing) if existing else None,
            )
        )
        if len(data.review_history) > self.history_limit:
            data.review_history = data.review_history[-self.history_limit :]

        logger.debug(
            f"Question {question_index}: quality={quality} interval={updated.interval}d "
            f"ease={updated.ease_factor:.2f}"
        )
        self.save(data)
        return data

    def override_last_review_quality(
        self, question_index: int, quality: int, now: int | None = None
    ) -> SpacedRepetitionData | None:
        """
        Regrade the most recent answer to a question.

        The card is recomputed from the snapshot taken before that answer.
        A first-exposure answer has no snapshot, so only its recorded
        quality changes.

        Returns:
            The updated aggregate, or None if the question has no entry in
            the retained history (never answered, or trimmed by the history
            cap). Nothing is written in that case.
        """
        now = self.now() if now is None else now
        data = self.load()
        history = data.review_history

        position = next(
            (
                i
                for i in range(len(history) - 1, -1, -1)
                if history[i].question_index == question_index
            ),
            None,
        )
        if position is None:
            logger.info(f"No answer recorded for question {question_index}; nothing to override")
            return None

        entry = history[position]
        if entry.prev_card is not None:
            base = replace(entry.prev_card, question_index=question_index)
            updated = calculate_next_review(base, quality, now)
            updated.question_index = question_index
            if entry.response_time_ms is not None and entry.response_time_ms > 0:
                updated = update_response_time(updated, base, entry.response_time_ms)
            data.cards[question_index] = updated

        history[position] = replace(entry, quality=quality)
        self.save(data)
        return data

    def clear_all_data(self) -> None:
        """Erase the stored aggregate."""
        try:
            self._store.delete(self.storage_key)
        except StorageError as e:
            logger.error(f"Failed to clear review data '{self.storage_key}': {e}")
            return
        logger.info(f"Cleared review data '{self.storage_key}'")

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def due_cards(self, now: int | None = None) -> list[ReviewCard]:
        return get_due_cards(self.load(), self.now() if now is None else now)

    def failed_cards(self) -> list[ReviewCard]:
        return get_failed_cards(self.load())

    def review_queue(self, limit: int | None = None, now: int | None = None) -> list[ReviewCard]:
        return get_cards_needing_review(self.load(), self.now() if now is None else now, limit)

    def stats(self, now: int | None = None) -> ReviewStats:
        return get_stats(self.load(), self.now() if now is None else now)
