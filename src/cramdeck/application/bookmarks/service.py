"""
Per-question bookmarks, persisted through the BlobStore port.

Storage trouble degrades the same way as the review aggregate: an
unreadable blob loads as no bookmarks, a failed write is logged.
"""

import logging

from pydantic import ValidationError

from cramdeck.application.clock import Clock, system_clock
from cramdeck.application.codec import decode_bookmarks, encode_bookmarks
from cramdeck.domain.bookmarks.models import Bookmarks
from cramdeck.domain.constants import BOOKMARKS_STORAGE_KEY
from cramdeck.domain.ports import BlobStore, StorageError

logger = logging.getLogger(__name__)


class BookmarkService:
    def __init__(
        self,
        store: BlobStore,
        storage_key: str = BOOKMARKS_STORAGE_KEY,
        clock: Clock | None = None,
    ):
        self._store = store
        self.storage_key = storage_key
        self._clock = clock or system_clock

    def load(self) -> Bookmarks:
        try:
            raw = self._store.get(self.storage_key)
        except StorageError as e:
            logger.warning(f"Failed to read bookmarks '{self.storage_key}': {e}")
            return Bookmarks()

        if not raw:
            return Bookmarks()

        try:
            return decode_bookmarks(raw)
        except ValidationError as e:
            logger.warning(f"Discarding malformed bookmarks '{self.storage_key}': {e}")
            return Bookmarks()

    def save(self, bookmarks: Bookmarks) -> bool:
        try:
            self._store.set(self.storage_key, encode_bookmarks(bookmarks))
        except StorageError as e:
            logger.error(f"Failed to save bookmarks '{self.storage_key}': {e}")
            return False
        return True

    def is_bookmarked(self, question_index: int) -> bool:
        return question_index in self.load().question_indices

    def toggle_bookmark(self, question_index: int, now: int | None = None) -> bool:
        """
        Add the bookmark if absent, remove it if present.

        Returns:
            True if the question is bookmarked afterwards.
        """
        bookmarks = self.load()
        if question_index in bookmarks.question_indices:
            bookmarks.question_indices = [
                i for i in bookmarks.question_indices if i != question_index
            ]
            bookmarks.created_at.pop(question_index, None)
            added = False
        else:
            bookmarks.question_indices.append(question_index)
            bookmarks.created_at[question_index] = self._clock() if now is None else now
            added = True

        self.save(bookmarks)
        return added

    def get_bookmarked_indices(self) -> list[int]:
        return self.load().question_indices

    def get_bookmark_count(self) -> int:
        return len(self.load().question_indices)

    def clear_all_bookmarks(self) -> None:
        self.save(Bookmarks())
