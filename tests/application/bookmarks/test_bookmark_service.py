import json
from unittest.mock import MagicMock

import pytest

from cramdeck.application.bookmarks.service import BookmarkService
from cramdeck.domain.bookmarks.models import Bookmarks
from cramdeck.domain.constants import BOOKMARKS_STORAGE_KEY
from cramdeck.domain.ports import BlobStore, StorageError


@pytest.fixture
def bookmarks(store, clock):
    return BookmarkService(store, clock=clock)


def test_toggle_adds_then_removes(store, bookmarks, clock):
    assert bookmarks.toggle_bookmark(7) is True
    assert bookmarks.is_bookmarked(7)
    assert bookmarks.load().created_at == {7: clock.now}

    assert bookmarks.toggle_bookmark(7) is False
    assert not bookmarks.is_bookmarked(7)
    assert bookmarks.load() == Bookmarks()


def test_indices_keep_insertion_order(bookmarks):
    for index in (5, 2, 9):
        bookmarks.toggle_bookmark(index)
    bookmarks.toggle_bookmark(2)

    assert bookmarks.get_bookmarked_indices() == [5, 9]
    assert bookmarks.get_bookmark_count() == 2


def test_blob_layout(store, bookmarks, clock):
    bookmarks.toggle_bookmark(3)

    blob = json.loads(store.get(BOOKMARKS_STORAGE_KEY))
    assert blob == {"questionIndices": [3], "createdAt": {"3": clock.now}}


def test_clear_all_bookmarks(bookmarks):
    bookmarks.toggle_bookmark(1)
    bookmarks.clear_all_bookmarks()
    assert bookmarks.get_bookmark_count() == 0


@pytest.mark.parametrize("raw", ["", "[1, 2]", "{bad", '{"questionIndices": ["x"]}'])
def test_malformed_blob_is_empty(store, bookmarks, raw):
    store.set(BOOKMARKS_STORAGE_KEY, raw)
    assert bookmarks.load() == Bookmarks()
    assert bookmarks.is_bookmarked(1) is False


def test_storage_failures_degrade(clock):
    broken = MagicMock(spec=BlobStore)
    broken.get.side_effect = StorageError("gone")
    broken.set.side_effect = StorageError("gone")
    service = BookmarkService(broken, clock=clock)

    assert service.get_bookmarked_indices() == []
    assert service.toggle_bookmark(4) is True
    broken.set.assert_called_once()
