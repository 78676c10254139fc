"""
Storage Factory
Centralizes the logic for selecting the BlobStore adapter and wiring services.
"""

import logging

from cramdeck.application.bookmarks.service import BookmarkService
from cramdeck.application.config import AppConfig
from cramdeck.application.review.service import ReviewService
from cramdeck.application.study.service import StudyStatsService
from cramdeck.domain.ports import BlobStore
from cramdeck.infrastructure.adapters.file_store import FileBlobStore
from cramdeck.infrastructure.adapters.memory_store import InMemoryBlobStore
from cramdeck.infrastructure.adapters.sqlite_store import SqliteBlobStore
from cramdeck.infrastructure.keys import scoped_key

logger = logging.getLogger(__name__)

SQLITE_FILENAME = "cramdeck.sqlite3"


def get_blob_store(config: AppConfig) -> BlobStore:
    """
    Returns the BlobStore implementation selected by config.backend.
    """
    if config.backend == "memory":
        return InMemoryBlobStore()

    if config.backend == "sqlite":
        return SqliteBlobStore(config.data_dir / SQLITE_FILENAME)

    return FileBlobStore(config.data_dir)


def get_review_service(config: AppConfig, store: BlobStore | None = None) -> ReviewService:
    store = store or get_blob_store(config)
    key = scoped_key(config.review_key, config.scope)
    logger.debug(f"Review service using {type(store).__name__} key '{key}'")
    return ReviewService(store, storage_key=key, history_limit=config.history_limit)


def get_study_stats_service(
    config: AppConfig, store: BlobStore | None = None
) -> StudyStatsService:
    store = store or get_blob_store(config)
    return StudyStatsService(store, storage_key=scoped_key(config.stats_key, config.scope))


def get_bookmark_service(config: AppConfig, store: BlobStore | None = None) -> BookmarkService:
    store = store or get_blob_store(config)
    return BookmarkService(store, storage_key=scoped_key(config.bookmarks_key, config.scope))
