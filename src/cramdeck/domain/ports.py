"""
Ports (interfaces) for persistence.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod


class StorageError(Exception):
    """Raised by a BlobStore when the underlying storage cannot be read or written."""


class QuotaExceededError(StorageError):
    """Raised when a write is rejected because the store is full."""


class BlobStore(ABC):
    """
    Port for a named-slot text store.

    Implementations:
        - InMemoryBlobStore: Process-local dict, used in tests and for dry runs.
        - FileBlobStore: One JSON file per key inside a data directory.
        - SqliteBlobStore: A key/value table in a SQLite database.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """
        Read the blob stored under `key`.

        Returns:
            The stored text, or None if nothing is stored.

        Raises:
            StorageError: If the storage could not be read.
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Overwrite the blob stored under `key`.

        Raises:
            StorageError: If the write failed.
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """
        Remove the blob stored under `key`. Missing keys are ignored.

        Raises:
            StorageError: If the removal failed.
        """
        pass
