# Infrastructure Storage Adapters Package
from .file_store import FileBlobStore
from .memory_store import InMemoryBlobStore
from .sqlite_store import SqliteBlobStore

__all__ = ["FileBlobStore", "InMemoryBlobStore", "SqliteBlobStore"]
