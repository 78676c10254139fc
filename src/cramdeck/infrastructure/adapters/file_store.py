"""
File Blob Store: Infrastructure adapter keeping one JSON file per key.
"""

import errno
import logging
import os
import tempfile
from pathlib import Path
from urllib.parse import quote

from cramdeck.domain.ports import BlobStore, QuotaExceededError, StorageError

logger = logging.getLogger(__name__)

_QUOTA_ERRNOS = {errno.ENOSPC, errno.EDQUOT}


class FileBlobStore(BlobStore):
    """
    Stores each blob as `<data_dir>/<quoted key>.json`.

    Writes go to a temporary file in the same directory and are moved
    into place with os.replace, so readers never see a partial blob.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)

    def path_for(self, key: str) -> Path:
        # Keys may contain ':' (scoped keys), which is not portable in filenames
        return self.data_dir / f"{quote(key, safe='')}.json"

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Could not read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        tmp_name = None
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.data_dir, prefix=".tmp-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            if e.errno in _QUOTA_ERRNOS:
                raise QuotaExceededError(f"No space left writing {path}") from e
            raise StorageError(f"Could not write {path}: {e}") from e
        logger.debug(f"Wrote {len(value)} chars to {path}")

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Could not delete {path}: {e}") from e
