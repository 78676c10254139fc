from cramdeck.domain.ports import BlobStore


class InMemoryBlobStore(BlobStore):
    """
    Process-local BlobStore. Nothing survives the process.
    """

    def __init__(self, initial: dict[str, str] | None = None):
        self.blobs: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.blobs.get(key)

    def set(self, key: str, value: str) -> None:
        self.blobs[key] = value

    def delete(self, key: str) -> None:
        self.blobs.pop(key, None)
