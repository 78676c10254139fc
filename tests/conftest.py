import pytest

from cramdeck.application.review.service import ReviewService
from cramdeck.infrastructure.adapters.memory_store import InMemoryBlobStore

# 2024-03-10 12:00:00 UTC
NOW = 1710072000000


class FakeClock:
    """Settable epoch-ms clock."""

    def __init__(self, now: int = NOW):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance_days(self, days: float) -> None:
        self.now += int(days * 24 * 60 * 60 * 1000)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryBlobStore()


@pytest.fixture
def service(store, clock):
    return ReviewService(store, clock=clock)


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config/data
    monkeypatch.setenv("HOME", str(home))
    for var in ("CRAMDECK_BACKEND", "CRAMDECK_DATA_DIR", "CRAMDECK_SCOPE", "CRAMDECK_HISTORY_LIMIT"):
        monkeypatch.delenv(var, raising=False)
    return home
