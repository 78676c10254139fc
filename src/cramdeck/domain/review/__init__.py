# Domain Review Package
from .models import (
    Quality,
    ReviewCard,
    ReviewHistoryEntry,
    ReviewStats,
    SpacedRepetitionData,
)

__all__ = [
    "Quality",
    "ReviewCard",
    "ReviewHistoryEntry",
    "ReviewStats",
    "SpacedRepetitionData",
]
