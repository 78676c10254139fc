# Application Review Package
from .queries import (
    current_streak,
    get_cards_needing_review,
    get_due_cards,
    get_failed_cards,
    get_stats,
)
from .scheduler import (
    calculate_next_review,
    quality_from_correctness,
    quality_from_response,
)
from .service import ReviewService

__all__ = [
    "calculate_next_review",
    "quality_from_correctness",
    "quality_from_response",
    "get_due_cards",
    "get_failed_cards",
    "get_cards_needing_review",
    "get_stats",
    "current_streak",
    "ReviewService",
]
