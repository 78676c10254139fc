"""
Domain models for study-time and accuracy tracking.
"""

from dataclasses import dataclass, field


@dataclass
class DailyStats:
    date: str  # YYYY-MM-DD
    questions_answered: int = 0
    correct_answers: int = 0
    study_time_ms: int = 0
    sessions: int = 0


@dataclass
class StudyStats:
    """
    Lifetime study counters plus a rolling window of per-day entries.
    """

    daily_stats: list[DailyStats] = field(default_factory=list)
    total_questions_answered: int = 0
    total_correct: int = 0
    total_study_time_ms: int = 0
    longest_streak: int = 0
    current_session_start: int | None = None
    last_activity_timestamp: int | None = None
