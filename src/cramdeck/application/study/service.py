"""
Study time and accuracy tracking.

Persists a StudyStats blob through the same BlobStore port as the
review aggregate and degrades the same way on storage trouble.
"""

import logging
from datetime import date, datetime, timedelta, timezone

from pydantic import ValidationError

from cramdeck.application.clock import Clock, system_clock
from cramdeck.application.codec import decode_stats, encode_stats
from cramdeck.domain.constants import (
    DAILY_STATS_RETENTION_DAYS,
    MAX_STUDY_INCREMENT_MS,
    SESSION_IDLE_MS,
    STATS_STORAGE_KEY,
)
from cramdeck.domain.ports import BlobStore, StorageError
from cramdeck.domain.study.models import DailyStats, StudyStats

logger = logging.getLogger(__name__)


def day_of(timestamp_ms: int) -> date:
    """UTC calendar day of an epoch-ms timestamp."""
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).date()


def format_study_time(ms: int) -> str:
    total_minutes = ms // 60000
    hours, minutes = divmod(total_minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def get_average_accuracy(daily_stats: list[DailyStats]) -> float:
    """Percentage of correct answers across the given days; 0 if none."""
    questions = sum(d.questions_answered for d in daily_stats)
    correct = sum(d.correct_answers for d in daily_stats)
    if questions == 0:
        return 0.0
    return correct / questions * 100


class StudyStatsService:
    """
    Tracks sessions, study time and per-day answer counts.

    Idle gaps are capped: at most two minutes of study time is credited
    between two activity events, and five idle minutes end a session.
    """

    def __init__(
        self,
        store: BlobStore,
        storage_key: str = STATS_STORAGE_KEY,
        clock: Clock | None = None,
    ):
        self._store = store
        self.storage_key = storage_key
        self._clock = clock or system_clock

    def load(self) -> StudyStats:
        try:
            raw = self._store.get(self.storage_key)
        except StorageError as e:
            logger.warning(f"Failed to read study stats '{self.storage_key}': {e}")
            return StudyStats()

        if not raw:
            return StudyStats()

        try:
            return decode_stats(raw)
        except ValidationError as e:
            logger.warning(f"Discarding malformed study stats '{self.storage_key}': {e}")
            return StudyStats()

    def save(self, stats: StudyStats) -> bool:
        try:
            self._store.set(self.storage_key, encode_stats(stats))
        except StorageError as e:
            logger.error(f"Failed to save study stats '{self.storage_key}': {e}")
            return False
        return True

    def start_session(self, now: int | None = None) -> StudyStats:
        now = self._clock() if now is None else now
        stats = self.load()

        if self._session_lapsed(stats, now):
            self._open_session(stats, now)

        stats.last_activity_timestamp = now
        self.save(stats)
        return stats

    def record_study_time(self, now: int | None = None) -> StudyStats:
        now = self._clock() if now is None else now
        stats = self.load()
        self._credit_time(stats, now)
        self.save(stats)
        return stats

    def record_question_answered(
        self, correct: bool, streak: int, now: int | None = None
    ) -> StudyStats:
        """
        Count an answer toward today's totals.

        Args:
            correct: Whether the answer was right.
            streak: The caller's current in-session correct streak.
        """
        now = self._clock() if now is None else now
        stats = self.load()
        self._credit_time(stats, now)
        self._count_answer(stats, correct, streak, now)
        self.save(stats)
        return stats

    def track_answer(self, correct: bool, streak: int, now: int | None = None) -> StudyStats:
        """
        Count an answer, opening a session first if none is active.

        The gap since the previous answer in the same session is credited
        as study time.
        """
        now = self._clock() if now is None else now
        stats = self.load()
        if self._session_lapsed(stats, now):
            self._open_session(stats, now)
            stats.last_activity_timestamp = now
        else:
            self._credit_time(stats, now)
        self._count_answer(stats, correct, streak, now)
        self.save(stats)
        return stats

    def end_session(self, now: int | None = None) -> StudyStats:
        now = self._clock() if now is None else now
        stats = self.load()
        self._credit_time(stats, now)
        stats.current_session_start = None
        self.save(stats)
        return stats

    def get_recent_stats(self, days: int, now: int | None = None) -> list[DailyStats]:
        """Per-day entries for the last `days` days, oldest first."""
        now = self._clock() if now is None else now
        cutoff = (day_of(now) - timedelta(days=days)).isoformat()
        recent = [d for d in self.load().daily_stats if d.date >= cutoff]
        return sorted(recent, key=lambda d: d.date)

    def get_study_streak(self, now: int | None = None) -> int:
        """
        Number of consecutive days with at least one answer. The streak
        is only alive if the latest active day is today or yesterday.
        """
        now = self._clock() if now is None else now
        daily = sorted(self.load().daily_stats, key=lambda d: d.date, reverse=True)
        if not daily:
            return 0

        today = day_of(now)
        latest = date.fromisoformat(daily[0].date)
        if latest not in (today, today - timedelta(days=1)):
            return 0

        streak = 0
        expected = latest
        for day in daily:
            gap = (expected - date.fromisoformat(day.date)).days
            if gap == 0 and day.questions_answered > 0:
                streak += 1
                expected -= timedelta(days=1)
            elif gap > 0:
                break
        return streak

    def clear_stats(self) -> None:
        self.save(StudyStats())

    def _session_lapsed(self, stats: StudyStats, now: int) -> bool:
        if stats.current_session_start is None:
            return True
        return (
            stats.last_activity_timestamp is not None
            and now - stats.last_activity_timestamp > SESSION_IDLE_MS
        )

    def _open_session(self, stats: StudyStats, now: int) -> None:
        stats.current_session_start = now
        self._today(stats, now).sessions += 1

    def _count_answer(self, stats: StudyStats, correct: bool, streak: int, now: int) -> None:
        today = self._today(stats, now)
        today.questions_answered += 1
        stats.total_questions_answered += 1
        if correct:
            today.correct_answers += 1
            stats.total_correct += 1
        stats.longest_streak = max(stats.longest_streak, streak)

    def _credit_time(self, stats: StudyStats, now: int) -> None:
        if stats.last_activity_timestamp is not None and stats.current_session_start is not None:
            elapsed = min(now - stats.last_activity_timestamp, MAX_STUDY_INCREMENT_MS)
            self._today(stats, now).study_time_ms += elapsed
            stats.total_study_time_ms += elapsed
        stats.last_activity_timestamp = now

    def _today(self, stats: StudyStats, now: int) -> DailyStats:
        today = day_of(now).isoformat()
        for entry in stats.daily_stats:
            if entry.date == today:
                return entry

        entry = DailyStats(date=today)
        stats.daily_stats.append(entry)
        cutoff = (day_of(now) - timedelta(days=DAILY_STATS_RETENTION_DAYS)).isoformat()
        stats.daily_stats = [d for d in stats.daily_stats if d.date >= cutoff]
        return entry
