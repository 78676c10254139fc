"""Centralized constants for cramdeck.

All tuning numbers and storage defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Time ----------
MS_PER_DAY = 24 * 60 * 60 * 1000
MS_PER_MINUTE = 60 * 1000

# ---------- SM-2 ----------
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
PASSING_QUALITY = 3
SECOND_INTERVAL_DAYS = 6

# ---------- Response time ----------
DEFAULT_RESPONSE_TIME_MS = 15000
RESPONSE_TIME_DECAY = 0.7  # weight kept by the previous average

# ---------- Persistence ----------
REVIEW_STORAGE_KEY = "medcram_spaced_repetition"
STATS_STORAGE_KEY = "medcram_study_stats"
BOOKMARKS_STORAGE_KEY = "medcram_bookmarks"
HISTORY_LIMIT = 1000

# ---------- Study stats ----------
SESSION_IDLE_MS = 5 * MS_PER_MINUTE
MAX_STUDY_INCREMENT_MS = 2 * MS_PER_MINUTE
DAILY_STATS_RETENTION_DAYS = 90
