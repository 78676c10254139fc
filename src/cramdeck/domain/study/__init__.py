# Domain Study Package
from .models import DailyStats, StudyStats

__all__ = ["DailyStats", "StudyStats"]
