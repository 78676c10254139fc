# Application Study Package
from .service import StudyStatsService, format_study_time, get_average_accuracy

__all__ = ["StudyStatsService", "format_study_time", "get_average_accuracy"]
