"""
Usage metrics: per-session word counts, speaking rate and time saved.
"""

from t2.metrics.formatter import StatsFormatter, format_duration, format_duration_short
from t2.metrics.manager import MetricsManager
from t2.metrics.models import DailyMetrics, SessionMetrics, TotalMetrics, UserSettings
from t2.metrics.storage import MetricsStorage

__all__ = [
    "DailyMetrics",
    "MetricsManager",
    "MetricsStorage",
    "SessionMetrics",
    "StatsFormatter",
    "TotalMetrics",
    "UserSettings",
    "format_duration",
    "format_duration_short",
]
