"""
Metrics Manager
Turns a finished session into word count, speaking rate and time saved.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from t2.exceptions import MetricsError
from t2.metrics.models import DailyMetrics, SessionMetrics, TotalMetrics, UserSettings
from t2.metrics.storage import MetricsStorage

logger = logging.getLogger(__name__)

DEFAULT_TYPING_SPEED = 40
MIN_TYPING_SPEED = 10
MAX_TYPING_SPEED = 200


def count_words(text: str) -> int:
    return len(text.split())


def calculate_speaking_rate(word_count: int, duration: float) -> int:
    """Words per minute spoken over `duration` seconds."""
    if duration <= 0:
        return 0
    return int(word_count / (duration / 60.0))


def calculate_time_saved(word_count: int, recording_time: float, typing_speed: int) -> float:
    """Seconds saved versus typing the same words, never negative."""
    if word_count == 0 or typing_speed <= 0:
        return 0.0
    typing_time = word_count / typing_speed * 60.0
    return max(typing_time - recording_time, 0.0)


class MetricsManager:
    """Records sessions and answers aggregate queries."""

    def __init__(self, base_dir: Path):
        self.storage = MetricsStorage(base_dir)
        try:
            settings = self.storage.load_user_settings()
        except MetricsError as e:
            logger.warning(f"Using default typing speed: {e}")
            settings = None
        self.user_settings = settings or UserSettings(typing_speed=DEFAULT_TYPING_SPEED)

    def record_session(self, transcript: str, recording_time: float,
                       now: Optional[datetime] = None) -> SessionMetrics:
        """
        Compute and persist metrics for one session.

        Raises:
            MetricsError: If the session can't be saved.
        """
        word_count = count_words(transcript)
        session = SessionMetrics(
            timestamp=now or datetime.now(),
            word_count=word_count,
            recording_time=recording_time,
            time_saved=calculate_time_saved(
                word_count, recording_time, self.user_settings.typing_speed
            ),
            speaking_rate=calculate_speaking_rate(word_count, recording_time),
        )
        self.storage.save_session(session)
        return session

    def get_today_metrics(self) -> DailyMetrics:
        return self.storage.get_daily_metrics(datetime.now().date().isoformat())

    def get_total_metrics(self) -> TotalMetrics:
        return self.storage.get_total_metrics()

    def get_recent_days(self, days: int) -> List[DailyMetrics]:
        return self.storage.get_recent_days(days)

    @property
    def typing_speed(self) -> int:
        return self.user_settings.typing_speed

    def set_typing_speed(self, wpm: int) -> None:
        """
        Persist the user's typing speed.

        Raises:
            ValueError: If wpm is outside 10-200.
        """
        if not MIN_TYPING_SPEED <= wpm <= MAX_TYPING_SPEED:
            raise ValueError(
                f"Typing speed must be between {MIN_TYPING_SPEED} and "
                f"{MAX_TYPING_SPEED} WPM (got {wpm})"
            )
        self.user_settings.typing_speed = wpm
        self.storage.save_user_settings(self.user_settings)

    def clear_all_metrics(self) -> int:
        return self.storage.clear_all_metrics()
