"""
Metrics Storage

One JSON file per day under <base>/daily/, plus settings.json.
"""

import json
import logging
from datetime import date, timedelta
from pathlib import Path
from typing import List, Optional

from t2.exceptions import MetricsError
from t2.metrics.models import DailyMetrics, SessionMetrics, TotalMetrics, UserSettings

logger = logging.getLogger(__name__)

SETTINGS_FILE = "settings.json"
DAILY_DIR = "daily"


class MetricsStorage:
    """File-backed store for daily metrics and user settings."""

    def __init__(self, base_dir: Path):
        """
        Create the storage directories if needed.

        Raises:
            MetricsError: If the directories can't be created.
        """
        self.base_dir = Path(base_dir)
        self.daily_dir = self.base_dir / DAILY_DIR
        try:
            self.daily_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise MetricsError(f"Failed to create metrics directory: {e}") from e

    def _daily_path(self, day: str) -> Path:
        return self.daily_dir / f"{day}.json"

    def save_session(self, session: SessionMetrics) -> DailyMetrics:
        """Append a session to its day's file and return the updated day."""
        day = session.timestamp.date().isoformat()
        try:
            daily = self.get_daily_metrics(day)
        except MetricsError as e:
            logger.warning(f"Starting fresh daily metrics for {day}: {e}")
            daily = DailyMetrics(date=day)

        daily.add(session)
        self._write_json(self._daily_path(day), daily.to_dict())
        return daily

    def get_daily_metrics(self, day: str) -> DailyMetrics:
        """
        Load metrics for a YYYY-MM-DD day (empty if none recorded).

        Raises:
            MetricsError: If the day's file is unreadable or corrupt.
        """
        path = self._daily_path(day)
        if not path.exists():
            return DailyMetrics(date=day)
        data = self._read_json(path)
        try:
            return DailyMetrics.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise MetricsError(f"Corrupt metrics file {path}: {e}") from e

    def get_all_daily_metrics(self) -> List[DailyMetrics]:
        """Every readable day, oldest first. Corrupt files are skipped."""
        days = []
        for path in sorted(self.daily_dir.glob("*.json")):
            try:
                days.append(self.get_daily_metrics(path.stem))
            except MetricsError as e:
                logger.warning(f"Skipping metrics file: {e}")
        return days

    def get_total_metrics(self) -> TotalMetrics:
        totals = TotalMetrics()
        for daily in self.get_all_daily_metrics():
            totals.total_words += daily.total_words
            totals.total_sessions += daily.session_count
            totals.total_saved += daily.total_saved
        return totals

    def get_recent_days(self, days: int, today: Optional[date] = None) -> List[DailyMetrics]:
        """The last `days` days ending today, oldest first."""
        today = today or date.today()
        recent = []
        for offset in range(days - 1, -1, -1):
            day = (today - timedelta(days=offset)).isoformat()
            try:
                recent.append(self.get_daily_metrics(day))
            except MetricsError as e:
                logger.warning(f"Skipping metrics for {day}: {e}")
        return recent

    def load_user_settings(self) -> Optional[UserSettings]:
        """Stored settings, or None if never saved."""
        path = self.base_dir / SETTINGS_FILE
        if not path.exists():
            return None
        data = self._read_json(path)
        try:
            return UserSettings(typing_speed=int(data["typing_speed"]))
        except (KeyError, TypeError, ValueError) as e:
            raise MetricsError(f"Corrupt settings file {path}: {e}") from e

    def save_user_settings(self, settings: UserSettings) -> None:
        self._write_json(self.base_dir / SETTINGS_FILE, {"typing_speed": settings.typing_speed})

    def clear_all_metrics(self) -> int:
        """
        Delete every daily file.

        Returns:
            Number of files removed.
        """
        removed = 0
        for path in self.daily_dir.glob("*.json"):
            try:
                path.unlink()
            except OSError as e:
                raise MetricsError(f"Failed to remove {path.name}: {e}") from e
            removed += 1
        return removed

    def _read_json(self, path: Path) -> dict:
        try:
            with open(path) as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise MetricsError(f"Failed to read {path}: {e}") from e

    def _write_json(self, path: Path, data: dict) -> None:
        try:
            with open(path, "w") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            raise MetricsError(f"Failed to write {path}: {e}") from e
