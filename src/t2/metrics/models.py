"""
Metrics data models.

Durations are stored as float seconds.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import List


@dataclass
class SessionMetrics:
    """Metrics for one successful dictation session."""
    timestamp: datetime
    word_count: int
    recording_time: float
    time_saved: float
    speaking_rate: int  # WPM

    def to_dict(self) -> dict:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "SessionMetrics":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            word_count=int(data.get("word_count", 0)),
            recording_time=float(data.get("recording_time", 0.0)),
            time_saved=float(data.get("time_saved", 0.0)),
            speaking_rate=int(data.get("speaking_rate", 0)),
        )


@dataclass
class DailyMetrics:
    """All sessions recorded on one calendar day."""
    date: str
    sessions: List[SessionMetrics] = field(default_factory=list)
    total_words: int = 0
    total_saved: float = 0.0

    @property
    def session_count(self) -> int:
        return len(self.sessions)

    def add(self, session: SessionMetrics) -> None:
        self.sessions.append(session)
        self.total_words += session.word_count
        self.total_saved += session.time_saved

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "sessions": [s.to_dict() for s in self.sessions],
            "total_words": self.total_words,
            "total_saved": self.total_saved,
            "session_count": self.session_count,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DailyMetrics":
        return cls(
            date=data["date"],
            sessions=[SessionMetrics.from_dict(s) for s in data.get("sessions", [])],
            total_words=int(data.get("total_words", 0)),
            total_saved=float(data.get("total_saved", 0.0)),
        )


@dataclass
class TotalMetrics:
    """Aggregates across every stored day."""
    total_words: int = 0
    total_sessions: int = 0
    total_saved: float = 0.0

    @property
    def avg_words_per_session(self) -> int:
        if self.total_sessions == 0:
            return 0
        return self.total_words // self.total_sessions

    @property
    def avg_saved_per_session(self) -> float:
        if self.total_sessions == 0:
            return 0.0
        return self.total_saved / self.total_sessions


@dataclass
class UserSettings:
    """Personalization for time-saved estimates."""
    typing_speed: int = 40  # WPM
