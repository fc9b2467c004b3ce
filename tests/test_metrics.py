"""
Tests for the metrics package: calculations, storage and formatting.
"""

import json
from datetime import date, datetime

import pytest
from hypothesis import given, strategies as st

from t2.exceptions import MetricsError
from t2.metrics import (
    DailyMetrics,
    MetricsManager,
    MetricsStorage,
    SessionMetrics,
    StatsFormatter,
    TotalMetrics,
    UserSettings,
    format_duration,
    format_duration_short,
)
from t2.metrics.manager import (
    calculate_speaking_rate,
    calculate_time_saved,
    count_words,
)


class TestCalculations:
    """Tests for the pure metric calculations."""

    @pytest.mark.parametrize("text,expected", [
        ("", 0),
        ("   ", 0),
        ("hello", 1),
        ("hello   world\nagain", 3),
    ])
    def test_count_words(self, text, expected):
        assert count_words(text) == expected

    def test_speaking_rate(self):
        assert calculate_speaking_rate(30, 15.0) == 120

    def test_speaking_rate_zero_duration(self):
        assert calculate_speaking_rate(30, 0.0) == 0

    def test_time_saved(self):
        # 40 words at 40 WPM is 60s of typing; spoken in 15s
        assert calculate_time_saved(40, 15.0, 40) == pytest.approx(45.0)

    def test_time_saved_never_negative(self):
        assert calculate_time_saved(2, 30.0, 40) == 0.0

    def test_time_saved_no_words(self):
        assert calculate_time_saved(0, 5.0, 40) == 0.0

    @given(
        words=st.integers(min_value=0, max_value=5000),
        seconds=st.floats(min_value=0.0, max_value=3600.0, allow_nan=False),
        wpm=st.integers(min_value=10, max_value=200),
    )
    def test_property_time_saved_non_negative(self, words, seconds, wpm):
        assert calculate_time_saved(words, seconds, wpm) >= 0.0


class TestMetricsStorage:
    """Tests for the JSON file store."""

    def _session(self, when, words=10, saved=5.0):
        return SessionMetrics(
            timestamp=when, word_count=words, recording_time=3.0,
            time_saved=saved, speaking_rate=200,
        )

    def test_creates_daily_directory(self, tmp_path):
        MetricsStorage(tmp_path / "metrics")
        assert (tmp_path / "metrics" / "daily").is_dir()

    def test_save_session_writes_day_file(self, tmp_path):
        storage = MetricsStorage(tmp_path)
        storage.save_session(self._session(datetime(2026, 3, 4, 10, 0)))

        data = json.loads((tmp_path / "daily" / "2026-03-04.json").read_text())
        assert data["date"] == "2026-03-04"
        assert data["total_words"] == 10
        assert data["session_count"] == 1

    def test_sessions_accumulate_per_day(self, tmp_path):
        storage = MetricsStorage(tmp_path)
        storage.save_session(self._session(datetime(2026, 3, 4, 10, 0), words=10, saved=5.0))
        storage.save_session(self._session(datetime(2026, 3, 4, 11, 0), words=5, saved=2.5))

        daily = storage.get_daily_metrics("2026-03-04")
        assert daily.session_count == 2
        assert daily.total_words == 15
        assert daily.total_saved == pytest.approx(7.5)
        assert daily.sessions[0].timestamp == datetime(2026, 3, 4, 10, 0)

    def test_missing_day_is_empty(self, tmp_path):
        daily = MetricsStorage(tmp_path).get_daily_metrics("2020-01-01")
        assert daily.session_count == 0
        assert daily.total_words == 0

    def test_corrupt_day_raises(self, tmp_path):
        storage = MetricsStorage(tmp_path)
        (tmp_path / "daily" / "2026-03-04.json").write_text("{broken")
        with pytest.raises(MetricsError):
            storage.get_daily_metrics("2026-03-04")

    def test_totals_skip_corrupt_files(self, tmp_path):
        storage = MetricsStorage(tmp_path)
        storage.save_session(self._session(datetime(2026, 3, 4, 10, 0), words=10))
        storage.save_session(self._session(datetime(2026, 3, 5, 10, 0), words=20))
        (tmp_path / "daily" / "2026-03-06.json").write_text("not json")

        totals = storage.get_total_metrics()
        assert totals.total_words == 30
        assert totals.total_sessions == 2

    def test_save_over_corrupt_day_starts_fresh(self, tmp_path):
        storage = MetricsStorage(tmp_path)
        (tmp_path / "daily" / "2026-03-04.json").write_text("not json")
        daily = storage.save_session(self._session(datetime(2026, 3, 4, 9, 0)))
        assert daily.session_count == 1

    def test_recent_days_oldest_first(self, tmp_path):
        storage = MetricsStorage(tmp_path)
        storage.save_session(self._session(datetime(2026, 3, 1, 9, 0), words=7))

        days = storage.get_recent_days(7, today=date(2026, 3, 4))
        assert [d.date for d in days] == [
            "2026-02-26", "2026-02-27", "2026-02-28",
            "2026-03-01", "2026-03-02", "2026-03-03", "2026-03-04",
        ]
        assert days[3].total_words == 7

    def test_user_settings_round_trip(self, tmp_path):
        storage = MetricsStorage(tmp_path)
        assert storage.load_user_settings() is None

        storage.save_user_settings(UserSettings(typing_speed=75))
        assert storage.load_user_settings().typing_speed == 75

    def test_clear_all_metrics(self, tmp_path):
        storage = MetricsStorage(tmp_path)
        storage.save_session(self._session(datetime(2026, 3, 4, 10, 0)))
        storage.save_session(self._session(datetime(2026, 3, 5, 10, 0)))

        assert storage.clear_all_metrics() == 2
        assert storage.get_total_metrics().total_sessions == 0


class TestMetricsManager:
    """Tests for MetricsManager."""

    def test_default_typing_speed(self, tmp_path):
        assert MetricsManager(tmp_path).typing_speed == 40

    def test_record_session(self, tmp_path):
        manager = MetricsManager(tmp_path)
        session = manager.record_session(
            "one two three four five six seven eight nine ten",
            recording_time=5.0,
            now=datetime(2026, 3, 4, 12, 0),
        )

        assert session.word_count == 10
        assert session.speaking_rate == 120
        # 10 words at 40 WPM = 15s typing
        assert session.time_saved == pytest.approx(10.0)
        assert manager.storage.get_daily_metrics("2026-03-04").total_words == 10

    def test_typing_speed_persists(self, tmp_path):
        MetricsManager(tmp_path).set_typing_speed(80)
        assert MetricsManager(tmp_path).typing_speed == 80

    @pytest.mark.parametrize("wpm", [9, 201, 0, -5])
    def test_typing_speed_bounds(self, tmp_path, wpm):
        with pytest.raises(ValueError):
            MetricsManager(tmp_path).set_typing_speed(wpm)

    def test_typing_speed_affects_time_saved(self, tmp_path):
        manager = MetricsManager(tmp_path)
        manager.set_typing_speed(20)
        session = manager.record_session("a b c d e f g h i j", 5.0)
        # 10 words at 20 WPM = 30s typing
        assert session.time_saved == pytest.approx(25.0)

    def test_corrupt_settings_use_default(self, tmp_path):
        (tmp_path / "settings.json").write_text("{oops")
        assert MetricsManager(tmp_path).typing_speed == 40

    def test_today_metrics(self, tmp_path):
        manager = MetricsManager(tmp_path)
        manager.record_session("hello world", 1.0)
        assert manager.get_today_metrics().total_words == 2

    def test_totals_and_clear(self, tmp_path):
        manager = MetricsManager(tmp_path)
        manager.record_session("a b c", 1.0, now=datetime(2026, 1, 1, 8, 0))
        manager.record_session("d e", 1.0, now=datetime(2026, 1, 2, 8, 0))

        totals = manager.get_total_metrics()
        assert totals.total_words == 5
        assert totals.total_sessions == 2
        assert totals.avg_words_per_session == 2

        manager.clear_all_metrics()
        assert manager.get_total_metrics().total_sessions == 0


class TestFormatting:
    """Tests for duration and stats formatting."""

    @pytest.mark.parametrize("seconds,expected", [
        (0, "0 seconds"),
        (45, "45 seconds"),
        (60, "1 minutes"),
        (125, "2 minutes 5 seconds"),
        (3600, "1 hours"),
        (3720, "1 hours 2 minutes"),
    ])
    def test_format_duration(self, seconds, expected):
        assert format_duration(seconds) == expected

    @pytest.mark.parametrize("seconds,expected", [
        (0, "0s"),
        (12.7, "12s"),
        (125, "2m 5s"),
        (7200, "2h"),
    ])
    def test_format_duration_short(self, seconds, expected):
        assert format_duration_short(seconds) == expected

    def test_session_summary_lines(self):
        session = SessionMetrics(
            timestamp=datetime(2026, 3, 4), word_count=20,
            recording_time=10.0, time_saved=20.0, speaking_rate=120,
        )
        today = DailyMetrics(date="2026-03-04")
        today.add(session)

        lines = StatsFormatter().session_summary_lines(session, today)
        assert lines == [
            "  Saved 20s vs typing",
            "  Session: 120 WPM speaking rate",
            "  Today: 20 words, 20s saved",
        ]

    def test_session_summary_without_savings(self):
        session = SessionMetrics(
            timestamp=datetime(2026, 3, 4), word_count=1,
            recording_time=10.0, time_saved=0.0, speaking_rate=6,
        )
        assert StatsFormatter().session_summary_lines(session) == [
            "  Session: 6 WPM speaking rate",
        ]

    def test_total_stats_empty(self):
        assert "No usage statistics yet" in StatsFormatter().total_stats(TotalMetrics())

    def test_total_stats(self):
        text = StatsFormatter().total_stats(
            TotalMetrics(total_words=100, total_sessions=4, total_saved=200.0)
        )
        assert "Words transcribed: 100" in text
        assert "Sessions completed: 4" in text
        assert "Avg words/session: 25" in text
        assert "Avg saved/session: 50s" in text

    def test_weekly_stats(self):
        active = DailyMetrics(date="2026-03-04", total_words=50, total_saved=90.0)
        active.sessions = [None, None]  # only the count matters here
        idle = DailyMetrics(date="2026-03-05")

        text = StatsFormatter().weekly_stats([active, idle])
        assert "Active days: 1/7" in text
        assert "Total words: 50" in text
        assert "Total sessions: 2" in text

    def test_weekly_stats_empty(self):
        assert StatsFormatter().weekly_stats([DailyMetrics(date="2026-03-04")]) == \
            "No activity this week yet."
