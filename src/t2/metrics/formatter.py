"""
Human-readable rendering of durations and metrics.
"""

from typing import List, Optional

from t2.metrics.models import DailyMetrics, SessionMetrics, TotalMetrics


def _split(seconds: float):
    total = int(seconds)
    return total // 3600, (total // 60) % 60, total % 60


def format_duration(seconds: float) -> str:
    """Long form, e.g. "2 minutes 5 seconds"."""
    if seconds <= 0:
        return "0 seconds"
    hours, minutes, secs = _split(seconds)
    if hours > 0:
        return f"{hours} hours {minutes} minutes" if minutes else f"{hours} hours"
    if minutes > 0:
        return f"{minutes} minutes {secs} seconds" if secs else f"{minutes} minutes"
    return f"{secs} seconds"


def format_duration_short(seconds: float) -> str:
    """Short form, e.g. "2m 5s"."""
    if seconds <= 0:
        return "0s"
    hours, minutes, secs = _split(seconds)
    if hours > 0:
        return f"{hours}h {minutes}m" if minutes else f"{hours}h"
    if minutes > 0:
        return f"{minutes}m {secs}s" if secs else f"{minutes}m"
    return f"{secs}s"


class StatsFormatter:
    """Formats session summaries and aggregate statistics."""

    def session_summary_lines(self, session: SessionMetrics,
                              today: Optional[DailyMetrics] = None) -> List[str]:
        lines = []
        if session.time_saved > 0:
            lines.append(f"  Saved {format_duration_short(session.time_saved)} vs typing")
        if session.speaking_rate > 0:
            lines.append(f"  Session: {session.speaking_rate} WPM speaking rate")
        if today is not None and today.session_count > 0:
            lines.append(
                f"  Today: {today.total_words} words, "
                f"{format_duration_short(today.total_saved)} saved"
            )
        return lines

    def total_stats(self, totals: TotalMetrics) -> str:
        if totals.total_sessions == 0:
            return "No usage statistics yet. Start using T2 to track your productivity!"

        return "\n".join([
            "Total Statistics:",
            f"   Words transcribed: {totals.total_words}",
            f"   Sessions completed: {totals.total_sessions}",
            f"   Time saved: {format_duration(totals.total_saved)}",
            f"   Avg words/session: {totals.avg_words_per_session}",
            f"   Avg saved/session: {format_duration_short(totals.avg_saved_per_session)}",
        ])

    def weekly_stats(self, days: List[DailyMetrics]) -> str:
        active = [d for d in days if d.session_count > 0]
        if not active:
            return "No activity this week yet."

        return "\n".join([
            "This Week:",
            f"   Active days: {len(active)}/7",
            f"   Total words: {sum(d.total_words for d in active)}",
            f"   Total sessions: {sum(d.session_count for d in active)}",
            f"   Time saved: {format_duration(sum(d.total_saved for d in active))}",
        ])
