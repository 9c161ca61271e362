"""Simple analytics over the session history."""

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Iterable

from ..utils.time import week_start
from .records import SessionRecord


@dataclass(frozen=True)
class HistorySummary:
    """Daily, weekly and per-category totals."""

    total_sessions: int = 0
    total_minutes: int = 0
    today_sessions: int = 0
    today_minutes: int = 0
    week_sessions: int = 0
    week_minutes: int = 0
    category_breakdown: list[tuple[str, int]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_sessions": self.total_sessions,
            "total_minutes": self.total_minutes,
            "today_sessions": self.today_sessions,
            "today_minutes": self.today_minutes,
            "week_sessions": self.week_sessions,
            "week_minutes": self.week_minutes,
            "category_breakdown": [
                {"category": category, "sessions": count}
                for category, count in self.category_breakdown
            ],
        }


def summarize_history(records: Iterable[SessionRecord], today: date) -> HistorySummary:
    """
    Summarize session records relative to a given day.

    The week is the Monday-start week containing `today`. Records with an
    unparseable date still count towards the totals and categories.
    """
    today_str = today.isoformat()
    monday = week_start(today)
    week_days = {(monday + timedelta(days=offset)).isoformat() for offset in range(7)}

    total_sessions = total_minutes = 0
    today_sessions = today_minutes = 0
    week_sessions = week_minutes = 0
    categories: Counter = Counter()

    for record in records:
        total_sessions += 1
        total_minutes += record.duration_minutes
        categories[record.category] += 1

        if record.date == today_str:
            today_sessions += 1
            today_minutes += record.duration_minutes
        if record.date in week_days:
            week_sessions += 1
            week_minutes += record.duration_minutes

    breakdown = sorted(categories.items(), key=lambda item: (-item[1], item[0]))

    return HistorySummary(
        total_sessions=total_sessions,
        total_minutes=total_minutes,
        today_sessions=today_sessions,
        today_minutes=today_minutes,
        week_sessions=week_sessions,
        week_minutes=week_minutes,
        category_breakdown=breakdown,
    )
