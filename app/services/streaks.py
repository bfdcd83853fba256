from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable

from app.services.daily_records import DailyRecord, index_by_day, normalize_day
from app.services.milestones import advise

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class StreakStats:
    current_streak: int
    longest_streak: int
    level: str
    message: str
    days_to_next_milestone: int | None
    next_milestone: str | None

    @property
    def has_milestone(self) -> bool:
        return self.days_to_next_milestone is not None and self.next_milestone is not None

    def to_dict(self) -> dict:
        return {
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "level": self.level,
            "message": self.message,
            "days_to_next_milestone": self.days_to_next_milestone,
            "next_milestone": self.next_milestone,
        }


def calculate_current_streak(records: Iterable[DailyRecord], today: date) -> int:
    """Consecutive active days ending today, or yesterday if today is still empty."""
    by_day = index_by_day(records)
    if not by_day:
        return 0

    today = normalize_day(today)
    active_days = [day for day, record in by_day.items() if record.has_activity]
    if not active_days:
        return 0

    most_recent = max(active_days)
    if (today - most_recent).days not in (0, 1):
        return 0

    streak = 0
    cursor = most_recent
    while cursor in by_day and by_day[cursor].has_activity:
        streak += 1
        if cursor == date.min:
            break
        cursor -= ONE_DAY
    return streak


def calculate_longest_streak(records: Iterable[DailyRecord]) -> int:
    by_day = index_by_day(records)
    if not by_day:
        return 0

    longest = 0
    current = 0
    previous: date | None = None
    for day in sorted(by_day):
        if not by_day[day].has_activity:
            current = 0
            previous = None
            continue

        if previous is not None and day - previous == ONE_DAY:
            current += 1
        else:
            current = 1
        previous = day
        longest = max(longest, current)

    return longest


def has_activity_today(records: Iterable[DailyRecord], today: date) -> bool:
    record = index_by_day(records).get(normalize_day(today))
    return record is not None and record.has_activity


def get_active_days(records: Iterable[DailyRecord]) -> list[date]:
    return sorted(day for day, record in index_by_day(records).items() if record.has_activity)


def calculate_activity_rate(records: Iterable[DailyRecord]) -> float:
    """Percentage of the supplied days that had any reading."""
    by_day = index_by_day(records)
    if not by_day:
        return 0.0
    active = sum(1 for record in by_day.values() if record.has_activity)
    return active / len(by_day) * 100


def calculate_streak_stats(records: Iterable[DailyRecord], today: date) -> StreakStats:
    records = list(records)
    current = calculate_current_streak(records, today)
    advice = advise(current)
    return StreakStats(
        current_streak=current,
        longest_streak=calculate_longest_streak(records),
        level=advice.level,
        message=advice.message,
        days_to_next_milestone=advice.days_to_next_milestone,
        next_milestone=advice.next_milestone,
    )
