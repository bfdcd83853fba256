from __future__ import annotations

from dataclasses import dataclass

from app.services.daily_records import InvalidArgument


@dataclass(frozen=True)
class MilestoneConfig:
    days: int
    title: str


@dataclass(frozen=True)
class StreakBand:
    min_days: int
    label: str


@dataclass(frozen=True)
class MilestoneAdvice:
    level: str
    message: str
    days_to_next_milestone: int | None
    next_milestone: str | None

    def to_dict(self) -> dict:
        return {
            "level": self.level,
            "message": self.message,
            "days_to_next_milestone": self.days_to_next_milestone,
            "next_milestone": self.next_milestone,
        }


MILESTONE_LADDER = [
    MilestoneConfig(days=3, title="3-day streak"),
    MilestoneConfig(days=7, title="1-week streak"),
    MilestoneConfig(days=14, title="2-week streak"),
    MilestoneConfig(days=30, title="30-day streak"),
    MilestoneConfig(days=100, title="100-day streak"),
]

# Highest band first.
STREAK_LEVELS = [
    StreakBand(min_days=30, label="🔥 On Fire!"),
    StreakBand(min_days=14, label="⚡ Blazing!"),
    StreakBand(min_days=7, label="💪 Strong!"),
    StreakBand(min_days=3, label="✨ Going!"),
    StreakBand(min_days=1, label="🌱 Starting!"),
]


def streak_level(current_streak: int) -> str:
    for band in STREAK_LEVELS:
        if current_streak >= band.min_days:
            return band.label
    return ""


def streak_message(current_streak: int) -> str:
    if current_streak == 0:
        return "Start your reading streak today!"
    if current_streak == 1:
        return "Great start! Keep it up!"
    if current_streak < 7:
        return "You're building momentum!"
    if current_streak < 14:
        return "One week down! Keep going!"
    if current_streak < 30:
        return "You're on a roll! Don't break the chain!"
    if current_streak < 100:
        return "Amazing dedication! You're unstoppable!"
    return "Legendary streak! You're an inspiration!"


def next_milestone(current_streak: int) -> MilestoneConfig | None:
    for milestone in MILESTONE_LADDER:
        if milestone.days > current_streak:
            return milestone
    return None


def advise(current_streak: int) -> MilestoneAdvice:
    if isinstance(current_streak, bool) or not isinstance(current_streak, int) or current_streak < 0:
        raise InvalidArgument(f"current_streak must be a non-negative integer, got {current_streak!r}")

    upcoming = next_milestone(current_streak)
    return MilestoneAdvice(
        level=streak_level(current_streak),
        message=streak_message(current_streak),
        days_to_next_milestone=upcoming.days - current_streak if upcoming else None,
        next_milestone=upcoming.title if upcoming else None,
    )
