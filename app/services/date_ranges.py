from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterator

from app.services.daily_records import InvalidArgument, normalize_day


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    def __post_init__(self) -> None:
        start = normalize_day(self.start)
        end = normalize_day(self.end)
        if start > end:
            raise InvalidArgument(f"start {start} is after end {end}")
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    @classmethod
    def this_week(cls, today: date) -> "DateRange":
        today = normalize_day(today)
        return cls(start=today - timedelta(days=today.weekday()), end=today)

    @classmethod
    def for_month(cls, year: int, month: int) -> "DateRange":
        if not 1 <= month <= 12:
            raise InvalidArgument(f"Invalid month: {month}")
        last_day = calendar.monthrange(year, month)[1]
        return cls(start=date(year, month, 1), end=date(year, month, last_day))

    @classmethod
    def this_month(cls, today: date) -> "DateRange":
        today = normalize_day(today)
        return cls.for_month(today.year, today.month)

    @classmethod
    def this_year(cls, today: date) -> "DateRange":
        today = normalize_day(today)
        return cls(start=date(today.year, 1, 1), end=date(today.year, 12, 31))

    @classmethod
    def last_days(cls, days: int, today: date) -> "DateRange":
        if isinstance(days, bool) or not isinstance(days, int) or days < 1:
            raise InvalidArgument(f"days must be a positive integer, got {days!r}")
        today = normalize_day(today)
        try:
            start = today - timedelta(days=days - 1)
        except OverflowError as exc:
            raise InvalidArgument(f"{days} days before {today} is out of range") from exc
        return cls(start=start, end=today)

    def contains(self, day: date) -> bool:
        return self.start <= normalize_day(day) <= self.end

    def days(self) -> Iterator[date]:
        for offset in range((self.end - self.start).days + 1):
            yield self.start + timedelta(days=offset)

    def to_dict(self) -> dict:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


def parse_month(value: str) -> DateRange:
    try:
        month_start = datetime.strptime(value, "%Y-%m").date()
    except ValueError as exc:
        raise InvalidArgument(f"Invalid month format: {value!r}. Expected YYYY-MM.") from exc
    return DateRange.for_month(month_start.year, month_start.month)
