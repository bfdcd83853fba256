from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable

from app.services.daily_records import DailyRecord, InvalidArgument, index_by_day, normalize_day


@dataclass(frozen=True)
class PeriodSummary:
    total_pages_read: int = 0
    total_days_read: int = 0
    # Sum of each day's distinct-book count, not a de-duplicated total.
    unique_books_read: int = 0
    average_pages_per_day: float = 0.0
    max_pages_in_day: int = 0
    most_active_date: date | None = None

    def to_dict(self) -> dict:
        return {
            "total_pages_read": self.total_pages_read,
            "total_days_read": self.total_days_read,
            "unique_books_read": self.unique_books_read,
            "average_pages_per_day": self.average_pages_per_day,
            "max_pages_in_day": self.max_pages_in_day,
            "most_active_date": self.most_active_date.isoformat() if self.most_active_date else None,
        }


def summarize(
    records: Iterable[DailyRecord],
    start: date | None = None,
    end: date | None = None,
) -> PeriodSummary:
    """Aggregate active days, optionally restricted to an inclusive [start, end]."""
    start = normalize_day(start) if start is not None else None
    end = normalize_day(end) if end is not None else None
    if start is not None and end is not None and start > end:
        raise InvalidArgument(f"start {start} is after end {end}")

    active_days = [
        record
        for record in index_by_day(records).values()
        if record.has_activity
        and (start is None or record.day >= start)
        and (end is None or record.day <= end)
    ]
    if not active_days:
        return PeriodSummary()

    total_pages = sum(record.pages_read for record in active_days)
    # Ties go to the first record in input order.
    most_active = max(active_days, key=lambda record: record.pages_read)

    return PeriodSummary(
        total_pages_read=total_pages,
        total_days_read=len(active_days),
        unique_books_read=sum(record.books_read_count for record in active_days),
        average_pages_per_day=total_pages / len(active_days),
        max_pages_in_day=most_active.pages_read,
        most_active_date=most_active.day,
    )
