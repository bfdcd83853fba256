from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable

from app.services.activity_levels import STANDARD_POLICY, ActivityLevelClassifier
from app.services.daily_records import DailyRecord, InvalidArgument, index_by_day, normalize_day


@dataclass(frozen=True)
class HeatmapCell:
    day: date
    pages_read: int
    level: int

    def to_dict(self) -> dict:
        return {"date": self.day.isoformat(), "pages_read": self.pages_read, "level": self.level}


def build_heatmap_cells(
    records: Iterable[DailyRecord],
    window_days: int,
    today: date,
    classifier: ActivityLevelClassifier = STANDARD_POLICY,
) -> list[HeatmapCell]:
    if isinstance(window_days, bool) or not isinstance(window_days, int) or window_days < 1:
        raise InvalidArgument(f"window_days must be a positive integer, got {window_days!r}")

    today = normalize_day(today)
    by_day = index_by_day(records)
    try:
        first_day = today - timedelta(days=window_days - 1)
    except OverflowError as exc:
        raise InvalidArgument(f"{window_days} days before {today} is out of range") from exc

    cells = []
    for offset in range(window_days):
        day = first_day + timedelta(days=offset)
        record = by_day.get(day)
        pages_read = record.pages_read if record else 0
        cells.append(HeatmapCell(day=day, pages_read=pages_read, level=classifier.classify(pages_read)))
    return cells


def build_heatmap(
    records: Iterable[DailyRecord],
    window_days: int,
    today: date,
    classifier: ActivityLevelClassifier = STANDARD_POLICY,
) -> dict[date, int]:
    """Dense day -> level map over the window ending at ``today``."""
    return {
        cell.day: cell.level
        for cell in build_heatmap_cells(records, window_days, today, classifier)
    }
