from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable


class InvalidArgument(ValueError):
    """Raised when caller-supplied input breaks the engine's contract."""


def normalize_day(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        raw = value.strip()
        try:
            if len(raw) == 10:
                return date.fromisoformat(raw)
            return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
        except ValueError as exc:
            raise InvalidArgument(f"Malformed date: {value!r}") from exc
    raise InvalidArgument(f"Expected a date, got {type(value).__name__}")


def _require_count(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidArgument(f"{name} must be non-negative, got {value}")
    return value


@dataclass(frozen=True)
class DailyRecord:
    day: date
    pages_read: int
    books_read_count: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "day", normalize_day(self.day))
        _require_count("pages_read", self.pages_read)
        _require_count("books_read_count", self.books_read_count)

    @property
    def has_activity(self) -> bool:
        return self.pages_read > 0

    @classmethod
    def from_row(cls, row: dict) -> "DailyRecord":
        if not isinstance(row, dict) or row.get("date") is None:
            raise InvalidArgument("Daily stats row is missing its date.")
        return cls(
            day=normalize_day(row["date"]),
            pages_read=row.get("total_pages_read") or 0,
            books_read_count=row.get("books_read_count") or 0,
        )

    def to_dict(self) -> dict:
        return {
            "date": self.day.isoformat(),
            "pages_read": self.pages_read,
            "books_read_count": self.books_read_count,
        }


def index_by_day(records: Iterable[DailyRecord]) -> dict[date, DailyRecord]:
    # Duplicate days: the last record seen wins.
    indexed: dict[date, DailyRecord] = {}
    for record in records:
        indexed[record.day] = record
    return indexed
