from datetime import date, timedelta

import pytest

from app.services.daily_records import InvalidArgument
from app.services.date_ranges import DateRange, parse_month


def test_this_week_runs_from_monday_to_today():
    # 2024-03-14 is a Thursday.
    week = DateRange.this_week(date(2024, 3, 14))
    assert week.start == date(2024, 3, 11)
    assert week.end == date(2024, 3, 14)

    monday = DateRange.this_week(date(2024, 3, 11))
    assert monday.start == monday.end == date(2024, 3, 11)


def test_this_month_covers_whole_month():
    assert DateRange.this_month(date(2024, 2, 10)) == DateRange(date(2024, 2, 1), date(2024, 2, 29))
    assert DateRange.this_month(date(2023, 12, 31)) == DateRange(date(2023, 12, 1), date(2023, 12, 31))


def test_this_year_covers_calendar_year():
    year = DateRange.this_year(date(2024, 6, 1))
    assert (year.start, year.end) == (date(2024, 1, 1), date(2024, 12, 31))


def test_last_days_is_inclusive_of_today():
    window = DateRange.last_days(7, date(2024, 3, 1))
    assert window.start == date(2024, 2, 24)
    assert len(list(window.days())) == 7
    assert window.contains(date(2024, 3, 1))
    assert not window.contains(date(2024, 3, 2))


def test_invalid_ranges_are_rejected():
    with pytest.raises(InvalidArgument):
        DateRange(date(2024, 3, 2), date(2024, 3, 1))
    with pytest.raises(InvalidArgument):
        DateRange.last_days(0, date(2024, 3, 1))
    with pytest.raises(InvalidArgument):
        DateRange.for_month(2024, 13)


def test_parse_month():
    assert parse_month("2024-02").end == date(2024, 2, 29)
    with pytest.raises(InvalidArgument, match="YYYY-MM"):
        parse_month("February")


def test_ranges_at_calendar_bounds():
    with pytest.raises(InvalidArgument, match="out of range"):
        DateRange.last_days(2, date.min)

    assert DateRange.last_days(1, date.min).start == date.min
    assert list(DateRange.last_days(2, date.max).days()) == [date.max - timedelta(days=1), date.max]
