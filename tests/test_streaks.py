from datetime import date, datetime, timedelta

from app.services.daily_records import DailyRecord
from app.services.streaks import (
    calculate_activity_rate,
    calculate_current_streak,
    calculate_longest_streak,
    calculate_streak_stats,
    get_active_days,
    has_activity_today,
)

TODAY = date(2024, 3, 15)


def _run(end: date, length: int, pages: int = 20) -> list[DailyRecord]:
    return [DailyRecord(day=end - timedelta(days=offset), pages_read=pages) for offset in range(length)]


def test_empty_history_has_no_streak():
    assert calculate_current_streak([], TODAY) == 0
    assert calculate_longest_streak([]) == 0


def test_current_streak_counts_back_from_today():
    records = _run(TODAY, 4)
    assert calculate_current_streak(records, TODAY) == 4


def test_yesterday_only_keeps_streak_alive():
    records = [DailyRecord(day=TODAY - timedelta(days=1), pages_read=12)]
    assert calculate_current_streak(records, TODAY) == 1


def test_zero_record_today_still_uses_grace_window():
    records = _run(TODAY - timedelta(days=1), 3) + [DailyRecord(day=TODAY, pages_read=0)]
    assert calculate_current_streak(records, TODAY) == 3


def test_gap_on_yesterday_and_today_breaks_streak():
    records = _run(TODAY - timedelta(days=2), 5) + [DailyRecord(day=TODAY - timedelta(days=1), pages_read=0)]
    assert calculate_current_streak(records, TODAY) == 0


def test_longest_and_current_diverge():
    past_run = _run(TODAY - timedelta(days=20), 10)
    current_run = _run(TODAY, 2)
    records = past_run + current_run

    assert calculate_longest_streak(records) == 10
    assert calculate_current_streak(records, TODAY) == 2


def test_concrete_scenario():
    records = [
        DailyRecord(day=date(2024, 1, 1), pages_read=15),
        DailyRecord(day=date(2024, 1, 2), pages_read=0),
        DailyRecord(day=date(2024, 1, 3), pages_read=40),
        DailyRecord(day=date(2024, 1, 4), pages_read=5),
    ]
    today = date(2024, 1, 4)

    assert calculate_current_streak(records, today) == 2
    assert calculate_longest_streak(records) == 2


def test_longest_streak_ignores_input_order():
    records = list(reversed(_run(TODAY, 6))) + _run(TODAY - timedelta(days=30), 3)
    records.reverse()
    assert calculate_longest_streak(records) == 6


def test_zero_activity_day_breaks_longest_chain():
    records = [
        DailyRecord(day=date(2024, 1, 1), pages_read=5),
        DailyRecord(day=date(2024, 1, 2), pages_read=5),
        DailyRecord(day=date(2024, 1, 3), pages_read=0),
        DailyRecord(day=date(2024, 1, 4), pages_read=5),
    ]
    assert calculate_longest_streak(records) == 2


def test_all_zero_history_has_no_longest_streak():
    records = [DailyRecord(day=TODAY - timedelta(days=i), pages_read=0) for i in range(5)]
    assert calculate_longest_streak(records) == 0
    assert calculate_current_streak(records, TODAY) == 0


def test_datetime_inputs_are_normalized_to_day():
    records = [
        DailyRecord(day=datetime(2024, 3, 14, 23, 55), pages_read=10),
        DailyRecord(day=datetime(2024, 3, 15, 0, 5), pages_read=10),
    ]
    assert calculate_current_streak(records, datetime(2024, 3, 15, 18, 30)) == 2


def test_duplicate_day_last_record_wins():
    records = [
        DailyRecord(day=TODAY - timedelta(days=1), pages_read=10),
        DailyRecord(day=TODAY, pages_read=10),
        DailyRecord(day=TODAY - timedelta(days=1), pages_read=0),
    ]
    assert calculate_current_streak(records, TODAY) == 1
    assert calculate_longest_streak(records) == 1

    records.append(DailyRecord(day=TODAY - timedelta(days=1), pages_read=3))
    assert calculate_current_streak(records, TODAY) == 2


def test_streak_functions_are_idempotent():
    records = _run(TODAY, 3) + _run(TODAY - timedelta(days=10), 4)
    first = calculate_streak_stats(records, TODAY)
    second = calculate_streak_stats(records, TODAY)
    assert first == second


def test_streak_stats_combine_milestone_advice():
    stats = calculate_streak_stats(_run(TODAY, 5), TODAY)

    assert stats.current_streak == 5
    assert stats.longest_streak == 5
    assert "Going" in stats.level
    assert stats.days_to_next_milestone == 2
    assert stats.next_milestone == "1-week streak"
    assert stats.has_milestone is True


def test_streak_stats_accepts_generator_input():
    stats = calculate_streak_stats((record for record in _run(TODAY, 2)), TODAY)
    assert stats.current_streak == 2
    assert stats.longest_streak == 2


def test_today_activity_and_active_days():
    records = [
        DailyRecord(day=TODAY, pages_read=0),
        DailyRecord(day=TODAY - timedelta(days=2), pages_read=7),
        DailyRecord(day=TODAY - timedelta(days=4), pages_read=1),
    ]
    assert has_activity_today(records, TODAY) is False
    assert has_activity_today(records + [DailyRecord(day=TODAY, pages_read=2)], TODAY) is True
    assert get_active_days(records) == [TODAY - timedelta(days=4), TODAY - timedelta(days=2)]


def test_activity_rate_is_percentage_of_supplied_days():
    records = [
        DailyRecord(day=date(2024, 1, 1), pages_read=3),
        DailyRecord(day=date(2024, 1, 2), pages_read=0),
        DailyRecord(day=date(2024, 1, 3), pages_read=0),
        DailyRecord(day=date(2024, 1, 4), pages_read=9),
    ]
    assert calculate_activity_rate(records) == 50.0
    assert calculate_activity_rate([]) == 0.0


def test_streaks_at_first_calendar_day():
    records = [DailyRecord(day=date.min, pages_read=5), DailyRecord(day=date.min + timedelta(days=1), pages_read=5)]

    assert calculate_current_streak(records, date.min + timedelta(days=1)) == 2
    assert calculate_current_streak(records[:1], date.min) == 1
    assert calculate_longest_streak(records) == 2
