from datetime import date, timedelta

import pytest

from app.services.activity_levels import COMPACT_POLICY, STANDARD_POLICY
from app.services.daily_records import DailyRecord, InvalidArgument
from app.services.heatmap import build_heatmap, build_heatmap_cells

TODAY = date(2024, 1, 4)


def test_empty_records_give_full_zero_window():
    heatmap = build_heatmap([], 7, TODAY, STANDARD_POLICY)

    assert len(heatmap) == 7
    assert set(heatmap.values()) == {0}


def test_window_spans_exactly_the_requested_days():
    sparse = [DailyRecord(day=TODAY - timedelta(days=12), pages_read=44)]
    heatmap = build_heatmap(sparse, 30, TODAY, STANDARD_POLICY)

    days = list(heatmap)
    assert len(days) == 30
    assert days[0] == TODAY - timedelta(days=29)
    assert days[-1] == TODAY
    assert days == sorted(set(days))
    assert heatmap[TODAY - timedelta(days=12)] == 3


def test_scenario_levels_under_standard_policy():
    records = [
        DailyRecord(day=date(2024, 1, 1), pages_read=15),
        DailyRecord(day=date(2024, 1, 2), pages_read=0),
        DailyRecord(day=date(2024, 1, 3), pages_read=40),
        DailyRecord(day=date(2024, 1, 4), pages_read=5),
    ]
    heatmap = build_heatmap(records, 4, TODAY, STANDARD_POLICY)
    assert list(heatmap.values()) == [2, 0, 3, 1]


def test_records_outside_window_are_ignored():
    records = [
        DailyRecord(day=TODAY - timedelta(days=10), pages_read=80),
        DailyRecord(day=TODAY + timedelta(days=1), pages_read=80),
    ]
    heatmap = build_heatmap(records, 5, TODAY, STANDARD_POLICY)
    assert set(heatmap.values()) == {0}


def test_classifier_choice_changes_levels():
    records = [DailyRecord(day=TODAY, pages_read=55)]
    assert build_heatmap(records, 1, TODAY, STANDARD_POLICY)[TODAY] == 3
    assert build_heatmap(records, 1, TODAY, COMPACT_POLICY)[TODAY] == 4


def test_cells_carry_pages():
    records = [DailyRecord(day=TODAY, pages_read=12)]
    cells = build_heatmap_cells(records, 2, TODAY)

    assert [cell.to_dict() for cell in cells] == [
        {"date": "2024-01-03", "pages_read": 0, "level": 0},
        {"date": "2024-01-04", "pages_read": 12, "level": 2},
    ]


@pytest.mark.parametrize("window", [0, -3])
def test_non_positive_window_is_invalid(window):
    with pytest.raises(InvalidArgument):
        build_heatmap([], window, TODAY)


def test_heatmap_is_idempotent():
    records = [DailyRecord(day=date(2024, 1, 1), pages_read=15), DailyRecord(day=date(2024, 1, 3), pages_read=40)]
    assert build_heatmap(records, 7, TODAY) == build_heatmap(records, 7, TODAY)
    assert build_heatmap_cells(records, 7, TODAY, COMPACT_POLICY) == build_heatmap_cells(
        records, 7, TODAY, COMPACT_POLICY
    )


def test_window_reaching_before_first_calendar_day_is_invalid():
    with pytest.raises(InvalidArgument, match="out of range"):
        build_heatmap([], 2, date.min)

    assert build_heatmap([], 1, date.min) == {date.min: 0}
