from __future__ import annotations

from datetime import date, datetime

import pytest
from fastapi import HTTPException

from app.services.time_window import (
    month_to_date_window,
    open_range_window,
    report_buckets,
    resolve_optional_window,
    resolve_window,
)


def test_weekly_window_covers_seven_days_ending_on_date() -> None:
    window = resolve_window("weekly", year=2025, month=1, day=15)

    assert window.start == datetime(2025, 1, 9)
    assert window.end == datetime(2025, 1, 16)
    assert window.first_day == date(2025, 1, 9)
    assert window.last_day == date(2025, 1, 15)
    assert window.label == "2025-01-09 to 2025-01-15"
    assert len(window.days()) == 7


def test_weekly_window_requires_year_month_and_date() -> None:
    with pytest.raises(HTTPException) as exc_info:
        resolve_window("weekly", year=2025, month=1)

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "Missing year, month, or date."


def test_yearly_window_label_and_bounds() -> None:
    window = resolve_window("yearly", year=2025)

    assert window.start == datetime(2025, 1, 1)
    assert window.end == datetime(2026, 1, 1)
    assert window.label == "Year 2025(1-Jan-2025 to 31-Dec-2025)"


def test_monthly_window_handles_leap_february() -> None:
    window = resolve_window("monthly", year=2024, month=2)

    assert window.last_day == date(2024, 2, 29)
    assert window.label == "1-Feb-2024 to 29-Feb-2024"


def test_missing_year_and_month_default_to_today() -> None:
    window = resolve_window("monthly", today=date(2025, 3, 10))

    assert window.first_day == date(2025, 3, 1)
    assert window.last_day == date(2025, 3, 31)


def test_type_defaults_to_yearly() -> None:
    assert resolve_window(None, today=date(2023, 6, 1)).kind == "yearly"


def test_custom_window_rejects_inverted_range() -> None:
    with pytest.raises(HTTPException) as exc_info:
        resolve_window("custom", start_date=date(2025, 2, 1), end_date=date(2025, 1, 1))

    assert exc_info.value.status_code == 400


def test_invalid_calendar_date_is_bad_request() -> None:
    with pytest.raises(HTTPException) as exc_info:
        resolve_window("weekly", year=2025, month=2, day=30)

    assert exc_info.value.status_code == 400


def test_unknown_type_is_bad_request() -> None:
    with pytest.raises(HTTPException) as exc_info:
        resolve_window("quarterly")

    assert exc_info.value.status_code == 400


def test_optional_window_is_none_without_type() -> None:
    assert resolve_optional_window(None) is None
    assert resolve_optional_window("  ") is None
    assert resolve_optional_window("monthly", year=2025, month=1).kind == "monthly"


def test_open_range_window_fills_missing_side() -> None:
    assert open_range_window(None, None) is None

    only_start = open_range_window(date(2025, 3, 1), None, today=date(2025, 3, 10))
    assert only_start.start == datetime(2025, 3, 1)
    assert only_start.end == datetime(2025, 3, 11)

    only_end = open_range_window(None, date(2025, 3, 1))
    assert only_end.first_day == date(2000, 1, 1)
    assert only_end.last_day == date(2025, 3, 1)


def test_yearly_buckets_stop_at_current_month() -> None:
    window = resolve_window("yearly", year=2025)

    current_year = report_buckets(window, today=date(2025, 3, 10))
    past_year = report_buckets(window, today=date(2026, 3, 10))

    assert [bucket.name for bucket in current_year] == ["January", "February", "March"]
    assert len(past_year) == 12
    assert past_year[-1].end == datetime(2026, 1, 1)


def test_monthly_buckets_are_five_day_ranges() -> None:
    buckets = report_buckets(resolve_window("monthly", year=2025, month=1))

    assert len(buckets) == 7
    assert buckets[0].name == "2025-01-01 to 2025-01-05"
    assert buckets[-1].name == "2025-01-31 to 2025-01-31"
    assert buckets[-1].end == datetime(2025, 2, 1)


def test_weekly_buckets_are_daily() -> None:
    buckets = report_buckets(resolve_window("weekly", year=2025, month=1, day=15))

    assert [bucket.name for bucket in buckets][0] == "2025-01-09"
    assert len(buckets) == 7


def test_month_to_date_window_counts_elapsed_days() -> None:
    window = month_to_date_window(date(2025, 3, 10))

    assert window.first_day == date(2025, 3, 1)
    assert len(window.days()) == 10


@pytest.mark.parametrize(
    "kind, params",
    [
        ("yearly", {"year": 9999}),
        ("weekly", {"year": 1, "month": 1, "day": 3}),
        ("custom", {"start_date": date(9999, 12, 1), "end_date": date(9999, 12, 31)}),
    ],
)
def test_calendar_edges_are_bad_request(kind: str, params: dict) -> None:
    with pytest.raises(HTTPException) as exc_info:
        resolve_window(kind, **params)

    assert exc_info.value.status_code == 400


@pytest.mark.parametrize("params", [{"year": 0}, {"year": 2025, "month": 0}])
def test_zero_year_or_month_is_not_treated_as_missing(params: dict) -> None:
    with pytest.raises(HTTPException) as exc_info:
        resolve_window("monthly", today=date(2025, 6, 1), **params)

    assert exc_info.value.status_code == 400
