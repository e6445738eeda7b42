"""Report windows and the buckets inside them.

Every window is half-open: ``start`` is midnight of the first included day
and ``end`` is midnight after the last included day, so queries compare
``column >= start AND column < end`` on any backend.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from fastapi import HTTPException, status

WINDOW_TYPES = ("yearly", "monthly", "weekly", "custom")
OPEN_RANGE_FLOOR = date(2000, 1, 1)


@dataclass(frozen=True, slots=True)
class TimeWindow:
    kind: str
    start: datetime
    end: datetime
    label: str

    @property
    def first_day(self) -> date:
        return self.start.date()

    @property
    def last_day(self) -> date:
        return (self.end - timedelta(days=1)).date()

    def days(self) -> list[date]:
        span = (self.end.date() - self.first_day).days
        return [self.first_day + timedelta(days=offset) for offset in range(span)]


@dataclass(frozen=True, slots=True)
class Bucket:
    name: str
    start: datetime
    end: datetime


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _midnight(day: date) -> datetime:
    return datetime.combine(day, time.min)


def _dmy(day: date) -> str:
    return f"{day.day}-{day:%b-%Y}"


def _calendar_date(year: int, month: int, day: int) -> date:
    try:
        return date(year, month, day)
    except (ValueError, OverflowError) as exc:
        raise _bad_request("Invalid date combination. Use valid year, month, and date.") from exc


def day_window(first_day: date, last_day: date, *, kind: str = "custom", label: str | None = None) -> TimeWindow:
    """Inclusive calendar range ``[first_day, last_day]`` as a half-open window."""

    if last_day < first_day:
        raise _bad_request("end_date must not be before start_date.")
    try:
        end = _midnight(last_day + timedelta(days=1))
    except OverflowError as exc:
        raise _bad_request("Date is outside the supported calendar range.") from exc
    return TimeWindow(
        kind=kind,
        start=_midnight(first_day),
        end=end,
        label=label if label is not None else f"{_dmy(first_day)} to {_dmy(last_day)}",
    )


def resolve_window(
    kind: str | None,
    *,
    year: int | None = None,
    month: int | None = None,
    day: int | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    today: date | None = None,
) -> TimeWindow:
    """Parse report parameters into a window; missing year/month default to today."""

    current = today or date.today()
    normalized = (kind or "yearly").strip().lower()

    if normalized == "yearly":
        target_year = current.year if year is None else year
        first = _calendar_date(target_year, 1, 1)
        last = date(target_year, 12, 31)
        return day_window(
            first,
            last,
            kind="yearly",
            label=f"Year {target_year}({_dmy(first)} to {_dmy(last)})",
        )

    if normalized == "monthly":
        target_year = current.year if year is None else year
        target_month = current.month if month is None else month
        first = _calendar_date(target_year, target_month, 1)
        last = first.replace(day=calendar.monthrange(target_year, target_month)[1])
        return day_window(first, last, kind="monthly")

    if normalized == "weekly":
        if year is None or month is None or day is None:
            raise _bad_request("Missing year, month, or date.")
        last = _calendar_date(year, month, day)
        try:
            first = last - timedelta(days=6)
        except OverflowError as exc:
            raise _bad_request("Date is outside the supported calendar range.") from exc
        return day_window(first, last, kind="weekly", label=f"{first.isoformat()} to {last.isoformat()}")

    if normalized == "custom":
        if start_date is None or end_date is None:
            raise _bad_request("start_date and end_date are required for custom range.")
        return day_window(start_date, end_date, kind="custom")

    raise _bad_request(f"Invalid type. Use one of: {', '.join(WINDOW_TYPES)}.")


def resolve_optional_window(kind: str | None, **params: object) -> TimeWindow | None:
    """Same as :func:`resolve_window` but ``None`` when no type was requested."""

    if kind is None or not kind.strip():
        return None
    return resolve_window(kind, **params)  # type: ignore[arg-type]


def open_range_window(
    start_date: date | None,
    end_date: date | None,
    *,
    today: date | None = None,
) -> TimeWindow | None:
    """Window for ``start_date``/``end_date`` filters where either side may be open.

    Only a start means up to today; only an end means from 2000-01-01.
    """

    if start_date is None and end_date is None:
        return None
    first = start_date or OPEN_RANGE_FLOOR
    last = end_date or (today or date.today())
    return day_window(first, last)


def report_buckets(window: TimeWindow, *, today: date | None = None) -> list[Bucket]:
    current = today or date.today()

    if window.kind == "yearly":
        year = window.first_day.year
        last_month = current.month if year == current.year else 12
        buckets: list[Bucket] = []
        for month in range(1, last_month + 1):
            first = date(year, month, 1)
            last = first.replace(day=calendar.monthrange(year, month)[1])
            buckets.append(
                Bucket(
                    name=calendar.month_name[month],
                    start=_midnight(first),
                    end=_midnight(last + timedelta(days=1)),
                )
            )
        return buckets

    if window.kind == "monthly":
        buckets = []
        first = window.first_day
        while first <= window.last_day:
            last = min(first + timedelta(days=4), window.last_day)
            buckets.append(
                Bucket(
                    name=f"{first.isoformat()} to {last.isoformat()}",
                    start=_midnight(first),
                    end=_midnight(last + timedelta(days=1)),
                )
            )
            first = last + timedelta(days=1)
        return buckets

    return [
        Bucket(name=day.isoformat(), start=_midnight(day), end=_midnight(day + timedelta(days=1)))
        for day in window.days()
    ]


def month_to_date_window(today: date | None = None) -> TimeWindow:
    current = today or date.today()
    return day_window(current.replace(day=1), current, kind="monthly")
