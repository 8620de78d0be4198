from __future__ import annotations

import datetime as dt
from typing import Union

from .model import ViewType

DateLike = Union[dt.datetime, dt.date]

DAYS_PER_WEEK = 7
MONTH_GRID_ROWS = 6
DEFAULT_START_HOUR = 9
KEY_FORMAT = "%Y-%m-%d"


def _as_date(value: DateLike) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    return value


def day_of_week(value: DateLike) -> int:
    """Monday=1 .. Sunday=7."""
    return value.isoweekday()


def is_same_day(a: DateLike, b: DateLike) -> bool:
    return _as_date(a) == _as_date(b)


def at_hour(value: DateLike, hour: int) -> dt.datetime:
    # timedelta keeps hour=24 legal (midnight of the next day).
    return dt.datetime.combine(_as_date(value), dt.time()) + dt.timedelta(hours=hour)


def at_hour_same_day(value: DateLike, hour: int) -> dt.datetime:
    """Like `at_hour`, but hour 24 gives the last instant of the same date."""
    return min(at_hour(value, hour), dt.datetime.combine(_as_date(value), dt.time.max))


def days_between(start: DateLike, end: DateLike) -> int:
    """Calendar days from the date of `start` to the date of `end` (negative when `end` is earlier)."""
    return (_as_date(end) - _as_date(start)).days


def span_days(start: DateLike, end: DateLike) -> int:
    """Calendar days touched by [start, end], counting both ends."""
    return (_as_date(end) - _as_date(start)).days + 1


def clamp_to_hours(
    start: dt.datetime, end: dt.datetime, *, start_hour: int, end_hour: int
) -> tuple[dt.datetime, dt.datetime]:
    new_end = at_hour(end, end_hour) if end.hour > end_hour else end
    new_start = at_hour(start, start_hour) if start.hour < start_hour else start
    return new_start, new_end


def week_bounds(value: DateLike) -> tuple[dt.date, dt.date]:
    day = _as_date(value)
    monday = day - dt.timedelta(days=day_of_week(day) - 1)
    return monday, monday + dt.timedelta(days=DAYS_PER_WEEK - 1)


def week_key(value: DateLike) -> str:
    monday, sunday = week_bounds(value)
    return f"{monday.strftime(KEY_FORMAT)}~{sunday.strftime(KEY_FORMAT)}"


def range_key(start: DateLike, end: DateLike) -> str:
    return f"{_as_date(start).strftime(KEY_FORMAT)}~{_as_date(end).strftime(KEY_FORMAT)}"


def month_grid_start(anchor: DateLike) -> dt.date:
    """First Monday shown by a month grid: the Monday on or before the 1st of the month."""
    first = _as_date(anchor).replace(day=1)
    return week_bounds(first)[0]


def month_row_index(value: DateLike, anchor: DateLike | None = None) -> int:
    """Zero-based week row of `value` in the month grid of `anchor` (defaults to its own month)."""
    grid_start = month_grid_start(anchor if anchor is not None else value)
    return (_as_date(value) - grid_start).days // DAYS_PER_WEEK


def panel_start(current: DateLike, start_hour: int | None = None) -> dt.datetime:
    return at_hour(current, DEFAULT_START_HOUR if start_hour is None else int(start_hour))


def in_active_panel(start: dt.datetime, end: dt.datetime, *, current: DateLike, view_type: ViewType) -> bool:
    if end < start:
        return False
    if view_type == "time":
        return is_same_day(current, start)
    if view_type == "week":
        monday, sunday = week_bounds(current)
        return monday <= _as_date(start) <= sunday
    anchor = _as_date(current)
    return (start.year, start.month) == (anchor.year, anchor.month)
