from __future__ import annotations

import datetime as dt
import logging
import math
from typing import Iterable

from .model import CalendarEvent, Fragment, ViewType
from .time_math import DAYS_PER_WEEK, at_hour, at_hour_same_day, clamp_to_hours, day_of_week, days_between

logger = logging.getLogger(__name__)


def clamp_event(event: CalendarEvent, *, start_hour: int, end_hour: int) -> Fragment:
    start, end = clamp_to_hours(event.start, event.end, start_hour=start_hour, end_hour=end_hour)
    return Fragment(start=start, end=end, source=event, e_start=event.start, e_end=event.end)


def split_month_event(event: CalendarEvent, diff_days: int) -> list[Fragment]:
    """
    Cut a multi-day event at week-row boundaries of the month grid (rows run Monday..Sunday).

    Every fragment of a cut event is a colspan; cut points keep the time of day of the event start.
    """
    start_day = day_of_week(event.start)
    if start_day + diff_days <= DAYS_PER_WEEK:
        return [
            Fragment(
                start=event.start,
                end=event.end,
                source=event,
                e_start=event.start,
                e_end=event.end,
                is_colspan=diff_days >= 1,
            )
        ]

    extra_rows = math.ceil(abs(DAYS_PER_WEEK - (start_day + diff_days)) / DAYS_PER_WEEK)
    fragments: list[Fragment] = []
    for idx in range(extra_rows + 1):
        if idx == 0:
            start = event.start
        else:
            start = event.start + dt.timedelta(days=DAYS_PER_WEEK + 1 - start_day + DAYS_PER_WEEK * (idx - 1))
        if idx == extra_rows:
            end = event.end
        else:
            end = event.start + dt.timedelta(days=DAYS_PER_WEEK - start_day + DAYS_PER_WEEK * idx)
        fragments.append(
            Fragment(start=start, end=end, source=event, e_start=event.start, e_end=event.end, is_colspan=True)
        )
    return fragments


def split_daily_event(event: CalendarEvent, diff_days: int, *, start_hour: int, end_hour: int) -> list[Fragment]:
    first_start, last_end = clamp_to_hours(event.start, event.end, start_hour=start_hour, end_hour=end_hour)
    fragments: list[Fragment] = []
    for idx in range(diff_days + 1):
        start = first_start if idx == 0 else at_hour(event.start + dt.timedelta(days=idx), start_hour)
        end = last_end if idx == diff_days else at_hour_same_day(start, end_hour)
        fragments.append(Fragment(start=start, end=end, source=event, e_start=event.start, e_end=event.end))
    return fragments


def split_events(
    events: Iterable[CalendarEvent], *, view_type: ViewType, start_hour: int, end_hour: int
) -> list[Fragment]:
    """Turn raw events into per-cell fragments. The result is not sorted."""
    fragments: list[Fragment] = []
    for event in events:
        diff = days_between(event.start, event.end)
        if diff <= 0:
            fragments.append(clamp_event(event, start_hour=start_hour, end_hour=end_hour))
        elif view_type == "month":
            fragments.extend(split_month_event(event, diff))
        else:
            fragments.extend(split_daily_event(event, diff, start_hour=start_hour, end_hour=end_hour))
    logger.debug("split %d fragments for %s view", len(fragments), view_type)
    return fragments
