from __future__ import annotations

import datetime as dt
import functools
import logging
import math
from typing import Any, Callable, Optional, Sequence

from .model import BoxStyle, Fragment, OverflowCounter, OverflowInfo, RenderableDescriptor, ResolvedFragment, ViewType
from .time_math import DAYS_PER_WEEK, KEY_FORMAT, MONTH_GRID_ROWS, day_of_week, span_days

logger = logging.getLogger(__name__)

DEFAULT_VISIBLE_CAP = 99
COMPACT_CAP = -1
MONTH_HEADER_PX = 32
MONTH_ITEM_PX = 20
MONTH_USABLE_RATIO = 0.8
COMPACT_MAX_PX = 42
HIDDEN_MAX_PX = 50


def visible_cap_for_height(cell_pixel_height: Optional[float], *, default: int = DEFAULT_VISIBLE_CAP) -> int:
    """
    How many boxes fit in one month cell of a grid `cell_pixel_height` pixels tall.

    -1 means only a compact marker fits, 0 means a numbered marker but no boxes.
    """
    if cell_pixel_height is None:
        return default
    usable = MONTH_USABLE_RATIO * (float(cell_pixel_height) - MONTH_HEADER_PX) / MONTH_GRID_ROWS
    if 0 < usable <= COMPACT_MAX_PX:
        return COMPACT_CAP
    if COMPACT_MAX_PX < usable <= HIDDEN_MAX_PX:
        return 0
    return max(COMPACT_CAP, math.floor(usable / MONTH_ITEM_PX) - 1)


def count_days(fragment: Fragment, counters: dict[str, OverflowCounter]) -> None:
    """Bump the per-day counter of every calendar day the fragment covers."""
    for offset in range(span_days(fragment.start, fragment.end)):
        day = fragment.start + dt.timedelta(days=offset)
        key = day.strftime(KEY_FORMAT)
        counter = counters.get(key)
        if counter is None:
            counters[key] = OverflowCounter(
                key=key,
                count=1,
                offset_x=(day_of_week(day) - 1) / DAYS_PER_WEEK,
                width=1.0 / DAYS_PER_WEEK,
            )
        else:
            counter.count += 1


def fragment_content(fragment: Fragment) -> Any:
    render = fragment.render
    if callable(render):
        try:
            return render(fragment)
        except Exception as exc:
            logger.warning("renderer failed for event %r; showing the day number instead: %s", fragment.source.event_id, exc)
    return str(fragment.start.day)


def overflow_markers(
    counters: dict[str, OverflowCounter],
    visible_cap: int,
    *,
    on_overflow_click: Optional[Callable[[str, str], Any]] = None,
) -> list[RenderableDescriptor]:
    markers: list[RenderableDescriptor] = []
    is_compact = visible_cap <= COMPACT_CAP
    for key, counter in counters.items():
        if counter.count <= 0:
            continue
        on_click = functools.partial(on_overflow_click, "time", key) if on_overflow_click else None
        markers.append(
            RenderableDescriptor(
                style=BoxStyle(left=counter.offset_x * 100.0, width=counter.width * 100.0),
                content="" if is_compact else str(counter.count),
                overflow=OverflowInfo(key=key, count=counter.count, is_compact=is_compact),
                on_click=on_click,
            )
        )
    return markers


def summarize_cell(
    entries: Sequence[ResolvedFragment],
    visible_cap: int,
    view_type: ViewType,
    counters: dict[str, OverflowCounter],
    *,
    on_overflow_click: Optional[Callable[[str, str], Any]] = None,
) -> list[RenderableDescriptor]:
    """
    Render the first `visible_cap` entries as boxes. In month view the rest are tallied per day in
    `counters` and, once the cell is full (or nothing fit at all), surface as "+N" markers.
    """
    is_month = view_type == "month"
    rendered: list[RenderableDescriptor] = []
    for entry in entries:
        if len(rendered) < visible_cap:
            fragment = entry.fragment
            rendered.append(
                RenderableDescriptor(
                    style=BoxStyle.from_geometry(entry.geometry),
                    content=fragment_content(fragment),
                    is_important=fragment.important,
                    fragment=fragment,
                )
            )
        elif is_month:
            count_days(entry.fragment, counters)

    if is_month and (len(rendered) == visible_cap or not rendered):
        rendered.extend(overflow_markers(counters, visible_cap, on_overflow_click=on_overflow_click))
    return rendered
