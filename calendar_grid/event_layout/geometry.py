from __future__ import annotations

import datetime as dt
import logging
import math
from typing import Callable, Optional

from .model import CellContainer, Fragment, Geometry, LayoutOptions, LayoutPass, NodeKind
from .time_math import DAYS_PER_WEEK, MONTH_GRID_ROWS, day_of_week, panel_start, span_days

logger = logging.getLogger(__name__)

CELL_INSET = 0.005
COLUMN_GUTTER = 0.01
MONTH_ROW_HEIGHT = 1.0 / MONTH_GRID_ROWS - CELL_INSET
ONE_MS = dt.timedelta(milliseconds=1)


def _finite(value: Optional[float]) -> Optional[float]:
    if value is None or not math.isfinite(value):
        return None
    return value


def day_column(start: dt.datetime, end: dt.datetime, *, full_row: bool = False) -> tuple[float, float]:
    """(width, offset_x) of a box covering the weekday columns from `start` to `end`."""
    if full_row:
        return 1.0 - CELL_INSET, CELL_INSET
    weekday = day_of_week(start)
    days = min(span_days(start, end), DAYS_PER_WEEK + 1 - weekday)
    return days / DAYS_PER_WEEK - CELL_INSET, (weekday - 1) / DAYS_PER_WEEK


def resolve_cell_geometry(cell: CellContainer, view_type: str) -> Geometry:
    if view_type == "month":
        return Geometry(
            width=1.0 - CELL_INSET,
            offset_x=CELL_INSET,
            top=cell.month_row / MONTH_GRID_ROWS,
            height=MONTH_ROW_HEIGHT,
        )
    if view_type == "week":
        width, offset_x = day_column(cell.date, cell.end, full_row=cell.is_colspan)
        return Geometry(width=width, offset_x=offset_x, top=0.0, height=1.0)
    return Geometry(width=1.0 - COLUMN_GUTTER, offset_x=CELL_INSET, top=0.0, height=1.0)


def _resolved_box(layout_pass: LayoutPass, idx: Optional[int]) -> tuple[float, float]:
    geometry = layout_pass.geometries[idx] if idx is not None else None
    if geometry is None or not geometry.has_box:
        return math.nan, math.nan
    return float(geometry.width), float(geometry.offset_x)  # type: ignore[arg-type]


def _group_box(layout_pass: LayoutPass, idx: int) -> tuple[float, float]:
    rows = layout_pass.placements[idx].rows
    if not rows:
        return 1.0, 0.0
    columns = max(len(layout_pass.placements[r].leaves) + 1 for r in rows) + 1
    return 1.0 / columns - COLUMN_GUTTER, 0.0


def _row_box(layout_pass: LayoutPass, idx: int) -> tuple[float, float]:
    node = layout_pass.placements[idx]
    group_width, group_offset = _resolved_box(layout_pass, node.group)
    total = len(node.leaves) + 2
    gap = (1.0 - group_width * total) / (total - 1)
    return group_width, group_width + group_offset + gap


def _leaf_box(layout_pass: LayoutPass, idx: int) -> tuple[float, float]:
    node = layout_pass.placements[idx]
    row_width, row_offset = _resolved_box(layout_pass, node.row)
    step = row_width + (row_offset - row_width)
    return row_width, row_offset + step * (node.leaf_index + 1)


_BOX_RESOLVERS: dict[NodeKind, Callable[[LayoutPass, int], tuple[float, float]]] = {
    "group": _group_box,
    "row": _row_box,
    "leaf": _leaf_box,
}


def time_of_day_box(fragment: Fragment, options: LayoutOptions) -> tuple[Optional[float], Optional[float]]:
    """(top, height) inside a time column; the window is the visible slices plus one slot of margin each side."""
    if options.view_type == "month":
        return 0.0, 0.0
    step_ms = options.step_minutes * 60_000
    window_ms = (options.slice_count + 2) * step_ms
    anchor = options.current if options.view_type == "time" else fragment.start
    start_ms = (fragment.start - panel_start(anchor, options.start_hour)) / ONE_MS
    try:
        top = (start_ms + step_ms) / window_ms + CELL_INSET
        height = ((fragment.end - fragment.start) / ONE_MS) / window_ms - COLUMN_GUTTER
    except ZeroDivisionError:
        return None, None
    height_ok = _finite(height)
    return _finite(top), None if height_ok is None else max(height_ok, 0.0)


def resolve_fragment_geometry(layout_pass: LayoutPass, idx: int, options: LayoutOptions) -> Geometry:
    """
    Resolve one fragment and record it in the pass so rows and leaves resolved later can build on it.

    Fragments must be resolved in pass order: a row reads its group's box, a leaf its row's box.
    """
    fragment = layout_pass.fragments[idx]
    kind = layout_pass.placements[idx].kind
    try:
        if options.view_type == "month" or (options.view_type == "week" and fragment.is_colspan):
            width, offset_x = day_column(fragment.start, fragment.end)
        else:
            width, offset_x = _BOX_RESOLVERS[kind](layout_pass, idx)
    except ZeroDivisionError:
        width, offset_x = math.nan, math.nan

    top, height = time_of_day_box(fragment, options)
    width_ok, offset_ok = _finite(width), _finite(offset_x)
    if width_ok is None or offset_ok is None:
        logger.debug("no finite box for %s fragment starting %s; leaving placement to the renderer", kind, fragment.start)
        width_ok = offset_ok = None

    geometry = Geometry(width=width_ok, offset_x=offset_ok, top=top, height=height)
    layout_pass.geometries[idx] = geometry
    return geometry


def resolve_pass(layout_pass: LayoutPass, options: LayoutOptions) -> list[Geometry]:
    return [resolve_fragment_geometry(layout_pass, idx, options) for idx in range(len(layout_pass.fragments))]
