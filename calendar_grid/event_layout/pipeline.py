from __future__ import annotations

import logging
from typing import Iterable

from .event_split import split_events
from .geometry import resolve_cell_geometry, resolve_pass
from .model import (
    BoxStyle,
    CalendarEvent,
    CellContainer,
    CellLayout,
    LayoutOptions,
    LayoutPass,
    OverflowCounter,
    ResolvedFragment,
)
from .overflow import MONTH_ITEM_PX, summarize_cell, visible_cap_for_height
from .overlap_group import group_fragments
from .time_math import in_active_panel, is_same_day

logger = logging.getLogger(__name__)


def build_layout_pass(events: Iterable[CalendarEvent], options: LayoutOptions) -> LayoutPass:
    fragments = split_events(
        events,
        view_type=options.view_type,
        start_hour=options.start_hour,
        end_hour=options.end_hour,
    )
    layout_pass = group_fragments(fragments, options.view_type, month_anchor=options.current)
    resolve_pass(layout_pass, options)
    return layout_pass


def visible_cap(options: LayoutOptions) -> int:
    if options.view_type != "month":
        return options.default_visible_cap
    return visible_cap_for_height(options.cell_pixel_height, default=options.default_visible_cap)


def _month_padding_top(cell: CellContainer, options: LayoutOptions, cap: int) -> float:
    # The day number sits above the boxes; the anchor day's header grows with the cap.
    if is_same_day(cell.end, options.current):
        return float(7 * (cap + 1))
    return float(MONTH_ITEM_PX)


def active_entries(layout_pass: LayoutPass, cell: CellContainer, options: LayoutOptions) -> list[ResolvedFragment]:
    entries: list[ResolvedFragment] = []
    for idx in cell.children:
        fragment = layout_pass.fragments[idx]
        if not in_active_panel(fragment.start, fragment.end, current=options.current, view_type=options.view_type):
            logger.debug("fragment %s..%s is outside the %s panel", fragment.start, fragment.end, options.view_type)
            continue
        geometry = layout_pass.geometries[idx]
        if geometry is None:
            continue
        entries.append(ResolvedFragment(fragment=fragment, geometry=geometry))
    return entries


def layout_events(events: Iterable[CalendarEvent], options: LayoutOptions) -> dict[str, CellLayout]:
    """
    Lay out `events` for one calendar panel.

    Returns the cells that have something to show, keyed by "YYYY-MM-DD~YYYY-MM-DD", in the order
    their first fragment appears chronologically.
    """
    layout_pass = build_layout_pass(events, options)
    cap = visible_cap(options)
    is_month = options.view_type == "month"

    layout: dict[str, CellLayout] = {}
    for key, cell in layout_pass.cells.items():
        entries = active_entries(layout_pass, cell, options)
        if not entries:
            continue
        counters: dict[str, OverflowCounter] = {}
        children = summarize_cell(
            entries,
            cap,
            options.view_type,
            counters,
            on_overflow_click=options.on_overflow_click,
        )
        geometry = resolve_cell_geometry(cell, options.view_type)
        layout[key] = CellLayout(
            key=key,
            geometry=geometry,
            style=BoxStyle.from_geometry(geometry),
            children=children,
            visible_cap=cap,
            is_colspan=cell.is_colspan,
            hidden=is_month and cap == 0,
            padding_top_px=_month_padding_top(cell, options, cap) if is_month else 0.0,
        )

    logger.info(
        "laid out %d fragments into %d %s cells",
        len(layout_pass.fragments),
        len(layout),
        options.view_type,
    )
    return layout
