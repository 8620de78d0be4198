from __future__ import annotations

import datetime as dt
from typing import Iterable, Optional

from .model import CellContainer, Fragment, LayoutPass, Placement, ViewType
from .time_math import DateLike, month_row_index, range_key, week_key


def sort_fragments(fragments: Iterable[Fragment]) -> list[Fragment]:
    # sorted() is stable: equal starts keep their input order.
    return sorted(fragments, key=lambda f: f.start)


def cell_key(fragment: Fragment, view_type: ViewType) -> str:
    if view_type == "month":
        return week_key(fragment.start)
    return range_key(fragment.start, fragment.end)


def in_same_row(fragment: Fragment, row: Fragment, row_span_end: dt.datetime) -> bool:
    """
    A fragment shares a row when it repeats the row's range exactly, or starts before the row
    (with everything already stacked on it) has finished. Touching counts; a gap does not.
    """
    if fragment.start == row.start and fragment.end == row.end:
        return True
    return row.start <= fragment.start <= row_span_end


def _find_group(groups: list[int], placements: list[Placement], start: dt.datetime) -> Optional[int]:
    for idx in groups:
        span_end = placements[idx].span_end
        if span_end is not None and span_end >= start:
            return idx
    return None


def group_fragments(
    fragments: Iterable[Fragment], view_type: ViewType, *, month_anchor: DateLike | None = None
) -> LayoutPass:
    ordered = sort_fragments(fragments)
    placements = [Placement() for _ in ordered]
    cells: dict[str, CellContainer] = {}
    groups: list[int] = []

    for idx, fragment in enumerate(ordered):
        key = cell_key(fragment, view_type)
        cell = cells.get(key)
        if cell is None:
            cell = CellContainer(
                key=key,
                date=fragment.start,
                end=fragment.end,
                is_colspan=fragment.is_colspan,
                month_row=month_row_index(fragment.start, month_anchor),
            )
            cells[key] = cell
        cell.children.append(idx)

        node = placements[idx]
        owner = _find_group(groups, placements, fragment.start)
        if owner is None:
            node.kind = "group"
            node.span_end = fragment.end
            groups.append(idx)
            continue

        group = placements[owner]
        group.span_end = max(group.span_end or fragment.end, fragment.end)
        node.group = owner

        row_idx: Optional[int] = None
        for candidate in reversed(group.rows):
            row_node = placements[candidate]
            if in_same_row(fragment, ordered[candidate], row_node.span_end or ordered[candidate].end):
                row_idx = candidate
                break

        if row_idx is None:
            node.kind = "row"
            node.span_end = fragment.end
            group.rows.append(idx)
            continue

        row_node = placements[row_idx]
        row_node.leaves.append(idx)
        row_node.span_end = max(row_node.span_end or fragment.end, fragment.end)
        node.kind = "leaf"
        node.row = row_idx
        node.leaf_index = len(row_node.leaves) - 1

    return LayoutPass(fragments=ordered, placements=placements, cells=cells, geometries=[None] * len(ordered))
