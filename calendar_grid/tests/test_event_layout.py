from __future__ import annotations

import datetime as dt

import pytest

from calendar_grid.event_layout.event_split import clamp_event, split_events
from calendar_grid.event_layout.geometry import resolve_cell_geometry, resolve_fragment_geometry, resolve_pass
from calendar_grid.event_layout.model import CalendarEvent, LayoutOptions
from calendar_grid.event_layout.overlap_group import cell_key, group_fragments, in_same_row, sort_fragments
from calendar_grid.event_layout.time_math import (
    clamp_to_hours,
    day_of_week,
    in_active_panel,
    month_row_index,
    panel_start,
    week_bounds,
    week_key,
)
from calendar_grid.event_layout.time_parse import parse_instant


def _at(value: str) -> dt.datetime:
    return parse_instant(value)


def _event(start: str, end: str, event_id: str = "") -> CalendarEvent:
    return CalendarEvent(start=_at(start), end=_at(end), event_id=event_id)


def _options(view_type: str = "time", current: str = "2018-11-12", **kwargs) -> LayoutOptions:
    values = dict(start_hour=9, end_hour=18, step_minutes=30, visible_slice_count=18)
    values.update(kwargs)
    return LayoutOptions(view_type=view_type, current=_at(current), **values)  # type: ignore[arg-type]


def _split(events: list[CalendarEvent], view_type: str = "time"):
    return split_events(events, view_type=view_type, start_hour=9, end_hour=18)  # type: ignore[arg-type]


def test_day_of_week_is_monday_first() -> None:
    assert day_of_week(dt.date(2018, 11, 12)) == 1
    assert day_of_week(dt.date(2018, 11, 17)) == 6
    assert day_of_week(dt.date(2018, 11, 18)) == 7


def test_clamp_to_hours_truncates_both_ends() -> None:
    start, end = clamp_to_hours(_at("2018-11-12 07:30"), _at("2018-11-12 19:45"), start_hour=9, end_hour=18)
    assert start == _at("2018-11-12 09:00")
    assert end == _at("2018-11-12 18:00")


def test_clamp_to_hours_keeps_end_within_last_hour() -> None:
    start, end = clamp_to_hours(_at("2018-11-12 10:00"), _at("2018-11-12 18:30"), start_hour=9, end_hour=18)
    assert (start, end) == (_at("2018-11-12 10:00"), _at("2018-11-12 18:30"))


def test_week_bounds_and_key() -> None:
    assert week_bounds(dt.date(2018, 11, 14)) == (dt.date(2018, 11, 12), dt.date(2018, 11, 18))
    assert week_key(_at("2018-11-18 23:00")) == "2018-11-12~2018-11-18"


def test_in_active_panel_week_includes_edges() -> None:
    current = dt.date(2018, 11, 14)

    def inside(start: str) -> bool:
        begin = _at(start)
        return in_active_panel(begin, begin + dt.timedelta(hours=1), current=current, view_type="week")

    assert inside("2018-11-12 00:00")
    assert inside("2018-11-18 23:00")
    assert not inside("2018-11-11 23:59")
    assert not inside("2018-11-19 00:00")


def test_in_active_panel_time_and_month() -> None:
    start, end = _at("2018-11-30 10:00"), _at("2018-11-30 11:00")
    assert in_active_panel(start, end, current=dt.date(2018, 11, 1), view_type="month")
    assert not in_active_panel(start, end, current=dt.date(2018, 12, 1), view_type="month")
    assert in_active_panel(start, end, current=dt.date(2018, 11, 30), view_type="time")
    assert not in_active_panel(start, end, current=dt.date(2018, 11, 29), view_type="time")


@pytest.mark.parametrize("view_type", ["time", "week", "month"])
def test_in_active_panel_rejects_inverted_events(view_type: str) -> None:
    start, end = _at("2018-11-12 11:00"), _at("2018-11-12 10:00")
    assert not in_active_panel(start, end, current=dt.date(2018, 11, 12), view_type=view_type)  # type: ignore[arg-type]


def test_month_row_index_uses_monday_first_grid() -> None:
    # November 2018 starts on a Thursday, so the grid opens on Monday 29 October.
    assert month_row_index(dt.date(2018, 11, 1)) == 0
    assert month_row_index(dt.date(2018, 11, 5)) == 1
    assert month_row_index(dt.date(2018, 11, 12)) == 2
    assert month_row_index(dt.date(2018, 11, 30)) == 4
    assert month_row_index(dt.date(2018, 10, 29), dt.date(2018, 11, 12)) == 0


def test_panel_start_defaults_to_nine() -> None:
    assert panel_start(dt.date(2018, 11, 12)) == _at("2018-11-12 09:00")
    assert panel_start(dt.date(2018, 11, 12), 7) == _at("2018-11-12 07:00")


def test_split_is_clamp_for_single_day_events() -> None:
    event = _event("2018-11-12 08:00", "2018-11-12 11:00")
    assert _split([event]) == [clamp_event(event, start_hour=9, end_hour=18)]
    assert _split([event])[0].start == _at("2018-11-12 09:00")


def test_split_month_event_within_week_row_is_single_colspan() -> None:
    fragments = _split([_event("2018-11-12 10:00", "2018-11-14 12:00")], "month")
    assert len(fragments) == 1
    assert fragments[0].is_colspan is True
    assert fragments[0].end == _at("2018-11-14 12:00")


def test_split_month_single_day_is_not_colspan() -> None:
    fragments = _split([_event("2018-11-12 10:00", "2018-11-12 12:00")], "month")
    assert len(fragments) == 1
    assert fragments[0].is_colspan is False


def test_split_month_event_crossing_week_row() -> None:
    # Saturday to the following Tuesday: rows run Monday..Sunday, so the cut falls after Sunday.
    fragments = _split([_event("2018-11-17 10:00", "2018-11-20 09:00")], "month")
    assert len(fragments) == 2
    assert all(f.is_colspan for f in fragments)
    assert fragments[0].start == _at("2018-11-17 10:00")
    assert fragments[0].end.date() == dt.date(2018, 11, 18)
    assert fragments[1].start.date() == dt.date(2018, 11, 19)
    assert fragments[1].end == _at("2018-11-20 09:00")
    assert {f.e_start for f in fragments} == {_at("2018-11-17 10:00")}


def test_split_month_event_with_full_interior_row() -> None:
    fragments = _split([_event("2018-11-10 10:00", "2018-11-20 12:00")], "month")
    assert [(f.start.date(), f.end.date()) for f in fragments] == [
        (dt.date(2018, 11, 10), dt.date(2018, 11, 11)),
        (dt.date(2018, 11, 12), dt.date(2018, 11, 18)),
        (dt.date(2018, 11, 19), dt.date(2018, 11, 20)),
    ]


@pytest.mark.parametrize("days", list(range(0, 20)))
def test_split_month_yields_one_fragment_per_week_row(days: int) -> None:
    start = _at("2018-11-14 10:00")
    end = start + dt.timedelta(days=days, hours=1)
    fragments = _split([CalendarEvent(start=start, end=end)], "month")
    rows = {week_key(start + dt.timedelta(days=k)) for k in range(days + 1)}
    assert len(fragments) == len(rows)
    assert {week_key(f.start) for f in fragments} == rows
    if len(fragments) == 1:
        assert fragments[0].is_colspan is (days >= 1)


def test_split_daily_fragments_cover_each_day() -> None:
    event = _event("2018-11-12 14:00", "2018-11-14 11:00")
    fragments = _split([event], "week")
    assert [(f.start, f.end) for f in fragments] == [
        (_at("2018-11-12 14:00"), _at("2018-11-12 18:00")),
        (_at("2018-11-13 09:00"), _at("2018-11-13 18:00")),
        (_at("2018-11-14 09:00"), _at("2018-11-14 11:00")),
    ]
    assert all(f.e_start == event.start and f.e_end == event.end for f in fragments)
    assert not any(f.is_colspan for f in fragments)


def test_split_daily_with_midnight_end_hour_stays_on_each_day() -> None:
    event = _event("2018-11-12 10:00", "2018-11-14 12:00")
    fragments = split_events([event], view_type="week", start_hour=9, end_hour=24)
    assert [f.start.date() for f in fragments] == [dt.date(2018, 11, 12), dt.date(2018, 11, 13), dt.date(2018, 11, 14)]
    assert all(f.end.date() == f.start.date() for f in fragments)
    assert fragments[0].end == dt.datetime.combine(dt.date(2018, 11, 12), dt.time.max)
    assert [cell_key(f, "week") for f in fragments] == [
        "2018-11-12~2018-11-12",
        "2018-11-13~2018-11-13",
        "2018-11-14~2018-11-14",
    ]


def test_split_daily_clamps_first_and_last() -> None:
    fragments = _split([_event("2018-11-12 07:00", "2018-11-13 20:00")], "time")
    assert [(f.start, f.end) for f in fragments] == [
        (_at("2018-11-12 09:00"), _at("2018-11-12 18:00")),
        (_at("2018-11-13 09:00"), _at("2018-11-13 18:00")),
    ]


def test_sort_fragments_is_stable() -> None:
    a = _event("2018-11-12 10:00", "2018-11-12 11:00", "a")
    b = _event("2018-11-12 09:30", "2018-11-12 11:00", "b")
    c = _event("2018-11-12 10:00", "2018-11-12 10:30", "c")
    fragments = sort_fragments(_split([a, b, c]))
    assert [f.source.event_id for f in fragments] == ["b", "a", "c"]


def test_cell_key_by_view() -> None:
    fragment = _split([_event("2018-11-14 10:00", "2018-11-14 11:00")])[0]
    assert cell_key(fragment, "time") == "2018-11-14~2018-11-14"
    assert cell_key(fragment, "month") == "2018-11-12~2018-11-18"


def test_in_same_row_accepts_equal_and_touching_ranges() -> None:
    row, equal, touching, later = _split(
        [
            _event("2018-11-12 09:00", "2018-11-12 10:00"),
            _event("2018-11-12 09:00", "2018-11-12 10:00"),
            _event("2018-11-12 10:00", "2018-11-12 11:00"),
            _event("2018-11-12 10:30", "2018-11-12 11:00"),
        ]
    )
    assert in_same_row(equal, row, row.end)
    assert in_same_row(touching, row, row.end)
    assert not in_same_row(later, row, row.end)


def test_group_identical_events_into_group_row_leaf() -> None:
    events = [_event("2018-11-12 09:00", "2018-11-12 10:00", str(i)) for i in range(3)]
    layout_pass = group_fragments(_split(events), "time")
    kinds = [p.kind for p in layout_pass.placements]
    assert kinds == ["group", "row", "leaf"]
    assert layout_pass.placements[0].rows == [1]
    assert layout_pass.placements[1].leaves == [2]
    assert layout_pass.placements[2].row == 1
    assert layout_pass.placements[2].group == 0
    assert list(layout_pass.cells) == ["2018-11-12~2018-11-12"]
    assert layout_pass.cells["2018-11-12~2018-11-12"].children == [0, 1, 2]


def test_group_disjoint_events_stay_separate() -> None:
    events = [
        _event("2018-11-12 09:00", "2018-11-12 10:00"),
        _event("2018-11-12 11:00", "2018-11-12 12:00"),
    ]
    layout_pass = group_fragments(_split(events), "time")
    assert [p.kind for p in layout_pass.placements] == ["group", "group"]


def test_group_new_row_after_gap() -> None:
    events = [
        _event("2018-11-12 09:00", "2018-11-12 12:00"),
        _event("2018-11-12 09:30", "2018-11-12 10:00"),
        _event("2018-11-12 10:30", "2018-11-12 11:00"),
    ]
    layout_pass = group_fragments(_split(events), "time")
    assert [p.kind for p in layout_pass.placements] == ["group", "row", "row"]
    assert layout_pass.placements[0].rows == [1, 2]


def test_group_extends_to_members_end() -> None:
    # The third event starts after the group owner ends but while its row is still running.
    events = [
        _event("2018-11-12 09:00", "2018-11-12 10:00"),
        _event("2018-11-12 09:30", "2018-11-12 11:00"),
        _event("2018-11-12 10:30", "2018-11-12 11:30"),
    ]
    layout_pass = group_fragments(_split(events), "time")
    assert [p.kind for p in layout_pass.placements] == ["group", "row", "leaf"]
    assert layout_pass.placements[0].span_end == _at("2018-11-12 11:30")


def test_grouping_is_deterministic() -> None:
    events = [
        _event("2018-11-12 09:00", "2018-11-12 12:00"),
        _event("2018-11-12 09:00", "2018-11-12 10:00"),
        _event("2018-11-12 09:30", "2018-11-12 11:00"),
        _event("2018-11-12 13:00", "2018-11-12 14:00"),
    ]
    fragments = sort_fragments(_split(events))
    first = group_fragments(fragments, "time")
    second = group_fragments(fragments, "time")
    assert first.placements == second.placements
    assert first.cells == second.cells


def test_geometry_for_three_identical_events() -> None:
    events = [_event("2018-11-12 09:00", "2018-11-12 10:00", str(i)) for i in range(3)]
    layout_pass = group_fragments(_split(events), "time")
    group, row, leaf = resolve_pass(layout_pass, _options())

    assert group.width == pytest.approx(1 / 3 - 0.01)
    assert group.offset_x == pytest.approx(0.0)
    assert row.width == pytest.approx(group.width)
    assert row.offset_x == pytest.approx(1 / 3 - 0.01 + 0.015)
    assert leaf.width == pytest.approx(group.width)
    assert leaf.offset_x == pytest.approx(2 * row.offset_x)
    assert leaf.offset_x + leaf.width == pytest.approx(1.0)

    for geometry in (group, row, leaf):
        assert geometry.top == pytest.approx(0.055)
        assert geometry.height == pytest.approx(0.09)


def test_geometry_solo_fragment_fills_cell() -> None:
    layout_pass = group_fragments(_split([_event("2018-11-12 10:00", "2018-11-12 11:00")]), "time")
    (geometry,) = resolve_pass(layout_pass, _options())
    assert (geometry.width, geometry.offset_x) == (1.0, 0.0)
    assert geometry.top == pytest.approx(5_400_000 / 36_000_000 + 0.005)


def test_geometry_week_anchors_on_fragment_day() -> None:
    layout_pass = group_fragments(_split([_event("2018-11-14 10:00", "2018-11-14 11:00")], "week"), "week")
    (geometry,) = resolve_pass(layout_pass, _options("week"))
    assert geometry.top == pytest.approx(0.155)
    cell = layout_pass.cells["2018-11-14~2018-11-14"]
    cell_geometry = resolve_cell_geometry(cell, "week")
    assert cell_geometry.width == pytest.approx(1 / 7 - 0.005)
    assert cell_geometry.offset_x == pytest.approx(2 / 7)
    assert cell_geometry.height == 1.0


def test_geometry_month_fragment_uses_day_columns() -> None:
    fragments = _split([_event("2018-11-14 10:00", "2018-11-16 12:00")], "month")
    layout_pass = group_fragments(fragments, "month", month_anchor=dt.date(2018, 11, 12))
    (geometry,) = resolve_pass(layout_pass, _options("month"))
    assert geometry.width == pytest.approx(3 / 7 - 0.005)
    assert geometry.offset_x == pytest.approx(2 / 7)
    assert (geometry.top, geometry.height) == (0.0, 0.0)

    cell_geometry = resolve_cell_geometry(layout_pass.cells["2018-11-12~2018-11-18"], "month")
    assert cell_geometry.width == pytest.approx(0.995)
    assert cell_geometry.offset_x == pytest.approx(0.005)
    assert cell_geometry.top == pytest.approx(2 / 6)
    assert cell_geometry.height == pytest.approx(1 / 6 - 0.005)


def test_geometry_time_cell_is_inset() -> None:
    layout_pass = group_fragments(_split([_event("2018-11-12 10:00", "2018-11-12 11:00")]), "time")
    cell_geometry = resolve_cell_geometry(layout_pass.cells["2018-11-12~2018-11-12"], "time")
    assert cell_geometry.width == pytest.approx(0.99)
    assert cell_geometry.offset_x == pytest.approx(0.005)


def test_geometry_falls_back_when_group_is_unresolved() -> None:
    events = [_event("2018-11-12 09:00", "2018-11-12 10:00") for _ in range(2)]
    layout_pass = group_fragments(_split(events), "time")
    geometry = resolve_fragment_geometry(layout_pass, 1, _options())
    assert geometry.width is None
    assert geometry.offset_x is None
    assert geometry.top == pytest.approx(0.055)
    assert layout_pass.geometries[1] is geometry


def test_geometry_zero_step_drops_vertical_placement() -> None:
    layout_pass = group_fragments(_split([_event("2018-11-12 10:00", "2018-11-12 11:00")]), "time")
    (geometry,) = resolve_pass(layout_pass, _options(step_minutes=0))
    assert (geometry.top, geometry.height) == (None, None)
    assert geometry.width == 1.0
