from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Optional


ViewType = Literal["time", "week", "month"]
NodeKind = Literal["group", "row", "leaf"]

VIEW_TYPES: tuple[str, ...] = ("time", "week", "month")


@dataclass(frozen=True)
class CalendarEvent:
    start: dt.datetime
    end: dt.datetime
    render: Optional[Callable[["Fragment"], Any]] = None
    important: bool = False
    event_id: str = ""
    title: str = ""


@dataclass(frozen=True)
class Fragment:
    """A slice of one event that fits inside a single grid cell."""

    start: dt.datetime
    end: dt.datetime
    source: CalendarEvent
    e_start: dt.datetime
    e_end: dt.datetime
    is_colspan: bool = False

    @property
    def render(self) -> Optional[Callable[["Fragment"], Any]]:
        return self.source.render

    @property
    def important(self) -> bool:
        return self.source.important


@dataclass
class Placement:
    """
    Overlap bookkeeping for one fragment of a layout pass.

    `group` and `row` are indexes into the pass arena, never owning references. `span_end` is the
    latest end reached by the node and everything nested under it.
    """

    kind: NodeKind = "group"
    span_end: Optional[dt.datetime] = None
    group: Optional[int] = None
    row: Optional[int] = None
    leaf_index: int = -1
    rows: list[int] = field(default_factory=list)
    leaves: list[int] = field(default_factory=list)


@dataclass
class CellContainer:
    key: str
    date: dt.datetime
    end: dt.datetime
    is_colspan: bool
    month_row: int = 0
    children: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class Geometry:
    width: Optional[float] = None
    offset_x: Optional[float] = None
    top: Optional[float] = None
    height: Optional[float] = None

    @property
    def has_box(self) -> bool:
        return self.width is not None and self.offset_x is not None


@dataclass
class LayoutPass:
    fragments: list[Fragment]
    placements: list[Placement]
    cells: dict[str, CellContainer]
    geometries: list[Optional[Geometry]] = field(default_factory=list)


@dataclass(frozen=True)
class ResolvedFragment:
    fragment: Fragment
    geometry: Geometry


@dataclass
class OverflowCounter:
    key: str
    count: int
    offset_x: float
    width: float


@dataclass(frozen=True)
class OverflowInfo:
    key: str
    count: int
    is_compact: bool


@dataclass(frozen=True)
class BoxStyle:
    """Box placement in percent of the enclosing element; `None` means "let the renderer decide"."""

    top: Optional[float] = None
    height: Optional[float] = None
    left: Optional[float] = None
    width: Optional[float] = None

    @staticmethod
    def from_geometry(geometry: Geometry) -> "BoxStyle":
        def pct(value: Optional[float]) -> Optional[float]:
            return None if value is None else value * 100.0

        return BoxStyle(
            top=pct(geometry.top),
            height=pct(geometry.height),
            left=pct(geometry.offset_x),
            width=pct(geometry.width),
        )


@dataclass(frozen=True)
class RenderableDescriptor:
    style: BoxStyle
    content: Any
    is_important: bool = False
    overflow: Optional[OverflowInfo] = None
    fragment: Optional[Fragment] = None
    on_click: Optional[Callable[[], Any]] = None


@dataclass(frozen=True)
class CellLayout:
    key: str
    geometry: Geometry
    style: BoxStyle
    children: list[RenderableDescriptor]
    visible_cap: int
    is_colspan: bool = False
    hidden: bool = False
    padding_top_px: float = 0.0


@dataclass(frozen=True)
class LayoutOptions:
    view_type: ViewType
    current: dt.datetime
    start_hour: int = 9
    end_hour: int = 18
    step_minutes: int = 30
    visible_slice_count: int = 0
    cell_pixel_height: Optional[float] = None
    default_visible_cap: int = 99
    on_overflow_click: Optional[Callable[[str, str], Any]] = None

    @property
    def slice_count(self) -> int:
        if self.visible_slice_count > 0:
            return self.visible_slice_count
        if self.step_minutes <= 0:
            return 0
        return ((self.end_hour - self.start_hour) * 60) // self.step_minutes
