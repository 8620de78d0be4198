from __future__ import annotations

from dataclasses import dataclass, field
from itertools import combinations
from typing import Mapping

from .model import BoxStyle, CellLayout, RenderableDescriptor

EPSILON = 1e-9


@dataclass(frozen=True)
class LayoutValidation:
    ok: bool
    collisions: list[str] = field(default_factory=list)
    unplaced: list[str] = field(default_factory=list)


def _label(descriptor: RenderableDescriptor) -> str:
    fragment = descriptor.fragment
    if fragment is None:
        return "?"
    name = fragment.source.event_id or fragment.source.title or "event"
    return f"{name}@{fragment.start:%Y-%m-%d %H:%M}"


def _overlap(a_start: float, a_len: float, b_start: float, b_len: float) -> float:
    return min(a_start + a_len, b_start + b_len) - max(a_start, b_start)


def boxes_intersect(a: BoxStyle, b: BoxStyle) -> bool:
    """True when both boxes are fully placed and share an area larger than rounding noise."""
    values = (a.left, a.width, a.top, a.height, b.left, b.width, b.top, b.height)
    if any(v is None for v in values):
        return False
    x = _overlap(a.left, a.width, b.left, b.width)  # type: ignore[arg-type]
    y = _overlap(a.top, a.height, b.top, b.height)  # type: ignore[arg-type]
    return x > EPSILON and y > EPSILON


def validate_layout(layout: Mapping[str, CellLayout]) -> LayoutValidation:
    collisions: list[str] = []
    unplaced: list[str] = []
    for key, cell in layout.items():
        boxes = [child for child in cell.children if child.overflow is None]
        for child in boxes:
            if child.style.left is None or child.style.width is None:
                unplaced.append(f"{key}: {_label(child)} has no box")
        for a, b in combinations(boxes, 2):
            if boxes_intersect(a.style, b.style):
                collisions.append(f"{key}: {_label(a)} overlaps {_label(b)}")
    return LayoutValidation(ok=not collisions and not unplaced, collisions=collisions, unplaced=unplaced)


def assert_valid(validation: LayoutValidation) -> None:
    if validation.ok:
        return
    lines = ["Layout validation failed:"]
    lines.extend(f"  - {item}" for item in validation.collisions)
    lines.extend(f"  - {item}" for item in validation.unplaced)
    raise ValueError("\n".join(lines))
