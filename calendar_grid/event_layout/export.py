from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

from .model import BoxStyle, CellLayout, RenderableDescriptor


def _round(value: float | None) -> float | None:
    return None if value is None else round(value, 4)


def style_to_dict(style: BoxStyle) -> dict[str, float | None]:
    return {
        "top": _round(style.top),
        "height": _round(style.height),
        "left": _round(style.left),
        "width": _round(style.width),
    }


def _content(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def descriptor_to_dict(descriptor: RenderableDescriptor) -> dict[str, Any]:
    item: dict[str, Any] = {
        "style": style_to_dict(descriptor.style),
        "content": _content(descriptor.content),
        "important": descriptor.is_important,
    }
    fragment = descriptor.fragment
    if fragment is not None:
        item["event_id"] = fragment.source.event_id
        item["start"] = fragment.start.isoformat(timespec="minutes")
        item["end"] = fragment.end.isoformat(timespec="minutes")
    if descriptor.overflow is not None:
        item["overflow"] = {
            "day": descriptor.overflow.key,
            "count": descriptor.overflow.count,
            "compact": descriptor.overflow.is_compact,
        }
    return item


def layout_to_dict(layout: Mapping[str, CellLayout]) -> dict[str, Any]:
    cells: dict[str, Any] = {}
    for key, cell in layout.items():
        cells[key] = {
            "style": style_to_dict(cell.style),
            "colspan": cell.is_colspan,
            "hidden": cell.hidden,
            "padding_top_px": cell.padding_top_px,
            "visible_cap": cell.visible_cap,
            "children": [descriptor_to_dict(child) for child in cell.children],
        }
    return {"cells": cells}


def write_layout_json(layout: Mapping[str, CellLayout], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(layout_to_dict(layout), indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
