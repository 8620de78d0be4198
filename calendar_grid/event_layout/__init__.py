"""
Event layout for calendar panels.

Splits events into per-cell fragments, groups overlapping fragments and resolves a
non-colliding box for each one, summarizing month cells that overflow.
"""

from .model import CalendarEvent, CellLayout, Fragment, LayoutOptions, RenderableDescriptor
from .pipeline import layout_events

__version__ = "1.0.0"

__all__ = [
    "CalendarEvent",
    "CellLayout",
    "Fragment",
    "LayoutOptions",
    "RenderableDescriptor",
    "layout_events",
]
