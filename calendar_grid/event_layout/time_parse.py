from __future__ import annotations

import datetime as dt

INSTANT_FORMATS = (
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%dT%H:%M:%S",
    "%Y/%m/%d %H:%M",
)
DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d")


def parse_instant(value: str) -> dt.datetime:
    """
    Accept either:
    - date and time (e.g., "2018-11-12 10:00", "2018-11-12T10:00:30")
    - date only (e.g., "2018-11-12"), read as midnight
    """
    raw = (value or "").strip()
    if not raw:
        raise ValueError("Empty date/time value")
    for fmt in INSTANT_FORMATS:
        try:
            return dt.datetime.strptime(raw, fmt)
        except ValueError:
            continue
    return dt.datetime.combine(parse_date(raw), dt.time())


def parse_date(value: str) -> dt.date:
    raw = (value or "").strip()
    for fmt in DATE_FORMATS:
        try:
            return dt.datetime.strptime(raw, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Invalid date '{value}' (expected YYYY-MM-DD or YYYY-MM-DD HH:MM)")
