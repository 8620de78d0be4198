from __future__ import annotations

import csv
from pathlib import Path
from typing import Any

from .model import CalendarEvent, Fragment
from .time_parse import parse_instant


REQUIRED_COLUMNS = [
    "event_id",
    "start",
    "end",
]

SAMPLE_COLUMNS = [
    "event_id",
    "start",
    "end",
    "title",
    "important",
]

TRUE_VALUES = {"1", "true", "yes", "y"}


def _parse_flag(value: str) -> bool:
    return (value or "").strip().lower() in TRUE_VALUES


def title_renderer(title: str):
    def render(fragment: Fragment) -> Any:
        return title

    return render


def read_events_tsv(path: Path) -> list[CalendarEvent]:
    with path.open(newline="", encoding="utf-8") as handle:
        reader = csv.DictReader(handle, delimiter="\t")
        if not reader.fieldnames:
            raise ValueError(f"{path} has no header row.")
        # Allow column-aligned headers with spaces.
        reader.fieldnames = [name.strip() for name in reader.fieldnames]
        missing = [name for name in REQUIRED_COLUMNS if name not in reader.fieldnames]
        if missing:
            raise ValueError(f"{path} is missing columns: {', '.join(missing)}. Expected at least {', '.join(REQUIRED_COLUMNS)}.")

        events: list[CalendarEvent] = []
        for idx, raw in enumerate(reader, start=2):
            event_id = (raw.get("event_id") or "").strip()
            if not event_id:
                raise ValueError(f"{path}:{idx} event_id is required")
            try:
                start = parse_instant(raw.get("start") or "")
                end = parse_instant(raw.get("end") or "")
            except ValueError as exc:
                raise ValueError(f"{path}:{idx} {exc}") from exc
            title = (raw.get("title") or "").strip()
            events.append(
                CalendarEvent(
                    start=start,
                    end=end,
                    render=title_renderer(title) if title else None,
                    important=_parse_flag(raw.get("important") or ""),
                    event_id=event_id,
                    title=title,
                )
            )
        return events


def write_sample_tsv(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=SAMPLE_COLUMNS, delimiter="\t", lineterminator="\n")
        writer.writeheader()
        writer.writerows(
            [
                {
                    "event_id": "standup",
                    "start": "2018-11-12 09:00",
                    "end": "2018-11-12 09:30",
                    "title": "Team standup",
                    "important": "",
                },
                {
                    "event_id": "review",
                    "start": "2018-11-12 09:15",
                    "end": "2018-11-12 10:30",
                    "title": "Design review",
                    "important": "yes",
                },
                {
                    "event_id": "pairing",
                    "start": "2018-11-12 09:15",
                    "end": "2018-11-12 10:30",
                    "title": "Pairing session",
                    "important": "",
                },
                {
                    "event_id": "lunch",
                    "start": "2018-11-12 12:00",
                    "end": "2018-11-12 13:00",
                    "title": "Lunch with the platform team",
                    "important": "",
                },
                {
                    "event_id": "offsite",
                    "start": "2018-11-14 10:00",
                    "end": "2018-11-16 16:00",
                    "title": "Planning offsite",
                    "important": "yes",
                },
                {
                    "event_id": "release",
                    "start": "2018-11-17 08:00",
                    "end": "2018-11-20 20:00",
                    "title": "Release freeze",
                    "important": "",
                },
            ]
        )
