#!/usr/bin/env python3

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from calendar_grid.event_layout.config import LayoutConfig
from calendar_grid.event_layout.export import layout_to_dict, write_layout_json
from calendar_grid.event_layout.logging_utils import get_step_logger, setup_logging
from calendar_grid.event_layout.model import VIEW_TYPES
from calendar_grid.event_layout.pipeline import layout_events
from calendar_grid.event_layout.time_parse import parse_date
from calendar_grid.event_layout.tsv_io import read_events_tsv, write_sample_tsv
from calendar_grid.event_layout.validate import assert_valid, validate_layout

# Knobs
DEFAULT_CONFIG = Path("calendar_layout.toml")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Lay out calendar events for a day, week or month panel (JSON).")
    parser.add_argument("--events", help="Events TSV (columns: event_id, start, end[, title, important])")
    parser.add_argument(
        "--config",
        default=str(DEFAULT_CONFIG),
        help=f"Layout config TOML (default: {DEFAULT_CONFIG}; defaults apply when missing)",
    )
    parser.add_argument("--view", choices=list(VIEW_TYPES), help="Override [view] type")
    parser.add_argument("--current", help="Override the anchor date (YYYY-MM-DD)")
    parser.add_argument("--cell-height", type=float, help="Override [month] cell_pixel_height")
    parser.add_argument("--out", help="Write JSON here instead of stdout")
    parser.add_argument("--log-level", help="Override [logging] level")
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument("--validate", action="store_true", help="Fail when boxes collide or cannot be placed")
    parser.add_argument(
        "--write-sample",
        metavar="DIR",
        help="Write sample events.tsv and calendar_layout.toml into DIR and exit",
    )
    return parser.parse_args(argv)


def _write_sample(directory: Path) -> None:
    write_sample_tsv(directory / "events.tsv")
    config = LayoutConfig()
    config.view.current = "2018-11-12"
    config.to_file(directory / DEFAULT_CONFIG.name)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(list(argv) if argv is not None else sys.argv[1:])

    config = LayoutConfig.from_file(Path(args.config).expanduser())
    setup_logging(
        level=args.log_level or config.logging.level,
        log_file=Path(args.log_file).expanduser() if args.log_file else None,
        format_string=config.logging.format,
    )
    logger = get_step_logger("cli")

    if args.write_sample:
        target = Path(args.write_sample).expanduser()
        _write_sample(target)
        logger.info("wrote sample events and config to %s", target)
        return 0

    if not args.events:
        logger.error("--events is required unless --write-sample is given")
        return 2
    events_path = Path(args.events).expanduser()
    if not events_path.exists():
        raise SystemExit(f"Events TSV not found: {events_path}")

    if args.view:
        config.view.type = args.view
    if args.cell_height is not None:
        config.month.cell_pixel_height = args.cell_height
    config.validate()

    try:
        current = parse_date(args.current) if args.current else None
    except ValueError as exc:
        raise SystemExit(f"--current: {exc}") from exc

    events = read_events_tsv(events_path)
    options = config.to_options(current=current)
    layout = layout_events(events, options)

    if args.validate:
        try:
            assert_valid(validate_layout(layout))
        except ValueError as exc:
            logger.error("%s", exc)
            return 1

    if args.out:
        out = Path(args.out).expanduser()
        write_layout_json(layout, out)
        logger.info("wrote %d cells to %s", len(layout), out)
    else:
        json.dump(layout_to_dict(layout), sys.stdout, indent=2, ensure_ascii=False)
        sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
