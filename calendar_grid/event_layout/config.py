"""Configuration management for calendar layout runs."""

from __future__ import annotations

import datetime as dt
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

import tomlkit as toml

from .model import VIEW_TYPES, LayoutOptions
from .overflow import DEFAULT_VISIBLE_CAP
from .time_parse import parse_date


@dataclass
class ViewConfig:
    """Which panel to lay out and its time grid."""
    type: str = "week"
    current: str = ""  # YYYY-MM-DD; empty means today
    start_hour: int = 9
    end_hour: int = 18
    step_minutes: int = 30
    visible_slice_count: int = 0  # 0 = derive from hours and step


@dataclass
class MonthConfig:
    """Month grid sizing."""
    cell_pixel_height: float = 0.0  # 0 = unknown, no cap
    default_visible_cap: int = DEFAULT_VISIBLE_CAP


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class LayoutConfig:
    """Complete layout configuration."""
    view: ViewConfig = field(default_factory=ViewConfig)
    month: MonthConfig = field(default_factory=MonthConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: Path) -> "LayoutConfig":
        """Load configuration from TOML file."""
        if isinstance(path, str):
            path = Path(path)

        if not path.exists():
            # Return default config if file doesn't exist
            return cls()

        with open(path, "r", encoding="utf-8") as f:
            data = toml.load(f).unwrap()

        try:
            config = cls(
                view=ViewConfig(**data.get("view", {})),
                month=MonthConfig(**data.get("month", {})),
                logging=LoggingConfig(**data.get("logging", {})),
            )
        except TypeError as exc:
            raise SystemExit(f"{path}: {exc}") from exc
        config.validate(path)
        return config

    def to_file(self, path: Path) -> None:
        """Save configuration to TOML file."""
        if isinstance(path, str):
            path = Path(path)

        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "view": asdict(self.view),
            "month": asdict(self.month),
            "logging": asdict(self.logging),
        }

        with open(path, "w", encoding="utf-8") as f:
            toml.dump(data, f)

    def validate(self, path: Optional[Path] = None) -> None:
        where = f"{path}: " if path else ""
        view = self.view
        if view.type not in VIEW_TYPES:
            raise SystemExit(f"{where}[view] type must be one of {', '.join(VIEW_TYPES)}, got '{view.type}'")
        try:
            start_hour, end_hour = int(view.start_hour), int(view.end_hour)
            step_minutes = int(view.step_minutes)
            visible_slice_count = int(view.visible_slice_count)
        except (TypeError, ValueError) as exc:
            raise SystemExit(f"{where}[view] hours, step_minutes and visible_slice_count must be integers: {exc}") from exc
        try:
            cell_pixel_height = float(self.month.cell_pixel_height)
            int(self.month.default_visible_cap)
        except (TypeError, ValueError) as exc:
            raise SystemExit(f"{where}[month] values must be numbers: {exc}") from exc

        if not 0 <= start_hour < end_hour <= 24:
            raise SystemExit(f"{where}[view] needs 0 <= start_hour < end_hour <= 24")
        if step_minutes <= 0:
            raise SystemExit(f"{where}[view] step_minutes must be positive")
        if visible_slice_count < 0:
            raise SystemExit(f"{where}[view] visible_slice_count must be >= 0")
        if view.current:
            try:
                parse_date(view.current)
            except ValueError as exc:
                raise SystemExit(f"{where}[view] current: {exc}") from exc
        if cell_pixel_height < 0:
            raise SystemExit(f"{where}[month] cell_pixel_height must be >= 0")

    def to_options(
        self,
        *,
        current: Optional[dt.date] = None,
        on_overflow_click: Optional[Callable[[str, str], Any]] = None,
    ) -> LayoutOptions:
        view = self.view
        if current is None:
            current = parse_date(view.current) if view.current else dt.date.today()
        height = float(self.month.cell_pixel_height)
        return LayoutOptions(
            view_type=view.type,  # type: ignore[arg-type]
            current=dt.datetime.combine(current, dt.time()),
            start_hour=int(view.start_hour),
            end_hour=int(view.end_hour),
            step_minutes=int(view.step_minutes),
            visible_slice_count=int(view.visible_slice_count),
            cell_pixel_height=height if height > 0 else None,
            default_visible_cap=int(self.month.default_visible_cap),
            on_overflow_click=on_overflow_click,
        )
