from __future__ import annotations

from datetime import date, datetime, time
from typing import Union

WallClock = Union[time, str]


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def to_local_naive(value: datetime) -> datetime:
    """Offset-aware times become naive local time; stored timestamps carry no zone."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def to_whole_seconds(value: datetime) -> datetime:
    """Drop sub-second precision; stored timestamps are whole seconds."""
    return value.replace(microsecond=0)


def parse_wall_clock(value: WallClock) -> time:
    """Accept ``datetime.time`` or an ``HH:MM[:SS]`` string."""
    if isinstance(value, time):
        return value
    parts = str(value).strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid wall-clock time: {value!r}")
    seconds = int(parts[2]) if len(parts) >= 3 and parts[2] else 0
    return time(hour=int(parts[0]), minute=int(parts[1]), second=seconds)


def at_wall_clock(day: date, value: WallClock) -> datetime:
    """The instant ``value`` occurs on ``day``."""
    return datetime.combine(day, parse_wall_clock(value))
