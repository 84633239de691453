"""Time and metrics calculations for attendance rows.

Pure functions: no store access. Durations are wall-clock differences taken in whole
seconds; lateness and early departure are floored to whole minutes, which is what the
stored values have always used.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterator, Mapping, Optional, Protocol, Tuple

from ..common.datetime_utils import WallClock, at_wall_clock, parse_wall_clock
from ..core.constants import DEFAULT_COMPLIANCE_CEILING, OVERTIME_THRESHOLD_HOURS


class HasSessions(Protocol):
    first_check_in_time: Optional[datetime]
    first_check_out_time: Optional[datetime]
    second_check_in_time: Optional[datetime]
    second_check_out_time: Optional[datetime]


@dataclass(frozen=True)
class SessionTimes:
    """The four timestamps of a day, detached from any stored row."""

    first_check_in_time: Optional[datetime] = None
    first_check_out_time: Optional[datetime] = None
    second_check_in_time: Optional[datetime] = None
    second_check_out_time: Optional[datetime] = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Optional[datetime]]) -> "SessionTimes":
        return cls(
            first_check_in_time=values.get("first_check_in_time"),
            first_check_out_time=values.get("first_check_out_time"),
            second_check_in_time=values.get("second_check_in_time"),
            second_check_out_time=values.get("second_check_out_time"),
        )


def _seconds(later: datetime, earlier: datetime) -> int:
    return int((later - earlier).total_seconds())


def lateness(current_time: datetime, roster_start: WallClock, grace_period: int) -> int:
    """Minutes ``current_time`` falls after the roster start, less the grace period."""
    start = at_wall_clock(current_time.date(), roster_start)
    late_minutes = _seconds(current_time, start) // 60
    return max(0, late_minutes - int(grace_period or 0))


def early_departure(current_time: datetime, roster_end: WallClock, threshold: int) -> int:
    """Minutes ``current_time`` falls before the roster end, less the allowed threshold."""
    end = at_wall_clock(current_time.date(), roster_end)
    early_minutes = _seconds(end, current_time) // 60
    return max(0, early_minutes - int(threshold or 0))


def expected_hours(roster_start: WallClock, roster_end: WallClock, break_minutes: int) -> float:
    start = parse_wall_clock(roster_start)
    end = parse_wall_clock(roster_end)
    start_seconds = start.hour * 3600 + start.minute * 60 + start.second
    end_seconds = end.hour * 3600 + end.minute * 60 + end.second
    total_seconds = end_seconds - start_seconds - int(break_minutes or 0) * 60
    return max(0.0, total_seconds / 3600)


def _sessions(record: HasSessions) -> Iterator[Tuple[datetime, Optional[datetime]]]:
    if record.first_check_in_time is not None:
        yield record.first_check_in_time, record.first_check_out_time
    if record.second_check_in_time is not None:
        yield record.second_check_in_time, record.second_check_out_time


def worked_seconds(record: HasSessions, now: datetime) -> int:
    """Closed sessions in full plus the open one up to ``now``; no break deduction."""
    total = 0
    for check_in, check_out in _sessions(record):
        total += max(0, _seconds(check_out or now, check_in))
    return total


def worked_minutes(record: HasSessions, now: datetime) -> int:
    return worked_seconds(record, now) // 60


def actual_hours(record: HasSessions, now: datetime, break_minutes: int) -> float:
    seconds = worked_seconds(record, now) - int(break_minutes or 0) * 60
    return max(0.0, seconds / 3600)


def break_taken_minutes(record: HasSessions) -> int:
    """Gap between the first check-out and the second check-in."""
    if record.first_check_out_time is None or record.second_check_in_time is None:
        return 0
    return max(0, _seconds(record.second_check_in_time, record.first_check_out_time) // 60)


def compliance_rate(actual: float, expected: float, *, ceiling: float = DEFAULT_COMPLIANCE_CEILING) -> float:
    if not expected or expected <= 0:
        return 0.0
    return round(min(float(ceiling), actual / expected * 100), 1)


def is_overtime(actual: float, *, threshold: float = OVERTIME_THRESHOLD_HOURS) -> bool:
    return actual > threshold


def format_minutes(total_minutes: int) -> str:
    if total_minutes < 0:
        return "0h 0m"
    return f"{total_minutes // 60}h {total_minutes % 60}m"
