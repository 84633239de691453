from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Optional


@dataclass(frozen=True)
class Roster:
    """Domain entity: work schedule template (Roster)."""

    roster_id: int
    name: str
    start_time: time
    end_time: time
    break_duration: int = 0
    grace_period: int = 0
    early_departure_threshold: int = 0
    is_active: bool = True


@dataclass(frozen=True)
class RosterAssignment:
    assignment_id: int
    employee_id: int
    roster_id: int
    start_date: date
    end_date: Optional[date] = None
    is_active: bool = True

    def covers(self, day: date) -> bool:
        return self.is_active and self.start_date <= day and (self.end_date is None or day <= self.end_date)
