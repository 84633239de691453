from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from ..core.enums import AttendanceAction, AttendanceStatus

TIMESTAMP_FIELDS = (
    "first_check_in_time",
    "first_check_out_time",
    "second_check_in_time",
    "second_check_out_time",
)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance row for an employee and a day."""

    attendance_id: int
    employee_id: int
    date: date
    roster_id: Optional[int] = None
    first_check_in_time: Optional[datetime] = None
    first_check_out_time: Optional[datetime] = None
    second_check_in_time: Optional[datetime] = None
    second_check_out_time: Optional[datetime] = None
    status: AttendanceStatus = AttendanceStatus.ABSENT
    minutes_late: int = 0
    early_departure_minutes: int = 0
    break_duration: int = 0
    expected_hours: float = 0.0
    actual_hours: float = 0.0
    compliance_rate: float = 0.0
    is_second_session: bool = False
    previous_session_id: Optional[int] = None
    last_action: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def timestamp(self, action: AttendanceAction) -> Optional[datetime]:
        return getattr(self, action.field_name)

    def last_event_time(self) -> Optional[datetime]:
        for name in reversed(TIMESTAMP_FIELDS):
            value = getattr(self, name)
            if value is not None:
                return value
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.attendance_id,
            "employee_id": self.employee_id,
            "roster_id": self.roster_id,
            "date": self.date.isoformat(),
            **{name: _iso(getattr(self, name)) for name in TIMESTAMP_FIELDS},
            "status": self.status.value,
            "minutes_late": self.minutes_late,
            "early_departure_minutes": self.early_departure_minutes,
            "break_duration": self.break_duration,
            "expected_hours": self.expected_hours,
            "actual_hours": self.actual_hours,
            "compliance_rate": self.compliance_rate,
            "is_second_session": self.is_second_session,
            "previous_session_id": self.previous_session_id,
            "last_action": _iso(self.last_action),
        }


@dataclass(frozen=True)
class TransitionPlan:
    """What one scan will write: an in-place update or a brand new row."""

    action: AttendanceAction
    at: datetime
    creates_new_record: bool
    previous: Optional[AttendanceRecord]
    timestamps: dict[str, Optional[datetime]]
    status: AttendanceStatus

    @property
    def target_field(self) -> str:
        return self.action.field_name


@dataclass(frozen=True)
class ScanResult:
    """Stored record plus presentation-only fields for the scanning screen."""

    record: AttendanceRecord
    action: AttendanceAction
    employee_name: str
    is_late: bool
    late_label: str
    early_departure_minutes: int
    expected_hours: float
    actual_hours: float
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.record.to_dict(),
            "action": self.action.value,
            "employee_name": self.employee_name,
            "is_late": self.is_late,
            "late_minutes": self.late_label,
            "early_departure_minutes": self.early_departure_minutes,
            "expected_hours": self.expected_hours,
            "actual_hours": self.actual_hours,
            **self.extra,
        }
