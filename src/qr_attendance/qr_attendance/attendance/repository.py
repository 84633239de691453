from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping, Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    """Repository interface for attendance rows.

    Rows are append-only per timestamp field: updates only ever fill a null field.
    """

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_latest_for_employee_and_date(self, employee_id: int, day: date) -> Optional[AttendanceRecord]:
        """The current row for the day: the most recently created one."""
        raise NotImplementedError

    def find_by_timestamp(self, employee_id: int, day: date, field_name: str, at: datetime) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_date(self, day: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_employee_range(self, employee_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def create(self, values: Mapping[str, Any]) -> AttendanceRecord:
        raise NotImplementedError

    def update(
        self,
        attendance_id: int,
        changes: Mapping[str, Any],
        *,
        expected: Optional[Mapping[str, Any]] = None,
    ) -> AttendanceRecord:
        raise NotImplementedError

    def delete(self, attendance_id: int) -> bool:
        raise NotImplementedError
