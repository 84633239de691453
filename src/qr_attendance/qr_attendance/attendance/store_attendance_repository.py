from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping, Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.record_store import Between, Order, RecordStore
from .model import AttendanceRecord
from .repository import AttendanceRepository

ATTENDANCE = "attendance"

_NEWEST_FIRST = [Order("created_at", descending=True), Order("id", descending=True)]


def _as_float(value: Any) -> float:
    return float(value) if value is not None else 0.0


def attendance_from_row(r: Mapping[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["id"]),
        employee_id=int(r["employee_id"]),
        date=r["date"],
        roster_id=r.get("roster_id"),
        first_check_in_time=r.get("first_check_in_time"),
        first_check_out_time=r.get("first_check_out_time"),
        second_check_in_time=r.get("second_check_in_time"),
        second_check_out_time=r.get("second_check_out_time"),
        status=AttendanceStatus(r.get("status") or AttendanceStatus.ABSENT.value),
        minutes_late=int(r.get("minutes_late") or 0),
        early_departure_minutes=int(r.get("early_departure_minutes") or 0),
        break_duration=int(r.get("break_duration") or 0),
        expected_hours=_as_float(r.get("expected_hours")),
        actual_hours=_as_float(r.get("actual_hours")),
        compliance_rate=_as_float(r.get("compliance_rate")),
        is_second_session=bool(r.get("is_second_session")),
        previous_session_id=r.get("previous_session_id"),
        last_action=r.get("last_action"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def _to_row(values: Mapping[str, Any]) -> dict[str, Any]:
    row = dict(values)
    if isinstance(row.get("status"), AttendanceStatus):
        row["status"] = row["status"].value
    if "is_second_session" in row:
        row["is_second_session"] = 1 if row["is_second_session"] else 0
    return row


class StoreAttendanceRepository(AttendanceRepository):
    def __init__(self, store: RecordStore):
        self._store = store

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        r = self._store.find_one(ATTENDANCE, {"id": int(attendance_id)})
        return attendance_from_row(r) if r else None

    def get_latest_for_employee_and_date(self, employee_id: int, day: date) -> Optional[AttendanceRecord]:
        r = self._store.find_one(ATTENDANCE, {"employee_id": int(employee_id), "date": day}, _NEWEST_FIRST)
        return attendance_from_row(r) if r else None

    def find_by_timestamp(self, employee_id: int, day: date, field_name: str, at: datetime) -> Optional[AttendanceRecord]:
        r = self._store.find_one(ATTENDANCE, {"employee_id": int(employee_id), "date": day, field_name: at})
        return attendance_from_row(r) if r else None

    def list_for_date(self, day: date) -> Sequence[AttendanceRecord]:
        rows = self._store.find_many(ATTENDANCE, {"date": day}, Order("id"))
        return [attendance_from_row(r) for r in rows]

    def list_for_employee_range(self, employee_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        rows = self._store.find_many(
            ATTENDANCE,
            {"employee_id": int(employee_id), "date": Between(start, end)},
            [Order("date"), Order("id")],
        )
        return [attendance_from_row(r) for r in rows]

    def create(self, values: Mapping[str, Any]) -> AttendanceRecord:
        return attendance_from_row(self._store.insert(ATTENDANCE, _to_row(values)))

    def update(
        self,
        attendance_id: int,
        changes: Mapping[str, Any],
        *,
        expected: Optional[Mapping[str, Any]] = None,
    ) -> AttendanceRecord:
        r = self._store.update(ATTENDANCE, int(attendance_id), _to_row(changes), expected=expected)
        return attendance_from_row(r)

    def delete(self, attendance_id: int) -> bool:
        return self._store.delete(ATTENDANCE, int(attendance_id))
