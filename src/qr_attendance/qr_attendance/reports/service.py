from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any, Callable, Iterable, Optional, Sequence

from ..attendance import metrics
from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_CACHE_SECONDS
from ..core.exceptions import PersistenceFailure, ValidationError
from ..database.record_store import StoreError
from ..employees.repository import EmployeeRepository
from .cache import TimedCache

logger = logging.getLogger(__name__)


def _rate(part: int, whole: int) -> str:
    """Percentage with one decimal place; "0.0" for an empty denominator."""
    if whole <= 0:
        return "0.0"
    return f"{part / whole * 100:.1f}"


def current_records(records: Iterable[AttendanceRecord]) -> list[AttendanceRecord]:
    """Drop rows that a second-session row has superseded."""
    records = list(records)
    superseded = {r.previous_session_id for r in records if r.previous_session_id is not None}
    return [r for r in records if r.attendance_id not in superseded]


@dataclass(frozen=True)
class AttendanceSummary:
    day: date
    total_employees: int
    currently_present: int
    late_but_present: int
    checked_out: int
    on_time_arrivals: int
    absent: int
    current_presence_rate: str
    total_present_rate: str
    on_time_rate: str
    late_rate: str
    absent_rate: str

    @property
    def present(self) -> int:
        return self.currently_present + self.checked_out

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["day"] = self.day.isoformat()
        data["present"] = self.present
        return data


@dataclass(frozen=True)
class EmployeeMetrics:
    employee_id: int
    start: date
    end: date
    total_days: int
    days_present: int
    days_absent: int
    total_late_minutes: int
    total_early_departure_minutes: int
    average_working_hours: float
    roster_compliance_rate: float
    attendance_percentage: float

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["start"] = self.start.isoformat()
        data["end"] = self.end.isoformat()
        return data


@dataclass(frozen=True)
class PresentEmployeeRow:
    attendance_id: int
    employee_id: int
    employee_name: str
    department: str
    position: str
    first_check_in_time: Optional[datetime]
    first_check_out_time: Optional[datetime]
    second_check_in_time: Optional[datetime]
    second_check_out_time: Optional[datetime]
    minutes_late: int
    break_hours: float
    worked_minutes: int
    status: str

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        for name in ("first_check_in_time", "first_check_out_time", "second_check_in_time", "second_check_out_time"):
            data[name] = data[name].strftime("%H:%M:%S") if data[name] else None
        data["worked_time"] = metrics.format_minutes(self.worked_minutes)
        return data


@dataclass(frozen=True)
class DepartmentBreakdown:
    department_id: Optional[int]
    department: str
    total_employees: int
    present: int
    late: int


class ReportService:
    """Read-only dashboard views derived from attendance rows."""

    def __init__(
        self,
        employees: EmployeeRepository,
        attendance: AttendanceRepository,
        *,
        cache: Optional[TimedCache] = None,
        cache_seconds: float = DEFAULT_CACHE_SECONDS,
        clock: Callable[[], datetime] = now_local,
    ):
        self._employees = employees
        self._attendance = attendance
        self._cache = cache or TimedCache(cache_seconds)
        self._clock = clock

    def invalidate(self) -> None:
        self._cache.invalidate()

    def records_for_day(self, day: Optional[date] = None) -> Sequence[AttendanceRecord]:
        day = day or self._clock().date()
        try:
            return self._cache.get_or_load(("records", day), lambda: list(self._attendance.list_for_date(day)))
        except StoreError as exc:
            raise PersistenceFailure(str(exc)) from exc

    def today_summary(self, day: Optional[date] = None) -> AttendanceSummary:
        day = day or self._clock().date()
        try:
            total_employees = len(self._employees.list_active())
        except StoreError as exc:
            raise PersistenceFailure(str(exc)) from exc

        present = late = checked_out = on_time = 0
        for r in current_records(self.records_for_day(day)):
            if r.second_check_in_time and not r.second_check_out_time:
                present += 1
            elif r.first_check_in_time and not r.first_check_out_time:
                present += 1
                if r.minutes_late > 0:
                    late += 1
                else:
                    on_time += 1
            elif r.second_check_out_time or (r.first_check_out_time and not r.second_check_in_time):
                checked_out += 1
                if r.minutes_late == 0:
                    on_time += 1

        absent = max(0, total_employees - (present + checked_out))
        total_present = present + checked_out
        return AttendanceSummary(
            day=day,
            total_employees=total_employees,
            currently_present=present,
            late_but_present=late,
            checked_out=checked_out,
            on_time_arrivals=on_time,
            absent=absent,
            current_presence_rate=_rate(present, total_employees),
            total_present_rate=_rate(total_present, total_employees),
            on_time_rate=_rate(on_time, total_present),
            late_rate=_rate(late, total_present),
            absent_rate=_rate(absent, total_employees),
        )

    def employee_metrics(self, employee_id: int, start: date, end: date) -> EmployeeMetrics:
        if end < start:
            raise ValidationError("end date must not be before start date")
        try:
            records = current_records(self._attendance.list_for_employee_range(employee_id, start, end))
        except StoreError as exc:
            raise PersistenceFailure(str(exc)) from exc

        total_days = (end - start).days + 1
        days_present = len({r.date for r in records if r.first_check_in_time})
        worked = [r for r in records if r.first_check_in_time]
        total_hours = sum(r.actual_hours for r in worked)
        total_compliance = sum(r.compliance_rate for r in worked)
        return EmployeeMetrics(
            employee_id=employee_id,
            start=start,
            end=end,
            total_days=total_days,
            days_present=days_present,
            days_absent=max(0, total_days - days_present),
            total_late_minutes=sum(r.minutes_late for r in worked),
            total_early_departure_minutes=sum(r.early_departure_minutes for r in worked),
            average_working_hours=round(total_hours / len(worked), 2) if worked else 0.0,
            roster_compliance_rate=round(total_compliance / len(worked), 1) if worked else 0.0,
            attendance_percentage=round(days_present / total_days * 100, 1),
        )

    def present_employees(self, day: Optional[date] = None, *, department_id: Optional[int] = None) -> list[PresentEmployeeRow]:
        day = day or self._clock().date()
        records = [r for r in current_records(self.records_for_day(day)) if r.first_check_in_time]
        try:
            employees = self._employees.get_many(r.employee_id for r in records)
            departments = {d.department_id: d.name for d in self._employees.list_departments()}
        except StoreError as exc:
            raise PersistenceFailure(str(exc)) from exc

        now = self._clock()
        rows: list[PresentEmployeeRow] = []
        for r in records:
            employee = employees.get(r.employee_id)
            if employee is None:
                logger.warning("Attendance %s references unknown employee %s", r.attendance_id, r.employee_id)
                continue
            if department_id is not None and employee.department_id != department_id:
                continue
            rows.append(
                PresentEmployeeRow(
                    attendance_id=r.attendance_id,
                    employee_id=r.employee_id,
                    employee_name=employee.display_name,
                    department=departments.get(employee.department_id, "-"),
                    position=employee.position or "-",
                    first_check_in_time=r.first_check_in_time,
                    first_check_out_time=r.first_check_out_time,
                    second_check_in_time=r.second_check_in_time,
                    second_check_out_time=r.second_check_out_time,
                    minutes_late=r.minutes_late,
                    break_hours=round(metrics.break_taken_minutes(r) / 60, 2),
                    worked_minutes=metrics.worked_minutes(r, now),
                    status=r.status.value,
                )
            )
        rows.sort(key=lambda row: (row.department, row.employee_name))
        return rows

    def department_breakdown(self, day: Optional[date] = None) -> list[DepartmentBreakdown]:
        day = day or self._clock().date()
        try:
            employees = self._employees.list_active()
            departments = {d.department_id: d.name for d in self._employees.list_departments()}
        except StoreError as exc:
            raise PersistenceFailure(str(exc)) from exc

        by_employee = {r.employee_id: r for r in current_records(self.records_for_day(day)) if r.first_check_in_time}
        groups: dict[Optional[int], dict[str, int]] = {}
        for employee in employees:
            g = groups.setdefault(employee.department_id, {"total": 0, "present": 0, "late": 0})
            g["total"] += 1
            record = by_employee.get(employee.employee_id)
            if record is not None:
                g["present"] += 1
                if record.minutes_late > 0:
                    g["late"] += 1

        return [
            DepartmentBreakdown(
                department_id=dept_id,
                department=departments.get(dept_id, "Unassigned"),
                total_employees=g["total"],
                present=g["present"],
                late=g["late"],
            )
            for dept_id, g in sorted(groups.items(), key=lambda item: departments.get(item[0], "~"))
        ]
