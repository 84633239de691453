from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable, Optional

from ..audit.event_log import AttendanceEventLog
from ..common.datetime_utils import now_local, to_local_naive, to_whole_seconds
from ..common.qr import parse_employee_qr
from ..common.validators import require_positive_int
from ..core.constants import DEFAULT_COMPLIANCE_CEILING
from ..core.enums import AttendanceAction, AttendanceState, AttendanceStatus, SequenceViolation
from ..core.exceptions import (
    AttendanceError,
    AttendanceRecordNotFound,
    DuplicateAttendanceForDay,
    EmployeeInactive,
    EmployeeNotFound,
    InvalidCheckSequence,
    PersistenceFailure,
)
from ..database.record_store import ConstraintViolation, IsNull, StaleWriteError, StoreError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..rosters.model import Roster
from ..rosters.service import RosterResolver
from . import metrics
from .model import AttendanceRecord, ScanResult, TransitionPlan
from .repository import AttendanceRepository
from .state_machine import AttendanceStateMachine, current_state, next_action
from .timestamps import UniquenessGuard

logger = logging.getLogger(__name__)


class AttendanceService:
    """Use case: turn one QR scan into one attendance write.

    The service is optimistic: it reads today's row, decides the next action, and writes
    with a condition that the targeted field is still empty. The store's unique and check
    constraints decide any race; the losing scan gets a classified error and nothing is
    written for it.
    """

    def __init__(
        self,
        employees: EmployeeRepository,
        rosters: RosterResolver,
        attendance: AttendanceRepository,
        *,
        guard: Optional[UniquenessGuard] = None,
        state_machine: Optional[AttendanceStateMachine] = None,
        events: Optional[AttendanceEventLog] = None,
        clock: Callable[[], datetime] = now_local,
        compliance_ceiling: float = DEFAULT_COMPLIANCE_CEILING,
    ):
        self._employees = employees
        self._rosters = rosters
        self._attendance = attendance
        self._guard = guard or UniquenessGuard(attendance)
        self._state_machine = state_machine or AttendanceStateMachine()
        self._events = events
        self._clock = clock
        self._compliance_ceiling = compliance_ceiling

    def _load_employee(self, employee_id: int) -> Employee:
        try:
            employee = self._employees.get_by_id(employee_id)
        except StoreError as exc:
            raise PersistenceFailure(str(exc)) from exc
        if employee is None:
            raise EmployeeNotFound(details={"employee_id": employee_id})
        return employee

    def _today_record(self, employee_id: int, day: date) -> Optional[AttendanceRecord]:
        try:
            return self._attendance.get_latest_for_employee_and_date(employee_id, day)
        except StoreError as exc:
            raise PersistenceFailure(str(exc)) from exc

    def get_today_record(self, employee_id: int) -> Optional[AttendanceRecord]:
        employee_id = require_positive_int(employee_id, "employee_id")
        self._load_employee(employee_id)
        return self._today_record(employee_id, self._clock().date())

    def get_next_action(self, employee_id: int) -> AttendanceAction:
        return next_action(self.get_today_record(employee_id))

    def get_current_state(self, employee_id: int) -> AttendanceState:
        return current_state(self.get_today_record(employee_id))

    def record_qr_scan(
        self,
        payload: str,
        scan_time: Optional[datetime] = None,
        *,
        expected_action: Optional[AttendanceAction] = None,
    ) -> ScanResult:
        return self.record_scan(parse_employee_qr(payload), scan_time, expected_action=expected_action)

    def record_scan(
        self,
        employee_id: int,
        scan_time: Optional[datetime] = None,
        *,
        expected_action: Optional[AttendanceAction] = None,
    ) -> ScanResult:
        """Record the next attendance action for ``employee_id`` at ``scan_time`` (default now).

        ``expected_action`` rejects the scan when the employee is not at that step.
        """

        employee_id = require_positive_int(employee_id, "employee_id")
        at = to_whole_seconds(to_local_naive(scan_time or self._clock()))
        employee: Optional[Employee] = None
        try:
            employee = self._load_employee(employee_id)
            if not employee.is_active:
                raise EmployeeInactive(details={"employee_id": employee_id})
            return self._record(employee, at, expected_action)
        except AttendanceError as exc:
            if employee is not None:
                exc.with_context(employee_name=employee.display_name)
            logger.warning("Scan rejected for employee %s at %s: %s (%s)", employee_id, at, exc.message, exc.code)
            if self._events is not None:
                self._events.scan_failed(employee_id, exc)
            raise

    def _record(
        self,
        employee: Employee,
        at: datetime,
        expected_action: Optional[AttendanceAction],
    ) -> ScanResult:
        day = at.date()
        try:
            roster = self._rosters.resolve_active_roster(employee, day)
        except StoreError as exc:
            raise PersistenceFailure(str(exc)) from exc

        record = self._today_record(employee.employee_id, day)
        action = self._state_machine.resolve(record, requested=expected_action)

        try:
            reserved = self._guard.reserve_timestamp(employee.employee_id, at, action.event_kind)
        except StoreError as exc:
            raise PersistenceFailure(str(exc)) from exc
        plan = self._state_machine.plan(record, reserved, requested=action)

        stored = self._persist(employee, roster, plan)
        logger.info(
            "Recorded %s for employee %s at %s (attendance %s)",
            plan.action.value,
            employee.employee_id,
            plan.at,
            stored.attendance_id,
        )
        if self._events is not None:
            self._events.scan_recorded(employee.employee_id, plan.action, plan.at, attendance_id=stored.attendance_id)
        return self._enrich(stored, plan, employee, roster)

    def derived_fields(self, plan: TransitionPlan, roster: Roster) -> dict[str, Any]:
        """Status and metrics recomputed from the timestamps and the roster."""

        sessions = metrics.SessionTimes.from_mapping(plan.timestamps)
        first_in = sessions.first_check_in_time
        late = metrics.lateness(first_in, roster.start_time, roster.grace_period) if first_in else 0
        early = 0
        if plan.status is AttendanceStatus.COMPLETED:
            early = metrics.early_departure(plan.at, roster.end_time, roster.early_departure_threshold)

        expected = metrics.expected_hours(roster.start_time, roster.end_time, roster.break_duration)
        actual = metrics.actual_hours(sessions, plan.at, roster.break_duration)
        return {
            "roster_id": roster.roster_id,
            "status": plan.status,
            "minutes_late": late,
            "early_departure_minutes": early,
            "break_duration": metrics.break_taken_minutes(sessions),
            "expected_hours": round(expected, 2),
            "actual_hours": round(actual, 2),
            "compliance_rate": metrics.compliance_rate(actual, expected, ceiling=self._compliance_ceiling),
            "last_action": plan.at,
            "updated_at": plan.at,
        }

    def _persist(self, employee: Employee, roster: Roster, plan: TransitionPlan) -> AttendanceRecord:
        derived = self.derived_fields(plan, roster)
        previous = plan.previous
        try:
            if previous is None or plan.creates_new_record:
                return self._attendance.create(
                    {
                        "employee_id": employee.employee_id,
                        "date": plan.at.date(),
                        **plan.timestamps,
                        **derived,
                        "is_second_session": plan.creates_new_record,
                        "previous_session_id": previous.attendance_id if plan.creates_new_record else None,
                        "created_at": plan.at,
                    }
                )
            return self._attendance.update(
                previous.attendance_id,
                {plan.target_field: plan.at, **derived},
                expected={plan.target_field: IsNull()},
            )
        except StaleWriteError as exc:
            raise DuplicateAttendanceForDay(
                details={"employee_id": employee.employee_id, "action": plan.action.value},
            ) from exc
        except ConstraintViolation as exc:
            if exc.category == ConstraintViolation.CHECK:
                raise InvalidCheckSequence(
                    SequenceViolation.STORE_CONSTRAINT,
                    details={"constraint": exc.constraint, "action": plan.action.value},
                ) from exc
            if exc.category == ConstraintViolation.UNIQUE:
                raise DuplicateAttendanceForDay(
                    details={"employee_id": employee.employee_id, "constraint": exc.constraint},
                ) from exc
            raise PersistenceFailure(str(exc)) from exc
        except StoreError as exc:
            raise PersistenceFailure(str(exc)) from exc

    def _enrich(self, record: AttendanceRecord, plan: TransitionPlan, employee: Employee, roster: Roster) -> ScanResult:
        is_late = record.minutes_late > 0
        return ScanResult(
            record=record,
            action=plan.action,
            employee_name=employee.display_name,
            is_late=is_late,
            late_label=metrics.format_minutes(record.minutes_late) if is_late else "On time",
            early_departure_minutes=record.early_departure_minutes,
            expected_hours=record.expected_hours,
            actual_hours=record.actual_hours,
            extra={
                "roster_name": roster.name,
                "next_action": next_action(record).value,
                "break_taken": metrics.format_minutes(record.break_duration),
                "is_overtime": metrics.is_overtime(record.actual_hours),
            },
        )

    def delete_record(self, attendance_id: int) -> AttendanceRecord:
        attendance_id = require_positive_int(attendance_id, "attendance_id")
        try:
            record = self._attendance.get_by_id(attendance_id)
            if record is None:
                raise AttendanceRecordNotFound(details={"attendance_id": attendance_id})
            if not self._attendance.delete(attendance_id):
                raise AttendanceRecordNotFound(details={"attendance_id": attendance_id})
        except StoreError as exc:
            raise PersistenceFailure(str(exc)) from exc

        logger.info("Deleted attendance %s of employee %s", attendance_id, record.employee_id)
        if self._events is not None:
            self._events.record_deleted(record.employee_id, attendance_id)
        return record
