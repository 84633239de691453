from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Optional

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..core.enums import AttendanceAction
from ..core.exceptions import (
    AttendanceAlreadyComplete,
    AttendanceError,
    AttendanceRecordNotFound,
    DuplicateAttendanceForDay,
    EmployeeInactive,
    EmployeeNotFound,
    InvalidCheckSequence,
    NoRosterAssigned,
    PersistenceFailure,
    TimestampGenerationFailed,
    ValidationError,
)
from ..container import Container

logger = logging.getLogger(__name__)

_HTTP_STATUS = {
    EmployeeNotFound: 404,
    AttendanceRecordNotFound: 404,
    AttendanceAlreadyComplete: 409,
    DuplicateAttendanceForDay: 409,
    InvalidCheckSequence: 409,
    EmployeeInactive: 422,
    NoRosterAssigned: 422,
    TimestampGenerationFailed: 422,
    PersistenceFailure: 503,
}


def status_for(exc: AttendanceError) -> int:
    for kind, status in _HTTP_STATUS.items():
        if isinstance(exc, kind):
            return status
    return 400


def _optional_date(name: str) -> Optional[date]:
    value = request.args.get(name)
    if not value:
        return None
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{name} must be a YYYY-MM-DD date") from None


def _scan_time(payload: dict[str, Any]) -> Optional[datetime]:
    value = payload.get("scan_time")
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise ValidationError("scan_time must be an ISO 8601 timestamp") from None


def _expected_action(payload: dict[str, Any]) -> Optional[AttendanceAction]:
    value = payload.get("expected_action")
    if not value:
        return None
    try:
        action = AttendanceAction(str(value))
    except ValueError:
        raise ValidationError(f"Unknown attendance action: {value!r}") from None
    if action is AttendanceAction.COMPLETED:
        raise ValidationError("expected_action must be a scan action, not completed")
    return action


def register(app: Flask, container: Container) -> None:
    attendance = container.attendance_service
    reports = container.report_service

    @app.errorhandler(AttendanceError)
    def handle_attendance_error(exc: AttendanceError):
        return jsonify({"success": False, **exc.to_dict()}), status_for(exc)

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return jsonify({"success": False, "code": "VALIDATION_ERROR", "message": str(exc)}), 400

    @app.route("/api/scan", methods=["POST"], endpoint="scan")
    def scan():
        payload = request.get_json(silent=True) or {}
        scan_time = _scan_time(payload)
        expected_action = _expected_action(payload)

        if payload.get("qr"):
            result = attendance.record_qr_scan(str(payload["qr"]), scan_time, expected_action=expected_action)
        elif payload.get("employee_id") is not None:
            result = attendance.record_scan(payload["employee_id"], scan_time, expected_action=expected_action)
        else:
            raise ValidationError("employee_id or qr is required")

        reports.invalidate()
        return jsonify({"success": True, "data": result.to_dict()})

    @app.route("/api/employees/<int:employee_id>/next-action", endpoint="next_action")
    def next_action(employee_id: int):
        action = attendance.get_next_action(employee_id)
        return jsonify({"success": True, "employee_id": employee_id, "next_action": action.value})

    @app.route("/api/employees/<int:employee_id>/state", endpoint="current_state")
    def current_state(employee_id: int):
        state = attendance.get_current_state(employee_id)
        return jsonify({"success": True, "employee_id": employee_id, "state": state.value})

    @app.route("/api/employees/<int:employee_id>/today", endpoint="today_record")
    def today_record(employee_id: int):
        record = attendance.get_today_record(employee_id)
        return jsonify({"success": True, "data": record.to_dict() if record else None})

    @app.route("/api/employees/<int:employee_id>/metrics", endpoint="employee_metrics")
    def employee_metrics(employee_id: int):
        start = _optional_date("start")
        end = _optional_date("end")
        if start is None or end is None:
            raise ValidationError("start and end are required")
        result = reports.employee_metrics(employee_id, start, end)
        return jsonify({"success": True, "data": result.to_dict()})

    @app.route("/api/attendance/summary", endpoint="attendance_summary")
    def attendance_summary():
        summary = reports.today_summary(_optional_date("date"))
        return jsonify({"success": True, "data": summary.to_dict()})

    @app.route("/api/attendance/present", endpoint="present_employees")
    def present_employees():
        department_id = request.args.get("department_id", type=int)
        rows = reports.present_employees(_optional_date("date"), department_id=department_id)
        return jsonify({"success": True, "data": [row.to_dict() for row in rows]})

    @app.route("/api/attendance/departments", endpoint="department_breakdown")
    def department_breakdown():
        groups = reports.department_breakdown(_optional_date("date"))
        return jsonify(
            {
                "success": True,
                "data": [
                    {
                        "department_id": g.department_id,
                        "department": g.department,
                        "total_employees": g.total_employees,
                        "present": g.present,
                        "late": g.late,
                    }
                    for g in groups
                ],
            }
        )

    @app.route("/api/attendance/<int:attendance_id>", methods=["DELETE"], endpoint="delete_attendance")
    def delete_attendance(attendance_id: int):
        record = attendance.delete_record(attendance_id)
        reports.invalidate()
        logger.info("Attendance %s deleted via API", attendance_id)
        return jsonify({"success": True, "data": record.to_dict()})
