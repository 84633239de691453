from __future__ import annotations

from typing import Any, Optional

from .enums import SequenceViolation


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AttendanceError(DomainError):
    """Base for every failure of a scan or attendance query.

    ``code`` is machine-readable and stable; the message is meant for the operator.
    """

    code = "ATTENDANCE_ERROR"
    default_message = "Failed to record attendance"

    def __init__(self, message: Optional[str] = None, *, details: Optional[dict[str, Any]] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details: dict[str, Any] = dict(details or {})

    def with_context(self, **context: Any) -> "AttendanceError":
        """Attach extra context (e.g. the employee name) and return self for re-raising."""
        self.details.update({k: v for k, v in context.items() if v is not None})
        return self

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class EmployeeNotFound(AttendanceError):
    code = "EMPLOYEE_NOT_FOUND"
    default_message = "Employee not found or invalid employee ID"


class EmployeeInactive(AttendanceError):
    code = "EMPLOYEE_INACTIVE"
    default_message = "Employee is not active in the system"


class NoRosterAssigned(AttendanceError):
    code = "NO_ROSTER_ASSIGNED"
    default_message = "No valid roster found for employee"


class AttendanceAlreadyComplete(AttendanceError):
    code = "ATTENDANCE_ALREADY_COMPLETE"
    default_message = "All attendance actions completed for today"


class InvalidCheckSequence(AttendanceError):
    code = "INVALID_CHECK_SEQUENCE"
    default_message = "Invalid check-in/out sequence. Please try again."

    _messages = {
        SequenceViolation.CHECK_OUT_BEFORE_CHECK_IN: "Check-out time must be after check-in time",
        SequenceViolation.SECOND_CHECK_IN_BEFORE_FIRST_CHECK_OUT: (
            "Second check-in time must be after first check-out time"
        ),
        SequenceViolation.SECOND_CHECK_OUT_BEFORE_SECOND_CHECK_IN: (
            "Second check-out time must be after second check-in time"
        ),
    }

    def __init__(
        self,
        subkind: SequenceViolation,
        message: Optional[str] = None,
        *,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message or self._messages.get(subkind), details=details)
        self.subkind = subkind
        self.details.setdefault("subkind", subkind.value)


class DuplicateAttendanceForDay(AttendanceError):
    code = "DUPLICATE_ATTENDANCE_FOR_DAY"
    default_message = "Attendance record already exists for today."


class TimestampGenerationFailed(AttendanceError):
    code = "TIMESTAMP_GENERATION_FAILED"
    default_message = "Unable to generate unique timestamp"


class PersistenceFailure(AttendanceError):
    code = "PERSISTENCE_FAILURE"

    def __init__(self, message: str, *, details: Optional[dict[str, Any]] = None):
        super().__init__(f"Failed to process attendance: {message}", details=details)
        self.underlying_message = message


class AttendanceRecordNotFound(AttendanceError):
    code = "ATTENDANCE_RECORD_NOT_FOUND"
    default_message = "Attendance record not found"
