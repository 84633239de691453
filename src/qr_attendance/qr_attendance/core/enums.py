from __future__ import annotations

from enum import Enum


class EmployeeStatus(str, Enum):
    """Employment status; only active employees may scan."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class AttendanceAction(str, Enum):
    """The five ordered "next action" values of a working day."""

    FIRST_CHECK_IN = "first_check_in"
    FIRST_CHECK_OUT = "first_check_out"
    SECOND_CHECK_IN = "second_check_in"
    SECOND_CHECK_OUT = "second_check_out"
    COMPLETED = "completed"

    @property
    def event_kind(self) -> "EventKind":
        if self in (AttendanceAction.FIRST_CHECK_IN, AttendanceAction.SECOND_CHECK_IN):
            return EventKind.CHECK_IN
        if self in (AttendanceAction.FIRST_CHECK_OUT, AttendanceAction.SECOND_CHECK_OUT):
            return EventKind.CHECK_OUT
        raise ValueError(f"{self.value} is not a scan event")

    @property
    def field_name(self) -> str:
        """Timestamp column written by this action."""
        if self is AttendanceAction.COMPLETED:
            raise ValueError("completed does not write a timestamp")
        return f"{self.value}_time"


class AttendanceState(str, Enum):
    """Where an employee currently stands for the day."""

    NOT_CHECKED_IN = "not_checked_in"
    FIRST_CHECKED_IN = "first_checked_in"
    FIRST_CHECKED_OUT = "first_checked_out"
    SECOND_CHECKED_IN = "second_checked_in"
    SECOND_CHECKED_OUT = "second_checked_out"


class AttendanceStatus(str, Enum):
    """Status stored on the attendance row."""

    CHECKED_IN = "CHECKED_IN"
    ON_BREAK = "ON_BREAK"
    COMPLETED = "COMPLETED"
    ABSENT = "ABSENT"


class EventKind(str, Enum):
    CHECK_IN = "check-in"
    CHECK_OUT = "check-out"


class SequenceViolation(str, Enum):
    """Sub-kinds of an out-of-order scan."""

    CHECK_OUT_BEFORE_CHECK_IN = "check_out_before_check_in"
    SECOND_CHECK_IN_BEFORE_FIRST_CHECK_OUT = "second_check_in_before_first_check_out"
    SECOND_CHECK_OUT_BEFORE_SECOND_CHECK_IN = "second_check_out_before_second_check_in"
    UNEXPECTED_ACTION = "unexpected_action"
    STORE_CONSTRAINT = "store_constraint"
