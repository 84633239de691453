from datetime import datetime

import pytest

from src.qr_attendance.qr_attendance.core.enums import (
    AttendanceAction,
    AttendanceState,
    AttendanceStatus,
    SequenceViolation,
)
from src.qr_attendance.qr_attendance.core.exceptions import (
    AttendanceAlreadyComplete,
    AttendanceRecordNotFound,
    DuplicateAttendanceForDay,
    EmployeeInactive,
    EmployeeNotFound,
    InvalidCheckSequence,
    NoRosterAssigned,
    PersistenceFailure,
    ValidationError,
)
from src.qr_attendance.qr_attendance.database.record_store import ConstraintViolation, StoreError


def _at(hour: int, minute: int = 0, second: int = 0, micro: int = 0) -> datetime:
    return datetime(2026, 3, 2, hour, minute, second, micro)


def _attendance_writes(store):
    return [w for w in store.writes if w[1] == "attendance"]


def _full_day(service):
    return [
        service.record_scan(1, _at(9, 10)),
        service.record_scan(1, _at(12, 0)),
        service.record_scan(1, _at(13, 0)),
        service.record_scan(1, _at(17, 0)),
    ]


def test_full_day_advances_one_field_per_scan(service, store):
    results = _full_day(service)

    assert [r.action for r in results] == [
        AttendanceAction.FIRST_CHECK_IN,
        AttendanceAction.FIRST_CHECK_OUT,
        AttendanceAction.SECOND_CHECK_IN,
        AttendanceAction.SECOND_CHECK_OUT,
    ]
    assert [w[0] for w in _attendance_writes(store)] == ["insert", "update", "insert", "update"]

    final = results[-1].record
    assert final.status is AttendanceStatus.COMPLETED
    assert final.first_check_in_time == _at(9, 10)
    assert final.second_check_out_time == _at(17, 0)
    assert final.minutes_late == 5
    assert final.early_departure_minutes == 0
    assert final.break_duration == 60
    assert final.expected_hours == 7.0
    # 2h50m + 4h - 60m break
    assert final.actual_hours == 5.83


def test_second_check_in_creates_linked_record(service, store):
    first = service.record_scan(1, _at(9, 0))
    service.record_scan(1, _at(12, 0))
    second = service.record_scan(1, _at(13, 0))

    assert second.record.attendance_id != first.record.attendance_id
    assert second.record.is_second_session
    assert second.record.previous_session_id == first.record.attendance_id
    assert second.record.first_check_in_time == _at(9, 0)
    assert second.record.first_check_out_time == _at(12, 0)

    original = store.tables["attendance"][first.record.attendance_id]
    assert original["second_check_in_time"] is None
    assert original["status"] == AttendanceStatus.ON_BREAK.value


def test_scan_after_completion_fails_and_changes_nothing(service, store):
    _full_day(service)
    before = store.rows("attendance")
    writes = len(_attendance_writes(store))

    with pytest.raises(AttendanceAlreadyComplete):
        service.record_scan(1, _at(18, 0))

    assert store.rows("attendance") == before
    assert len(_attendance_writes(store)) == writes


def test_check_out_before_any_check_in_persists_nothing(service, store):
    with pytest.raises(InvalidCheckSequence) as exc:
        service.record_scan(1, _at(9, 0), expected_action=AttendanceAction.FIRST_CHECK_OUT)

    assert exc.value.subkind is SequenceViolation.CHECK_OUT_BEFORE_CHECK_IN
    assert store.rows("attendance") == []


def test_unknown_employee(service):
    with pytest.raises(EmployeeNotFound):
        service.record_scan(99, _at(9, 0))


def test_inactive_employee(service, store):
    with pytest.raises(EmployeeInactive) as exc:
        service.record_scan(3, _at(9, 0))

    assert exc.value.details["employee_name"] == "Chi Le"
    assert store.rows("attendance") == []


def test_employee_without_roster(service, store):
    with pytest.raises(NoRosterAssigned):
        service.record_scan(4, _at(9, 0))

    assert store.rows("attendance") == []


def test_dated_roster_assignment_is_used(service, store):
    store.seed(
        "roster_assignments",
        {"id": 1, "employee_id": 4, "roster_id": 1, "start_date": _at(0).date(), "end_date": None, "is_active": 1},
    )

    result = service.record_scan(4, _at(9, 20))

    assert result.record.roster_id == 1
    assert result.is_late
    assert result.late_label == "0h 15m"


def test_rapid_repeat_scans_get_distinct_timestamps(service, store):
    first = service.record_scan(1, _at(9, 0, 0, 200000))
    second = service.record_scan(1, _at(9, 0, 0, 800000))

    assert (second.record.first_check_out_time - first.record.first_check_in_time).total_seconds() >= 1
    assert len(store.rows("attendance")) == 1


def test_concurrent_check_out_loses_cleanly(service, container, store, monkeypatch):
    service.record_scan(1, _at(9, 0))
    stale = container.attendance_repo.get_latest_for_employee_and_date(1, _at(9).date())
    service.record_scan(1, _at(9, 30))

    monkeypatch.setattr(container.attendance_repo, "get_latest_for_employee_and_date", lambda *args: stale)

    with pytest.raises(DuplicateAttendanceForDay):
        service.record_scan(1, _at(9, 30))

    rows = store.rows("attendance")
    assert len(rows) == 1
    assert rows[0]["first_check_out_time"] == _at(9, 30)


def test_concurrent_first_check_in_hits_unique_key(service, container, store, monkeypatch):
    service.record_scan(1, _at(9, 0))
    monkeypatch.setattr(container.attendance_repo, "get_latest_for_employee_and_date", lambda *args: None)

    with pytest.raises(DuplicateAttendanceForDay):
        service.record_scan(1, _at(9, 0, 30))

    assert len(store.rows("attendance")) == 1


def test_check_constraint_maps_to_sequence_error(service, store):
    store.fail_on[("insert", "attendance")] = ConstraintViolation(
        "Check constraint 'valid_check_times' is violated.",
        category=ConstraintViolation.CHECK,
        constraint="valid_check_times",
    )

    with pytest.raises(InvalidCheckSequence) as exc:
        service.record_scan(1, _at(9, 0))

    assert exc.value.subkind is SequenceViolation.STORE_CONSTRAINT


def test_other_store_errors_become_persistence_failure(service, store):
    store.fail_on[("insert", "attendance")] = StoreError("Lost connection to MySQL server")

    with pytest.raises(PersistenceFailure) as exc:
        service.record_scan(1, _at(9, 0))

    assert exc.value.message == "Failed to process attendance: Lost connection to MySQL server"
    assert exc.value.details["employee_name"] == "Alice Nguyen"


def test_next_action_and_state_are_stable(service):
    assert service.get_next_action(1) is AttendanceAction.FIRST_CHECK_IN

    service.record_scan(1, _at(8, 55))

    assert service.get_next_action(1) is AttendanceAction.FIRST_CHECK_OUT
    assert service.get_current_state(1) is AttendanceState.FIRST_CHECKED_IN
    assert service.get_current_state(1) is service.get_current_state(1)


def test_next_action_reports_completed_day(service):
    _full_day(service)

    assert service.get_next_action(1) is AttendanceAction.COMPLETED
    assert service.get_current_state(1) is AttendanceState.SECOND_CHECKED_OUT


def test_qr_payload_scan(service):
    result = service.record_qr_scan("EMP:2:Bao Tran", _at(8, 59))

    assert result.record.employee_id == 2
    assert result.employee_name == "Bao Tran"
    assert not result.is_late
    assert result.late_label == "On time"


def test_invalid_qr_payload(service):
    with pytest.raises(ValidationError):
        service.record_qr_scan("hello world", _at(9, 0))


def test_delete_record(service, store):
    scanned = service.record_scan(1, _at(9, 0))

    deleted = service.delete_record(scanned.record.attendance_id)

    assert deleted.attendance_id == scanned.record.attendance_id
    assert store.rows("attendance") == []
    with pytest.raises(AttendanceRecordNotFound):
        service.delete_record(scanned.record.attendance_id)


def test_scan_and_errors_are_logged_as_events(service, store):
    service.record_scan(1, _at(9, 0))
    with pytest.raises(EmployeeNotFound):
        service.record_scan(99, _at(9, 1))

    events = [r["event_type"] for r in store.rows("attendance_logs")]
    assert events == ["check-in", "error"]


@pytest.mark.parametrize("employee_id", [1.9, True])
def test_non_integer_employee_id_is_rejected(service, store, employee_id):
    with pytest.raises(ValidationError):
        service.record_scan(employee_id, _at(9, 0))

    assert store.rows("attendance") == []


def test_offset_aware_scan_time_is_stored_as_local_time(service):
    aware = datetime.fromisoformat("2026-03-02T09:00:00+07:00")

    result = service.record_scan(1, aware)

    assert result.record.first_check_in_time == aware.astimezone().replace(tzinfo=None)
    assert result.record.first_check_in_time.tzinfo is None
