from datetime import date, datetime

import pytest

from src.qr_attendance.qr_attendance.attendance.factory import TransitionStrategyFactory
from src.qr_attendance.qr_attendance.attendance.model import AttendanceRecord
from src.qr_attendance.qr_attendance.attendance.state_machine import AttendanceStateMachine, current_state, next_action
from src.qr_attendance.qr_attendance.attendance.strategies.second_check_in import SecondCheckInStrategy
from src.qr_attendance.qr_attendance.core.enums import AttendanceAction, AttendanceState, AttendanceStatus, SequenceViolation
from src.qr_attendance.qr_attendance.core.exceptions import AttendanceAlreadyComplete, InvalidCheckSequence, ValidationError

DAY = date(2026, 3, 2)


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 3, 2, hour, minute)


def _record(**timestamps) -> AttendanceRecord:
    return AttendanceRecord(attendance_id=7, employee_id=1, date=DAY, **timestamps)


def test_next_action_follows_null_fields():
    assert next_action(None) is AttendanceAction.FIRST_CHECK_IN
    assert next_action(_record()) is AttendanceAction.FIRST_CHECK_IN
    assert next_action(_record(first_check_in_time=_at(9))) is AttendanceAction.FIRST_CHECK_OUT
    assert (
        next_action(_record(first_check_in_time=_at(9), first_check_out_time=_at(12)))
        is AttendanceAction.SECOND_CHECK_IN
    )
    assert (
        next_action(
            _record(first_check_in_time=_at(9), first_check_out_time=_at(12), second_check_in_time=_at(13))
        )
        is AttendanceAction.SECOND_CHECK_OUT
    )


def test_current_state_matches_latest_field():
    record = _record(first_check_in_time=_at(9), first_check_out_time=_at(12))

    assert current_state(None) is AttendanceState.NOT_CHECKED_IN
    assert current_state(record) is AttendanceState.FIRST_CHECKED_OUT
    assert current_state(record) is current_state(record)


def test_plan_rejects_completed_day():
    record = _record(
        first_check_in_time=_at(9),
        first_check_out_time=_at(12),
        second_check_in_time=_at(13),
        second_check_out_time=_at(17),
    )

    with pytest.raises(AttendanceAlreadyComplete):
        AttendanceStateMachine().plan(record, _at(18))


def test_plan_first_check_in_sets_status_and_timestamp():
    plan = AttendanceStateMachine().plan(None, _at(9))

    assert plan.action is AttendanceAction.FIRST_CHECK_IN
    assert plan.status is AttendanceStatus.CHECKED_IN
    assert plan.timestamps["first_check_in_time"] == _at(9)
    assert not plan.creates_new_record


def test_check_out_must_be_after_check_in():
    record = _record(first_check_in_time=_at(9))

    with pytest.raises(InvalidCheckSequence) as exc:
        AttendanceStateMachine().plan(record, _at(9))

    assert exc.value.subkind is SequenceViolation.CHECK_OUT_BEFORE_CHECK_IN


def test_second_check_in_must_follow_first_check_out():
    record = _record(first_check_in_time=_at(9), first_check_out_time=_at(12))

    with pytest.raises(InvalidCheckSequence) as exc:
        AttendanceStateMachine().plan(record, _at(11))

    assert exc.value.subkind is SequenceViolation.SECOND_CHECK_IN_BEFORE_FIRST_CHECK_OUT


def test_second_check_out_must_follow_second_check_in():
    record = _record(first_check_in_time=_at(9), first_check_out_time=_at(12), second_check_in_time=_at(13))

    with pytest.raises(InvalidCheckSequence) as exc:
        AttendanceStateMachine().plan(record, _at(12, 30))

    assert exc.value.subkind is SequenceViolation.SECOND_CHECK_OUT_BEFORE_SECOND_CHECK_IN


def test_requested_check_out_without_check_in_is_rejected():
    with pytest.raises(InvalidCheckSequence) as exc:
        AttendanceStateMachine().plan(None, _at(9), requested=AttendanceAction.FIRST_CHECK_OUT)

    assert exc.value.subkind is SequenceViolation.CHECK_OUT_BEFORE_CHECK_IN


def test_requested_action_already_recorded_is_rejected():
    record = _record(first_check_in_time=_at(9), first_check_out_time=_at(12))

    with pytest.raises(InvalidCheckSequence) as exc:
        AttendanceStateMachine().plan(record, _at(13), requested=AttendanceAction.FIRST_CHECK_OUT)

    assert exc.value.subkind is SequenceViolation.UNEXPECTED_ACTION


def test_second_check_in_plans_new_record_with_first_session_copied():
    record = _record(first_check_in_time=_at(9), first_check_out_time=_at(12))

    plan = AttendanceStateMachine().plan(record, _at(13))

    assert plan.creates_new_record
    assert plan.previous is record
    assert plan.timestamps == {
        "first_check_in_time": _at(9),
        "first_check_out_time": _at(12),
        "second_check_in_time": _at(13),
        "second_check_out_time": None,
    }


def test_resolve_honours_requested_action():
    machine = AttendanceStateMachine()

    assert machine.resolve(None) is AttendanceAction.FIRST_CHECK_IN
    assert machine.resolve(None, requested=AttendanceAction.FIRST_CHECK_OUT) is AttendanceAction.FIRST_CHECK_OUT


def test_factory_picks_strategy_per_action():
    factory = TransitionStrategyFactory()

    assert isinstance(factory.for_action(AttendanceAction.SECOND_CHECK_IN), SecondCheckInStrategy)
    with pytest.raises(AttendanceAlreadyComplete):
        factory.for_action(AttendanceAction.COMPLETED)


def test_resolve_refuses_completed_as_requested_action():
    with pytest.raises(ValidationError):
        AttendanceStateMachine().resolve(None, requested=AttendanceAction.COMPLETED)
