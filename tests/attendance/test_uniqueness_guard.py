from datetime import date, datetime, timedelta

import pytest

from src.qr_attendance.qr_attendance.attendance.store_attendance_repository import StoreAttendanceRepository
from src.qr_attendance.qr_attendance.attendance.timestamps import UniquenessGuard
from src.qr_attendance.qr_attendance.core.enums import EventKind
from src.qr_attendance.qr_attendance.core.exceptions import TimestampGenerationFailed

DAY = date(2026, 3, 2)


def _seed_attendance(store, **timestamps):
    store.seed(
        "attendance",
        {
            "id": 1,
            "employee_id": 1,
            "date": DAY,
            "status": "CHECKED_IN",
            "is_second_session": 0,
            "created_at": datetime(2026, 3, 2, 9, 0),
            **timestamps,
        },
    )


def test_free_timestamp_is_truncated_to_whole_seconds(store):
    guard = UniquenessGuard(StoreAttendanceRepository(store))

    reserved = guard.reserve_timestamp(1, datetime(2026, 3, 2, 9, 0, 0, 400000), EventKind.CHECK_IN)

    assert reserved == datetime(2026, 3, 2, 9, 0, 0)


def test_scans_within_one_second_get_distinct_timestamps(store):
    _seed_attendance(store, first_check_in_time=datetime(2026, 3, 2, 9, 0, 0))
    guard = UniquenessGuard(StoreAttendanceRepository(store))

    reserved = guard.reserve_timestamp(1, datetime(2026, 3, 2, 9, 0, 0, 500000), EventKind.CHECK_IN)

    assert reserved - datetime(2026, 3, 2, 9, 0, 0) >= timedelta(seconds=1)


def test_check_out_is_floored_to_minimum_gap_after_check_in(store):
    _seed_attendance(store, first_check_in_time=datetime(2026, 3, 2, 9, 0))
    guard = UniquenessGuard(StoreAttendanceRepository(store))

    reserved = guard.reserve_timestamp(1, datetime(2026, 3, 2, 9, 5), EventKind.CHECK_OUT)

    assert reserved == datetime(2026, 3, 2, 9, 15)


def test_check_in_after_check_out_is_floored_to_minimum_gap(store):
    _seed_attendance(
        store,
        first_check_in_time=datetime(2026, 3, 2, 9, 0),
        first_check_out_time=datetime(2026, 3, 2, 12, 0),
    )
    guard = UniquenessGuard(StoreAttendanceRepository(store))

    reserved = guard.reserve_timestamp(1, datetime(2026, 3, 2, 12, 5), EventKind.CHECK_IN)

    assert reserved == datetime(2026, 3, 2, 12, 15)


def test_later_times_are_left_alone(store):
    _seed_attendance(store, first_check_in_time=datetime(2026, 3, 2, 9, 0))
    guard = UniquenessGuard(StoreAttendanceRepository(store))

    reserved = guard.reserve_timestamp(1, datetime(2026, 3, 2, 12, 0), EventKind.CHECK_OUT)

    assert reserved == datetime(2026, 3, 2, 12, 0)


class AlwaysTaken:
    def get_latest_for_employee_and_date(self, employee_id, day):
        return None

    def find_by_timestamp(self, employee_id, day, field_name, at):
        return object()


def test_gives_up_after_bounded_attempts():
    guard = UniquenessGuard(AlwaysTaken(), max_attempts=10)

    with pytest.raises(TimestampGenerationFailed) as exc:
        guard.reserve_timestamp(1, datetime(2026, 3, 2, 9, 0), EventKind.CHECK_IN)

    assert exc.value.details["attempts"] == 10
