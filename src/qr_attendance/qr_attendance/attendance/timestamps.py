from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from ..common.datetime_utils import to_whole_seconds
from ..core.constants import MIN_SESSION_GAP_MINUTES, TIMESTAMP_MAX_ATTEMPTS, TIMESTAMP_OFFSET_SECONDS
from ..core.enums import EventKind
from ..core.exceptions import TimestampGenerationFailed
from .model import AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

_PROBED_FIELDS = {
    EventKind.CHECK_IN: ("first_check_in_time", "second_check_in_time"),
    EventKind.CHECK_OUT: ("first_check_out_time", "second_check_out_time"),
}


class UniquenessGuard:
    """Produce a scan timestamp that collides with nothing already stored for the day.

    Paired events keep a minimum gap: a check-out lands at least ``min_gap`` after the
    open check-in, and a check-in that follows a check-out lands at least ``min_gap``
    after it. Timestamps only ever move forward.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        min_gap: timedelta = timedelta(minutes=MIN_SESSION_GAP_MINUTES),
        max_attempts: int = TIMESTAMP_MAX_ATTEMPTS,
        offset: timedelta = timedelta(seconds=TIMESTAMP_OFFSET_SECONDS),
    ):
        self._attendance = attendance
        self._min_gap = min_gap
        self._max_attempts = max_attempts
        self._offset = offset

    def _floor(self, latest: Optional[AttendanceRecord], kind: EventKind) -> Optional[datetime]:
        if latest is None:
            return None
        if kind is EventKind.CHECK_OUT:
            check_in = latest.second_check_in_time or latest.first_check_in_time
            return check_in + self._min_gap if check_in else None
        check_out = latest.second_check_out_time or latest.first_check_out_time
        return check_out + self._min_gap if check_out else None

    def _collides(self, employee_id: int, candidate: datetime, kind: EventKind) -> bool:
        day = candidate.date()
        return any(
            self._attendance.find_by_timestamp(employee_id, day, field_name, candidate) is not None
            for field_name in _PROBED_FIELDS[kind]
        )

    def reserve_timestamp(self, employee_id: int, base_time: datetime, kind: EventKind) -> datetime:
        candidate = to_whole_seconds(base_time)
        latest = self._attendance.get_latest_for_employee_and_date(employee_id, candidate.date())

        floor = self._floor(latest, kind)
        if floor is not None and candidate < floor:
            logger.debug(
                "Moving %s for employee %s from %s to %s (minimum gap)",
                kind.value,
                employee_id,
                candidate,
                floor,
            )
            candidate = floor

        for _ in range(self._max_attempts):
            if not self._collides(employee_id, candidate, kind):
                return candidate
            logger.debug("Timestamp %s already taken for employee %s, retrying", candidate, employee_id)
            candidate = candidate + self._offset

        raise TimestampGenerationFailed(
            details={"employee_id": employee_id, "base_time": base_time.isoformat(), "attempts": self._max_attempts},
        )
