from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceAction, AttendanceStatus, SequenceViolation
from ..model import AttendanceRecord
from .base import TransitionStrategy


class SecondCheckInStrategy(TransitionStrategy):
    """Back from the break.

    Opens a new session row linked to the first one instead of updating it; the first
    row stays as it was when the employee left.
    """

    action = AttendanceAction.SECOND_CHECK_IN
    resulting_status = AttendanceStatus.CHECKED_IN
    creates_new_record = True

    def validate(self, record: Optional[AttendanceRecord], at: datetime) -> None:
        previous = record.first_check_out_time if record else None
        self._require_after(previous, at, SequenceViolation.SECOND_CHECK_IN_BEFORE_FIRST_CHECK_OUT, record)
