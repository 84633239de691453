from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceAction, AttendanceStatus, SequenceViolation
from ..model import AttendanceRecord
from .base import TransitionStrategy


class SecondCheckOutStrategy(TransitionStrategy):
    """End of the day."""

    action = AttendanceAction.SECOND_CHECK_OUT
    resulting_status = AttendanceStatus.COMPLETED

    def validate(self, record: Optional[AttendanceRecord], at: datetime) -> None:
        previous = record.second_check_in_time if record else None
        self._require_after(previous, at, SequenceViolation.SECOND_CHECK_OUT_BEFORE_SECOND_CHECK_IN, record)
