from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceAction, AttendanceStatus, SequenceViolation
from ..model import AttendanceRecord
from .base import TransitionStrategy


class FirstCheckOutStrategy(TransitionStrategy):
    """Leaving for the break."""

    action = AttendanceAction.FIRST_CHECK_OUT
    resulting_status = AttendanceStatus.ON_BREAK

    def validate(self, record: Optional[AttendanceRecord], at: datetime) -> None:
        previous = record.first_check_in_time if record else None
        self._require_after(previous, at, SequenceViolation.CHECK_OUT_BEFORE_CHECK_IN, record)
