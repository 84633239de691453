from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceAction, AttendanceStatus
from ..model import AttendanceRecord
from .base import TransitionStrategy


class FirstCheckInStrategy(TransitionStrategy):
    """Start of the day: creates the row, or fills an empty one."""

    action = AttendanceAction.FIRST_CHECK_IN
    resulting_status = AttendanceStatus.CHECKED_IN

    def validate(self, record: Optional[AttendanceRecord], at: datetime) -> None:
        return None
