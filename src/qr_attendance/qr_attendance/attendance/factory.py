from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import AttendanceAction
from ..core.exceptions import AttendanceAlreadyComplete
from .strategies.base import TransitionStrategy
from .strategies.first_check_in import FirstCheckInStrategy
from .strategies.first_check_out import FirstCheckOutStrategy
from .strategies.second_check_in import SecondCheckInStrategy
from .strategies.second_check_out import SecondCheckOutStrategy


@dataclass
class TransitionStrategyFactory:
    """Factory Pattern: choose the strategy that applies a scan action."""

    def for_action(self, action: AttendanceAction) -> TransitionStrategy:
        if action is AttendanceAction.FIRST_CHECK_IN:
            return FirstCheckInStrategy()
        if action is AttendanceAction.FIRST_CHECK_OUT:
            return FirstCheckOutStrategy()
        if action is AttendanceAction.SECOND_CHECK_IN:
            return SecondCheckInStrategy()
        if action is AttendanceAction.SECOND_CHECK_OUT:
            return SecondCheckOutStrategy()
        raise AttendanceAlreadyComplete()
