"""Daily attendance state machine.

NOT_CHECKED_IN -> FIRST_CHECKED_IN -> FIRST_CHECKED_OUT -> SECOND_CHECKED_IN -> SECOND_CHECKED_OUT

The next action is derived only from which timestamp fields of today's record are null.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..core.enums import AttendanceAction, AttendanceState
from ..core.exceptions import AttendanceAlreadyComplete, ValidationError
from .factory import TransitionStrategyFactory
from .model import AttendanceRecord, TransitionPlan


def next_action(record: Optional[AttendanceRecord]) -> AttendanceAction:
    if record is None or record.first_check_in_time is None:
        return AttendanceAction.FIRST_CHECK_IN
    if record.first_check_out_time is None:
        return AttendanceAction.FIRST_CHECK_OUT
    if record.second_check_in_time is None:
        return AttendanceAction.SECOND_CHECK_IN
    if record.second_check_out_time is None:
        return AttendanceAction.SECOND_CHECK_OUT
    return AttendanceAction.COMPLETED


def current_state(record: Optional[AttendanceRecord]) -> AttendanceState:
    if record is None:
        return AttendanceState.NOT_CHECKED_IN
    if record.second_check_out_time is not None:
        return AttendanceState.SECOND_CHECKED_OUT
    if record.second_check_in_time is not None:
        return AttendanceState.SECOND_CHECKED_IN
    if record.first_check_out_time is not None:
        return AttendanceState.FIRST_CHECKED_OUT
    if record.first_check_in_time is not None:
        return AttendanceState.FIRST_CHECKED_IN
    return AttendanceState.NOT_CHECKED_IN


class AttendanceStateMachine:
    def __init__(self, factory: Optional[TransitionStrategyFactory] = None):
        self._factory = factory or TransitionStrategyFactory()

    def resolve(
        self,
        record: Optional[AttendanceRecord],
        *,
        requested: Optional[AttendanceAction] = None,
    ) -> AttendanceAction:
        """The action a scan against ``record`` performs.

        ``requested`` lets a caller insist on a specific action (e.g. the one shown on
        screen); it is validated by ``plan`` like any other transition.
        """

        if requested is AttendanceAction.COMPLETED:
            raise ValidationError("completed is a state, not a scan action")
        action = next_action(record)
        if action is AttendanceAction.COMPLETED:
            raise AttendanceAlreadyComplete(
                details={"attendance_id": record.attendance_id if record else None},
            )
        if requested is not None:
            return requested
        return action

    def plan(
        self,
        record: Optional[AttendanceRecord],
        at: datetime,
        *,
        requested: Optional[AttendanceAction] = None,
    ) -> TransitionPlan:
        """Validate a scan at ``at`` against ``record`` and describe the resulting write.

        Nothing is written here.
        """

        action = self.resolve(record, requested=requested)
        return self._factory.for_action(action).plan(record, at)
