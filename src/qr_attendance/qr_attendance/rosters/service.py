from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from ..core.exceptions import NoRosterAssigned
from ..employees.model import Employee
from .model import Roster
from .repository import RosterRepository

logger = logging.getLogger(__name__)


class RosterResolver:
    """Use case: find the work schedule an employee is bound to on a given day.

    A dated assignment wins over the employee's default roster; inactive rosters are
    ignored.
    """

    def __init__(self, rosters: RosterRepository):
        self._rosters = rosters

    def _active(self, roster_id: Optional[int]) -> Optional[Roster]:
        if not roster_id:
            return None
        roster = self._rosters.get_by_id(int(roster_id))
        if roster and roster.is_active:
            return roster
        return None

    def resolve_active_roster(self, employee: Employee, day: date) -> Roster:
        assignment = self._rosters.get_assignment_for_date(employee_id=employee.employee_id, day=day)
        roster = self._active(assignment.roster_id) if assignment else None

        if roster is None:
            roster = self._active(employee.roster_id)

        if roster is None:
            logger.warning("No valid roster found for employee %s on %s", employee.employee_id, day)
            raise NoRosterAssigned(details={"employee_id": employee.employee_id, "date": day.isoformat()})
        return roster
