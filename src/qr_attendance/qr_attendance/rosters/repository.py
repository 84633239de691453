from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from .model import Roster, RosterAssignment


class RosterRepository(Protocol):
    def get_by_id(self, roster_id: int) -> Optional[Roster]:
        raise NotImplementedError

    def get_assignment_for_date(self, *, employee_id: int, day: date) -> Optional[RosterAssignment]:
        """Most recent active assignment covering ``day``."""

        raise NotImplementedError
