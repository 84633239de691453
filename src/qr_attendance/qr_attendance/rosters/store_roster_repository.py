from __future__ import annotations

from datetime import date
from typing import Any, Optional

from ..database.mysql_base import normalize_mysql_time
from ..database.record_store import Lte, Order, RecordStore
from .model import Roster, RosterAssignment
from .repository import RosterRepository

ROSTERS = "rosters"
ASSIGNMENTS = "roster_assignments"


def roster_from_row(r: dict[str, Any]) -> Roster:
    return Roster(
        roster_id=int(r["id"]),
        name=r.get("name") or "",
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        break_duration=int(r.get("break_duration") or 0),
        grace_period=int(r.get("grace_period") or 0),
        early_departure_threshold=int(r.get("early_departure_threshold") or 0),
        is_active=bool(r.get("is_active", True)),
    )


class StoreRosterRepository(RosterRepository):
    def __init__(self, store: RecordStore):
        self._store = store

    def get_by_id(self, roster_id: int) -> Optional[Roster]:
        r = self._store.find_one(ROSTERS, {"id": int(roster_id)})
        return roster_from_row(r) if r else None

    def get_assignment_for_date(self, *, employee_id: int, day: date) -> Optional[RosterAssignment]:
        rows = self._store.find_many(
            ASSIGNMENTS,
            {"employee_id": int(employee_id), "is_active": 1, "start_date": Lte(day)},
            [Order("start_date", descending=True), Order("id", descending=True)],
        )
        for r in rows:
            assignment = RosterAssignment(
                assignment_id=int(r["id"]),
                employee_id=int(r["employee_id"]),
                roster_id=int(r["roster_id"]),
                start_date=r["start_date"],
                end_date=r.get("end_date"),
                is_active=bool(r.get("is_active", True)),
            )
            if assignment.covers(day):
                return assignment
        return None
