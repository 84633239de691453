from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence

from ..core.enums import EmployeeStatus
from ..database.record_store import In, Order, RecordStore
from .model import Department, Employee
from .repository import EmployeeRepository

EMPLOYEES = "employees"
DEPARTMENTS = "departments"


def employee_from_row(r: dict[str, Any]) -> Employee:
    return Employee(
        employee_id=int(r["id"]),
        first_name=r.get("first_name") or "",
        last_name=r.get("last_name") or "",
        status=EmployeeStatus(r.get("status") or EmployeeStatus.INACTIVE.value),
        name=r.get("name"),
        email=r.get("email"),
        department_id=r.get("department_id"),
        position=r.get("position"),
        roster_id=r.get("roster_id"),
    )


class StoreEmployeeRepository(EmployeeRepository):
    def __init__(self, store: RecordStore):
        self._store = store

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        r = self._store.find_one(EMPLOYEES, {"id": int(employee_id)})
        return employee_from_row(r) if r else None

    def list_active(self, *, department_id: Optional[int] = None) -> Sequence[Employee]:
        where: dict[str, Any] = {"status": EmployeeStatus.ACTIVE.value}
        if department_id is not None:
            where["department_id"] = int(department_id)
        rows = self._store.find_many(EMPLOYEES, where, Order("id"))
        return [employee_from_row(r) for r in rows]

    def get_many(self, employee_ids: Iterable[int]) -> dict[int, Employee]:
        ids = tuple(sorted({int(i) for i in employee_ids}))
        if not ids:
            return {}
        rows = self._store.find_many(EMPLOYEES, {"id": In(ids)})
        return {int(r["id"]): employee_from_row(r) for r in rows}

    def list_departments(self) -> Sequence[Department]:
        rows = self._store.find_many(DEPARTMENTS, {}, Order("name"))
        return [Department(department_id=int(r["id"]), name=r["name"]) for r in rows]
