from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import EmployeeStatus


@dataclass(frozen=True)
class Employee:
    """Domain entity: Employee.

    Created and imported elsewhere; the attendance engine only reads it.
    """

    employee_id: int
    first_name: str
    last_name: str
    status: EmployeeStatus
    name: Optional[str] = None
    email: Optional[str] = None
    department_id: Optional[int] = None
    position: Optional[str] = None
    roster_id: Optional[int] = None

    @property
    def display_name(self) -> str:
        full = f"{self.first_name} {self.last_name}".strip()
        return full or (self.name or "").strip() or f"Employee #{self.employee_id}"

    @property
    def is_active(self) -> bool:
        return self.status == EmployeeStatus.ACTIVE


@dataclass(frozen=True)
class Department:
    department_id: int
    name: str
