from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from .model import Department, Employee


class EmployeeRepository(Protocol):
    """Repository interface for employees.

    Note (DIP): services depend on this interface, not on a concrete store.
    """

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def list_active(self, *, department_id: Optional[int] = None) -> Sequence[Employee]:
        raise NotImplementedError

    def get_many(self, employee_ids: Iterable[int]) -> dict[int, Employee]:
        raise NotImplementedError

    def list_departments(self) -> Sequence[Department]:
        raise NotImplementedError
