from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, time
from types import SimpleNamespace
from typing import Any, Callable, Mapping, Optional

import pytest

from src.qr_attendance.qr_attendance.container import build_container
from src.qr_attendance.qr_attendance.database.record_store import (
    ConstraintViolation,
    Filter,
    OrderBy,
    Row,
    StaleWriteError,
    StoreError,
    as_orders,
    row_matches,
)

_SEQUENCE = (
    ("first_check_in_time", "first_check_out_time"),
    ("first_check_out_time", "second_check_in_time"),
    ("second_check_in_time", "second_check_out_time"),
)


def valid_check_times(row: Mapping[str, Any]) -> bool:
    for earlier, later in _SEQUENCE:
        if row.get(later) is None:
            continue
        if row.get(earlier) is None or not row[earlier] < row[later]:
            return False
    return True


class InMemoryRecordStore:
    """RecordStore double enforcing the attendance unique key and check constraint."""

    unique_keys = {
        "attendance": [("unique_daily_attendance", ("employee_id", "date", "is_second_session"))],
    }
    checks: dict[str, list[tuple[str, Callable[[Mapping[str, Any]], bool]]]] = {
        "attendance": [("valid_check_times", valid_check_times)],
    }

    def __init__(self):
        self.tables: dict[str, dict[int, Row]] = defaultdict(dict)
        self._next_id: dict[str, int] = defaultdict(int)
        self.writes: list[tuple[str, str, int]] = []
        self.fail_on: dict[tuple[str, str], StoreError] = {}

    def _maybe_fail(self, op: str, table: str) -> None:
        exc = self.fail_on.pop((op, table), None)
        if exc is not None:
            raise exc

    def _check(self, table: str, row: Row) -> None:
        for name, predicate in self.checks.get(table, []):
            if not predicate(row):
                raise ConstraintViolation(f"Check constraint '{name}' is violated.", category=ConstraintViolation.CHECK, constraint=name)
        for name, columns in self.unique_keys.get(table, []):
            key = tuple(row.get(c) for c in columns)
            if any(v is None for v in key):
                continue
            for other in self.tables[table].values():
                if other["id"] != row["id"] and tuple(other.get(c) for c in columns) == key:
                    raise ConstraintViolation(
                        f"Duplicate entry for key '{table}.{name}'",
                        category=ConstraintViolation.UNIQUE,
                        constraint=name,
                    )

    def seed(self, table: str, *rows: Mapping[str, Any]) -> None:
        for row in rows:
            stored = dict(row)
            self.tables[table][int(stored["id"])] = stored
            self._next_id[table] = max(self._next_id[table], int(stored["id"]))

    def rows(self, table: str) -> list[Row]:
        return [dict(r) for r in self.tables[table].values()]

    def find_one(self, table: str, where: Filter, order: OrderBy = None) -> Optional[Row]:
        rows = self.find_many(table, where, order, limit=1)
        return rows[0] if rows else None

    def find_many(self, table: str, where: Filter, order: OrderBy = None, *, limit: Optional[int] = None) -> list[Row]:
        self._maybe_fail("find", table)
        rows = [dict(r) for r in self.tables[table].values() if row_matches(r, where)]
        for o in reversed(as_orders(order)):
            present = [r for r in rows if r.get(o.column) is not None]
            missing = [r for r in rows if r.get(o.column) is None]
            present.sort(key=lambda r: r[o.column], reverse=o.descending)
            rows = present + missing
        return rows[:limit] if limit is not None else rows

    def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        self._maybe_fail("insert", table)
        new_id = self._next_id[table] + 1
        stored = {**dict(row), "id": new_id}
        self._check(table, stored)
        self._next_id[table] = new_id
        self.tables[table][new_id] = stored
        self.writes.append(("insert", table, new_id))
        return dict(stored)

    def update(self, table: str, record_id: int, changes: Mapping[str, Any], *, expected: Optional[Filter] = None) -> Row:
        self._maybe_fail("update", table)
        current = self.tables[table].get(int(record_id))
        if current is None:
            raise StoreError(f"{table} row {record_id} not found")
        if expected and not row_matches(current, expected):
            raise StaleWriteError(f"{table} row {record_id} changed since it was read")
        merged = {**current, **dict(changes)}
        self._check(table, merged)
        self.tables[table][int(record_id)] = merged
        self.writes.append(("update", table, int(record_id)))
        return dict(merged)

    def delete(self, table: str, record_id: int) -> bool:
        self._maybe_fail("delete", table)
        removed = self.tables[table].pop(int(record_id), None)
        if removed is not None:
            self.writes.append(("delete", table, int(record_id)))
        return removed is not None


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 2, 9, 0, 0)


@pytest.fixture
def store() -> InMemoryRecordStore:
    s = InMemoryRecordStore()
    s.seed(
        "departments",
        {"id": 1, "name": "Engineering"},
        {"id": 2, "name": "Operations"},
    )
    s.seed(
        "rosters",
        {
            "id": 1,
            "name": "Day",
            "start_time": time(9, 0),
            "end_time": time(17, 0),
            "break_duration": 60,
            "grace_period": 5,
            "early_departure_threshold": 10,
            "is_active": 1,
        },
        {
            "id": 2,
            "name": "Retired",
            "start_time": "08:00",
            "end_time": "16:00",
            "break_duration": 30,
            "grace_period": 0,
            "early_departure_threshold": 0,
            "is_active": 0,
        },
    )
    s.seed(
        "employees",
        {"id": 1, "first_name": "Alice", "last_name": "Nguyen", "status": "active", "department_id": 1, "position": "Engineer", "roster_id": 1},
        {"id": 2, "first_name": "Bao", "last_name": "Tran", "status": "active", "department_id": 2, "position": "Operator", "roster_id": 1},
        {"id": 3, "first_name": "Chi", "last_name": "Le", "status": "inactive", "department_id": 1, "position": "Engineer", "roster_id": 1},
        {"id": 4, "first_name": "Dung", "last_name": "Pham", "status": "active", "department_id": 2, "position": "Operator", "roster_id": None},
    )
    return s


@pytest.fixture
def settings():
    return SimpleNamespace(
        AUDIT_FLUSH_THRESHOLD=1,
        SUMMARY_CACHE_SECONDS=0,
        COMPLIANCE_RATE_CEILING=100.0,
    )


@pytest.fixture
def container(store, settings, fixed_now):
    return build_container(store=store, settings=settings, clock=lambda: fixed_now)


@pytest.fixture
def service(container):
    return container.attendance_service


@pytest.fixture
def today(fixed_now) -> date:
    return fixed_now.date()
