"""Generic record-store contract consumed by the repositories.

Filters are plain dicts mapping a column to either a value (equality, ``None`` meaning
``IS NULL``) or one of the predicate objects below. Rows are plain dicts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol, Sequence, Union

Row = dict[str, Any]
Filter = Mapping[str, Any]


class StoreError(Exception):
    """Any failure reported by the storage engine."""


class ConstraintViolation(StoreError):
    """A write rejected by a stored constraint.

    ``category`` is one of ``unique``, ``check`` or ``foreign_key``; ``constraint`` is the
    constraint name when the engine reports it.
    """

    UNIQUE = "unique"
    CHECK = "check"
    FOREIGN_KEY = "foreign_key"

    def __init__(self, message: str, *, category: str, constraint: Optional[str] = None):
        super().__init__(message)
        self.category = category
        self.constraint = constraint


class StaleWriteError(StoreError):
    """A conditional update found the row no longer matching its expectation."""


class Predicate:
    def matches(self, value: Any) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class Gt(Predicate):
    value: Any

    def matches(self, value: Any) -> bool:
        return value is not None and value > self.value


@dataclass(frozen=True)
class Gte(Predicate):
    value: Any

    def matches(self, value: Any) -> bool:
        return value is not None and value >= self.value


@dataclass(frozen=True)
class Lt(Predicate):
    value: Any

    def matches(self, value: Any) -> bool:
        return value is not None and value < self.value


@dataclass(frozen=True)
class Lte(Predicate):
    value: Any

    def matches(self, value: Any) -> bool:
        return value is not None and value <= self.value


@dataclass(frozen=True)
class Between(Predicate):
    """Inclusive range."""

    low: Any
    high: Any

    def matches(self, value: Any) -> bool:
        return value is not None and self.low <= value <= self.high


@dataclass(frozen=True)
class In(Predicate):
    values: tuple

    def matches(self, value: Any) -> bool:
        return value in self.values


@dataclass(frozen=True)
class IsNull(Predicate):
    def matches(self, value: Any) -> bool:
        return value is None


@dataclass(frozen=True)
class NotNull(Predicate):
    def matches(self, value: Any) -> bool:
        return value is not None


@dataclass(frozen=True)
class Order:
    column: str
    descending: bool = False


OrderBy = Union[Order, Sequence[Order], None]


def row_matches(row: Mapping[str, Any], where: Filter) -> bool:
    """Evaluate a filter against a row held in memory."""
    for column, expected in where.items():
        value = row.get(column)
        if isinstance(expected, Predicate):
            if not expected.matches(value):
                return False
        elif expected is None:
            if value is not None:
                return False
        elif value != expected:
            return False
    return True


def as_orders(order: OrderBy) -> list[Order]:
    if order is None:
        return []
    if isinstance(order, Order):
        return [order]
    return list(order)


class RecordStore(Protocol):
    def find_one(self, table: str, where: Filter, order: OrderBy = None) -> Optional[Row]:
        raise NotImplementedError

    def find_many(
        self,
        table: str,
        where: Filter,
        order: OrderBy = None,
        *,
        limit: Optional[int] = None,
    ) -> list[Row]:
        raise NotImplementedError

    def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        """Insert and return the stored row (with its generated ``id``).

        Raises ``ConstraintViolation`` when a stored constraint rejects the row.
        """

        raise NotImplementedError

    def update(
        self,
        table: str,
        record_id: int,
        changes: Mapping[str, Any],
        *,
        expected: Optional[Filter] = None,
    ) -> Row:
        """Update one row and return it.

        When ``expected`` is given the write only applies while the row still matches it;
        otherwise ``StaleWriteError`` is raised.
        """

        raise NotImplementedError

    def delete(self, table: str, record_id: int) -> bool:
        raise NotImplementedError
