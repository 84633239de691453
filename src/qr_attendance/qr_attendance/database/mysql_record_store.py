from __future__ import annotations

import logging
import re
from typing import Any, Mapping, Optional

from .connection import DatabaseConnection
from .mysql_base import db_cursor, fetchall, fetchone
from .record_store import (
    Between,
    Filter,
    Gt,
    Gte,
    In,
    IsNull,
    Lt,
    Lte,
    NotNull,
    OrderBy,
    RecordStore,
    Row,
    StaleWriteError,
    StoreError,
    as_orders,
    row_matches,
)

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def quote_identifier(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return f"`{name}`"


def build_where(where: Filter) -> tuple[str, list[Any]]:
    """Render a filter dict as a WHERE clause body plus its parameters."""

    clauses: list[str] = []
    params: list[Any] = []

    for column, expected in where.items():
        col = quote_identifier(column)
        if expected is None or isinstance(expected, IsNull):
            clauses.append(f"{col} IS NULL")
        elif isinstance(expected, NotNull):
            clauses.append(f"{col} IS NOT NULL")
        elif isinstance(expected, Between):
            clauses.append(f"{col} BETWEEN %s AND %s")
            params.extend([expected.low, expected.high])
        elif isinstance(expected, Gt):
            clauses.append(f"{col} > %s")
            params.append(expected.value)
        elif isinstance(expected, Gte):
            clauses.append(f"{col} >= %s")
            params.append(expected.value)
        elif isinstance(expected, Lt):
            clauses.append(f"{col} < %s")
            params.append(expected.value)
        elif isinstance(expected, Lte):
            clauses.append(f"{col} <= %s")
            params.append(expected.value)
        elif isinstance(expected, In):
            if not expected.values:
                clauses.append("1=0")
                continue
            placeholders = ",".join(["%s"] * len(expected.values))
            clauses.append(f"{col} IN ({placeholders})")
            params.extend(expected.values)
        else:
            clauses.append(f"{col}=%s")
            params.append(expected)

    return (" AND ".join(clauses) or "1=1"), params


def build_order(order: OrderBy) -> str:
    orders = as_orders(order)
    if not orders:
        return ""
    parts = [f"{quote_identifier(o.column)} {'DESC' if o.descending else 'ASC'}" for o in orders]
    return " ORDER BY " + ", ".join(parts)


class MySQLRecordStore(RecordStore):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_one(self, table: str, where: Filter, order: OrderBy = None) -> Optional[Row]:
        rows = self.find_many(table, where, order, limit=1)
        return rows[0] if rows else None

    def find_many(
        self,
        table: str,
        where: Filter,
        order: OrderBy = None,
        *,
        limit: Optional[int] = None,
    ) -> list[Row]:
        clause, params = build_where(where)
        sql = f"SELECT * FROM {quote_identifier(table)} WHERE {clause}{build_order(order)}"
        if limit is not None:
            sql += " LIMIT %s"
            params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return fetchall(cur)

    def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        if not row:
            raise ValueError("Cannot insert an empty row")

        columns = ", ".join(quote_identifier(c) for c in row)
        placeholders = ", ".join(["%s"] * len(row))
        tbl = quote_identifier(table)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"INSERT INTO {tbl} ({columns}) VALUES ({placeholders})", tuple(row.values()))
            new_id = int(cur.lastrowid)
            cur.execute(f"SELECT * FROM {tbl} WHERE `id`=%s", (new_id,))
            stored = fetchone(cur)

        if stored is None:
            raise StoreError(f"Inserted row {table}#{new_id} could not be read back")
        return stored

    def update(
        self,
        table: str,
        record_id: int,
        changes: Mapping[str, Any],
        *,
        expected: Optional[Filter] = None,
    ) -> Row:
        if not changes:
            raise ValueError("Cannot update with an empty change set")

        tbl = quote_identifier(table)
        assignments = ", ".join(f"{quote_identifier(c)}=%s" for c in changes)
        params: list[Any] = list(changes.values()) + [int(record_id)]
        sql = f"UPDATE {tbl} SET {assignments} WHERE `id`=%s"
        if expected:
            clause, extra = build_where(expected)
            sql += f" AND {clause}"
            params.extend(extra)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            affected = cur.rowcount
            cur.execute(f"SELECT * FROM {tbl} WHERE `id`=%s", (int(record_id),))
            stored = fetchone(cur)

        if stored is None:
            raise StoreError(f"{table}#{record_id} does not exist")
        # MySQL reports 0 affected rows when values are unchanged, so re-check the guard.
        if affected == 0 and expected and not row_matches(stored, expected):
            logger.info("Conditional update on %s#%s lost the race", table, record_id)
            raise StaleWriteError(f"{table}#{record_id} was modified concurrently")
        return stored

    def delete(self, table: str, record_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM {quote_identifier(table)} WHERE `id`=%s", (int(record_id),))
            return cur.rowcount > 0
