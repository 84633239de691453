from __future__ import annotations

import re
from contextlib import contextmanager
from datetime import time, timedelta
from typing import Any, Dict, Iterator, List, Optional, Tuple

import mysql.connector

from .connection import DatabaseConnection
from .record_store import ConstraintViolation, StoreError

_CONSTRAINT_CATEGORIES = {
    1062: ConstraintViolation.UNIQUE,  # ER_DUP_ENTRY
    3819: ConstraintViolation.CHECK,  # ER_CHECK_CONSTRAINT_VIOLATED
    1451: ConstraintViolation.FOREIGN_KEY,  # ER_ROW_IS_REFERENCED_2
    1452: ConstraintViolation.FOREIGN_KEY,  # ER_NO_REFERENCED_ROW_2
}

_CONSTRAINT_NAME_PATTERNS = (
    re.compile(r"for key '(?:[^'.]+\.)?([^']+)'"),
    re.compile(r"[Cc]heck constraint '([^']+)'"),
    re.compile(r"CONSTRAINT `([^`]+)`"),
)


def _constraint_name(message: str) -> Optional[str]:
    for pattern in _CONSTRAINT_NAME_PATTERNS:
        match = pattern.search(message)
        if match:
            return match.group(1)
    return None


def translate_mysql_error(exc: mysql.connector.Error) -> StoreError:
    """Map a driver error onto the record-store error vocabulary."""

    message = getattr(exc, "msg", None) or str(exc)
    category = _CONSTRAINT_CATEGORIES.get(getattr(exc, "errno", None))
    if category is not None:
        return ConstraintViolation(message, category=category, constraint=_constraint_name(message))
    return StoreError(message)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True) -> Iterator[Tuple[Any, Any]]:
    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as exc:
        raise translate_mysql_error(exc) from exc

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as exc:
        conn.rollback()
        raise translate_mysql_error(exc) from exc
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return dict(row) if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return [dict(r) for r in (rows or [])]


def normalize_mysql_time(value: Any) -> Optional[time]:
    """Normalize MySQL TIME values across connector implementations.

    mysql-connector can return TIME as:
    - datetime.time
    - datetime.timedelta
    - string (e.g. '08:30:00')
    """

    if value is None:
        return None

    if isinstance(value, time):
        return value

    if isinstance(value, timedelta):
        total_seconds = int(value.total_seconds()) % 86400
        return time(hour=total_seconds // 3600, minute=(total_seconds % 3600) // 60, second=total_seconds % 60)

    if isinstance(value, str):
        parts = value.strip().split(":")
        if len(parts) < 2:
            raise ValueError(f"Invalid time string: {value!r}")
        seconds = int(parts[2]) if len(parts) >= 3 and parts[2] else 0
        return time(hour=int(parts[0]), minute=int(parts[1]), second=seconds)

    raise TypeError(f"Unsupported MySQL TIME value type: {type(value)!r}")
