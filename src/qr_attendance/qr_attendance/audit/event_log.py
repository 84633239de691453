"""Attendance event log.

Entries are ``logging`` records held by a ``BufferingHandler`` and written to the
``attendance_logs`` table in batches, once ``capacity`` entries are pending or on
``flush()``/``close()``.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from logging.handlers import BufferingHandler
from typing import Any, Optional

from ..core.constants import DEFAULT_AUDIT_FLUSH_THRESHOLD
from ..core.enums import AttendanceAction
from ..core.exceptions import AttendanceError
from ..database.record_store import RecordStore, StoreError

logger = logging.getLogger(__name__)

ATTENDANCE_LOGS = "attendance_logs"

EVENT_CHECK_IN = "check-in"
EVENT_CHECK_OUT = "check-out"
EVENT_ERROR = "error"
EVENT_DELETE = "delete"


class StoreFlushHandler(BufferingHandler):
    """Buffer log records and insert them into the store in one batch."""

    def __init__(
        self,
        store: RecordStore,
        *,
        capacity: int = DEFAULT_AUDIT_FLUSH_THRESHOLD,
        table: str = ATTENDANCE_LOGS,
    ):
        super().__init__(max(1, int(capacity)))
        self._store = store
        self._table = table

    @staticmethod
    def to_row(record: logging.LogRecord) -> dict[str, Any]:
        details = dict(getattr(record, "details", None) or {})
        details.setdefault("message", record.getMessage())
        return {
            "logged_at": datetime.fromtimestamp(record.created).replace(microsecond=0),
            "event_type": getattr(record, "event_type", EVENT_ERROR),
            "employee_id": getattr(record, "employee_id", None),
            "details": json.dumps(details, default=str),
        }

    def flush(self) -> None:
        self.acquire()
        try:
            written = 0
            try:
                for record in self.buffer:
                    self._store.insert(self._table, self.to_row(record))
                    written += 1
            except StoreError:
                logger.exception(
                    "Failed to flush %d attendance log entries; keeping them buffered",
                    len(self.buffer) - written,
                )
            finally:
                del self.buffer[:written]
        finally:
            self.release()


class AttendanceEventLog:
    """Injected event sink for scan, error and delete events."""

    def __init__(self, handler: logging.Handler):
        self._handler = handler

    @classmethod
    def to_store(cls, store: RecordStore, *, flush_threshold: int = DEFAULT_AUDIT_FLUSH_THRESHOLD) -> "AttendanceEventLog":
        return cls(StoreFlushHandler(store, capacity=flush_threshold))

    @property
    def handler(self) -> logging.Handler:
        return self._handler

    def _emit(
        self,
        level: int,
        event_type: str,
        message: str,
        *,
        employee_id: Optional[int],
        details: dict[str, Any],
    ) -> None:
        record = logging.makeLogRecord(
            {
                "name": "qr_attendance.events",
                "levelno": level,
                "levelname": logging.getLevelName(level),
                "msg": message,
                "event_type": event_type,
                "employee_id": employee_id,
                "details": details,
            }
        )
        logger.debug("%s event for employee %s: %s", event_type, employee_id, message)
        self._handler.handle(record)

    def scan_recorded(self, employee_id: int, action: AttendanceAction, at: datetime, *, attendance_id: int) -> None:
        self._emit(
            logging.INFO,
            EVENT_CHECK_IN if action.event_kind.value == EVENT_CHECK_IN else EVENT_CHECK_OUT,
            f"{action.value} recorded",
            employee_id=employee_id,
            details={"action": action.value, "timestamp": at.isoformat(), "attendance_id": attendance_id},
        )

    def scan_failed(self, employee_id: Optional[int], error: AttendanceError) -> None:
        self._emit(
            logging.WARNING,
            EVENT_ERROR,
            error.message,
            employee_id=employee_id,
            details={"code": error.code, **error.details},
        )

    def record_deleted(self, employee_id: int, attendance_id: int) -> None:
        self._emit(
            logging.INFO,
            EVENT_DELETE,
            "attendance record deleted",
            employee_id=employee_id,
            details={"attendance_id": attendance_id},
        )

    def flush(self) -> None:
        self._handler.flush()

    def close(self) -> None:
        self._handler.close()
