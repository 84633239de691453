from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Mapping, Optional

from .attendance.service import AttendanceService
from .attendance.state_machine import AttendanceStateMachine
from .attendance.store_attendance_repository import StoreAttendanceRepository
from .attendance.timestamps import UniquenessGuard
from .audit.event_log import AttendanceEventLog
from .common.datetime_utils import now_local
from .core.constants import DEFAULT_AUDIT_FLUSH_THRESHOLD, DEFAULT_CACHE_SECONDS, DEFAULT_COMPLIANCE_CEILING
from .database.connection import DBConfig, DatabaseConnection
from .database.mysql_record_store import MySQLRecordStore
from .database.record_store import RecordStore
from .employees.store_employee_repository import StoreEmployeeRepository
from .reports.service import ReportService
from .rosters.service import RosterResolver
from .rosters.store_roster_repository import StoreRosterRepository


@dataclass(frozen=True)
class Container:
    store: RecordStore

    employees_repo: StoreEmployeeRepository
    rosters_repo: StoreRosterRepository
    attendance_repo: StoreAttendanceRepository

    roster_resolver: RosterResolver
    event_log: AttendanceEventLog
    attendance_service: AttendanceService
    report_service: ReportService


def build_container(
    *,
    db_config: Optional[Mapping[str, Any]] = None,
    store: Optional[RecordStore] = None,
    settings: Any = None,
    clock: Callable[[], datetime] = now_local,
) -> Container:
    """Wire repositories and services over a MySQL ``db_config`` or a ready ``store``."""

    if store is None:
        if db_config is None:
            raise ValueError("build_container needs db_config or store")
        store = MySQLRecordStore(DatabaseConnection.get_instance(DBConfig.from_mapping(db_config)))

    employees_repo = StoreEmployeeRepository(store)
    rosters_repo = StoreRosterRepository(store)
    attendance_repo = StoreAttendanceRepository(store)

    roster_resolver = RosterResolver(rosters_repo)
    event_log = AttendanceEventLog.to_store(
        store,
        flush_threshold=int(getattr(settings, "AUDIT_FLUSH_THRESHOLD", DEFAULT_AUDIT_FLUSH_THRESHOLD)),
    )
    attendance_service = AttendanceService(
        employees_repo,
        roster_resolver,
        attendance_repo,
        guard=UniquenessGuard(attendance_repo),
        state_machine=AttendanceStateMachine(),
        events=event_log,
        clock=clock,
        compliance_ceiling=float(getattr(settings, "COMPLIANCE_RATE_CEILING", DEFAULT_COMPLIANCE_CEILING)),
    )
    report_service = ReportService(
        employees_repo,
        attendance_repo,
        cache_seconds=float(getattr(settings, "SUMMARY_CACHE_SECONDS", DEFAULT_CACHE_SECONDS)),
        clock=clock,
    )

    return Container(
        store=store,
        employees_repo=employees_repo,
        rosters_repo=rosters_repo,
        attendance_repo=attendance_repo,
        roster_resolver=roster_resolver,
        event_log=event_log,
        attendance_service=attendance_service,
        report_service=report_service,
    )
