from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceAction, AttendanceStatus, SequenceViolation
from ...core.exceptions import InvalidCheckSequence
from ..model import TIMESTAMP_FIELDS, AttendanceRecord, TransitionPlan


class TransitionStrategy(ABC):
    """Strategy Pattern: encapsulate how one scan action is validated and applied."""

    action: AttendanceAction
    resulting_status: AttendanceStatus
    creates_new_record: bool = False

    def plan(self, record: Optional[AttendanceRecord], at: datetime) -> TransitionPlan:
        self._require_unset(record)
        self.validate(record, at)
        return TransitionPlan(
            action=self.action,
            at=at,
            creates_new_record=self.creates_new_record,
            previous=record,
            timestamps=self.timestamps(record, at),
            status=self.resulting_status,
        )

    @abstractmethod
    def validate(self, record: Optional[AttendanceRecord], at: datetime) -> None:
        raise NotImplementedError

    def timestamps(self, record: Optional[AttendanceRecord], at: datetime) -> dict[str, Optional[datetime]]:
        values = {name: (getattr(record, name) if record else None) for name in TIMESTAMP_FIELDS}
        values[self.action.field_name] = at
        return values

    def _require_unset(self, record: Optional[AttendanceRecord]) -> None:
        if record is not None and record.timestamp(self.action) is not None:
            raise InvalidCheckSequence(
                SequenceViolation.UNEXPECTED_ACTION,
                f"{self.action.value.replace('_', ' ').capitalize()} is already recorded for today",
                details={"action": self.action.value, "attendance_id": record.attendance_id},
            )

    @staticmethod
    def _require_after(
        previous: Optional[datetime],
        at: datetime,
        subkind: SequenceViolation,
        record: Optional[AttendanceRecord],
    ) -> None:
        if previous is None or at <= previous:
            raise InvalidCheckSequence(
                subkind,
                details={
                    "attendance_id": record.attendance_id if record else None,
                    "previous": previous.isoformat() if previous else None,
                    "attempted": at.isoformat(),
                },
            )
