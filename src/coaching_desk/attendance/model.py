from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Optional, Tuple

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceEntry:
    student_id: str
    status: AttendanceStatus
    reason: Optional[str] = None


@dataclass(frozen=True)
class BulkAttendanceRequest:
    """Validated body of a bulk submission: one class, one day, many students."""

    class_id: str
    day: str
    entries: Tuple[AttendanceEntry, ...]
    date: Optional[date] = None
    coach_id: Optional[str] = None

    @property
    def student_ids(self) -> Tuple[str, ...]:
        return tuple(e.student_id for e in self.entries)


@dataclass(frozen=True)
class SingleAttendanceRequest:
    student_id: str
    status: AttendanceStatus
    date: Optional[date] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class AttendanceDay:
    """Domain entity: the per-class, per-day attendance document."""

    class_id: str
    date: str
    day: str
    management_id: str
    coach_id: str = ""
    students: Dict[str, str] = field(default_factory=dict)
    leave_reasons: Dict[str, str] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        data = {
            "classId": self.class_id,
            "coachId": self.coach_id,
            "date": self.date,
            "day": self.day,
            "managementId": self.management_id,
            "students": dict(self.students),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
        if self.leave_reasons:
            data["leaveReasons"] = dict(self.leave_reasons)
        return data


@dataclass(frozen=True)
class BulkAttendanceResult:
    """Outcome of a bulk write: the record is saved; some status caches may have failed."""

    date: str
    day: str
    total: int
    failed: Tuple[str, ...] = ()

    @property
    def updated(self) -> int:
        return self.total - len(self.failed)

    @property
    def message(self) -> str:
        if not self.failed:
            return f"Attendance saved for {self.total} students"
        return f"Attendance saved; {len(self.failed)} of {self.total} student status caches failed to update"

    def to_dict(self) -> dict:
        return {
            "success": True,
            "message": self.message,
            "date": self.date,
            "day": self.day,
            "updated": self.updated,
            "failed": list(self.failed),
        }
