from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AttendanceStatus


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class Coach:
    coach_id: str
    name: str
    email: str
    management_id: str
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "coachId": self.coach_id,
            "name": self.name,
            "email": self.email,
            "managementId": self.management_id,
            "createdAt": _iso(self.created_at),
        }


@dataclass(frozen=True)
class ClassRecord:
    """A class scoped to one management, optionally assigned to a coach."""

    class_id: str
    name: str
    management_id: str
    coach_id: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "classId": self.class_id,
            "name": self.name,
            "managementId": self.management_id,
            "coachId": self.coach_id or "",
            "createdAt": _iso(self.created_at),
        }


@dataclass(frozen=True)
class Student:
    """A student enrolled in one class; attendance_status caches the latest entry."""

    student_id: str
    name: str
    management_id: str
    class_id: Optional[str]
    email: Optional[str] = None
    attendance_status: Optional[AttendanceStatus] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "_id": self.student_id,
            "name": self.name,
            "email": self.email,
            "managementId": self.management_id,
            "classId": self.class_id or "",
            "attendanceStatus": self.attendance_status.value if self.attendance_status else None,
            "createdAt": _iso(self.created_at),
        }
