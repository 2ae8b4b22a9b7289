from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from ..core.enums import AssessmentStatus


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class Assessment:
    """A scheduled test for one class and subject; students only see it once published."""

    test_id: str
    name: str
    date: str
    class_id: str
    subject_id: str
    management_id: str
    time: str = ""
    coach_id: Optional[str] = None
    published: bool = False
    status: AssessmentStatus = AssessmentStatus.SCHEDULED
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "testId": self.test_id,
            "name": self.name,
            "date": self.date,
            "time": self.time,
            "classId": self.class_id,
            "subjectId": self.subject_id,
            "coachId": self.coach_id or "",
            "managementId": self.management_id,
            "published": self.published,
            "status": self.status.value,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


@dataclass(frozen=True)
class StudentMark:
    marks: float
    max_marks: float


@dataclass(frozen=True)
class MarkEntry:
    student_id: str
    marks: float
    max_marks: float


@dataclass(frozen=True)
class MarksRequest:
    test_id: str
    entries: Tuple[MarkEntry, ...]

    @property
    def student_ids(self) -> Tuple[str, ...]:
        return tuple(e.student_id for e in self.entries)


@dataclass(frozen=True)
class MarksRecord:
    """Domain entity: one document per test holding every student's marks."""

    test_id: str
    class_id: str
    subject_id: str
    management_id: str
    students: Dict[str, StudentMark] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def flatten(self) -> List[dict]:
        return [
            {
                "testId": self.test_id,
                "studentId": student_id,
                "classId": self.class_id,
                "subjectId": self.subject_id,
                "marks": mark.marks,
                "maxMarks": mark.max_marks,
                "managementId": self.management_id,
                "createdAt": _iso(self.created_at),
                "updatedAt": _iso(self.updated_at),
            }
            for student_id, mark in sorted(self.students.items())
        ]
