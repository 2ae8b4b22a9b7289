from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional, Sequence

from ..core.constants import DEFAULT_MAX_MARKS
from ..database.connection import DatabaseConnection
from .model import Assessment, MarksRecord, StudentMark
from .repository import MarksRepository


def marks_filter(management_id: str, test_id: str) -> dict:
    return {"testId": test_id, "managementId": management_id}


def _test_fields(assessment: Assessment, now: datetime) -> dict:
    return {
        "testId": assessment.test_id,
        "classId": assessment.class_id,
        "subjectId": assessment.subject_id,
        "managementId": assessment.management_id,
        "updatedAt": now,
    }


def build_marks_update(assessment: Assessment, *, students: Dict[str, StudentMark], now: datetime) -> dict:
    """Update document for a full submission; the ``students`` map is replaced wholesale."""
    to_set = _test_fields(assessment, now)
    to_set["students"] = {
        student_id: {"marks": mark.marks, "maxMarks": mark.max_marks} for student_id, mark in students.items()
    }
    return {"$set": to_set, "$setOnInsert": {"createdAt": now}}


def build_student_marks_update(assessment: Assessment, *, student_id: str, mark: StudentMark, now: datetime) -> dict:
    """Update document merging one student's marks, leaving the others untouched."""
    to_set = _test_fields(assessment, now)
    to_set[f"students.{student_id}.marks"] = mark.marks
    to_set[f"students.{student_id}.maxMarks"] = mark.max_marks
    return {"$set": to_set, "$setOnInsert": {"createdAt": now}}


def _to_record(doc: dict) -> MarksRecord:
    students = {}
    for student_id, entry in (doc.get("students") or {}).items():
        if not isinstance(entry, dict):
            continue
        students[student_id] = StudentMark(marks=entry.get("marks") or 0, max_marks=entry.get("maxMarks") or DEFAULT_MAX_MARKS)
    return MarksRecord(
        test_id=doc["testId"],
        class_id=doc.get("classId") or "",
        subject_id=doc.get("subjectId") or "",
        management_id=doc["managementId"],
        students=students,
        created_at=doc.get("createdAt"),
        updated_at=doc.get("updatedAt"),
    )


class MongoMarksRepository(MarksRepository):
    def __init__(self, conn: DatabaseConnection):
        self._conn = conn

    @property
    def _marks(self):
        return self._conn.db["marks"]

    def get(self, management_id: str, test_id: str) -> Optional[MarksRecord]:
        doc = self._marks.find_one(marks_filter(management_id, test_id))
        return _to_record(doc) if doc else None

    def list_for_management(
        self,
        management_id: str,
        *,
        test_id: Optional[str] = None,
        class_id: Optional[str] = None,
        subject_id: Optional[str] = None,
    ) -> Sequence[MarksRecord]:
        query = {"managementId": management_id}
        if test_id:
            query["testId"] = test_id
        if class_id:
            query["classId"] = class_id
        if subject_id:
            query["subjectId"] = subject_id
        return [_to_record(doc) for doc in self._marks.find(query).sort("createdAt", -1)]

    def replace_marks(self, assessment: Assessment, *, students: Dict[str, StudentMark], now: datetime) -> None:
        self._marks.update_one(
            marks_filter(assessment.management_id, assessment.test_id),
            build_marks_update(assessment, students=students, now=now),
            upsert=True,
        )

    def set_student_mark(self, assessment: Assessment, *, student_id: str, mark: StudentMark, now: datetime) -> None:
        self._marks.update_one(
            marks_filter(assessment.management_id, assessment.test_id),
            build_student_marks_update(assessment, student_id=student_id, mark=mark, now=now),
            upsert=True,
        )

    def remove_student(self, management_id: str, test_id: str, student_id: str, *, now: datetime) -> bool:
        result = self._marks.update_one(
            marks_filter(management_id, test_id),
            {"$unset": {f"students.{student_id}": ""}, "$set": {"updatedAt": now}},
        )
        return result.matched_count > 0

    def delete_for_test(self, management_id: str, test_id: str) -> bool:
        return self._marks.delete_many(marks_filter(management_id, test_id)).deleted_count > 0
