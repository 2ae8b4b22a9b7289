from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence, Set, Tuple

from pymongo import UpdateOne
from pymongo.errors import BulkWriteError

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mongo_base import is_object_id, parse_object_id
from .model import Student
from .repository import StudentRepository

logger = logging.getLogger(__name__)


def _cached_status(value) -> Optional[AttendanceStatus]:
    try:
        return AttendanceStatus(value) if value else None
    except ValueError:
        return None


def _to_student(doc: dict) -> Student:
    return Student(
        student_id=str(doc["_id"]),
        name=doc.get("name") or "",
        management_id=doc["managementId"],
        class_id=doc.get("classId") or None,
        email=doc.get("email"),
        attendance_status=_cached_status(doc.get("attendanceStatus")),
        created_at=doc.get("createdAt"),
    )


class MongoStudentRepository(StudentRepository):
    def __init__(self, conn: DatabaseConnection):
        self._conn = conn

    @property
    def _students(self):
        return self._conn.db["students"]

    def get(self, management_id: str, student_id: str) -> Optional[Student]:
        if not is_object_id(student_id):
            return None
        doc = self._students.find_one({"_id": parse_object_id(student_id), "managementId": management_id})
        return _to_student(doc) if doc else None

    def list_for_management(self, management_id: str, *, class_id: Optional[str] = None) -> Sequence[Student]:
        query = {"managementId": management_id}
        if class_id:
            query["classId"] = class_id
        return [_to_student(doc) for doc in self._students.find(query).sort("name", 1)]

    def create(
        self,
        *,
        name: str,
        email: Optional[str],
        management_id: str,
        class_id: str,
        now: datetime,
    ) -> str:
        result = self._students.insert_one(
            {
                "name": name,
                "email": email,
                "managementId": management_id,
                "classId": class_id,
                "attendanceStatus": None,
                "createdAt": now,
                "updatedAt": now,
            }
        )
        return str(result.inserted_id)

    def get_by_email(self, management_id: str, email: str) -> Optional[Student]:
        doc = self._students.find_one({"email": email.lower(), "managementId": management_id})
        return _to_student(doc) if doc else None

    def update(self, management_id: str, student_id: str, *, fields: dict, now: datetime) -> bool:
        if not is_object_id(student_id):
            return False
        result = self._students.update_one(
            {"_id": parse_object_id(student_id), "managementId": management_id},
            {"$set": {**fields, "updatedAt": now}},
        )
        return result.matched_count > 0

    def delete(self, management_id: str, student_id: str) -> bool:
        if not is_object_id(student_id):
            return False
        result = self._students.delete_one({"_id": parse_object_id(student_id), "managementId": management_id})
        return result.deleted_count > 0

    def count_in_class(self, management_id: str, class_id: str) -> int:
        return self._students.count_documents({"classId": class_id, "managementId": management_id})

    def resolve_in_class(self, *, management_id: str, class_id: str, student_ids: Iterable[str]) -> Set[str]:
        # Malformed ids simply never resolve
        oids = [parse_object_id(sid) for sid in set(student_ids) if is_object_id(sid)]
        if not oids:
            return set()
        cursor = self._students.find(
            {"_id": {"$in": oids}, "managementId": management_id, "classId": class_id},
            {"_id": 1},
        )
        return {str(doc["_id"]) for doc in cursor}

    def cache_attendance_status(
        self,
        *,
        management_id: str,
        statuses: Sequence[Tuple[str, AttendanceStatus]],
        now: datetime,
        session: Any = None,
    ) -> Set[str]:
        if not statuses:
            return set()

        ids = [sid for sid, _ in statuses]
        ops = [
            UpdateOne(
                {"_id": parse_object_id(sid), "managementId": management_id},
                {"$set": {"attendanceStatus": status.value, "updatedAt": now}},
            )
            for sid, status in statuses
        ]

        failed: Set[str] = set()
        try:
            matched = self._students.bulk_write(ops, ordered=False, session=session).matched_count
        except BulkWriteError as e:
            details = e.details or {}
            failed = {ids[err["index"]] for err in details.get("writeErrors", [])}
            matched = int(details.get("nMatched", 0))
            logger.warning("Student status cache: %d write errors", len(failed))

        if matched + len(failed) < len(ids):
            # Some students vanished between validation and the write
            present = {
                str(doc["_id"])
                for doc in self._students.find(
                    {"_id": {"$in": [parse_object_id(sid) for sid in ids]}, "managementId": management_id},
                    {"_id": 1},
                    session=session,
                )
            }
            failed |= {sid for sid in ids if sid not in present}

        return failed
