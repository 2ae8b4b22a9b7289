from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from pymongo.errors import DuplicateKeyError

from ..core.enums import AssessmentStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from .model import Assessment
from .repository import AssessmentRepository


def _status(value) -> AssessmentStatus:
    try:
        return AssessmentStatus(value)
    except ValueError:
        return AssessmentStatus.SCHEDULED


def _to_assessment(doc: dict) -> Assessment:
    return Assessment(
        test_id=doc["testId"],
        name=doc.get("name") or "",
        date=doc.get("date") or "",
        class_id=doc.get("classId") or "",
        subject_id=doc.get("subjectId") or "",
        management_id=doc["managementId"],
        time=doc.get("time") or "",
        coach_id=doc.get("coachId") or None,
        published=bool(doc.get("published")),
        status=_status(doc.get("status")),
        created_at=doc.get("createdAt"),
        updated_at=doc.get("updatedAt"),
    )


class MongoAssessmentRepository(AssessmentRepository):
    def __init__(self, conn: DatabaseConnection):
        self._conn = conn

    @property
    def _tests(self):
        return self._conn.db["tests"]

    def get(self, management_id: str, test_id: str) -> Optional[Assessment]:
        doc = self._tests.find_one({"testId": test_id, "managementId": management_id})
        return _to_assessment(doc) if doc else None

    def list_for_management(
        self,
        management_id: str,
        *,
        class_id: Optional[str] = None,
        subject_id: Optional[str] = None,
    ) -> Sequence[Assessment]:
        query = {"managementId": management_id}
        if class_id:
            query["classId"] = class_id
        if subject_id:
            query["subjectId"] = subject_id
        cursor = self._tests.find(query).sort([("date", -1), ("createdAt", -1)])
        return [_to_assessment(doc) for doc in cursor]

    def create(self, assessment: Assessment) -> None:
        try:
            self._tests.insert_one(
                {
                    "testId": assessment.test_id,
                    "name": assessment.name,
                    "date": assessment.date,
                    "time": assessment.time,
                    "classId": assessment.class_id,
                    "subjectId": assessment.subject_id,
                    "coachId": assessment.coach_id or "",
                    "managementId": assessment.management_id,
                    "published": assessment.published,
                    "status": assessment.status.value,
                    "createdAt": assessment.created_at,
                    "updatedAt": assessment.updated_at,
                }
            )
        except DuplicateKeyError:
            raise ConflictError("Test already exists")

    def update(self, management_id: str, test_id: str, *, fields: dict, now: datetime) -> bool:
        result = self._tests.update_one(
            {"testId": test_id, "managementId": management_id},
            {"$set": {**fields, "updatedAt": now}},
        )
        return result.matched_count > 0

    def delete(self, management_id: str, test_id: str) -> bool:
        return self._tests.delete_one({"testId": test_id, "managementId": management_id}).deleted_count > 0
