from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from pymongo.errors import DuplicateKeyError

from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from .model import ClassRecord
from .repository import ClassRepository


def _to_class(doc: dict) -> ClassRecord:
    return ClassRecord(
        class_id=doc["classId"],
        name=doc.get("name") or "",
        management_id=doc["managementId"],
        coach_id=doc.get("coachId") or None,
        created_at=doc.get("createdAt"),
    )


class MongoClassRepository(ClassRepository):
    def __init__(self, conn: DatabaseConnection):
        self._conn = conn

    @property
    def _classes(self):
        return self._conn.db["classes"]

    def get(self, management_id: str, class_id: str) -> Optional[ClassRecord]:
        doc = self._classes.find_one({"classId": class_id, "managementId": management_id})
        return _to_class(doc) if doc else None

    def list_for_management(self, management_id: str) -> Sequence[ClassRecord]:
        return [_to_class(doc) for doc in self._classes.find({"managementId": management_id}).sort("name", 1)]

    def create(self, *, class_id: str, name: str, management_id: str, coach_id: Optional[str], now: datetime) -> None:
        try:
            self._classes.insert_one(
                {
                    "classId": class_id,
                    "name": name,
                    "managementId": management_id,
                    "coachId": coach_id or "",
                    "createdAt": now,
                    "updatedAt": now,
                }
            )
        except DuplicateKeyError:
            raise ConflictError("Class already exists")

    def update(self, management_id: str, class_id: str, *, fields: dict, now: datetime) -> bool:
        result = self._classes.update_one(
            {"classId": class_id, "managementId": management_id},
            {"$set": {**fields, "updatedAt": now}},
        )
        return result.matched_count > 0

    def delete(self, management_id: str, class_id: str) -> bool:
        return self._classes.delete_one({"classId": class_id, "managementId": management_id}).deleted_count > 0

    def count_for_coach(self, management_id: str, coach_id: str) -> int:
        return self._classes.count_documents({"coachId": coach_id, "managementId": management_id})
