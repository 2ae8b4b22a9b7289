from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from pymongo.errors import DuplicateKeyError

from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from .model import Coach
from .repository import CoachRepository


def _to_coach(doc: dict) -> Coach:
    return Coach(
        coach_id=doc["coachId"],
        name=doc.get("name") or "",
        email=doc.get("email") or "",
        management_id=doc["managementId"],
        created_at=doc.get("createdAt"),
    )


class MongoCoachRepository(CoachRepository):
    def __init__(self, conn: DatabaseConnection):
        self._conn = conn

    @property
    def _coaches(self):
        return self._conn.db["coaches"]

    def get(self, management_id: str, coach_id: str) -> Optional[Coach]:
        doc = self._coaches.find_one({"coachId": coach_id, "managementId": management_id})
        return _to_coach(doc) if doc else None

    def find_assigned(self, *, management_id: str, email: str, coach_id: str) -> Optional[Coach]:
        doc = self._coaches.find_one(
            {"email": email.lower(), "managementId": management_id, "coachId": coach_id}
        )
        return _to_coach(doc) if doc else None

    def list_for_management(self, management_id: str) -> Sequence[Coach]:
        return [_to_coach(doc) for doc in self._coaches.find({"managementId": management_id}).sort("name", 1)]

    def create(self, *, coach_id: str, name: str, email: str, management_id: str, now: datetime) -> None:
        try:
            self._coaches.insert_one(
                {
                    "coachId": coach_id,
                    "name": name,
                    "email": email.lower(),
                    "managementId": management_id,
                    "createdAt": now,
                    "updatedAt": now,
                }
            )
        except DuplicateKeyError:
            raise ConflictError("A coach with this email already exists")

    def get_by_email(self, management_id: str, email: str) -> Optional[Coach]:
        doc = self._coaches.find_one({"email": email.lower(), "managementId": management_id})
        return _to_coach(doc) if doc else None

    def update(self, management_id: str, coach_id: str, *, fields: dict, now: datetime) -> bool:
        try:
            result = self._coaches.update_one(
                {"coachId": coach_id, "managementId": management_id},
                {"$set": {**fields, "updatedAt": now}},
            )
        except DuplicateKeyError:
            raise ConflictError("Email already in use by another coach")
        return result.matched_count > 0

    def delete(self, management_id: str, coach_id: str) -> bool:
        return self._coaches.delete_one({"coachId": coach_id, "managementId": management_id}).deleted_count > 0
