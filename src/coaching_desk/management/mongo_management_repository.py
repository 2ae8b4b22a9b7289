from __future__ import annotations

from datetime import datetime
from typing import Optional

from pymongo.errors import DuplicateKeyError

from ..database.connection import DatabaseConnection
from .model import Management
from .repository import ManagementRepository


def _to_management(doc: dict) -> Management:
    return Management(
        management_id=doc["managementId"],
        name=doc.get("name") or "",
        email_domain=doc.get("emailDomain") or "",
        admin_id=doc.get("adminId"),
        num_coaches=int(doc.get("numCoaches") or 0),
        num_students=int(doc.get("numStudents") or 0),
        logo=doc.get("logo"),
        created_at=doc.get("createdAt"),
        updated_at=doc.get("updatedAt"),
    )


class MongoManagementRepository(ManagementRepository):
    def __init__(self, conn: DatabaseConnection):
        self._conn = conn

    @property
    def _managements(self):
        return self._conn.db["management"]

    def get(self, management_id: str) -> Optional[Management]:
        doc = self._managements.find_one({"managementId": management_id})
        return _to_management(doc) if doc else None

    def get_by_domain(self, email_domain: str) -> Optional[Management]:
        doc = self._managements.find_one({"emailDomain": email_domain})
        return _to_management(doc) if doc else None

    def create(self, *, management_id: str, name: str, email_domain: str, now: datetime) -> bool:
        try:
            self._managements.insert_one(
                {
                    "managementId": management_id,
                    "emailDomain": email_domain,
                    "name": name,
                    "adminId": None,
                    "numCoaches": 0,
                    "numStudents": 0,
                    "logo": None,
                    "createdAt": now,
                    "updatedAt": now,
                }
            )
        except DuplicateKeyError:
            return False
        return True

    def set_admin(self, management_id: str, admin_id: str) -> None:
        self._managements.update_one({"managementId": management_id}, {"$set": {"adminId": admin_id}})

    def update(self, management_id: str, *, fields: dict, now: datetime) -> bool:
        result = self._managements.update_one(
            {"managementId": management_id},
            {"$set": {**fields, "updatedAt": now}},
        )
        return result.matched_count > 0

    def delete(self, management_id: str) -> bool:
        return self._managements.delete_one({"managementId": management_id}).deleted_count > 0
