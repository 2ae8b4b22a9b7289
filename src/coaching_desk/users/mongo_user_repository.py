from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from pymongo.errors import DuplicateKeyError

from ..core.enums import Role
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mongo_base import is_object_id, parse_object_id
from .model import User
from .repository import UserRepository


def _to_user(doc: dict) -> User:
    return User(
        user_id=str(doc["_id"]),
        email=doc["email"],
        password_hash=doc.get("password"),
        name=doc.get("name") or "",
        management_id=doc["managementId"],
        role=Role(doc.get("role", Role.STUDENT.value)),
        email_domain=doc.get("emailDomain"),
        picture=doc.get("picture") or "",
        created_at=doc.get("createdAt"),
        updated_at=doc.get("updatedAt"),
    )


class MongoUserRepository(UserRepository):
    def __init__(self, conn: DatabaseConnection):
        self._conn = conn

    @property
    def _users(self):
        return self._conn.db["users"]

    def get_by_id(self, user_id: str) -> Optional[User]:
        if not is_object_id(user_id):
            return None
        doc = self._users.find_one({"_id": parse_object_id(user_id)})
        return _to_user(doc) if doc else None

    def get_by_email(self, email: str) -> Optional[User]:
        doc = self._users.find_one({"email": email.lower()})
        return _to_user(doc) if doc else None

    def create_user(
        self,
        *,
        email: str,
        password_hash: Optional[str],
        name: str,
        management_id: str,
        role: Role,
        email_domain: str,
        now: datetime,
    ) -> str:
        try:
            result = self._users.insert_one(
                {
                    "email": email.lower(),
                    "password": password_hash,
                    "name": name,
                    "picture": "",
                    "managementId": management_id,
                    "role": role.value,
                    "emailDomain": email_domain,
                    "createdAt": now,
                    "updatedAt": now,
                }
            )
        except DuplicateKeyError:
            raise ConflictError("An account with this email already exists")
        return str(result.inserted_id)

    def touch(self, user_id: str, *, now: datetime) -> None:
        self._users.update_one({"_id": parse_object_id(user_id)}, {"$set": {"updatedAt": now}})

    def update_profile(self, user_id: str, *, fields: dict, now: datetime) -> bool:
        result = self._users.update_one(
            {"_id": parse_object_id(user_id)},
            {"$set": {**fields, "updatedAt": now}},
        )
        return result.matched_count > 0

    def list_by_management(self, management_id: str) -> Sequence[User]:
        cursor = self._users.find({"managementId": management_id}, {"password": 0}).sort("createdAt", 1)
        return [_to_user(doc) for doc in cursor]

    def count_by_management(self, management_id: str, *, role: Optional[Role] = None) -> int:
        query = {"managementId": management_id}
        if role is not None:
            query["role"] = role.value
        return self._users.count_documents(query)

    def activate(self, user_id: str, *, password_hash: str, name: str, now: datetime) -> None:
        # The password filter keeps two concurrent activations from both succeeding
        result = self._users.update_one(
            {"_id": parse_object_id(user_id), "password": {"$in": [None, ""]}},
            {"$set": {"password": password_hash, "name": name, "updatedAt": now}},
        )
        if result.matched_count == 0:
            raise ConflictError("An account with this email already exists")

    def set_role(self, user_id: str, *, role: Role, now: datetime, name: Optional[str] = None) -> bool:
        fields = {"role": role.value, "updatedAt": now}
        if name:
            fields["name"] = name
        return self._users.update_one({"_id": parse_object_id(user_id)}, {"$set": fields}).matched_count > 0

    def delete(self, user_id: str) -> bool:
        return self._users.delete_one({"_id": parse_object_id(user_id)}).deleted_count > 0
