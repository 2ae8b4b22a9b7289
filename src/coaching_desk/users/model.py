from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: an account belonging to exactly one management.

    Note: Plain data object, no database access here.
    """

    user_id: str
    email: str
    password_hash: Optional[str]
    name: str
    management_id: str
    role: Role
    email_domain: Optional[str] = None
    picture: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def public_view(self) -> dict:
        """Serializable profile without the password hash."""
        return {
            "_id": self.user_id,
            "email": self.email,
            "name": self.name,
            "picture": self.picture,
            "managementId": self.management_id,
            "role": self.role.value,
            "emailDomain": self.email_domain,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def summary(self) -> dict:
        return {
            "id": self.user_id,
            "email": self.email,
            "name": self.name,
            "role": self.role.value,
            "managementId": self.management_id,
        }
