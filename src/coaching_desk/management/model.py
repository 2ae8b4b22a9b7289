from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Management:
    """Domain entity: the tenant (school or coaching business) scoping all data."""

    management_id: str
    name: str
    email_domain: str
    admin_id: Optional[str] = None
    num_coaches: int = 0
    num_students: int = 0
    logo: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "managementId": self.management_id,
            "name": self.name,
            "emailDomain": self.email_domain,
            "adminId": self.admin_id,
            "numCoaches": self.num_coaches,
            "numStudents": self.num_students,
            "logo": self.logo,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
