from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from ..common.datetime_utils import now_utc
from ..common.validators import optional_non_negative_int, optional_str, require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..sessions.model import Session
from ..users.repository import UserRepository
from .model import Management
from .repository import ManagementRepository

logger = logging.getLogger(__name__)


class ManagementService:
    """Use cases: tenant profile and statistics."""

    def __init__(
        self,
        managements: ManagementRepository,
        users: UserRepository,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._managements = managements
        self._users = users
        self._clock = clock

    def _own(self, current: Session) -> Management:
        management = self._managements.get(current.management_id)
        if not management:
            raise NotFoundError("Management not found")
        return management

    def get_overview(self, current: Session, management_id: Optional[str] = None) -> dict:
        if management_id and management_id != current.management_id:
            raise AuthorizationError("Forbidden")

        management = self._own(current)
        data = management.to_dict()

        admin = self._users.get_by_id(management.admin_id) if management.admin_id else None
        data["admin"] = (
            {"_id": admin.user_id, "name": admin.name, "email": admin.email, "picture": admin.picture}
            if admin
            else None
        )
        return data

    def update(self, current: Session, payload: dict) -> None:
        if not current.is_admin:
            raise AuthorizationError("Only admins can update management information")

        fields = {}
        if "name" in payload:
            fields["name"] = require_non_empty(payload["name"], "Name")
        if "numCoaches" in payload:
            fields["numCoaches"] = optional_non_negative_int(payload["numCoaches"], "numCoaches")
        if "numStudents" in payload:
            fields["numStudents"] = optional_non_negative_int(payload["numStudents"], "numStudents")
        if "logo" in payload:
            fields["logo"] = optional_str(payload["logo"], "Logo")
        if not fields:
            raise ValidationError("Nothing to update")

        if not self._managements.update(current.management_id, fields=fields, now=self._clock()):
            raise NotFoundError("Management not found")
        logger.info("Management %s updated fields %s", current.management_id, sorted(fields))

    def stats(self, current: Session) -> dict:
        if not current.is_admin:
            raise AuthorizationError("Only admins can view statistics")

        management = self._own(current)
        mid = management.management_id
        return {
            "totalUsers": self._users.count_by_management(mid),
            "adminCount": self._users.count_by_management(mid, role=Role.ADMIN),
            "coachCount": self._users.count_by_management(mid, role=Role.COACH),
            "studentCount": self._users.count_by_management(mid, role=Role.STUDENT),
            "numCoaches": management.num_coaches,
            "numStudents": management.num_students,
            "managementName": management.name,
            "emailDomain": management.email_domain,
            "createdAt": management.created_at.isoformat() if management.created_at else None,
        }
