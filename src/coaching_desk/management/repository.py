from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from .model import Management


class ManagementRepository(Protocol):
    def get(self, management_id: str) -> Optional[Management]:
        raise NotImplementedError

    def get_by_domain(self, email_domain: str) -> Optional[Management]:
        raise NotImplementedError

    def create(self, *, management_id: str, name: str, email_domain: str, now: datetime) -> bool:
        """Insert a new tenant; False when the domain (or id) is already taken."""

        raise NotImplementedError

    def set_admin(self, management_id: str, admin_id: str) -> None:
        raise NotImplementedError

    def update(self, management_id: str, *, fields: dict, now: datetime) -> bool:
        raise NotImplementedError

    def delete(self, management_id: str) -> bool:
        raise NotImplementedError
