from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note: services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

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
        raise NotImplementedError

    def touch(self, user_id: str, *, now: datetime) -> None:
        raise NotImplementedError

    def update_profile(self, user_id: str, *, fields: dict, now: datetime) -> bool:
        """Apply a partial profile update; False when no such user."""

        raise NotImplementedError

    def list_by_management(self, management_id: str) -> Sequence[User]:
        raise NotImplementedError

    def count_by_management(self, management_id: str, *, role: Optional[Role] = None) -> int:
        raise NotImplementedError

    def activate(self, user_id: str, *, password_hash: str, name: str, now: datetime) -> None:
        """Give an invited (passwordless) account its password."""

        raise NotImplementedError

    def set_role(self, user_id: str, *, role: Role, now: datetime, name: Optional[str] = None) -> bool:
        raise NotImplementedError

    def delete(self, user_id: str) -> bool:
        raise NotImplementedError
