from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..core.enums import Role


@dataclass(frozen=True)
class Session:
    """What we carry in the session cookie after login/registration."""

    user_id: str
    management_id: str
    email: str
    role: Role

    def to_payload(self) -> dict:
        return {
            "userId": self.user_id,
            "managementId": self.management_id,
            "email": self.email,
            "role": self.role.value,
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Session":
        """Build a session from a decoded payload.

        Raises ValueError (or TypeError) when a field is missing, empty or of the wrong type.
        """
        if not isinstance(payload, Mapping):
            raise TypeError("session payload must be an object")

        values = {}
        for key in ("userId", "managementId", "email", "role"):
            value = payload.get(key)
            if not isinstance(value, str) or not value:
                raise ValueError(f"session field {key!r} missing")
            values[key] = value

        return cls(
            user_id=values["userId"],
            management_id=values["managementId"],
            email=values["email"],
            role=Role(values["role"]),
        )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
