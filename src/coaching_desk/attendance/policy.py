"""Who may write attendance for a class.

The decoded session is always passed in explicitly; this module never reads
request state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import DenyReason
from ..core.exceptions import AuthenticationError, AuthorizationError
from ..roster.model import ClassRecord
from ..roster.repository import CoachRepository
from ..sessions.model import Session

DENY_MESSAGES = {
    DenyReason.NO_SESSION: "Unauthorized",
    DenyReason.FOREIGN_TENANT: "Forbidden - Class belongs to another management",
    DenyReason.NO_COACH_ASSIGNED: "Only admins can update attendance for classes without assigned coaches.",
    DenyReason.NOT_ASSIGNED_COACH: "Only admins or assigned coaches can update attendance.",
}


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[DenyReason] = None

    @property
    def message(self) -> str:
        return DENY_MESSAGES[self.reason] if self.reason else ""


ALLOW = Decision(allowed=True)


def _deny(reason: DenyReason) -> Decision:
    return Decision(allowed=False, reason=reason)


def can_write_attendance(
    session: Optional[Session],
    class_record: Optional[ClassRecord],
    coaches: CoachRepository,
) -> Decision:
    """Decide whether the caller may write attendance for ``class_record``.

    ``class_record`` may be None for a student not enrolled in any class; that
    is treated like a class without an assigned coach.
    """
    if session is None:
        return _deny(DenyReason.NO_SESSION)

    if class_record is not None and class_record.management_id != session.management_id:
        return _deny(DenyReason.FOREIGN_TENANT)

    if session.is_admin:
        return ALLOW

    coach_id = class_record.coach_id if class_record else None
    if not coach_id:
        return _deny(DenyReason.NO_COACH_ASSIGNED)

    coach = coaches.find_assigned(
        management_id=session.management_id,
        email=session.email,
        coach_id=coach_id,
    )
    if coach is None:
        return _deny(DenyReason.NOT_ASSIGNED_COACH)
    return ALLOW


def ensure_can_write_attendance(
    session: Optional[Session],
    class_record: Optional[ClassRecord],
    coaches: CoachRepository,
) -> None:
    decision = can_write_attendance(session, class_record, coaches)
    if decision.allowed:
        return
    if decision.reason == DenyReason.NO_SESSION:
        raise AuthenticationError(decision.message)
    raise AuthorizationError(decision.message)
