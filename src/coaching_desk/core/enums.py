from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Caller role carried in the session."""

    ADMIN = "admin"
    COACH = "coach"
    STUDENT = "student"


class AttendanceStatus(str, Enum):
    """Closed set of per-student attendance statuses."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    APPROVED_LEAVE = "approved_leave"


class DenyReason(str, Enum):
    """Why the attendance policy refused a write."""

    NO_SESSION = "no_session"
    FOREIGN_TENANT = "foreign_tenant"
    NO_COACH_ASSIGNED = "no_coach_assigned"
    NOT_ASSIGNED_COACH = "not_assigned_coach"


class AssessmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
