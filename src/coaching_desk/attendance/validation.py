"""Request schemas for the attendance endpoints.

Structural checks only; nothing here touches the database. Membership of the
students in the target class is checked by ``ensure_students_in_class`` once the
service has resolved the ids.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Set

from ..common.datetime_utils import parse_iso_date
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from .model import AttendanceEntry, BulkAttendanceRequest, SingleAttendanceRequest

VALID_STATUSES = tuple(s.value for s in AttendanceStatus)


def _required_str(body: Mapping[str, Any], key: str) -> Optional[str]:
    value = body.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _parse_status(value: Any) -> AttendanceStatus:
    try:
        return AttendanceStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid status: {value!r}. Must be one of {', '.join(VALID_STATUSES)}")


def parse_optional_date(value: Any):
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError("date must be a YYYY-MM-DD string")
    try:
        return parse_iso_date(value.strip())
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r}, expected YYYY-MM-DD")


def _parse_reason(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("reason must be a string")
    return value.strip() or None


def parse_bulk_request(body: Mapping[str, Any]) -> BulkAttendanceRequest:
    class_id = _required_str(body, "classId")
    day = _required_str(body, "day")
    attendance = body.get("attendance")
    if not class_id or not day or not isinstance(attendance, list):
        raise ValidationError("Class ID, day, and attendance array are required")

    entries = []
    seen: Set[str] = set()
    for index, item in enumerate(attendance):
        if not isinstance(item, Mapping):
            raise ValidationError(f"attendance[{index}] must be an object")
        student_id = _required_str(item, "studentId")
        if not student_id:
            raise ValidationError(f"attendance[{index}].studentId is required")
        if student_id in seen:
            raise ValidationError(f"Duplicate studentId in batch: {student_id}")
        seen.add(student_id)

        entries.append(
            AttendanceEntry(
                student_id=student_id,
                status=_parse_status(item.get("status")),
                reason=_parse_reason(item.get("reason")),
            )
        )

    coach_id = body.get("coachId")
    if coach_id is not None and not isinstance(coach_id, str):
        raise ValidationError("coachId must be a string")

    return BulkAttendanceRequest(
        class_id=class_id,
        day=day,
        entries=tuple(entries),
        date=parse_optional_date(body.get("date")),
        coach_id=(coach_id or "").strip() or None,
    )


def parse_single_request(body: Mapping[str, Any]) -> SingleAttendanceRequest:
    student_id = _required_str(body, "studentId")
    if not student_id or body.get("status") is None:
        raise ValidationError("Student ID and status are required")

    return SingleAttendanceRequest(
        student_id=student_id,
        status=_parse_status(body.get("status")),
        date=parse_optional_date(body.get("date")),
        reason=_parse_reason(body.get("reason")),
    )


def ensure_students_in_class(requested: Iterable[str], resolved: Set[str]) -> None:
    """Require the resolved id set to equal the requested one exactly."""
    missing = sorted(set(requested) - resolved)
    if missing or not resolved.issubset(set(requested)):
        raise ValidationError(
            "Some students not found or do not belong to this class: " + ", ".join(missing)
        )
