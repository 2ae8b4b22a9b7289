"""Request parsing for the tests and marks endpoints."""

from __future__ import annotations

import re
from typing import Any, Mapping, Set, Tuple

from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_MAX_MARKS
from ..core.enums import AssessmentStatus
from ..core.exceptions import ValidationError
from .model import MarkEntry, MarksRequest

_TIME_RE = re.compile(r"([01][0-9]|2[0-3]):[0-5][0-9]")


def _number(value: Any, field_name: str) -> float:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field_name} must be a number")
    return value


def parse_mark(marks: Any, max_marks: Any, *, student_id: str) -> MarkEntry:
    marks = _number(marks, "marks")
    max_marks = DEFAULT_MAX_MARKS if max_marks is None else _number(max_marks, "maxMarks")
    if max_marks <= 0:
        raise ValidationError("maxMarks must be greater than 0")
    if marks < 0 or marks > max_marks:
        raise ValidationError(f"Marks must be between 0 and {max_marks} for student {student_id}")
    return MarkEntry(student_id=student_id, marks=marks, max_marks=max_marks)


def parse_marks_request(body: Mapping[str, Any]) -> MarksRequest:
    test_id = body.get("testId")
    students = body.get("students")
    if not isinstance(test_id, str) or not test_id.strip() or not isinstance(students, list):
        raise ValidationError("Test ID and students array are required")

    entries = []
    seen: Set[str] = set()
    for index, item in enumerate(students):
        if not isinstance(item, Mapping):
            raise ValidationError(f"students[{index}] must be an object")
        student_id = item.get("studentId")
        if not isinstance(student_id, str) or not student_id.strip():
            raise ValidationError(f"students[{index}].studentId is required")
        student_id = student_id.strip()
        if student_id in seen:
            raise ValidationError(f"Duplicate studentId in batch: {student_id}")
        seen.add(student_id)
        entries.append(parse_mark(item.get("marks"), item.get("maxMarks"), student_id=student_id))

    return MarksRequest(test_id=test_id.strip(), entries=tuple(entries))


def parse_single_mark(body: Mapping[str, Any]) -> Tuple[str, MarkEntry]:
    """Returns (test_id, entry) for a one-student update."""
    test_id = body.get("testId")
    student_id = body.get("studentId")
    ids_ok = all(isinstance(v, str) and v.strip() for v in (test_id, student_id))
    if not ids_ok or body.get("marks") is None:
        raise ValidationError("Test ID, Student ID, and marks value are required")
    return test_id.strip(), parse_mark(body.get("marks"), body.get("maxMarks"), student_id=student_id.strip())


def optional_time(value: Any) -> str:
    if value is None or value == "":
        return ""
    if not isinstance(value, str) or not _TIME_RE.fullmatch(value.strip()):
        raise ValidationError(f"Invalid time: {value!r}, expected HH:MM")
    return value.strip()


def parse_assessment_status(value: Any) -> AssessmentStatus:
    try:
        return AssessmentStatus(value)
    except ValueError:
        raise ValidationError(
            f"Invalid status. Must be one of: {', '.join(s.value for s in AssessmentStatus)}"
        )


def require_test_id(value: Any) -> str:
    return require_non_empty(value, "Test ID")
