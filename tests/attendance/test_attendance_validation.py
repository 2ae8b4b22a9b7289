from __future__ import annotations

from datetime import date

import pytest

from coaching_desk.attendance.validation import (
    ensure_students_in_class,
    parse_bulk_request,
    parse_single_request,
)
from coaching_desk.core.enums import AttendanceStatus
from coaching_desk.core.exceptions import ValidationError


def _body(**overrides):
    body = {
        "classId": "C1",
        "date": "2024-06-10",
        "day": "Monday",
        "attendance": [
            {"studentId": "S1", "status": "present"},
            {"studentId": "S2", "status": "approved_leave", "reason": "medical"},
        ],
    }
    body.update(overrides)
    return body


def test_parses_valid_batch():
    req = parse_bulk_request(_body())
    assert req.class_id == "C1"
    assert req.date == date(2024, 6, 10)
    assert req.student_ids == ("S1", "S2")
    assert req.entries[1].status is AttendanceStatus.APPROVED_LEAVE
    assert req.entries[1].reason == "medical"
    assert req.coach_id is None


@pytest.mark.parametrize("missing", ["classId", "day", "attendance"])
def test_missing_required_field_is_rejected(missing):
    body = _body()
    del body[missing]
    with pytest.raises(ValidationError, match="required"):
        parse_bulk_request(body)


def test_attendance_must_be_a_list():
    with pytest.raises(ValidationError):
        parse_bulk_request(_body(attendance={"studentId": "S1", "status": "present"}))


def test_date_is_optional():
    body = _body()
    del body["date"]
    assert parse_bulk_request(body).date is None


def test_malformed_date_is_rejected():
    with pytest.raises(ValidationError, match="Invalid date"):
        parse_bulk_request(_body(date="10/06/2024"))


@pytest.mark.parametrize("value", ["2024-6-1", "2024-06-1", "24-06-10", "2024-06-10T00:00", " 2024-06-10x"])
def test_date_must_be_zero_padded_yyyy_mm_dd(value):
    with pytest.raises(ValidationError, match="Invalid date"):
        parse_bulk_request(_body(date=value))


@pytest.mark.parametrize("status", ["excused", "", None, "PRESENT"])
def test_status_outside_closed_set_is_rejected(status):
    with pytest.raises(ValidationError, match="Invalid status"):
        parse_bulk_request(_body(attendance=[{"studentId": "S1", "status": status}]))


def test_duplicate_student_ids_are_rejected():
    with pytest.raises(ValidationError, match="Duplicate"):
        parse_bulk_request(
            _body(attendance=[{"studentId": "S1", "status": "present"}, {"studentId": "S1", "status": "late"}])
        )


def test_entry_without_student_id_is_rejected():
    with pytest.raises(ValidationError, match="studentId"):
        parse_bulk_request(_body(attendance=[{"status": "present"}]))


def test_non_object_entry_is_rejected():
    with pytest.raises(ValidationError):
        parse_bulk_request(_body(attendance=["S1"]))


def test_empty_reason_is_dropped():
    req = parse_bulk_request(_body(attendance=[{"studentId": "S1", "status": "approved_leave", "reason": "  "}]))
    assert req.entries[0].reason is None


def test_membership_requires_exact_set_equality():
    ensure_students_in_class(["S1", "S2"], {"S1", "S2"})
    with pytest.raises(ValidationError, match="S2"):
        ensure_students_in_class(["S1", "S2"], {"S1"})
    with pytest.raises(ValidationError):
        ensure_students_in_class(["S1"], {"S1", "S9"})


def test_single_request_requires_student_and_status():
    with pytest.raises(ValidationError, match="required"):
        parse_single_request({"studentId": "S1"})
    req = parse_single_request({"studentId": "S1", "status": "late"})
    assert req.status is AttendanceStatus.LATE
    assert req.date is None
