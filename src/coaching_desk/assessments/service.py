from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..attendance.validation import ensure_students_in_class
from ..common.datetime_utils import format_iso_date, local_now, now_utc, parse_iso_date
from ..common.validators import optional_str, require_non_empty
from ..core.constants import TEST_ID_PREFIX
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..database.mongo_base import generate_id
from ..roster.repository import ClassRepository, CoachRepository, StudentRepository
from ..sessions.model import Session
from .model import Assessment, MarkEntry, MarksRecord, MarksRequest, StudentMark
from .repository import AssessmentRepository, MarksRepository
from .validation import optional_time, parse_assessment_status, require_test_id

logger = logging.getLogger(__name__)


def _require_admin(current: Session) -> None:
    if not current.is_admin:
        raise AuthorizationError("Forbidden - Admin access required")


def _date_str(value) -> str:
    value = require_non_empty(value, "Test date")
    try:
        return format_iso_date(parse_iso_date(value))
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r}, expected YYYY-MM-DD")


def is_visible_to_students(assessment: Assessment, now: datetime) -> bool:
    """Published and already started in the attendance timezone."""
    if not assessment.published or not assessment.date:
        return False
    local = local_now(now)
    starts = (assessment.date, assessment.time or "00:00")
    return starts <= (format_iso_date(local.date()), local.strftime("%H:%M"))


class AssessmentService:
    """Use cases: schedule tests for a class and record students' marks."""

    def __init__(
        self,
        assessments: AssessmentRepository,
        marks: MarksRepository,
        classes: ClassRepository,
        coaches: CoachRepository,
        students: StudentRepository,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._assessments = assessments
        self._marks = marks
        self._classes = classes
        self._coaches = coaches
        self._students = students
        self._clock = clock

    def _new_test_id(self, management_id: str) -> str:
        while True:
            candidate = generate_id(TEST_ID_PREFIX)
            if self._assessments.get(management_id, candidate) is None:
                return candidate

    def _assessment(self, current: Session, test_id) -> Assessment:
        assessment = self._assessments.get(current.management_id, require_test_id(test_id))
        if not assessment:
            raise NotFoundError("Test not found")
        return assessment

    def _coach_id(self, current: Session, value) -> Optional[str]:
        coach_id = (optional_str(value, "coachId") or "").strip()
        if coach_id and not self._coaches.get(current.management_id, coach_id):
            raise NotFoundError("Coach not found")
        return coach_id or None

    def list_tests(self, current: Session, *, class_id=None, subject_id=None) -> Sequence[Assessment]:
        tests = self._assessments.list_for_management(
            current.management_id, class_id=class_id, subject_id=subject_id
        )
        if current.role == Role.STUDENT:
            now = self._clock()
            tests = [t for t in tests if is_visible_to_students(t, now)]
        return tests

    def create_test(self, current: Session, payload: dict) -> Assessment:
        _require_admin(current)
        if not all(payload.get(k) for k in ("name", "date", "classId", "subjectId")):
            raise ValidationError("Test name, date, class ID, and subject ID are required")
        name = require_non_empty(payload["name"], "Test name")
        date = _date_str(payload["date"])
        class_id = require_non_empty(payload["classId"], "classId")
        subject_id = require_non_empty(payload["subjectId"], "subjectId")
        if not self._classes.get(current.management_id, class_id):
            raise NotFoundError("Class not found")

        now = self._clock()
        assessment = Assessment(
            test_id=self._new_test_id(current.management_id),
            name=name,
            date=date,
            class_id=class_id,
            subject_id=subject_id,
            management_id=current.management_id,
            time=optional_time(payload.get("time")),
            coach_id=self._coach_id(current, payload.get("coachId")),
            created_at=now,
            updated_at=now,
        )
        self._assessments.create(assessment)
        logger.info("Test %s scheduled for class %s on %s", assessment.test_id, class_id, date)
        return assessment

    def update_test(self, current: Session, test_id, payload: dict) -> None:
        """Partial update; ``published`` and ``status`` are accepted alongside the schedule."""
        _require_admin(current)
        assessment = self._assessment(current, test_id)

        fields = {}
        if "name" in payload:
            fields["name"] = require_non_empty(payload["name"], "Test name")
        if "date" in payload:
            fields["date"] = _date_str(payload["date"])
        if "time" in payload:
            fields["time"] = optional_time(payload["time"])
        if "coachId" in payload:
            fields["coachId"] = self._coach_id(current, payload["coachId"]) or ""
        if "published" in payload:
            if not isinstance(payload["published"], bool):
                raise ValidationError("published must be a boolean")
            fields["published"] = payload["published"]
        if "status" in payload:
            fields["status"] = parse_assessment_status(payload["status"]).value
        if not fields:
            raise ValidationError("Nothing to update")

        self._assessments.update(current.management_id, assessment.test_id, fields=fields, now=self._clock())
        logger.info("Test %s updated fields %s", assessment.test_id, sorted(fields))

    def delete_test(self, current: Session, test_id) -> None:
        _require_admin(current)
        assessment = self._assessment(current, test_id)
        self._assessments.delete(current.management_id, assessment.test_id)
        self._marks.delete_for_test(current.management_id, assessment.test_id)
        logger.info("Test %s and its marks deleted from %s", assessment.test_id, current.management_id)

    def list_marks(self, current: Session, *, test_id=None, class_id=None, subject_id=None) -> Sequence[dict]:
        records: Sequence[MarksRecord] = self._marks.list_for_management(
            current.management_id, test_id=test_id, class_id=class_id, subject_id=subject_id
        )
        if current.role == Role.STUDENT:
            visible = {t.test_id for t in self.list_tests(current, class_id=class_id, subject_id=subject_id)}
            records = [r for r in records if r.test_id in visible]
        return [row for record in records for row in record.flatten()]

    def save_marks(self, current: Session, request: MarksRequest) -> int:
        """Replace every mark of a test; all students must belong to the test's class."""
        _require_admin(current)
        assessment = self._assessment(current, request.test_id)

        resolved = self._students.resolve_in_class(
            management_id=current.management_id,
            class_id=assessment.class_id,
            student_ids=request.student_ids,
        )
        ensure_students_in_class(request.student_ids, resolved)

        students = {e.student_id: StudentMark(marks=e.marks, max_marks=e.max_marks) for e in request.entries}
        self._marks.replace_marks(assessment, students=students, now=self._clock())
        logger.info("Marks saved for %d students on test %s", len(students), assessment.test_id)
        return len(students)

    def update_mark(self, current: Session, test_id: str, entry: MarkEntry) -> None:
        _require_admin(current)
        assessment = self._assessment(current, test_id)

        resolved = self._students.resolve_in_class(
            management_id=current.management_id,
            class_id=assessment.class_id,
            student_ids=[entry.student_id],
        )
        ensure_students_in_class([entry.student_id], resolved)

        self._marks.set_student_mark(
            assessment,
            student_id=entry.student_id,
            mark=StudentMark(marks=entry.marks, max_marks=entry.max_marks),
            now=self._clock(),
        )

    def delete_marks(self, current: Session, test_id, student_id: Optional[str] = None) -> None:
        _require_admin(current)
        test_id = require_test_id(test_id)
        if not self._marks.get(current.management_id, test_id):
            raise NotFoundError("Test marks record not found")

        if student_id:
            self._marks.remove_student(current.management_id, test_id, student_id, now=self._clock())
        else:
            self._marks.delete_for_test(current.management_id, test_id)
        logger.info("Marks deleted for test %s (student=%s)", test_id, student_id or "all")
