from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_utc
from ..common.validators import optional_str, require_email, require_non_empty
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..database.mongo_base import generate_id
from ..sessions.model import Session
from .model import ClassRecord, Coach, Student
from .repository import ClassRepository, CoachRepository, StudentRepository

logger = logging.getLogger(__name__)


def _require_admin(current: Session, action: str) -> None:
    if not current.is_admin:
        raise AuthorizationError(f"Only admins can {action}")


class RosterService:
    """Use cases: list and create classes, coaches and students of one management."""

    def __init__(
        self,
        classes: ClassRepository,
        coaches: CoachRepository,
        students: StudentRepository,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._classes = classes
        self._coaches = coaches
        self._students = students
        self._clock = clock

    def list_classes(self, current: Session) -> Sequence[ClassRecord]:
        return self._classes.list_for_management(current.management_id)

    def list_coaches(self, current: Session) -> Sequence[Coach]:
        return self._coaches.list_for_management(current.management_id)

    def list_students(self, current: Session, *, class_id: Optional[str] = None) -> Sequence[Student]:
        return self._students.list_for_management(current.management_id, class_id=class_id)

    def create_class(self, current: Session, *, name, coach_id=None) -> ClassRecord:
        _require_admin(current, "create classes")
        name = require_non_empty(name, "Class name")
        coach_id = (optional_str(coach_id, "coachId") or "").strip() or None
        if coach_id and not self._coaches.get(current.management_id, coach_id):
            raise NotFoundError("Coach not found")

        class_id = generate_id("class_")
        now = self._clock()
        self._classes.create(
            class_id=class_id,
            name=name,
            management_id=current.management_id,
            coach_id=coach_id,
            now=now,
        )
        logger.info("Class %s created in %s", class_id, current.management_id)
        return ClassRecord(
            class_id=class_id,
            name=name,
            management_id=current.management_id,
            coach_id=coach_id,
            created_at=now,
        )

    def create_coach(self, current: Session, *, name, email) -> Coach:
        _require_admin(current, "create coaches")
        name = require_non_empty(name, "Coach name")
        email = require_email(email)

        coach_id = generate_id("coach_")
        now = self._clock()
        self._coaches.create(
            coach_id=coach_id,
            name=name,
            email=email,
            management_id=current.management_id,
            now=now,
        )
        return Coach(coach_id=coach_id, name=name, email=email, management_id=current.management_id, created_at=now)

    def create_student(self, current: Session, *, name, class_id, email=None) -> Student:
        _require_admin(current, "create students")
        name = require_non_empty(name, "Student name")
        class_id = require_non_empty(class_id, "classId")
        email = require_email(email) if email else None
        if not self._classes.get(current.management_id, class_id):
            raise NotFoundError("Class not found")

        now = self._clock()
        student_id = self._students.create(
            name=name,
            email=email,
            management_id=current.management_id,
            class_id=class_id,
            now=now,
        )
        return Student(
            student_id=student_id,
            name=name,
            management_id=current.management_id,
            class_id=class_id,
            email=email,
            created_at=now,
        )

    def _class(self, current: Session, class_id) -> ClassRecord:
        class_id = require_non_empty(class_id, "classId")
        record = self._classes.get(current.management_id, class_id)
        if not record:
            raise NotFoundError("Class not found")
        return record

    def _coach(self, current: Session, coach_id) -> Coach:
        coach_id = require_non_empty(coach_id, "coachId")
        coach = self._coaches.get(current.management_id, coach_id)
        if not coach:
            raise NotFoundError("Coach not found")
        return coach

    def update_class(self, current: Session, class_id, payload: dict) -> None:
        """Rename a class or (re)assign its coach; an empty coachId unassigns it."""
        _require_admin(current, "update classes")
        record = self._class(current, class_id)

        fields = {}
        if "name" in payload:
            fields["name"] = require_non_empty(payload["name"], "Class name")
        if "coachId" in payload:
            coach_id = (optional_str(payload["coachId"], "coachId") or "").strip()
            if coach_id:
                self._coach(current, coach_id)
            fields["coachId"] = coach_id
        if not fields:
            raise ValidationError("Nothing to update")

        self._classes.update(current.management_id, record.class_id, fields=fields, now=self._clock())
        logger.info("Class %s updated fields %s", record.class_id, sorted(fields))

    def delete_class(self, current: Session, class_id) -> None:
        _require_admin(current, "delete classes")
        record = self._class(current, class_id)

        enrolled = self._students.count_in_class(current.management_id, record.class_id)
        if enrolled:
            raise ValidationError(
                f"Cannot delete class. It has {enrolled} student(s). Please remove students first."
            )
        self._classes.delete(current.management_id, record.class_id)
        logger.info("Class %s deleted from %s", record.class_id, current.management_id)

    def update_coach(self, current: Session, coach_id, payload: dict) -> None:
        _require_admin(current, "update coaches")
        coach = self._coach(current, coach_id)

        fields = {}
        if "name" in payload:
            fields["name"] = require_non_empty(payload["name"], "Coach name")
        if "email" in payload:
            email = require_email(payload["email"])
            holder = self._coaches.get_by_email(current.management_id, email)
            if holder and holder.coach_id != coach.coach_id:
                raise ConflictError("Email already in use by another coach")
            fields["email"] = email
        if not fields:
            raise ValidationError("Nothing to update")

        self._coaches.update(current.management_id, coach.coach_id, fields=fields, now=self._clock())

    def delete_coach(self, current: Session, coach_id) -> None:
        _require_admin(current, "delete coaches")
        coach = self._coach(current, coach_id)

        assigned = self._classes.count_for_coach(current.management_id, coach.coach_id)
        if assigned:
            raise ValidationError(
                f"Cannot delete coach. They are assigned to {assigned} class(es). Please unassign them first."
            )
        self._coaches.delete(current.management_id, coach.coach_id)
        logger.info("Coach %s deleted from %s", coach.coach_id, current.management_id)

    def update_student(self, current: Session, student_id, payload: dict) -> None:
        _require_admin(current, "update students")
        student_id = require_non_empty(student_id, "studentId")
        student = self._students.get(current.management_id, student_id)
        if not student:
            raise NotFoundError("Student not found")

        fields = {}
        if "name" in payload:
            fields["name"] = require_non_empty(payload["name"], "Student name")
        if "email" in payload:
            email = require_email(payload["email"]) if payload["email"] else None
            holder = self._students.get_by_email(current.management_id, email) if email else None
            if holder and holder.student_id != student.student_id:
                raise ConflictError("Email already in use by another student")
            fields["email"] = email
        if "classId" in payload:
            fields["classId"] = self._class(current, payload["classId"]).class_id
        if not fields:
            raise ValidationError("Nothing to update")

        self._students.update(current.management_id, student.student_id, fields=fields, now=self._clock())

    def delete_student(self, current: Session, student_id) -> None:
        """Remove a student; their past attendance and marks entries stay as history."""
        _require_admin(current, "delete students")
        student_id = require_non_empty(student_id, "studentId")
        if not self._students.delete(current.management_id, student_id):
            raise NotFoundError("Student not found")
        logger.info("Student %s deleted from %s", student_id, current.management_id)
