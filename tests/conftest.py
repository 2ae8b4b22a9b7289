from __future__ import annotations

import copy
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, Optional

import pytest

from coaching_desk.assessments.model import Assessment, MarksRecord, StudentMark
from coaching_desk.assessments.mongo_marks_repository import build_marks_update, build_student_marks_update
from coaching_desk.assessments.service import AssessmentService
from coaching_desk.attendance.model import AttendanceDay
from coaching_desk.attendance.mongo_attendance_repository import build_day_update, build_entry_update
from coaching_desk.attendance.service import AttendanceService
from coaching_desk.container import Container
from coaching_desk.core.constants import SESSION_COOKIE_NAME
from coaching_desk.core.enums import AssessmentStatus, Role
from coaching_desk.management.model import Management
from coaching_desk.management.service import ManagementService
from coaching_desk.roster.model import ClassRecord, Coach, Student
from coaching_desk.roster.service import RosterService
from coaching_desk.sessions.codec import SessionCodec
from coaching_desk.sessions.model import Session
from coaching_desk.users.model import User
from coaching_desk.users.service import AuthService, TeamService, UserService

FIXED_NOW = datetime(2024, 6, 10, 6, 30, tzinfo=timezone.utc)


def apply_update(doc: dict, update: dict, *, inserting: bool) -> dict:
    """Apply the subset of MongoDB update operators the repositories emit."""
    doc = copy.deepcopy(doc)

    def _set(path: str, value):
        *parents, leaf = path.split(".")
        target = doc
        for key in parents:
            target = target.setdefault(key, {})
        target[leaf] = copy.deepcopy(value)

    def _unset(path: str):
        *parents, leaf = path.split(".")
        target = doc
        for key in parents:
            target = target.get(key)
            if not isinstance(target, dict):
                return
        target.pop(leaf, None)

    if inserting:
        for path, value in update.get("$setOnInsert", {}).items():
            _set(path, value)
    for path, value in update.get("$set", {}).items():
        _set(path, value)
    for path in update.get("$unset", {}):
        _unset(path)
    return doc


class InMemoryUsers:
    def __init__(self):
        self.users: Dict[str, User] = {}
        self._next = 0

    def add(self, user: User) -> User:
        self.users[user.user_id] = user
        return user

    def get_by_id(self, user_id):
        return self.users.get(user_id)

    def get_by_email(self, email):
        return next((u for u in self.users.values() if u.email == email.lower()), None)

    def create_user(self, *, email, password_hash, name, management_id, role, email_domain, now):
        self._next += 1
        user_id = f"{self._next:024x}"
        self.users[user_id] = User(
            user_id=user_id,
            email=email,
            password_hash=password_hash,
            name=name,
            management_id=management_id,
            role=role,
            email_domain=email_domain,
            created_at=now,
            updated_at=now,
        )
        return user_id

    def touch(self, user_id, *, now):
        self.touched = (user_id, now)

    def update_profile(self, user_id, *, fields, now):
        user = self.users.get(user_id)
        if not user:
            return False
        self.users[user_id] = User(
            user_id=user.user_id,
            email=user.email,
            password_hash=user.password_hash,
            name=fields.get("name", user.name),
            management_id=user.management_id,
            role=user.role,
            email_domain=user.email_domain,
            picture=fields.get("picture", user.picture),
            created_at=user.created_at,
            updated_at=now,
        )
        return True

    def list_by_management(self, management_id):
        return [u for u in self.users.values() if u.management_id == management_id]

    def count_by_management(self, management_id, *, role=None):
        return len(
            [u for u in self.users.values() if u.management_id == management_id and (role is None or u.role == role)]
        )

    def activate(self, user_id, *, password_hash, name, now):
        self.users[user_id] = replace(self.users[user_id], password_hash=password_hash, name=name, updated_at=now)

    def set_role(self, user_id, *, role, now, name=None):
        user = self.users.get(user_id)
        if not user:
            return False
        self.users[user_id] = replace(user, role=role, name=name or user.name, updated_at=now)
        return True

    def delete(self, user_id):
        return self.users.pop(user_id, None) is not None


class InMemoryManagements:
    def __init__(self):
        self.items: Dict[str, Management] = {}

    def add(self, management: Management) -> Management:
        self.items[management.management_id] = management
        return management

    def get(self, management_id):
        return self.items.get(management_id)

    def get_by_domain(self, email_domain):
        return next((m for m in self.items.values() if m.email_domain == email_domain), None)

    def create(self, *, management_id, name, email_domain, now):
        if management_id in self.items or self.get_by_domain(email_domain):
            return False
        self.items[management_id] = Management(
            management_id=management_id,
            name=name,
            email_domain=email_domain,
            created_at=now,
            updated_at=now,
        )
        return True

    def set_admin(self, management_id, admin_id):
        m = self.items[management_id]
        self.items[management_id] = replace(m, admin_id=admin_id)

    def update(self, management_id, *, fields, now):
        m = self.items.get(management_id)
        if not m:
            return False
        renamed = {"name": "name", "numCoaches": "num_coaches", "numStudents": "num_students", "logo": "logo"}
        changes = {renamed[k]: v for k, v in fields.items()}
        self.items[management_id] = replace(m, updated_at=now, **changes)
        return True

    def delete(self, management_id):
        return self.items.pop(management_id, None) is not None


class InMemoryClasses:
    def __init__(self):
        self.items: Dict[tuple, ClassRecord] = {}

    def add(self, record: ClassRecord) -> ClassRecord:
        self.items[(record.management_id, record.class_id)] = record
        return record

    def get(self, management_id, class_id):
        return self.items.get((management_id, class_id))

    def list_for_management(self, management_id):
        return [c for (mid, _), c in self.items.items() if mid == management_id]

    def create(self, *, class_id, name, management_id, coach_id, now):
        self.add(ClassRecord(class_id=class_id, name=name, management_id=management_id, coach_id=coach_id, created_at=now))

    def update(self, management_id, class_id, *, fields, now):
        record = self.get(management_id, class_id)
        if not record:
            return False
        changes = {}
        if "name" in fields:
            changes["name"] = fields["name"]
        if "coachId" in fields:
            changes["coach_id"] = fields["coachId"] or None
        self.add(replace(record, **changes))
        return True

    def delete(self, management_id, class_id):
        return self.items.pop((management_id, class_id), None) is not None

    def count_for_coach(self, management_id, coach_id):
        return len([c for c in self.list_for_management(management_id) if c.coach_id == coach_id])


class InMemoryCoaches:
    def __init__(self):
        self.items: Dict[tuple, Coach] = {}

    def add(self, coach: Coach) -> Coach:
        self.items[(coach.management_id, coach.coach_id)] = coach
        return coach

    def get(self, management_id, coach_id):
        return self.items.get((management_id, coach_id))

    def find_assigned(self, *, management_id, email, coach_id):
        coach = self.items.get((management_id, coach_id))
        if coach and coach.email == email.lower():
            return coach
        return None

    def list_for_management(self, management_id):
        return [c for (mid, _), c in self.items.items() if mid == management_id]

    def create(self, *, coach_id, name, email, management_id, now):
        self.add(Coach(coach_id=coach_id, name=name, email=email, management_id=management_id, created_at=now))

    def get_by_email(self, management_id, email):
        return next((c for c in self.list_for_management(management_id) if c.email == email.lower()), None)

    def update(self, management_id, coach_id, *, fields, now):
        coach = self.get(management_id, coach_id)
        if not coach:
            return False
        self.add(replace(coach, **{k: v for k, v in fields.items() if k in ("name", "email")}))
        return True

    def delete(self, management_id, coach_id):
        return self.items.pop((management_id, coach_id), None) is not None


class InMemoryStudents:
    def __init__(self):
        self.items: Dict[str, Student] = {}
        self.cached: Dict[str, str] = {}
        self.fail_ids: set = set()
        self.raise_on_cache: Optional[Exception] = None
        self._next = 0

    def add(self, student: Student) -> Student:
        self.items[student.student_id] = student
        return student

    def get(self, management_id, student_id):
        s = self.items.get(student_id)
        return s if s and s.management_id == management_id else None

    def list_for_management(self, management_id, *, class_id=None):
        return [
            s for s in self.items.values()
            if s.management_id == management_id and (class_id is None or s.class_id == class_id)
        ]

    def create(self, *, name, email, management_id, class_id, now):
        self._next += 1
        student_id = f"{self._next:024x}"
        self.add(Student(student_id=student_id, name=name, management_id=management_id, class_id=class_id, email=email))
        return student_id

    def get_by_email(self, management_id, email):
        return next((s for s in self.list_for_management(management_id) if s.email == email), None)

    def update(self, management_id, student_id, *, fields, now):
        student = self.get(management_id, student_id)
        if not student:
            return False
        renamed = {"name": "name", "email": "email", "classId": "class_id"}
        self.add(replace(student, **{renamed[k]: v for k, v in fields.items()}))
        return True

    def delete(self, management_id, student_id):
        if not self.get(management_id, student_id):
            return False
        del self.items[student_id]
        return True

    def count_in_class(self, management_id, class_id):
        return len(self.list_for_management(management_id, class_id=class_id))

    def resolve_in_class(self, *, management_id, class_id, student_ids):
        return {
            sid for sid in student_ids
            if sid in self.items
            and self.items[sid].management_id == management_id
            and self.items[sid].class_id == class_id
        }

    def cache_attendance_status(self, *, management_id, statuses, now, session=None):
        if self.raise_on_cache is not None:
            raise self.raise_on_cache
        failed = set()
        for sid, status in statuses:
            if sid in self.fail_ids or sid not in self.items:
                failed.add(sid)
                continue
            self.cached[sid] = status.value
        return failed


class InMemoryAttendance:
    """Stores raw documents and applies the real update documents to them."""

    def __init__(self):
        self.docs: Dict[tuple, dict] = {}
        self.writes = 0

    def _write(self, key, update):
        inserting = key not in self.docs
        self.docs[key] = apply_update(self.docs.get(key, {}), update, inserting=inserting)
        self.writes += 1

    @staticmethod
    def _to_day(doc: dict) -> AttendanceDay:
        return AttendanceDay(
            class_id=doc["classId"],
            date=doc["date"],
            day=doc.get("day", ""),
            management_id=doc["managementId"],
            coach_id=doc.get("coachId", ""),
            students=dict(doc.get("students", {})),
            leave_reasons=dict(doc.get("leaveReasons", {})),
            created_at=doc.get("createdAt"),
            updated_at=doc.get("updatedAt"),
        )

    def raw(self, management_id, class_id, date):
        return self.docs.get((management_id, class_id, date))

    def get_day(self, management_id, class_id, date):
        doc = self.docs.get((management_id, class_id, date))
        return self._to_day(doc) if doc else None

    def list_for_date(self, management_id, date, *, class_id=None):
        return [
            self._to_day(doc) for (mid, cid, d), doc in sorted(self.docs.items())
            if mid == management_id and d == date and (class_id is None or cid == class_id)
        ]

    def upsert_day(self, *, management_id, class_id, date, day, coach_id, students, leave_reasons, now, session=None):
        self._write(
            (management_id, class_id, date),
            build_day_update(
                class_id=class_id,
                date=date,
                day=day,
                coach_id=coach_id,
                management_id=management_id,
                students=students,
                leave_reasons=leave_reasons,
                now=now,
            ),
        )

    def set_student_entry(self, *, management_id, class_id, date, day, coach_id, student_id, status, reason, now):
        self._write(
            (management_id, class_id, date),
            build_entry_update(
                class_id=class_id,
                date=date,
                day=day,
                coach_id=coach_id,
                management_id=management_id,
                student_id=student_id,
                status=status,
                reason=reason,
                now=now,
            ),
        )

    def stats_for_range(self, management_id, *, class_id=None, student_id=None, start=None, end=None):
        counts: Dict[tuple, int] = {}
        for (mid, cid, date), doc in self.docs.items():
            if mid != management_id or (class_id and cid != class_id):
                continue
            if (start and date < start) or (end and date > end):
                continue
            for sid, status in doc.get("students", {}).items():
                if student_id and sid != student_id:
                    continue
                counts[(date, sid, status)] = counts.get((date, sid, status), 0) + 1
        return [(date, sid, status, n) for (date, sid, status), n in sorted(counts.items())]


class InMemoryAssessments:
    def __init__(self):
        self.items: Dict[tuple, Assessment] = {}

    def add(self, assessment: Assessment) -> Assessment:
        self.items[(assessment.management_id, assessment.test_id)] = assessment
        return assessment

    def get(self, management_id, test_id):
        return self.items.get((management_id, test_id))

    def list_for_management(self, management_id, *, class_id=None, subject_id=None):
        return [
            a for (mid, _), a in self.items.items()
            if mid == management_id
            and (class_id is None or a.class_id == class_id)
            and (subject_id is None or a.subject_id == subject_id)
        ]

    def create(self, assessment):
        self.add(assessment)

    def update(self, management_id, test_id, *, fields, now):
        assessment = self.get(management_id, test_id)
        if not assessment:
            return False
        renamed = {"name": "name", "date": "date", "time": "time", "coachId": "coach_id", "published": "published"}
        changes = {renamed[k]: v for k, v in fields.items() if k in renamed}
        if "coach_id" in changes:
            changes["coach_id"] = changes["coach_id"] or None
        if "status" in fields:
            changes["status"] = AssessmentStatus(fields["status"])
        self.add(replace(assessment, updated_at=now, **changes))
        return True

    def delete(self, management_id, test_id):
        return self.items.pop((management_id, test_id), None) is not None


class InMemoryMarks:
    """Stores raw documents and applies the real update documents to them."""

    def __init__(self):
        self.docs: Dict[tuple, dict] = {}

    def _write(self, key, update):
        inserting = key not in self.docs
        self.docs[key] = apply_update(self.docs.get(key, {}), update, inserting=inserting)

    @staticmethod
    def _to_record(doc: dict) -> MarksRecord:
        return MarksRecord(
            test_id=doc["testId"],
            class_id=doc.get("classId", ""),
            subject_id=doc.get("subjectId", ""),
            management_id=doc["managementId"],
            students={
                sid: StudentMark(marks=entry["marks"], max_marks=entry["maxMarks"])
                for sid, entry in doc.get("students", {}).items()
            },
            created_at=doc.get("createdAt"),
            updated_at=doc.get("updatedAt"),
        )

    def raw(self, management_id, test_id):
        return self.docs.get((management_id, test_id))

    def get(self, management_id, test_id):
        doc = self.docs.get((management_id, test_id))
        return self._to_record(doc) if doc else None

    def list_for_management(self, management_id, *, test_id=None, class_id=None, subject_id=None):
        return [
            self._to_record(doc) for (mid, tid), doc in sorted(self.docs.items())
            if mid == management_id
            and (test_id is None or tid == test_id)
            and (class_id is None or doc.get("classId") == class_id)
            and (subject_id is None or doc.get("subjectId") == subject_id)
        ]

    def replace_marks(self, assessment, *, students, now):
        self._write(
            (assessment.management_id, assessment.test_id),
            build_marks_update(assessment, students=students, now=now),
        )

    def set_student_mark(self, assessment, *, student_id, mark, now):
        self._write(
            (assessment.management_id, assessment.test_id),
            build_student_marks_update(assessment, student_id=student_id, mark=mark, now=now),
        )

    def remove_student(self, management_id, test_id, student_id, *, now):
        key = (management_id, test_id)
        if key not in self.docs:
            return False
        self._write(key, {"$unset": {f"students.{student_id}": ""}, "$set": {"updatedAt": now}})
        return True

    def delete_for_test(self, management_id, test_id):
        return self.docs.pop((management_id, test_id), None) is not None

class Store:
    """All in-memory repositories of one fake deployment."""

    def __init__(self):
        self.users = InMemoryUsers()
        self.managements = InMemoryManagements()
        self.classes = InMemoryClasses()
        self.coaches = InMemoryCoaches()
        self.students = InMemoryStudents()
        self.attendance = InMemoryAttendance()
        self.assessments = InMemoryAssessments()
        self.marks = InMemoryMarks()


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def store():
    return Store()


@pytest.fixture
def codec():
    return SessionCodec("test-secret")


@pytest.fixture
def admin_session():
    return Session(user_id="a" * 24, management_id="mgmt_one", email="admin@one.edu", role=Role.ADMIN)


@pytest.fixture
def coach_session():
    return Session(user_id="c" * 24, management_id="mgmt_one", email="coach@one.edu", role=Role.COACH)


@pytest.fixture
def container(store, codec, fixed_now):
    clock = lambda: fixed_now
    return Container(
        session_codec=codec,
        cookie_secure=False,
        auth_service=AuthService(store.users, store.managements, clock=clock),
        user_service=UserService(store.users, clock=clock),
        team_service=TeamService(store.users, store.managements, clock=clock),
        management_service=ManagementService(store.managements, store.users, clock=clock),
        roster_service=RosterService(store.classes, store.coaches, store.students, clock=clock),
        attendance_service=AttendanceService(
            store.attendance,
            store.classes,
            store.coaches,
            store.students,
            clock=clock,
        ),
        assessment_service=AssessmentService(
            store.assessments,
            store.marks,
            store.classes,
            store.coaches,
            store.students,
            clock=clock,
        ),
    )


@pytest.fixture
def app(container, monkeypatch):
    from coaching_desk.main import create_app

    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def sign_in(client, codec):
    def _sign_in(session: Session) -> None:
        client.set_cookie(SESSION_COOKIE_NAME, codec.encode(session))

    return _sign_in
