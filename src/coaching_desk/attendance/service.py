from __future__ import annotations

import logging
from contextlib import nullcontext
from datetime import datetime
from typing import Callable, ContextManager, Dict, Iterable, Optional, Sequence, Set

from pymongo.errors import PyMongoError

from ..common.datetime_utils import attendance_today, format_iso_date, now_utc, weekday_name
from ..core.enums import AttendanceStatus
from ..core.exceptions import InternalError, NotFoundError, ValidationError
from ..roster.repository import ClassRepository, CoachRepository, StudentRepository
from ..sessions.model import Session
from .model import AttendanceDay, BulkAttendanceRequest, BulkAttendanceResult, SingleAttendanceRequest
from .policy import ensure_can_write_attendance
from .repository import AttendanceRepository, StatsRow
from .validation import parse_optional_date, ensure_students_in_class

logger = logging.getLogger(__name__)

_STAT_KEYS = {
    AttendanceStatus.PRESENT.value: "present",
    AttendanceStatus.ABSENT.value: "absent",
    AttendanceStatus.LATE.value: "late",
    AttendanceStatus.APPROVED_LEAVE.value: "approvedLeave",
}


def attendance_percentage(present: int, late: int, total: int) -> float:
    """Late counts as half a presence; approved leave still counts toward the total."""
    if not total:
        return 0.0
    return round((present + 0.5 * late) / total * 100, 2)


def summarize_stats(rows: Iterable[StatsRow]) -> dict:
    """Fold (date, student, status, count) rows into chart, total and per-student figures."""
    by_date: Dict[str, dict] = {}
    by_student: Dict[str, dict] = {}
    totals = {key: 0 for key in _STAT_KEYS.values()}

    for date, student_id, status, count in rows:
        key = _STAT_KEYS.get(status)
        if key is None:
            continue
        day = by_date.setdefault(date, {"date": date, **{k: 0 for k in _STAT_KEYS.values()}})
        student = by_student.setdefault(
            student_id, {"studentId": student_id, **{k: 0 for k in _STAT_KEYS.values()}, "total": 0}
        )
        day[key] += count
        student[key] += count
        student["total"] += count
        totals[key] += count

    student_stats = []
    for student_id in sorted(by_student):
        stat = by_student[student_id]
        stat["attendancePercentage"] = attendance_percentage(stat["present"], stat["late"], stat["total"])
        student_stats.append(stat)

    return {
        "chartData": [by_date[d] for d in sorted(by_date)],
        "stats": {
            "totalPresent": totals["present"],
            "totalAbsent": totals["absent"],
            "totalLate": totals["late"],
            "totalApprovedLeave": totals["approvedLeave"],
            "totalEntries": sum(totals.values()),
            "totalStudents": len(by_student),
        },
        "studentStats": student_stats,
    }


class AttendanceService:
    """Records attendance for a management's classes.

    A bulk write is two-phase: the per-day record is upserted, then each
    student's cached ``attendanceStatus`` is mirrored. Without a transaction
    factory the second phase may partly fail; that is reported in the result,
    never rolled back. With one (``DatabaseConnection.transaction``) both phases
    commit or abort together.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        classes: ClassRepository,
        coaches: CoachRepository,
        students: StudentRepository,
        *,
        transaction: Callable[[], ContextManager] = nullcontext,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._attendance = attendance
        self._classes = classes
        self._coaches = coaches
        self._students = students
        self._transaction = transaction
        self._clock = clock

    def record_bulk(self, current: Session, request: BulkAttendanceRequest) -> BulkAttendanceResult:
        mid = current.management_id

        class_record = self._classes.get(mid, request.class_id)
        if not class_record:
            raise NotFoundError("Class not found")

        ensure_can_write_attendance(current, class_record, self._coaches)

        resolved = self._students.resolve_in_class(
            management_id=mid,
            class_id=request.class_id,
            student_ids=request.student_ids,
        )
        ensure_students_in_class(request.student_ids, resolved)

        now = self._clock()
        date_str = format_iso_date(request.date or attendance_today(now))
        students = {e.student_id: e.status.value for e in request.entries}
        leave_reasons = {
            e.student_id: e.reason
            for e in request.entries
            if e.status == AttendanceStatus.APPROVED_LEAVE and e.reason
        }
        statuses = [(e.student_id, e.status) for e in request.entries]

        with self._transaction() as txn:
            self._attendance.upsert_day(
                management_id=mid,
                class_id=request.class_id,
                date=date_str,
                day=request.day,
                coach_id=request.coach_id or class_record.coach_id or "",
                students=students,
                leave_reasons=leave_reasons,
                now=now,
                session=txn,
            )
            failed = self._mirror_statuses(mid, statuses, now=now, txn=txn)
            if failed and txn is not None:
                raise InternalError(
                    f"Attendance not saved: {len(failed)} of {len(statuses)} student status caches failed to update"
                )

        result = BulkAttendanceResult(
            date=date_str,
            day=request.day,
            total=len(statuses),
            failed=tuple(sorted(failed)),
        )
        if failed:
            logger.warning(
                "Class %s on %s (%s): %s", request.class_id, date_str, mid, result.message
            )
        else:
            logger.info("Class %s on %s (%s): %s", request.class_id, date_str, mid, result.message)
        return result

    def _mirror_statuses(self, management_id: str, statuses, *, now: datetime, txn) -> Set[str]:
        try:
            return set(
                self._students.cache_attendance_status(
                    management_id=management_id,
                    statuses=statuses,
                    now=now,
                    session=txn,
                )
            )
        except PyMongoError:
            if txn is not None:
                raise
            logger.exception("Student status cache update failed for %d students", len(statuses))
            return {sid for sid, _ in statuses}

    def record_single(self, current: Session, request: SingleAttendanceRequest) -> dict:
        mid = current.management_id

        student = self._students.get(mid, request.student_id)
        if not student:
            raise NotFoundError("Student not found")

        class_record = self._classes.get(mid, student.class_id) if student.class_id else None
        ensure_can_write_attendance(current, class_record, self._coaches)

        now = self._clock()
        day_date = request.date or attendance_today(now)
        date_str = format_iso_date(day_date)
        day = weekday_name(day_date)

        self._attendance.set_student_entry(
            management_id=mid,
            class_id=student.class_id or "",
            date=date_str,
            day=day,
            coach_id=class_record.coach_id if class_record and class_record.coach_id else "",
            student_id=student.student_id,
            status=request.status,
            reason=request.reason,
            now=now,
        )
        failed = self._mirror_statuses(mid, [(student.student_id, request.status)], now=now, txn=None)

        if failed:
            message = "Attendance saved; 1 of 1 student status caches failed to update"
            logger.warning("Student %s on %s: %s", student.student_id, date_str, message)
        else:
            message = "Attendance updated successfully"
        return {"success": True, "message": message, "date": date_str, "day": day, "failed": sorted(failed)}

    def list_day(self, current: Session, *, class_id: Optional[str] = None, date: Optional[str] = None) -> Sequence[AttendanceDay]:
        day_date = parse_optional_date(date) or attendance_today(self._clock())
        return self._attendance.list_for_date(current.management_id, format_iso_date(day_date), class_id=class_id)

    def stats(
        self,
        current: Session,
        *,
        class_id: Optional[str] = None,
        student_id: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> dict:
        start = parse_optional_date(start_date)
        end = parse_optional_date(end_date)
        if start and end and start > end:
            raise ValidationError("startDate must not be after endDate")

        rows = self._attendance.stats_for_range(
            current.management_id,
            class_id=class_id,
            student_id=student_id,
            start=format_iso_date(start) if start else None,
            end=format_iso_date(end) if end else None,
        )
        return summarize_stats(rows)
