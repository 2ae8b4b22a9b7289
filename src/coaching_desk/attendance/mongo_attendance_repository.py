from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from .model import AttendanceDay
from .repository import AttendanceRepository, StatsRow


def day_filter(management_id: str, class_id: str, date: str) -> dict:
    return {"classId": class_id, "date": date, "managementId": management_id}


def build_day_update(
    *,
    class_id: str,
    date: str,
    day: str,
    coach_id: str,
    management_id: str,
    students: Dict[str, str],
    leave_reasons: Dict[str, str],
    now: datetime,
) -> dict:
    """Update document for a bulk submission.

    ``students`` is replaced wholesale; stale ``leaveReasons`` are removed when the
    submission carries none.
    """
    to_set = {
        "classId": class_id,
        "coachId": coach_id,
        "date": date,
        "day": day,
        "managementId": management_id,
        "students": dict(students),
        "updatedAt": now,
    }
    update = {"$set": to_set, "$setOnInsert": {"createdAt": now}}
    if leave_reasons:
        to_set["leaveReasons"] = dict(leave_reasons)
    else:
        update["$unset"] = {"leaveReasons": ""}
    return update


def build_entry_update(
    *,
    class_id: str,
    date: str,
    day: str,
    coach_id: str,
    management_id: str,
    student_id: str,
    status: AttendanceStatus,
    reason: Optional[str],
    now: datetime,
) -> dict:
    """Update document merging a single student into the day's record."""
    to_set = {
        f"students.{student_id}": status.value,
        "classId": class_id,
        "coachId": coach_id,
        "date": date,
        "day": day,
        "managementId": management_id,
        "updatedAt": now,
    }
    update = {"$set": to_set, "$setOnInsert": {"createdAt": now}}
    if status == AttendanceStatus.APPROVED_LEAVE and reason:
        to_set[f"leaveReasons.{student_id}"] = reason
    else:
        update["$unset"] = {f"leaveReasons.{student_id}": ""}
    return update


def build_stats_pipeline(
    management_id: str,
    *,
    class_id: Optional[str] = None,
    student_id: Optional[str] = None,
    start: Optional[str] = None,
    end: Optional[str] = None,
) -> list:
    """Aggregation unwinding each day's students map into per-status counts."""
    match = {"managementId": management_id}
    if class_id:
        match["classId"] = class_id
    date_range = {}
    if start:
        date_range["$gte"] = start
    if end:
        date_range["$lte"] = end
    if date_range:
        match["date"] = date_range

    pipeline = [
        {"$match": match},
        {"$project": {"date": 1, "entries": {"$objectToArray": {"$ifNull": ["$students", {}]}}}},
        {"$unwind": "$entries"},
    ]
    if student_id:
        pipeline.append({"$match": {"entries.k": student_id}})
    pipeline.append(
        {
            "$group": {
                "_id": {"date": "$date", "studentId": "$entries.k", "status": "$entries.v"},
                "count": {"$sum": 1},
            }
        }
    )
    pipeline.append({"$sort": {"_id.date": 1}})
    return pipeline


def _to_day(doc: dict) -> AttendanceDay:
    return AttendanceDay(
        class_id=doc["classId"],
        date=doc["date"],
        day=doc.get("day") or "",
        management_id=doc["managementId"],
        coach_id=doc.get("coachId") or "",
        students=dict(doc.get("students") or {}),
        leave_reasons=dict(doc.get("leaveReasons") or {}),
        created_at=doc.get("createdAt"),
        updated_at=doc.get("updatedAt"),
    )


class MongoAttendanceRepository(AttendanceRepository):
    def __init__(self, conn: DatabaseConnection):
        self._conn = conn

    @property
    def _attendance(self):
        return self._conn.db["attendance"]

    def get_day(self, management_id: str, class_id: str, date: str) -> Optional[AttendanceDay]:
        doc = self._attendance.find_one(day_filter(management_id, class_id, date))
        return _to_day(doc) if doc else None

    def list_for_date(self, management_id: str, date: str, *, class_id: Optional[str] = None) -> Sequence[AttendanceDay]:
        query = {"managementId": management_id, "date": date}
        if class_id:
            query["classId"] = class_id
        return [_to_day(doc) for doc in self._attendance.find(query).sort("classId", 1)]

    def upsert_day(
        self,
        *,
        management_id: str,
        class_id: str,
        date: str,
        day: str,
        coach_id: str,
        students: Dict[str, str],
        leave_reasons: Dict[str, str],
        now: datetime,
        session: Any = None,
    ) -> None:
        self._attendance.update_one(
            day_filter(management_id, class_id, date),
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
            upsert=True,
            session=session,
        )

    def set_student_entry(
        self,
        *,
        management_id: str,
        class_id: str,
        date: str,
        day: str,
        coach_id: str,
        student_id: str,
        status: AttendanceStatus,
        reason: Optional[str],
        now: datetime,
    ) -> None:
        self._attendance.update_one(
            day_filter(management_id, class_id, date),
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
            upsert=True,
        )

    def stats_for_range(
        self,
        management_id: str,
        *,
        class_id: Optional[str] = None,
        student_id: Optional[str] = None,
        start: Optional[str] = None,
        end: Optional[str] = None,
    ) -> Sequence[StatsRow]:
        pipeline = build_stats_pipeline(
            management_id, class_id=class_id, student_id=student_id, start=start, end=end
        )
        return [
            (row["_id"]["date"], row["_id"]["studentId"], row["_id"]["status"], int(row["count"]))
            for row in self._attendance.aggregate(pipeline)
        ]
