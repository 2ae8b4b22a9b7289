from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Protocol, Sequence, Tuple

from ..core.enums import AttendanceStatus
from .model import AttendanceDay

# (date, studentId, status, count)
StatsRow = Tuple[str, str, str, int]


class AttendanceRepository(Protocol):
    def get_day(self, management_id: str, class_id: str, date: str) -> Optional[AttendanceDay]:
        raise NotImplementedError

    def list_for_date(self, management_id: str, date: str, *, class_id: Optional[str] = None) -> Sequence[AttendanceDay]:
        raise NotImplementedError

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
        """Create or fully replace the students map of one (class, date) document."""

        raise NotImplementedError

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
        """Merge one student's status into the day's document, leaving others untouched."""

        raise NotImplementedError

    def stats_for_range(
        self,
        management_id: str,
        *,
        class_id: Optional[str] = None,
        student_id: Optional[str] = None,
        start: Optional[str] = None,
        end: Optional[str] = None,
    ) -> Sequence[StatsRow]:
        """Count entries per (date, student, status) over an inclusive date range."""

        raise NotImplementedError
