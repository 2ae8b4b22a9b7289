from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Optional, Protocol, Sequence, Set, Tuple

from ..core.enums import AttendanceStatus
from .model import ClassRecord, Coach, Student


class ClassRepository(Protocol):
    def get(self, management_id: str, class_id: str) -> Optional[ClassRecord]:
        raise NotImplementedError

    def list_for_management(self, management_id: str) -> Sequence[ClassRecord]:
        raise NotImplementedError

    def create(self, *, class_id: str, name: str, management_id: str, coach_id: Optional[str], now: datetime) -> None:
        raise NotImplementedError

    def update(self, management_id: str, class_id: str, *, fields: dict, now: datetime) -> bool:
        raise NotImplementedError

    def delete(self, management_id: str, class_id: str) -> bool:
        raise NotImplementedError

    def count_for_coach(self, management_id: str, coach_id: str) -> int:
        raise NotImplementedError


class CoachRepository(Protocol):
    def get(self, management_id: str, coach_id: str) -> Optional[Coach]:
        raise NotImplementedError

    def find_assigned(self, *, management_id: str, email: str, coach_id: str) -> Optional[Coach]:
        """Coach with this email in this management holding coach_id, if any."""

        raise NotImplementedError

    def list_for_management(self, management_id: str) -> Sequence[Coach]:
        raise NotImplementedError

    def create(self, *, coach_id: str, name: str, email: str, management_id: str, now: datetime) -> None:
        raise NotImplementedError

    def get_by_email(self, management_id: str, email: str) -> Optional[Coach]:
        raise NotImplementedError

    def update(self, management_id: str, coach_id: str, *, fields: dict, now: datetime) -> bool:
        raise NotImplementedError

    def delete(self, management_id: str, coach_id: str) -> bool:
        raise NotImplementedError


class StudentRepository(Protocol):
    def get(self, management_id: str, student_id: str) -> Optional[Student]:
        raise NotImplementedError

    def list_for_management(self, management_id: str, *, class_id: Optional[str] = None) -> Sequence[Student]:
        raise NotImplementedError

    def create(
        self,
        *,
        name: str,
        email: Optional[str],
        management_id: str,
        class_id: str,
        now: datetime,
    ) -> str:
        raise NotImplementedError

    def get_by_email(self, management_id: str, email: str) -> Optional[Student]:
        raise NotImplementedError

    def update(self, management_id: str, student_id: str, *, fields: dict, now: datetime) -> bool:
        raise NotImplementedError

    def delete(self, management_id: str, student_id: str) -> bool:
        raise NotImplementedError

    def count_in_class(self, management_id: str, class_id: str) -> int:
        raise NotImplementedError

    def resolve_in_class(self, *, management_id: str, class_id: str, student_ids: Iterable[str]) -> Set[str]:
        """Subset of student_ids that exist in this management and class."""

        raise NotImplementedError

    def cache_attendance_status(
        self,
        *,
        management_id: str,
        statuses: Sequence[Tuple[str, AttendanceStatus]],
        now: datetime,
        session: Any = None,
    ) -> Set[str]:
        """Mirror the latest status onto each student; returns ids that were not updated."""

        raise NotImplementedError
