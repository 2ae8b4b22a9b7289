from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional, Protocol, Sequence

from .model import Assessment, MarksRecord, StudentMark


class AssessmentRepository(Protocol):
    def get(self, management_id: str, test_id: str) -> Optional[Assessment]:
        raise NotImplementedError

    def list_for_management(
        self,
        management_id: str,
        *,
        class_id: Optional[str] = None,
        subject_id: Optional[str] = None,
    ) -> Sequence[Assessment]:
        raise NotImplementedError

    def create(self, assessment: Assessment) -> None:
        raise NotImplementedError

    def update(self, management_id: str, test_id: str, *, fields: dict, now: datetime) -> bool:
        raise NotImplementedError

    def delete(self, management_id: str, test_id: str) -> bool:
        raise NotImplementedError


class MarksRepository(Protocol):
    def get(self, management_id: str, test_id: str) -> Optional[MarksRecord]:
        raise NotImplementedError

    def list_for_management(
        self,
        management_id: str,
        *,
        test_id: Optional[str] = None,
        class_id: Optional[str] = None,
        subject_id: Optional[str] = None,
    ) -> Sequence[MarksRecord]:
        raise NotImplementedError

    def replace_marks(self, assessment: Assessment, *, students: Dict[str, StudentMark], now: datetime) -> None:
        """Create or fully replace the students map of the test's marks document."""

        raise NotImplementedError

    def set_student_mark(self, assessment: Assessment, *, student_id: str, mark: StudentMark, now: datetime) -> None:
        raise NotImplementedError

    def remove_student(self, management_id: str, test_id: str, student_id: str, *, now: datetime) -> bool:
        raise NotImplementedError

    def delete_for_test(self, management_id: str, test_id: str) -> bool:
        raise NotImplementedError
