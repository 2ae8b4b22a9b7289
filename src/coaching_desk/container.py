from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .assessments.mongo_assessment_repository import MongoAssessmentRepository
from .assessments.mongo_marks_repository import MongoMarksRepository
from .assessments.service import AssessmentService
from .attendance.mongo_attendance_repository import MongoAttendanceRepository
from .attendance.service import AttendanceService
from .database.connection import DatabaseConnection, MongoConfig
from .management.mongo_management_repository import MongoManagementRepository
from .management.service import ManagementService
from .roster.mongo_class_repository import MongoClassRepository
from .roster.mongo_coach_repository import MongoCoachRepository
from .roster.mongo_student_repository import MongoStudentRepository
from .roster.service import RosterService
from .sessions.codec import SessionCodec
from .users.mongo_user_repository import MongoUserRepository
from .users.service import AuthService, TeamService, UserService


@dataclass(frozen=True)
class Container:
    session_codec: SessionCodec
    cookie_secure: bool

    auth_service: AuthService
    user_service: UserService
    team_service: TeamService
    management_service: ManagementService
    roster_service: RosterService
    attendance_service: AttendanceService
    assessment_service: AssessmentService

    conn: Optional[DatabaseConnection] = None


def build_container(
    *,
    mongo_config: dict,
    secret_key: str,
    use_transactions: bool = False,
    cookie_secure: bool = False,
) -> Container:
    config = MongoConfig(
        uri=str(mongo_config["uri"]),
        database=str(mongo_config["database"]),
        server_selection_timeout_ms=int(mongo_config.get("server_selection_timeout_ms", 5000)),
        connect_timeout_ms=int(mongo_config.get("connect_timeout_ms", 10000)),
        socket_timeout_ms=int(mongo_config.get("socket_timeout_ms", 45000)),
        max_pool_size=int(mongo_config.get("max_pool_size", 10)),
        min_pool_size=int(mongo_config.get("min_pool_size", 1)),
        use_transactions=bool(use_transactions),
    )
    conn = DatabaseConnection.get_instance(config)

    users_repo = MongoUserRepository(conn)
    managements_repo = MongoManagementRepository(conn)
    classes_repo = MongoClassRepository(conn)
    coaches_repo = MongoCoachRepository(conn)
    students_repo = MongoStudentRepository(conn)
    attendance_repo = MongoAttendanceRepository(conn)
    assessments_repo = MongoAssessmentRepository(conn)
    marks_repo = MongoMarksRepository(conn)

    return Container(
        session_codec=SessionCodec(secret_key),
        cookie_secure=bool(cookie_secure),
        auth_service=AuthService(users_repo, managements_repo),
        user_service=UserService(users_repo),
        team_service=TeamService(users_repo, managements_repo),
        management_service=ManagementService(managements_repo, users_repo),
        roster_service=RosterService(classes_repo, coaches_repo, students_repo),
        attendance_service=AttendanceService(
            attendance_repo,
            classes_repo,
            coaches_repo,
            students_repo,
            transaction=conn.transaction,
        ),
        assessment_service=AssessmentService(
            assessments_repo,
            marks_repo,
            classes_repo,
            coaches_repo,
            students_repo,
        ),
        conn=conn,
    )
