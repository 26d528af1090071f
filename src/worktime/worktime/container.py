from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .core.constants import CODE_ROTATION_INTERVAL_SECONDS
from .database.connection import DBConfig, DatabaseConnection
from .sharing.mysql_sharing_repository import MySQLSharingRepository
from .sharing.repository import SharingRepository
from .sharing.rotation import CodeRotationScheduler, CodeRotator
from .sharing.service import SharingCodeService
from .time_entries.mysql_time_entry_repository import MySQLTimeEntryRepository
from .time_entries.repository import TimeEntryRepository
from .time_entries.service import TimeEntryService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    sharing_repo: SharingRepository
    time_entries_repo: TimeEntryRepository

    auth_service: AuthService
    user_service: UserService
    sharing_service: SharingCodeService
    time_entry_service: TimeEntryService

    code_rotator: CodeRotator
    code_rotation: CodeRotationScheduler


def wire_container(
    *,
    users_repo: UserRepository,
    sharing_repo: SharingRepository,
    time_entries_repo: TimeEntryRepository,
    conn: Optional[DatabaseConnection] = None,
    rotation_interval_seconds: float = CODE_ROTATION_INTERVAL_SECONDS,
) -> Container:
    sharing_service = SharingCodeService(users_repo, sharing_repo)
    code_rotator = CodeRotator(sharing_repo)

    return Container(
        conn=conn,
        users_repo=users_repo,
        sharing_repo=sharing_repo,
        time_entries_repo=time_entries_repo,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo, is_connected=sharing_service.is_connected),
        sharing_service=sharing_service,
        time_entry_service=TimeEntryService(time_entries_repo, can_view=sharing_service.can_view),
        code_rotator=code_rotator,
        code_rotation=CodeRotationScheduler(code_rotator, interval_seconds=rotation_interval_seconds),
    )


def build_container(
    *,
    db_config: dict,
    rotation_interval_seconds: float = CODE_ROTATION_INTERVAL_SECONDS,
) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection(config)

    return wire_container(
        users_repo=MySQLUserRepository(conn),
        sharing_repo=MySQLSharingRepository(conn),
        time_entries_repo=MySQLTimeEntryRepository(conn),
        conn=conn,
        rotation_interval_seconds=rotation_interval_seconds,
    )
