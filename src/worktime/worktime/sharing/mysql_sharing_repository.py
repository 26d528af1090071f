from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from ..users.model import PublicProfile, User
from ..users.mysql_user_repository import USER_COLUMNS, row_to_user
from .model import CodeAssignment, Connection, TeamRow
from .repository import SharingRepository


def _row_to_connection(row: dict) -> Connection:
    return Connection(
        connection_id=int(row["connection_id"]),
        owner_id=int(row["owner_id"]),
        viewer_id=int(row["viewer_id"]),
        created_at=row.get("created_at"),
    )


class MySQLSharingRepository(SharingRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_user_by_code(self, code: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {USER_COLUMNS} FROM users WHERE sharing_code=%s", (code,))
            row = fetchone(cur)
            return row_to_user(row) if row else None

    def set_code_if_absent(self, user_id: int, code: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET sharing_code=%s WHERE user_id=%s AND sharing_code IS NULL",
                (code, user_id),
            )
            return cur.rowcount > 0

    def list_code_holders(self) -> Sequence[CodeAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT user_id, sharing_code FROM users WHERE sharing_code IS NOT NULL ORDER BY user_id")
            return [CodeAssignment(user_id=int(r["user_id"]), code=r["sharing_code"]) for r in fetchall(cur)]

    def batch_update_codes(self, assignments: Sequence[CodeAssignment]) -> int:
        if not assignments:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                "UPDATE users SET sharing_code=%s WHERE user_id=%s",
                [(a.code, a.user_id) for a in assignments],
            )
            return len(assignments)

    def find_connection(self, user_a: int, user_b: int) -> Optional[Connection]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT connection_id, owner_id, viewer_id, created_at
                FROM connections
                WHERE (owner_id=%s AND viewer_id=%s) OR (owner_id=%s AND viewer_id=%s)
                LIMIT 1
                """,
                (user_a, user_b, user_b, user_a),
            )
            row = fetchone(cur)
            return _row_to_connection(row) if row else None

    def create_connection(self, *, owner_id: int, viewer_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO connections(owner_id, viewer_id) VALUES(%s,%s)",
                (owner_id, viewer_id),
            )
            return int(cur.lastrowid)

    def list_team(self, user_id: int) -> Sequence[TeamRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT c.connection_id, c.owner_id, c.viewer_id, c.created_at,
                       u.user_id, u.name, u.email,
                       COALESCE(SUM(t.duration_minutes), 0) AS total_minutes
                FROM connections c
                JOIN users u
                  ON u.user_id = CASE WHEN c.viewer_id=%s THEN c.owner_id ELSE c.viewer_id END
                LEFT JOIN time_entries t
                  ON t.user_id = u.user_id AND t.clock_out IS NOT NULL
                WHERE c.owner_id=%s OR c.viewer_id=%s
                GROUP BY c.connection_id, c.owner_id, c.viewer_id, c.created_at, u.user_id, u.name, u.email
                ORDER BY u.name
                """,
                (user_id, user_id, user_id),
            )
            return [
                TeamRow(
                    connection=_row_to_connection(r),
                    member=PublicProfile(user_id=int(r["user_id"]), name=r["name"], email=r["email"]),
                    total_minutes=int(r["total_minutes"] or 0),
                )
                for r in fetchall(cur)
            ]
