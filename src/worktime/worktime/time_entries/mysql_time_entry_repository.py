from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import TimeEntry
from .repository import TimeEntryRepository

_COLUMNS = "entry_id, user_id, clock_in, clock_out, duration_minutes, note"


def _row_to_entry(r: dict) -> TimeEntry:
    return TimeEntry(
        entry_id=int(r["entry_id"]),
        user_id=int(r["user_id"]),
        clock_in=r["clock_in"],
        clock_out=r.get("clock_out"),
        duration_minutes=r.get("duration_minutes"),
        note=r.get("note"),
    )


class MySQLTimeEntryRepository(TimeEntryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_open_for_user(self, user_id: int) -> Optional[TimeEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM time_entries
                WHERE user_id=%s AND clock_out IS NULL
                ORDER BY clock_in DESC
                LIMIT 1
                """,
                (user_id,),
            )
            r = fetchone(cur)
            return _row_to_entry(r) if r else None

    def create_clock_in(self, *, user_id: int, clock_in: datetime, note: Optional[str] = None) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO time_entries(user_id, clock_in, note) VALUES(%s,%s,%s)",
                (user_id, clock_in, note),
            )
            return int(cur.lastrowid)

    def close_entry(self, *, entry_id: int, clock_out: datetime, duration_minutes: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE time_entries
                SET clock_out=%s, duration_minutes=%s
                WHERE entry_id=%s AND clock_out IS NULL
                """,
                (clock_out, int(duration_minutes), entry_id),
            )
            return cur.rowcount > 0

    def list_for_user(self, user_id: int, *, since: datetime, offset: int, limit: int) -> Sequence[TimeEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM time_entries
                WHERE user_id=%s AND clock_in >= %s
                ORDER BY clock_in DESC
                LIMIT %s OFFSET %s
                """,
                (user_id, since, int(limit), int(offset)),
            )
            return [_row_to_entry(r) for r in fetchall(cur)]

    def count_for_user(self, user_id: int, *, since: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS n FROM time_entries WHERE user_id=%s AND clock_in >= %s",
                (user_id, since),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def get_by_id(self, entry_id: int) -> Optional[TimeEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM time_entries WHERE entry_id=%s", (entry_id,))
            r = fetchone(cur)
            return _row_to_entry(r) if r else None

    def set_clock_out(self, *, entry_id: int, clock_out: datetime, duration_minutes: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE time_entries SET clock_out=%s, duration_minutes=%s WHERE entry_id=%s",
                (clock_out, int(duration_minutes), entry_id),
            )
            return cur.rowcount > 0

    def delete(self, entry_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM time_entries WHERE entry_id=%s", (entry_id,))
            return cur.rowcount > 0
