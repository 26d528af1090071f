from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import TimeEntry


class TimeEntryRepository(Protocol):
    def get_open_for_user(self, user_id: int) -> Optional[TimeEntry]:
        raise NotImplementedError

    def create_clock_in(self, *, user_id: int, clock_in: datetime, note: Optional[str] = None) -> int:
        raise NotImplementedError

    def close_entry(self, *, entry_id: int, clock_out: datetime, duration_minutes: int) -> bool:
        raise NotImplementedError

    def list_for_user(self, user_id: int, *, since: datetime, offset: int, limit: int) -> Sequence[TimeEntry]:
        raise NotImplementedError

    def count_for_user(self, user_id: int, *, since: datetime) -> int:
        raise NotImplementedError

    def get_by_id(self, entry_id: int) -> Optional[TimeEntry]:
        raise NotImplementedError

    def set_clock_out(self, *, entry_id: int, clock_out: datetime, duration_minutes: int) -> bool:
        raise NotImplementedError

    def delete(self, entry_id: int) -> bool:
        raise NotImplementedError
